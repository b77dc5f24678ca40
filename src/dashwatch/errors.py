"""Error kinds raised by the dash button monitor."""


class DashwatchError(Exception):
    """Base class for all dashwatch errors."""


class ConfigurationError(DashwatchError):
    """Malformed or missing configuration (bad MAC, missing token, ...)."""


class InterfaceValidationError(DashwatchError):
    """The capture interface is not usable for watching ARP broadcasts."""

    def __init__(self, interface: str, reason: str) -> None:
        super().__init__(f"{interface}: {reason}")
        self.interface = interface
        self.reason = reason


class NoAddressFound(InterfaceValidationError):
    def __init__(self, interface: str) -> None:
        super().__init__(interface, "no good IP network found")


class LoopbackRejected(InterfaceValidationError):
    def __init__(self, interface: str) -> None:
        super().__init__(interface, "skipping localhost")


class NetworkTooLarge(InterfaceValidationError):
    def __init__(self, interface: str, netmask: str) -> None:
        super().__init__(interface, f"mask {netmask} means network is too large")
        self.netmask = netmask


class CaptureOpenError(DashwatchError):
    """The live capture could not be opened (permissions, busy interface)."""


class CaptureReadError(DashwatchError):
    """Reading from an open capture failed (interface went down, socket closed)."""


class NotificationDeliveryError(DashwatchError):
    """A notification could not be delivered. Never fatal to the monitor."""
