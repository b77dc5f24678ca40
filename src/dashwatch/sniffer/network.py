"""Interface validation: make sure the button's broadcasts can reach us.

The button announces itself with an ARP broadcast, so the capture interface
must sit on an ordinary local IPv4 network. A loopback interface, or one with
a very broad netmask (VPN tunnels, wrong NIC), almost certainly means the
monitor would never see a press, so we fail fast instead.
"""

import ipaddress
import logging
import socket
from dataclasses import dataclass

import psutil

from dashwatch.errors import (
    InterfaceValidationError,
    LoopbackRejected,
    NetworkTooLarge,
    NoAddressFound,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedInterface:
    """An interface that passed validation, with its selected IPv4 network."""

    name: str
    network: ipaddress.IPv4Interface


def _first_ipv4(addrs: list) -> tuple[str, str | None] | None:
    """Return (address, netmask) of the first IPv4 entry."""
    for addr in addrs:
        if addr.family == socket.AF_INET and addr.address:
            return addr.address, addr.netmask
    return None


def validate_interface(name: str) -> ValidatedInterface:
    """Validate interface *name* for ARP watching.

    Raises:
        InterfaceValidationError: unknown interface, or IPv4 address without netmask.
        NoAddressFound: no IPv4 address configured.
        LoopbackRejected: the address is in 127.0.0.0/8.
        NetworkTooLarge: the two high netmask octets are not both 0xff.
    """
    all_addrs = psutil.net_if_addrs()
    if name not in all_addrs:
        raise InterfaceValidationError(name, "no such interface")

    selected = _first_ipv4(all_addrs[name])
    if selected is None:
        raise NoAddressFound(name)

    address, netmask = selected
    if not netmask:
        raise InterfaceValidationError(name, f"no netmask for {address}")
    try:
        network = ipaddress.IPv4Interface(f"{address}/{netmask}")
    except ValueError as e:
        raise InterfaceValidationError(name, f"unusable address {address}/{netmask}") from e

    if network.ip.packed[0] == 127:
        raise LoopbackRejected(name)

    mask = network.netmask.packed
    if mask[0] != 0xFF or mask[1] != 0xFF:
        raise NetworkTooLarge(name, str(network.netmask))

    logger.info("Using network range %s for interface %s", network.network, name)
    return ValidatedInterface(name=name, network=network)
