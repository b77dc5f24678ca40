"""Live link-layer capture using a scapy listening socket.

Requires NET_RAW capability (or root) on the capture interface.
"""

import logging
from typing import Any

from scapy.config import conf
from scapy.error import Scapy_Exception

from dashwatch.errors import CaptureOpenError, CaptureReadError
from dashwatch.sniffer.base import FrameSource
from dashwatch.sniffer.network import ValidatedInterface

logger = logging.getLogger(__name__)

# Generous for an Ethernet MTU; not a tuned value.
DEFAULT_SNAPLEN = 65536


class CaptureSource(FrameSource):
    """Promiscuous live capture on a validated interface."""

    def __init__(
        self,
        interface: ValidatedInterface,
        snaplen: int = DEFAULT_SNAPLEN,
        promisc: bool = True,
    ) -> None:
        self.interface = interface
        self.snaplen = snaplen
        self.promisc = promisc
        self._socket: Any | None = None

    @property
    def is_open(self) -> bool:
        return self._socket is not None

    def open(self) -> None:
        if self._socket is not None:
            return
        name = self.interface.name
        try:
            self._socket = conf.L2listen(iface=name, promisc=self.promisc)
        except (OSError, Scapy_Exception) as e:
            raise CaptureOpenError(f"cannot open capture on {name}: {e}") from e
        logger.info("Capture opened on %s (promisc=%s)", name, self.promisc)

    def recv(self, timeout: float) -> Any | None:
        """Wait up to *timeout* seconds for one frame.

        The bounded wait is what lets the monitor notice a stop request while
        the wire is silent; scapy sockets have no cancellable blocking read.
        """
        sock = self._socket
        if sock is None:
            raise CaptureOpenError("capture is not open")
        try:
            ready = sock.select([sock], timeout)
            if not ready:
                return None
            return sock.recv(self.snaplen)
        except (OSError, Scapy_Exception) as e:
            raise CaptureReadError(f"capture read on {self.interface.name} failed: {e}") from e

    def close(self) -> None:
        sock, self._socket = self._socket, None
        if sock is None:
            return
        try:
            sock.close()
        except OSError:
            logger.warning("Error closing capture on %s", self.interface.name, exc_info=True)
        else:
            logger.info("Capture closed on %s", self.interface.name)
