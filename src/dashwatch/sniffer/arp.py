"""Classify captured frames: is this the dash button asking "who-has"?"""

import logging
from datetime import UTC, datetime
from typing import Any

from scapy.layers.l2 import ARP, Ether

from dashwatch.device import format_mac, normalize_mac
from dashwatch.sniffer.base import TriggerEvent

logger = logging.getLogger(__name__)

ARP_REQUEST = 1  # "who-has"


def _sender_bytes(hwsrc: Any) -> bytes | None:
    if isinstance(hwsrc, bytes):
        return hwsrc
    if not isinstance(hwsrc, str):
        return None
    try:
        return bytes.fromhex(normalize_mac(hwsrc).replace(":", ""))
    except ValueError:
        return None


def classify(frame: Any, target_mac: bytes, now: datetime | None = None) -> TriggerEvent | None:
    """Return a TriggerEvent if *frame* is an ARP request sent by *target_mac*.

    *frame* may be a decoded scapy packet or raw Ethernet bytes. Anything
    that is not an ARP request from the target, including frames scapy
    cannot decode, yields None.
    """
    if frame is None:
        return None
    if isinstance(frame, bytes | bytearray):
        try:
            frame = Ether(bytes(frame))
        except Exception:
            logger.debug("Undecodable frame (%d bytes)", len(frame), exc_info=True)
            return None

    try:
        if not frame.haslayer(ARP):
            return None
        arp = frame[ARP]
        if arp.op != ARP_REQUEST:
            return None
        sender = _sender_bytes(arp.hwsrc)
    except Exception:
        logger.debug("Malformed ARP frame", exc_info=True)
        return None

    if sender != target_mac:
        return None

    return TriggerEvent(
        mac_address=format_mac(sender),
        sender_ip=arp.psrc or None,
        timestamp=now or datetime.now(UTC),
    )
