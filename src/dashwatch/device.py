"""MAC address helpers and vendor lookup for the watched device."""

import asyncio
import logging
import re

from mac_vendor_lookup import AsyncMacLookup, VendorNotFoundError

from dashwatch.errors import ConfigurationError

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^[0-9A-F]{12}$")

# The OUI table is downloaded on first use when no cached copy exists.
VENDOR_LOOKUP_TIMEOUT = 5.0  # seconds


def normalize_mac(mac: str) -> str:
    """Normalize a MAC address to uppercase colon-separated format."""
    cleaned = mac.strip().upper().replace("-", ":").replace(".", "")
    # Handle bare hex (e.g. "AABBCCDDEEFF")
    if ":" not in cleaned and len(cleaned) == 12:
        cleaned = ":".join(cleaned[i : i + 2] for i in range(0, 12, 2))
    return cleaned


def parse_mac(mac: str) -> bytes:
    """Parse a textual MAC address into exactly 6 bytes.

    Accepts colon or dash separated octets and bare hex. Anything that does
    not describe a 6-byte link-layer address raises ConfigurationError.
    """
    if not mac or not mac.strip():
        raise ConfigurationError("MAC address of dash button is required")
    octets = normalize_mac(mac).split(":")
    if len(octets) != 6 or any(len(o) not in (1, 2) for o in octets):
        raise ConfigurationError(f"Invalid MAC address: {mac!r}")
    hexed = "".join(o.zfill(2) for o in octets)
    if not _HEX_RE.match(hexed):
        raise ConfigurationError(f"Invalid MAC address: {mac!r}")
    return bytes.fromhex(hexed)


def format_mac(addr: bytes) -> str:
    """Render 6 raw bytes as AA:BB:CC:DD:EE:FF."""
    return ":".join(f"{b:02X}" for b in addr)


async def lookup_vendor(mac: str, timeout: float = VENDOR_LOOKUP_TIMEOUT) -> str | None:
    """Look up the device manufacturer from OUI database, giving up after *timeout*."""
    try:
        return await asyncio.wait_for(AsyncMacLookup().lookup(normalize_mac(mac)), timeout)
    except VendorNotFoundError:
        return None
    except TimeoutError:
        logger.warning("Vendor lookup for %s timed out after %.1fs", mac, timeout)
        return None
    except Exception:
        logger.debug("Vendor lookup failed for %s", mac, exc_info=True)
        return None
