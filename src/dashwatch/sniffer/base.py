"""Base types shared by the capture side of the monitor."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass
class TriggerEvent:
    """An ARP request observed from the watched dash button."""

    mac_address: str  # normalized, e.g. "B4:79:A7:00:00:01"
    sender_ip: str | None  # ARP psrc, if present
    timestamp: datetime


class FrameSource(ABC):
    """Abstract base for live link-layer frame sources."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the capture handle."""

    @abstractmethod
    def recv(self, timeout: float) -> Any | None:
        """Return the next frame, or None if none arrived within timeout seconds."""

    @abstractmethod
    def close(self) -> None:
        """Release the capture handle. Safe to call more than once."""
