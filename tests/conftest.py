"""Shared test fixtures."""

import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from scapy.layers.l2 import ARP, Ether

import dashwatch.config as config_module
from dashwatch.config import MonitorConfig
from dashwatch.notify.slack import NotificationResult
from dashwatch.sniffer.base import FrameSource

TARGET_MAC = "b4:79:a7:00:00:01"
TARGET_BYTES = bytes.fromhex("b479a7000001")
START = datetime(2024, 1, 15, 10, 30, 0, tzinfo=UTC)

_ENV_VARS = (
    "SLACK_API_TOKEN",
    "DASH_BUTTON_MAC_ADDR",
    "DASHWATCH_SLACK_API_TOKEN",
    "DASHWATCH_DASH_BUTTON_MAC_ADDR",
    "DASHWATCH_INTERFACE",
    "DASHWATCH_CHANNEL",
    "DASHWATCH_MESSAGE",
    "DASHWATCH_DEBOUNCE_INTERVAL",
    "DASHWATCH_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep the developer's environment and .env out of every test."""
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(config_module, "_ENV_FILE", tmp_path / ".env")


@pytest.fixture
def arp_frame() -> Callable[..., Ether]:
    """Factory for Ethernet/ARP frames, defaulting to a request from the button."""

    def _make(hwsrc: str = TARGET_MAC, op: int = 1, psrc: str = "192.168.1.77") -> Ether:
        return Ether(src=hwsrc, dst="ff:ff:ff:ff:ff:ff") / ARP(
            op=op, hwsrc=hwsrc, psrc=psrc, pdst="192.168.1.1"
        )

    return _make


@pytest.fixture
def monitor_config() -> MonitorConfig:
    return MonitorConfig(
        interface="eth0",
        target_mac=TARGET_BYTES,
        channel="#dash",
        message="Ordering detergent...",
        token="xoxb-test",
        debounce_interval=timedelta(seconds=5),
        poll_interval=0.01,
    )


class FakeClock:
    """Settable clock; frames in FakeFrameSource move it forward."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeFrameSource(FrameSource):
    """Replays (offset_seconds, frame) pairs, then idles.

    Each frame advances the shared clock to START + offset before it is
    handed to the monitor.
    """

    def __init__(self, frames: list[tuple[float, Any]], clock: FakeClock | None = None) -> None:
        self._frames = list(frames)
        self._clock = clock
        self.open_count = 0
        self.close_count = 0
        self.idle_polls = 0

    @property
    def drained(self) -> bool:
        return not self._frames and self.idle_polls > 0

    def open(self) -> None:
        self.open_count += 1

    def recv(self, timeout: float) -> Any | None:
        if self._frames:
            offset, frame = self._frames.pop(0)
            if self._clock is not None:
                self._clock.now = START + timedelta(seconds=offset)
            return frame
        time.sleep(min(timeout, 0.01))
        self.idle_polls += 1
        return None

    def close(self) -> None:
        self.close_count += 1


class FakeNotifier:
    """Records notify() calls and replays canned results."""

    def __init__(self, failures: int = 0, error: str = "invalid_auth") -> None:
        self.calls: list[tuple[str, str]] = []
        self._failures = failures
        self._error = error

    async def notify(self, channel: str, message: str) -> NotificationResult:
        self.calls.append((channel, message))
        if self._failures > 0:
            self._failures -= 1
            return NotificationResult(success=False, channel=channel, error=self._error)
        return NotificationResult(success=True, channel=channel, timestamp="1700000000.000100")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_source(clock) -> Callable[[list[tuple[float, Any]]], FakeFrameSource]:
    return lambda frames: FakeFrameSource(frames, clock)


@pytest.fixture
def make_notifier() -> Callable[..., FakeNotifier]:
    return FakeNotifier
