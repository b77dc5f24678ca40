"""Dash button monitor: capture loop wiring filter, debounce and notifier.

Lifecycle is idle -> running -> stopping -> stopped. ``stop()`` may be called
from a signal handler at any time and more than once; ``wait()`` returns once
the capture loop has exited and the capture handle is released.
"""

import asyncio
import enum
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from dashwatch.config import MonitorConfig
from dashwatch.debounce import DebounceGate
from dashwatch.device import format_mac
from dashwatch.errors import CaptureReadError
from dashwatch.notify.slack import NotificationResult, SlackNotifier
from dashwatch.sniffer.arp import classify
from dashwatch.sniffer.base import FrameSource, TriggerEvent
from dashwatch.sniffer.capture import CaptureSource
from dashwatch.sniffer.network import ValidatedInterface, validate_interface

logger = logging.getLogger(__name__)


class MonitorState(enum.StrEnum):
    idle = "idle"
    running = "running"
    stopping = "stopping"
    stopped = "stopped"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class DashMonitor:
    """Watches one interface for ARP requests from the configured button."""

    def __init__(
        self,
        config: MonitorConfig,
        notifier: SlackNotifier,
        validator: Callable[[str], ValidatedInterface] = validate_interface,
        source_factory: Callable[[ValidatedInterface], FrameSource] = CaptureSource,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self._notifier = notifier
        self._validator = validator
        self._source_factory = source_factory
        self._clock = clock
        self._gate = DebounceGate(config.debounce_interval, started_at=clock())
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._callbacks: list[Callable[[TriggerEvent], None]] = []
        self.state = MonitorState.idle
        self.interface: ValidatedInterface | None = None
        self.failure: CaptureReadError | None = None

        self.frames_seen = 0
        self.events_matched = 0
        self.events_suppressed = 0
        self.notifications_sent = 0
        self.notifications_failed = 0

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def on_event(self, callback: Callable[[TriggerEvent], None]) -> None:
        """Register a callback for accepted (debounced) trigger events."""
        self._callbacks.append(callback)

    async def start(self) -> None:
        """Validate the interface, open the capture and launch the loop.

        Validation and capture-open errors propagate and leave the monitor idle.
        """
        if self.state != MonitorState.idle:
            raise RuntimeError(f"monitor already {self.state}")

        self.interface = self._validator(self.config.interface)
        source = self._source_factory(self.interface)
        source.open()

        logger.info(
            "Watching %s for ARP requests from %s",
            self.interface.name,
            format_mac(self.config.target_mac),
        )
        self.state = MonitorState.running
        self._task = asyncio.create_task(self._capture_loop(source))
        # Runs even if the task is cancelled before its first step.
        self._task.add_done_callback(lambda _task: self._release(source))

    def stop(self) -> None:
        """Request shutdown. Idempotent and non-blocking."""
        if self._stop.is_set():
            return
        logger.info("Stopping monitor")
        self._stop.set()
        if self.state == MonitorState.running:
            self.state = MonitorState.stopping

    async def wait(self) -> None:
        """Block until the capture loop has exited.

        Raises CaptureReadError if the loop stopped because the capture failed.
        """
        if self._task is None:
            return
        await self._task
        if self.failure is not None:
            raise self.failure

    async def run(self) -> None:
        await self.start()
        await self.wait()

    def _release(self, source: FrameSource) -> None:
        self.state = MonitorState.stopping
        try:
            source.close()
        except Exception:
            logger.exception("Error releasing capture")
        self.state = MonitorState.stopped
        logger.info(
            "Monitor stopped (frames=%d matched=%d suppressed=%d sent=%d failed=%d)",
            self.frames_seen,
            self.events_matched,
            self.events_suppressed,
            self.notifications_sent,
            self.notifications_failed,
        )

    async def _capture_loop(self, source: FrameSource) -> None:
        """Race frame arrival against stop; stop wins when both are ready."""
        while not self._stop.is_set():
            try:
                frame = await asyncio.to_thread(source.recv, self.config.poll_interval)
            except Exception as e:
                logger.exception("Capture read failed, stopping monitor")
                self.failure = e if isinstance(e, CaptureReadError) else CaptureReadError(str(e))
                return
            if self._stop.is_set():
                break
            if frame is None:
                continue
            self.frames_seen += 1
            try:
                await self._handle_frame(frame)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Error handling captured frame")

    async def _handle_frame(self, frame: object) -> None:
        event = classify(frame, self.config.target_mac, now=self._clock())
        if event is None:
            return
        self.events_matched += 1

        if not self._gate.accept(event.timestamp):
            self.events_suppressed += 1
            return

        logger.info("Dash button pressed: %s (%s)", event.mac_address, event.sender_ip)
        result = await self._deliver()
        if result.success:
            self.notifications_sent += 1
        else:
            self.notifications_failed += 1

        for cb in self._callbacks:
            try:
                cb(event)
            except Exception:
                logger.exception("Error in trigger event callback")

    async def _deliver(self) -> NotificationResult:
        channel = self.config.channel
        try:
            return await asyncio.wait_for(
                self._notifier.notify(channel, self.config.message),
                timeout=self.config.notify_timeout,
            )
        except TimeoutError:
            logger.error(
                "Slack post to %s timed out after %.1fs", channel, self.config.notify_timeout
            )
            return NotificationResult(success=False, channel=channel, error="timeout")
