"""Collapse bursts of ARP requests from one press into a single event."""

import logging
from datetime import UTC, datetime, timedelta

logger = logging.getLogger(__name__)


class DebounceGate:
    """Accept an event only if *interval* has passed since the last accepted one.

    The baseline starts at construction time so ARP chatter already in
    flight when the process starts does not fire a notification.
    """

    def __init__(self, interval: timedelta, started_at: datetime | None = None) -> None:
        if interval <= timedelta(0):
            raise ValueError("debounce interval must be positive")
        self.interval = interval
        self.last_accepted = started_at or datetime.now(UTC)

    def accept(self, timestamp: datetime) -> bool:
        elapsed = timestamp - self.last_accepted
        if elapsed < self.interval:
            logger.debug(
                "Suppressed event %.3fs after last accepted (interval %.3fs)",
                elapsed.total_seconds(),
                self.interval.total_seconds(),
            )
            return False
        self.last_accepted = timestamp
        return True
