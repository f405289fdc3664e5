"""
Rate limiter for GitHub API requests.

Tracks the quota the server reports on every response and decides when
the harvest has to pause until the quota window resets.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Union

import requests

logger = logging.getLogger(__name__)

# Quota is unknown until the first response reports it
UNBOUNDED = math.inf

REMAINING_HEADER = "X-RateLimit-Remaining"
RESET_HEADER = "X-RateLimit-Reset"


@dataclass(frozen=True)
class QuotaStatus:
    """Snapshot of the quota state."""
    remaining: Union[int, float]
    reset_at: int  # Unix timestamp

    @property
    def is_known(self) -> bool:
        return self.remaining != UNBOUNDED

    def describe(self) -> str:
        reset_time = datetime.fromtimestamp(self.reset_at).strftime("%H:%M:%S")
        remaining = self.remaining if self.is_known else "unknown"
        return f"{remaining} requests remaining, resets at {reset_time}"


class QuotaTracker:
    """
    Tracks the GitHub API quota shared by every request of a run.

    The client is the only writer (after each response) and the harvesters
    read it before each page request.
    """

    def __init__(
        self,
        pause_threshold: int = 10,
        buffer_seconds: float = 10.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize quota tracker.

        Args:
            pause_threshold: Pause when fewer requests than this remain
            buffer_seconds: Extra wait added past the reset time for clock skew
            clock: Returns the current Unix time in seconds
            sleep: Blocks for the given number of seconds
        """
        self.pause_threshold = pause_threshold
        self.buffer_seconds = buffer_seconds
        self.clock = clock
        self.sleep = sleep
        self.remaining: Union[int, float] = UNBOUNDED
        self.reset_at: int = 0

    def record_response_headers(
        self,
        remaining: Optional[int] = None,
        reset_epoch_seconds: Optional[int] = None,
    ) -> None:
        """Update the quota state with the fields a response carried."""
        if remaining is not None:
            self.remaining = remaining
        if reset_epoch_seconds is not None:
            self.reset_at = reset_epoch_seconds

    def record_response(self, response: requests.Response) -> QuotaStatus:
        """
        Extract rate limit info from GitHub API response headers.

        Args:
            response: requests.Response from GitHub API

        Returns:
            QuotaStatus after the update
        """
        self.record_response_headers(
            remaining=_int_header(response, REMAINING_HEADER),
            reset_epoch_seconds=_int_header(response, RESET_HEADER),
        )
        return self.snapshot()

    def should_pause(self, threshold: Optional[int] = None) -> bool:
        """Check if we should wait before making next request."""
        if threshold is None:
            threshold = self.pause_threshold
        return self.remaining < threshold

    def compute_wait_duration(self) -> float:
        """Seconds to wait until the quota window has reset."""
        return max(0.0, self.reset_at - self.clock() + self.buffer_seconds)

    def wait_if_needed(self) -> float:
        """
        Block until the quota resets if it is running low.

        After the pause the remaining count is unknown again; the next
        response reports the real value.

        Returns:
            Seconds slept (0 if no pause was needed)
        """
        if not self.should_pause():
            return 0.0

        wait_seconds = self.compute_wait_duration()
        if wait_seconds <= 0:
            return 0.0

        resume_at = datetime.fromtimestamp(self.clock() + wait_seconds)
        logger.warning(
            "Rate limit low (%s). Pausing for %d seconds... Resuming around %s",
            self.remaining,
            math.ceil(wait_seconds),
            resume_at.strftime("%H:%M:%S"),
        )
        self.sleep(wait_seconds)
        logger.info("Resuming API calls...")
        self.remaining = UNBOUNDED
        return wait_seconds

    def snapshot(self) -> QuotaStatus:
        return QuotaStatus(remaining=self.remaining, reset_at=self.reset_at)


def _int_header(response: requests.Response, name: str) -> Optional[int]:
    value = response.headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring malformed %s header: %r", name, value)
        return None
