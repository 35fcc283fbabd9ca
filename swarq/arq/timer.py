"""
Timer Management for Stop-and-Wait ARQ

This module provides the clocks the protocol runs on and the single
retransmission timer owned by the sender.
"""

from dataclasses import dataclass
from enum import Enum
import time

from config import TIMEOUT_MS


class RealClock:
    """
    Wall clock in milliseconds.

    Every instance reads the same monotonic time base, so readings from
    separate clocks can be compared. Sleeping blocks the calling thread.
    """

    def now_ms(self) -> float:
        return time.monotonic() * 1000

    def sleep_ms(self, duration_ms: float):
        if duration_ms > 0:
            time.sleep(duration_ms / 1000)


class VirtualClock:
    """
    Simulated clock in milliseconds.

    Sleeping advances simulated time immediately, so a transmission that
    would take seconds on a real clock completes without waiting.

    Attributes:
        current_ms: Current simulated time
    """

    def __init__(self, start_ms: float = 0.0):
        self.current_ms = start_ms

    def now_ms(self) -> float:
        return self.current_ms

    def sleep_ms(self, duration_ms: float):
        if duration_ms > 0:
            self.current_ms += duration_ms

    def advance(self, duration_ms: float):
        """Move simulated time forward (alias of sleep_ms for tests)."""
        self.sleep_ms(duration_ms)


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1
    EXPIRED = 2


@dataclass
class RetransmissionTimer:
    """
    Sender retransmission timer.

    Expiry is checked cooperatively: the owner polls check_expired()
    or sleeps for get_remaining_time() before checking.

    Attributes:
        clock: Clock providing now_ms() / sleep_ms()
        timeout_ms: Timeout duration in milliseconds
        start_time: Time when timer was last started
        state: Current timer state
        restarts: Number of restarts since the first start
    """
    clock: object
    timeout_ms: float = TIMEOUT_MS
    start_time: float = 0.0
    state: TimerState = TimerState.STOPPED
    restarts: int = 0

    def start(self):
        """Start the timer from the current clock reading."""
        self.start_time = self.clock.now_ms()
        self.state = TimerState.RUNNING
        self.restarts = 0

    def restart(self):
        """Restart the timer (for retransmission)."""
        self.start_time = self.clock.now_ms()
        self.state = TimerState.RUNNING
        self.restarts += 1

    def stop(self):
        """Stop the timer."""
        self.state = TimerState.STOPPED

    def elapsed(self) -> float:
        """Milliseconds since the timer was last started."""
        return self.clock.now_ms() - self.start_time

    def check_expired(self) -> bool:
        """
        Check if timer has expired.

        Returns:
            True if the timer is running and its deadline has passed
        """
        if self.state == TimerState.EXPIRED:
            return True
        if self.state != TimerState.RUNNING:
            return False

        if self.elapsed() >= self.timeout_ms:
            self.state = TimerState.EXPIRED
            return True

        return False

    def get_remaining_time(self) -> float:
        """
        Get remaining time until expiration.

        Returns:
            Remaining milliseconds (0 if expired or stopped)
        """
        if self.state != TimerState.RUNNING:
            return 0.0
        return max(0.0, self.get_expiry_time() - self.clock.now_ms())

    def get_expiry_time(self) -> float:
        """Get the absolute expiry time."""
        return self.start_time + self.timeout_ms

    def wait(self):
        """Sleep until the deadline (no-op unless running)."""
        self.clock.sleep_ms(self.get_remaining_time())
