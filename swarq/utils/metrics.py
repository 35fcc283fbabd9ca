"""
Metrics Collection and Calculation

This module provides the statistics accumulator shared by the sender,
receiver and network paths during a transmission.
"""

from typing import Optional, Dict
import copy
import threading


class Statistics:
    """
    Counters and timing for one or more transmissions.

    Counters only ever increase while a transmission runs. The caller owns
    the instance and may thread it through successive transmissions; every
    update takes a lock so concurrent writers do not lose increments.

    Attributes:
        frames_sent: DATA frames handed to the network (incl. retransmissions)
        frames_received: DATA frames that reached the receiver
        acks_sent: ACK frames handed to the network
        acks_received: ACK frames that reached the sender
        retransmissions: Timeout-driven resends
        frames_lost: Frames (DATA or ACK) dropped by the network
        start_time: Time of the first transmission start (ms)
        end_time: Time of the latest transmission end (ms)
    """

    COUNTERS = (
        'frames_sent',
        'frames_received',
        'acks_sent',
        'acks_received',
        'retransmissions',
        'frames_lost',
        'frames_corrupted',
        'acks_corrupted',
        'duplicate_frames',
        'messages_delivered',
        'messages_failed',
    )

    def __init__(self):
        self._lock = threading.Lock()

        # Frame counters
        self.frames_sent = 0
        self.frames_received = 0
        self.acks_sent = 0
        self.acks_received = 0
        self.retransmissions = 0

        # Error tracking
        self.frames_lost = 0
        self.frames_corrupted = 0
        self.acks_corrupted = 0
        self.duplicate_frames = 0

        # Message outcomes
        self.messages_delivered = 0
        self.messages_failed = 0

        # Time tracking
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def _increment(self, name: str, amount: int = 1):
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def start(self, time: float):
        """
        Mark transmission start. Keeps the earliest start across messages.

        Args:
            time: Start time in ms
        """
        with self._lock:
            if self.start_time is None:
                self.start_time = time

    def finish(self, time: float):
        """
        Mark transmission end.

        Args:
            time: End time in ms
        """
        with self._lock:
            self.end_time = time

    def record_frame_sent(self):
        self._increment('frames_sent')

    def record_frame_received(self):
        self._increment('frames_received')

    def record_ack_sent(self):
        self._increment('acks_sent')

    def record_ack_received(self):
        self._increment('acks_received')

    def record_retransmission(self):
        self._increment('retransmissions')

    def record_frame_lost(self):
        """Record a frame (DATA or ACK) dropped by the network."""
        self._increment('frames_lost')

    def record_frame_corrupted(self):
        """Record DATA frame that failed its checksum."""
        self._increment('frames_corrupted')

    def record_ack_corrupted(self):
        self._increment('acks_corrupted')

    def record_duplicate(self):
        self._increment('duplicate_frames')

    def record_message(self, delivered: bool):
        """Record the final outcome of one message."""
        self._increment('messages_delivered' if delivered else 'messages_failed')

    @property
    def duration(self) -> float:
        """Milliseconds between start and end (0 if not finished)."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return max(0.0, self.end_time - self.start_time)

    def calculate_success_rate(self) -> float:
        """
        Fraction of DATA frames not dropped by the network.

        Success Rate = (Frames Sent - Frames Lost) / Frames Sent

        Returns:
            Ratio (0-1), 0 if nothing was sent
        """
        if self.frames_sent <= 0:
            return 0.0
        return max(0.0, (self.frames_sent - self.frames_lost) / self.frames_sent)

    def calculate_retransmission_rate(self) -> float:
        """
        Retransmissions / Frames Sent.

        Returns:
            Ratio (0-1), 0 if nothing was sent
        """
        if self.frames_sent <= 0:
            return 0.0
        return self.retransmissions / self.frames_sent

    def calculate_delivery_rate(self) -> float:
        """Delivered messages / finished messages."""
        total = self.messages_delivered + self.messages_failed
        if total <= 0:
            return 0.0
        return self.messages_delivered / total

    def merge(self, other: 'Statistics'):
        """
        Add another accumulator's counters into this one.

        Args:
            other: Statistics of a separate transmission
        """
        snapshot = other.snapshot()
        with self._lock:
            for name in self.COUNTERS:
                setattr(self, name, getattr(self, name) + getattr(snapshot, name))
            if snapshot.start_time is not None:
                if self.start_time is None or snapshot.start_time < self.start_time:
                    self.start_time = snapshot.start_time
            if snapshot.end_time is not None:
                if self.end_time is None or snapshot.end_time > self.end_time:
                    self.end_time = snapshot.end_time

    def snapshot(self) -> 'Statistics':
        """Copy of the current values, safe to hand to readers."""
        # __getstate__/__setstate__ give the copy its own lock
        with self._lock:
            return copy.copy(self)

    def get_summary(self) -> Dict:
        """
        Get comprehensive statistics summary.

        Returns:
            Dictionary with all counters and derived rates
        """
        with self._lock:
            counters = {name: getattr(self, name) for name in self.COUNTERS}
            start_time, end_time = self.start_time, self.end_time

        return {
            # Time
            'start_time': start_time,
            'end_time': end_time,
            'duration_ms': self.duration,

            # Counters
            **counters,

            # Derived
            'success_rate': self.calculate_success_rate(),
            'retransmission_rate': self.calculate_retransmission_rate(),
            'delivery_rate': self.calculate_delivery_rate(),
        }

    def to_csv_row(self) -> Dict:
        """Flat dictionary suitable for CSV export."""
        summary = self.get_summary()
        summary.pop('start_time')
        summary.pop('end_time')
        return summary

    def reset(self):
        """Reset all statistics. Only call between transmissions."""
        with self._lock:
            for name in self.COUNTERS:
                setattr(self, name, 0)
            self.start_time = None
            self.end_time = None

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (f"Statistics(sent={self.frames_sent}, received={self.frames_received}, "
                f"acks_sent={self.acks_sent}, acks_received={self.acks_received}, "
                f"retx={self.retransmissions}, lost={self.frames_lost})")
