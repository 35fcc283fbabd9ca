"""
Lossy Network Path Model

This module implements a one-directional simulated link. Each frame is
independently dropped with a fixed probability, otherwise held for a
random delay and placed into the destination's single-slot inbox.
"""

import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from config import (
    DEFAULT_LOSS_PROBABILITY, DEFAULT_MIN_DELAY_MS, DEFAULT_MAX_DELAY_MS,
    NETWORK_PRESETS
)
from swarq.arq.frame import Frame, DataFrame, deserialize, flip_bit
from swarq.arq.events import EventKind


class Direction(Enum):
    """Direction of transmission."""
    FORWARD = 0  # DATA frames: sender to receiver
    REVERSE = 1  # ACK frames: receiver to sender


@dataclass(frozen=True)
class NetworkConfig:
    """
    Network impairment settings for one transmission run.

    Attributes:
        loss_probability: Probability a frame is dropped (0-1)
        min_delay_ms: Minimum one-way delay
        max_delay_ms: Maximum one-way delay (>= min_delay_ms)
        corruption_probability: Probability one bit of a delivered frame flips
        seed: RNG seed for reproducible runs (None for fresh entropy)
    """
    loss_probability: float = DEFAULT_LOSS_PROBABILITY
    min_delay_ms: int = DEFAULT_MIN_DELAY_MS
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS
    corruption_probability: float = 0.0
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 <= self.loss_probability <= 1.0:
            raise ValueError(f"Loss probability must be in [0, 1], got {self.loss_probability}")
        if not 0.0 <= self.corruption_probability <= 1.0:
            raise ValueError(
                f"Corruption probability must be in [0, 1], got {self.corruption_probability}"
            )
        if self.min_delay_ms < 0:
            raise ValueError("Minimum delay must be non-negative")
        if self.max_delay_ms < self.min_delay_ms:
            raise ValueError(
                f"Maximum delay ({self.max_delay_ms}) is below minimum ({self.min_delay_ms})"
            )

    @classmethod
    def from_preset(cls, name: str, seed: Optional[int] = None) -> 'NetworkConfig':
        """
        Build a config from NETWORK_PRESETS ('ideal', 'normal', 'harsh').

        Raises:
            KeyError: If the preset is unknown
        """
        loss, min_delay, max_delay = NETWORK_PRESETS[name]
        return cls(
            loss_probability=loss,
            min_delay_ms=min_delay,
            max_delay_ms=max_delay,
            seed=seed
        )


class FrameChannel:
    """
    Single-slot mailbox holding at most one frame in transit.

    Window size 1 guarantees a second frame never arrives before the
    first is taken; an overfill is a protocol bug.
    """

    def __init__(self):
        self._slot: Optional[Frame] = None

    def put(self, frame: Frame):
        if self._slot is not None:
            raise RuntimeError(f"Channel already holds {self._slot!r}")
        self._slot = frame

    def take(self) -> Optional[Frame]:
        """Remove and return the frame in the slot, if any."""
        frame, self._slot = self._slot, None
        return frame

    def peek(self) -> Optional[Frame]:
        return self._slot

    @property
    def is_empty(self) -> bool:
        return self._slot is None

    def clear(self):
        self._slot = None


class NetworkPath:
    """
    One direction of the simulated network.

    The path does not retain frames: a frame is either dropped or handed
    to the inbox channel, which the destination drains.

    Attributes:
        config: Network impairment settings
        direction: FORWARD for DATA, REVERSE for ACK
        channel: Destination inbox
        rng: Random number generator
    """

    def __init__(
        self,
        config: NetworkConfig,
        stats,
        clock,
        direction: Direction = Direction.FORWARD,
        seed: Optional[int] = None,
        events=None,
        logger=None
    ):
        """
        Initialize the network path.

        Args:
            config: Network impairment settings
            stats: Shared Statistics accumulator
            clock: Clock used to realise delays
            direction: Transmission direction
            seed: Random seed for this direction
            events: Optional EventLog
            logger: Optional ProtocolLogger
        """
        self.config = config
        self.stats = stats
        self.clock = clock
        self.direction = direction
        self.events = events
        self.logger = logger

        self.rng = np.random.default_rng(seed)
        self.channel = FrameChannel()

        # Statistics
        self.frames_offered = 0
        self.frames_dropped = 0
        self.frames_delivered = 0
        self.total_delay_ms = 0.0

    @property
    def _label(self) -> str:
        return "DATA" if self.direction == Direction.FORWARD else "ACK"

    def _number(self, frame: Frame) -> int:
        return frame.seq_num if isinstance(frame, DataFrame) else frame.ack_num

    def should_drop(self) -> bool:
        """Draw r in [0, 1); the frame is lost when r < loss probability."""
        return self.rng.random() < self.config.loss_probability

    def draw_delay(self) -> int:
        """Uniform integer delay in [min_delay_ms, max_delay_ms]."""
        return int(self.rng.integers(self.config.min_delay_ms, self.config.max_delay_ms + 1))

    def _corrupt(self, frame: Frame) -> Optional[Frame]:
        """Flip one random bit of the serialized frame."""
        data = frame.serialize()
        bit_index = int(self.rng.integers(0, len(data) * 8))
        return deserialize(flip_bit(data, bit_index))

    def _record(self, kind: EventKind, number: int, detail: str = ''):
        if self.events is not None:
            self.events.record(kind, number, detail)

    def transmit(self, frame: Frame) -> bool:
        """
        Send a frame through this path.

        Args:
            frame: Frame to transmit

        Returns:
            True if the frame was placed in the destination inbox
        """
        number = self._number(frame)
        self.frames_offered += 1

        if self.should_drop():
            self.frames_dropped += 1
            self.stats.record_frame_lost()
            self._record(
                EventKind.DATA_LOST if self.direction == Direction.FORWARD else EventKind.ACK_LOST,
                number
            )
            if self.logger:
                self.logger.frame_lost(self._label, number)
            return False

        delay = self.draw_delay()
        self.clock.sleep_ms(delay)
        self.total_delay_ms += delay

        if self.config.corruption_probability > 0 and \
                self.rng.random() < self.config.corruption_probability:
            frame = self._corrupt(frame)
            if frame is None:
                # Header garbled beyond parsing: nothing reaches the destination
                self.frames_dropped += 1
                if self.direction == Direction.FORWARD:
                    self.stats.record_frame_corrupted()
                    self._record(EventKind.DATA_CORRUPTED, number, 'unparsable')
                else:
                    self.stats.record_ack_corrupted()
                    self._record(EventKind.ACK_CORRUPTED, number, 'unparsable')
                return False

        self.channel.put(frame)
        self.frames_delivered += 1
        return True

    def get_statistics(self) -> dict:
        """Get path statistics."""
        return {
            'direction': self.direction.name,
            'frames_offered': self.frames_offered,
            'frames_dropped': self.frames_dropped,
            'frames_delivered': self.frames_delivered,
            'mean_delay_ms': (self.total_delay_ms / self.frames_delivered
                              if self.frames_delivered else 0.0),
        }
