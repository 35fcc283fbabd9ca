"""
Protocol events recorded during a transmission.

The protocol core never prints; callers read the event trace instead.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


class EventKind(Enum):
    """Types of protocol events."""
    DATA_SENT = 'data_sent'
    DATA_LOST = 'data_lost'
    DATA_CORRUPTED = 'data_corrupted'
    DATA_ACCEPTED = 'data_accepted'
    DUPLICATE = 'duplicate'
    ACK_SENT = 'ack_sent'
    ACK_LOST = 'ack_lost'
    ACK_CORRUPTED = 'ack_corrupted'
    ACK_ACCEPTED = 'ack_accepted'
    ACK_REJECTED = 'ack_rejected'
    TIMEOUT = 'timeout'
    RETRANSMIT = 'retransmit'
    SUCCESS = 'success'
    FAILURE = 'failure'


@dataclass(frozen=True)
class ProtocolEvent:
    """Single protocol event."""
    time_ms: float
    kind: EventKind
    seq: Optional[int] = None
    detail: str = ''


class EventLog:
    """
    Append-only event trace stamped with a clock.

    Attributes:
        clock: Clock providing now_ms()
        events: Recorded events in order
    """

    def __init__(self, clock):
        self.clock = clock
        self.events: List[ProtocolEvent] = []

    def record(self, kind: EventKind, seq: Optional[int] = None, detail: str = ''):
        self.events.append(ProtocolEvent(self.clock.now_ms(), kind, seq, detail))

    def count(self, kind: EventKind) -> int:
        return sum(1 for e in self.events if e.kind == kind)

    def kinds(self) -> List[EventKind]:
        return [e.kind for e in self.events]

    def since(self, index: int) -> List[ProtocolEvent]:
        """Events recorded after the first `index` entries."""
        return list(self.events[index:])

    def __len__(self) -> int:
        return len(self.events)
