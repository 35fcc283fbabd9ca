"""
Stop-and-Wait ARQ Receiver

This module implements the receiver side of the stop-and-wait protocol,
including checksum validation, duplicate detection and ACK generation.
"""

from enum import Enum
from typing import Optional, List, Callable

from config import MAX_SEQ_NUM
from .frame import DataFrame, AckFrame, make_ack_frame
from .events import EventKind


class ReceiverState(Enum):
    """Receiver protocol state."""
    AWAITING_DATA = 0


class StopAndWaitReceiver:
    """
    Stop-and-Wait ARQ Receiver.

    A corrupted frame is dropped silently and left to the sender's timer.
    A valid frame with the expected sequence number is delivered and
    acknowledged. A valid frame carrying the previous sequence number is a
    duplicate caused by a lost ACK: its payload is discarded and, when
    reack_duplicates is set, the ACK is sent again so the sender can move on.

    Attributes:
        path: Reverse NetworkPath the ACK frames go through
        stats: Shared Statistics accumulator
        expected_seq: Sequence number of the next new frame
        reack_duplicates: Re-acknowledge duplicate frames
        delivered: Payloads delivered to the upper layer, in order
    """

    def __init__(
        self,
        path,
        stats,
        reack_duplicates: bool = True,
        on_data_delivered: Optional[Callable[[bytes, int], None]] = None,
        events=None,
        logger=None
    ):
        """
        Initialize receiver.

        Args:
            path: Reverse NetworkPath
            stats: Shared Statistics accumulator
            reack_duplicates: Resend the ACK for duplicate frames
            on_data_delivered: Callback when a payload is accepted
            events: Optional EventLog
            logger: Optional ProtocolLogger
        """
        self.path = path
        self.stats = stats
        self.reack_duplicates = reack_duplicates
        self.on_data_delivered = on_data_delivered
        self.events = events
        self.logger = logger

        self.state = ReceiverState.AWAITING_DATA
        self.expected_seq = 0
        self.delivered: List[bytes] = []

        # Statistics
        self.frames_accepted = 0
        self.duplicate_frames = 0
        self.corrupted_frames = 0

    def _record(self, kind: EventKind, seq: Optional[int] = None, detail: str = ''):
        if self.events is not None:
            self.events.record(kind, seq, detail)

    def receive(self, frame: DataFrame) -> Optional[AckFrame]:
        """
        Process a frame taken from the inbox.

        Args:
            frame: Received DATA frame

        Returns:
            The ACK that was sent, or None if no ACK was generated
        """
        self.stats.record_frame_received()

        if not isinstance(frame, DataFrame) or not frame.verify():
            self.corrupted_frames += 1
            self.stats.record_frame_corrupted()
            self._record(EventKind.DATA_CORRUPTED, getattr(frame, 'seq_num', None))
            if self.logger:
                self.logger.frame_received(getattr(frame, 'seq_num', -1), False)
            return None

        if self.logger:
            self.logger.frame_received(frame.seq_num, True)

        if frame.seq_num != self.expected_seq:
            self.duplicate_frames += 1
            self.stats.record_duplicate()
            self._record(EventKind.DUPLICATE, frame.seq_num, f'expected {self.expected_seq}')
            if self.logger:
                self.logger.duplicate(frame.seq_num, self.expected_seq)
            if self.reack_duplicates:
                return self._send_ack(frame.seq_num)
            return None

        self._deliver(frame)
        ack = self._send_ack(frame.seq_num)
        self.expected_seq = (self.expected_seq + 1) % MAX_SEQ_NUM
        return ack

    def _deliver(self, frame: DataFrame):
        """Hand the payload to the upper layer."""
        self.frames_accepted += 1
        self.delivered.append(frame.payload)
        self._record(EventKind.DATA_ACCEPTED, frame.seq_num)
        if self.on_data_delivered:
            self.on_data_delivered(frame.payload, frame.seq_num)

    def _send_ack(self, ack_num: int) -> AckFrame:
        """
        Build an ACK and send it through the reverse path.

        Args:
            ack_num: Sequence number to acknowledge

        Returns:
            ACK frame (whether or not the network delivered it)
        """
        ack = make_ack_frame(ack_num)
        self.stats.record_ack_sent()
        self._record(EventKind.ACK_SENT, ack_num)
        if self.logger:
            self.logger.ack_sent(ack_num)
        self.path.transmit(ack)
        return ack

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'state': self.state.name,
            'expected_seq': self.expected_seq,
            'frames_accepted': self.frames_accepted,
            'duplicate_frames': self.duplicate_frames,
            'corrupted_frames': self.corrupted_frames,
            'reack_duplicates': self.reack_duplicates,
        }

    def reset(self):
        """Reset receiver to initial state."""
        self.expected_seq = 0
        self.delivered.clear()
        self.frames_accepted = 0
        self.duplicate_frames = 0
        self.corrupted_frames = 0
