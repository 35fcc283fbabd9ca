"""
Stop-and-Wait ARQ Sender

This module implements the sender side of the stop-and-wait protocol:
one outstanding frame, an alternating sequence number, a single
retransmission timer and a bounded retry budget.
"""

from enum import Enum
from typing import Optional

from config import MAX_RETRIES, MAX_SEQ_NUM, TIMEOUT_MS
from .frame import DataFrame, AckFrame, make_data_frame
from .timer import RetransmissionTimer
from .events import EventKind


class SenderState(Enum):
    """Sender protocol state."""
    IDLE = 0
    AWAITING_ACK = 1


class Outcome(Enum):
    """Result of the latest message."""
    PENDING = 0
    SUCCESS = 1
    FAILED = 2


class StopAndWaitSender:
    """
    Stop-and-Wait ARQ Sender.

    IDLE --submit--> AWAITING_ACK --matching ACK--> IDLE (success)
    AWAITING_ACK --timeout, retries left--> AWAITING_ACK (resend same frame)
    AWAITING_ACK --timeout, retries exhausted--> IDLE (permanent failure)

    Attributes:
        path: Forward NetworkPath the DATA frames go through
        stats: Shared Statistics accumulator
        state: Current protocol state
        seq_num: Sequence number of the current/next frame
        current_frame: Frame awaiting acknowledgment
        retry_count: Retransmissions of the current frame
        timer: Retransmission timer
    """

    def __init__(
        self,
        path,
        stats,
        clock,
        timeout_ms: float = TIMEOUT_MS,
        max_retries: int = MAX_RETRIES,
        events=None,
        logger=None
    ):
        """
        Initialize sender.

        Args:
            path: Forward NetworkPath
            stats: Shared Statistics accumulator
            clock: Clock for the retransmission timer
            timeout_ms: Retransmission timeout in milliseconds
            max_retries: Retransmissions allowed per message
            events: Optional EventLog
            logger: Optional ProtocolLogger
        """
        self.path = path
        self.stats = stats
        self.clock = clock
        self.max_retries = max_retries
        self.events = events
        self.logger = logger

        self.timer = RetransmissionTimer(clock=clock, timeout_ms=timeout_ms)

        self.state = SenderState.IDLE
        self.seq_num = 0
        self.current_frame: Optional[DataFrame] = None
        self.retry_count = 0
        self.outcome = Outcome.PENDING
        self.end_time: Optional[float] = None

    def _record(self, kind: EventKind, seq: Optional[int] = None, detail: str = ''):
        if self.events is not None:
            self.events.record(kind, seq, detail)

    def _send_current(self):
        """Hand the current frame to the network and count it."""
        self.stats.record_frame_sent()
        self._record(EventKind.DATA_SENT, self.current_frame.seq_num)
        if self.logger:
            self.logger.frame_sent(self.current_frame.seq_num, self.current_frame.total_size)
        self.path.transmit(self.current_frame)

    def submit(self, payload: bytes) -> DataFrame:
        """
        Send a new message.

        Args:
            payload: Message bytes

        Returns:
            The DATA frame that was sent

        Raises:
            RuntimeError: If a frame is still awaiting acknowledgment
            InvalidPayload: If the payload does not fit in one frame
        """
        if self.state != SenderState.IDLE:
            raise RuntimeError("Sender is awaiting an ACK; submit after it returns to IDLE")

        self.current_frame = make_data_frame(self.seq_num, payload)
        self.retry_count = 0
        self.outcome = Outcome.PENDING
        self.end_time = None
        self.state = SenderState.AWAITING_ACK

        self._send_current()
        self.timer.start()
        return self.current_frame

    def on_ack(self, ack: AckFrame) -> bool:
        """
        Process an ACK that reached the sender.

        Corrupted ACKs and ACKs for the wrong number are discarded and the
        sender keeps waiting.

        Args:
            ack: Received ACK frame

        Returns:
            True if the ACK completed the current message
        """
        self.stats.record_ack_received()

        if self.state != SenderState.AWAITING_ACK:
            self._record(EventKind.ACK_REJECTED, ack.ack_num, 'sender idle')
            return False

        if not isinstance(ack, AckFrame) or not ack.verify():
            self.stats.record_ack_corrupted()
            self._record(EventKind.ACK_CORRUPTED, getattr(ack, 'ack_num', None))
            if self.logger:
                self.logger.ack_received(getattr(ack, 'ack_num', -1), False)
            return False

        if ack.ack_num != self.seq_num:
            self._record(EventKind.ACK_REJECTED, ack.ack_num, f'expected {self.seq_num}')
            if self.logger:
                self.logger.ack_received(ack.ack_num, False)
            return False

        self._record(EventKind.ACK_ACCEPTED, ack.ack_num)
        if self.logger:
            self.logger.ack_received(ack.ack_num, True)

        self.timer.stop()
        self.state = SenderState.IDLE
        self.seq_num = (self.seq_num + 1) % MAX_SEQ_NUM
        self.retry_count = 0
        self.outcome = Outcome.SUCCESS
        self.end_time = self.clock.now_ms()
        self.stats.finish(self.end_time)
        self._record(EventKind.SUCCESS, ack.ack_num)
        return True

    def timed_out(self) -> bool:
        """Check whether the timer expired while awaiting an ACK."""
        return self.state == SenderState.AWAITING_ACK and self.timer.check_expired()

    def on_timeout(self) -> bool:
        """
        Handle a retransmission timeout.

        Returns:
            True if the frame was resent, False on permanent failure
        """
        if self.state != SenderState.AWAITING_ACK:
            return False

        seq = self.current_frame.seq_num
        self._record(EventKind.TIMEOUT, seq, f'retry {self.retry_count}')
        if self.logger:
            self.logger.timeout(seq, self.retry_count)

        if self.retry_count >= self.max_retries:
            self.timer.stop()
            self.state = SenderState.IDLE
            self.outcome = Outcome.FAILED
            self.end_time = self.clock.now_ms()
            self.stats.finish(self.end_time)
            self._record(EventKind.FAILURE, seq, f'{self.retry_count} retransmissions')
            return False

        self.retry_count += 1
        self.stats.record_retransmission()
        self._record(EventKind.RETRANSMIT, seq, f'attempt {self.retry_count + 1}')
        if self.logger:
            self.logger.retransmit(seq)

        self._send_current()
        self.timer.restart()
        return True

    def wait_for_timer(self):
        """Sleep until the retransmission deadline."""
        self.timer.wait()

    @property
    def is_idle(self) -> bool:
        return self.state == SenderState.IDLE

    def get_statistics(self) -> dict:
        """Get sender state summary."""
        return {
            'state': self.state.name,
            'seq_num': self.seq_num,
            'retry_count': self.retry_count,
            'outcome': self.outcome.name,
            'timer_state': self.timer.state.name,
        }

    def reset(self):
        """Reset sender to initial state."""
        self.timer.stop()
        self.state = SenderState.IDLE
        self.seq_num = 0
        self.current_frame = None
        self.retry_count = 0
        self.outcome = Outcome.PENDING
        self.end_time = None
