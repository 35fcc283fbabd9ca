"""
Transmission Orchestrator - Stop-and-Wait Message Delivery

This module drives one message end-to-end: it builds the sender, receiver
and both network paths, pumps frames between them and polls the sender's
retransmission timer until the message is acknowledged or given up.
"""

from typing import Optional, List, Union
from dataclasses import dataclass, field

from config import MAX_DATA_SIZE, MAX_RETRIES, TIMEOUT_MS
from swarq.arq.errors import EmptyMessage, MessageTooLarge
from swarq.arq.events import EventLog, EventKind, ProtocolEvent
from swarq.arq.sender import StopAndWaitSender, SenderState, Outcome
from swarq.arq.receiver import StopAndWaitReceiver
from swarq.arq.timer import RealClock
from swarq.channel.network_path import NetworkPath, NetworkConfig, Direction
from swarq.utils.metrics import Statistics
from swarq.utils.logger import get_logger

# Offset between the forward and reverse RNG streams
REVERSE_SEED_OFFSET = 1000


@dataclass
class TransmissionResult:
    """
    Outcome of one message.

    Unpacks as (success, statistics).

    Attributes:
        success: True if the matching ACK reached the sender
        statistics: Statistics accumulator used for the run
        events: Protocol events of this message
        delivered: Payload accepted by the receiver, if any
        retransmissions: Retransmissions spent on this message
        final_state: Sender state when the run ended
        seq_num: Sequence number the message was sent with
    """
    success: bool
    statistics: Statistics
    events: List[ProtocolEvent] = field(default_factory=list)
    delivered: Optional[bytes] = None
    retransmissions: int = 0
    final_state: SenderState = SenderState.IDLE
    seq_num: int = 0

    def __iter__(self):
        yield self.success
        yield self.statistics

    def __bool__(self) -> bool:
        return self.success


def validate_payload(payload: Union[bytes, str]) -> bytes:
    """
    Check a message fits in a single frame.

    Args:
        payload: Message bytes, or text to encode as UTF-8

    Returns:
        Payload as bytes

    Raises:
        EmptyMessage: If the payload is empty
        MessageTooLarge: If the payload exceeds MAX_DATA_SIZE - 1 bytes
    """
    data = payload.encode('utf-8') if isinstance(payload, str) else bytes(payload)
    if len(data) == 0:
        raise EmptyMessage("Message must not be empty")
    if len(data) > MAX_DATA_SIZE - 1:
        raise MessageTooLarge(len(data), MAX_DATA_SIZE - 1)
    return data


class TransmissionSession:
    """
    Sender, receiver and network paths kept alive across messages.

    Consecutive messages alternate sequence numbers 0, 1, 0, ... and the
    receiver keeps its expected sequence number between them. A permanent
    failure restarts both ends at 0.

    Attributes:
        config: Network impairment settings
        stats: Statistics accumulator (caller-owned if passed in)
        clock: Clock realising delays and timeouts
        events: Event trace of every message sent in this session
    """

    def __init__(
        self,
        config: Optional[NetworkConfig] = None,
        stats: Optional[Statistics] = None,
        clock=None,
        logger=None,
        reack_duplicates: bool = True,
        timeout_ms: float = TIMEOUT_MS,
        max_retries: int = MAX_RETRIES
    ):
        """
        Initialize the session.

        Args:
            config: Network settings (defaults from config.py)
            stats: Statistics to accumulate into
            clock: RealClock (default) or VirtualClock
            logger: ProtocolLogger (global logger by default)
            reack_duplicates: Receiver re-acknowledges duplicate frames
            timeout_ms: Retransmission timeout
            max_retries: Retransmissions allowed per message
        """
        self.config = config or NetworkConfig()
        self.stats = stats if stats is not None else Statistics()
        self.clock = clock or RealClock()
        self.logger = logger or get_logger()
        self.events = EventLog(self.clock)

        seed = self.config.seed
        self.data_path = NetworkPath(
            self.config, self.stats, self.clock,
            direction=Direction.FORWARD,
            seed=seed,
            events=self.events,
            logger=self.logger
        )
        self.ack_path = NetworkPath(
            self.config, self.stats, self.clock,
            direction=Direction.REVERSE,
            seed=None if seed is None else seed + REVERSE_SEED_OFFSET,
            events=self.events,
            logger=self.logger
        )

        self.sender = StopAndWaitSender(
            self.data_path, self.stats, self.clock,
            timeout_ms=timeout_ms,
            max_retries=max_retries,
            events=self.events,
            logger=self.logger
        )
        self.receiver = StopAndWaitReceiver(
            self.ack_path, self.stats,
            reack_duplicates=reack_duplicates,
            events=self.events,
            logger=self.logger
        )

    def _pump(self):
        """Deliver whatever is sitting in the two inboxes."""
        frame = self.data_path.channel.take()
        if frame is not None:
            self.receiver.receive(frame)

        ack = self.ack_path.channel.take()
        if ack is not None:
            self.sender.on_ack(ack)

    def _resync(self):
        """
        Restart both ends at sequence number 0 after a permanent failure.

        The receiver may have accepted the failed frame while every ACK was
        lost, so the two sides can no longer agree on the next number.
        """
        self.sender.seq_num = 0
        self.receiver.expected_seq = 0
        self.data_path.channel.clear()
        self.ack_path.channel.clear()

    def send(self, payload: Union[bytes, str]) -> TransmissionResult:
        """
        Deliver one message.

        Args:
            payload: Message bytes or text

        Returns:
            TransmissionResult

        Raises:
            EmptyMessage, MessageTooLarge: Before any frame is built
        """
        data = validate_payload(payload)

        event_mark = len(self.events)
        delivered_mark = len(self.receiver.delivered)

        self.stats.start(self.clock.now_ms())
        self.logger.set_sim_time(self.clock.now_ms())
        self.logger.transmission_start({
            'bytes': len(data),
            'seq': self.sender.seq_num,
            'loss': self.config.loss_probability,
            'delay': f"{self.config.min_delay_ms}-{self.config.max_delay_ms}ms"
        })

        frame = self.sender.submit(data)

        while not self.sender.is_idle:
            self._pump()
            self.logger.set_sim_time(self.clock.now_ms())
            if self.sender.is_idle:
                break
            if self.sender.timed_out():
                self.sender.on_timeout()
                continue
            self.sender.wait_for_timer()

        success = self.sender.outcome == Outcome.SUCCESS
        if not success:
            self._resync()
        self.stats.record_message(success)
        self.stats.finish(self.clock.now_ms())

        events = self.events.since(event_mark)
        retransmissions = sum(1 for e in events if e.kind == EventKind.RETRANSMIT)
        new_payloads = self.receiver.delivered[delivered_mark:]

        self.logger.transmission_end(success, retransmissions)

        return TransmissionResult(
            success=success,
            statistics=self.stats,
            events=events,
            delivered=new_payloads[0] if new_payloads else None,
            retransmissions=retransmissions,
            final_state=self.sender.state,
            seq_num=frame.seq_num
        )

    def send_all(self, payloads) -> List[TransmissionResult]:
        """Send messages one after another, continuing past failures."""
        return [self.send(payload) for payload in payloads]


def transmit_message(
    payload: Union[bytes, str],
    config: Optional[NetworkConfig] = None,
    stats: Optional[Statistics] = None,
    *,
    clock=None,
    logger=None,
    reack_duplicates: bool = True,
    timeout_ms: float = TIMEOUT_MS,
    max_retries: int = MAX_RETRIES
) -> TransmissionResult:
    """
    Deliver one message over a fresh sender/receiver pair.

    Args:
        payload: Message bytes or text (1 to MAX_DATA_SIZE - 1 bytes)
        config: Network settings
        stats: Statistics to accumulate into (a new one if None)
        clock: RealClock (default) or VirtualClock
        logger: ProtocolLogger
        reack_duplicates: Receiver re-acknowledges duplicate frames
        timeout_ms: Retransmission timeout
        max_retries: Retransmissions allowed

    Returns:
        TransmissionResult, unpackable as (success, statistics)

    Raises:
        EmptyMessage, MessageTooLarge: Before any frame is built
    """
    data = validate_payload(payload)

    session = TransmissionSession(
        config=config,
        stats=stats,
        clock=clock,
        logger=logger,
        reack_duplicates=reack_duplicates,
        timeout_ms=timeout_ms,
        max_retries=max_retries
    )
    return session.send(data)


if __name__ == "__main__":
    from config import NETWORK_PRESETS
    from swarq.arq.timer import VirtualClock

    print("=" * 60)
    print("STOP-AND-WAIT TRANSMISSION TEST")
    print("=" * 60)

    for name in NETWORK_PRESETS:
        net = NetworkConfig.from_preset(name, seed=7)
        result = transmit_message(
            "Stop-and-wait protocol test message",
            net,
            clock=VirtualClock()
        )
        stats = result.statistics
        print(f"\n{name}: {'delivered' if result.success else 'FAILED'}")
        print(f"  Frames sent: {stats.frames_sent}, lost: {stats.frames_lost}")
        print(f"  Retransmissions: {stats.retransmissions}")
        print(f"  Duration: {stats.duration:.1f} ms (simulated)")
        for event in result.events:
            seq = '' if event.seq is None else event.seq
            print(f"    {event.time_ms:8.1f}ms  {event.kind.value:15s} {seq} {event.detail}")
