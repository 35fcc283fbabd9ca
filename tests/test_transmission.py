"""
End-to-end tests for stop-and-wait message delivery.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import MAX_DATA_SIZE, MAX_RETRIES, TIMEOUT_MS
from simulation.transmission import (
    transmit_message, validate_payload, TransmissionSession, TransmissionResult
)
from swarq.arq.errors import EmptyMessage, MessageTooLarge, InvalidPayload, ProtocolError
from swarq.arq.events import EventKind
from swarq.arq.sender import SenderState
from swarq.arq.timer import VirtualClock
from swarq.channel.network_path import NetworkConfig
from swarq.utils.metrics import Statistics
from swarq.utils.logger import ProtocolLogger, LogLevel


@pytest.fixture
def quiet_logger():
    return ProtocolLogger(name="Test", level=LogLevel.CRITICAL)


def scripted_drops(*outcomes):
    """Replacement for NetworkPath.should_drop following a fixed script."""
    script = iter(outcomes)
    return lambda: next(script, False)


class TestPayloadValidation:
    """Tests for message size checks."""

    def test_text_is_encoded(self):
        assert validate_payload("ABC") == b"ABC"

    def test_empty_rejected(self):
        with pytest.raises(EmptyMessage):
            validate_payload(b"")

    def test_max_size_rejected(self):
        """A message must leave room below MAX_DATA_SIZE."""
        assert len(validate_payload(b"x" * (MAX_DATA_SIZE - 1))) == MAX_DATA_SIZE - 1

        with pytest.raises(MessageTooLarge) as exc_info:
            validate_payload(b"x" * MAX_DATA_SIZE)

        assert exc_info.value.length == MAX_DATA_SIZE
        assert exc_info.value.limit == MAX_DATA_SIZE - 1

    def test_error_hierarchy(self):
        assert issubclass(EmptyMessage, InvalidPayload)
        assert issubclass(MessageTooLarge, ProtocolError)
        assert issubclass(InvalidPayload, ValueError)


class TestTransmitMessage:
    """Tests for single-message delivery."""

    def test_clean_channel(self, quiet_logger):
        """No loss: one frame, one ACK, no retransmission."""
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=1, max_delay_ms=5, seed=1)

        result = transmit_message("ABC", config, clock=VirtualClock(), logger=quiet_logger)

        assert result.success
        assert result.delivered == b"ABC"
        stats = result.statistics
        assert stats.frames_sent == 1
        assert stats.acks_received == 1
        assert stats.retransmissions == 0
        assert stats.frames_lost == 0
        assert 2 <= stats.duration <= 10

    def test_zero_delay_real_clock(self, quiet_logger):
        """Zero delay on the wall clock completes immediately."""
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)

        success, stats = transmit_message(b"ping", config, logger=quiet_logger)

        assert success
        assert stats.frames_lost == 0
        assert stats.frames_sent == 1

    def test_total_loss_fails(self, quiet_logger):
        """Loss 1.0: every attempt is dropped until the retry budget runs out."""
        config = NetworkConfig(loss_probability=1.0, seed=5)

        result = transmit_message("ABC", config, clock=VirtualClock(), logger=quiet_logger)

        assert not result.success
        assert result.final_state == SenderState.IDLE
        assert result.retransmissions == MAX_RETRIES
        assert result.delivered is None
        stats = result.statistics
        assert stats.frames_sent == MAX_RETRIES + 1
        assert stats.frames_lost == MAX_RETRIES + 1
        assert stats.acks_sent == 0
        assert stats.messages_failed == 1
        assert stats.duration == (MAX_RETRIES + 1) * TIMEOUT_MS

    def test_rejected_before_any_frame(self, quiet_logger):
        """Invalid messages leave the statistics untouched."""
        stats = Statistics()

        with pytest.raises(EmptyMessage):
            transmit_message("", stats=stats, clock=VirtualClock(), logger=quiet_logger)
        with pytest.raises(MessageTooLarge):
            transmit_message(b"x" * MAX_DATA_SIZE, stats=stats,
                             clock=VirtualClock(), logger=quiet_logger)

        assert stats.frames_sent == 0

    def test_result_unpacks(self, quiet_logger):
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)

        result = transmit_message("hi", config, clock=VirtualClock(), logger=quiet_logger)
        success, stats = result

        assert isinstance(result, TransmissionResult)
        assert success is True
        assert stats is result.statistics
        assert bool(result)

    def test_caller_statistics_accumulate(self, quiet_logger):
        """A passed-in accumulator collects across calls."""
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)
        stats = Statistics()

        transmit_message("one", config, stats, clock=VirtualClock(), logger=quiet_logger)
        transmit_message("two", config, stats, clock=VirtualClock(), logger=quiet_logger)

        assert stats.frames_sent == 2
        assert stats.messages_delivered == 2

    def test_shared_statistics_span_calls(self, quiet_logger):
        """Duration covers every call made with one accumulator on the wall clock."""
        config = NetworkConfig(loss_probability=1.0)
        stats = Statistics()

        for _ in range(2):
            transmit_message("x", config, stats, logger=quiet_logger,
                             timeout_ms=20, max_retries=0)

        assert stats.messages_failed == 2
        assert stats.duration >= 40

    def test_silent_by_default(self, capsys):
        """Without a caller-supplied logger nothing is printed."""
        config = NetworkConfig(loss_probability=1.0)

        result = transmit_message("a", config, clock=VirtualClock(), max_retries=1)

        assert not result.success
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_fresh_pair_per_call(self, quiet_logger):
        """Each call starts over at sequence number 0."""
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)

        first = transmit_message("a", config, clock=VirtualClock(), logger=quiet_logger)
        second = transmit_message("b", config, clock=VirtualClock(), logger=quiet_logger)

        assert first.seq_num == second.seq_num == 0

    def test_seeded_runs_repeat(self, quiet_logger):
        """Same seed, same outcome."""
        config = NetworkConfig(loss_probability=0.5, min_delay_ms=10, max_delay_ms=90, seed=11)

        runs = [transmit_message("seeded", config, clock=VirtualClock(), logger=quiet_logger)
                for _ in range(2)]

        assert runs[0].statistics.get_summary() == runs[1].statistics.get_summary()
        assert [e.kind for e in runs[0].events] == [e.kind for e in runs[1].events]

    def test_corruption_triggers_retransmission(self, quiet_logger):
        """Every DATA frame corrupted: the receiver never acknowledges."""
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0,
                               corruption_probability=1.0, seed=3)

        result = transmit_message("ABC", config, clock=VirtualClock(), logger=quiet_logger)

        assert not result.success
        assert result.statistics.frames_corrupted == MAX_RETRIES + 1
        assert result.statistics.acks_sent == 0

    def test_event_trace(self, quiet_logger):
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)

        result = transmit_message("ABC", config, clock=VirtualClock(), logger=quiet_logger)

        assert [e.kind for e in result.events] == [
            EventKind.DATA_SENT,
            EventKind.DATA_ACCEPTED,
            EventKind.ACK_SENT,
            EventKind.ACK_ACCEPTED,
            EventKind.SUCCESS,
        ]


class TestTransmissionSession:
    """Tests for multi-message sessions."""

    def _session(self, logger, **kwargs):
        config = NetworkConfig(loss_probability=0.0, min_delay_ms=0, max_delay_ms=0)
        return TransmissionSession(config, clock=VirtualClock(), logger=logger, **kwargs)

    def test_sequence_alternates(self, quiet_logger):
        """Consecutive messages use 0, 1, 0."""
        session = self._session(quiet_logger)

        results = session.send_all(["first", "second", "third"])

        assert [r.seq_num for r in results] == [0, 1, 0]
        assert session.sender.seq_num == 1
        assert session.receiver.delivered == [b"first", b"second", b"third"]

    def test_lost_ack_recovered(self, quiet_logger):
        """A lost ACK causes one duplicate that is re-acknowledged."""
        session = self._session(quiet_logger)
        session.ack_path.should_drop = scripted_drops(True)

        result = session.send("ABC")

        assert result.success
        assert result.retransmissions == 1
        assert session.receiver.delivered == [b"ABC"]
        stats = result.statistics
        assert stats.frames_sent == 2
        assert stats.frames_lost == 1
        assert stats.duplicate_frames == 1
        assert stats.acks_sent == 2
        assert stats.acks_received == 1

    def test_lost_ack_without_reack(self, quiet_logger):
        """Without re-acking one lost ACK exhausts the retry budget."""
        session = self._session(quiet_logger, reack_duplicates=False)
        session.ack_path.should_drop = scripted_drops(True)

        result = session.send("ABC")

        assert not result.success
        assert result.retransmissions == MAX_RETRIES
        assert result.statistics.duplicate_frames == MAX_RETRIES
        # The receiver still delivered the payload once
        assert result.delivered == b"ABC"
        assert session.receiver.delivered == [b"ABC"]

    def test_lost_data_frame(self, quiet_logger):
        """A lost DATA frame is retransmitted after one timeout."""
        session = self._session(quiet_logger)
        session.data_path.should_drop = scripted_drops(True)

        result = session.send("ABC")

        assert result.success
        assert result.retransmissions == 1
        assert result.statistics.duplicate_frames == 0
        assert result.statistics.duration == TIMEOUT_MS

    def test_all_acks_lost_then_next_message(self, quiet_logger):
        """Delivered but never acknowledged: the next message still arrives."""
        session = self._session(quiet_logger)
        session.ack_path.should_drop = scripted_drops(*([True] * (MAX_RETRIES + 1)))

        first, second = session.send_all(["lost", "kept"])

        assert not first.success
        assert first.delivered == b"lost"
        assert second.success
        assert second.delivered == b"kept"
        assert second.seq_num == 0
        assert session.receiver.delivered == [b"lost", b"kept"]
        assert session.sender.seq_num == session.receiver.expected_seq == 1

    def test_failure_then_next_message(self, quiet_logger):
        """After a failure the sender is idle and can send again."""
        session = self._session(quiet_logger)
        session.data_path.should_drop = scripted_drops(*([True] * (MAX_RETRIES + 1)))

        results = session.send_all(["lost", "kept"])

        assert [r.success for r in results] == [False, True]
        assert results[1].seq_num == 0
        assert session.receiver.delivered == [b"kept"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
