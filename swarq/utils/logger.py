"""
Protocol Logger

Levelled, categorised logging of stop-and-wait events. Lines are stamped
with the protocol clock when the orchestrator provides it and with wall
time otherwise.
"""

import os
import sys
from collections import Counter
from datetime import datetime
from enum import IntEnum
from functools import partialmethod
from typing import List, Optional, TextIO, Tuple

from config import DEFAULT_LOG_LEVEL


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4
    OFF = 5


# ANSI colour per level
LEVEL_COLORS = {
    LogLevel.DEBUG: '\033[36m',
    LogLevel.INFO: '\033[32m',
    LogLevel.WARNING: '\033[33m',
    LogLevel.ERROR: '\033[31m',
    LogLevel.CRITICAL: '\033[35m',
}
RESET_COLOR = '\033[0m'


class ProtocolLogger:
    """
    Logger for protocol events.

    Attributes:
        name: Tag printed on every line
        level: Minimum level emitted
        sim_time: Protocol clock reading in ms, None for wall time
        records: (level, category, message) of every emitted line
        category_counts: Emitted lines per category
    """

    def __init__(
        self,
        name: str = "ARQ",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        use_colors: bool = True,
        include_timestamp: bool = True,
        stream: Optional[TextIO] = None
    ):
        """
        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file that receives uncoloured copies
            use_colors: Colour the level tag on the stream
            include_timestamp: Prefix lines with a time stamp
            stream: Console stream (stdout if None)
        """
        self.name = name
        self.level = level
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp
        self.stream = stream

        self.file: Optional[TextIO] = None
        if log_file:
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            self.file = open(log_file, 'w')

        self.sim_time: Optional[float] = None
        self.records: List[Tuple[LogLevel, Optional[str], str]] = []
        self.level_counts = Counter()
        self.category_counts = Counter()

    def set_sim_time(self, time_ms: float):
        self.sim_time = time_ms

    def set_level(self, level: int):
        self.level = level

    def _stamp(self) -> str:
        if self.sim_time is not None:
            return f"[{self.sim_time:10.1f}ms]"
        return f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]"

    def _render(self, level: LogLevel, message: str, category: Optional[str],
                colored: bool) -> str:
        tag = level.name.ljust(8)
        if colored:
            tag = f"{LEVEL_COLORS[level]}{tag}{RESET_COLOR}"
        parts = [self._stamp()] if self.include_timestamp else []
        parts += [tag, f"[{self.name}]"]
        if category:
            parts.append(f"[{category}]")
        parts.append(message)
        return " ".join(parts)

    def _log(self, level: LogLevel, message: str, category: Optional[str] = None):
        if level < self.level:
            return

        self.records.append((level, category, message))
        self.level_counts[level] += 1
        if category:
            self.category_counts[category] += 1

        stream = self.stream or sys.stdout
        stream.write(self._render(level, message, category, self.use_colors) + '\n')

        if self.file:
            self.file.write(self._render(level, message, category, False) + '\n')
            self.file.flush()

    debug = partialmethod(_log, LogLevel.DEBUG)
    info = partialmethod(_log, LogLevel.INFO)
    warning = partialmethod(_log, LogLevel.WARNING)
    error = partialmethod(_log, LogLevel.ERROR)
    critical = partialmethod(_log, LogLevel.CRITICAL)

    # Protocol events
    def frame_sent(self, seq_num: int, size: int):
        self.debug(f"DATA {seq_num} sent, size={size}B", "TX")

    def frame_received(self, seq_num: int, valid: bool):
        self.debug(f"DATA {seq_num} received, {'OK' if valid else 'CORRUPTED'}", "RX")

    def frame_lost(self, kind: str, number: int):
        """Frame dropped by the network path."""
        self.info(f"{kind} {number} lost in transit", "NET")

    def duplicate(self, seq_num: int, expected: int):
        self.info(f"Duplicate DATA {seq_num} (expected {expected})", "RX")

    def ack_sent(self, ack_num: int):
        self.debug(f"ACK {ack_num} sent", "ACK")

    def ack_received(self, ack_num: int, accepted: bool):
        self.debug(f"ACK {ack_num} received, {'accepted' if accepted else 'ignored'}", "ACK")

    def timeout(self, seq_num: int, retry_count: int):
        self.warning(f"Timeout for frame {seq_num} (retry #{retry_count})", "TIMEOUT")

    def retransmit(self, seq_num: int):
        self.info(f"Retransmitting frame {seq_num}", "RETX")

    def transmission_start(self, params: dict):
        settings = ", ".join(f"{key}={value}" for key, value in params.items())
        self.info(f"Transmission started: {settings}", "SIM")

    def transmission_end(self, success: bool, retransmissions: int):
        if success:
            self.info(f"Transmission succeeded, retransmissions={retransmissions}", "SIM")
        else:
            self.error(f"Transmission failed after {retransmissions} retransmissions", "SIM")

    def get_summary(self) -> dict:
        """Counts of emitted lines by level and category."""
        return {
            'message_counts': {level: self.level_counts[level] for level in LogLevel},
            'category_counts': dict(self.category_counts),
            'total_messages': len(self.records)
        }

    def close(self):
        if self.file:
            self.file.close()
            self.file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


_global_logger: Optional[ProtocolLogger] = None


def get_logger() -> ProtocolLogger:
    """Process-wide default logger, created on first use."""
    global _global_logger
    if _global_logger is None:
        _global_logger = ProtocolLogger()
    return _global_logger


def set_logger(logger: ProtocolLogger):
    global _global_logger
    _global_logger = logger
