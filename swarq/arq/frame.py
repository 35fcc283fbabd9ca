"""
Frame Structure for Stop-and-Wait ARQ Protocol

This module defines the DATA and ACK frame layouts, the byte-sum checksum
and the helpers used to build, serialize and verify frames.
"""

import struct
from enum import Enum
from typing import Optional, Union
from dataclasses import dataclass, field

from config import MAX_DATA_SIZE, MAX_SEQ_NUM, CHECKSUM_MODULUS, FRAME_HEADER_SIZE, CHECKSUM_SIZE
from .errors import InvalidPayload


class FrameType(Enum):
    """Frame type enumeration."""
    DATA = 0x01
    ACK = 0x02


# type(1) + seq/ack(1) + payload length(2), network byte order
HEADER_FORMAT = '!BBH'
CHECKSUM_FORMAT = '!I'


def compute_checksum(data: bytes) -> int:
    """
    Sum all bytes, wrapping at 32 bits.

    Args:
        data: Frame bytes with the checksum field excluded

    Returns:
        Checksum value
    """
    return sum(data) % CHECKSUM_MODULUS


def _check_number(value: int, what: str):
    if not 0 <= value < MAX_SEQ_NUM:
        raise ValueError(f"{what} must be in [0, {MAX_SEQ_NUM - 1}], got {value}")


@dataclass
class DataFrame:
    """
    Data frame carrying one message.

    Layout:
        - Frame Type: 1 byte
        - Sequence Number: 1 byte
        - Payload Length: 2 bytes
        - Payload: variable (at most MAX_DATA_SIZE)
        - Checksum: 4 bytes

    Attributes:
        seq_num: Sequence number (0 or 1)
        payload: Message bytes
        checksum: Byte sum of every other field
    """

    seq_num: int
    payload: bytes = b''
    checksum: int = 0
    frame_type: FrameType = field(default=FrameType.DATA, init=False)

    def __post_init__(self):
        """Validate frame after initialization."""
        _check_number(self.seq_num, "Sequence number")
        if len(self.payload) > MAX_DATA_SIZE:
            raise InvalidPayload(
                f"Payload too large ({len(self.payload)} > {MAX_DATA_SIZE} bytes)"
            )

    @property
    def payload_length(self) -> int:
        return len(self.payload)

    @property
    def total_size(self) -> int:
        """Serialized size (header + payload + checksum)."""
        return FRAME_HEADER_SIZE + len(self.payload) + CHECKSUM_SIZE

    def body(self) -> bytes:
        """Frame bytes without the checksum field."""
        header = struct.pack(
            HEADER_FORMAT,
            self.frame_type.value,
            self.seq_num,
            len(self.payload)
        )
        return header + self.payload

    def calculate_checksum(self) -> int:
        return compute_checksum(self.body())

    def serialize(self) -> bytes:
        return self.body() + struct.pack(CHECKSUM_FORMAT, self.checksum)

    def verify(self) -> bool:
        return self.checksum == self.calculate_checksum()

    def __repr__(self) -> str:
        return (f"DataFrame(seq={self.seq_num}, len={len(self.payload)}, "
                f"checksum={self.checksum})")


@dataclass
class AckFrame:
    """
    Acknowledgment frame.

    Same layout as a data frame with a zero-length payload; the sequence
    byte carries the acknowledgment number.
    """

    ack_num: int
    checksum: int = 0
    frame_type: FrameType = field(default=FrameType.ACK, init=False)

    def __post_init__(self):
        _check_number(self.ack_num, "ACK number")

    @property
    def total_size(self) -> int:
        return FRAME_HEADER_SIZE + CHECKSUM_SIZE

    def body(self) -> bytes:
        return struct.pack(HEADER_FORMAT, self.frame_type.value, self.ack_num, 0)

    def calculate_checksum(self) -> int:
        return compute_checksum(self.body())

    def serialize(self) -> bytes:
        return self.body() + struct.pack(CHECKSUM_FORMAT, self.checksum)

    def verify(self) -> bool:
        return self.checksum == self.calculate_checksum()

    def __repr__(self) -> str:
        return f"AckFrame(ack={self.ack_num}, checksum={self.checksum})"


Frame = Union[DataFrame, AckFrame]


def make_data_frame(seq_num: int, payload: bytes) -> DataFrame:
    """
    Create a DATA frame with its checksum set.

    Args:
        seq_num: Sequence number
        payload: Frame payload

    Returns:
        DATA frame

    Raises:
        InvalidPayload: If payload exceeds MAX_DATA_SIZE
    """
    frame = DataFrame(seq_num=seq_num, payload=bytes(payload))
    frame.checksum = frame.calculate_checksum()
    return frame


def make_ack_frame(ack_num: int) -> AckFrame:
    """
    Create an ACK frame with its checksum set.

    Args:
        ack_num: Acknowledgment number

    Returns:
        ACK frame
    """
    frame = AckFrame(ack_num=ack_num)
    frame.checksum = frame.calculate_checksum()
    return frame


def verify(frame: Frame) -> bool:
    """Recompute the checksum and compare against the carried one."""
    return frame.verify()


def deserialize(data: bytes) -> Optional[Frame]:
    """
    Parse frame bytes without verifying the checksum.

    Args:
        data: Serialized frame

    Returns:
        DataFrame, AckFrame, or None if the bytes are structurally unusable
    """
    if len(data) < FRAME_HEADER_SIZE + CHECKSUM_SIZE:
        return None

    try:
        type_val, number, length = struct.unpack(
            HEADER_FORMAT, data[:FRAME_HEADER_SIZE]
        )
        if len(data) != FRAME_HEADER_SIZE + length + CHECKSUM_SIZE:
            return None

        (checksum,) = struct.unpack(CHECKSUM_FORMAT, data[-CHECKSUM_SIZE:])
        payload = data[FRAME_HEADER_SIZE:FRAME_HEADER_SIZE + length]

        frame_type = FrameType(type_val)
        if frame_type == FrameType.DATA:
            return DataFrame(seq_num=number, payload=payload, checksum=checksum)
        if length != 0:
            return None
        return AckFrame(ack_num=number, checksum=checksum)

    except (struct.error, ValueError):
        return None


def flip_bit(data: bytes, bit_index: int) -> bytes:
    """
    Invert a single bit.

    Args:
        data: Original bytes
        bit_index: Bit position, 0 is the MSB of the first byte

    Returns:
        Copy of data with the bit inverted
    """
    if not 0 <= bit_index < len(data) * 8:
        raise IndexError(f"Bit index {bit_index} out of range")
    corrupted = bytearray(data)
    corrupted[bit_index // 8] ^= 0x80 >> (bit_index % 8)
    return bytes(corrupted)
