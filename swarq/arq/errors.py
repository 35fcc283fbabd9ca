"""
Protocol Errors

Exceptions raised before any protocol activity takes place. Everything that
goes wrong once a frame is on the wire (loss, corruption, a wrong ACK, a
timeout) is recovered by the retransmission policy and reported through
statistics instead.
"""


class ProtocolError(Exception):
    """Base class for stop-and-wait protocol errors."""


class InvalidPayload(ProtocolError, ValueError):
    """Payload cannot be carried by a single data frame."""


class EmptyMessage(InvalidPayload):
    """Message has no bytes to send."""


class MessageTooLarge(InvalidPayload):
    """Message does not fit in one frame."""

    def __init__(self, length: int, limit: int):
        super().__init__(
            f"Message is {length} bytes, maximum is {limit} bytes"
        )
        self.length = length
        self.limit = limit
