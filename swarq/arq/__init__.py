"""
ARQ package - Stop-and-Wait ARQ protocol components.

Contains implementations for:
- Frame structure and checksum
- Sender and receiver state machines
- Retransmission timer and clocks
- Protocol errors and events
"""

from .frame import DataFrame, AckFrame, FrameType, make_data_frame, make_ack_frame, verify
from .sender import StopAndWaitSender, SenderState, Outcome
from .receiver import StopAndWaitReceiver, ReceiverState
from .timer import RetransmissionTimer, RealClock, VirtualClock
from .errors import ProtocolError, InvalidPayload, EmptyMessage, MessageTooLarge
from .events import EventKind, ProtocolEvent, EventLog

__all__ = [
    'DataFrame',
    'AckFrame',
    'FrameType',
    'make_data_frame',
    'make_ack_frame',
    'verify',
    'StopAndWaitSender',
    'SenderState',
    'Outcome',
    'StopAndWaitReceiver',
    'ReceiverState',
    'RetransmissionTimer',
    'RealClock',
    'VirtualClock',
    'ProtocolError',
    'InvalidPayload',
    'EmptyMessage',
    'MessageTooLarge',
    'EventKind',
    'ProtocolEvent',
    'EventLog'
]
