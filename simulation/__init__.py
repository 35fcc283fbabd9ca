"""
Simulation package - Transmission orchestrator and runners.

Contains:
- Stop-and-wait transmission orchestrator and sessions
- Batch runner for loss sweeps and presets
"""

from .transmission import transmit_message, TransmissionSession, TransmissionResult
from .runner import ScenarioRunner

__all__ = [
    'transmit_message',
    'TransmissionSession',
    'TransmissionResult',
    'ScenarioRunner'
]
