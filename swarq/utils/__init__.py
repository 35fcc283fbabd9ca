"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Statistics collection
- Logging utilities
"""

from .metrics import Statistics
from .logger import ProtocolLogger, LogLevel

__all__ = [
    'Statistics',
    'ProtocolLogger',
    'LogLevel'
]
