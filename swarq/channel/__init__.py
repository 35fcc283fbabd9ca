"""
Channel package - Simulated network models.

Contains implementations for:
- Lossy, delayed one-directional network path
"""

from .network_path import NetworkPath, NetworkConfig, FrameChannel, Direction

__all__ = [
    'NetworkPath',
    'NetworkConfig',
    'FrameChannel',
    'Direction'
]
