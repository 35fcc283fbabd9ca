"""
Visualization package - Plotting tools.

Contains:
- Delivery rate / retransmission plots over a loss sweep
"""

from .loss_plot import LossSweepPlot

__all__ = [
    'LossSweepPlot'
]
