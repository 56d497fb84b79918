"""
Visualization package - Sweep result plots.
"""

from .heatmap import ThroughputHeatmap

__all__ = [
    'ThroughputHeatmap'
]
