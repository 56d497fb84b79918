"""
Utilities package - Helper functions and classes.

Contains implementations for:
- Protocol counters and run metrics
- Logging utilities
"""

from .metrics import MetricsCollector, ProtocolCounters
from .logger import SimulationLogger, LogLevel

__all__ = [
    'MetricsCollector',
    'ProtocolCounters',
    'SimulationLogger',
    'LogLevel'
]
