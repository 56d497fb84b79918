"""
Simulation package - Emulator and batch runs.

Contains implementations for:
- Event-driven network emulator with per-peer logical timers
- Batch runner for channel parameter sweeps
"""

from .emulator import Emulator, EmulatorConfig, Peer
from .timer import PeerTimer
from .runner import BatchRunner

__all__ = [
    'Emulator',
    'EmulatorConfig',
    'Peer',
    'PeerTimer',
    'BatchRunner'
]
