"""
Selective Repeat Reliable Transport Emulator

Sender A and receiver B of a Selective Repeat transport protocol, running
over an emulated lossy and corrupting network layer.
"""

from .arq import Packet, Message, SRSender, SRReceiver
from .simulation import Emulator, EmulatorConfig, BatchRunner

__version__ = "1.1.0"

__all__ = [
    'Packet',
    'Message',
    'SRSender',
    'SRReceiver',
    'Emulator',
    'EmulatorConfig',
    'BatchRunner'
]
