"""
ARQ package - Selective Repeat protocol core.

Contains implementations for:
- Packet structure and checksum
- Sequence number arithmetic
- Sender with window management and a single retransmission timer
- Receiver with out-of-order buffering
"""

from .packet import Packet, Message, compute_checksum, is_corrupted
from .seqspace import in_window
from .sender import SRSender, SendWindow
from .receiver import SRReceiver, ReceiveWindow

__all__ = [
    'Packet',
    'Message',
    'compute_checksum',
    'is_corrupted',
    'in_window',
    'SRSender',
    'SendWindow',
    'SRReceiver',
    'ReceiveWindow'
]
