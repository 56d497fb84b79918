"""
Channel package - Layer 3 channel models.

Contains implementations for:
- Bernoulli loss / corruption channel
- Gilbert-Elliott burst loss channel
"""

from .unreliable import UnreliableChannel
from .gilbert_elliot import GilbertElliottChannel, ChannelState

__all__ = [
    'UnreliableChannel',
    'GilbertElliottChannel',
    'ChannelState'
]
