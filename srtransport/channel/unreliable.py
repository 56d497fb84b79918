"""
Unreliable Channel Model

This module implements the layer-3 medium of the classic transport
emulator: packets are independently lost or corrupted with fixed
probabilities and delivered after a random delay. The channel never
reorders packets and never touches the stored checksum.
"""

import dataclasses
import numpy as np
from typing import Optional

from ..config import (
    CORRUPT_FILL_BYTE, CORRUPT_FIELD_VALUE,
    CORRUPT_PAYLOAD_SHARE, CORRUPT_SEQNUM_SHARE,
    MIN_DELAY, DELAY_SPREAD
)
from ..arq.packet import Packet


def _check_probability(name: str, value: float):
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must be within [0, 1], got {value}")


class UnreliableChannel:
    """
    Bernoulli loss / corruption channel.

    Attributes:
        loss_prob: Probability that a packet is lost
        corrupt_prob: Probability that a surviving packet is corrupted
        rng: Random number generator
    """

    def __init__(
        self,
        loss_prob: float = 0.0,
        corrupt_prob: float = 0.0,
        seed: Optional[int] = None,
        min_delay: float = MIN_DELAY,
        delay_spread: float = DELAY_SPREAD
    ):
        """
        Initialize the channel.

        Args:
            loss_prob: Packet loss probability
            corrupt_prob: Packet corruption probability
            seed: Random seed for reproducibility
            min_delay: Minimum one-way delay
            delay_spread: Width of the uniform part of the delay
        """
        _check_probability("loss_prob", loss_prob)
        _check_probability("corrupt_prob", corrupt_prob)

        self.loss_prob = loss_prob
        self.corrupt_prob = corrupt_prob
        self.min_delay = min_delay
        self.delay_spread = delay_spread

        self.rng = np.random.default_rng(seed)

        # Statistics tracking
        self.packets_transmitted = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def is_lost(self, packet: Packet) -> bool:
        """Decide whether the channel drops this packet."""
        return self.rng.random() < self.loss_prob

    def is_damaged(self, packet: Packet) -> bool:
        """Decide whether the channel corrupts this packet."""
        return self.rng.random() < self.corrupt_prob

    def corrupt(self, packet: Packet) -> Packet:
        """
        Return a damaged copy of a packet.

        Three times out of four payload[0] is overwritten; otherwise the
        seqnum or the acknum is clobbered. The checksum is left alone.
        """
        x = self.rng.random()
        if x < CORRUPT_PAYLOAD_SHARE:
            return dataclasses.replace(packet, payload=CORRUPT_FILL_BYTE + packet.payload[1:])
        if x < CORRUPT_SEQNUM_SHARE:
            return dataclasses.replace(packet, seqnum=CORRUPT_FIELD_VALUE)
        return dataclasses.replace(packet, acknum=CORRUPT_FIELD_VALUE)

    def transmit(self, packet: Packet) -> Optional[Packet]:
        """
        Pass a packet through the channel.

        Args:
            packet: Packet handed to layer 3

        Returns:
            The packet as it will arrive (a copy, possibly corrupted),
            or None if it was lost
        """
        self.packets_transmitted += 1

        if self.is_lost(packet):
            self.packets_lost += 1
            return None

        if self.is_damaged(packet):
            self.packets_corrupted += 1
            return self.corrupt(packet)

        return dataclasses.replace(packet)

    def sample_delay(self) -> float:
        """One-way delay added after the last in-flight arrival."""
        return self.min_delay + self.delay_spread * self.rng.random()

    def reset(self, seed: Optional[int] = None):
        """
        Reset channel state and statistics.

        Args:
            seed: New random seed (optional)
        """
        if seed is not None:
            self.rng = np.random.default_rng(seed)
        self.packets_transmitted = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

    def get_statistics(self) -> dict:
        """Get channel statistics."""
        observed_loss = (self.packets_lost / self.packets_transmitted
                         if self.packets_transmitted > 0 else 0)
        return {
            'packets_transmitted': self.packets_transmitted,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'observed_loss': observed_loss,
            'loss_prob': self.loss_prob,
            'corrupt_prob': self.corrupt_prob
        }
