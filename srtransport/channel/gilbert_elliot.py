"""
Gilbert-Elliott Burst Loss Channel Model

This module implements the two-state Markov chain model for simulating
bursty packet loss. The channel alternates between a "Good" state (rare
loss) and a "Bad" state (frequent loss); the state is stepped once per
packet handed to layer 3.
"""

from enum import Enum
from typing import Tuple, Optional

from ..config import (
    GOOD_STATE_LOSS, BAD_STATE_LOSS,
    P_GOOD_TO_BAD, P_BAD_TO_GOOD,
    calculate_steady_state_probabilities, calculate_state_losses
)
from ..arq.packet import Packet
from .unreliable import UnreliableChannel, _check_probability


class ChannelState(Enum):
    """Channel state enumeration."""
    GOOD = 0
    BAD = 1


class GilbertElliottChannel(UnreliableChannel):
    """
    Gilbert-Elliott two-state Markov channel model.

    Loss is decided by the current state; corruption and delay behave as
    in UnreliableChannel.

    Attributes:
        good_loss: Loss probability in Good state
        bad_loss: Loss probability in Bad state
        p_gb: Transition probability from Good to Bad
        p_bg: Transition probability from Bad to Good
        state: Current channel state
    """

    def __init__(
        self,
        good_loss: float = GOOD_STATE_LOSS,
        bad_loss: float = BAD_STATE_LOSS,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        corrupt_prob: float = 0.0,
        seed: Optional[int] = None
    ):
        """
        Initialize the Gilbert-Elliott channel.

        Args:
            good_loss: Loss probability in Good state
            bad_loss: Loss probability in Bad state
            p_gb: Probability of transitioning from Good to Bad
            p_bg: Probability of transitioning from Bad to Good
            corrupt_prob: Packet corruption probability
            seed: Random seed for reproducibility
        """
        for name, value in (("good_loss", good_loss), ("bad_loss", bad_loss),
                            ("p_gb", p_gb), ("p_bg", p_bg)):
            _check_probability(name, value)
        if p_gb + p_bg == 0:
            raise ValueError("p_gb and p_bg cannot both be zero")

        self.good_loss = good_loss
        self.bad_loss = bad_loss
        self.p_gb = p_gb
        self.p_bg = p_bg

        super().__init__(
            loss_prob=self.get_average_loss(),
            corrupt_prob=corrupt_prob,
            seed=seed
        )

        # Start in steady-state (probabilistically)
        self._initialize_state()

        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    @classmethod
    def with_average_loss(
        cls,
        loss_prob: float,
        p_gb: float = P_GOOD_TO_BAD,
        p_bg: float = P_BAD_TO_GOOD,
        corrupt_prob: float = 0.0,
        seed: Optional[int] = None
    ) -> 'GilbertElliottChannel':
        """Build a channel whose steady-state loss equals loss_prob."""
        good_loss, bad_loss = calculate_state_losses(loss_prob, p_gb, p_bg)
        return cls(
            good_loss=good_loss,
            bad_loss=bad_loss,
            p_gb=p_gb,
            p_bg=p_bg,
            corrupt_prob=corrupt_prob,
            seed=seed
        )

    def _initialize_state(self):
        """Initialize channel state based on steady-state probabilities."""
        pi_good, _ = self.get_steady_state_probabilities()
        if self.rng.random() < pi_good:
            self.state = ChannelState.GOOD
        else:
            self.state = ChannelState.BAD

    def get_steady_state_probabilities(self) -> Tuple[float, float]:
        """
        Calculate steady-state probabilities for Good and Bad states.

        Returns:
            Tuple of (π_Good, π_Bad)
        """
        return calculate_steady_state_probabilities(self.p_gb, self.p_bg)

    def get_average_loss(self) -> float:
        """Average loss probability over the steady state."""
        pi_good, pi_bad = self.get_steady_state_probabilities()
        return pi_good * self.good_loss + pi_bad * self.bad_loss

    def get_current_loss(self) -> float:
        """Get the loss probability for the current channel state."""
        return self.good_loss if self.state == ChannelState.GOOD else self.bad_loss

    def transition_state(self):
        """Perform one state transition based on transition probabilities."""
        if self.state == ChannelState.GOOD:
            self.time_in_good += 1
            if self.rng.random() < self.p_gb:
                self.state = ChannelState.BAD
                self.state_transitions += 1
        else:
            self.time_in_bad += 1
            if self.rng.random() < self.p_bg:
                self.state = ChannelState.GOOD
                self.state_transitions += 1

    def is_lost(self, packet: Packet) -> bool:
        """Decide loss from the current state, then step the chain."""
        lost = self.rng.random() < self.get_current_loss()
        self.transition_state()
        return lost

    def reset(self, seed: Optional[int] = None):
        """
        Reset channel to initial state.

        Args:
            seed: New random seed (optional)
        """
        super().reset(seed)
        self._initialize_state()
        self.state_transitions = 0
        self.time_in_good = 0
        self.time_in_bad = 0

    def get_statistics(self) -> dict:
        """Get channel statistics."""
        stats = super().get_statistics()
        stats.update({
            'state_transitions': self.state_transitions,
            'time_in_good': self.time_in_good,
            'time_in_bad': self.time_in_bad,
            'current_state': self.state.name,
            'theoretical_avg_loss': self.get_average_loss()
        })
        return stats
