"""
Metrics Collection and Calculation

This module provides the protocol counters shared by both peers and the
harness-side statistics for a simulation run.
"""

from dataclasses import dataclass, asdict
from typing import List, Optional, Dict
import statistics


@dataclass
class ProtocolCounters:
    """
    Process-wide accumulators read by the harness for scoring.

    Attributes:
        packets_received: Distinct in-window data packets accepted by B
        new_acks: Uncorrupted ACKs processed by A (duplicates included)
        packets_resent: Timer-driven retransmissions by A
        window_full: Messages A dropped because its window was full
    """
    packets_received: int = 0
    new_acks: int = 0
    packets_resent: int = 0
    window_full: int = 0

    def as_dict(self) -> Dict[str, int]:
        """Get counters as a dictionary."""
        return asdict(self)

    def reset(self):
        """Zero all counters."""
        self.packets_received = 0
        self.new_acks = 0
        self.packets_resent = 0
        self.window_full = 0


class MetricsCollector:
    """
    Collects and calculates performance metrics for an emulation.

    Primary metric: Throughput = Messages Delivered at B / Elapsed Time

    Attributes:
        start_time: Simulation start time
        end_time: Simulation end time
        counters: Protocol counters shared with the peers
    """

    def __init__(self, counters: Optional[ProtocolCounters] = None):
        """
        Initialize metrics collector.

        Args:
            counters: Protocol counters to include in summaries
        """
        self.counters = counters or ProtocolCounters()

        # Time tracking
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

        # Application layer
        self.messages_generated = 0
        self.messages_accepted = 0
        self.messages_delivered = 0

        # Layer 3 counters
        self.packets_to_layer3_a = 0
        self.packets_to_layer3_b = 0
        self.packets_lost = 0
        self.packets_corrupted = 0

        # Time from hand-off at A to delivery at B
        self.delivery_delays: List[float] = []

    def start(self, time: float):
        """Mark simulation start."""
        self.start_time = time

    def finish(self, time: float):
        """Mark simulation end."""
        self.end_time = time

    def record_message_generated(self, accepted: bool):
        """
        Record a message handed to A by the application.

        Args:
            accepted: False if A dropped it because its window was full
        """
        self.messages_generated += 1
        if accepted:
            self.messages_accepted += 1

    def record_message_delivered(self, delay: Optional[float] = None):
        """Record a message delivered to the application at B."""
        self.messages_delivered += 1
        if delay is not None:
            self.delivery_delays.append(delay)

    def record_packet_sent(self, from_a: bool):
        """Record a packet handed to layer 3."""
        if from_a:
            self.packets_to_layer3_a += 1
        else:
            self.packets_to_layer3_b += 1

    def record_packet_lost(self):
        """Record packet lost by the channel."""
        self.packets_lost += 1

    def record_packet_corrupted(self):
        """Record packet corrupted by the channel."""
        self.packets_corrupted += 1

    @property
    def total_time(self) -> float:
        """Elapsed simulated time."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    def calculate_throughput(self) -> float:
        """
        Calculate throughput.

        Throughput = Messages Delivered at B / Total Time

        Returns:
            Messages per logical time unit
        """
        total_time = self.total_time
        if total_time <= 0:
            return 0.0
        return self.messages_delivered / total_time

    def calculate_efficiency(self) -> float:
        """
        Calculate transmission efficiency.

        Efficiency = Messages Delivered / Data Packets Sent by A

        Returns:
            Efficiency ratio (0-1)
        """
        if self.packets_to_layer3_a <= 0:
            return 0.0
        return self.messages_delivered / self.packets_to_layer3_a

    def calculate_retransmission_rate(self) -> float:
        """
        Calculate retransmission rate.

        Returns:
            Retransmissions / Messages Accepted
        """
        if self.messages_accepted <= 0:
            return 0.0
        return self.counters.packets_resent / self.messages_accepted

    def calculate_loss_rate(self) -> float:
        """Fraction of layer-3 packets lost by the channel."""
        total = self.packets_to_layer3_a + self.packets_to_layer3_b
        if total <= 0:
            return 0.0
        return self.packets_lost / total

    def get_delay_statistics(self) -> Dict[str, float]:
        """
        Get delivery delay statistics.

        Returns:
            Dictionary with min, max, mean, median delay
        """
        if not self.delivery_delays:
            return {'min': 0, 'max': 0, 'mean': 0, 'median': 0, 'samples': 0}

        return {
            'min': min(self.delivery_delays),
            'max': max(self.delivery_delays),
            'mean': statistics.mean(self.delivery_delays),
            'median': statistics.median(self.delivery_delays),
            'samples': len(self.delivery_delays)
        }

    def get_summary(self) -> Dict:
        """
        Get comprehensive metrics summary.

        Returns:
            Dictionary with all metrics
        """
        return {
            # Time
            'total_time': self.total_time,
            'start_time': self.start_time,
            'end_time': self.end_time,

            # Primary metric
            'throughput': self.calculate_throughput(),
            'efficiency': self.calculate_efficiency(),

            # Application layer
            'messages_generated': self.messages_generated,
            'messages_accepted': self.messages_accepted,
            'messages_delivered': self.messages_delivered,

            # Layer 3
            'packets_to_layer3_a': self.packets_to_layer3_a,
            'packets_to_layer3_b': self.packets_to_layer3_b,
            'packets_lost': self.packets_lost,
            'packets_corrupted': self.packets_corrupted,
            'loss_rate': self.calculate_loss_rate(),
            'retransmission_rate': self.calculate_retransmission_rate(),

            # Protocol counters
            **self.counters.as_dict(),

            # Delay
            'delay': self.get_delay_statistics()
        }

    def to_csv_row(self) -> Dict:
        """
        Get metrics as a flat dictionary suitable for CSV export.

        Returns:
            Dictionary with flattened metrics
        """
        summary = self.get_summary()
        delay = summary.pop('delay')

        flat = {**summary}
        for key, value in delay.items():
            flat[f'delay_{key}'] = value
        return flat

    def reset(self):
        """Reset all metrics (the shared protocol counters included)."""
        self.start_time = None
        self.end_time = None
        self.messages_generated = 0
        self.messages_accepted = 0
        self.messages_delivered = 0
        self.packets_to_layer3_a = 0
        self.packets_to_layer3_b = 0
        self.packets_lost = 0
        self.packets_corrupted = 0
        self.delivery_delays.clear()
        self.counters.reset()
