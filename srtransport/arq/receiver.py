"""
Selective Repeat Receiver (peer B)

This module implements the receiver side of the Selective Repeat protocol,
including the receive window, out-of-order buffering, in-order delivery and
per-packet ACK generation.
"""

from typing import Optional, Callable, Dict, Set
from dataclasses import dataclass

from ..config import WINDOWSIZE, SEQSPACE, check_sequence_space
from ..utils.logger import SimulationLogger, get_logger
from ..utils.metrics import ProtocolCounters
from .packet import Packet, Message, is_corrupted
from .seqspace import in_window, seq_add, seq_sub


@dataclass
class ReceiveWindow:
    """
    Sliding window for the receiver.

    Attributes:
        base: Next sequence number to deliver in order
        size: Window size
        seqspace: Sequence number space (for wrapping)
    """
    base: int = 0
    size: int = WINDOWSIZE
    seqspace: int = SEQSPACE

    def in_window(self, seq_num: int) -> bool:
        """Check if sequence number is within [base, base + size)."""
        return in_window(seq_num, self.base, self.size, self.seqspace)

    def in_previous_window(self, seq_num: int) -> bool:
        """Check if sequence number belongs to the window already delivered."""
        previous_base = seq_sub(self.base, self.size, self.seqspace)
        return in_window(seq_num, previous_base, self.size, self.seqspace)

    @property
    def last_delivered(self) -> int:
        """Sequence number just before the window."""
        return seq_sub(self.base, 1, self.seqspace)

    def advance_base(self):
        """Slide the window base forward by one."""
        self.base = seq_add(self.base, 1, self.seqspace)


class SRReceiver:
    """
    Selective Repeat Receiver.

    Implements peer B with:
    - Receive window of the same size as the sender's
    - Out-of-order packet buffering
    - Per-packet (non-cumulative) ACKs
    - In-order, exactly-once delivery to layer 5

    A corrupted arrival is answered with an ACK for the last in-order
    sequence number.

    Attributes:
        window: Receive window state
        recv_buffer: Buffered packets by sequence number
        received: Sequence numbers buffered and not yet delivered
        ack_seqnum: One-bit counter placed in the seqnum field of ACKs
    """

    PEER = "B"

    def __init__(
        self,
        to_layer3: Callable[[Packet], None],
        to_layer5: Callable[[bytes], None],
        counters: Optional[ProtocolCounters] = None,
        logger: Optional[SimulationLogger] = None,
        window_size: int = WINDOWSIZE,
        seqspace: int = SEQSPACE
    ):
        """
        Initialize SR receiver.

        Args:
            to_layer3: Hands an ACK packet to the channel
            to_layer5: Delivers a payload to the application
            counters: Shared protocol counters
            logger: Trace sink
            window_size: Receive window size
            seqspace: Sequence number space
        """
        check_sequence_space(window_size, seqspace)

        self.to_layer3 = to_layer3
        self.to_layer5 = to_layer5
        self.counters = counters if counters is not None else ProtocolCounters()
        self.logger = logger or get_logger()

        self.window_size = window_size
        self.seqspace = seqspace

        self.init()

    def init(self):
        """Reset receiver state; called once before any other operation."""
        self.window = ReceiveWindow(size=self.window_size, seqspace=self.seqspace)
        self.recv_buffer: Dict[int, Packet] = {}
        self.received: Set[int] = set()
        self.ack_seqnum = 1

        # Statistics
        self.duplicate_packets = 0
        self.corrupted_packets = 0
        self.acks_sent = 0

    @property
    def rcv_base(self) -> int:
        """Next sequence number to deliver in order."""
        return self.window.base

    def input(self, packet: Packet):
        """
        Process a data packet arriving from layer 3.

        Args:
            packet: Received packet
        """
        if is_corrupted(packet):
            self.corrupted_packets += 1
            self.logger.info(
                f"{self.PEER}: packet corrupted, resend ACK {self.window.last_delivered}", "RX"
            )
            self._send_ack(self.window.last_delivered)
            return

        seq_num = packet.seqnum
        self.logger.packet_received(self.PEER, seq_num, True)

        if self.window.in_window(seq_num):
            if seq_num not in self.received:
                self.recv_buffer[seq_num] = packet
                self.received.add(seq_num)
                self.counters.packets_received += 1
                self.logger.info(f"{self.PEER}: packet {seq_num} is correctly received, send ACK", "RX")
            else:
                self.duplicate_packets += 1
            self._deliver_in_order()
        elif self.window.in_previous_window(seq_num):
            # Already delivered; the ACK was lost, so acknowledge again
            self.duplicate_packets += 1
            self.logger.info(f"{self.PEER}: packet {seq_num} already delivered, resend ACK", "RX")
        else:
            self.logger.warning(f"{self.PEER}: packet {seq_num} outside both windows, dropped", "RX")
            return

        self._send_ack(seq_num)

    def output(self, message: Message):
        """Unused: transfer is simplex from A to B."""

    def timer_interrupt(self):
        """Unused: B never starts a timer."""

    def _deliver_in_order(self):
        """Deliver buffered packets that are now in order."""
        while self.window.base in self.received:
            seq_num = self.window.base
            packet = self.recv_buffer.pop(seq_num)
            self.received.remove(seq_num)

            self.logger.delivered(self.PEER, seq_num)
            self.to_layer5(packet.payload)

            self.window.advance_base()

    def _send_ack(self, ack_num: int):
        """
        Send an ACK for one sequence number.

        Args:
            ack_num: Sequence number to acknowledge
        """
        ack_packet = Packet.create_ack_packet(self.ack_seqnum, ack_num)
        self.to_layer3(ack_packet)
        self.acks_sent += 1
        self.logger.ack_sent(self.PEER, ack_num)

        self.ack_seqnum = (self.ack_seqnum + 1) % 2

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'base': self.window.base,
            'size': self.window.size,
            'buffered_packets': sorted(self.received)
        }

    def get_statistics(self) -> dict:
        """Get receiver statistics."""
        return {
            'packets_received': self.counters.packets_received,
            'duplicate_packets': self.duplicate_packets,
            'corrupted_packets': self.corrupted_packets,
            'acks_sent': self.acks_sent
        }
