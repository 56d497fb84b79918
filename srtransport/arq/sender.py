"""
Selective Repeat Sender (peer A)

This module implements the sender side of the Selective Repeat protocol:
sliding window management, packet buffering, per-packet acknowledgement
tracking and a single retransmission timer bound to the oldest
unacknowledged packet.
"""

from typing import Optional, Callable, Dict, Set
from dataclasses import dataclass

from ..config import WINDOWSIZE, SEQSPACE, RTT, check_sequence_space
from ..utils.logger import SimulationLogger, get_logger
from ..utils.metrics import ProtocolCounters
from .packet import Packet, Message, is_corrupted
from .seqspace import in_window, seq_add, seq_distance


@dataclass
class SendWindow:
    """
    Sliding window for the sender.

    Attributes:
        base: Oldest unacknowledged sequence number
        next_seq: Sequence number for the next new packet
        size: Window size
        seqspace: Sequence number space (for wrapping)
    """
    base: int = 0
    next_seq: int = 0
    size: int = WINDOWSIZE
    seqspace: int = SEQSPACE

    @property
    def outstanding(self) -> int:
        """Number of packets sent but not yet slid past."""
        return seq_distance(self.base, self.next_seq, self.seqspace)

    @property
    def is_full(self) -> bool:
        """Check if window is full."""
        return self.outstanding >= self.size

    def is_outstanding(self, seq_num: int) -> bool:
        """Check if sequence number is in [base, next_seq)."""
        return in_window(seq_num, self.base, self.outstanding, self.seqspace)

    def in_window(self, seq_num: int) -> bool:
        """Check if sequence number is within [base, base + size)."""
        return in_window(seq_num, self.base, self.size, self.seqspace)

    def advance_base(self):
        """Slide the window base forward by one."""
        self.base = seq_add(self.base, 1, self.seqspace)

    def get_next_seq(self) -> int:
        """Get next sequence number and increment counter."""
        seq = self.next_seq
        self.next_seq = seq_add(seq, 1, self.seqspace)
        return seq


class SRSender:
    """
    Selective Repeat Sender.

    Implements peer A with:
    - Fixed-size sliding window
    - Buffering of every unacknowledged packet
    - Selective acknowledgement tracking
    - One logical timer, always bound to the oldest unacknowledged packet

    The emulator calls init() once, then output(), input() and
    timer_interrupt() as events occur.

    Attributes:
        window: Send window state
        buffer: Transmitted packets awaiting ACK, by sequence number
        acked: Sequence numbers ACKed but not yet slid past
        timer_seq: Sequence number being timed, or None when disarmed
    """

    PEER = "A"

    def __init__(
        self,
        to_layer3: Callable[[Packet], None],
        start_timer: Callable[[float], None],
        stop_timer: Callable[[], None],
        counters: Optional[ProtocolCounters] = None,
        logger: Optional[SimulationLogger] = None,
        window_size: int = WINDOWSIZE,
        seqspace: int = SEQSPACE,
        rtt: float = RTT
    ):
        """
        Initialize SR sender.

        Args:
            to_layer3: Hands a packet to the channel
            start_timer: Arms the peer's timer for a duration
            stop_timer: Disarms the peer's timer
            counters: Shared protocol counters
            logger: Trace sink
            window_size: Send window size
            seqspace: Sequence number space
            rtt: Retransmission timer duration
        """
        check_sequence_space(window_size, seqspace)

        self.to_layer3 = to_layer3
        self.start_timer = start_timer
        self.stop_timer = stop_timer
        self.counters = counters if counters is not None else ProtocolCounters()
        self.logger = logger or get_logger()

        self.window_size = window_size
        self.seqspace = seqspace
        self.rtt = rtt

        self.init()

    def init(self):
        """Reset sender state; called once before any other operation."""
        self.window = SendWindow(size=self.window_size, seqspace=self.seqspace)
        self.buffer: Dict[int, Packet] = {}
        self.acked: Set[int] = set()
        self.timer_seq: Optional[int] = None

    @property
    def send_base(self) -> int:
        """Oldest unacknowledged sequence number."""
        return self.window.base

    @property
    def next_seqnum(self) -> int:
        """Sequence number for the next new packet."""
        return self.window.next_seq

    @property
    def outstanding(self) -> int:
        """Number of packets in flight."""
        return self.window.outstanding

    @property
    def timer_armed(self) -> bool:
        """Check if a packet is being timed."""
        return self.timer_seq is not None

    def output(self, message: Message) -> bool:
        """
        Accept a message from the application.

        Args:
            message: Message to send

        Returns:
            True if the message was sent, False if dropped on a full window
        """
        if self.window.is_full:
            self.logger.info(f"{self.PEER}: new message arrives, send window is full", "WINDOW")
            self.counters.window_full += 1
            return False

        self.logger.debug(
            f"{self.PEER}: new message arrives, send window is not full, "
            f"send new message to layer 3", "WINDOW"
        )

        seq_num = self.window.next_seq
        packet = Packet.create_data_packet(seq_num, message.data)

        # Buffer packet for potential retransmission
        self.buffer[seq_num] = packet
        self.acked.discard(seq_num)

        self.logger.packet_sent(self.PEER, seq_num)
        self.to_layer3(packet)

        # First unacknowledged packet gets the timer
        if self.timer_seq is None:
            self.start_timer(self.rtt)
            self.timer_seq = seq_num

        self.window.get_next_seq()
        self.logger.window_update(self.PEER, self.window.base, self.window.next_seq, self.window.size)
        return True

    def input(self, packet: Packet):
        """
        Process an ACK arriving from layer 3.

        Args:
            packet: ACK packet
        """
        if is_corrupted(packet):
            self.logger.info(f"{self.PEER}: corrupted ACK is received, do nothing", "ACK")
            return

        self.logger.ack_received(self.PEER, packet.acknum)
        self.counters.new_acks += 1

        ack_num = packet.acknum
        if ack_num in self.acked or not self.window.is_outstanding(ack_num):
            self.logger.info(f"{self.PEER}: duplicate ACK received, do nothing", "ACK")
            return

        self.acked.add(ack_num)
        self._slide_window()
        self._rearm_timer(ack_num)

    def timer_interrupt(self):
        """Retransmit the oldest unacknowledged packet when the timer expires."""
        if self.timer_seq is None:
            self.logger.warning(f"{self.PEER}: timer interrupt with no packet being timed", "TIMEOUT")
            return

        self.logger.timeout(self.PEER, self.timer_seq)
        self.logger.retransmit(self.PEER, self.timer_seq)
        self.to_layer3(self.buffer[self.timer_seq])
        self.counters.packets_resent += 1

        self.start_timer(self.rtt)

    def _slide_window(self):
        """Slide the window forward past consecutive acknowledged packets."""
        while self.window.base in self.acked:
            self.acked.remove(self.window.base)
            self.buffer.pop(self.window.base, None)
            self.window.advance_base()
        self.logger.window_update(self.PEER, self.window.base, self.window.next_seq, self.window.size)

    def _rearm_timer(self, ack_num: int):
        """
        Keep the timer on the oldest unacknowledged packet after an ACK.

        Args:
            ack_num: Sequence number that was just acknowledged
        """
        if self.window.outstanding == 0:
            self.stop_timer()
            self.timer_seq = None
        elif ack_num == self.timer_seq:
            self.stop_timer()
            self.timer_seq = self._oldest_unacked()
            self.start_timer(self.rtt)

    def _oldest_unacked(self) -> Optional[int]:
        """Scan from the window base in modular order for the first unacked seqnum."""
        seq_num = self.window.base
        for _ in range(self.window.outstanding):
            if seq_num not in self.acked:
                return seq_num
            seq_num = seq_add(seq_num, 1, self.seqspace)
        return None

    def get_window_state(self) -> dict:
        """Get current window state."""
        return {
            'base': self.window.base,
            'next_seq': self.window.next_seq,
            'size': self.window.size,
            'outstanding': self.window.outstanding,
            'acked': sorted(self.acked),
            'buffered_packets': sorted(self.buffer.keys()),
            'timer_seq': self.timer_seq
        }

    def get_statistics(self) -> dict:
        """Get sender statistics."""
        return {
            'new_acks': self.counters.new_acks,
            'packets_resent': self.counters.packets_resent,
            'window_full': self.counters.window_full,
            'outstanding': self.window.outstanding
        }
