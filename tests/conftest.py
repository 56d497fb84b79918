"""
Shared fixtures and fakes for the transport tests.
"""

import dataclasses
import io
from collections import Counter

import pytest

from srtransport.arq.packet import Packet, Message
from srtransport.arq.sender import SRSender
from srtransport.arq.receiver import SRReceiver
from srtransport.channel.unreliable import UnreliableChannel
from srtransport.config import CORRUPT_FILL_BYTE, PAYLOAD_SIZE
from srtransport.utils.logger import SimulationLogger, LogLevel
from srtransport.utils.metrics import ProtocolCounters


def msg(index: int) -> Message:
    """Message filled with one letter, like the emulator generates."""
    return Message(bytes([ord('a') + index % 26]) * PAYLOAD_SIZE)


def ack(acknum: int) -> Packet:
    """Valid ACK for acknum."""
    return Packet.create_ack_packet(1, acknum)


def quiet_logger(level: int = LogLevel.DEBUG) -> SimulationLogger:
    """Logger writing into a buffer instead of stdout."""
    return SimulationLogger(name="Test", level=level, stream=io.StringIO(), use_colors=False)


class SenderHarness:
    """SRSender wired to recording fakes for layer 3 and the timer."""

    def __init__(self, **kwargs):
        self.sent = []
        self.timer_starts = []
        self.timer_stops = 0
        self.timer_running = False
        self.counters = ProtocolCounters()
        self.logger = quiet_logger()
        self.sender = SRSender(
            to_layer3=self.sent.append,
            start_timer=self._start,
            stop_timer=self._stop,
            counters=self.counters,
            logger=self.logger,
            **kwargs
        )

    def _start(self, increment):
        assert not self.timer_running, "timer started twice"
        self.timer_running = True
        self.timer_starts.append(increment)

    def _stop(self):
        assert self.timer_running, "stopped a timer that was not running"
        self.timer_running = False
        self.timer_stops += 1

    def expire(self):
        """Let the running timer go off."""
        assert self.timer_running
        self.timer_running = False
        self.sender.timer_interrupt()

    def send(self, count: int, start: int = 0):
        return [self.sender.output(msg(start + i)) for i in range(count)]


class ReceiverHarness:
    """SRReceiver wired to recording fakes for layer 3 and layer 5."""

    def __init__(self, **kwargs):
        self.acks = []
        self.delivered = []
        self.counters = ProtocolCounters()
        self.receiver = SRReceiver(
            to_layer3=self.acks.append,
            to_layer5=self.delivered.append,
            counters=self.counters,
            logger=quiet_logger(),
            **kwargs
        )

    def feed(self, seqnum: int, index: int = None):
        payload = msg(seqnum if index is None else index).data
        self.receiver.input(Packet.create_data_packet(seqnum, payload))

    @property
    def acknums(self):
        return [p.acknum for p in self.acks]


class ScriptedChannel(UnreliableChannel):
    """
    Fixed-delay channel that loses or corrupts chosen data packets.

    Only the first transmission of each listed sequence number is hit;
    retransmissions and ACKs go through untouched.
    """

    def __init__(self, lose=(), damage=(), delay: float = 1.0):
        super().__init__(seed=0, min_delay=delay, delay_spread=0.0)
        self.lose = set(lose)
        self.damage = set(damage)
        self.copies = Counter()

    def transmit(self, packet):
        self.packets_transmitted += 1
        first = False
        if not packet.is_ack:
            first = self.copies[packet.seqnum] == 0
            self.copies[packet.seqnum] += 1

        if first and packet.seqnum in self.lose:
            self.packets_lost += 1
            return None
        if first and packet.seqnum in self.damage:
            self.packets_corrupted += 1
            return dataclasses.replace(packet, payload=CORRUPT_FILL_BYTE + packet.payload[1:])
        return dataclasses.replace(packet)

    def reset(self, seed=None):
        super().reset(seed)
        self.copies.clear()


@pytest.fixture
def sender_harness():
    return SenderHarness()


@pytest.fixture
def receiver_harness():
    return ReceiverHarness()
