"""
Network Emulator - Event-Driven Simulation

This module implements the layer 3 / layer 5 environment around the two
Selective Repeat peers: it generates application messages for A, carries
packets across a lossy and corrupting channel, runs one logical timer per
peer, and collects the delivered data at B.
"""

from typing import Optional, Callable, Dict, List, Sequence, Union
from dataclasses import dataclass, field
from functools import partial
from enum import Enum
import heapq

import numpy as np

from ..config import (
    WINDOWSIZE, SEQSPACE, RTT, PAYLOAD_SIZE,
    DEFAULT_NUM_MSGS, DEFAULT_INTERARRIVAL_TIME,
    RNG_SEED_BASE, MAX_SIMULATION_TIME
)
from ..arq.packet import Packet, Message
from ..arq.sender import SRSender
from ..arq.receiver import SRReceiver
from ..channel.unreliable import UnreliableChannel
from ..channel.gilbert_elliot import GilbertElliottChannel
from ..utils.metrics import MetricsCollector, ProtocolCounters
from ..utils.logger import SimulationLogger, level_for_trace
from .timer import PeerTimer


class Peer(Enum):
    """The two transport entities."""
    A = "A"
    B = "B"

    @property
    def other(self) -> 'Peer':
        """The peer at the far end of the channel."""
        return Peer.B if self is Peer.A else Peer.A


class EventType(Enum):
    """Types of simulation events."""
    FROM_LAYER5 = 0       # Application hands a message to A
    FROM_LAYER3 = 1       # Packet arrives at a peer
    TIMER_INTERRUPT = 2   # Peer's timer expires


@dataclass(order=True)
class SimEvent:
    """Simulation event; ties on time are broken by scheduling order."""
    time: float
    order: int
    event_type: EventType = field(compare=False)
    peer: Peer = field(compare=False)
    packet: Optional[Packet] = field(compare=False, default=None)
    generation: int = field(compare=False, default=0)


@dataclass
class EmulatorConfig:
    """Configuration for the emulator."""
    # Application layer
    num_msgs: int = DEFAULT_NUM_MSGS
    interarrival_time: float = DEFAULT_INTERARRIVAL_TIME

    # Channel
    loss_prob: float = 0.0
    corrupt_prob: float = 0.0
    burst: bool = False  # Gilbert-Elliott loss averaging loss_prob

    # Protocol parameters
    window_size: int = WINDOWSIZE
    seqspace: int = SEQSPACE
    rtt: float = RTT

    # Simulation parameters
    seed: int = RNG_SEED_BASE
    trace: int = 0
    max_time: float = MAX_SIMULATION_TIME

    def __post_init__(self):
        """Validate configuration."""
        if self.num_msgs < 0:
            raise ValueError("Number of messages must be non-negative")
        if self.interarrival_time < 0:
            raise ValueError("Inter-arrival time must be non-negative")

    def create_channel(self) -> UnreliableChannel:
        """Build the channel described by this configuration."""
        if self.burst:
            return GilbertElliottChannel.with_average_loss(
                self.loss_prob,
                corrupt_prob=self.corrupt_prob,
                seed=self.seed + 1000
            )
        return UnreliableChannel(
            loss_prob=self.loss_prob,
            corrupt_prob=self.corrupt_prob,
            seed=self.seed + 1000
        )


def make_message(index: int) -> Message:
    """Message number index: PAYLOAD_SIZE copies of one letter, cycling a..z."""
    return Message(bytes([ord('a') + index % 26]) * PAYLOAD_SIZE)


class Emulator:
    """
    Event-Driven Network Emulator.

    Owns sender A, receiver B, their shared protocol counters and the
    channel, and provides the primitives the peers call back into:
    to_layer3, to_layer5, start_timer and stop_timer.
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        channel: Optional[UnreliableChannel] = None,
        on_deliver: Optional[Callable[[bytes], None]] = None,
        after_event: Optional[Callable[['Emulator'], None]] = None,
        logger: Optional[SimulationLogger] = None
    ):
        """
        Initialize emulator.

        Args:
            config: Emulator configuration
            channel: Channel model (built from config when None), reseeded
                from config.seed at the start of every run
            on_deliver: Callback for every payload delivered at B
            after_event: Callback run after every processed event
            logger: Trace sink (built from config.trace when None)
        """
        self.config = config or EmulatorConfig()
        self.channel = channel or self.config.create_channel()
        self.on_deliver = on_deliver
        self.after_event = after_event

        self.logger = logger or SimulationLogger(
            name="Emu",
            level=level_for_trace(self.config.trace)
        )

        self.rng = np.random.default_rng(self.config.seed)

        # Shared protocol counters and run metrics
        self.counters = ProtocolCounters()
        self.metrics = MetricsCollector(self.counters)

        self.sender = SRSender(
            to_layer3=partial(self.to_layer3, Peer.A),
            start_timer=partial(self.start_timer, Peer.A),
            stop_timer=partial(self.stop_timer, Peer.A),
            counters=self.counters,
            logger=self.logger,
            window_size=self.config.window_size,
            seqspace=self.config.seqspace,
            rtt=self.config.rtt
        )
        self.receiver = SRReceiver(
            to_layer3=partial(self.to_layer3, Peer.B),
            to_layer5=partial(self.to_layer5, Peer.B),
            counters=self.counters,
            logger=self.logger,
            window_size=self.config.window_size,
            seqspace=self.config.seqspace
        )

        self._reset_state()

    def _reset_state(self):
        """Clear the event list, timers and data tracking."""
        self.current_time = 0.0
        self.event_queue: List[SimEvent] = []
        self._event_order = 0

        self.timers: Dict[Peer, PeerTimer] = {Peer.A: PeerTimer(), Peer.B: PeerTimer()}
        self.last_arrival: Dict[Peer, float] = {Peer.A: 0.0, Peer.B: 0.0}

        # Application data tracking
        self.messages: Optional[List[Message]] = None
        self.num_msgs = self.config.num_msgs
        self.n_sim = 0
        self.accepted: List[bytes] = []
        self.accept_times: List[float] = []
        self.delivered: List[bytes] = []

    # ------------------------------------------------------------------
    # Primitives used by the peers
    # ------------------------------------------------------------------

    def to_layer3(self, peer: Peer, packet: Packet):
        """
        Queue a packet for transmission from peer to the other side.

        The packet may be lost or corrupted; survivors arrive in the order
        they were sent.
        """
        self.metrics.record_packet_sent(from_a=peer is Peer.A)

        arrived = self.channel.transmit(packet)
        if arrived is None:
            self.metrics.record_packet_lost()
            self.logger.debug(f"{peer.value}: packet {packet.seqnum} being lost", "CHANNEL")
            return
        if arrived != packet:
            self.metrics.record_packet_corrupted()
            self.logger.debug(f"{peer.value}: packet {packet.seqnum} being corrupted", "CHANNEL")

        receiver = peer.other
        last_time = max(self.current_time, self.last_arrival[receiver])
        arrival_time = last_time + self.channel.sample_delay()
        self.last_arrival[receiver] = arrival_time

        self._schedule_event(arrival_time, EventType.FROM_LAYER3, receiver, packet=arrived)

    def to_layer5(self, peer: Peer, payload: bytes):
        """Deliver a payload to the application at peer."""
        if peer is not Peer.B:
            self.logger.warning(f"{peer.value}: delivery to layer 5 ignored, transfer is simplex", "APP")
            return

        index = len(self.delivered)
        self.delivered.append(payload)

        delay = None
        if index < len(self.accept_times):
            delay = self.current_time - self.accept_times[index]
        self.metrics.record_message_delivered(delay)

        if self.on_deliver:
            self.on_deliver(payload)

    def start_timer(self, peer: Peer, increment: float):
        """Arm the single timer of peer to fire after increment time units."""
        if increment < 0:
            self.logger.warning(f"{peer.value}: negative timer increment {increment}, call ignored", "TIMER")
            return

        timer = self.timers[peer]
        if timer.is_running:
            self.logger.warning(f"{peer.value}: attempt to start a timer that is already started", "TIMER")
            return

        generation = timer.start(self.current_time, increment)
        self._schedule_event(
            self.current_time + increment,
            EventType.TIMER_INTERRUPT,
            peer,
            generation=generation
        )

    def stop_timer(self, peer: Peer):
        """Disarm the timer of peer."""
        timer = self.timers[peer]
        if not timer.is_running:
            self.logger.warning(f"{peer.value}: unable to cancel timer, it was not running", "TIMER")
            return
        timer.stop()

    def get_time(self) -> float:
        """Current simulation time."""
        return self.current_time

    def timer_armed(self, peer: Peer) -> bool:
        """Check whether peer's timer is running."""
        return self.timers[peer].is_running

    # ------------------------------------------------------------------
    # Event loop
    # ------------------------------------------------------------------

    def _schedule_event(
        self,
        time: float,
        event_type: EventType,
        peer: Peer,
        packet: Optional[Packet] = None,
        generation: int = 0
    ):
        """Schedule an event."""
        event = SimEvent(
            time=time,
            order=self._event_order,
            event_type=event_type,
            peer=peer,
            packet=packet,
            generation=generation
        )
        self._event_order += 1
        heapq.heappush(self.event_queue, event)

    def _generate_next_arrival(self):
        """Schedule the next message from layer 5 at A."""
        gap = self.config.interarrival_time * 2.0 * self.rng.random()
        self._schedule_event(self.current_time + gap, EventType.FROM_LAYER5, Peer.A)

    def _next_message(self) -> Message:
        """Get the message for the current layer 5 arrival."""
        if self.messages is not None:
            return self.messages[self.n_sim]
        return make_message(self.n_sim)

    def _handle_layer5(self):
        """Hand the next application message to A."""
        message = self._next_message()
        self.n_sim += 1
        if self.n_sim < self.num_msgs:
            self._generate_next_arrival()

        self.logger.debug(f"A: data given to transport: {message.data!r}", "APP")
        accepted = self.sender.output(message)
        self.metrics.record_message_generated(accepted)
        if accepted:
            self.accepted.append(message.data)
            self.accept_times.append(self.current_time)

    def _handle_layer3(self, event: SimEvent):
        """Hand an arriving packet to its peer."""
        if event.peer is Peer.A:
            self.sender.input(event.packet)
        else:
            self.receiver.input(event.packet)

    def _handle_timer(self, event: SimEvent):
        """Fire a peer's timer interrupt unless it was cancelled."""
        if not self.timers[event.peer].fire(event.generation):
            return
        if event.peer is Peer.A:
            self.sender.timer_interrupt()
        else:
            self.receiver.timer_interrupt()

    def verify_delivery(self) -> Dict:
        """
        Check that B delivered a prefix of the messages A accepted.

        Returns:
            Dictionary with validity flag and counts
        """
        n_delivered = len(self.delivered)
        valid = (n_delivered <= len(self.accepted) and
                 self.delivered == self.accepted[:n_delivered])
        return {
            'valid': valid,
            'messages_accepted': len(self.accepted),
            'messages_delivered': n_delivered
        }

    def is_complete(self) -> bool:
        """Check if every accepted message was delivered and acknowledged."""
        return (len(self.delivered) == len(self.accepted) and
                self.sender.outstanding == 0)

    def run(self, messages: Optional[Sequence[Union[bytes, Message]]] = None) -> Dict:
        """
        Run the simulation.

        Args:
            messages: Explicit application messages (generated when None)

        Returns:
            Dictionary with configuration, metrics and verification
        """
        self.reset()
        if messages is not None:
            self.messages = [m if isinstance(m, Message) else Message(m) for m in messages]
            self.num_msgs = len(self.messages)

        self.logger.set_sim_time(self.current_time)
        self.logger.simulation_start({
            'num_msgs': self.num_msgs,
            'loss_prob': self.config.loss_prob,
            'corrupt_prob': self.config.corrupt_prob,
            'window_size': self.config.window_size,
            'seqspace': self.config.seqspace,
            'seed': self.config.seed
        })
        self.metrics.start(self.current_time)

        if self.num_msgs > 0:
            self._generate_next_arrival()

        while self.event_queue and self.event_queue[0].time <= self.config.max_time:
            event = heapq.heappop(self.event_queue)
            self.current_time = event.time
            self.logger.set_sim_time(self.current_time)

            if event.event_type == EventType.FROM_LAYER5:
                self._handle_layer5()
            elif event.event_type == EventType.FROM_LAYER3:
                self._handle_layer3(event)
            elif event.event_type == EventType.TIMER_INTERRUPT:
                self._handle_timer(event)

            if self.after_event:
                self.after_event(self)

        if self.event_queue:
            self.logger.warning(
                f"Simulation stopped at time limit {self.config.max_time}", "SIM"
            )

        self.metrics.finish(self.current_time)
        summary = self.metrics.get_summary()
        self.logger.simulation_end(summary)

        return {
            'config': {
                'num_msgs': self.num_msgs,
                'interarrival_time': self.config.interarrival_time,
                'loss_prob': self.config.loss_prob,
                'corrupt_prob': self.config.corrupt_prob,
                'burst': self.config.burst,
                'window_size': self.config.window_size,
                'seqspace': self.config.seqspace,
                'rtt': self.config.rtt,
                'seed': self.config.seed
            },
            'metrics': summary,
            'channel': self.channel.get_statistics(),
            'verification': self.verify_delivery(),
            'simulation_time': self.current_time,
            'complete': self.is_complete()
        }

    def reset(self, seed: Optional[int] = None):
        """Reset emulator, peers and channel."""
        if seed is not None:
            self.config.seed = seed
        self.rng = np.random.default_rng(self.config.seed)
        self.channel.reset(self.config.seed + 1000)
        self.metrics.reset()
        self.sender.init()
        self.receiver.init()
        self._reset_state()
