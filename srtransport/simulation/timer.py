"""
Logical Timer for the Emulator

Each peer owns a single alarm. Timer interrupts sit in the emulator's event
heap; stopping a timer bumps its generation so the stale heap entry is
skipped when it is popped.
"""

from dataclasses import dataclass
from enum import Enum


class TimerState(Enum):
    """Timer state enumeration."""
    STOPPED = 0
    RUNNING = 1
    EXPIRED = 2


@dataclass
class PeerTimer:
    """
    Single logical alarm of one peer.

    Attributes:
        state: Current timer state
        start_time: Time when timer was started
        timeout: Duration the timer was armed for
        generation: Incremented on every start and stop
        starts: Number of times the timer was armed
    """
    state: TimerState = TimerState.STOPPED
    start_time: float = 0.0
    timeout: float = 0.0
    generation: int = 0
    starts: int = 0

    @property
    def is_running(self) -> bool:
        """Check if the timer is armed."""
        return self.state == TimerState.RUNNING

    def start(self, current_time: float, timeout: float) -> int:
        """
        Arm the timer.

        Args:
            current_time: Current simulation time
            timeout: Duration until expiry

        Returns:
            Generation tag for the scheduled interrupt
        """
        self.start_time = current_time
        self.timeout = timeout
        self.state = TimerState.RUNNING
        self.generation += 1
        self.starts += 1
        return self.generation

    def stop(self):
        """Disarm the timer and invalidate its pending interrupt."""
        self.state = TimerState.STOPPED
        self.generation += 1

    def fire(self, generation: int) -> bool:
        """
        Consume a popped interrupt.

        Args:
            generation: Generation tag carried by the interrupt

        Returns:
            True if the interrupt is current and the timer expired
        """
        if self.state != TimerState.RUNNING or generation != self.generation:
            return False
        self.state = TimerState.EXPIRED
        return True

    def get_expiry_time(self) -> float:
        """Get the absolute expiry time."""
        return self.start_time + self.timeout

    def get_remaining_time(self, current_time: float) -> float:
        """Time left until expiry (0 if not running)."""
        if not self.is_running:
            return 0.0
        return max(0.0, self.get_expiry_time() - current_time)
