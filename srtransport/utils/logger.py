"""
Simulation Logger

This module provides the trace sink for the transport and the emulator,
with configurable verbosity levels and structured output.
"""

from typing import Optional, TextIO
from datetime import datetime
from enum import IntEnum
import os

from ..config import DEFAULT_LOG_LEVEL


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3
    CRITICAL = 4


def level_for_trace(trace: int) -> LogLevel:
    """Map an emulator trace level (0, 1, 2, ...) to a log level."""
    if trace <= 0:
        return LogLevel.WARNING
    if trace == 1:
        return LogLevel.INFO
    return LogLevel.DEBUG


class SimulationLogger:
    """
    Logger for simulation events.

    Provides structured logging with simulated timestamps and categories.

    Attributes:
        name: Logger name
        level: Minimum log level
        stream: Output stream (stdout when None)
        file: Optional file for logging
    """

    # Color codes for terminal output
    COLORS = {
        LogLevel.DEBUG: '\033[36m',     # Cyan
        LogLevel.INFO: '\033[32m',      # Green
        LogLevel.WARNING: '\033[33m',   # Yellow
        LogLevel.ERROR: '\033[31m',     # Red
        LogLevel.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(
        self,
        name: str = "Emulator",
        level: int = DEFAULT_LOG_LEVEL,
        log_file: Optional[str] = None,
        stream: Optional[TextIO] = None,
        use_colors: bool = True,
        include_timestamp: bool = True
    ):
        """
        Initialize logger.

        Args:
            name: Logger name
            level: Minimum log level
            log_file: Optional file path for logging
            stream: Output stream for console messages
            use_colors: Use ANSI colors in output
            include_timestamp: Include timestamps in log messages
        """
        self.name = name
        self.level = level
        self.stream = stream
        self.use_colors = use_colors
        self.include_timestamp = include_timestamp

        self.file: Optional[TextIO] = None
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            self.file = open(log_file, 'w')

        # Simulation time tracking
        self.sim_time: Optional[float] = None

        # Message counts
        self.message_counts = {level: 0 for level in LogLevel}

    def set_sim_time(self, time: float):
        """Set current simulation time for log messages."""
        self.sim_time = time

    def _format_message(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ) -> str:
        """Format a log message."""
        parts = []

        # Timestamp
        if self.include_timestamp:
            if self.sim_time is not None:
                parts.append(f"[{self.sim_time:10.4f}]")
            else:
                parts.append(f"[{datetime.now().strftime('%H:%M:%S.%f')[:-3]}]")

        # Level
        level_str = level.name.ljust(8)
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"
        parts.append(level_str)

        # Name
        parts.append(f"[{self.name}]")

        # Category
        if category:
            parts.append(f"[{category}]")

        # Message
        parts.append(message)

        return " ".join(parts)

    def _log(
        self,
        level: LogLevel,
        message: str,
        category: Optional[str] = None
    ):
        """Log a message."""
        if level < self.level:
            return

        self.message_counts[level] += 1
        formatted = self._format_message(level, message, category)

        print(formatted, file=self.stream)

        if self.file:
            # Strip color codes for file
            clean = formatted
            for color in self.COLORS.values():
                clean = clean.replace(color, '')
            clean = clean.replace(self.RESET, '')
            self.file.write(clean + '\n')
            self.file.flush()

    def debug(self, message: str, category: Optional[str] = None):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, category)

    def info(self, message: str, category: Optional[str] = None):
        """Log info message."""
        self._log(LogLevel.INFO, message, category)

    def warning(self, message: str, category: Optional[str] = None):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, category)

    def error(self, message: str, category: Optional[str] = None):
        """Log error message."""
        self._log(LogLevel.ERROR, message, category)

    def critical(self, message: str, category: Optional[str] = None):
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, category)

    # Convenience methods for protocol events
    def packet_sent(self, peer: str, seqnum: int):
        """Log data packet handed to layer 3."""
        self.info(f"{peer}: sending packet {seqnum} to layer 3", "TX")

    def packet_received(self, peer: str, seqnum: int, valid: bool):
        """Log packet arriving from layer 3."""
        status = "OK" if valid else "CORRUPTED"
        self.debug(f"{peer}: packet {seqnum} received, {status}", "RX")

    def ack_sent(self, peer: str, ack_num: int):
        """Log ACK sent event."""
        self.debug(f"{peer}: ACK {ack_num} sent", "ACK")

    def ack_received(self, peer: str, ack_num: int):
        """Log ACK received event."""
        self.info(f"{peer}: uncorrupted ACK {ack_num} is received", "ACK")

    def timeout(self, peer: str, seqnum: int):
        """Log timeout event."""
        self.info(f"{peer}: time out, resend packet {seqnum}", "TIMEOUT")

    def retransmit(self, peer: str, seqnum: int):
        """Log retransmission event."""
        self.debug(f"{peer}: resending packet {seqnum}", "RETX")

    def delivered(self, peer: str, seqnum: int):
        """Log in-order delivery to layer 5."""
        self.info(f"{peer}: packet {seqnum} delivered to layer 5", "DELIVER")

    def window_update(self, peer: str, base: int, next_seq: int, size: int):
        """Log window update."""
        self.debug(f"{peer}: window base={base}, next={next_seq}, size={size}", "WINDOW")

    def simulation_start(self, params: dict):
        """Log simulation start."""
        param_str = ", ".join(f"{k}={v}" for k, v in params.items())
        self.info(f"Simulation started: {param_str}", "SIM")

    def simulation_end(self, metrics: dict):
        """Log simulation end."""
        self.info(
            f"Simulation ended: delivered={metrics.get('messages_delivered', 0)}, "
            f"throughput={metrics.get('throughput', 0):.4f} msg/unit",
            "SIM"
        )

    def get_summary(self) -> dict:
        """Get logging summary."""
        return {
            'message_counts': dict(self.message_counts),
            'total_messages': sum(self.message_counts.values())
        }

    def close(self):
        """Close log file if open."""
        if self.file:
            self.file.close()
            self.file = None

    def __del__(self):
        """Cleanup on deletion."""
        self.close()


# Global logger instance
_global_logger: Optional[SimulationLogger] = None


def get_logger() -> SimulationLogger:
    """Get global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = SimulationLogger()
    return _global_logger
