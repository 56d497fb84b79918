"""
Unit tests for configuration helpers, logging, metrics and timers.
"""

import io

import pytest

from srtransport.config import (
    check_sequence_space, calculate_steady_state_probabilities, calculate_average_loss,
    calculate_state_losses
)
from srtransport.simulation.timer import PeerTimer, TimerState
from srtransport.utils.logger import SimulationLogger, LogLevel, level_for_trace
from srtransport.utils.metrics import MetricsCollector, ProtocolCounters


class TestConfig:
    """Tests for configuration helpers."""

    @pytest.mark.parametrize("window, seqspace", [(6, 12), (6, 20), (1, 2)])
    def test_valid_sequence_space(self, window, seqspace):
        """Test sequence spaces of at least two windows are accepted."""
        check_sequence_space(window, seqspace)

    @pytest.mark.parametrize("window, seqspace", [(6, 7), (6, 11), (0, 12)])
    def test_invalid_sequence_space(self, window, seqspace):
        """Test undersized sequence spaces and empty windows are refused."""
        with pytest.raises(ValueError):
            check_sequence_space(window, seqspace)

    def test_average_loss(self):
        """Test the steady-state average loss formula."""
        pi_good, pi_bad = calculate_steady_state_probabilities(0.1, 0.3)

        assert pi_good == pytest.approx(0.75)
        assert calculate_average_loss(0.0, 1.0, 0.1, 0.3) == pytest.approx(pi_bad)

    @pytest.mark.parametrize("average, expected", [
        (0.0, (0.0, 0.0)),
        (0.005, (0.0, 0.03)),
        (0.1, (0.01, 0.55)),
        (0.5, (0.4, 1.0)),
        (1.0, (1.0, 1.0)),
    ])
    def test_state_losses(self, average, expected):
        """Test a target average loss is split across the two states."""
        good, bad = calculate_state_losses(average)

        assert (good, bad) == pytest.approx(expected)
        assert calculate_average_loss(good, bad) == pytest.approx(average)

    def test_state_losses_range(self):
        """Test averages outside [0, 1] are refused."""
        with pytest.raises(ValueError):
            calculate_state_losses(1.2)


class TestPeerTimer:
    """Tests for the per-peer logical timer."""

    def test_start_and_fire(self):
        """Test a current interrupt expires the timer."""
        timer = PeerTimer()
        generation = timer.start(current_time=5.0, timeout=16.0)

        assert timer.is_running
        assert timer.get_expiry_time() == 21.0
        assert timer.get_remaining_time(10.0) == 11.0
        assert timer.fire(generation)
        assert timer.state == TimerState.EXPIRED
        assert not timer.fire(generation)

    def test_stop_invalidates_interrupt(self):
        """Test a stopped timer ignores its old interrupt."""
        timer = PeerTimer()
        generation = timer.start(0.0, 16.0)
        timer.stop()

        assert not timer.fire(generation)
        assert timer.get_remaining_time(1.0) == 0.0

    def test_restart_invalidates_old_interrupt(self):
        """Test only the latest arming can fire."""
        timer = PeerTimer()
        old = timer.start(0.0, 16.0)
        timer.stop()
        new = timer.start(2.0, 16.0)

        assert not timer.fire(old)
        assert timer.fire(new)
        assert timer.starts == 2


class TestSimulationLogger:
    """Tests for SimulationLogger."""

    @pytest.mark.parametrize("trace, level", [
        (0, LogLevel.WARNING), (1, LogLevel.INFO), (2, LogLevel.DEBUG), (3, LogLevel.DEBUG)
    ])
    def test_level_for_trace(self, trace, level):
        """Test emulator trace levels map onto log levels."""
        assert level_for_trace(trace) == level

    def test_default_level(self):
        """Test a logger built without a level only shows warnings and errors."""
        stream = io.StringIO()
        logger = SimulationLogger(stream=stream, use_colors=False)

        logger.info("chatter")
        logger.warning("careful")

        assert logger.level == LogLevel.WARNING
        assert "chatter" not in stream.getvalue()
        assert "careful" in stream.getvalue()

    def test_level_filtering(self):
        """Test messages below the level are suppressed."""
        stream = io.StringIO()
        logger = SimulationLogger(name="T", level=LogLevel.INFO, stream=stream, use_colors=False)

        logger.debug("hidden")
        logger.info("shown", "TX")

        output = stream.getvalue()
        assert "hidden" not in output
        assert "[T] [TX] shown" in output
        assert logger.get_summary()['total_messages'] == 1

    def test_sim_time_prefix(self):
        """Test simulated time is printed when set."""
        stream = io.StringIO()
        logger = SimulationLogger(level=LogLevel.DEBUG, stream=stream, use_colors=False)
        logger.set_sim_time(12.5)

        logger.packet_sent("A", 3)

        assert "[   12.5000]" in stream.getvalue()
        assert "A: sending packet 3 to layer 3" in stream.getvalue()

    def test_log_file_has_no_colors(self, tmp_path):
        """Test the log file copy is stripped of ANSI codes."""
        log_file = tmp_path / "logs" / "run.log"
        logger = SimulationLogger(
            level=LogLevel.DEBUG, log_file=str(log_file), stream=io.StringIO()
        )

        logger.warning("careful")
        logger.close()

        content = log_file.read_text()
        assert "careful" in content
        assert "\033[" not in content


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_throughput_and_efficiency(self):
        """Test derived rates."""
        metrics = MetricsCollector()
        metrics.start(0.0)
        for _ in range(5):
            metrics.record_packet_sent(from_a=True)
        for delay in (2.0, 4.0, 6.0, 8.0):
            metrics.record_message_delivered(delay)
        metrics.finish(20.0)

        assert metrics.calculate_throughput() == pytest.approx(0.2)
        assert metrics.calculate_efficiency() == pytest.approx(0.8)
        assert metrics.get_delay_statistics()['mean'] == pytest.approx(5.0)

    def test_zero_time_throughput(self):
        """Test throughput is zero before any time has elapsed."""
        assert MetricsCollector().calculate_throughput() == 0.0

    def test_summary_includes_counters(self):
        """Test protocol counters appear in summaries and CSV rows."""
        counters = ProtocolCounters(packets_resent=3, window_full=1)
        metrics = MetricsCollector(counters)
        metrics.record_message_generated(accepted=True)
        metrics.record_message_generated(accepted=False)

        summary = metrics.get_summary()
        row = metrics.to_csv_row()

        assert summary['packets_resent'] == 3
        assert summary['window_full'] == 1
        assert summary['messages_generated'] == 2
        assert summary['messages_accepted'] == 1
        assert metrics.calculate_retransmission_rate() == 3.0
        assert 'delay_mean' in row and 'delay' not in row

    def test_reset_clears_counters(self):
        """Test reset zeroes the shared counters too."""
        counters = ProtocolCounters(new_acks=4)
        metrics = MetricsCollector(counters)
        metrics.record_packet_lost()

        metrics.reset()

        assert counters.as_dict() == {
            'packets_received': 0, 'new_acks': 0, 'packets_resent': 0, 'window_full': 0
        }
        assert metrics.packets_lost == 0
