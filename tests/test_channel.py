"""
Unit tests for the channel models.
"""

import pytest

from srtransport.arq.packet import Packet, is_corrupted
from srtransport.channel.unreliable import UnreliableChannel
from srtransport.channel.gilbert_elliot import GilbertElliottChannel, ChannelState
from srtransport.config import CORRUPT_FIELD_VALUE, MIN_DELAY, DELAY_SPREAD

from conftest import msg


def data_packet(seq=0):
    return Packet.create_data_packet(seq, msg(seq).data)


class TestUnreliableChannel:
    """Tests for the Bernoulli loss / corruption channel."""

    def test_perfect_channel(self):
        """Test a zero-probability channel returns an equal copy."""
        channel = UnreliableChannel(seed=1)
        packet = data_packet()

        arrived = channel.transmit(packet)

        assert arrived == packet
        assert arrived is not packet

    def test_total_loss(self):
        """Test loss probability 1 drops every packet."""
        channel = UnreliableChannel(loss_prob=1.0, seed=1)

        assert all(channel.transmit(data_packet()) is None for _ in range(50))
        assert channel.get_statistics()['packets_lost'] == 50

    def test_loss_rate(self):
        """Test the observed loss rate approaches the configured one."""
        channel = UnreliableChannel(loss_prob=0.3, seed=42)

        for _ in range(10000):
            channel.transmit(data_packet())

        assert 0.27 < channel.get_statistics()['observed_loss'] < 0.33

    def test_corruption_always_detectable(self):
        """Test every corrupted packet fails its checksum."""
        channel = UnreliableChannel(corrupt_prob=1.0, seed=7)

        for seq in range(200):
            arrived = channel.transmit(data_packet(seq % 12))
            assert is_corrupted(arrived)

    def test_corruption_pattern(self):
        """Test payload damage dominates header damage three to one."""
        channel = UnreliableChannel(corrupt_prob=1.0, seed=7)
        original = data_packet()
        payload_hits = seq_hits = ack_hits = 0

        for _ in range(4000):
            arrived = channel.transmit(original)
            if arrived.payload != original.payload:
                assert arrived.payload[:1] == b'Z'
                payload_hits += 1
            elif arrived.seqnum == CORRUPT_FIELD_VALUE:
                seq_hits += 1
            else:
                assert arrived.acknum == CORRUPT_FIELD_VALUE
                ack_hits += 1

        assert 0.70 < payload_hits / 4000 < 0.80
        assert seq_hits > 0
        assert ack_hits > 0

    def test_checksum_untouched(self):
        """Test the channel never rewrites the stored checksum."""
        channel = UnreliableChannel(corrupt_prob=1.0, seed=3)
        packet = data_packet()

        for _ in range(20):
            assert channel.transmit(packet).checksum == packet.checksum

    def test_delay_range(self):
        """Test delays are drawn from [MIN_DELAY, MIN_DELAY + DELAY_SPREAD)."""
        channel = UnreliableChannel(seed=5)

        delays = [channel.sample_delay() for _ in range(1000)]

        assert min(delays) >= MIN_DELAY
        assert max(delays) < MIN_DELAY + DELAY_SPREAD

    def test_reset_reproduces_sequence(self):
        """Test reset with the same seed replays the same decisions."""
        channel = UnreliableChannel(loss_prob=0.5, seed=9)
        first = [channel.transmit(data_packet()) is None for _ in range(100)]

        channel.reset(seed=9)
        second = [channel.transmit(data_packet()) is None for _ in range(100)]

        assert first == second
        assert channel.packets_transmitted == 100

    @pytest.mark.parametrize("kwargs", [{'loss_prob': -0.1}, {'corrupt_prob': 1.1}])
    def test_invalid_probability(self, kwargs):
        """Test probabilities outside [0, 1] are refused."""
        with pytest.raises(ValueError):
            UnreliableChannel(**kwargs)


class TestGilbertElliottChannel:
    """Tests for the Gilbert-Elliott burst loss channel."""

    def test_initialization(self):
        """Test channel initialization with default parameters."""
        channel = GilbertElliottChannel(seed=42)

        assert channel.good_loss == 0.01
        assert channel.bad_loss == 0.5
        assert channel.state in [ChannelState.GOOD, ChannelState.BAD]

    def test_steady_state_probabilities(self):
        """Test steady-state probability calculation."""
        channel = GilbertElliottChannel()

        pi_good, pi_bad = channel.get_steady_state_probabilities()

        assert abs(pi_good + pi_bad - 1.0) < 1e-10
        assert abs(pi_good - 0.25 / 0.30) < 1e-10

    def test_average_loss(self):
        """Test the long-run loss rate matches the steady-state average."""
        channel = GilbertElliottChannel(seed=42)
        expected = channel.get_average_loss()

        for _ in range(20000):
            channel.transmit(data_packet())

        observed = channel.get_statistics()['observed_loss']
        assert abs(observed - expected) < 0.03

    def test_losses_are_bursty(self):
        """Test losses cluster compared with an independent channel."""
        channel = GilbertElliottChannel(seed=1)
        lost = [channel.transmit(data_packet()) is None for _ in range(20000)]

        rate = sum(lost) / len(lost)
        after_loss = [b for a, b in zip(lost, lost[1:]) if a]
        conditional = sum(after_loss) / len(after_loss)

        assert conditional > 2 * rate

    def test_state_statistics(self):
        """Test the chain is stepped once per packet."""
        channel = GilbertElliottChannel(seed=3)

        for _ in range(500):
            channel.transmit(data_packet())

        stats = channel.get_statistics()
        assert stats['time_in_good'] + stats['time_in_bad'] == 500
        assert stats['state_transitions'] > 0
        assert stats['current_state'] in ('GOOD', 'BAD')

    def test_reset(self):
        """Test reset clears statistics."""
        channel = GilbertElliottChannel(seed=3)
        for _ in range(100):
            channel.transmit(data_packet())

        channel.reset(seed=3)

        assert channel.state_transitions == 0
        assert channel.packets_transmitted == 0

    @pytest.mark.parametrize("loss_prob", [0.0, 0.005, 0.1, 0.3, 0.9])
    def test_with_average_loss(self, loss_prob):
        """Test the state losses are chosen to average loss_prob."""
        channel = GilbertElliottChannel.with_average_loss(loss_prob, seed=1)

        assert channel.get_average_loss() == pytest.approx(loss_prob)
        assert channel.loss_prob == pytest.approx(loss_prob)
        assert 0.0 <= channel.good_loss <= channel.bad_loss <= 1.0

    def test_with_average_loss_observed(self):
        """Test the observed loss rate follows the requested average."""
        channel = GilbertElliottChannel.with_average_loss(0.3, seed=8)

        for _ in range(20000):
            channel.transmit(data_packet())

        assert abs(channel.get_statistics()['observed_loss'] - 0.3) < 0.04

    def test_degenerate_chain_rejected(self):
        """Test a chain with no transitions is refused."""
        with pytest.raises(ValueError):
            GilbertElliottChannel(p_gb=0.0, p_bg=0.0)
