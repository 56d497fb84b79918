"""
Unit tests for packets, checksums and sequence arithmetic.
"""

import dataclasses

import pytest

from srtransport.arq.packet import Packet, Message, compute_checksum, is_corrupted
from srtransport.arq.seqspace import in_window, seq_add, seq_sub, seq_distance
from srtransport.config import NOTINUSE, PAYLOAD_SIZE, SEQSPACE

from conftest import msg


class TestMessage:
    """Tests for Message."""

    def test_valid_message(self):
        """Test a 20-byte message is accepted."""
        assert Message(b"a" * PAYLOAD_SIZE).data == b"a" * PAYLOAD_SIZE

    @pytest.mark.parametrize("data", [b"", b"short", b"x" * (PAYLOAD_SIZE + 1)])
    def test_wrong_length_rejected(self, data):
        """Test messages must be exactly PAYLOAD_SIZE bytes."""
        with pytest.raises(ValueError):
            Message(data)


class TestPacket:
    """Tests for Packet."""

    def test_data_packet_creation(self):
        """Test creating a data packet."""
        packet = Packet.create_data_packet(3, msg(3).data)

        assert packet.seqnum == 3
        assert packet.acknum == NOTINUSE
        assert not packet.is_ack
        assert packet.checksum == 3 + NOTINUSE + sum(msg(3).data)

    def test_ack_packet_creation(self):
        """Test creating an ACK packet."""
        packet = Packet.create_ack_packet(1, 7)

        assert packet.is_ack
        assert packet.acknum == 7
        assert packet.checksum == compute_checksum(packet)

    def test_negative_seqnum_rejected(self):
        """Test sequence numbers cannot be negative."""
        with pytest.raises(ValueError):
            Packet(seqnum=-1)

    def test_wrong_payload_rejected(self):
        """Test payload must be PAYLOAD_SIZE bytes."""
        with pytest.raises(ValueError):
            Packet(seqnum=0, payload=b"abc")

    def test_serialization_deserialization(self):
        """Test packet serialization and deserialization."""
        original = Packet.create_data_packet(5, msg(5).data)

        serialized = original.serialize()
        deserialized, valid = Packet.deserialize(serialized)

        assert len(serialized) == Packet.WIRE_SIZE == 32
        assert valid
        assert deserialized == original

    def test_deserialize_detects_corruption(self):
        """Test the checksum flags a damaged payload byte."""
        serialized = bytearray(Packet.create_data_packet(5, msg(5).data).serialize())
        serialized[12] ^= 0x01

        deserialized, valid = Packet.deserialize(bytes(serialized))

        assert deserialized is not None
        assert not valid

    def test_deserialize_short_data(self):
        """Test truncated input is rejected."""
        assert Packet.deserialize(b"\x00" * 10) == (None, False)


class TestChecksum:
    """Tests for corruption detection."""

    def test_fresh_packets_are_valid(self):
        """Test constructed packets are never flagged."""
        for seq in range(SEQSPACE):
            assert not is_corrupted(Packet.create_data_packet(seq, msg(seq).data))
            assert not is_corrupted(Packet.create_ack_packet(seq % 2, seq))

    @pytest.mark.parametrize("change", [
        {'seqnum': 999999},
        {'acknum': 999999},
        {'payload': b'Z' + msg(0).data[1:]},
        {'payload': msg(0).data[:-1] + b'b'},
    ])
    def test_modified_packets_are_flagged(self, change):
        """Test changing any field under the stored checksum is detected."""
        packet = Packet.create_data_packet(0, msg(0).data)

        damaged = dataclasses.replace(packet, **change)

        assert damaged.checksum == packet.checksum
        assert is_corrupted(damaged)


class TestSeqSpace:
    """Tests for modular sequence arithmetic."""

    def test_in_window_simple(self):
        """Test interval membership without wrap."""
        assert in_window(0, 0, 6)
        assert in_window(5, 0, 6)
        assert not in_window(6, 0, 6)

    def test_in_window_wraps(self):
        """Test interval membership across the boundary."""
        assert in_window(11, 10, 6)
        assert in_window(3, 10, 6)
        assert not in_window(4, 10, 6)
        assert not in_window(9, 10, 6)

    def test_empty_window(self):
        """Test a zero-size interval contains nothing."""
        assert not any(in_window(s, 4, 0) for s in range(SEQSPACE))

    def test_add_sub(self):
        """Test stepping forward and back wraps around."""
        assert seq_add(11) == 0
        assert seq_add(10, 4) == 2
        assert seq_sub(0) == SEQSPACE - 1
        assert seq_sub(2, 6) == 8

    def test_distance(self):
        """Test forward distance in modular order."""
        assert seq_distance(10, 2) == 4
        assert seq_distance(3, 3) == 0
        assert seq_distance(4, 3) == SEQSPACE - 1
