"""
Packet Structure for the Selective Repeat Transport

This module defines the application message, the layer-3 packet exchanged
between the two peers, and the additive checksum used to detect corruption.
"""

import struct
from typing import Optional, Tuple
from dataclasses import dataclass

from ..config import PAYLOAD_SIZE, NOTINUSE, ACK_FILL_BYTE


@dataclass
class Message:
    """
    Application datum passed between layer 5 and the transport.

    Attributes:
        data: Exactly PAYLOAD_SIZE bytes
    """

    data: bytes

    def __post_init__(self):
        """Validate message after initialization."""
        if not isinstance(self.data, (bytes, bytearray)):
            raise ValueError("Message data must be bytes")
        if len(self.data) != PAYLOAD_SIZE:
            raise ValueError(f"Message must be exactly {PAYLOAD_SIZE} bytes")
        self.data = bytes(self.data)


@dataclass
class Packet:
    """
    Layer 3 Packet Structure.

    Wire Layout (32 bytes, matches the emulator's C struct pkt):
        - Sequence Number: 4 bytes (signed int)
        - ACK Number: 4 bytes (signed int, NOTINUSE on data packets)
        - Checksum: 4 bytes (signed int)
        - Payload: 20 bytes

    Attributes:
        seqnum: Sequence number
        acknum: Acknowledged sequence number (ACK packets only)
        payload: Fixed-size payload
        checksum: seqnum + acknum + sum of payload bytes, set at construction
    """

    seqnum: int
    acknum: int = NOTINUSE
    payload: bytes = b'\x00' * PAYLOAD_SIZE
    checksum: int = 0

    # Little-endian: seqnum(4) + acknum(4) + checksum(4) + payload(20)
    WIRE_FORMAT = '<iii%ds' % PAYLOAD_SIZE
    WIRE_SIZE = struct.calcsize(WIRE_FORMAT)

    def __post_init__(self):
        """Validate packet after initialization."""
        if self.seqnum < 0:
            raise ValueError("Sequence number must be non-negative")
        if len(self.payload) != PAYLOAD_SIZE:
            raise ValueError(f"Payload must be exactly {PAYLOAD_SIZE} bytes")
        self.payload = bytes(self.payload)

    @property
    def is_ack(self) -> bool:
        """Check whether this packet carries an acknowledgement."""
        return self.acknum != NOTINUSE

    def serialize(self) -> bytes:
        """
        Serialize the packet to bytes.

        Returns:
            Serialized packet as bytes
        """
        return struct.pack(
            self.WIRE_FORMAT,
            self.seqnum,
            self.acknum,
            self.checksum,
            self.payload
        )

    @classmethod
    def deserialize(cls, data: bytes) -> Tuple[Optional['Packet'], bool]:
        """
        Deserialize bytes to a Packet object.

        Args:
            data: Serialized packet bytes

        Returns:
            Tuple of (Packet or None, checksum valid)
        """
        if len(data) < cls.WIRE_SIZE:
            return None, False

        seqnum, acknum, checksum, payload = struct.unpack(
            cls.WIRE_FORMAT, data[:cls.WIRE_SIZE]
        )
        if seqnum < 0:
            return None, False

        packet = cls(
            seqnum=seqnum,
            acknum=acknum,
            payload=payload,
            checksum=checksum
        )
        return packet, not is_corrupted(packet)

    @classmethod
    def create_data_packet(cls, seqnum: int, payload: bytes) -> 'Packet':
        """
        Create a DATA packet.

        Args:
            seqnum: Sequence number
            payload: Message bytes

        Returns:
            DATA packet with its checksum set
        """
        packet = cls(seqnum=seqnum, acknum=NOTINUSE, payload=payload)
        packet.checksum = compute_checksum(packet)
        return packet

    @classmethod
    def create_ack_packet(cls, seqnum: int, acknum: int) -> 'Packet':
        """
        Create an ACK packet.

        Args:
            seqnum: Value for the (otherwise unused) seqnum field
            acknum: Sequence number being acknowledged

        Returns:
            ACK packet with its checksum set
        """
        packet = cls(
            seqnum=seqnum,
            acknum=acknum,
            payload=ACK_FILL_BYTE * PAYLOAD_SIZE
        )
        packet.checksum = compute_checksum(packet)
        return packet

    def __repr__(self) -> str:
        return (f"Packet(seq={self.seqnum}, ack={self.acknum}, "
                f"checksum={self.checksum}, payload={self.payload!r})")


def compute_checksum(packet: Packet) -> int:
    """
    Compute the additive checksum of a packet.

    The channel overwrites payload or header fields but never the stored
    checksum, so any change yields a different sum.
    """
    return packet.seqnum + packet.acknum + sum(packet.payload)


def is_corrupted(packet: Packet) -> bool:
    """Check whether the stored checksum disagrees with the packet contents."""
    return packet.checksum != compute_checksum(packet)
