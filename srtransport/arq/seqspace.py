"""
Sequence Number Arithmetic

All sequence numbers live in [0, SEQSPACE) and wrap around. Comparisons go
through in_window(); seqnums are never ordered with a plain < or >.
"""

from ..config import SEQSPACE


def in_window(seq: int, base: int, size: int, seqspace: int = SEQSPACE) -> bool:
    """
    Check whether seq lies in the circular interval [base, base + size).

    Args:
        seq: Sequence number to test
        base: First sequence number of the interval
        size: Number of sequence numbers in the interval
        seqspace: Size of the sequence space

    Returns:
        True if seq is inside the interval
    """
    return (seq - base) % seqspace < size


def seq_add(seq: int, n: int = 1, seqspace: int = SEQSPACE) -> int:
    """Advance a sequence number by n."""
    return (seq + n) % seqspace


def seq_sub(seq: int, n: int = 1, seqspace: int = SEQSPACE) -> int:
    """Step a sequence number back by n."""
    return (seq - n) % seqspace


def seq_distance(base: int, seq: int, seqspace: int = SEQSPACE) -> int:
    """Number of steps from base forward to seq."""
    return (seq - base) % seqspace
