"""
Configuration file for the Selective Repeat transport simulator.
Contains the fixed protocol constants and the emulator baseline parameters.
"""

import os

# =============================================================================
# PROTOCOL PARAMETERS
# =============================================================================

# Maximum number of buffered unacknowledged packets
WINDOWSIZE = 6

# Sequence number space; Selective Repeat needs at least 2 * WINDOWSIZE
SEQSPACE = 12

# Retransmission timer duration (logical time units)
RTT = 16.0

# Fixed message / packet payload size (bytes)
PAYLOAD_SIZE = 20

# Filler for header fields that are not being used
NOTINUSE = -1

# Payload filler for ACK packets
ACK_FILL_BYTE = b'0'

# =============================================================================
# EMULATOR PARAMETERS
# =============================================================================

# Byte the channel writes over payload[0] when corrupting a packet
CORRUPT_FILL_BYTE = b'Z'

# Value the channel writes into seqnum/acknum when corrupting a header
CORRUPT_FIELD_VALUE = 999999

# Corruption split: payload below the first bound, seqnum below the second,
# acknum otherwise
CORRUPT_PAYLOAD_SHARE = 0.75
CORRUPT_SEQNUM_SHARE = 0.875

# One-way delay = MIN_DELAY + DELAY_SPREAD * U(0, 1), measured from the last
# in-flight arrival toward the same peer so the medium never reorders
MIN_DELAY = 1.0
DELAY_SPREAD = 9.0

# Application layer
DEFAULT_NUM_MSGS = 10
DEFAULT_INTERARRIVAL_TIME = 10.0

# =============================================================================
# GILBERT-ELLIOTT BURST LOSS PARAMETERS
# =============================================================================

# Per-packet loss probability in each state
GOOD_STATE_LOSS = 0.01
BAD_STATE_LOSS = 0.5

# State transition probabilities (stepped once per packet)
P_GOOD_TO_BAD = 0.05
P_BAD_TO_GOOD = 0.25

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

LOSS_PROBS = [0.0, 0.1, 0.2, 0.3]
CORRUPT_PROBS = [0.0, 0.1, 0.2, 0.3]

# Number of simulation runs per (loss, corrupt) pair
RUNS_PER_CONFIGURATION = 5

# Messages per sweep run
SWEEP_NUM_MSGS = 200

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# Default RNG seed base (actual seed = base + run_id)
RNG_SEED_BASE = 42

# Simulation time limit (logical units) - failsafe
MAX_SIMULATION_TIME = 1_000_000.0

# Default logger verbosity (LogLevel.WARNING); trace levels 1 and 2 lower it
DEFAULT_LOG_LEVEL = 2

# =============================================================================
# OUTPUT PATHS
# =============================================================================

OUTPUT_DIR = os.path.join(os.getcwd(), "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

# Results CSV filename
RESULTS_CSV = os.path.join(OUTPUT_DIR, "results.csv")

# =============================================================================
# DERIVED PARAMETERS
# =============================================================================

def check_sequence_space(window_size, seqspace):
    """
    Validate a window / sequence space pair.

    Sender and receiver windows may only be told apart when the sequence
    space holds two full windows.
    """
    if window_size < 1:
        raise ValueError("Window size must be at least 1")
    if seqspace < 2 * window_size:
        raise ValueError(
            f"Sequence space {seqspace} too small for window {window_size} "
            f"(need at least {2 * window_size})"
        )


def calculate_steady_state_probabilities(p_gb=P_GOOD_TO_BAD, p_bg=P_BAD_TO_GOOD):
    """
    Calculate steady-state probabilities for Good and Bad states.
    π_G = P(B→G) / (P(G→B) + P(B→G))
    π_B = P(G→B) / (P(G→B) + P(B→G))
    """
    sum_transitions = p_gb + p_bg
    pi_good = p_bg / sum_transitions
    pi_bad = p_gb / sum_transitions
    return pi_good, pi_bad


def calculate_average_loss(good_loss=GOOD_STATE_LOSS, bad_loss=BAD_STATE_LOSS,
                           p_gb=P_GOOD_TO_BAD, p_bg=P_BAD_TO_GOOD):
    """
    Calculate average packet loss based on steady-state probabilities.
    loss_avg = π_G * loss_G + π_B * loss_B
    """
    pi_good, pi_bad = calculate_steady_state_probabilities(p_gb, p_bg)
    return pi_good * good_loss + pi_bad * bad_loss


def calculate_state_losses(average_loss, p_gb=P_GOOD_TO_BAD, p_bg=P_BAD_TO_GOOD,
                           good_loss=GOOD_STATE_LOSS):
    """
    Split a target average loss across the Good and Bad states.

    Keeps good_loss and solves loss_avg = π_G * loss_G + π_B * loss_B for
    loss_B. Below good_loss all loss moves to the Bad state; when loss_B
    would exceed 1 it is pinned at 1 and loss_G absorbs the rest.

    Returns:
        Tuple of (loss_G, loss_B)
    """
    if not 0.0 <= average_loss <= 1.0:
        raise ValueError(f"average_loss must be within [0, 1], got {average_loss}")
    pi_good, pi_bad = calculate_steady_state_probabilities(p_gb, p_bg)

    if average_loss < good_loss:
        good_loss = 0.0

    bad_loss = (average_loss - pi_good * good_loss) / pi_bad
    if bad_loss > 1.0:
        return (average_loss - pi_bad) / pi_good, 1.0
    return good_loss, bad_loss
