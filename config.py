"""
Configuration file for the Stop-and-Wait ARQ Simulator.
Contains the protocol constants, network presets and sweep settings.
"""

import os

# =============================================================================
# PROTOCOL CONSTANTS
# =============================================================================

# Maximum payload carried by a single data frame (bytes)
MAX_DATA_SIZE = 1024

# Sequence number space (0, 1) for stop-and-wait
MAX_SEQ_NUM = 2

# Retransmission timeout (milliseconds)
TIMEOUT_MS = 1000

# Retransmissions allowed before a message is given up
MAX_RETRIES = 3

# =============================================================================
# FRAME LAYOUT (in bytes)
# =============================================================================

# type(1) + seq/ack(1) + payload length(2)
FRAME_HEADER_SIZE = 4
CHECKSUM_SIZE = 4

# Checksum is a plain byte sum, wrapped to 32 bits
CHECKSUM_MODULUS = 2**32

# =============================================================================
# DEFAULT NETWORK ENVIRONMENT
# =============================================================================

DEFAULT_LOSS_PROBABILITY = 0.1   # 10% loss
DEFAULT_MIN_DELAY_MS = 50
DEFAULT_MAX_DELAY_MS = 200

# Preset environments: (loss probability, min delay ms, max delay ms)
NETWORK_PRESETS = {
    'ideal': (0.0, 10, 50),
    'normal': (0.1, 50, 150),
    'harsh': (0.3, 200, 500),
}

# =============================================================================
# PARAMETER SWEEP CONFIGURATION
# =============================================================================

# Loss probabilities to evaluate
LOSS_PROBABILITIES = [0.0, 0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7]

# Number of transmissions per configuration
RUNS_PER_CONFIGURATION = 50

# Message used by sweeps and preset scenarios
SWEEP_MESSAGE = "Stop-and-wait protocol test message"

# =============================================================================
# SIMULATION SETTINGS
# =============================================================================

# RNG seed base (seed = base + condition index * 100000 + run_id)
RNG_SEED_BASE = 42

# Logging verbosity levels
LOG_LEVEL_DEBUG = 0
LOG_LEVEL_INFO = 1
LOG_LEVEL_WARNING = 2
LOG_LEVEL_ERROR = 3
LOG_LEVEL_CRITICAL = 4
LOG_LEVEL_OFF = 5

# Protocol core stays silent unless a caller passes or installs a logger
DEFAULT_LOG_LEVEL = LOG_LEVEL_OFF

# =============================================================================
# OUTPUT PATHS
# =============================================================================

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DATA_DIR = os.path.join(BASE_DIR, "data")
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
PLOTS_DIR = os.path.join(OUTPUT_DIR, "plots")

# Results CSV filename
RESULTS_CSV = os.path.join(OUTPUT_DIR, "loss_sweep.csv")

# =============================================================================
# DERIVED PARAMETERS (calculated from fixed parameters)
# =============================================================================

def calculate_data_frame_size(payload_size):
    """Calculate serialized size of a data frame."""
    return FRAME_HEADER_SIZE + payload_size + CHECKSUM_SIZE

def calculate_ack_frame_size():
    """Calculate serialized size of an ACK frame (no payload)."""
    return FRAME_HEADER_SIZE + CHECKSUM_SIZE

def calculate_worst_case_rtt_ms(max_delay_ms):
    """
    Worst-case round trip for one exchange.
    RTT = data delay + ack delay
    """
    return 2 * max_delay_ms

def calculate_expected_attempts(loss_probability):
    """
    Expected transmissions per delivered message, ignoring the retry cap.
    A round trip survives with probability (1 - p)^2.
    """
    success = (1 - loss_probability) ** 2
    if success <= 0:
        return float('inf')
    return 1 / success


# Print configuration summary
if __name__ == "__main__":
    print("=" * 60)
    print("STOP-AND-WAIT ARQ SIMULATOR - CONFIGURATION")
    print("=" * 60)
    print(f"\nProtocol:")
    print(f"  Max data size: {MAX_DATA_SIZE} bytes")
    print(f"  Sequence space: {MAX_SEQ_NUM}")
    print(f"  Timeout: {TIMEOUT_MS} ms")
    print(f"  Max retries: {MAX_RETRIES}")

    print(f"\nDefault Network:")
    print(f"  Loss: {DEFAULT_LOSS_PROBABILITY * 100:.1f}%")
    print(f"  Delay: {DEFAULT_MIN_DELAY_MS}-{DEFAULT_MAX_DELAY_MS} ms")

    print(f"\nPresets:")
    for name, (loss, min_delay, max_delay) in NETWORK_PRESETS.items():
        rtt = calculate_worst_case_rtt_ms(max_delay)
        print(f"  {name:7s} loss={loss * 100:4.1f}%  delay={min_delay}-{max_delay} ms  "
              f"worst RTT={rtt} ms")

    print(f"\nLoss Sweep:")
    print(f"  Loss probabilities: {LOSS_PROBABILITIES}")
    print(f"  Runs per config: {RUNS_PER_CONFIGURATION}")
    for p in LOSS_PROBABILITIES:
        print(f"  p={p:.1f}: expected attempts = {calculate_expected_attempts(p):.2f}")
