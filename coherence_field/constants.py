"""
Constants, participation states and harmonic cycles.

All thresholds are fixed-point mantissas (scale PRECISION). Multiplier
tables are explicit dicts keyed by the closed enums below.

(c) 2026 Anywave Creations
MIT License
"""

from enum import Enum

from .fixed_point import (
    PRECISION,
    PHI,
    PHI_SQUARED,
    PHI_FOURTH,
    QUARTER_PI,
)


class ParticipationState(Enum):
    """Participation state of an oscillator in the field.

    ATTUNING -> RESONANT -> ENTRAINED -> GOLDEN, with DRIFTING reachable
    from every other state and always returning to ATTUNING.
    """
    ATTUNING = "attuning"
    RESONANT = "resonant"
    ENTRAINED = "entrained"
    GOLDEN = "golden"
    DRIFTING = "drifting"

    @property
    def emission_multiplier(self) -> int:
        return EMISSION_MULTIPLIERS[self]

    @property
    def governance_multiplier(self) -> int:
        return GOVERNANCE_MULTIPLIERS[self]


class HarmonicCycle(Enum):
    """Commitment cycle chosen at entry; fixes the decoherence denominator."""
    QUARTER = "quarter"
    HALF = "half"
    FULL = "full"
    GOLDEN = "golden"

    @property
    def epochs(self) -> int:
        return CYCLE_EPOCHS[self]


EMISSION_MULTIPLIERS = {
    ParticipationState.ATTUNING: PRECISION // 2,
    ParticipationState.RESONANT: PRECISION,
    ParticipationState.ENTRAINED: PHI,
    ParticipationState.GOLDEN: PHI_SQUARED,
    ParticipationState.DRIFTING: 0,
}

GOVERNANCE_MULTIPLIERS = {
    ParticipationState.ATTUNING: PRECISION // 2,
    ParticipationState.RESONANT: PRECISION,
    ParticipationState.ENTRAINED: 2 * PRECISION,
    ParticipationState.GOLDEN: PHI,
    ParticipationState.DRIFTING: 0,
}

CYCLE_EPOCHS = {
    HarmonicCycle.QUARTER: 91,
    HarmonicCycle.HALF: 182,
    HarmonicCycle.FULL: 365,
    HarmonicCycle.GOLDEN: 591,  # φ × 365
}

# =============================================================================
# STATE MACHINE THRESHOLDS
# =============================================================================

RESONANT_LOCK_THRESHOLD = 500_000_000    # 0.5
ENTRAINED_LOCK_THRESHOLD = 800_000_000   # 0.8
GOLDEN_LOCK_THRESHOLD = 900_000_000      # 0.9

LOCK_THRESHOLDS = {
    ParticipationState.ATTUNING: RESONANT_LOCK_THRESHOLD,
    ParticipationState.RESONANT: ENTRAINED_LOCK_THRESHOLD,
    ParticipationState.ENTRAINED: GOLDEN_LOCK_THRESHOLD,
    ParticipationState.GOLDEN: GOLDEN_LOCK_THRESHOLD,
}

RESONANT_EPOCHS = 10
ENTRAINED_EPOCHS = 50

ENTRAINED_DEPTH_THRESHOLD = 5 * PRECISION
GOLDEN_DEPTH_THRESHOLD = PHI_FOURTH

DRIFT_THRESHOLD = QUARTER_PI

# =============================================================================
# PARTICIPANT DEFAULTS
# =============================================================================

INITIAL_STABILITY = PRECISION // 2
INITIAL_PHASE_LOCK_INTEGRAL = 0

# Amplitudes above this get a 5% lower natural frequency
LARGE_AMPLITUDE = 1_000_000_000
LARGE_AMPLITUDE_DAMPING = 950_000_000

# =============================================================================
# FIELD METRICS
# =============================================================================

DEPTH_BASELINE = 5 * PRECISION           # initial network coherence depth
NETWORK_DEPTH_GATE = 800_000_000         # R above which depth growth is ungated
NETWORK_DEPTH_DECLINE_DIVISOR = 10       # 10% of the gap per epoch
COHERENCE_PEAK_THRESHOLD = 900_000_000   # R > 0.9

# =============================================================================
# DECOHERENCE
# =============================================================================

MAX_DECOHERENCE_COST = 100_000_000       # 10% of amplitude
