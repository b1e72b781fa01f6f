"""
Participation state machine.

Transition rules (at most one per participant per epoch):
- any -> DRIFTING: drift from Ψ exceeds π/4
- DRIFTING -> ATTUNING: drift back within π/4 (counter restarts at 0)
- ATTUNING -> RESONANT: lock > 0.5 for 10 consecutive epochs
- RESONANT -> ENTRAINED: lock > 0.8 for 50 consecutive epochs and depth > 5.0
- ENTRAINED -> GOLDEN: depth > φ⁴ and lock > 0.9

The counter tracks consecutive epochs meeting the current state's own
lock threshold and resets on a miss and on every transition.

(c) 2026 Anywave Creations
MIT License
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import logging

from .constants import (
    DRIFT_THRESHOLD,
    ENTRAINED_DEPTH_THRESHOLD,
    ENTRAINED_EPOCHS,
    GOLDEN_DEPTH_THRESHOLD,
    GOLDEN_LOCK_THRESHOLD,
    LOCK_THRESHOLDS,
    RESONANT_EPOCHS,
    ParticipationState,
)
from .fixed_point import PRECISION, angular_distance, cos, mul
from .models import Participant

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StateTransition:
    participant_id: str
    previous: ParticipationState
    current: ParticipationState
    epoch: int


def phase_lock(theta: int, global_phase: int) -> int:
    """(cos(θ - Ψ) + 1) / 2, in [0, 1]."""
    return (cos(theta - global_phase) + PRECISION) // 2


def drift(theta: int, global_phase: int) -> int:
    """Wrapped |θ - Ψ| in [0, π]."""
    return angular_distance(theta, global_phase)


def next_state(state: ParticipationState, counter: int, lock: int,
               drift_angle: int, depth: int) -> Tuple[ParticipationState, int]:
    """Evaluate one epoch of the state machine.

    Returns:
        (new state, new phase-lock epoch counter).
    """
    if state != ParticipationState.DRIFTING and drift_angle > DRIFT_THRESHOLD:
        return ParticipationState.DRIFTING, 0

    if state == ParticipationState.DRIFTING:
        if drift_angle <= DRIFT_THRESHOLD:
            return ParticipationState.ATTUNING, 0
        return ParticipationState.DRIFTING, 0

    counter = counter + 1 if lock > LOCK_THRESHOLDS[state] else 0

    if state == ParticipationState.ATTUNING:
        if counter >= RESONANT_EPOCHS:
            return ParticipationState.RESONANT, 0
    elif state == ParticipationState.RESONANT:
        if counter >= ENTRAINED_EPOCHS and depth > ENTRAINED_DEPTH_THRESHOLD:
            return ParticipationState.ENTRAINED, 0
    elif state == ParticipationState.ENTRAINED:
        if depth > GOLDEN_DEPTH_THRESHOLD and lock > GOLDEN_LOCK_THRESHOLD:
            return ParticipationState.GOLDEN, 0

    return state, counter


def evaluate_participant(participant: Participant, global_phase: int, epoch: int,
                         stability_smoothing: int,
                         integral_smoothing: int) -> Optional[StateTransition]:
    """Smooth stability and integral, re-derive depth, apply the transition.

    Mutates the participant in place.

    Returns:
        The transition taken, or None if the state did not change.
    """
    lock = phase_lock(participant.phase, global_phase)
    participant.stability += mul(stability_smoothing, lock - participant.stability)
    participant.phase_lock_integral += mul(
        integral_smoothing, lock - participant.phase_lock_integral
    )
    participant.refresh_depth()

    previous = participant.state
    state, counter = next_state(
        previous,
        participant.phase_lock_epoch_counter,
        lock,
        drift(participant.phase, global_phase),
        participant.coherence_depth,
    )
    participant.state = state
    participant.phase_lock_epoch_counter = counter

    if state == previous:
        return None
    log.info("Participant %s: %s -> %s at epoch %d",
             participant.participant_id, previous.value, state.value, epoch)
    return StateTransition(participant.participant_id, previous, state, epoch)
