"""
Phase dynamics for the coherence field.

Mean-field Kuramoto update with directed pairwise couplings:

    θ_i' = θ_i + [ω_i + K·R·sin(Ψ - θ_i) + Σ κ_e·sin(θ_target - θ_i)]·dt   (mod 2π)

where the sum runs over edges whose source is i. Every phase in one
epoch is computed from the epoch-start phases of the previous snapshot,
so the result does not depend on the order participants are visited in.

(c) 2026 Anywave Creations
MIT License
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional, Tuple
import hashlib
import logging

from .constants import LARGE_AMPLITUDE, LARGE_AMPLITUDE_DAMPING
from .errors import InvalidTimeStep
from .fixed_point import TWO_PI, mul, normalize_phase, sin
from .models import FieldSnapshot

log = logging.getLogger(__name__)


def _digest_int(*parts: object) -> int:
    payload = ":".join(str(p) for p in parts).encode("utf-8")
    return int.from_bytes(hashlib.sha256(payload).digest(), "big")


def initial_phase(participant_id: str, epoch: int) -> int:
    """Deterministic entry phase derived from the id and entry epoch."""
    return _digest_int(participant_id, epoch) % TWO_PI


def natural_frequency(participant_id: str, amplitude: int,
                      base_frequency: int, frequency_spread: int) -> int:
    """Intrinsic frequency assigned at entry.

    Large amplitudes are slowed by 5%; every participant gets a
    deterministic detune in [-spread, +spread] from its id digest.
    """
    omega = base_frequency
    if amplitude > LARGE_AMPLITUDE:
        omega = mul(omega, LARGE_AMPLITUDE_DAMPING)
    if frequency_spread > 0:
        detune = _digest_int("frequency", participant_id) % (2 * frequency_spread + 1)
        omega += detune - frequency_spread
    return omega


def phase_velocity(theta: int, omega: int, order_parameter: int,
                   global_phase: int, coupling_constant: int,
                   edges: Iterable[Tuple[int, int]] = ()) -> int:
    """dθ/dt for one oscillator.

    Args:
        theta: Oscillator phase.
        omega: Natural frequency.
        order_parameter: Field R.
        global_phase: Field Ψ.
        coupling_constant: Global coupling K.
        edges: (strength, target phase) for each outgoing coupling.
    """
    velocity = omega
    velocity += mul(mul(coupling_constant, order_parameter), sin(global_phase - theta))
    for strength, target_phase in edges:
        velocity += mul(strength, sin(target_phase - theta))
    return velocity


def advance_phase(snapshot: FieldSnapshot, participant_id: str,
                  dt: int, coupling_constant: int) -> int:
    """New phase of one participant after dt, read from epoch-start phases."""
    if dt <= 0:
        raise InvalidTimeStep(f"time step must be positive, got {dt}")
    p = snapshot.get_participant(participant_id)
    theta = p.epoch_start_phase
    edges = [
        (c.strength, snapshot.participants[c.target_id].epoch_start_phase)
        for c in snapshot.outgoing(participant_id)
        if c.target_id in snapshot.participants
    ]
    velocity = phase_velocity(
        theta,
        p.natural_frequency,
        snapshot.field.order_parameter,
        snapshot.field.global_phase,
        coupling_constant,
        edges,
    )
    return normalize_phase(theta + mul(velocity, dt))


def compute_phases(snapshot: FieldSnapshot, dt: int, coupling_constant: int,
                   workers: Optional[int] = None) -> Dict[str, int]:
    """New phases for every participant of a frozen snapshot.

    With workers > 1 the per-participant updates run on a thread pool;
    the result is identical either way.
    """
    if dt <= 0:
        raise InvalidTimeStep(f"time step must be positive, got {dt}")
    ids = sorted(snapshot.participants)

    def _one(pid: str) -> int:
        return advance_phase(snapshot, pid, dt, coupling_constant)

    if workers and workers > 1 and len(ids) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            phases = list(pool.map(_one, ids))
    else:
        phases = [_one(pid) for pid in ids]

    log.debug("Computed %d phases (dt=%d, workers=%s)", len(ids), dt, workers)
    return dict(zip(ids, phases))
