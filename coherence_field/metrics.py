"""
Aggregate field metrics: order parameter, global phase, decentralization
coefficient and network coherence depth.

    R·e^{iΨ} = (1/W) Σ a_i·e^{iθ_i},    W = Σ a_i

(c) 2026 Anywave Creations
MIT License
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .constants import DEPTH_BASELINE, NETWORK_DEPTH_DECLINE_DIVISOR, NETWORK_DEPTH_GATE
from .fixed_point import (
    PRECISION,
    atan2,
    clamp,
    div,
    magnitude,
    mul,
    normalize_phase,
    sincos,
    tdiv,
)
from .models import FieldSnapshot


@dataclass(frozen=True)
class FieldMetrics:
    """Aggregates recomputed at every field advance."""
    order_parameter: int
    global_phase: int
    decentralization_coefficient: int
    network_coherence_depth: int
    total_weight: int
    participant_count: int


def order_parameter(oscillators: Sequence[Tuple[int, int]]) -> Tuple[int, int]:
    """Amplitude-weighted Kuramoto order parameter.

    Args:
        oscillators: (amplitude, phase) pairs.

    Returns:
        (R, Ψ). An empty field is defined as (1.0, 0); a field whose
        oscillators all share one phase gives exactly (1.0, that phase).
    """
    if not oscillators:
        return PRECISION, 0

    phases = {normalize_phase(theta) for _, theta in oscillators}
    if len(phases) == 1:
        return PRECISION, phases.pop()

    total = sum(a for a, _ in oscillators)
    if total <= 0:
        return PRECISION, 0

    x = 0
    y = 0
    for amplitude, theta in oscillators:
        s, c = sincos(theta)
        x += amplitude * c
        y += amplitude * s
    x = tdiv(x, total)
    y = tdiv(y, total)

    r = clamp(magnitude(x, y), 0, PRECISION)
    psi = atan2(y, x)
    return r, psi


def decentralization_coefficient(amplitudes: Iterable[int],
                                 target_participant_count: int) -> int:
    """Σ min(s_i, 1/N) / max(s_i, 1/N) with s_i the amplitude share.

    Lies in [0, N]; equals N when N equal holders exist.
    """
    amplitudes = [a for a in amplitudes if a > 0]
    total = sum(amplitudes)
    if total == 0:
        return 0
    n = target_participant_count
    coefficient = 0
    for a in amplitudes:
        scaled = a * n
        coefficient += min(scaled, total) * PRECISION // max(scaled, total)
    return clamp(coefficient, 0, n * PRECISION)


def depth_gate(r: int) -> int:
    """Growth attenuation: 1 above R = 0.8, (R/0.8)² below."""
    if r > NETWORK_DEPTH_GATE:
        return PRECISION
    ratio = div(r, NETWORK_DEPTH_GATE)
    return mul(ratio, ratio)


def network_coherence_depth(current: int,
                            weighted_depths: Sequence[Tuple[int, int]],
                            r: int, growth: int) -> int:
    """Smoothed amplitude-weighted mean of participant depths.

    Args:
        current: Network depth from the previous epoch.
        weighted_depths: (amplitude, coherence_depth) pairs.
        r: Order parameter of the new phases.
        growth: Maximum fractional growth per epoch.
    """
    total = sum(a for a, _ in weighted_depths)
    if not weighted_depths or total <= 0:
        return current

    target = sum(a * d for a, d in weighted_depths) // total
    if target > current:
        # floor at the baseline so a collapsed depth can recover
        cap = mul(mul(max(current, DEPTH_BASELINE), growth), depth_gate(r))
        return current + min(target - current, cap)
    if target < current:
        return current - tdiv(current - target, NETWORK_DEPTH_DECLINE_DIVISOR)
    return current


def compute_field_metrics(snapshot: FieldSnapshot, target_participant_count: int,
                          network_depth_growth: int,
                          phases: Optional[Mapping[str, int]] = None) -> FieldMetrics:
    """Recompute every aggregate from the snapshot's participants.

    Args:
        snapshot: Snapshot whose participants are measured.
        target_participant_count: Ideal holder count for decentralization.
        network_depth_growth: Max fractional depth growth per epoch.
        phases: Optional phase overrides keyed by participant id.
    """
    participants = [snapshot.participants[pid] for pid in sorted(snapshot.participants)]
    phases = phases or {}
    oscillators = [
        (p.amplitude, phases.get(p.participant_id, p.phase)) for p in participants
    ]
    r, psi = order_parameter(oscillators)
    depth = network_coherence_depth(
        snapshot.field.network_coherence_depth,
        [(p.amplitude, p.coherence_depth) for p in participants],
        r,
        network_depth_growth,
    )
    return FieldMetrics(
        order_parameter=r,
        global_phase=psi,
        decentralization_coefficient=decentralization_coefficient(
            (p.amplitude for p in participants), target_participant_count
        ),
        network_coherence_depth=depth,
        total_weight=sum(p.amplitude for p in participants),
        participant_count=len(participants),
    )
