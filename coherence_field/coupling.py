"""
Directed phase couplings and decoherence (early exit).

A coupling pulls its source toward its target's phase and locks part of
the source's amplitude, which earns a proportional share of the source's
reward as bookkeeping. Decoherence removes a participant, charging

    cost = amplitude · phase_lock_integral · (1 - progress)^φ · 0.1

where progress is the fraction of the harmonic cycle served.

(c) 2026 Anywave Creations
MIT License
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping
import logging

from .constants import MAX_DECOHERENCE_COST
from .emission import EmissionAward, settle_claim
from .errors import (
    DuplicateCoupling,
    InvalidAmplitude,
    InvalidCouplingStrength,
    SelfCoupling,
    TooEarlyToDecohere,
)
from .fixed_point import PHI, PRECISION, clamp, mul, power
from .models import FieldSnapshot, PhaseCoupling

log = logging.getLogger(__name__)


# =============================================================================
# COUPLINGS
# =============================================================================

def free_amplitude(snapshot: FieldSnapshot, source_id: str) -> int:
    """Amplitude of the source not yet locked in any of its edges."""
    source = snapshot.get_participant(source_id)
    return source.amplitude - snapshot.locked_amplitude(source_id)


def create_coupling(snapshot: FieldSnapshot, source_id: str, target_id: str,
                    strength: int, locked_amplitude: int,
                    max_strength: int) -> PhaseCoupling:
    """Validate and insert a directed edge. Mutates the snapshot."""
    snapshot.get_participant(source_id)
    snapshot.get_participant(target_id)
    if source_id == target_id:
        raise SelfCoupling(f"participant {source_id!r} cannot couple to itself")
    if (source_id, target_id) in snapshot.couplings:
        raise DuplicateCoupling(f"coupling {source_id!r} -> {target_id!r} already exists")
    if not 0 <= strength <= max_strength:
        raise InvalidCouplingStrength(
            f"strength {strength} outside [0, {max_strength}]"
        )
    available = free_amplitude(snapshot, source_id)
    if locked_amplitude < 0 or locked_amplitude > available:
        raise InvalidAmplitude(
            f"locked amplitude {locked_amplitude} outside [0, {available}]"
        )

    coupling = PhaseCoupling(
        source_id=source_id,
        target_id=target_id,
        strength=strength,
        locked_amplitude=locked_amplitude,
        creation_epoch=snapshot.epoch,
    )
    snapshot.couplings[coupling.key] = coupling
    log.info("Coupled %s -> %s (strength=%d, locked=%d)",
             source_id, target_id, strength, locked_amplitude)
    return coupling


def remove_coupling(snapshot: FieldSnapshot, source_id: str,
                    target_id: str) -> PhaseCoupling:
    coupling = snapshot.get_coupling(source_id, target_id)
    del snapshot.couplings[coupling.key]
    log.info("Uncoupled %s -> %s", source_id, target_id)
    return coupling


def accrue_shared_emissions(snapshot: FieldSnapshot,
                            awards: Mapping[str, EmissionAward]) -> None:
    """Credit each edge its locked share of the source's reward."""
    for key in sorted(snapshot.couplings):
        coupling = snapshot.couplings[key]
        award = awards.get(coupling.source_id)
        source = snapshot.participants.get(coupling.source_id)
        if award is None or source is None or source.amplitude <= 0:
            continue
        coupling.shared_emission_accrual += (
            award.total_reward * coupling.locked_amplitude // source.amplitude
        )


# =============================================================================
# DECOHERENCE
# =============================================================================

def decoherence_progress(entry_epoch: int, current_epoch: int, cycle_length: int) -> int:
    """Fraction of the cycle served, clamped to [0, 1]."""
    elapsed = current_epoch - entry_epoch
    return clamp(elapsed * PRECISION // cycle_length, 0, PRECISION)


def decoherence_cost(amplitude: int, phase_lock_integral: int, progress: int) -> int:
    """Early-exit penalty in token units.

    Decreases strictly with progress; zero at progress 1 and never more
    than 10% of the amplitude.
    """
    remaining = PRECISION - clamp(progress, 0, PRECISION)
    factor = mul(mul(phase_lock_integral, power(remaining, PHI)), MAX_DECOHERENCE_COST)
    return amplitude * factor // PRECISION


@dataclass(frozen=True)
class DecoherenceReceipt:
    participant_id: str
    amplitude: int
    cost: int
    returned_amplitude: int
    progress: int
    paid_emissions: int
    paid_golden_emissions: int
    removed_couplings: int
    epoch: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'participant_id': self.participant_id,
            'amplitude': self.amplitude,
            'cost': self.cost,
            'returned_amplitude': self.returned_amplitude,
            'progress': self.progress,
            'paid_emissions': self.paid_emissions,
            'paid_golden_emissions': self.paid_golden_emissions,
            'removed_couplings': self.removed_couplings,
            'epoch': self.epoch,
        }


def apply_decoherence(snapshot: FieldSnapshot, participant_id: str,
                      force: bool = False) -> DecoherenceReceipt:
    """Remove a participant from the snapshot and settle its account.

    The cost is credited to the reserve before unclaimed balances are
    paid, so a claim the cost itself covers succeeds. Mutates the
    snapshot; callers discard it if this raises.
    """
    p = snapshot.get_participant(participant_id)
    progress = decoherence_progress(p.entry_epoch, snapshot.epoch, p.cycle_length)
    if progress < PRECISION and not force:
        raise TooEarlyToDecohere(
            f"{participant_id!r} has served {progress / PRECISION:.1%} of its "
            f"{p.cycle.value} cycle"
        )

    cost = decoherence_cost(p.amplitude, p.phase_lock_integral, progress)
    snapshot.field.reserve_balance += cost
    claim = settle_claim(snapshot, p)

    edges = snapshot.touching(participant_id)
    for key in edges:
        del snapshot.couplings[key]
    del snapshot.participants[participant_id]
    snapshot.recount()

    log.info("Participant %s decohered at epoch %d (cost=%d, returned=%d)",
             participant_id, snapshot.epoch, cost, p.amplitude - cost)
    return DecoherenceReceipt(
        participant_id=participant_id,
        amplitude=p.amplitude,
        cost=cost,
        returned_amplitude=p.amplitude - cost,
        progress=progress,
        paid_emissions=claim.amount,
        paid_golden_emissions=claim.golden_amount,
        removed_couplings=len(edges),
        epoch=snapshot.epoch,
    )
