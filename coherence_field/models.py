"""
Data model for the coherence field.

A FieldSnapshot is the complete, versioned state of the field at one
epoch: the singleton CoherenceField, every Participant keyed by id, and
every directed PhaseCoupling keyed by (source_id, target_id). Edges refer
to participants by id only.

Snapshots are treated as values: operations copy, mutate the copy, and
hand it back for an atomic swap. to_dict/from_dict give the persisted
layout, in which every number is an integer.

(c) 2026 Anywave Creations
MIT License
"""

import dataclasses
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .constants import (
    DEPTH_BASELINE,
    INITIAL_PHASE_LOCK_INTEGRAL,
    INITIAL_STABILITY,
    HarmonicCycle,
    ParticipationState,
)
from .errors import NoCouplingRecord, NoParticipantRecord
from .fixed_point import PRECISION, PHI, PHI_FOURTH, mul

EdgeKey = Tuple[str, str]


def derive_coherence_depth(stability: int, phase_lock_integral: int) -> int:
    """stability·φ + phase_lock_integral·φ⁴"""
    return mul(stability, PHI) + mul(phase_lock_integral, PHI_FOURTH)


@dataclass
class Participant:
    """One oscillator in the field.

    Attributes:
        participant_id: Opaque caller-supplied identifier.
        amplitude: Committed stake in integer token units.
        phase: Current phase, fixed-point radians in [0, 2π).
        natural_frequency: Intrinsic drift per unit time (signed).
        stability: Fast exponential average of phase-lock.
        phase_lock_integral: Slow exponential average of phase-lock.
        coherence_depth: Derived from stability and phase_lock_integral.
        state: Current participation state.
        phase_lock_epoch_counter: Consecutive epochs meeting the state's lock threshold.
        entry_epoch: Epoch at which the participant entered.
        cycle: Harmonic commitment cycle chosen at entry.
        last_claim_epoch: Epoch of the last emissions claim.
        unclaimed_balance: Accrued rewards payable from the main reserve.
        unclaimed_golden_balance: Golden bonus payable from the golden reserve.
        total_claimed: Lifetime amount paid out by claims.
        epoch_start_phase: Phase at the start of the current epoch.
        last_phase_update_epoch: Epoch of the last individual phase update.
    """
    participant_id: str
    amplitude: int
    phase: int
    natural_frequency: int
    cycle: HarmonicCycle
    entry_epoch: int
    stability: int = INITIAL_STABILITY
    phase_lock_integral: int = INITIAL_PHASE_LOCK_INTEGRAL
    coherence_depth: int = 0
    state: ParticipationState = ParticipationState.ATTUNING
    phase_lock_epoch_counter: int = 0
    last_claim_epoch: int = 0
    unclaimed_balance: int = 0
    unclaimed_golden_balance: int = 0
    total_claimed: int = 0
    epoch_start_phase: int = 0
    last_phase_update_epoch: Optional[int] = None

    @classmethod
    def create(cls, participant_id: str, amplitude: int, phase: int,
               natural_frequency: int, cycle: HarmonicCycle,
               epoch: int) -> 'Participant':
        """Factory for a freshly entered participant in ATTUNING."""
        p = cls(
            participant_id=participant_id,
            amplitude=amplitude,
            phase=phase,
            natural_frequency=natural_frequency,
            cycle=cycle,
            entry_epoch=epoch,
            last_claim_epoch=epoch,
            epoch_start_phase=phase,
        )
        p.refresh_depth()
        return p

    @property
    def cycle_length(self) -> int:
        return self.cycle.epochs

    def refresh_depth(self) -> None:
        self.coherence_depth = derive_coherence_depth(
            self.stability, self.phase_lock_integral
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['state'] = self.state.value
        data['cycle'] = self.cycle.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Participant':
        data = dict(data)
        data['state'] = ParticipationState(data['state'])
        data['cycle'] = HarmonicCycle(data['cycle'])
        return cls(**data)


@dataclass
class CoherenceField:
    """Field-wide aggregate state (one per snapshot)."""
    epoch: int = 0
    global_phase: int = 0
    order_parameter: int = PRECISION
    decentralization_coefficient: int = 0
    network_coherence_depth: int = DEPTH_BASELINE
    total_weight: int = 0
    participant_count: int = 0
    reserve_balance: int = 0
    golden_reserve_balance: int = 0
    emission_rate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CoherenceField':
        return cls(**data)


@dataclass
class PhaseCoupling:
    """Directed edge: the source is pulled toward the target's phase."""
    source_id: str
    target_id: str
    strength: int
    locked_amplitude: int
    creation_epoch: int
    shared_emission_accrual: int = 0

    @property
    def key(self) -> EdgeKey:
        return (self.source_id, self.target_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PhaseCoupling':
        return cls(**data)


@dataclass
class FieldSnapshot:
    """Versioned state of the field at one epoch."""
    # the attribute name shadows dataclasses.field inside this class body
    field: CoherenceField = dataclasses.field(default_factory=CoherenceField)
    participants: Dict[str, Participant] = dataclasses.field(default_factory=dict)
    couplings: Dict[EdgeKey, PhaseCoupling] = dataclasses.field(default_factory=dict)

    @property
    def epoch(self) -> int:
        return self.field.epoch

    def copy(self) -> 'FieldSnapshot':
        """Deep enough copy for copy-on-write: every record is duplicated."""
        return FieldSnapshot(
            field=replace(self.field),
            participants={pid: replace(p) for pid, p in self.participants.items()},
            couplings={k: replace(c) for k, c in self.couplings.items()},
        )

    def get_participant(self, participant_id: str) -> Participant:
        try:
            return self.participants[participant_id]
        except KeyError:
            raise NoParticipantRecord(
                f"no participant record for {participant_id!r}"
            ) from None

    def get_coupling(self, source_id: str, target_id: str) -> PhaseCoupling:
        try:
            return self.couplings[(source_id, target_id)]
        except KeyError:
            raise NoCouplingRecord(
                f"no coupling from {source_id!r} to {target_id!r}"
            ) from None

    def outgoing(self, source_id: str) -> Iterator[PhaseCoupling]:
        """Edges whose source is the given participant, in key order."""
        for key in sorted(self.couplings):
            if key[0] == source_id:
                yield self.couplings[key]

    def touching(self, participant_id: str) -> List[EdgeKey]:
        return sorted(
            k for k in self.couplings
            if participant_id in k
        )

    def locked_amplitude(self, source_id: str,
                         exclude: Optional[EdgeKey] = None) -> int:
        """Total amplitude the source has locked into its edges."""
        return sum(
            c.locked_amplitude for c in self.outgoing(source_id)
            if c.key != exclude
        )

    def recount(self) -> None:
        """Recompute total_weight and participant_count from the records."""
        self.field.total_weight = sum(p.amplitude for p in self.participants.values())
        self.field.participant_count = len(self.participants)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'field': self.field.to_dict(),
            'participants': [
                self.participants[pid].to_dict() for pid in sorted(self.participants)
            ],
            'couplings': [
                self.couplings[k].to_dict() for k in sorted(self.couplings)
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldSnapshot':
        participants = [Participant.from_dict(p) for p in data.get('participants', [])]
        couplings = [PhaseCoupling.from_dict(c) for c in data.get('couplings', [])]
        return cls(
            field=CoherenceField.from_dict(data['field']),
            participants={p.participant_id: p for p in participants},
            couplings={c.key: c for c in couplings},
        )
