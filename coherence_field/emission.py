"""
Four-channel emission engine.

    reward = base · (w_A·A + w_R·R + w_E·E + w_D·D) · state_multiplier
    base   = amplitude · emission_rate

Channels:
- Attunement A = (cos(θ - Ψ) + 1)/2
- Resonance  R = φ⁻¹ ^ |coherence_depth - φ⁴|
- Entrainment E = stability · (decentralization / target decentralization)
- Depth      D = participation_credit · network_depth / 5.0

For GOLDEN participants the share above the 1.0x reward is owed from the
golden reserve and accrues separately.

(c) 2026 Anywave Creations
MIT License
"""

from dataclasses import dataclass
from typing import Dict
import logging

from .config import EngineParameters
from .constants import DEPTH_BASELINE, ParticipationState
from .errors import ReserveDepleted
from .fixed_point import PHI_FOURTH, div, inverse_phi_power, mul
from .models import CoherenceField, FieldSnapshot, Participant
from .state_machine import phase_lock

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmissionChannels:
    attunement: int
    resonance: int
    entrainment: int
    depth: int

    def weighted(self, params: EngineParameters) -> int:
        return (
            mul(params.weight_attunement, self.attunement)
            + mul(params.weight_resonance, self.resonance)
            + mul(params.weight_entrainment, self.entrainment)
            + mul(params.weight_depth, self.depth)
        )


@dataclass(frozen=True)
class EmissionAward:
    """One participant's reward for one epoch."""
    participant_id: str
    channels: EmissionChannels
    base: int
    unit_reward: int     # reward at 1.0x multiplier
    total_reward: int
    golden_bonus: int    # part of total_reward owed by the golden reserve


def compute_channels(participant: Participant, field: CoherenceField,
                     params: EngineParameters) -> EmissionChannels:
    return EmissionChannels(
        attunement=phase_lock(participant.phase, field.global_phase),
        resonance=inverse_phi_power(participant.coherence_depth - PHI_FOURTH),
        entrainment=mul(
            participant.stability,
            div(field.decentralization_coefficient, params.target_decentralization),
        ),
        depth=mul(
            params.participation_credit,
            div(field.network_coherence_depth, DEPTH_BASELINE),
        ),
    )


def compute_award(participant: Participant, field: CoherenceField,
                  params: EngineParameters) -> EmissionAward:
    channels = compute_channels(participant, field, params)
    base = mul(participant.amplitude, field.emission_rate)
    unit = mul(base, channels.weighted(params))
    total = mul(unit, participant.state.emission_multiplier)
    bonus = 0
    if participant.state == ParticipationState.GOLDEN:
        bonus = max(0, total - unit)
    return EmissionAward(
        participant_id=participant.participant_id,
        channels=channels,
        base=base,
        unit_reward=unit,
        total_reward=total,
        golden_bonus=bonus,
    )


def accrue_emissions(snapshot: FieldSnapshot,
                     params: EngineParameters) -> Dict[str, EmissionAward]:
    """Accrue one epoch of rewards into every participant's balances.

    Mutates the snapshot in place; returns the awards keyed by id.
    """
    awards: Dict[str, EmissionAward] = {}
    for pid in sorted(snapshot.participants):
        p = snapshot.participants[pid]
        award = compute_award(p, snapshot.field, params)
        p.unclaimed_balance += award.total_reward - award.golden_bonus
        p.unclaimed_golden_balance += award.golden_bonus
        awards[pid] = award
    if awards:
        log.debug("Accrued %d in emissions across %d participants",
                  sum(a.total_reward for a in awards.values()), len(awards))
    return awards


@dataclass(frozen=True)
class ClaimReceipt:
    participant_id: str
    amount: int
    golden_amount: int
    epoch: int

    @property
    def total(self) -> int:
        return self.amount + self.golden_amount

    def to_dict(self) -> Dict[str, int]:
        return {
            'participant_id': self.participant_id,
            'amount': self.amount,
            'golden_amount': self.golden_amount,
            'total': self.total,
            'epoch': self.epoch,
        }


def settle_claim(snapshot: FieldSnapshot, participant: Participant) -> ClaimReceipt:
    """Pay both unclaimed balances out of their reserves.

    All or nothing: if either reserve cannot cover its part, raises
    ReserveDepleted before touching any balance.
    """
    field = snapshot.field
    amount = participant.unclaimed_balance
    golden = participant.unclaimed_golden_balance
    if amount > field.reserve_balance:
        raise ReserveDepleted(
            f"reserve holds {field.reserve_balance}, claim needs {amount}"
        )
    if golden > field.golden_reserve_balance:
        raise ReserveDepleted(
            f"golden reserve holds {field.golden_reserve_balance}, claim needs {golden}"
        )
    field.reserve_balance -= amount
    field.golden_reserve_balance -= golden
    participant.unclaimed_balance = 0
    participant.unclaimed_golden_balance = 0
    participant.total_claimed += amount + golden
    participant.last_claim_epoch = field.epoch
    return ClaimReceipt(participant.participant_id, amount, golden, field.epoch)
