import pytest

from coherence_field.config import EngineConfig
from coherence_field.constants import HarmonicCycle, ParticipationState
from coherence_field.emission import (
    compute_channels,
    compute_award,
    accrue_emissions,
    settle_claim,
)
from coherence_field.errors import ReserveDepleted
from coherence_field.fixed_point import PRECISION, PHI_FOURTH
from coherence_field.models import FieldSnapshot, Participant

PARAMS = EngineConfig().to_parameters()


def _snapshot(state=ParticipationState.RESONANT, reserve=10**12, golden_reserve=10**12):
    snap = FieldSnapshot()
    snap.field.emission_rate = PARAMS.emission_rate
    snap.field.decentralization_coefficient = 50 * PRECISION
    snap.field.reserve_balance = reserve
    snap.field.golden_reserve_balance = golden_reserve
    p = Participant.create('p', 1_000_000_000, 0, 0, HarmonicCycle.FULL, 0)
    p.state = state
    p.stability = PRECISION
    p.phase_lock_integral = PRECISION
    p.refresh_depth()
    snap.participants['p'] = p
    return snap


class TestChannels:
    def test_channel_values(self):
        snap = _snapshot()
        channels = compute_channels(snap.participants['p'], snap.field, PARAMS)
        assert channels.attunement == PRECISION
        assert channels.entrainment == PRECISION
        assert channels.depth == PRECISION
        assert 0 < channels.resonance < PRECISION

    def test_resonance_peaks_at_phi_fourth(self):
        snap = _snapshot()
        p = snap.participants['p']
        p.coherence_depth = PHI_FOURTH
        assert compute_channels(p, snap.field, PARAMS).resonance == PRECISION

    def test_weights_sum_to_one(self):
        total = (PARAMS.weight_attunement + PARAMS.weight_resonance
                 + PARAMS.weight_entrainment + PARAMS.weight_depth)
        assert total == PRECISION


class TestAward:
    def test_base_reward(self):
        award = compute_award(_snapshot().participants['p'], _snapshot().field, PARAMS)
        assert award.base == 1_000_000
        assert award.total_reward == award.unit_reward
        assert award.golden_bonus == 0

    def test_drifting_earns_nothing(self):
        snap = _snapshot(ParticipationState.DRIFTING)
        award = compute_award(snap.participants['p'], snap.field, PARAMS)
        assert award.total_reward == 0

    def test_golden_bonus(self):
        snap = _snapshot(ParticipationState.GOLDEN)
        award = compute_award(snap.participants['p'], snap.field, PARAMS)
        assert award.total_reward > award.unit_reward
        assert award.golden_bonus == award.total_reward - award.unit_reward

    def test_multipliers_order_rewards(self):
        rewards = []
        for state in (ParticipationState.ATTUNING, ParticipationState.RESONANT,
                      ParticipationState.ENTRAINED, ParticipationState.GOLDEN):
            snap = _snapshot(state)
            rewards.append(compute_award(snap.participants['p'], snap.field, PARAMS).total_reward)
        assert rewards == sorted(rewards)

    def test_accrual(self):
        snap = _snapshot(ParticipationState.GOLDEN)
        awards = accrue_emissions(snap, PARAMS)
        p = snap.participants['p']
        assert p.unclaimed_balance == awards['p'].unit_reward
        assert p.unclaimed_golden_balance == awards['p'].golden_bonus


class TestSettleClaim:
    def test_pays_both_balances(self):
        snap = _snapshot()
        p = snap.participants['p']
        p.unclaimed_balance = 500
        p.unclaimed_golden_balance = 70
        receipt = settle_claim(snap, p)
        assert receipt.total == 570
        assert p.total_claimed == 570
        assert p.unclaimed_balance == 0
        assert snap.field.reserve_balance == 10**12 - 500
        assert snap.field.golden_reserve_balance == 10**12 - 70

    def test_golden_reserve_shortfall_changes_nothing(self):
        snap = _snapshot(reserve=1000, golden_reserve=10)
        p = snap.participants['p']
        p.unclaimed_balance = 500
        p.unclaimed_golden_balance = 70
        with pytest.raises(ReserveDepleted):
            settle_claim(snap, p)
        assert snap.field.reserve_balance == 1000
        assert p.unclaimed_balance == 500
