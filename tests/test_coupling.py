import pytest

from coherence_field.constants import HarmonicCycle
from coherence_field.coupling import (
    decoherence_cost,
    decoherence_progress,
    free_amplitude,
)
from coherence_field.errors import (
    DuplicateCoupling,
    InvalidAmplitude,
    InvalidCouplingStrength,
    NoCouplingRecord,
    NoParticipantRecord,
    SelfCoupling,
)
from coherence_field.fixed_point import PRECISION, to_fixed

from conftest import AMPLITUDE


class TestDecoherenceCost:
    def test_worked_example(self):
        assert decoherence_cost(1_000_000, to_fixed(0.8), 0) == 80_000

    def test_zero_at_full_progress(self):
        assert decoherence_cost(1_000_000, to_fixed(0.8), PRECISION) == 0

    def test_strictly_decreasing_in_progress(self):
        costs = [decoherence_cost(10**12, to_fixed(0.8), to_fixed(x))
                 for x in (0, 0.1, 0.25, 0.5, 0.75, 0.9, 1.0)]
        assert all(a > b for a, b in zip(costs, costs[1:]))

    def test_never_above_ten_percent(self):
        assert decoherence_cost(1_000_000, PRECISION, 0) == 100_000

    def test_progress_clamped(self):
        assert decoherence_progress(0, 0, 91) == 0
        assert decoherence_progress(0, 91, 91) == PRECISION
        assert decoherence_progress(0, 500, 91) == PRECISION
        assert decoherence_progress(10, 5, 91) == 0


class TestPhaseCouple:
    def test_create(self, pair):
        c = pair.phase_couple('a', 'b', 0.5, 400_000)
        assert c.strength == 500_000_000
        assert c.creation_epoch == 0
        assert pair.get_coupling('a', 'b') == c

    def test_unknown_participant(self, pair):
        with pytest.raises(NoParticipantRecord):
            pair.phase_couple('a', 'zz', 0.5, 0)
        with pytest.raises(NoParticipantRecord):
            pair.phase_couple('zz', 'zz', 0.5, 0)

    def test_self_coupling(self, pair):
        with pytest.raises(SelfCoupling):
            pair.phase_couple('a', 'a', 0.5, 0)

    def test_duplicate(self, pair):
        pair.phase_couple('a', 'b', 0.5, 0)
        with pytest.raises(DuplicateCoupling):
            pair.phase_couple('a', 'b', 0.2, 0)

    def test_reverse_direction_allowed(self, pair):
        pair.phase_couple('a', 'b', 0.5, 0)
        pair.phase_couple('b', 'a', 0.5, 0)
        assert len(pair.snapshot.couplings) == 2

    @pytest.mark.parametrize('strength', [-0.1, 0.81, 1.0])
    def test_strength_range(self, pair, strength):
        with pytest.raises(InvalidCouplingStrength):
            pair.phase_couple('a', 'b', strength, 0)

    def test_strength_bounds_inclusive(self, pair):
        pair.phase_couple('a', 'b', 0.8, 0)
        pair.phase_couple('b', 'a', 0.0, 0)

    def test_locked_amplitude_limited_to_free(self, pair):
        pair.enter('c', AMPLITUDE, HarmonicCycle.FULL, phase=1.0)
        pair.phase_couple('a', 'b', 0.5, 600_000)
        assert free_amplitude(pair.snapshot, 'a') == 400_000
        with pytest.raises(InvalidAmplitude):
            pair.phase_couple('a', 'c', 0.5, 500_000)
        pair.phase_couple('a', 'c', 0.5, 400_000)
        assert free_amplitude(pair.snapshot, 'a') == 0

    def test_negative_lock(self, pair):
        with pytest.raises(InvalidAmplitude):
            pair.phase_couple('a', 'b', 0.5, -1)

    def test_failed_couple_leaves_snapshot(self, pair):
        before = pair.snapshot
        with pytest.raises(InvalidCouplingStrength):
            pair.phase_couple('a', 'b', 0.9, 0)
        assert pair.snapshot is before


class TestUncouple:
    def test_uncouple_releases_lock(self, pair):
        pair.phase_couple('a', 'b', 0.5, AMPLITUDE)
        assert free_amplitude(pair.snapshot, 'a') == 0
        pair.uncouple('a', 'b')
        assert free_amplitude(pair.snapshot, 'a') == AMPLITUDE
        assert pair.snapshot.couplings == {}

    def test_missing_edge(self, pair):
        with pytest.raises(NoCouplingRecord):
            pair.uncouple('a', 'b')


class TestCouplingDynamics:
    def test_source_converges_to_target(self, config):
        from coherence_field.engine import CoherenceFieldEngine
        from coherence_field.fixed_point import angular_distance, normalize_phase

        engine = CoherenceFieldEngine(config=config.model_copy(update={'coupling_constant': 0.0}))
        engine.enter('src', AMPLITUDE, HarmonicCycle.FULL, phase=0.0)
        engine.enter('tgt', AMPLITUDE, HarmonicCycle.FULL, phase=1.5)
        engine.phase_couple('src', 'tgt', 0.8, 0)
        start = engine.get_participant('tgt').phase

        initial = angular_distance(engine.get_participant('src').phase, start)
        for _ in range(50):
            engine.step(1.0)
        src = engine.get_participant('src').phase
        tgt = engine.get_participant('tgt').phase

        assert angular_distance(src, tgt) < to_fixed(0.01) < initial
        # the target is never pulled by the source's edge
        assert tgt == normalize_phase(start + 50 * to_fixed(0.01))

    def test_shared_emission_accrual(self, aligned):
        aligned.phase_couple('a', 'b', 0.1, AMPLITUDE // 2)
        aligned.step()
        c = aligned.get_coupling('a', 'b')
        a = aligned.get_participant('a')
        assert c.shared_emission_accrual > 0
        assert c.shared_emission_accrual <= a.unclaimed_balance // 2 + 1
