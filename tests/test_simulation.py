import json
import numpy as np
import pytest

from coherence_field.cli import main
from coherence_field.config import EngineConfig
from coherence_field.simulation import SimulationConfig, run_simulation, seed_engine


def _config(**kwargs):
    base = dict(participants=6, epochs=15, seed=3, engine=EngineConfig())
    base.update(kwargs)
    return SimulationConfig(**base)


class TestSimulation:
    def test_trajectory_shapes(self):
        result = run_simulation(_config())
        assert result.epochs == 15
        assert result.order_parameter.shape == (15,)
        assert np.all((result.order_parameter >= 0) & (result.order_parameter <= 1))
        assert sum(int(c[-1]) for c in result.state_counts.values()) == 6

    def test_deterministic_for_seed(self):
        r1 = run_simulation(_config())
        r2 = run_simulation(_config())
        assert np.array_equal(r1.order_parameter, r2.order_parameter)
        assert r1.engine.snapshot.to_dict() == r2.engine.snapshot.to_dict()

    def test_narrow_spread_synchronizes(self):
        result = run_simulation(_config(phase_spread=1.0, epochs=60, dt=0.5))
        assert result.order_parameter[-1] > 0.99
        assert result.first_epoch_above(0.9) is not None

    def test_random_couplings(self):
        engine = seed_engine(_config(couplings=4))
        assert len(engine.snapshot.couplings) == 4

    def test_summary_is_json(self):
        summary = run_simulation(_config()).summary()
        assert summary['epochs'] == 15
        assert summary['total_emitted'] > 0
        json.dumps(summary)


class TestCli:
    def test_decoherence_cost(self, capsys):
        assert main(['decoherence-cost', '--amplitude', '1000000',
                     '--integral', '0.8', '--progress', '0']) == 0
        out = json.loads(capsys.readouterr().out)
        assert out['cost'] == 80_000
        assert out['returned_amplitude'] == 920_000

    def test_simulate(self, capsys, tmp_path):
        assert main(['simulate', '--participants', '3', '--epochs', '5',
                     '--save-dir', str(tmp_path)]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out['epochs'] == 5
        assert (tmp_path / 'snapshot_00000005.json').exists()

    def test_requires_command(self):
        with pytest.raises(SystemExit):
            main([])
