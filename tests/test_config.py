import pytest
from pydantic import ValidationError

from coherence_field.config import ChannelWeights, EngineConfig
from coherence_field.fixed_point import PRECISION


class TestEngineConfig:
    def test_defaults(self):
        params = EngineConfig().to_parameters()
        assert params.coupling_constant == 2 * PRECISION
        assert params.emission_rate == 1_000_000
        assert params.max_coupling_strength == 800_000_000
        assert params.target_decentralization == 50 * PRECISION
        assert params.minimum_amplitude == 1_000_000

    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError):
            ChannelWeights(attunement=0.5)

    def test_custom_weights(self):
        weights = ChannelWeights(attunement=0.4, resonance=0.2, entrainment=0.2, depth=0.2)
        params = EngineConfig(channel_weights=weights).to_parameters()
        assert params.weight_attunement == 400_000_000

    def test_range_validation(self):
        with pytest.raises(ValidationError):
            EngineConfig(minimum_amplitude=0)
        with pytest.raises(ValidationError):
            EngineConfig(stability_smoothing=0.0)

    def test_coupling_ceiling(self):
        with pytest.raises(ValidationError):
            EngineConfig(max_coupling_strength=5.0)
        with pytest.raises(ValidationError):
            EngineConfig(max_coupling_strength=0.81)
        params = EngineConfig(max_coupling_strength=0.5).to_parameters()
        assert params.max_coupling_strength == 500_000_000

    def test_from_env(self):
        env = {
            'COHERENCE_FIELD_COUPLING_CONSTANT': '1.5',
            'COHERENCE_FIELD_INITIAL_RESERVE': '42',
            'COHERENCE_FIELD_EMISSION_RATE': '',
            'UNRELATED': 'x',
        }
        config = EngineConfig.from_env(env)
        assert config.coupling_constant == 1.5
        assert config.initial_reserve == 42
        assert config.emission_rate == 0.001

    def test_overrides_win(self):
        env = {'COHERENCE_FIELD_COUPLING_CONSTANT': '1.5'}
        assert EngineConfig.from_env(env, coupling_constant=3.0).coupling_constant == 3.0

    def test_invalid_env_value(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_env({'COHERENCE_FIELD_TARGET_PARTICIPANT_COUNT': 'many'})
