"""
Engine configuration.

EngineConfig is the user-facing, validated configuration (plain reals).
EngineParameters is its fixed-point projection, computed once when an
engine is built, and is what every computation actually reads.

Environment variables (read by EngineConfig.from_env):
  COHERENCE_FIELD_COUPLING_CONSTANT: global coupling K (default: 2.0)
  COHERENCE_FIELD_MINIMUM_AMPLITUDE: minimum entry amplitude
  COHERENCE_FIELD_TARGET_PARTICIPANT_COUNT: ideal participant count
  COHERENCE_FIELD_EMISSION_RATE: reward per amplitude unit per epoch
  COHERENCE_FIELD_INITIAL_RESERVE: emission reserve at creation
  COHERENCE_FIELD_INITIAL_GOLDEN_RESERVE: golden reserve at creation

(c) 2026 Anywave Creations
MIT License
"""

import os
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, model_validator

from .fixed_point import PRECISION, to_fixed

ENV_PREFIX = "COHERENCE_FIELD_"


class ChannelWeights(BaseModel):
    """Weights of the four emission channels; must sum to 1."""
    attunement: float = Field(0.25, ge=0.0, le=1.0)
    resonance: float = Field(0.30, ge=0.0, le=1.0)
    entrainment: float = Field(0.30, ge=0.0, le=1.0)
    depth: float = Field(0.15, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_sum(self) -> "ChannelWeights":
        total = sum(to_fixed(w) for w in (
            self.attunement, self.resonance, self.entrainment, self.depth
        ))
        if total != PRECISION:
            raise ValueError(f"channel weights must sum to 1.0, got {total / PRECISION}")
        return self


class EngineConfig(BaseModel):
    """Coherence field engine configuration."""

    # Phase dynamics
    coupling_constant: float = Field(2.0, ge=0.0)
    default_dt: float = Field(1.0, gt=0.0)
    base_frequency: float = 0.01          # rad per epoch
    frequency_spread: float = Field(0.002, ge=0.0)

    # Participation
    minimum_amplitude: int = Field(1_000_000, ge=1)
    max_coupling_strength: float = Field(0.8, ge=0.0, le=0.8)

    # Aggregate metrics
    target_participant_count: int = Field(50, ge=1)
    network_depth_growth: float = Field(0.002, ge=0.0)

    # State machine smoothing
    stability_smoothing: float = Field(0.1, gt=0.0, le=1.0)
    integral_smoothing: float = Field(0.02, gt=0.0, le=1.0)

    # Emissions
    emission_rate: float = Field(0.001, ge=0.0)
    participation_credit: float = Field(1.0, ge=0.0)
    channel_weights: ChannelWeights = Field(default_factory=ChannelWeights)

    # Reserves
    initial_reserve: int = Field(1_000_000_000_000, ge=0)
    initial_golden_reserve: int = Field(100_000_000_000, ge=0)

    # Bookkeeping
    event_history: int = Field(500, ge=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 **overrides) -> "EngineConfig":
        """Build a config from COHERENCE_FIELD_* environment variables.

        Explicit keyword overrides win over the environment.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, str] = {}
        for name in cls.model_fields:
            if name == "channel_weights":
                continue
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        values.update(overrides)
        return cls(**values)

    def to_parameters(self) -> "EngineParameters":
        weights = self.channel_weights
        return EngineParameters(
            coupling_constant=to_fixed(self.coupling_constant),
            default_dt=to_fixed(self.default_dt),
            base_frequency=to_fixed(self.base_frequency),
            frequency_spread=to_fixed(self.frequency_spread),
            minimum_amplitude=self.minimum_amplitude,
            max_coupling_strength=to_fixed(self.max_coupling_strength),
            target_participant_count=self.target_participant_count,
            network_depth_growth=to_fixed(self.network_depth_growth),
            stability_smoothing=to_fixed(self.stability_smoothing),
            integral_smoothing=to_fixed(self.integral_smoothing),
            emission_rate=to_fixed(self.emission_rate),
            participation_credit=to_fixed(self.participation_credit),
            weight_attunement=to_fixed(weights.attunement),
            weight_resonance=to_fixed(weights.resonance),
            weight_entrainment=to_fixed(weights.entrainment),
            weight_depth=to_fixed(weights.depth),
        )


@dataclass(frozen=True)
class EngineParameters:
    """Fixed-point projection of EngineConfig."""
    coupling_constant: int
    default_dt: int
    base_frequency: int
    frequency_spread: int
    minimum_amplitude: int
    max_coupling_strength: int
    target_participant_count: int
    network_depth_growth: int
    stability_smoothing: int
    integral_smoothing: int
    emission_rate: int
    participation_credit: int
    weight_attunement: int
    weight_resonance: int
    weight_entrainment: int
    weight_depth: int

    @property
    def target_decentralization(self) -> int:
        return self.target_participant_count * PRECISION
