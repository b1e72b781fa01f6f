"""Shared fixtures for coherence field tests."""
import sys
import os
import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from coherence_field.config import EngineConfig
from coherence_field.constants import HarmonicCycle
from coherence_field.engine import CoherenceFieldEngine

AMPLITUDE = 1_000_000


@pytest.fixture
def config():
    # no detune, so equal-amplitude participants share one natural frequency
    return EngineConfig(frequency_spread=0.0)


@pytest.fixture
def engine(config):
    return CoherenceFieldEngine(config=config)


@pytest.fixture
def pair(engine):
    """Two equal participants at 0.3 and 2.5 rad."""
    engine.enter('a', AMPLITUDE, HarmonicCycle.FULL, phase=0.3)
    engine.enter('b', AMPLITUDE, HarmonicCycle.FULL, phase=2.5)
    return engine


@pytest.fixture
def aligned(engine):
    """Two participants sharing one phase (R = 1)."""
    engine.enter('a', AMPLITUDE, HarmonicCycle.QUARTER, phase=1.0)
    engine.enter('b', AMPLITUDE, HarmonicCycle.QUARTER, phase=1.0)
    return engine
