"""
Simulation driver.

Seeds a field with a random population, steps it for a number of epochs
and records the per-epoch trajectory of the aggregates as numpy arrays.
Random draws only pick the initial conditions; the evolution itself is
the engine's deterministic fixed-point dynamics.

(c) 2026 Anywave Creations
MIT License
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

import numpy as np

from .config import EngineConfig
from .constants import HarmonicCycle, ParticipationState
from .engine import CoherenceFieldEngine
from .fixed_point import to_float

log = logging.getLogger(__name__)


@dataclass
class SimulationConfig:
    """Initial conditions and run length.

    Attributes:
        participants: Number of oscillators to seed.
        epochs: Number of steps to run.
        dt: Time step per epoch.
        seed: Seed for numpy's default_rng.
        amplitude_mean: Log-mean of the lognormal amplitude draw.
        amplitude_sigma: Log-sigma of the lognormal amplitude draw.
        phase_spread: Initial phases are drawn uniformly from [0, phase_spread).
        couplings: Number of random directed couplings to add.
        coupling_strength: Strength of each random coupling.
        cycle: Harmonic cycle for every participant.
        workers: Thread pool size for the phase step.
    """
    participants: int = 20
    epochs: int = 100
    dt: float = 1.0
    seed: int = 0
    amplitude_mean: float = 16.0
    amplitude_sigma: float = 1.0
    phase_spread: float = 2 * np.pi
    couplings: int = 0
    coupling_strength: float = 0.2
    cycle: HarmonicCycle = HarmonicCycle.FULL
    workers: Optional[int] = None
    engine: EngineConfig = field(default_factory=EngineConfig)


@dataclass
class SimulationResult:
    """Per-epoch trajectory of a simulation run."""
    order_parameter: np.ndarray
    global_phase: np.ndarray
    network_depth: np.ndarray
    state_counts: Dict[str, np.ndarray]
    emitted: np.ndarray
    engine: CoherenceFieldEngine

    @property
    def epochs(self) -> int:
        return len(self.order_parameter)

    def first_epoch_above(self, r: float) -> Optional[int]:
        """First recorded epoch (1-based) with R above r, if any."""
        hits = np.nonzero(self.order_parameter > r)[0]
        return int(hits[0]) + 1 if hits.size else None

    def summary(self) -> Dict[str, Any]:
        if self.epochs == 0:
            return {'epochs': 0}
        return {
            'epochs': self.epochs,
            'final_order_parameter': float(self.order_parameter[-1]),
            'mean_order_parameter': float(np.mean(self.order_parameter)),
            'max_order_parameter': float(np.max(self.order_parameter)),
            'first_epoch_r_above_0_9': self.first_epoch_above(0.9),
            'final_network_depth': float(self.network_depth[-1]),
            'total_emitted': int(np.sum(self.emitted)),
            'final_states': {
                state: int(counts[-1]) for state, counts in self.state_counts.items()
            },
            'status': self.engine.get_status(),
        }


def seed_engine(config: SimulationConfig,
                rng: Optional[np.random.Generator] = None) -> CoherenceFieldEngine:
    """Create an engine populated with random initial conditions."""
    rng = rng or np.random.default_rng(config.seed)
    engine = CoherenceFieldEngine(config=config.engine)
    minimum = config.engine.minimum_amplitude

    amplitudes = rng.lognormal(config.amplitude_mean, config.amplitude_sigma,
                               config.participants)
    phases = rng.uniform(0.0, config.phase_spread, config.participants)
    for i, (amplitude, phase) in enumerate(zip(amplitudes, phases)):
        engine.enter(
            f"p{i:04d}",
            max(minimum, int(amplitude)),
            config.cycle,
            phase=round(float(phase), 9),
        )

    if config.couplings and config.participants > 1:
        ids = sorted(engine.snapshot.participants)
        added = 0
        attempts = 0
        while added < config.couplings and attempts < 10 * config.couplings:
            attempts += 1
            source, target = rng.choice(len(ids), size=2, replace=False)
            key = (ids[source], ids[target])
            if key in engine.snapshot.couplings:
                continue
            free = engine.get_participant(key[0]).amplitude - engine.snapshot.locked_amplitude(key[0])
            engine.phase_couple(key[0], key[1], config.coupling_strength, free // 2)
            added += 1
    return engine


def run_simulation(config: Optional[SimulationConfig] = None) -> SimulationResult:
    """Seed a field and step it config.epochs times."""
    config = config or SimulationConfig()
    engine = seed_engine(config)

    r = np.zeros(config.epochs)
    psi = np.zeros(config.epochs)
    depth = np.zeros(config.epochs)
    emitted = np.zeros(config.epochs, dtype=np.int64)
    counts = {s.value: np.zeros(config.epochs, dtype=np.int64) for s in ParticipationState}

    for i in range(config.epochs):
        before = _total_unclaimed(engine)
        snap = engine.step(config.dt, config.workers)
        f = snap.field
        r[i] = to_float(f.order_parameter)
        psi[i] = to_float(f.global_phase)
        depth[i] = to_float(f.network_coherence_depth)
        emitted[i] = _total_unclaimed(engine) - before
        for p in snap.participants.values():
            counts[p.state.value][i] += 1

    log.info("Simulated %d participants for %d epochs (final R=%.4f)",
             config.participants, config.epochs, r[-1] if config.epochs else 1.0)
    return SimulationResult(
        order_parameter=r,
        global_phase=psi,
        network_depth=depth,
        state_counts=counts,
        emitted=emitted,
        engine=engine,
    )


def _total_unclaimed(engine: CoherenceFieldEngine) -> int:
    return sum(
        p.unclaimed_balance + p.unclaimed_golden_balance
        for p in engine.snapshot.participants.values()
    )
