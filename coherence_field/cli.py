"""
coherence-field command line.

    coherence-field simulate --participants 20 --epochs 200
    coherence-field decoherence-cost --amplitude 1000000 --integral 0.8 --progress 0

Both subcommands print JSON to stdout.

(c) 2026 Anywave Creations
MIT License
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import EngineConfig
from .constants import HarmonicCycle
from .coupling import decoherence_cost
from .fixed_point import to_fixed
from .persistence import SnapshotStore
from .simulation import SimulationConfig, run_simulation

log = logging.getLogger(__name__)


def _cmd_simulate(args: argparse.Namespace) -> dict:
    overrides = {}
    if args.coupling is not None:
        overrides["coupling_constant"] = args.coupling
    config = SimulationConfig(
        participants=args.participants,
        epochs=args.epochs,
        dt=args.dt,
        seed=args.seed,
        phase_spread=args.phase_spread,
        couplings=args.couplings,
        cycle=HarmonicCycle(args.cycle),
        workers=args.workers,
        engine=EngineConfig.from_env(**overrides),
    )
    result = run_simulation(config)
    if args.save_dir:
        path = SnapshotStore(args.save_dir).save(result.engine.snapshot)
        log.info("Final snapshot written to %s", path)
    return result.summary()


def _cmd_decoherence_cost(args: argparse.Namespace) -> dict:
    progress = to_fixed(args.progress)
    cost = decoherence_cost(args.amplitude, to_fixed(args.integral), progress)
    return {
        'amplitude': args.amplitude,
        'phase_lock_integral': args.integral,
        'progress': args.progress,
        'cost': cost,
        'returned_amplitude': args.amplitude - cost,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coherence-field",
        description="Coherence Field Engine - Kuramoto field simulation and reward accounting",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Run a seeded field simulation")
    sim.add_argument("--participants", type=int, default=20,
                     help="Number of participants (default: 20)")
    sim.add_argument("--epochs", type=int, default=100,
                     help="Epochs to run (default: 100)")
    sim.add_argument("--dt", type=float, default=1.0,
                     help="Time step per epoch (default: 1.0)")
    sim.add_argument("--seed", type=int, default=0,
                     help="Random seed for initial conditions (default: 0)")
    sim.add_argument("--phase-spread", type=float, default=6.283185307,
                     help="Initial phases drawn from [0, spread) (default: 2π)")
    sim.add_argument("--couplings", type=int, default=0,
                     help="Random directed couplings to add (default: 0)")
    sim.add_argument("--coupling", type=float, default=None,
                     help="Global coupling constant K (default: from config)")
    sim.add_argument("--cycle", choices=[c.value for c in HarmonicCycle],
                     default=HarmonicCycle.FULL.value,
                     help="Harmonic cycle for all participants (default: full)")
    sim.add_argument("--workers", type=int, default=None,
                     help="Thread pool size for the phase step")
    sim.add_argument("--save-dir", type=str, default=None,
                     help="Directory to write the final snapshot to")
    sim.set_defaults(func=_cmd_simulate)

    cost = sub.add_parser("decoherence-cost", help="Compute an early-exit penalty")
    cost.add_argument("--amplitude", type=int, required=True,
                      help="Committed amplitude in token units")
    cost.add_argument("--integral", type=float, required=True,
                      help="Phase-lock integral in [0, 1]")
    cost.add_argument("--progress", type=float, required=True,
                      help="Fraction of the cycle served in [0, 1]")
    cost.set_defaults(func=_cmd_decoherence_cost)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='[coherence-field] %(levelname)s %(message)s',
        stream=sys.stderr,
    )

    result = args.func(args)
    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
