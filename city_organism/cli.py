"""Command-line interface entry-point.

Usage examples
--------------
Run a single city for 2000 ticks with a boom at tick 300:
    python -m city_organism.cli run --config cfgs/base.yaml --steps 2000 --boom-at 300

Batch (sweep seeds 1..8):
    python -m city_organism.cli batch --config cfgs/base.yaml --seeds 1 8 --steps 1000
"""
from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List

from .config import DIFFUSION_STABILITY_LIMIT, SimulationConfig
from .errors import SimulationError
from .parallel import run_batch
from .simulator.engine import Simulation, run_once

SUBCOMMANDS = {"run", "batch"}


def _parse_args(argv: List[str] | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="city-organism", description="City growth & decay field simulator")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------
    p_run = subparsers.add_parser("run", help="Run a single simulation")
    p_run.add_argument("--config", type=Path, default=None, help="YAML config file (defaults if omitted)")
    p_run.add_argument("--steps", type=int, default=1000, help="Number of ticks to run")
    p_run.add_argument("--seed", type=int, default=None, help="Override the config seed")
    p_run.add_argument("--boom-at", type=int, nargs="*", default=[], help="Ticks at which to trigger a boom")
    p_run.add_argument("--bust-at", type=int, nargs="*", default=[], help="Ticks at which to trigger a bust")
    p_run.add_argument("--report-every", type=int, default=100, help="Print/record a summary every K ticks (0 = off)")
    p_run.add_argument("--snapshot", type=Path, default=None, help="Save the final city image (.png + .svg)")
    p_run.add_argument("--history", type=Path, default=None, help="Save the field-mean time series plot")
    p_run.add_argument("--no-roads", action="store_true", help="Do not draw the road overlay on the snapshot")
    p_run.add_argument("--diagnostics", action="store_true", help="Fail on pre-clamp overshoot (unstable diffusion)")

    # ------------------------------------------------------------------
    # batch
    # ------------------------------------------------------------------
    p_batch = subparsers.add_parser("batch", help="Run multiple seeds in parallel")
    p_batch.add_argument("--config", type=Path, default=None, help="YAML config file (defaults if omitted)")
    p_batch.add_argument(
        "--seeds",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        help="Inclusive range of seeds to iterate (START END)",
        required=True,
    )
    p_batch.add_argument("--steps", type=int, default=1000, help="Number of ticks per simulation")
    p_batch.add_argument("--processes", type=int, default=None, help="Number of worker processes")
    return parser


def _load_config(path: Path | None) -> SimulationConfig:
    return SimulationConfig.from_yaml(path) if path is not None else SimulationConfig()


def _cmd_run(args) -> None:
    cfg = _load_config(args.config)
    if args.seed is not None:
        cfg.seed = args.seed
    if args.diagnostics:
        cfg.diagnostics = True
    if cfg.diffusion > DIFFUSION_STABILITY_LIMIT:
        print(f"[WARNING] diffusion={cfg.diffusion} is above the stability bound {DIFFUSION_STABILITY_LIMIT}; fields may oscillate.")

    print(f"[INFO] {cfg}")
    result = run_once(
        cfg,
        args.steps,
        boom_at=args.boom_at,
        bust_at=args.bust_at,
        record_every=args.report_every,
        verbose=args.report_every > 0,
    )
    s = result.summary
    print(
        f"[INFO] Finished {result.ticks} ticks: density {s['density_mean']:.3f}, "
        f"urban fraction {s['urban_fraction']:.3f}, ruin fraction {s['ruin_fraction']:.4f}"
    )

    if args.snapshot is not None or args.history is not None:
        from .simulator.visualize import plot_city, plot_history

        if args.snapshot is not None:
            # Rebuild the final grid from the snapshot for the renderer
            sim = Simulation(cfg.width, cfg.height, cfg)
            for name, values in result.fields.items():
                sim.grid.writable(name)[:] = values
            plot_city(sim.grid, draw_roads=not args.no_roads,
                      title=f"seed {cfg.seed}, tick {result.ticks}", save_path=args.snapshot)
            print(f"[INFO] Snapshot saved to {args.snapshot.with_suffix('.png')}")
        if args.history is not None and result.history:
            plot_history(result.history, save_path=args.history)
            print(f"[INFO] History plot saved to {args.history.with_suffix('.png')}")


def _cmd_batch(args) -> None:
    base = _load_config(args.config)
    start_seed, end_seed = args.seeds
    if end_seed < start_seed:
        raise ValueError(f"--seeds START END needs START <= END, got {start_seed} > {end_seed}")
    cfgs = [dataclasses.replace(base, seed=s) for s in range(start_seed, end_seed + 1)]

    results = run_batch(cfgs, args.steps, processes=args.processes)
    print(f"{'seed':<8}{'density':>10}{'infra':>10}{'urban':>10}{'ruin':>10}")
    for r in results:
        s = r.summary
        print(f"{r.seed:<8}{s['density_mean']:>10.3f}{s['infrastructure_mean']:>10.3f}"
              f"{s['urban_fraction']:>10.3f}{s['ruin_fraction']:>10.4f}")
    avg_density = sum(r.summary["density_mean"] for r in results) / len(results)
    avg_urban = sum(r.summary["urban_fraction"] for r in results) / len(results)
    print(
        f"Average over seeds {start_seed}..{end_seed}: density {avg_density:.3f}, "
        f"urban fraction {avg_urban:.3f} ({args.steps} ticks)"
    )


def main(argv: List[str] | None = None) -> None:  # noqa: D401
    """Main entry point for the command-line interface."""
    parser = _parse_args(argv)
    args = parser.parse_args(argv)
    if args.cmd not in SUBCOMMANDS:
        print(f"Invalid subcommand '{args.cmd}'. Must be one of {SUBCOMMANDS}")
        parser.print_help()
        sys.exit(1)

    try:
        if args.cmd == "run":
            _cmd_run(args)
        elif args.cmd == "batch":
            _cmd_batch(args)
    except (SimulationError, TypeError, ValueError) as exc:
        print(f"[ERROR] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main(sys.argv[1:])
