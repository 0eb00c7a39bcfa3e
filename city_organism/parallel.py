"""Parallel execution helpers using a multiprocessing pool."""
from __future__ import annotations

import multiprocessing as mp
from typing import Iterable, List

from .config import SimulationConfig
from .simulator.engine import SimulationResult, run_once

__all__ = ["run_batch"]


def _worker(args):  # type: ignore
    cfg, n_steps = args
    return run_once(cfg, n_steps)


def _pool_size(n_jobs: int, processes: int | None) -> int:
    """Worker count: never more workers than jobs, default one per CPU."""
    if processes is None:
        processes = mp.cpu_count()
    return max(1, min(n_jobs, processes))


def run_batch(configs: Iterable[SimulationConfig], n_steps: int, processes: int | None = None) -> List[SimulationResult]:
    """Run many independent simulations, results in input order.

    A single worker (or a single config) runs inline without spawning a pool.
    """
    jobs = [(cfg, n_steps) for cfg in configs]
    if not jobs:
        return []

    n_workers = _pool_size(len(jobs), processes)
    if n_workers == 1:
        return [_worker(job) for job in jobs]

    with mp.Pool(processes=n_workers) as pool:
        results = pool.map(_worker, jobs)
    return results
