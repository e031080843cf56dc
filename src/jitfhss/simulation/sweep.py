from __future__ import annotations

from dataclasses import dataclass, replace
from math import fsum
from typing import List, Sequence

from jitfhss.simulation.engine import LinkSimulationConfig, run_link_simulation

# ---------------------------------------------------------------------------
# Jam probability / distribution mode sweep
# ---------------------------------------------------------------------------


@dataclass
class JamSweepConfig:
    jam_probabilities: Sequence[float] = (0.0, 0.001, 0.01, 0.1)
    shared_modes: Sequence[bool] = (True, False)
    runs_per_point: int = 5
    base_seed: int = 1000


@dataclass
class JamSweepSample:
    """
    One run of the sweep: the point it belongs to plus the run outcome.
    """

    run_id: int
    jam_probability: float
    shared_distribution: bool
    seed: int

    total_transmissions: int
    success_rate: float
    cache_hits: int
    failovers: int
    max_failure_streak: int
    receiver_exhausted: int


@dataclass
class JamSweepStats:
    jam_probability: float
    shared_distribution: bool
    num_runs: int
    mean_success_rate: float
    mean_cache_hits: float
    mean_failovers: float
    mean_max_failure_streak: float


def generate_sweep_samples(
    cfg: JamSweepConfig,
    base: LinkSimulationConfig | None = None,
) -> List[JamSweepSample]:
    """
    Run ``runs_per_point`` simulations for every (jam probability,
    distribution mode) pair. Seeds are shared across points so each point
    sees the same orbits and clocks.
    """
    base = base if base is not None else LinkSimulationConfig()
    samples: List[JamSweepSample] = []
    run_id = 0

    for jam_p in cfg.jam_probabilities:
        for shared in cfg.shared_modes:
            for i in range(cfg.runs_per_point):
                seed_i = cfg.base_seed + i
                run_cfg = replace(
                    base,
                    jam_probability=jam_p,
                    shared_distribution=shared,
                    seed=seed_i,
                )
                _, _, summary = run_link_simulation(run_cfg)
                samples.append(
                    JamSweepSample(
                        run_id=run_id,
                        jam_probability=jam_p,
                        shared_distribution=shared,
                        seed=seed_i,
                        total_transmissions=summary.total_transmissions,
                        success_rate=summary.success_rate,
                        cache_hits=summary.cache_hits,
                        failovers=summary.failovers,
                        max_failure_streak=summary.max_failure_streak,
                        receiver_exhausted=summary.receiver_exhausted,
                    )
                )
                run_id += 1

    return samples


def summarize_samples(samples: List[JamSweepSample]) -> List[JamSweepStats]:
    """Average the samples of each (jam probability, mode) point, in first-seen order."""
    groups: dict[tuple[float, bool], List[JamSweepSample]] = {}
    for s in samples:
        groups.setdefault((s.jam_probability, s.shared_distribution), []).append(s)

    stats: List[JamSweepStats] = []
    for (jam_p, shared), group in groups.items():
        n = len(group)
        stats.append(
            JamSweepStats(
                jam_probability=jam_p,
                shared_distribution=shared,
                num_runs=n,
                mean_success_rate=fsum(s.success_rate for s in group) / n,
                mean_cache_hits=fsum(s.cache_hits for s in group) / n,
                mean_failovers=fsum(s.failovers for s in group) / n,
                mean_max_failure_streak=fsum(s.max_failure_streak for s in group) / n,
            )
        )
    return stats


def run_jam_sweep(
    cfg: JamSweepConfig,
    base: LinkSimulationConfig | None = None,
) -> List[JamSweepStats]:
    """
    Helper used by scripts/jam_sweep.py.
    """
    return summarize_samples(generate_sweep_samples(cfg, base))
