"""Jam Probability Sweep.

Quick sweep of decode success across pattern-channel jam probabilities,
with and without shared pattern distribution.
"""

from pathlib import Path
import sys

# --- Make sure Python can see the `src` folder ---
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from jitfhss.simulation.engine import LinkSimulationConfig  # noqa: E402
from jitfhss.simulation.sweep import JamSweepConfig, run_jam_sweep  # noqa: E402


def main() -> None:
    cfg = JamSweepConfig(
        jam_probabilities=(0.0, 0.01, 0.1, 0.5),
        shared_modes=(True, False),
        runs_per_point=3,
        base_seed=123,
    )
    base = LinkSimulationConfig(duration_s=3000.0)

    num_runs = len(cfg.jam_probabilities) * len(cfg.shared_modes) * cfg.runs_per_point
    print("=== Jam Probability Sweep ===")
    print(f"Running {num_runs} simulations...")

    stats = run_jam_sweep(cfg, base)

    print(f"\n{'jam_p':>8} {'mode':>12} {'success':>9} {'cache':>8} {'failovers':>10} {'streak':>7}")
    for s in stats:
        mode = "shared" if s.shared_distribution else "independent"
        print(
            f"{s.jam_probability:>8.3f} {mode:>12} {s.mean_success_rate:>9.3f} "
            f"{s.mean_cache_hits:>8.1f} {s.mean_failovers:>10.1f} {s.mean_max_failure_streak:>7.1f}"
        )


if __name__ == "__main__":
    main()
