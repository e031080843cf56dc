#!/usr/bin/env python3
"""
Run one JIT-FHSS link simulation and print its summary.

Usage:
    python scripts/simulate.py [--duration 1000] [--independent] [--jam-probability 0.001]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# --- Make sure Python can see the `src` folder ---
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from jitfhss.simulation.engine import (  # noqa: E402
    LinkSimulationConfig,
    run_link_simulation,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Simulate a just-in-time frequency hopping satellite link.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--duration", type=float, default=1000.0, help="Simulated seconds")
    parser.add_argument("--time-step", type=float, default=0.1, help="Tick spacing in seconds")
    parser.add_argument("--hop-duration", type=float, default=1.0, help="Seconds per hop")
    parser.add_argument(
        "--jam-probability",
        type=float,
        default=0.001,
        help="Per-channel jam probability per generated pattern",
    )
    parser.add_argument(
        "--no-jam-schedule",
        action="store_true",
        help="Disable the scheduled jamming of pattern channel 1",
    )
    parser.add_argument(
        "--independent",
        action="store_true",
        help="Let each participant request its own patterns (unsynchronized baseline)",
    )
    parser.add_argument(
        "--orbit-backend",
        choices=["circular", "sgp4"],
        default="circular",
        help="Orbit kinematics backend",
    )
    parser.add_argument(
        "--no-doppler-compensation",
        action="store_true",
        help="Disable Doppler compensation at the receiver",
    )
    parser.add_argument(
        "--ideal-clocks",
        action="store_true",
        help="Use error-free clocks instead of sampled oscillators",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed for reproducibility")
    parser.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Optional path for the summary as JSON",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    cfg = LinkSimulationConfig(
        duration_s=args.duration,
        time_step_s=args.time_step,
        hop_duration_s=args.hop_duration,
        jam_probability=args.jam_probability,
        jam_channel_id=None if args.no_jam_schedule else 1,
        shared_distribution=not args.independent,
        orbit_backend=args.orbit_backend,
        compensate_doppler=not args.no_doppler_compensation,
        ideal_clocks=args.ideal_clocks,
        seed=args.seed,
    )

    transmit_log, receive_log, summary = run_link_simulation(cfg)

    print("=== JIT-FHSS Link Simulation ===")
    print(f"Config hash:       {summary.config_hash}")
    print(f"Visible ticks:     {summary.visible_steps} / {summary.num_steps}")
    print(f"Transmissions:     {summary.total_transmissions}")
    print(f"Decoded:           {summary.successful_transmissions}")
    print(f"Success rate:      {100.0 * summary.success_rate:.2f}%")
    for reason, count in summary.failures_by_reason.items():
        print(f"  {reason + ':':<19}{count}")
    print(f"Max failure streak: {summary.max_failure_streak}")
    print(f"Patterns generated: {summary.patterns_generated}")
    print(f"Cache hits:         {summary.cache_hits}")
    print(f"Failovers:          {summary.failovers}")

    if summary.total_transmissions == 0:
        logger.warning("Satellite never rose above %.1f deg", cfg.min_elevation_deg)

    if args.output_json:
        out_path = Path(args.output_json)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(summary.to_dict(), indent=2))
        logger.info("Summary written to %s", out_path)


if __name__ == "__main__":
    main()
