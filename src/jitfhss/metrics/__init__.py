"""Statistics over hop link logs.

Pure functions over receive/transmit records and their DataFrames. No
simulation or physics dependencies.
"""

from jitfhss.metrics.link_stats import (
    FAILURE_REASONS,
    compute_success_rate,
    count_failure_reasons,
    failure_flags,
    longest_failure_streak,
    records_to_frame,
)
from jitfhss.metrics.margin_binning import (
    bin_snr_margin,
    compute_margin_tier,
    summarize_margin_distribution,
)

__all__ = [
    # link_stats.py
    "FAILURE_REASONS",
    "compute_success_rate",
    "count_failure_reasons",
    "failure_flags",
    "longest_failure_streak",
    "records_to_frame",
    # margin_binning.py
    "bin_snr_margin",
    "compute_margin_tier",
    "summarize_margin_distribution",
]
