"""Pure statistics over hop link logs.

All functions in this module are pure (stateless) and operate only on log
records. Records are duck-typed: anything with ``success`` and
``failure_reason`` attributes (and ``to_dict()`` for the DataFrame export)
works, so there is no dependency on the simulation package.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import pandas as pd

# Failure reasons in the order the receiver checks them
FAILURE_REASONS = ("Low SNR", "Clock drift", "Frequency mismatch")


def compute_success_rate(records: Sequence) -> float:
    """Fraction of successful decode attempts.

    Args:
        records: Receive records.

    Returns:
        Successes / attempts, or 0.0 for an empty log.
    """
    if not records:
        return 0.0
    return sum(1 for r in records if r.success) / len(records)


def count_failure_reasons(records: Iterable) -> dict[str, int]:
    """Count failed attempts per failure reason.

    Every known reason is present in the result, with 0 when it never
    occurred. Unknown reasons are counted under their own key.
    """
    counts = {reason: 0 for reason in FAILURE_REASONS}
    for r in records:
        if r.success:
            continue
        counts[r.failure_reason] = counts.get(r.failure_reason, 0) + 1
    return counts


def failure_flags(records: Iterable) -> list[int]:
    """1 for every failed attempt, 0 for every success, in log order."""
    return [0 if r.success else 1 for r in records]


def longest_failure_streak(failed: list[int]) -> int:
    """Compute the longest consecutive run of failed attempts.

    Args:
        failed: Failure indicators (0 or 1) per attempt.

    Returns:
        The length of the longest consecutive run of 1s.
        Returns 0 if the list is empty or contains no failures.
    """
    if not failed:
        return 0

    max_streak = 0
    current_streak = 0

    for f in failed:
        if f == 1:
            current_streak += 1
            max_streak = max(max_streak, current_streak)
        else:
            current_streak = 0

    return max_streak


def records_to_frame(records: Iterable) -> pd.DataFrame:
    """One row per record, one column per record field."""
    return pd.DataFrame([r.to_dict() for r in records])
