"""SNR margin binning for receive logs.

Translates the continuous SNR of each decode attempt into a discrete link
margin tier relative to the receiver's decode threshold.

Tier Definitions
----------------
- **Tier 1 (Robust)**: margin > comfortable_margin_db
- **Tier 2 (Marginal)**: 0 <= margin <= comfortable_margin_db
- **Tier 3 (Outage)**: margin < 0, the attempt fails on SNR alone

where ``margin = snr_db - threshold_db``.

Example Usage
-------------
>>> import pandas as pd
>>> from jitfhss.metrics.margin_binning import bin_snr_margin
>>> df = pd.DataFrame({'snr_db': [30.0, 10.0, 5.0]})
>>> bin_snr_margin(df)['margin_tier'].tolist()
[1, 2, 3]
"""

from __future__ import annotations

from typing import Literal

import pandas as pd


# -----------------------------------------------------------------------------
# Constants: Tier Definitions
# -----------------------------------------------------------------------------

TIER_ROBUST: Literal[1] = 1
TIER_MARGINAL: Literal[2] = 2
TIER_OUTAGE: Literal[3] = 3

TIER_LABELS: dict[int, str] = {
    TIER_ROBUST: "Robust",
    TIER_MARGINAL: "Marginal",
    TIER_OUTAGE: "Outage",
}

DEFAULT_THRESHOLD_DB: float = 8.0
DEFAULT_COMFORTABLE_MARGIN_DB: float = 6.0


# -----------------------------------------------------------------------------
# Core Binning Function
# -----------------------------------------------------------------------------


def bin_snr_margin(
    df: pd.DataFrame,
    snr_column: str = "snr_db",
    threshold_db: float = DEFAULT_THRESHOLD_DB,
    comfortable_margin_db: float = DEFAULT_COMFORTABLE_MARGIN_DB,
    margin_column: str = "snr_margin_db",
    tier_column: str = "margin_tier",
    label_column: str = "margin_label",
) -> pd.DataFrame:
    """Bin per-attempt SNR into link margin tiers.

    Parameters
    ----------
    df : pd.DataFrame
        Receive log frame (see ``records_to_frame``). Must include
        `snr_column`; all other columns are preserved.

    snr_column : str, default="snr_db"
        Column holding the SNR of each attempt in dB.

    threshold_db : float, default=8.0
        Decode threshold the margin is measured against.

    comfortable_margin_db : float, default=6.0
        Margins strictly above this value are Tier 1 (Robust).

    margin_column, tier_column, label_column : str
        Names of the three output columns.

    Returns
    -------
    pd.DataFrame
        A copy of the input with the margin, tier and label columns added.

    Raises
    ------
    ValueError
        If `snr_column` is missing, contains NaN, or
        `comfortable_margin_db` is negative.
    """
    if snr_column not in df.columns:
        raise ValueError(
            f"SNR column '{snr_column}' not found in DataFrame. "
            f"Available columns: {list(df.columns)}"
        )
    if comfortable_margin_db < 0.0:
        raise ValueError(
            f"comfortable_margin_db must be >= 0, got {comfortable_margin_db}"
        )

    snr = df[snr_column]
    if snr.isna().any():
        raise ValueError(f"SNR column '{snr_column}' contains NaN values.")

    result = df.copy()
    result[margin_column] = snr - threshold_db
    result[tier_column] = result[margin_column].apply(
        lambda m: compute_margin_tier(m, comfortable_margin_db)
    )
    result[label_column] = result[tier_column].map(TIER_LABELS)
    return result


# -----------------------------------------------------------------------------
# Helper Functions (Pure, Stateless)
# -----------------------------------------------------------------------------


def compute_margin_tier(
    margin_db: float,
    comfortable_margin_db: float = DEFAULT_COMFORTABLE_MARGIN_DB,
) -> int:
    """Map one SNR margin to its tier.

    Examples
    --------
    >>> compute_margin_tier(10.0)
    1
    >>> compute_margin_tier(6.0)  # Boundary: exactly at comfortable margin
    2
    >>> compute_margin_tier(0.0)
    2
    >>> compute_margin_tier(-0.1)
    3
    """
    if margin_db > comfortable_margin_db:
        return TIER_ROBUST
    elif margin_db < 0.0:
        return TIER_OUTAGE
    else:
        return TIER_MARGINAL


def summarize_margin_distribution(
    df: pd.DataFrame, tier_column: str = "margin_tier"
) -> dict:
    """Counts and percentages of attempts per margin tier."""
    if tier_column not in df.columns:
        raise ValueError(f"Tier column '{tier_column}' not found in DataFrame.")

    total = len(df)
    if total == 0:
        return {
            "total": 0,
            "robust_count": 0,
            "marginal_count": 0,
            "outage_count": 0,
            "robust_pct": 0.0,
            "marginal_pct": 0.0,
            "outage_pct": 0.0,
        }

    counts = df[tier_column].value_counts()
    robust = int(counts.get(TIER_ROBUST, 0))
    marginal = int(counts.get(TIER_MARGINAL, 0))
    outage = int(counts.get(TIER_OUTAGE, 0))

    return {
        "total": total,
        "robust_count": robust,
        "marginal_count": marginal,
        "outage_count": outage,
        "robust_pct": round(100.0 * robust / total, 2),
        "marginal_pct": round(100.0 * marginal / total, 2),
        "outage_pct": round(100.0 * outage / total, 2),
    }
