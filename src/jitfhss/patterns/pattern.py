"""Hop pattern value type shared by every participant."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace

# source_id used for patterns served from the fallback cache
CACHE_SOURCE_ID = -1


@dataclass(frozen=True)
class Pattern:
    """One sequenced frequency assignment.

    Two participants hold "the same" pattern when frequency, sequence number
    and origin match. The timestamp is excluded from comparison because each
    recipient stamps its own delivery delay onto its copy.

    Attributes:
        frequency: Hop frequency in Hz.
        timestamp: Generation (or delivery) time in seconds.
        sequence_number: Strictly increasing across all generate() calls.
        source_id: 1-based live channel id, or -1 for the fallback cache.
        from_cache: True when served from the fallback cache.
    """

    frequency: float
    timestamp: float = field(compare=False)
    sequence_number: int
    source_id: int
    from_cache: bool = False

    def delayed(self, delay_s: float) -> Pattern:
        """Return a copy whose timestamp carries an extra delivery delay."""
        return replace(self, timestamp=self.timestamp + delay_s)

    def to_dict(self) -> dict:
        return asdict(self)
