"""Ordered, bounded pattern buffer owned by one hop participant.

Every participant keeps its own buffer, but the driver pushes identical
pattern values into all of them. The buffer therefore has to turn an
arbitrary delivery order into one canonical consumption order:

- contents are kept sorted ascending by ``sequence_number``;
- anything at or below the highest sequence number ever accepted is
  rejected, so duplicates and stale deliveries never re-enter;
- consumption is strictly sequential through a cursor;
- running past the end repeats the last pattern instead of failing.

Nothing here raises at runtime. Degradation is reported through return
values, counters and log records so the driver can aggregate it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from jitfhss.patterns.pattern import Pattern

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferStatus:
    """Snapshot of a PatternBuffer."""

    total_patterns: int
    cursor: int
    remaining_patterns: int
    max_sequence_seen: int
    clock_offset: float
    rejected_count: int
    exhausted_count: int
    low_level_count: int


class PatternBuffer:
    """Sorted, capacity-bounded queue of hop patterns with a read cursor.

    The cursor counts consumed entries: ``patterns[cursor]`` is the next one
    ``next()`` hands out and ``patterns[cursor - 1]`` is the current target.
    Invariants: contents sorted, ``0 <= cursor <= len(patterns)``.
    """

    def __init__(self, capacity: int = 50, low_watermark: Optional[int] = None):
        """
        Args:
            capacity: Maximum number of stored patterns.
            low_watermark: ``remaining()`` below this raises the low signal.
                Defaults to 20% of capacity.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if low_watermark is None:
            low_watermark = int(capacity * 0.2)
        if not (0 <= low_watermark <= capacity):
            raise ValueError(
                f"low_watermark must be in [0, {capacity}], got {low_watermark}"
            )

        self.capacity = capacity
        self.low_watermark = low_watermark
        self._patterns: List[Pattern] = []
        self._cursor = 0
        self._last_returned: Optional[Pattern] = None
        self.max_sequence_seen = -1
        self.clock_offset = 0.0

        self.is_low = False
        self.rejected_count = 0
        self.exhausted_count = 0
        self.low_level_count = 0

    def __len__(self) -> int:
        return len(self._patterns)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def patterns(self) -> tuple[Pattern, ...]:
        return tuple(self._patterns)

    @property
    def is_exhausted(self) -> bool:
        return self._cursor >= len(self._patterns)

    def remaining(self) -> int:
        """Number of patterns not yet handed out."""
        return len(self._patterns) - self._cursor

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def add(self, pattern: Pattern) -> bool:
        """Insert a pattern; returns False for duplicate or stale deliveries."""
        seq = pattern.sequence_number
        if seq <= self.max_sequence_seen:
            self.rejected_count += 1
            logger.debug(
                "Rejected duplicate or out-of-order pattern %d (max seen: %d)",
                seq,
                self.max_sequence_seen,
            )
            return False

        # Accepted sequence numbers exceed everything stored, so the tail
        # is always the sorted position.
        self._patterns.append(pattern)
        self.max_sequence_seen = seq
        self._trim()
        self.is_low = self.remaining() < self.low_watermark
        return True

    def _trim(self) -> None:
        """Drop entries until len <= capacity, never the current target."""
        excess = len(self._patterns) - self.capacity
        if excess <= 0:
            return

        # Consumed entries strictly before the current target go first.
        consumed_before_target = max(self._cursor - 1, 0)
        n = min(excess, consumed_before_target)
        if n:
            del self._patterns[:n]
            self._cursor -= n
            excess -= n
        if excess <= 0:
            return

        # Then the oldest pending entries after the current target.
        start = self._cursor
        del self._patterns[start:start + excess]
        logger.warning(
            "Pattern buffer over capacity (%d); dropped %d pending pattern(s)",
            self.capacity,
            excess,
        )

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def next(self, time: Optional[float] = None) -> Optional[Pattern]:
        """Hand out the next pattern in sequence order.

        Past the end the last pattern is repeated and an exhaustion is
        counted; this is the observable desynchronization signal. An empty
        buffer repeats the last pattern it ever handed out, or returns None
        if it never handed one out.
        """
        if self._cursor < len(self._patterns):
            pattern = self._patterns[self._cursor]
            self._cursor += 1
        else:
            self.exhausted_count += 1
            if self._patterns:
                self._cursor = len(self._patterns)
                pattern = self._patterns[-1]
            else:
                pattern = self._last_returned
            logger.warning(
                "Pattern buffer exhausted at t=%s; repeating seq %s",
                time,
                pattern.sequence_number if pattern is not None else None,
            )

        remaining = self.remaining()
        self.is_low = remaining < self.low_watermark
        if self.is_low:
            self.low_level_count += 1
            logger.debug("Pattern buffer low: %d remaining", remaining)

        if pattern is not None:
            self._last_returned = pattern
        return pattern

    def compact(self) -> None:
        """Drop every entry at or before the cursor and rewind the cursor."""
        if self._cursor == 0:
            return
        del self._patterns[:self._cursor]
        self._cursor = 0

    def reset(self) -> None:
        """Empty the buffer. The duplicate gate keeps its history."""
        self._patterns.clear()
        self._cursor = 0
        self.is_low = self.low_watermark > 0

    def set_clock_offset(self, offset: float) -> None:
        self.clock_offset = offset

    def status(self) -> BufferStatus:
        return BufferStatus(
            total_patterns=len(self._patterns),
            cursor=self._cursor,
            remaining_patterns=self.remaining(),
            max_sequence_seen=self.max_sequence_seen,
            clock_offset=self.clock_offset,
            rejected_count=self.rejected_count,
            exhausted_count=self.exhausted_count,
            low_level_count=self.low_level_count,
        )
