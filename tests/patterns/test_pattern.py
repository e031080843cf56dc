"""Unit tests for the Pattern value type."""

from __future__ import annotations

import dataclasses

import pytest

from jitfhss.patterns.pattern import CACHE_SOURCE_ID, Pattern


class TestPattern:
    """Tests for Pattern equality and delivery stamping."""

    def test_equality_ignores_timestamp(self) -> None:
        a = Pattern(frequency=2.05e9, timestamp=0.0, sequence_number=7, source_id=2)
        b = Pattern(frequency=2.05e9, timestamp=3.5, sequence_number=7, source_id=2)
        assert a == b

    def test_equality_covers_origin(self) -> None:
        live = Pattern(frequency=2.05e9, timestamp=0.0, sequence_number=7, source_id=2)
        cached = Pattern(
            frequency=2.05e9,
            timestamp=0.0,
            sequence_number=7,
            source_id=CACHE_SOURCE_ID,
            from_cache=True,
        )
        assert live != cached

    def test_delayed_copy(self) -> None:
        p = Pattern(frequency=2.0e9, timestamp=1.0, sequence_number=1, source_id=1)
        q = p.delayed(1e-3)
        assert q.timestamp == pytest.approx(1.001)
        assert p.timestamp == 1.0
        assert q == p

    def test_frozen(self) -> None:
        p = Pattern(frequency=2.0e9, timestamp=1.0, sequence_number=1, source_id=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.frequency = 2.1e9  # type: ignore[misc]

    def test_to_dict(self) -> None:
        p = Pattern(frequency=2.0e9, timestamp=1.0, sequence_number=1, source_id=1)
        assert p.to_dict() == {
            "frequency": 2.0e9,
            "timestamp": 1.0,
            "sequence_number": 1,
            "source_id": 1,
            "from_cache": False,
        }
