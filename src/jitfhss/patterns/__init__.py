"""Hop pattern generation and buffering.

This package contains the pattern value type, the redundant pattern source
and the per-participant ordered buffer. No orbital or channel dependencies.
"""

from jitfhss.patterns.buffer import BufferStatus, PatternBuffer
from jitfhss.patterns.pattern import CACHE_SOURCE_ID, Pattern
from jitfhss.patterns.source import (
    FALLBACK_CACHE_SEED,
    PatternSource,
    PatternSourceConfig,
    SourceStatus,
    build_fallback_cache,
    index_to_frequency,
)

__all__ = [
    # pattern.py
    "Pattern",
    "CACHE_SOURCE_ID",
    # source.py
    "PatternSource",
    "PatternSourceConfig",
    "SourceStatus",
    "FALLBACK_CACHE_SEED",
    "build_fallback_cache",
    "index_to_frequency",
    # buffer.py
    "PatternBuffer",
    "BufferStatus",
]
