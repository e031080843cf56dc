"""Redundant pattern source with round-robin failover and a fallback cache.

The source stands in for a set of N redundant entropy channels (e.g. ground
stations fed by hardware RNGs). Each call to ``generate`` tries the channels
in round-robin order; when every channel is jammed or down it serves a
pattern from a cache that was generated once, from a fixed seed, at
construction. Because the cache is deterministic, every consumer that
observes ``from_cache=True`` for the same sequence number sees the same
frequency, which keeps sender and receiver aligned through a total outage.

Failure injection follows the same approach as seeded failure sampling:
per-element Bernoulli draws from an injectable ``random.Random``.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from jitfhss.patterns.pattern import CACHE_SOURCE_ID, Pattern

logger = logging.getLogger(__name__)

# Fixed seed for the fallback cache; must be identical for every consumer.
FALLBACK_CACHE_SEED = 12345


@dataclass(frozen=True)
class PatternSourceConfig:
    """Construction-time parameters for a PatternSource."""

    num_channels: int = 3
    num_frequencies: int = 100
    frequency_band: Tuple[float, float] = (2.0e9, 2.1e9)
    cache_size: int = 1000
    jam_probability: float = 0.001   # per channel, per generate() call
    recovery_probability: float = 0.1  # per jammed channel, per call

    def __post_init__(self) -> None:
        if self.num_channels < 1:
            raise ValueError(f"num_channels must be >= 1, got {self.num_channels}")
        if self.num_frequencies < 1:
            raise ValueError(
                f"num_frequencies must be >= 1, got {self.num_frequencies}"
            )
        if self.cache_size < 1:
            raise ValueError(f"cache_size must be >= 1, got {self.cache_size}")
        f_min, f_max = self.frequency_band
        if not (0.0 < f_min < f_max):
            raise ValueError(
                f"frequency_band must satisfy 0 < min < max, got {self.frequency_band}"
            )
        for name in ("jam_probability", "recovery_probability"):
            p = getattr(self, name)
            if not (0.0 <= p <= 1.0):
                raise ValueError(f"{name} must be in [0, 1], got {p}")

    @property
    def frequency_step_hz(self) -> float:
        f_min, f_max = self.frequency_band
        return (f_max - f_min) / self.num_frequencies


@dataclass(frozen=True)
class SourceStatus:
    """Snapshot of a PatternSource for reporting."""

    active_channels: int
    jammed_channels: int
    current_channel: int
    sequence_number: int
    cache_hits: int
    failovers: int


def index_to_frequency(cfg: PatternSourceConfig, index: int) -> float:
    """Map a 1-based frequency index linearly onto the configured band."""
    return cfg.frequency_band[0] + (index - 1) * cfg.frequency_step_hz


def build_fallback_cache(cfg: PatternSourceConfig) -> List[float]:
    """Generate the deterministic fallback frequency cache.

    Only ``cache_size``, ``num_frequencies`` and ``frequency_band`` affect
    the result, so two sources configured alike hold identical caches.
    """
    rng = random.Random(FALLBACK_CACHE_SEED)
    return [
        index_to_frequency(cfg, rng.randint(1, cfg.num_frequencies))
        for _ in range(cfg.cache_size)
    ]


class PatternSource:
    """Generates sequenced hop patterns from N redundant channels.

    ``generate`` never raises. Channel flags and the sequence counter are
    shared mutable state, so every public method takes the instance lock;
    several participants may draw from one source.
    """

    def __init__(
        self,
        config: Optional[PatternSourceConfig] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        """
        Args:
            config: Source parameters (defaults to PatternSourceConfig()).
            rng: Random source for jamming and frequency draws. Takes
                precedence over ``seed``.
            seed: Seed for a private ``random.Random`` when ``rng`` is None.
        """
        self.config = config if config is not None else PatternSourceConfig()
        self._rng = rng if rng is not None else random.Random(seed)
        self._lock = threading.Lock()

        n = self.config.num_channels
        self._active = [True] * n
        self._jammed = [False] * n
        self._current_idx = 0  # 0-based pointer, channel id = idx + 1
        self._sequence = 0
        self._cache = build_fallback_cache(self.config)

        self.cache_hits = 0
        self.failovers = 0
        self.last_failover_attempts = 0

    @property
    def num_channels(self) -> int:
        return self.config.num_channels

    @property
    def sequence_number(self) -> int:
        """Sequence number of the most recently emitted pattern (0 if none)."""
        return self._sequence

    @property
    def fallback_cache(self) -> Tuple[float, ...]:
        return tuple(self._cache)

    def set_jam_probability(self, probability: float) -> None:
        if not (0.0 <= probability <= 1.0):
            raise ValueError(f"jam probability must be in [0, 1], got {probability}")
        with self._lock:
            self.config = replace(self.config, jam_probability=probability)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate(self, timestamp: float) -> Pattern:
        """Emit the next pattern, from a live channel if any is available."""
        with self._lock:
            self._update_jamming()
            channel_idx = self._find_available_channel()
            self._sequence += 1

            if channel_idx is not None:
                freq_idx = self._rng.randint(1, self.config.num_frequencies)
                return Pattern(
                    frequency=index_to_frequency(self.config, freq_idx),
                    timestamp=timestamp,
                    sequence_number=self._sequence,
                    source_id=channel_idx + 1,
                    from_cache=False,
                )

            cache_index = self._sequence % self.config.cache_size
            self.cache_hits += 1
            logger.warning(
                "All %d pattern channels unavailable; serving seq %d from "
                "fallback cache slot %d",
                self.config.num_channels,
                self._sequence,
                cache_index,
            )
            return Pattern(
                frequency=self._cache[cache_index],
                timestamp=timestamp,
                sequence_number=self._sequence,
                source_id=CACHE_SOURCE_ID,
                from_cache=True,
            )

    def _update_jamming(self) -> None:
        """Bernoulli jam / recovery draw for every channel."""
        jam_p = self.config.jam_probability
        recover_p = self.config.recovery_probability
        for i in range(self.config.num_channels):
            if self._rng.random() < jam_p:
                if not self._jammed[i]:
                    logger.debug("Channel %d jammed", i + 1)
                self._jammed[i] = True
                self._active[i] = False
            elif self._jammed[i] and self._rng.random() < recover_p:
                logger.debug("Channel %d recovered", i + 1)
                self._jammed[i] = False
                self._active[i] = True

    def _find_available_channel(self) -> Optional[int]:
        """Round-robin scan from the current pointer, at most N attempts."""
        n = self.config.num_channels
        attempts = 0
        while attempts < n:
            idx = self._current_idx
            if self._active[idx] and not self._jammed[idx]:
                self.last_failover_attempts = attempts
                return idx
            self._current_idx = (idx + 1) % n
            self.failovers += 1
            attempts += 1
        self.last_failover_attempts = attempts
        return None

    # ------------------------------------------------------------------
    # Administrative overrides
    # ------------------------------------------------------------------

    def jam_channel(self, channel_id: int) -> None:
        """Mark a channel jammed (1-based id). Idempotent."""
        with self._lock:
            if not self._valid_channel(channel_id):
                return
            self._jammed[channel_id - 1] = True
            self._active[channel_id - 1] = False
            logger.info("Channel %d jammed by operator", channel_id)

    def restore_channel(self, channel_id: int) -> None:
        """Clear a channel's jammed flag (1-based id). Idempotent."""
        with self._lock:
            if not self._valid_channel(channel_id):
                return
            self._jammed[channel_id - 1] = False
            self._active[channel_id - 1] = True
            logger.info("Channel %d restored by operator", channel_id)

    def is_channel_available(self, channel_id: int) -> bool:
        with self._lock:
            if not self._valid_channel(channel_id):
                return False
            idx = channel_id - 1
            return self._active[idx] and not self._jammed[idx]

    def _valid_channel(self, channel_id: int) -> bool:
        if 1 <= channel_id <= self.config.num_channels:
            return True
        logger.warning(
            "Ignoring unknown channel id %d (valid: 1..%d)",
            channel_id,
            self.config.num_channels,
        )
        return False

    def status(self) -> SourceStatus:
        with self._lock:
            return SourceStatus(
                active_channels=sum(self._active),
                jammed_channels=sum(self._jammed),
                current_channel=self._current_idx + 1,
                sequence_number=self._sequence,
                cache_hits=self.cache_hits,
                failovers=self.failovers,
            )
