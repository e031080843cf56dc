"""Link Simulation Configuration, Driver Loop and Run Summary.

One run wires a single ``PatternSource`` to a ``SatelliteSender`` and a
``GroundReceiver`` over closed-form (or SGP4) orbit kinematics and steps a
discrete-time loop:

1. set the time on both participants
2. apply the administrative jam schedule to the pattern source
3. every ``refill_interval_steps`` refill low buffers
4. while the satellite is visible, transmit then receive one symbol

With ``shared_distribution`` every generated pattern is delivered to both
participants, so their buffers hold identical sequences. Without it each
participant requests its own patterns, which is the unsynchronized
baseline.
"""

from __future__ import annotations

import hashlib
import json
import logging
import random
from dataclasses import asdict, dataclass, field
from typing import Iterable, List, Optional, Tuple

import numpy as np

from jitfhss.patterns.buffer import PatternBuffer
from jitfhss.patterns.pattern import Pattern
from jitfhss.patterns.source import PatternSource, PatternSourceConfig
from jitfhss.physics.clock import ClockModel
from jitfhss.physics.doppler import DopplerCompensator
from jitfhss.physics.link_budget import LinkBudgetModel
from jitfhss.physics.orbit import OrbitConfig, build_kinematics
from jitfhss.simulation.participants import (
    DEFAULT_SNR_THRESHOLD_DB,
    GroundReceiver,
    ReceiveRecord,
    SatelliteSender,
    TransmitRecord,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
MAX_DATA_SYMBOL = 255


@dataclass(frozen=True)
class LinkSimulationConfig:
    """Configuration for a single link simulation run.

    Attributes:
        duration_s: Simulated time span; ticks run inclusive of t=0 and t=duration.
        time_step_s: Tick spacing.
        hop_duration_s: Seconds per hop.
        min_elevation_deg: Satellite must be at or above this to transmit.
        buffer_capacity: Capacity of each participant's PatternBuffer; also
            the number of patterns pre-loaded before the first tick.
        refill_interval_steps: Check buffer levels every N ticks.
        refill_fraction: Refill a buffer whose remaining() is below
            refill_fraction * buffer_capacity.
        refill_count: Patterns generated per refill.
        jam_channel_id: Pattern channel jammed by the schedule (None disables it).
        jam_start_s: Schedule start.
        jam_duration_s: Schedule length; the channel is restored afterwards.
        shared_distribution: Deliver every pattern to both participants.
        orbit_backend: "circular" or "sgp4".
        compensate_doppler: Enable the receiver's Doppler compensation.
        ideal_clocks: Give both participants error-free clocks instead of
            sampling oscillator coefficients.
        seed: Seeds every random generator of the run.
    """

    # Time parameters
    duration_s: float = 1000.0
    time_step_s: float = 0.1
    hop_duration_s: float = 1.0
    min_elevation_deg: float = 5.0

    # Pattern source parameters
    num_channels: int = 3
    num_frequencies: int = 100
    freq_min_hz: float = 2.0e9
    freq_max_hz: float = 2.1e9
    cache_size: int = 1000
    jam_probability: float = 0.001
    recovery_probability: float = 0.1

    # Distribution parameters
    buffer_capacity: int = 50
    refill_interval_steps: int = 10
    refill_fraction: float = 0.3
    refill_count: int = 10
    shared_distribution: bool = True

    # Jam schedule
    jam_channel_id: Optional[int] = 1
    jam_start_s: float = 400.0
    jam_duration_s: float = 200.0

    # Orbit parameters
    altitude_km: float = 500.0
    inclination_deg: float = 45.0
    ground_lat_deg: float = 37.4
    ground_lon_deg: float = -122.1
    raan_deg: float = 0.0
    earth_rotation: bool = True
    orbit_backend: str = "circular"

    # Link parameters
    carrier_freq_hz: float = 2.0e9
    tx_power_dbw: float = 10.0
    tx_gain_dbi: float = 15.0
    rx_gain_dbi: float = 25.0
    system_temp_k: float = 290.0
    bandwidth_hz: float = 1.0e6
    snr_threshold_db: float = DEFAULT_SNR_THRESHOLD_DB
    compensate_doppler: bool = True
    ideal_clocks: bool = False

    seed: int = 42

    def __post_init__(self) -> None:
        if self.time_step_s <= 0:
            raise ValueError(f"time_step_s must be > 0, got {self.time_step_s}")
        if self.duration_s < 0:
            raise ValueError(f"duration_s must be >= 0, got {self.duration_s}")
        if self.hop_duration_s <= 0:
            raise ValueError(f"hop_duration_s must be > 0, got {self.hop_duration_s}")
        if self.refill_interval_steps < 1:
            raise ValueError(
                f"refill_interval_steps must be >= 1, got {self.refill_interval_steps}"
            )
        if not (0.0 <= self.refill_fraction <= 1.0):
            raise ValueError(
                f"refill_fraction must be in [0, 1], got {self.refill_fraction}"
            )
        if self.orbit_backend not in ("circular", "sgp4"):
            raise ValueError(
                f"orbit_backend must be 'circular' or 'sgp4', got '{self.orbit_backend}'"
            )

    def config_hash(self) -> str:
        """Compute a deterministic hash of this configuration.

        Returns:
            A hex string hash suitable for run identification.
        """
        config_json = json.dumps(asdict(self), sort_keys=True)
        return hashlib.sha256(config_json.encode()).hexdigest()[:16]

    @property
    def num_steps(self) -> int:
        """Number of ticks, inclusive of t=0 and t=duration_s.

        Example: 1.0 s @ 0.1 s = ticks 0..10 = 11 steps.
        """
        return int(round(self.duration_s / self.time_step_s)) + 1

    @property
    def jam_end_s(self) -> float:
        return self.jam_start_s + self.jam_duration_s

    @property
    def source_config(self) -> PatternSourceConfig:
        return PatternSourceConfig(
            num_channels=self.num_channels,
            num_frequencies=self.num_frequencies,
            frequency_band=(self.freq_min_hz, self.freq_max_hz),
            cache_size=self.cache_size,
            jam_probability=self.jam_probability,
            recovery_probability=self.recovery_probability,
        )

    @property
    def orbit_config(self) -> OrbitConfig:
        return OrbitConfig(
            altitude_km=self.altitude_km,
            inclination_deg=self.inclination_deg,
            ground_lat_deg=self.ground_lat_deg,
            ground_lon_deg=self.ground_lon_deg,
            raan_deg=self.raan_deg,
            earth_rotation=self.earth_rotation,
        )


@dataclass
class LinkSimulationSummary:
    """Aggregated outcome of one link simulation run.

    Attributes:
        total_transmissions: Decode attempts (visible ticks).
        successful_transmissions: Attempts that decoded.
        success_rate: successful / total, 0.0 without attempts.
        failures_by_reason: Failed attempts per failure reason.
        max_failure_streak: Longest run of consecutive failed attempts.
        patterns_generated: Total PatternSource.generate() calls.
        cache_hits: Patterns served from the fallback cache.
        failovers: Channel misses during round-robin scans.
        sender_exhausted / receiver_exhausted: Buffer exhaustion counts.
        sender_rejected / receiver_rejected: Duplicate / stale deliveries.
    """

    total_transmissions: int
    successful_transmissions: int
    success_rate: float
    failures_by_reason: dict
    max_failure_streak: int
    num_steps: int
    visible_steps: int
    patterns_generated: int
    cache_hits: int
    failovers: int
    sender_exhausted: int
    receiver_exhausted: int
    sender_rejected: int
    receiver_rejected: int
    shared_distribution: bool = True
    schema_version: int = field(default=SCHEMA_VERSION)
    config_hash: str = ""

    def to_dict(self) -> dict:
        """Convert summary to dictionary for serialization."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Pattern distribution
# ---------------------------------------------------------------------------

def distribute_patterns(
    source: PatternSource,
    participants: Iterable,
    count: int,
    now: float,
) -> List[Pattern]:
    """Generate ``count`` patterns and deliver each one to every participant.

    All participants receive the identical value (apart from their own
    delivery delay stamped on the timestamp), so their buffers stay in
    lock-step.

    Returns:
        The generated patterns, in generation order.
    """
    participants = list(participants)
    generated: List[Pattern] = []
    for _ in range(count):
        pattern = source.generate(now)
        for participant in participants:
            participant.deliver(pattern)
        generated.append(pattern)
    return generated


def _refill(
    cfg: LinkSimulationConfig,
    source: PatternSource,
    sender: SatelliteSender,
    receiver: GroundReceiver,
    count: int,
    now: float,
) -> None:
    if cfg.shared_distribution:
        distribute_patterns(source, [sender, receiver], count, now)
    else:
        distribute_patterns(source, [sender], count, now)
        distribute_patterns(source, [receiver], count, now)


def _refill_low_buffers(
    cfg: LinkSimulationConfig,
    source: PatternSource,
    sender: SatelliteSender,
    receiver: GroundReceiver,
    now: float,
) -> None:
    level = cfg.refill_fraction * cfg.buffer_capacity
    sender_low = sender.buffer.remaining() < level
    receiver_low = receiver.buffer.remaining() < level

    if cfg.shared_distribution:
        if sender_low or receiver_low:
            distribute_patterns(source, [sender, receiver], cfg.refill_count, now)
        return

    if sender_low:
        distribute_patterns(source, [sender], cfg.refill_count, now)
    if receiver_low:
        distribute_patterns(source, [receiver], cfg.refill_count, now)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def build_participants(
    cfg: LinkSimulationConfig,
) -> Tuple[PatternSource, SatelliteSender, GroundReceiver]:
    """Construct the seeded source, sender and receiver for one run."""
    np_rng = np.random.default_rng(cfg.seed)
    source = PatternSource(cfg.source_config, rng=random.Random(cfg.seed))
    kinematics = build_kinematics(cfg.orbit_config, cfg.orbit_backend)

    if cfg.ideal_clocks:
        sender_clock, receiver_clock = ClockModel.ideal(), ClockModel.ideal()
    else:
        sender_clock = ClockModel.from_grade("satellite", rng=np_rng)
        receiver_clock = ClockModel.from_grade("ground", rng=np_rng)

    sender = SatelliteSender(
        kinematics,
        PatternBuffer(cfg.buffer_capacity),
        cfg.hop_duration_s,
        clock=sender_clock,
    )
    receiver = GroundReceiver(
        kinematics,
        PatternBuffer(cfg.buffer_capacity),
        cfg.hop_duration_s,
        link_budget=LinkBudgetModel(
            carrier_freq_hz=cfg.carrier_freq_hz,
            tx_power_dbw=cfg.tx_power_dbw,
            tx_gain_dbi=cfg.tx_gain_dbi,
            rx_gain_dbi=cfg.rx_gain_dbi,
            system_temp_k=cfg.system_temp_k,
            bandwidth_hz=cfg.bandwidth_hz,
            rng=np_rng,
        ),
        clock=receiver_clock,
        doppler=DopplerCompensator(compensation_enabled=cfg.compensate_doppler),
        snr_threshold_db=cfg.snr_threshold_db,
    )
    return source, sender, receiver


def run_link_simulation(
    cfg: LinkSimulationConfig,
) -> tuple[list[TransmitRecord], list[ReceiveRecord], LinkSimulationSummary]:
    """
    Execute one link simulation run.

    This function:
    1. Builds the seeded pattern source, kinematics and participants
    2. Pre-loads both buffers with ``buffer_capacity`` patterns
    3. Steps the tick loop (jam schedule, refills, transmit / receive)
    4. Aggregates the logs into a summary

    Args:
        cfg: LinkSimulationConfig with time, source, orbit and link parameters.

    Returns:
        Tuple of (transmit_log, receive_log, summary).
    """
    from jitfhss.metrics.link_stats import (
        compute_success_rate,
        count_failure_reasons,
        failure_flags,
        longest_failure_streak,
    )

    source, sender, receiver = build_participants(cfg)
    symbol_rng = random.Random(cfg.seed + 1)

    logger.info(
        "Starting link simulation: %d steps, hop %.2fs, %s distribution (config %s)",
        cfg.num_steps,
        cfg.hop_duration_s,
        "shared" if cfg.shared_distribution else "independent",
        cfg.config_hash(),
    )

    _refill(cfg, source, sender, receiver, cfg.buffer_capacity, 0.0)

    jam_active = False
    visible_steps = 0

    for step in range(cfg.num_steps):
        now = step * cfg.time_step_s
        sender.set_time(now)
        receiver.set_time(now)

        # Jam schedule
        if cfg.jam_channel_id is not None:
            in_window = cfg.jam_start_s <= now < cfg.jam_end_s
            if in_window and not jam_active:
                source.jam_channel(cfg.jam_channel_id)
                jam_active = True
            elif not in_window and jam_active:
                source.restore_channel(cfg.jam_channel_id)
                jam_active = False

        if (step + 1) % cfg.refill_interval_steps == 0:
            _refill_low_buffers(cfg, source, sender, receiver, now)

        if not sender.kinematics.is_visible(now, cfg.min_elevation_deg):
            continue

        visible_steps += 1
        signal = sender.transmit(symbol_rng.randint(0, MAX_DATA_SYMBOL))
        receiver.receive(signal)

    receive_log = list(receiver.receive_log)
    successes = sum(1 for r in receive_log if r.success)

    summary = LinkSimulationSummary(
        total_transmissions=len(receive_log),
        successful_transmissions=successes,
        success_rate=compute_success_rate(receive_log),
        failures_by_reason=count_failure_reasons(receive_log),
        max_failure_streak=longest_failure_streak(failure_flags(receive_log)),
        num_steps=cfg.num_steps,
        visible_steps=visible_steps,
        patterns_generated=source.sequence_number,
        cache_hits=source.cache_hits,
        failovers=source.failovers,
        sender_exhausted=sender.buffer.exhausted_count,
        receiver_exhausted=receiver.buffer.exhausted_count,
        sender_rejected=sender.buffer.rejected_count,
        receiver_rejected=receiver.buffer.rejected_count,
        shared_distribution=cfg.shared_distribution,
        config_hash=cfg.config_hash(),
    )

    logger.info(
        "Link simulation finished: %d/%d decoded (%.1f%%), %d cache hits, %d failovers",
        summary.successful_transmissions,
        summary.total_transmissions,
        100.0 * summary.success_rate,
        summary.cache_hits,
        summary.failovers,
    )

    return list(sender.transmit_log), receive_log, summary
