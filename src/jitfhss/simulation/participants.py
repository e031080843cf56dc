"""Hop participants: the satellite sender and the ground receiver.

Both roles compose the same ``FrequencyHopper``: a hop timer over a
``ChannelState`` that pulls the next frequency from the participant's own
``PatternBuffer``. The roles differ only in what they do once per tick:

- ``SatelliteSender.transmit`` shifts its current frequency by the Doppler
  of the current geometry and logs a ``TransmitRecord``.
- ``GroundReceiver.receive`` removes the expected Doppler shift and decides
  decode success from SNR, its own clock error and the residual frequency
  error, logging a ``ReceiveRecord``.

Kinematics backends only need ``state(t) -> OrbitState``.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Optional, Tuple

from jitfhss.patterns.buffer import BufferStatus, PatternBuffer
from jitfhss.patterns.pattern import Pattern
from jitfhss.physics.clock import ClockModel
from jitfhss.physics.doppler import DopplerCompensator
from jitfhss.physics.link_budget import LinkBudgetModel

logger = logging.getLogger(__name__)

# Delivery delay of the terrestrial link from the pattern source to the
# ground station (seconds)
GROUND_LINK_DELAY_S = 1e-3

# Relative tolerance on the hop comparison; absorbs float error of tick
# times built as step * dt
HOP_TIME_RTOL = 1e-9

DEFAULT_SNR_THRESHOLD_DB = 8.0
DEFAULT_FREQUENCY_TOLERANCE = 0.01  # relative to the expected frequency
DEFAULT_CLOCK_TOLERANCE = 0.1  # fraction of the hop duration


# ---------------------------------------------------------------------------
# Hop timing
# ---------------------------------------------------------------------------

def should_hop(
    now: float,
    last_hop_time: Optional[float],
    hop_duration: float,
    clock_error: float = 0.0,
) -> bool:
    """True when a hop is due; always True before the first hop."""
    if last_hop_time is None:
        return True
    tolerance = HOP_TIME_RTOL * max(1.0, hop_duration)
    return (now - last_hop_time) + clock_error >= hop_duration - tolerance


class HopState(Enum):
    IDLE = "idle"
    HOPPING = "hopping"


@dataclass
class ChannelState:
    """Frequency currently tuned by one participant."""

    current_frequency: float = 0.0
    last_hop_time: Optional[float] = None
    hop_count: int = 0
    current_sequence: Optional[int] = None


class FrequencyHopper:
    """Hop timer bound to one participant's pattern buffer."""

    def __init__(self, buffer: PatternBuffer, hop_duration: float):
        if hop_duration <= 0:
            raise ValueError(f"hop_duration must be > 0, got {hop_duration}")
        self.buffer = buffer
        self.hop_duration = hop_duration
        self.channel = ChannelState()
        self.state = HopState.IDLE

    @property
    def current_frequency(self) -> float:
        return self.channel.current_frequency

    def update(self, now: float, clock_error: float = 0.0) -> bool:
        """Hop if due. Returns True when a hop happened."""
        if not should_hop(now, self.channel.last_hop_time, self.hop_duration, clock_error):
            return False

        self.state = HopState.HOPPING
        pattern = self.buffer.next(now)
        if pattern is not None:
            self.channel.current_frequency = pattern.frequency
            self.channel.current_sequence = pattern.sequence_number
        self.channel.last_hop_time = now
        self.channel.hop_count += 1

        if self.buffer.remaining() < self.buffer.low_watermark:
            self.buffer.compact()

        logger.debug(
            "Hop at t=%.3f -> %.6f GHz (seq %s)",
            now,
            self.channel.current_frequency / 1e9,
            self.channel.current_sequence,
        )
        self.state = HopState.IDLE
        return True


# ---------------------------------------------------------------------------
# Log records
# ---------------------------------------------------------------------------

class DecodeFailure(str, Enum):
    LOW_SNR = "Low SNR"
    CLOCK_DRIFT = "Clock drift"
    FREQUENCY_MISMATCH = "Frequency mismatch"


@dataclass(frozen=True)
class TransmitRecord:
    """One transmitted hop symbol as it leaves the satellite."""

    time: float
    transmit_freq: float
    received_freq: float
    doppler_shift: float
    range_km: float
    range_rate_km_s: float
    data_symbol: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ReceiveRecord:
    """Outcome of one decode attempt at the ground station.

    Attributes:
        expected_freq: Frequency the receiver is tuned to.
        received_freq: Frequency of the arriving (Doppler-shifted) signal.
        compensated_freq: received_freq with the expected shift removed.
        freq_error: compensated_freq - expected_freq.
        failure_reason: First failing check, "" on success.
    """

    time: float
    expected_freq: float
    received_freq: float
    compensated_freq: float
    freq_error: float
    snr_db: float
    clock_error: float
    range_km: float
    range_rate_km_s: float
    elevation_deg: float
    success: bool
    failure_reason: str
    decoded_symbol: Optional[int]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class ParticipantStatus:
    role: str
    current_time: float
    current_frequency: float
    last_hop_time: Optional[float]
    hop_count: int
    log_length: int
    buffer: BufferStatus
    sync_errors: int = 0


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------

class ParticipantCore:
    """Time keeping, pattern delivery and status for one hop participant.

    Each role owns one, including its ``FrequencyHopper``, and supplies its
    own delivery delay and log length.
    """

    def __init__(
        self,
        role: str,
        kinematics,
        buffer: PatternBuffer,
        hop_duration: float,
        doppler: Optional[DopplerCompensator] = None,
        clock: Optional[ClockModel] = None,
    ):
        self.role = role
        self.kinematics = kinematics
        self.buffer = buffer
        self.hopper = FrequencyHopper(buffer, hop_duration)
        self.doppler = doppler if doppler is not None else DopplerCompensator()
        self.clock = clock if clock is not None else ClockModel.ideal()
        self.current_time = 0.0

    def set_time(self, t: float) -> None:
        self.current_time = t
        self.buffer.set_clock_offset(self.clock.error(t))

    def deliver(self, pattern: Pattern, delay_s: float) -> bool:
        """Hand a pattern to the buffer with the given delivery delay."""
        return self.buffer.add(pattern.delayed(delay_s))

    def status(self, log_length: int, sync_errors: int = 0) -> ParticipantStatus:
        channel = self.hopper.channel
        return ParticipantStatus(
            role=self.role,
            current_time=self.current_time,
            current_frequency=channel.current_frequency,
            last_hop_time=channel.last_hop_time,
            hop_count=channel.hop_count,
            log_length=log_length,
            buffer=self.buffer.status(),
            sync_errors=sync_errors,
        )


class SatelliteSender:
    """Transmitting side. Hop timing ignores clock error."""

    def __init__(
        self,
        kinematics,
        buffer: PatternBuffer,
        hop_duration: float,
        doppler: Optional[DopplerCompensator] = None,
        clock: Optional[ClockModel] = None,
    ):
        self.core = ParticipantCore("satellite", kinematics, buffer, hop_duration, doppler, clock)
        self.transmit_log: List[TransmitRecord] = []

    @property
    def kinematics(self):
        return self.core.kinematics

    @property
    def buffer(self) -> PatternBuffer:
        return self.core.buffer

    @property
    def doppler(self) -> DopplerCompensator:
        return self.core.doppler

    @property
    def clock(self) -> ClockModel:
        return self.core.clock

    @property
    def channel(self) -> ChannelState:
        return self.core.hopper.channel

    @property
    def hop_duration(self) -> float:
        return self.core.hopper.hop_duration

    @property
    def current_time(self) -> float:
        return self.core.current_time

    def set_time(self, t: float) -> None:
        self.core.set_time(t)

    def advance(self, dt: float) -> None:
        self.core.set_time(self.core.current_time + dt)

    def delivery_delay(self) -> float:
        """Uplink propagation delay at the current range."""
        state = self.kinematics.state(self.current_time)
        return self.doppler.propagation_delay(state.range_km)

    def deliver(self, pattern: Pattern) -> bool:
        return self.core.deliver(pattern, self.delivery_delay())

    def transmit(self, data_symbol: int) -> TransmitRecord:
        self.core.hopper.update(self.current_time)

        state = self.kinematics.state(self.current_time)
        tx_freq = self.channel.current_frequency
        rx_freq = self.doppler.apply(tx_freq, state.range_rate_km_s)

        record = TransmitRecord(
            time=self.current_time,
            transmit_freq=tx_freq,
            received_freq=rx_freq,
            doppler_shift=rx_freq - tx_freq,
            range_km=state.range_km,
            range_rate_km_s=state.range_rate_km_s,
            data_symbol=data_symbol,
        )
        self.transmit_log.append(record)
        return record

    def clear_log(self) -> None:
        self.transmit_log.clear()

    def status(self) -> ParticipantStatus:
        return self.core.status(len(self.transmit_log))


class GroundReceiver:
    """Receiving side; gates each decode on SNR, clock error and frequency."""

    def __init__(
        self,
        kinematics,
        buffer: PatternBuffer,
        hop_duration: float,
        link_budget: Optional[LinkBudgetModel] = None,
        clock: Optional[ClockModel] = None,
        doppler: Optional[DopplerCompensator] = None,
        snr_threshold_db: float = DEFAULT_SNR_THRESHOLD_DB,
        frequency_tolerance: float = DEFAULT_FREQUENCY_TOLERANCE,
        clock_tolerance: float = DEFAULT_CLOCK_TOLERANCE,
    ):
        """
        Args:
            kinematics: Orbit backend providing ``state(t)``.
            buffer: This receiver's own pattern buffer.
            hop_duration: Seconds between hops.
            link_budget: SNR model; default RF chain when None.
            clock: Receiver clock; ideal when None.
            doppler: Doppler compensator; compensation enabled when None.
            snr_threshold_db: Minimum SNR for a decode.
            frequency_tolerance: Allowed |freq_error| as a fraction of the
                expected frequency.
            clock_tolerance: Allowed |clock_error| as a fraction of hop_duration.
        """
        self.core = ParticipantCore("ground", kinematics, buffer, hop_duration, doppler, clock)
        self.link_budget = link_budget if link_budget is not None else LinkBudgetModel()
        self.snr_threshold_db = snr_threshold_db
        self.frequency_tolerance = frequency_tolerance
        self.clock_tolerance = clock_tolerance
        self.receive_log: List[ReceiveRecord] = []
        self.sync_errors = 0

    @property
    def kinematics(self):
        return self.core.kinematics

    @property
    def buffer(self) -> PatternBuffer:
        return self.core.buffer

    @property
    def doppler(self) -> DopplerCompensator:
        return self.core.doppler

    @property
    def clock(self) -> ClockModel:
        return self.core.clock

    @property
    def channel(self) -> ChannelState:
        return self.core.hopper.channel

    @property
    def hop_duration(self) -> float:
        return self.core.hopper.hop_duration

    @property
    def current_time(self) -> float:
        return self.core.current_time

    def set_time(self, t: float) -> None:
        self.core.set_time(t)

    def advance(self, dt: float) -> None:
        self.core.set_time(self.core.current_time + dt)

    def deliver(self, pattern: Pattern) -> bool:
        return self.core.deliver(pattern, GROUND_LINK_DELAY_S)

    def receive(self, signal: TransmitRecord) -> Tuple[bool, Optional[int]]:
        """Attempt to decode one transmitted symbol.

        Returns:
            (success, decoded_symbol); the symbol is None on failure.
        """
        now = self.current_time
        clock_error = self.clock.error(now)
        self.core.hopper.update(now, clock_error)

        state = self.kinematics.state(now)
        budget = self.link_budget.compute_link_budget(state.range_km, state.elevation_deg)
        expected = self.channel.current_frequency
        compensated = self.doppler.compensate(
            signal.received_freq, state.range_rate_km_s, expected
        )
        freq_error = compensated - expected

        reason: Optional[DecodeFailure] = None
        if budget.snr_db < self.snr_threshold_db:
            reason = DecodeFailure.LOW_SNR
        elif abs(clock_error) > self.clock_tolerance * self.hop_duration:
            reason = DecodeFailure.CLOCK_DRIFT
        elif not abs(freq_error) < self.frequency_tolerance * expected:
            reason = DecodeFailure.FREQUENCY_MISMATCH

        success = reason is None
        decoded = signal.data_symbol if success else None
        if not success:
            self.sync_errors += 1

        self.receive_log.append(
            ReceiveRecord(
                time=now,
                expected_freq=expected,
                received_freq=signal.received_freq,
                compensated_freq=compensated,
                freq_error=freq_error,
                snr_db=budget.snr_db,
                clock_error=clock_error,
                range_km=state.range_km,
                range_rate_km_s=state.range_rate_km_s,
                elevation_deg=state.elevation_deg,
                success=success,
                failure_reason=reason.value if reason is not None else "",
                decoded_symbol=decoded,
            )
        )
        return success, decoded

    def success_rate(self) -> float:
        if not self.receive_log:
            return 0.0
        return sum(1 for r in self.receive_log if r.success) / len(self.receive_log)

    def clear_log(self) -> None:
        self.receive_log.clear()
        self.sync_errors = 0

    def status(self) -> ParticipantStatus:
        return self.core.status(len(self.receive_log), sync_errors=self.sync_errors)
