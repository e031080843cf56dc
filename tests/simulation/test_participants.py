"""Unit tests for jitfhss.simulation.participants.

Tests validate:
- Hop timing (first hop, hop boundaries, clock error)
- Sync scenario: shared patterns, ideal clocks, no Doppler => 100 % decode
- Desync scenario: disjoint pattern sets => success collapses
- Decode gating order (Low SNR, Clock drift, Frequency mismatch)
"""

from __future__ import annotations

import numpy as np
import pytest

from jitfhss.patterns.buffer import PatternBuffer
from jitfhss.patterns.pattern import Pattern
from jitfhss.patterns.source import PatternSource, PatternSourceConfig
from jitfhss.physics.clock import ClockModel
from jitfhss.physics.doppler import DopplerCompensator
from jitfhss.physics.link_budget import LinkBudgetModel
from jitfhss.physics.orbit import OrbitState
from jitfhss.simulation.engine import distribute_patterns
from jitfhss.simulation.participants import (
    GROUND_LINK_DELAY_S,
    DecodeFailure,
    FrequencyHopper,
    GroundReceiver,
    HopState,
    ParticipantCore,
    SatelliteSender,
    TransmitRecord,
    should_hop,
)


class StaticKinematics:
    """Fixed geometry: constant range, range rate and elevation."""

    def __init__(
        self,
        range_km: float = 500.0,
        range_rate_km_s: float = 0.0,
        elevation_deg: float = 90.0,
    ):
        self.range_km = range_km
        self.range_rate_km_s = range_rate_km_s
        self.elevation_deg = elevation_deg

    def state(self, t: float) -> OrbitState:
        return OrbitState(
            time=t,
            position_km=np.zeros(3),
            velocity_km_s=np.zeros(3),
            range_km=self.range_km,
            range_rate_km_s=self.range_rate_km_s,
            elevation_deg=self.elevation_deg,
        )

    def is_visible(self, t: float, min_elevation_deg: float = 5.0) -> bool:
        return self.elevation_deg >= min_elevation_deg


def make_pair(kinematics=None, link_budget=None, clock=None, **receiver_kwargs):
    kinematics = kinematics if kinematics is not None else StaticKinematics()
    sender = SatelliteSender(kinematics, PatternBuffer(50), hop_duration=1.0)
    receiver = GroundReceiver(
        kinematics,
        PatternBuffer(50),
        hop_duration=1.0,
        link_budget=link_budget if link_budget is not None else LinkBudgetModel(rng=np.random.default_rng(0)),
        clock=clock if clock is not None else ClockModel.ideal(),
        **receiver_kwargs,
    )
    return sender, receiver


def run_ticks(sender: SatelliteSender, receiver: GroundReceiver, ticks: int, dt: float = 0.1) -> None:
    for k in range(ticks):
        t = k * dt
        sender.set_time(t)
        receiver.set_time(t)
        receiver.receive(sender.transmit(data_symbol=k % 256))


class TestShouldHop:
    """Tests for the hop timer predicate."""

    def test_first_hop_is_immediate(self) -> None:
        assert should_hop(0.0, None, 1.0)

    def test_hop_boundary(self) -> None:
        assert not should_hop(0.9, 0.0, 1.0)
        assert should_hop(1.0, 0.0, 1.0)

    def test_float_grid_boundary(self) -> None:
        """40 * 0.1 - 30 * 0.1 is slightly below 1.0 in binary floating point."""
        assert should_hop(40 * 0.1, 30 * 0.1, 1.0)

    def test_clock_error_shifts_boundary(self) -> None:
        assert should_hop(0.95, 0.0, 1.0, clock_error=0.06)
        assert not should_hop(1.0, 0.0, 1.0, clock_error=-0.01)

    def test_sub_millisecond_clock_error_counts(self) -> None:
        assert not should_hop(1.0, 0.0, 1.0, clock_error=-1e-6)
        assert should_hop(0.9999995, 0.0, 1.0, clock_error=1e-6)

    def test_short_hop_not_early(self) -> None:
        assert not should_hop(0.0095, 0.0, 0.01)
        assert should_hop(0.01, 0.0, 0.01)


class TestFrequencyHopper:
    """Tests for FrequencyHopper."""

    def test_hop_pulls_next_pattern(self) -> None:
        buf = PatternBuffer(50)
        for seq in range(1, 4):
            buf.add(Pattern(frequency=2.0e9 + seq, timestamp=0.0, sequence_number=seq, source_id=1))
        hopper = FrequencyHopper(buf, hop_duration=1.0)

        assert hopper.update(0.0)
        assert hopper.current_frequency == 2.0e9 + 1
        assert not hopper.update(0.5)
        assert hopper.current_frequency == 2.0e9 + 1
        assert hopper.update(1.0)
        assert hopper.current_frequency == 2.0e9 + 2
        assert hopper.channel.hop_count == 2
        assert hopper.channel.last_hop_time == 1.0
        assert hopper.state is HopState.IDLE

    def test_hop_count_on_millisecond_grid(self) -> None:
        """5 ms hops on 1 ms ticks: one hop every fifth tick over 100 ms."""
        buf = PatternBuffer(capacity=50)
        for seq in range(1, 31):
            buf.add(Pattern(frequency=2.0e9 + seq, timestamp=0.0, sequence_number=seq, source_id=1))
        hopper = FrequencyHopper(buf, hop_duration=0.005)

        hop_ticks = [k for k in range(100) if hopper.update(k * 0.001)]

        assert hopper.channel.hop_count == 20
        assert hop_ticks == list(range(0, 100, 5))

    def test_receiver_clock_behind_hops_a_tick_late(self) -> None:
        """A receiver clock running behind defers each hop by one tick."""
        sender, receiver = make_pair(clock=ClockModel(bias=-1e-6))
        distribute_patterns(PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1), [sender, receiver], 10, 0.0)

        run_ticks(sender, receiver, 12)

        assert sender.channel.last_hop_time == pytest.approx(1.0)
        assert receiver.channel.last_hop_time == pytest.approx(1.1)

    def test_empty_buffer_keeps_frequency(self) -> None:
        hopper = FrequencyHopper(PatternBuffer(10), hop_duration=1.0)
        assert hopper.update(0.0)
        assert hopper.current_frequency == 0.0

    def test_compacts_when_low(self) -> None:
        buf = PatternBuffer(capacity=10, low_watermark=5)
        for seq in range(1, 7):
            buf.add(Pattern(frequency=2.0e9, timestamp=0.0, sequence_number=seq, source_id=1))
        hopper = FrequencyHopper(buf, hop_duration=1.0)
        hopper.update(0.0)  # remaining 5, not low
        assert buf.cursor == 1
        hopper.update(1.0)  # remaining 4 -> compact
        assert buf.cursor == 0
        assert len(buf) == 4

    def test_invalid_hop_duration(self) -> None:
        with pytest.raises(ValueError):
            FrequencyHopper(PatternBuffer(), hop_duration=0.0)


class TestSatelliteSender:
    """Tests for SatelliteSender."""

    def test_transmit_applies_doppler(self) -> None:
        sender = SatelliteSender(StaticKinematics(range_rate_km_s=4.0), PatternBuffer(), 1.0)
        sender.deliver(Pattern(frequency=2.05e9, timestamp=0.0, sequence_number=1, source_id=1))
        record = sender.transmit(data_symbol=42)

        assert record.transmit_freq == 2.05e9
        assert record.doppler_shift == pytest.approx(27351.57, rel=0.01)
        assert record.received_freq == pytest.approx(2.05e9 + record.doppler_shift)
        assert record.data_symbol == 42
        assert sender.transmit_log == [record]

    def test_delivery_delay_is_uplink_propagation(self) -> None:
        sender = SatelliteSender(StaticKinematics(range_km=1000.0), PatternBuffer(), 1.0)
        sender.deliver(Pattern(frequency=2.0e9, timestamp=5.0, sequence_number=1, source_id=1))
        stored = sender.buffer.patterns[0]
        assert stored.timestamp == pytest.approx(5.0 + DopplerCompensator().propagation_delay(1000.0))

    def test_time_keeping_and_log_clearing(self) -> None:
        sender = SatelliteSender(StaticKinematics(), PatternBuffer(), 1.0)
        sender.set_time(2.0)
        sender.advance(0.5)
        assert sender.current_time == 2.5
        sender.transmit(1)
        assert sender.status().log_length == 1
        sender.clear_log()
        assert sender.transmit_log == []


class TestGroundReceiver:
    """Tests for GroundReceiver decode gating."""

    def test_sync_scenario_decodes_everything(self) -> None:
        """Shared patterns, ideal clocks, zero range rate, high SNR."""
        source = PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1)
        sender, receiver = make_pair()
        distribute_patterns(source, [sender, receiver], 50, 0.0)

        run_ticks(sender, receiver, 500)

        assert len(receiver.receive_log) == 500
        assert receiver.success_rate() == 1.0
        assert receiver.sync_errors == 0
        assert receiver.channel.hop_count == sender.channel.hop_count == 50
        assert all(r.decoded_symbol is not None for r in receiver.receive_log)
        assert receiver.buffer.exhausted_count == 0

    def test_desync_scenario_collapses(self) -> None:
        """Disjoint pattern sets leave only chance frequency matches."""
        cfg = PatternSourceConfig(
            jam_probability=0.0, frequency_band=(1.0e9, 3.0e9), num_frequencies=10
        )
        sender, receiver = make_pair()
        distribute_patterns(PatternSource(cfg, seed=1), [sender], 50, 0.0)
        distribute_patterns(PatternSource(cfg, seed=2), [receiver], 50, 0.0)

        run_ticks(sender, receiver, 500)

        assert receiver.success_rate() < 0.35
        reasons = {r.failure_reason for r in receiver.receive_log if not r.success}
        assert reasons == {DecodeFailure.FREQUENCY_MISMATCH.value}

    def test_low_snr_at_5000_km(self) -> None:
        kin = StaticKinematics(range_km=5000.0, elevation_deg=10.0)
        weak = LinkBudgetModel(
            tx_power_dbw=-10.0,
            tx_gain_dbi=0.0,
            rx_gain_dbi=0.0,
            rng=np.random.default_rng(0),
        )
        sender, receiver = make_pair(kinematics=kin, link_budget=weak)
        distribute_patterns(PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1), [sender, receiver], 5, 0.0)

        success, symbol = receiver.receive(sender.transmit(data_symbol=7))

        assert not success
        assert symbol is None
        record = receiver.receive_log[-1]
        assert record.failure_reason == "Low SNR"
        assert record.snr_db < 8.0

    def test_clock_drift_gate(self) -> None:
        sender, receiver = make_pair(clock=ClockModel(bias=0.2))
        distribute_patterns(PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1), [sender, receiver], 5, 0.0)
        success, _ = receiver.receive(sender.transmit(data_symbol=1))
        assert not success
        assert receiver.receive_log[-1].failure_reason == "Clock drift"

    def test_low_snr_reported_before_clock_drift(self) -> None:
        weak = LinkBudgetModel(tx_power_dbw=-60.0, rng=np.random.default_rng(0))
        sender, receiver = make_pair(link_budget=weak, clock=ClockModel(bias=0.2))
        distribute_patterns(PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1), [sender, receiver], 5, 0.0)
        receiver.receive(sender.transmit(data_symbol=1))
        assert receiver.receive_log[-1].failure_reason == "Low SNR"

    def test_doppler_compensated_under_motion(self) -> None:
        kin = StaticKinematics(range_km=900.0, range_rate_km_s=-6.5, elevation_deg=30.0)
        sender, receiver = make_pair(kinematics=kin)
        distribute_patterns(PatternSource(PatternSourceConfig(jam_probability=0.0), seed=1), [sender, receiver], 5, 0.0)

        success, symbol = receiver.receive(sender.transmit(data_symbol=99))

        record = receiver.receive_log[-1]
        assert success
        assert symbol == 99
        assert record.received_freq != record.expected_freq
        assert record.freq_error == pytest.approx(0.0, abs=1e-3)

    def test_mismatched_frequency_fails(self) -> None:
        sender, receiver = make_pair()
        receiver.deliver(Pattern(frequency=2.0e9, timestamp=0.0, sequence_number=1, source_id=1))
        signal = TransmitRecord(
            time=0.0,
            transmit_freq=2.1e9,
            received_freq=2.1e9,
            doppler_shift=0.0,
            range_km=500.0,
            range_rate_km_s=0.0,
            data_symbol=3,
        )
        success, _ = receiver.receive(signal)
        assert not success
        assert receiver.receive_log[-1].failure_reason == "Frequency mismatch"
        assert receiver.receive_log[-1].freq_error == pytest.approx(1.0e8)

    def test_ground_delivery_delay(self) -> None:
        _, receiver = make_pair()
        receiver.deliver(Pattern(frequency=2.0e9, timestamp=1.0, sequence_number=1, source_id=1))
        assert receiver.buffer.patterns[0].timestamp == pytest.approx(1.0 + GROUND_LINK_DELAY_S)

    def test_status_and_clear_log(self) -> None:
        sender, receiver = make_pair(clock=ClockModel(bias=0.2))
        receiver.deliver(Pattern(frequency=2.0e9, timestamp=0.0, sequence_number=1, source_id=1))
        receiver.set_time(0.0)
        receiver.receive(sender.transmit(data_symbol=1))

        status = receiver.status()
        assert status.role == "ground"
        assert status.sync_errors == 1
        assert status.log_length == 1
        assert status.buffer.clock_offset == pytest.approx(0.2)

        receiver.clear_log()
        assert receiver.receive_log == []
        assert receiver.sync_errors == 0
        assert receiver.success_rate() == 0.0


class TestRoleComposition:
    """Both roles share hop timing through composition, not a base class."""

    def test_roles_have_no_common_base(self) -> None:
        assert SatelliteSender.__mro__[1:] == (object,)
        assert GroundReceiver.__mro__[1:] == (object,)

    def test_each_role_owns_its_core(self) -> None:
        sender, receiver = make_pair()
        assert isinstance(sender.core, ParticipantCore)
        assert sender.core is not receiver.core
        assert sender.core.role == "satellite"
        assert receiver.core.role == "ground"
        assert sender.channel is sender.core.hopper.channel
