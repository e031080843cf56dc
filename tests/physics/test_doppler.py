"""Unit tests for jitfhss.physics.doppler."""

from __future__ import annotations

import pytest

from jitfhss.physics.doppler import SPEED_OF_LIGHT_M_S, DopplerCompensator


class TestShift:
    """Tests for the Doppler shift equations."""

    def test_magnitude_at_s_band(self) -> None:
        """2.05 GHz closing at 4 km/s shifts by about +27.35 kHz."""
        shift = DopplerCompensator().shift(2.05e9, 4.0)
        assert shift == pytest.approx(27351.57, rel=0.01)
        assert shift > 0

    def test_receding_is_negative(self) -> None:
        assert DopplerCompensator().shift(2.05e9, -4.0) < 0

    def test_zero_range_rate(self) -> None:
        d = DopplerCompensator()
        assert d.shift(2.0e9, 0.0) == 0.0
        assert d.apply(2.0e9, 0.0) == 2.0e9

    @pytest.mark.parametrize("range_rate", [-7.5, -1.0, 0.3, 7.5])
    def test_round_trip(self, range_rate: float) -> None:
        d = DopplerCompensator()
        tx = 2.0731e9
        rx = d.apply(tx, range_rate)
        assert d.compensate(rx, range_rate, expected_tx_freq_hz=tx) == pytest.approx(tx, rel=1e-6)

    def test_compensation_disabled_is_passthrough(self) -> None:
        d = DopplerCompensator(compensation_enabled=False)
        rx = d.apply(2.0e9, 5.0)
        assert d.compensate(rx, 5.0, expected_tx_freq_hz=2.0e9) == rx
        d.set_compensation(True)
        assert d.compensate(rx, 5.0, expected_tx_freq_hz=2.0e9) == pytest.approx(2.0e9)

    def test_max_shift_is_absolute(self) -> None:
        d = DopplerCompensator()
        assert d.max_shift(2.0e9, -7.5) == pytest.approx(2.0e9 * 7500.0 / SPEED_OF_LIGHT_M_S)


class TestDelay:
    """Tests for propagation delay."""

    def test_one_way(self) -> None:
        assert DopplerCompensator().propagation_delay(500.0) == pytest.approx(1.6678e-3, rel=1e-4)

    def test_round_trip_is_double(self) -> None:
        d = DopplerCompensator()
        assert d.round_trip_delay(1200.0) == pytest.approx(2 * d.propagation_delay(1200.0))
