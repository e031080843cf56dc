"""Doppler shift and propagation delay for the satellite-ground link.

When the satellite moves relative to the ground station the carrier arrives
shifted:

    f_rx = f_tx * (1 + v_r / c)

with v_r the range rate, positive while the satellite is closing (blue
shift). At LEO speeds (~7.5 km/s) this reaches tens of kHz at S-band.

Compensation removes the shift predicted for the *expected* transmit
frequency, not a measured one. It is only correct when the receiver already
knows which frequency was sent, i.e. when pattern synchronization holds.
"""

from __future__ import annotations

# Speed of light used by the link model (m/s)
SPEED_OF_LIGHT_M_S = 2.998e8


class DopplerCompensator:
    """Pure frequency conversions given a range rate in km/s."""

    def __init__(
        self,
        speed_of_light_m_s: float = SPEED_OF_LIGHT_M_S,
        compensation_enabled: bool = True,
    ):
        self.speed_of_light_m_s = speed_of_light_m_s
        self.compensation_enabled = compensation_enabled

    def shift(self, tx_freq_hz: float, range_rate_km_s: float) -> float:
        """Doppler shift in Hz; positive range rate (closing) gives a positive shift."""
        return tx_freq_hz * (range_rate_km_s * 1000.0 / self.speed_of_light_m_s)

    def apply(self, tx_freq_hz: float, range_rate_km_s: float) -> float:
        """Frequency observed at the receiver for a given transmit frequency."""
        return tx_freq_hz + self.shift(tx_freq_hz, range_rate_km_s)

    def compensate(
        self,
        rx_freq_hz: float,
        range_rate_km_s: float,
        expected_tx_freq_hz: float,
    ) -> float:
        """Estimate the transmit frequency by removing the expected shift.

        Returns ``rx_freq_hz`` unchanged when compensation is disabled.
        """
        if not self.compensation_enabled:
            return rx_freq_hz
        return rx_freq_hz - self.shift(expected_tx_freq_hz, range_rate_km_s)

    def set_compensation(self, enabled: bool) -> None:
        self.compensation_enabled = enabled

    def max_shift(self, freq_hz: float, max_velocity_km_s: float) -> float:
        """Worst-case shift magnitude for a given relative velocity."""
        return abs(freq_hz * (max_velocity_km_s * 1000.0 / self.speed_of_light_m_s))

    def propagation_delay(self, range_km: float) -> float:
        """One-way propagation delay in seconds."""
        return range_km * 1000.0 / self.speed_of_light_m_s

    def round_trip_delay(self, range_km: float) -> float:
        return 2.0 * self.propagation_delay(range_km)
