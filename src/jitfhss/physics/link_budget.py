"""
Link Budget Model for the satellite-to-ground hop channel

Computes the instantaneous SNR of the downlink from free space path loss,
elevation-dependent atmospheric / ionospheric / rain terms and the receiver
noise floor:

    SNR = EIRP - FSPL - L_atm - L_iono - L_rain + G_rx - N

    FSPL = 20*log10(4*pi*d/lambda)
    N    = k + 10*log10(T_sys) + 10*log10(B)     (k = -228.6 dBW/K/Hz)

The propagation terms carry independently sampled stochastic perturbations
(cloud margin, scintillation, rain events). They are drawn fresh on every
call so consecutive evaluations model a time-varying channel.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np

from jitfhss.physics.doppler import SPEED_OF_LIGHT_M_S

# Boltzmann constant in dBW/K/Hz
BOLTZMANN_DBW_K_HZ = -228.6

# ---------------------------------------------------------------------------
# Propagation constants (S-band defaults)
# ---------------------------------------------------------------------------
ATM_ZENITH_LOSS_DB = 0.2  # tropospheric attenuation at zenith, ~2 GHz
MIN_PATH_ELEVATION_DEG = 5.0  # cosecant model floor
CLOUD_PROBABILITY = 0.1
CLOUD_MAX_LOSS_DB = 2.0

IONO_LOSS_1GHZ_DB = 0.5  # zenith loss at 1 GHz, scales as 1/f^2
IONO_LOW_ELEVATION_DEG = 20.0
SCINTILLATION_RMS_DB = 0.3

RAIN_PROBABILITY = 0.1
RAIN_HEIGHT_KM = 3.0
RAIN_MAX_RATE_MM_HR = 10.0
RAIN_K = 0.0001  # ITU-R specific attenuation coefficients near 2 GHz
RAIN_ALPHA = 1.0


@dataclass(frozen=True)
class LinkBudget:
    """Components of one SNR evaluation (all in dB / dBW)."""

    fspl_db: float
    atm_db: float
    iono_db: float
    rain_db: float
    eirp_dbw: float
    rx_power_dbw: float
    noise_power_dbw: float
    snr_db: float

    def to_dict(self) -> dict:
        return asdict(self)


class LinkBudgetModel:
    """
    SNR calculator for the satellite downlink.

    Deterministic terms come from the configured RF chain; stochastic terms
    come from an injectable numpy ``Generator`` so scenarios are
    reproducible under test.
    """

    def __init__(
        self,
        carrier_freq_hz: float = 2.0e9,
        tx_power_dbw: float = 10.0,
        tx_gain_dbi: float = 15.0,
        rx_gain_dbi: float = 25.0,
        system_temp_k: float = 290.0,
        bandwidth_hz: float = 1.0e6,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            carrier_freq_hz: Carrier frequency used for FSPL and ionospheric scaling.
            tx_power_dbw: Satellite transmit power (10 dBW = 10 W).
            tx_gain_dbi: Satellite antenna gain.
            rx_gain_dbi: Ground antenna gain.
            system_temp_k: Receiver system noise temperature.
            bandwidth_hz: Hop channel bandwidth.
            rng: numpy Generator for the stochastic terms.
        """
        if carrier_freq_hz <= 0:
            raise ValueError(f"carrier_freq_hz must be > 0, got {carrier_freq_hz}")
        if system_temp_k <= 0 or bandwidth_hz <= 0:
            raise ValueError(
                "system_temp_k and bandwidth_hz must be > 0, got "
                f"{system_temp_k} and {bandwidth_hz}"
            )
        self.carrier_freq_hz = carrier_freq_hz
        self.tx_power_dbw = tx_power_dbw
        self.tx_gain_dbi = tx_gain_dbi
        self.rx_gain_dbi = rx_gain_dbi
        self.system_temp_k = system_temp_k
        self.bandwidth_hz = bandwidth_hz
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def wavelength_m(self) -> float:
        return SPEED_OF_LIGHT_M_S / self.carrier_freq_hz

    @property
    def eirp_dbw(self) -> float:
        return self.tx_power_dbw + self.tx_gain_dbi

    @property
    def noise_power_dbw(self) -> float:
        """Thermal noise N = kTB in dBW."""
        return (
            BOLTZMANN_DBW_K_HZ
            + 10 * math.log10(self.system_temp_k)
            + 10 * math.log10(self.bandwidth_hz)
        )

    def compute_fspl_db(self, range_km: float) -> float:
        """
        Free Space Path Loss.

        FSPL = 20*log10(4*pi*d/lambda) in dB

        Returns 0.0 for a non-positive range.
        """
        range_m = range_km * 1000.0
        if range_m <= 0:
            return 0.0
        return 20 * math.log10(4 * math.pi * range_m / self.wavelength_m)

    def atmospheric_loss_db(self, elevation_deg: float) -> float:
        """Tropospheric attenuation with a cosecant path factor plus cloud margin."""
        path_factor = 1.0 / math.sin(math.radians(max(elevation_deg, MIN_PATH_ELEVATION_DEG)))
        loss = ATM_ZENITH_LOSS_DB * path_factor
        if self.rng.random() < CLOUD_PROBABILITY:
            loss += self.rng.random() * CLOUD_MAX_LOSS_DB
        return loss

    def ionospheric_loss_db(self, elevation_deg: float) -> float:
        """Ionospheric absorption (~1/f^2) plus absolute scintillation fading."""
        freq_ghz = self.carrier_freq_hz / 1e9
        loss_zenith = IONO_LOSS_1GHZ_DB / freq_ghz**2
        if elevation_deg < IONO_LOW_ELEVATION_DEG:
            elev_factor = 1.0 + (IONO_LOW_ELEVATION_DEG - elevation_deg) / 10.0
        else:
            elev_factor = 1.0
        scintillation = abs(self.rng.standard_normal() * SCINTILLATION_RMS_DB)
        return loss_zenith * elev_factor + scintillation

    def rain_fade_db(self, elevation_deg: float) -> float:
        """Rain attenuation, present only during a sampled rain event."""
        if self.rng.random() >= RAIN_PROBABILITY:
            return 0.0
        if elevation_deg < 90.0:
            path_km = RAIN_HEIGHT_KM / math.sin(
                math.radians(max(elevation_deg, MIN_PATH_ELEVATION_DEG))
            )
        else:
            path_km = RAIN_HEIGHT_KM
        rain_rate = self.rng.random() * RAIN_MAX_RATE_MM_HR
        specific_atten = RAIN_K * rain_rate**RAIN_ALPHA  # dB/km
        return specific_atten * path_km

    def compute_link_budget(self, range_km: float, elevation_deg: float) -> LinkBudget:
        """
        Evaluate the full link equation at one geometry.

        Args:
            range_km: Slant range to the satellite.
            elevation_deg: Elevation of the satellite above the local horizon.

        Returns:
            LinkBudget with every intermediate term and the resulting SNR.
        """
        fspl = self.compute_fspl_db(range_km)
        atm = self.atmospheric_loss_db(elevation_deg)
        iono = self.ionospheric_loss_db(elevation_deg)
        rain = self.rain_fade_db(elevation_deg)

        eirp = self.eirp_dbw
        rx_power = eirp - fspl - atm - iono - rain + self.rx_gain_dbi
        noise = self.noise_power_dbw

        return LinkBudget(
            fspl_db=fspl,
            atm_db=atm,
            iono_db=iono,
            rain_db=rain,
            eirp_dbw=eirp,
            rx_power_dbw=rx_power,
            noise_power_dbw=noise,
            snr_db=rx_power - noise,
        )

    def snr_db(self, range_km: float, elevation_deg: float) -> float:
        return self.compute_link_budget(range_km, elevation_deg).snr_db
