"""
Orbit kinematics for a single satellite tracked from one ground station.

Two interchangeable backends expose the same interface
(``state(t)``, ``range_and_rate(t)``, ``elevation(t)``, ``is_visible(t)``):

    1. CircularOrbit: closed-form circular Keplerian propagation in ECI with
       an optionally rotating Earth. Cheap and exact for its model.
    2. Sgp4Orbit: SGP4 propagation (WGS72) of a near-circular TLE generated
       from the same OrbitConfig, with a GMST rotation of the ground station
       into TEME.

Sign convention: range rate is positive while the satellite is closing on
the ground station (range decreasing), matching the Doppler model.

Dependencies:
    - numpy
    - sgp4 (Sgp4Orbit only)
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Tuple

import numpy as np
from sgp4.api import WGS72, Satrec, jday

# ---------------------------------------------------------------------------
# Physical Constants
# ---------------------------------------------------------------------------
EARTH_RADIUS_KM = 6371.0
EARTH_MU = 398600.4418  # km^3/s^2 (gravitational parameter)
EARTH_ROTATION_RAD_S = 7.2921159e-5
SECONDS_PER_DAY = 86400.0

# Fixed TLE epoch for reproducibility (J2000.0)
DEFAULT_EPOCH = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Data Classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrbitConfig:
    """Satellite orbit and ground station placement."""

    altitude_km: float = 500.0
    inclination_deg: float = 45.0
    ground_lat_deg: float = 37.4
    ground_lon_deg: float = -122.1
    raan_deg: float = 0.0
    initial_anomaly_deg: float = 0.0
    earth_rotation: bool = True

    def __post_init__(self) -> None:
        if self.altitude_km <= 0:
            raise ValueError(f"altitude_km must be > 0, got {self.altitude_km}")
        if not (-90.0 <= self.ground_lat_deg <= 90.0):
            raise ValueError(
                f"ground_lat_deg must be in [-90, 90], got {self.ground_lat_deg}"
            )

    @property
    def semi_major_axis_km(self) -> float:
        return EARTH_RADIUS_KM + self.altitude_km

    @property
    def orbital_period_seconds(self) -> float:
        """Compute orbital period using Kepler's third law."""
        a = self.semi_major_axis_km
        return 2 * math.pi * math.sqrt(a**3 / EARTH_MU)

    @property
    def orbital_velocity_km_s(self) -> float:
        """Circular orbital speed."""
        return math.sqrt(EARTH_MU / self.semi_major_axis_km)

    @property
    def mean_motion_rev_per_day(self) -> float:
        return SECONDS_PER_DAY / self.orbital_period_seconds


@dataclass(frozen=True)
class OrbitState:
    """Satellite state relative to the ground station at one instant."""

    time: float
    position_km: np.ndarray = field(compare=False)
    velocity_km_s: np.ndarray = field(compare=False)
    range_km: float
    range_rate_km_s: float
    elevation_deg: float

    def is_visible(self, min_elevation_deg: float) -> bool:
        return self.elevation_deg >= min_elevation_deg


# ---------------------------------------------------------------------------
# Shared geometry
# ---------------------------------------------------------------------------

def _ground_station_ecef(cfg: OrbitConfig) -> np.ndarray:
    lat = math.radians(cfg.ground_lat_deg)
    lon = math.radians(cfg.ground_lon_deg)
    return EARTH_RADIUS_KM * np.array([
        math.cos(lat) * math.cos(lon),
        math.cos(lat) * math.sin(lon),
        math.sin(lat),
    ])


def _rotate_z(vec: np.ndarray, angle_rad: float) -> np.ndarray:
    c, s = math.cos(angle_rad), math.sin(angle_rad)
    return np.array([c * vec[0] - s * vec[1], s * vec[0] + c * vec[1], vec[2]])


def _relative_state(
    t: float,
    sat_pos: np.ndarray,
    sat_vel: np.ndarray,
    gs_pos: np.ndarray,
    gs_vel: np.ndarray,
) -> OrbitState:
    """Range, closing range rate and topocentric elevation from inertial vectors."""
    rel = sat_pos - gs_pos
    range_km = float(np.linalg.norm(rel))
    rel_vel = sat_vel - gs_vel
    # d|rel|/dt is positive while receding; flip so closing is positive
    range_rate = -float(np.dot(rel, rel_vel)) / range_km
    up = gs_pos / np.linalg.norm(gs_pos)
    sin_el = float(np.dot(rel, up)) / range_km
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, sin_el))))
    return OrbitState(
        time=t,
        position_km=sat_pos,
        velocity_km_s=sat_vel,
        range_km=range_km,
        range_rate_km_s=range_rate,
        elevation_deg=elevation,
    )


class _KinematicsBase(ABC):
    """Derived geometry on top of a backend's ``state(t)``."""

    config: OrbitConfig

    @abstractmethod
    def state(self, t: float) -> OrbitState:
        """Satellite position, velocity and link geometry at time t."""

    def range_and_rate(self, t: float) -> Tuple[float, float]:
        """(range_km, range_rate_km_s) at time t."""
        s = self.state(t)
        return s.range_km, s.range_rate_km_s

    def elevation(self, t: float) -> float:
        return self.state(t).elevation_deg

    def is_visible(self, t: float, min_elevation_deg: float = 5.0) -> bool:
        return self.state(t).is_visible(min_elevation_deg)


# ---------------------------------------------------------------------------
# Closed-form circular orbit
# ---------------------------------------------------------------------------

class CircularOrbit(_KinematicsBase):
    """Circular Keplerian orbit; the ground station turns with the Earth."""

    def __init__(self, config: OrbitConfig | None = None):
        self.config = config if config is not None else OrbitConfig()
        self._gs_ecef = _ground_station_ecef(self.config)

    def satellite_state(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """Position (km) and velocity (km/s) in ECI at time t."""
        cfg = self.config
        a = cfg.semi_major_axis_km
        n = 2 * math.pi / cfg.orbital_period_seconds
        v = cfg.orbital_velocity_km_s
        theta = math.radians(cfg.initial_anomaly_deg) + n * t

        # Position / velocity in the orbital plane
        x_o, y_o = a * math.cos(theta), a * math.sin(theta)
        vx_o, vy_o = -v * math.sin(theta), v * math.cos(theta)

        cos_raan = math.cos(math.radians(cfg.raan_deg))
        sin_raan = math.sin(math.radians(cfg.raan_deg))
        cos_inc = math.cos(math.radians(cfg.inclination_deg))
        sin_inc = math.sin(math.radians(cfg.inclination_deg))

        def to_eci(x: float, y: float) -> np.ndarray:
            return np.array([
                cos_raan * x - sin_raan * cos_inc * y,
                sin_raan * x + cos_raan * cos_inc * y,
                sin_inc * y,
            ])

        return to_eci(x_o, y_o), to_eci(vx_o, vy_o)

    def ground_station_state(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """Ground station position and velocity in ECI (GMST = 0 at t = 0)."""
        if not self.config.earth_rotation:
            return self._gs_ecef.copy(), np.zeros(3)
        pos = _rotate_z(self._gs_ecef, EARTH_ROTATION_RAD_S * t)
        vel = EARTH_ROTATION_RAD_S * np.array([-pos[1], pos[0], 0.0])
        return pos, vel

    def state(self, t: float) -> OrbitState:
        sat_pos, sat_vel = self.satellite_state(t)
        gs_pos, gs_vel = self.ground_station_state(t)
        return _relative_state(t, sat_pos, sat_vel, gs_pos, gs_vel)


# ---------------------------------------------------------------------------
# SGP4 backend
# ---------------------------------------------------------------------------

def _compute_gmst(dt: datetime) -> float:
    """
    Greenwich Mean Sidereal Time (IAU 1982 approximation) in radians.
    """
    jd, fr = jday(
        dt.year, dt.month, dt.day,
        dt.hour, dt.minute, dt.second + dt.microsecond / 1e6,
    )
    days = (jd - 2451545.0) + fr
    t_cent = days / 36525.0
    gmst_deg = (
        280.46061837
        + 360.98564736629 * days
        + 0.000387933 * t_cent**2
        - t_cent**3 / 38710000.0
    )
    return math.radians(gmst_deg % 360.0)


def _compute_tle_checksum(line: str) -> int:
    """TLE line checksum (modulo 10 sum of digits, '-' counts as 1)."""
    checksum = 0
    for char in line[:68]:
        if char.isdigit():
            checksum += int(char)
        elif char == '-':
            checksum += 1
    return checksum % 10


def generate_tle_lines(
    cfg: OrbitConfig,
    epoch: datetime = DEFAULT_EPOCH,
    catalog_num: int = 1,
    eccentricity: float = 0.0001,
) -> Tuple[str, str]:
    """
    Build a near-circular TLE matching an OrbitConfig.

    Returns:
        Tuple of (line1, line2)
    """
    year_2digit = epoch.year % 100
    year_start = datetime(epoch.year, 1, 1, tzinfo=epoch.tzinfo)
    day_of_year = (epoch - year_start).total_seconds() / SECONDS_PER_DAY + 1
    epoch_str = f"{year_2digit:02d}{day_of_year:012.8f}"

    line1 = f"1 {catalog_num:05d}U 00000A   {epoch_str}  .00000000  00000-0  00000-0 0  0000"
    line1 = line1[:68]
    line1 = line1 + str(_compute_tle_checksum(line1))

    ecc_str = f"{eccentricity:.7f}"[2:]  # drop "0."
    line2 = (
        f"2 {catalog_num:05d} "
        f"{cfg.inclination_deg % 180.0:8.4f} "
        f"{cfg.raan_deg % 360.0:8.4f} "
        f"{ecc_str} "
        f"{0.0:8.4f} "
        f"{cfg.initial_anomaly_deg % 360.0:8.4f} "
        f"{cfg.mean_motion_rev_per_day:11.8f}"
    )
    line2 = f"{line2:68}"[:68]
    line2 = line2 + str(_compute_tle_checksum(line2))

    return line1, line2


class Sgp4Orbit(_KinematicsBase):
    """SGP4-propagated satellite, ground station rotated into TEME by GMST."""

    def __init__(self, config: OrbitConfig | None = None, epoch: datetime = DEFAULT_EPOCH):
        self.config = config if config is not None else OrbitConfig()
        self.epoch = epoch
        self.tle = generate_tle_lines(self.config, epoch)
        self._satrec = Satrec.twoline2rv(self.tle[0], self.tle[1], WGS72)
        self._gs_ecef = _ground_station_ecef(self.config)

    def satellite_state(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """Position (km) and velocity (km/s) in TEME at t seconds past epoch."""
        target = self.epoch + timedelta(seconds=t)
        jd, fr = jday(
            target.year, target.month, target.day,
            target.hour, target.minute, target.second + target.microsecond / 1e6,
        )
        error, r_teme, v_teme = self._satrec.sgp4(jd, fr)
        if error != 0:
            raise RuntimeError(f"SGP4 propagation failed with error code {error} at t={t}")
        return np.array(r_teme), np.array(v_teme)

    def ground_station_state(self, t: float) -> Tuple[np.ndarray, np.ndarray]:
        gmst = _compute_gmst(self.epoch + timedelta(seconds=t))
        pos = _rotate_z(self._gs_ecef, gmst)
        vel = EARTH_ROTATION_RAD_S * np.array([-pos[1], pos[0], 0.0])
        return pos, vel

    def state(self, t: float) -> OrbitState:
        sat_pos, sat_vel = self.satellite_state(t)
        gs_pos, gs_vel = self.ground_station_state(t)
        return _relative_state(t, sat_pos, sat_vel, gs_pos, gs_vel)


def build_kinematics(config: OrbitConfig, backend: str = "circular") -> _KinematicsBase:
    """Construct the kinematics backend named by ``backend``."""
    if backend == "circular":
        return CircularOrbit(config)
    if backend == "sgp4":
        return Sgp4Orbit(config)
    raise ValueError(f"Unknown orbit backend '{backend}'. Use 'circular' or 'sgp4'.")
