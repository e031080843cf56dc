"""Unit tests for jitfhss.physics.orbit.

Tests validate:
- Circular orbit period / speed and the overhead geometry at t=0
- Range-rate sign (closing positive) against a finite difference of range
- Visibility and Earth rotation handling
- SGP4 backend TLE format and orbit radius
"""

from __future__ import annotations

import numpy as np
import pytest

from jitfhss.physics.orbit import (
    EARTH_RADIUS_KM,
    CircularOrbit,
    OrbitConfig,
    Sgp4Orbit,
    build_kinematics,
    generate_tle_lines,
)


def overhead_config(**overrides) -> OrbitConfig:
    """Ground station directly below the satellite at t=0."""
    params = {"ground_lat_deg": 0.0, "ground_lon_deg": 0.0}
    params.update(overrides)
    return OrbitConfig(**params)


class TestOrbitConfig:
    """Tests for OrbitConfig derived values."""

    def test_period_and_speed_at_500_km(self) -> None:
        cfg = OrbitConfig()
        assert 5600.0 < cfg.orbital_period_seconds < 5750.0
        assert cfg.orbital_velocity_km_s == pytest.approx(7.617, abs=0.01)
        assert cfg.semi_major_axis_km == EARTH_RADIUS_KM + 500.0

    def test_invalid_config_raises(self) -> None:
        with pytest.raises(ValueError):
            OrbitConfig(altitude_km=0.0)
        with pytest.raises(ValueError):
            OrbitConfig(ground_lat_deg=91.0)


class TestCircularOrbit:
    """Tests for the closed-form backend."""

    def test_overhead_at_epoch(self) -> None:
        orbit = CircularOrbit(overhead_config())
        state = orbit.state(0.0)
        assert state.range_km == pytest.approx(500.0)
        assert state.elevation_deg == pytest.approx(90.0)
        assert state.range_rate_km_s == pytest.approx(0.0, abs=1e-9)
        assert orbit.is_visible(0.0)

    def test_satellite_stays_on_circle(self) -> None:
        orbit = CircularOrbit(OrbitConfig(inclination_deg=63.0, raan_deg=40.0))
        for t in (0.0, 123.0, 2000.0):
            pos, vel = orbit.satellite_state(t)
            assert np.linalg.norm(pos) == pytest.approx(orbit.config.semi_major_axis_km)
            assert np.dot(pos, vel) == pytest.approx(0.0, abs=1e-6)

    def test_receding_after_overhead(self) -> None:
        orbit = CircularOrbit(overhead_config())
        range_km, range_rate = orbit.range_and_rate(60.0)
        assert range_km > 500.0
        assert range_rate < 0.0

    @pytest.mark.parametrize("earth_rotation", [True, False])
    def test_range_rate_matches_finite_difference(self, earth_rotation: bool) -> None:
        orbit = CircularOrbit(overhead_config(earth_rotation=earth_rotation))
        t, dt = 150.0, 0.01
        d_range = (orbit.range_and_rate(t + dt)[0] - orbit.range_and_rate(t - dt)[0]) / (2 * dt)
        assert orbit.range_and_rate(t)[1] == pytest.approx(-d_range, rel=1e-4)

    def test_not_visible_half_an_orbit_later(self) -> None:
        orbit = CircularOrbit(overhead_config())
        half = orbit.config.orbital_period_seconds / 2
        assert orbit.elevation(half) < 0.0
        assert not orbit.is_visible(half, min_elevation_deg=5.0)

    def test_static_ground_station_without_rotation(self) -> None:
        orbit = CircularOrbit(overhead_config(earth_rotation=False))
        pos0, vel0 = orbit.ground_station_state(0.0)
        pos1, _ = orbit.ground_station_state(3600.0)
        assert np.allclose(pos0, pos1)
        assert np.allclose(vel0, 0.0)

    def test_rotating_ground_station_moves_east(self) -> None:
        orbit = CircularOrbit(overhead_config())
        _, vel = orbit.ground_station_state(0.0)
        assert vel[1] == pytest.approx(EARTH_RADIUS_KM * 7.2921159e-5)

    def test_default_geometry_has_passes(self) -> None:
        """The default station sees the satellite at some point during a day."""
        orbit = CircularOrbit(OrbitConfig())
        assert any(orbit.is_visible(float(t)) for t in range(0, 86400, 30))


class TestSgp4Orbit:
    """Tests for the SGP4 backend."""

    def test_tle_lines_well_formed(self) -> None:
        line1, line2 = generate_tle_lines(OrbitConfig())
        assert len(line1) == 69
        assert len(line2) == 69
        assert line1.startswith("1 00001U")
        assert line2.startswith("2 00001")

    def test_orbit_radius_matches_altitude(self) -> None:
        orbit = Sgp4Orbit(OrbitConfig())
        for t in (0.0, 600.0, 3000.0):
            pos, vel = orbit.satellite_state(t)
            assert np.linalg.norm(pos) == pytest.approx(EARTH_RADIUS_KM + 500.0, abs=50.0)
            assert np.linalg.norm(vel) == pytest.approx(7.6, abs=0.2)

    def test_state_is_consistent(self) -> None:
        orbit = Sgp4Orbit(OrbitConfig())
        state = orbit.state(120.0)
        assert state.range_km >= 500.0 - 50.0
        assert -90.0 <= state.elevation_deg <= 90.0
        assert abs(state.range_rate_km_s) < 8.0


class TestBuildKinematics:
    """Tests for backend selection."""

    def test_backends(self) -> None:
        assert isinstance(build_kinematics(OrbitConfig(), "circular"), CircularOrbit)
        assert isinstance(build_kinematics(OrbitConfig(), "sgp4"), Sgp4Orbit)

    def test_unknown_backend_raises(self) -> None:
        with pytest.raises(ValueError):
            build_kinematics(OrbitConfig(), "j2")

    def test_backend_interface_requires_state(self) -> None:
        from jitfhss.physics.orbit import _KinematicsBase

        with pytest.raises(TypeError):
            _KinematicsBase()
