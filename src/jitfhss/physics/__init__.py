"""Physical-layer models: orbit kinematics, Doppler, link budget and clocks."""

from jitfhss.physics.clock import CLOCK_GRADES, ClockModel, OscillatorGrade
from jitfhss.physics.doppler import SPEED_OF_LIGHT_M_S, DopplerCompensator
from jitfhss.physics.link_budget import LinkBudget, LinkBudgetModel
from jitfhss.physics.orbit import (
    EARTH_RADIUS_KM,
    CircularOrbit,
    OrbitConfig,
    OrbitState,
    Sgp4Orbit,
    build_kinematics,
    generate_tle_lines,
)

__all__ = [
    # orbit.py
    "OrbitConfig",
    "OrbitState",
    "CircularOrbit",
    "Sgp4Orbit",
    "build_kinematics",
    "generate_tle_lines",
    "EARTH_RADIUS_KM",
    # doppler.py
    "DopplerCompensator",
    "SPEED_OF_LIGHT_M_S",
    # link_budget.py
    "LinkBudget",
    "LinkBudgetModel",
    # clock.py
    "ClockModel",
    "OscillatorGrade",
    "CLOCK_GRADES",
]
