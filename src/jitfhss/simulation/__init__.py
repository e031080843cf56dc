"""Hop participants, the driver loop and scenario sweeps."""

from jitfhss.simulation.engine import (
    LinkSimulationConfig,
    LinkSimulationSummary,
    build_participants,
    distribute_patterns,
    run_link_simulation,
)
from jitfhss.simulation.participants import (
    ChannelState,
    DecodeFailure,
    FrequencyHopper,
    GroundReceiver,
    HopState,
    ParticipantCore,
    ParticipantStatus,
    ReceiveRecord,
    SatelliteSender,
    TransmitRecord,
    should_hop,
)
from jitfhss.simulation.sweep import (
    JamSweepConfig,
    JamSweepSample,
    JamSweepStats,
    generate_sweep_samples,
    run_jam_sweep,
    summarize_samples,
)

__all__ = [
    # participants.py
    "should_hop",
    "HopState",
    "ChannelState",
    "FrequencyHopper",
    "DecodeFailure",
    "TransmitRecord",
    "ReceiveRecord",
    "ParticipantCore",
    "ParticipantStatus",
    "SatelliteSender",
    "GroundReceiver",
    # engine.py
    "LinkSimulationConfig",
    "LinkSimulationSummary",
    "build_participants",
    "distribute_patterns",
    "run_link_simulation",
    # sweep.py
    "JamSweepConfig",
    "JamSweepSample",
    "JamSweepStats",
    "generate_sweep_samples",
    "summarize_samples",
    "run_jam_sweep",
]
