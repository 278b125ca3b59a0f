"""Pytest configuration for hydrosweep.

Sweeps run against the in-process RecordingEngine, so the suite needs no
engine installation. Log records go to an in-memory buffer per test.
"""

from __future__ import annotations

import io
import json

import pytest

from hydrosweep.adapters.recording import RecordingEngine
from hydrosweep.core.config import (
    HullSweepConfig,
    PropGeometry,
    PropSweepConfig,
    RunControlConfig,
    TankSweepConfig,
)
from hydrosweep.core.logging import set_log_level, set_log_output


@pytest.fixture(autouse=True)
def log_buffer():
    """Capture JSON log lines and restore the global log state afterwards."""
    buf = io.StringIO()
    set_log_output(buf)
    set_log_level("DEBUG")
    yield buf
    set_log_output(None)
    set_log_level("INFO")


@pytest.fixture
def log_records(log_buffer):
    """Callable returning the records logged so far as dicts."""

    def read() -> list[dict]:
        return [json.loads(line) for line in log_buffer.getvalue().splitlines() if line.strip()]

    return read


@pytest.fixture
def prop_cfg() -> PropSweepConfig:
    """Two speeds, two trims, two rpms on a coarse 10 deg step (36-sample window)."""
    return PropSweepConfig(
        revision="unit",
        speeds=[60.0, 62.0],
        heights=[7.0],
        trims=[5.0, 10.0],
        rpms=[3000.0, 3100.0],
        geometries=[PropGeometry(diameter_in=14.5, x_prop_in=13.2, area_ratios=[0.9, 0.8])],
        run=RunControlConfig(angular_step_deg=10.0, revs_init=2, revs=1),
    )


@pytest.fixture
def prop_engine(prop_cfg: PropSweepConfig) -> RecordingEngine:
    return RecordingEngine(
        plots={
            prop_cfg.names.prop_plot: [c.label for c in prop_cfg.prop_channels],
            prop_cfg.names.gc_plot: [c.label for c in prop_cfg.gc_channels],
        }
    )


@pytest.fixture
def hull_cfg() -> HullSweepConfig:
    return HullSweepConfig(
        sinks=[24.5, 25.5],
        pitches=[-0.2, 0.8],
        yaws=[0.0, 90.0],
        speeds_forward=[1.0, 2.0, 3.0],
        speeds_angle=[1.0],
        reports=["Fx", "Drag"],
        run=RunControlConfig(iterations=20),
    )


@pytest.fixture
def hull_engine(hull_cfg: HullSweepConfig) -> RecordingEngine:
    return RecordingEngine(monitors={"Fx": 1.5, "Drag": -3.0})


@pytest.fixture
def tank_cfg() -> TankSweepConfig:
    return TankSweepConfig()
