"""RecordingEngine behaviour relied on by dry runs."""

import json

import pandas as pd
import pytest

from hydrosweep.adapters.engine import EnginePort, apply_setup
from hydrosweep.adapters.recording import RecordingEngine
from hydrosweep.core.config import EngineNames
from hydrosweep.core.exceptions import EngineError, EngineObjectNotFound
from hydrosweep.geometry.frames import hull_setup


def test_recording_engine_satisfies_port():
    assert isinstance(RecordingEngine(), EnginePort)


def test_known_names_are_enforced():
    engine = RecordingEngine(known=["inlet"])
    engine.set_boundary_value("inlet", "VelocityMagnitude", 1.0)
    with pytest.raises(EngineObjectNotFound) as excinfo:
        engine.set_boundary_value("outlet", "Pressure", 0.0)
    assert excinfo.value.kind == "boundary"
    assert excinfo.value.name == "outlet"


def test_setup_applies_transforms_before_frames():
    engine = RecordingEngine()
    apply_setup(engine, hull_setup(24.5, 0.0, 0.8, 45.0, EngineNames()))

    methods = [c.method for c in engine.calls]
    assert methods == ["set_transform"] * 4 + ["set_frame"] * 3
    assert [c.args[0] for c in engine.calls_to("set_frame")] == ["sink", "yaw", "roll_trim"]


def test_export_covers_history_since_last_clear(tmp_path):
    engine = RecordingEngine(plots={"Prop": ["Thrust", "Torque"]})
    engine.step(10)
    engine.clear_solution_history()
    engine.step(4)

    df = pd.read_csv(engine.export_series("Prop", tmp_path / "p.csv"))
    assert list(df.columns) == ["Iteration", "Thrust", "Torque"]
    assert df["Iteration"].tolist() == [11, 12, 13, 14]


def test_invalid_run_requests_raise():
    engine = RecordingEngine()
    with pytest.raises(EngineError):
        engine.step(0)
    with pytest.raises(EngineError):
        engine.run_until_time(1.0)
    with pytest.raises(EngineError):
        engine.set_timestep(-1.0)


def test_checkpoint_snapshot(tmp_path):
    engine = RecordingEngine()
    engine.set_timestep(0.01)
    engine.run_until_time(0.1)
    snapshot = json.loads(engine.save_checkpoint(tmp_path / "a.sim").read_text())
    assert snapshot["iteration"] == 10
    assert snapshot["time"] == pytest.approx(0.1)
