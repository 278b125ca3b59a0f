"""Sweep enumeration, mesh bookkeeping and failure-policy tests."""

from pathlib import Path

import pytest

from hydrosweep.core.config import FailurePolicy
from hydrosweep.core.exceptions import (
    AggregationError,
    ConfigurationError,
    EngineError,
    ResultStoreError,
)
from hydrosweep.core.result_store import read_table
from hydrosweep.core.types import RunConfig, RunOutcome
from hydrosweep.pipelines.sweep import (
    Dimension,
    SweepDriver,
    SweepMode,
    SweepState,
    advance_mesh,
    enumerate_grid,
    grid_size,
)


def test_inner_dimension_varies_fastest():
    steps = list(enumerate_grid([Dimension("sink", [24.5, 25.5]), Dimension("pitch", [-0.2, 0.8])]))
    assert [s.point.values for s in steps] == [
        (24.5, -0.2),
        (24.5, 0.8),
        (25.5, -0.2),
        (25.5, 0.8),
    ]
    assert [s.ordinal for s in steps] == [0, 1, 2, 3]


def test_entered_marks_loop_body_starts():
    dims = [Dimension("speed", [1, 2]), Dimension("trim", [5, 10]), Dimension("rpm", [100, 200])]
    steps = list(enumerate_grid(dims))

    trim_entries = [s.ordinal for s in steps if s.entered("trim")]
    speed_entries = [s.ordinal for s in steps if s.entered("speed")]
    assert trim_entries == [0, 2, 4, 6]
    assert speed_entries == [0, 4]
    assert all(s.entered("rpm") for s in steps)
    assert [s.index_of("rpm") for s in steps] == [0, 1] * 4


def test_dependent_dimension_values():
    dims = [
        Dimension("yaw", [0.0, 90.0]),
        Dimension("speed", lambda outer: [1, 2, 3] if outer["yaw"] == 0.0 else [1]),
    ]
    steps = list(enumerate_grid(dims))
    assert [s.point.as_dict() for s in steps] == [
        {"yaw": 0.0, "speed": 1.0},
        {"yaw": 0.0, "speed": 2.0},
        {"yaw": 0.0, "speed": 3.0},
        {"yaw": 90.0, "speed": 1.0},
    ]
    assert grid_size(dims) == 4
    assert steps[3].entered("yaw")


def test_empty_dimension_yields_nothing():
    assert list(enumerate_grid([Dimension("a", [1.0]), Dimension("b", [])])) == []
    assert list(enumerate_grid([])) == []


def test_mesh_index_counts_trims_and_resets_per_speed():
    dims = [Dimension("speed", [1, 2]), Dimension("trim", [5, 10, 15]), Dimension("rpm", [100, 200])]
    state = SweepState()
    seen = []
    for step in enumerate_grid(dims):
        state = advance_mesh(state, step, "trim", "speed")
        seen.append((step.point["trim"], state.mesh_index))

    assert seen == [(5, 0), (5, 0), (10, 1), (10, 1), (15, 2), (15, 2)] * 2


def test_unknown_dimension_is_a_configuration_error():
    (step,) = enumerate_grid([Dimension("trim", [5.0])])
    with pytest.raises(ConfigurationError, match="unknown sweep dimension 'trims'"):
        step.entered("trims")
    with pytest.raises(ConfigurationError):
        step.index_of("rpm")
    with pytest.raises(ConfigurationError):
        advance_mesh(SweepState(), step, "trims", None)


def test_mesh_index_untouched_without_mesh_dimension():
    (step,) = enumerate_grid([Dimension("rpm", [100])])
    assert advance_mesh(SweepState(), step, None, None).mesh_index == -1


class _ListMode(SweepMode):
    """Minimal mode writing one column, with injectable collect failures."""

    name = "unit"

    def __init__(self, outdir: Path, fail_on=(), error=AggregationError):
        self.outdir = outdir
        self.fail_on = set(fail_on)
        self.error = error
        self.ran: list[float] = []

    def dimensions(self):
        return [Dimension("a", [1.0, 2.0]), Dimension("b", [10.0, 20.0, 30.0])]

    def header(self):
        return ["a", "b"]

    def table_path(self):
        return self.outdir / "unit.csv"

    def run(self, step, state):
        self.ran.append(step.ordinal)
        return RunOutcome(title=str(step.ordinal), run=RunConfig(steps=1), checkpoint=self.outdir)

    def collect(self, step, state, outcome):
        if step.ordinal in self.fail_on:
            raise self.error(f"bad point {step.ordinal}")
        return step.point.as_dict()


def test_continue_policy_isolates_failures(tmp_path):
    mode = _ListMode(tmp_path, fail_on={1, 4})
    report = SweepDriver(mode, FailurePolicy.CONTINUE).run()

    assert mode.ran == [0, 1, 2, 3, 4, 5]
    assert report.attempted == grid_size(mode.dimensions()) == 6
    assert len(report.failed) == 2
    assert report.rows_written == 4
    assert report.failed[0][0].as_dict() == {"a": 1.0, "b": 20.0}

    table = read_table(tmp_path / "unit.csv")
    assert table["a"].tolist() == [1.0, 1.0, 2.0, 2.0]
    assert table["b"].tolist() == [10.0, 30.0, 10.0, 30.0]


def test_continue_policy_logs_each_failure(tmp_path, log_records):
    SweepDriver(_ListMode(tmp_path, fail_on={2}, error=ResultStoreError), "continue").run()

    failures = [r for r in log_records() if r["message"] == "point failed, continuing"]
    assert len(failures) == 1
    assert failures[0]["kind"] == "ResultStoreError"
    assert failures[0]["b"] == 30.0


def test_abort_policy_stops_at_first_failure(tmp_path):
    mode = _ListMode(tmp_path, fail_on={1})
    with pytest.raises(AggregationError, match="bad point 1"):
        SweepDriver(mode, FailurePolicy.ABORT).run()

    assert mode.ran == [0, 1]
    assert len(read_table(tmp_path / "unit.csv")) == 1


def test_run_errors_are_fatal_under_continue(tmp_path):
    class Failing(_ListMode):
        def run(self, step, state):
            if step.ordinal == 2:
                raise EngineError("engine lost")
            return super().run(step, state)

    mode = Failing(tmp_path)
    with pytest.raises(EngineError):
        SweepDriver(mode, FailurePolicy.CONTINUE).run()
    assert mode.ran == [0, 1]


def test_unknown_policy_rejected(tmp_path):
    with pytest.raises(ValueError):
        SweepDriver(_ListMode(tmp_path), "retry")
