"""Sweep modes for the three campaigns.

prop: speed -> height -> trim -> rpm, windowed prop/gearcase aggregation
hull: sink -> pitch -> yaw -> speed, instantaneous report values
tank: rpm with a ramped physical-time stopping criterion
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..adapters.engine import EnginePort, apply_setup
from ..analysis.aggregate import (
    COEFFICIENT_COLUMNS,
    channel_specs,
    instantaneous,
    read_series,
    schema_columns,
    summarize_prop,
    window_size,
)
from ..core.config import HullSweepConfig, PropSweepConfig, TankSweepConfig
from ..core.logging import get_logger
from ..core.types import FrameSetup, RunOutcome, SweepStep
from ..geometry.frames import heave_setup, hull_setup, is_orthonormal, prop_frames, trim_setup
from .run_control import RunController, inlet_run, ramp_run, rotating_run
from .sweep import Dimension, SweepMode, SweepState, advance_mesh

logger = get_logger(__name__)


def _apply_frames(engine: EnginePort, setup: FrameSetup) -> None:
    for frame in setup.frames:
        if not is_orthonormal(frame):
            logger.warn("frame bases are not orthonormal", frame=frame.name)
    apply_setup(engine, setup)


def _point_columns(step: SweepStep, labels: dict[str, str]) -> dict[str, float]:
    return {labels[name]: value for name, value in step.point.dims}


class PropSweep(SweepMode):
    """Propeller and gearcase loads over speed, drive height, trim and rpm."""

    name = "prop"
    labels = {"speed": "Speed (mph)", "height": "Height (in.)", "trim": "Trim (deg)", "rpm": "RPM"}
    units = {"speed": "mph", "height": "in", "trim": "deg", "rpm": "rpm"}
    # Mesh rebuilt per trim entry; area ratios indexed from the start of each speed.
    mesh_dimension = "trim"
    mesh_reset_dimension = "speed"

    def __init__(self, cfg: PropSweepConfig, engine: EnginePort, outdir: str | Path) -> None:
        self.cfg = cfg
        self.engine = engine
        self.outdir = Path(outdir)
        self.controller = RunController(engine, self.outdir, cfg.names)
        self.prop_specs = channel_specs(cfg.prop_channels)
        self.gc_specs = channel_specs(cfg.gc_channels)
        self.window = window_size(cfg.run.angular_step_deg)

    def dimensions(self) -> list[Dimension]:
        return [
            Dimension("speed", self.cfg.speeds),
            Dimension("height", self.cfg.heights),
            Dimension("trim", self.cfg.trims),
            Dimension("rpm", self.cfg.rpms),
        ]

    def header(self) -> list[str]:
        return (
            list(self.labels.values())
            + schema_columns(self.prop_specs)
            + list(COEFFICIENT_COLUMNS)
            + schema_columns(self.gc_specs)
        )

    def table_path(self) -> Path:
        return self.outdir / f"{self.cfg.revision}_results.csv"

    def describe(self) -> dict[str, Any]:
        geom = self.cfg.geometry
        return {
            "revision": self.cfg.revision,
            "version": self.cfg.version,
            "diameter_in": geom.diameter_in,
            "x_prop_in": geom.x_prop_in,
            "area_ratios": geom.area_ratios,
            "window": self.window,
        }

    def prepare(self, step: SweepStep, state: SweepState) -> SweepState:
        names = self.cfg.names
        point = step.point
        geom = self.cfg.geometry

        if step.entered("speed"):
            for target in (names.wave_current, names.wave_wind, names.pressure_coeff_velocity):
                self.engine.set_parameter(target, point["speed"])

        if step.entered("height"):
            apply_setup(self.engine, heave_setup(point["height"], names))

        if step.entered(self.mesh_dimension):
            apply_setup(
                self.engine,
                trim_setup(
                    point["trim"],
                    self.cfg.trim_point_x,
                    self.cfg.trim_point_z,
                    geom.x_prop_in,
                    names,
                ),
            )
            self.engine.clear_solution()
            self.engine.rebuild_mesh()
            _apply_frames(
                self.engine,
                prop_frames(
                    point["height"],
                    point["trim"],
                    self.cfg.trim_point_x,
                    self.cfg.trim_point_z,
                    geom.x_prop_in,
                    names,
                ),
            )

        return advance_mesh(state, step, self.mesh_dimension, self.mesh_reset_dimension)

    def run(self, step: SweepStep, state: SweepState) -> RunOutcome:
        names = self.cfg.names
        title = step.point.title(self.cfg.revision, self.units)
        first_rate = step.index_of("rpm") == 0
        outcome = self.controller.execute(
            rotating_run(step.point["rpm"], first_rate, self.cfg.run, names),
            title,
            plots={"prop": names.prop_plot, "gc": names.gc_plot},
        )
        if names.prop_scene:
            self.engine.export_scene(names.prop_scene, self.outdir / f"{title}.sce")
        self.engine.clear_solution_history()
        return outcome

    def collect(self, step: SweepStep, state: SweepState, outcome: RunOutcome) -> dict[str, Any]:
        prop = read_series(
            outcome.series_files["prop"], "prop", [s.name for s in self.prop_specs]
        )
        gc = read_series(outcome.series_files["gc"], "gc", [s.name for s in self.gc_specs])
        geom = self.cfg.geometry

        row: dict[str, Any] = _point_columns(step, self.labels)
        row.update(
            summarize_prop(
                prop,
                gc,
                self.prop_specs,
                self.gc_specs,
                window=self.window,
                rpm=step.point["rpm"],
                speed_mph=step.point["speed"],
                diameter_in=geom.diameter_in,
                area_ratios=geom.area_ratios,
                mesh_index=state.mesh_index,
                thrust_channel=self.cfg.thrust_channel,
                torque_channel=self.cfg.torque_channel,
            )
        )
        return row


class HullSweep(SweepMode):
    """Hull forces over sink, pitch, yaw and drift speed."""

    name = "hull"
    labels = {"sink": "Sink", "pitch": "Pitch", "yaw": "Yaw", "speed": "Speed"}
    mesh_dimension = "yaw"
    mesh_reset_dimension = "sink"

    def __init__(self, cfg: HullSweepConfig, engine: EnginePort, outdir: str | Path) -> None:
        self.cfg = cfg
        self.engine = engine
        self.outdir = Path(outdir)
        self.controller = RunController(engine, self.outdir, cfg.names)

    def speeds_for(self, outer: dict[str, float]) -> list[float]:
        """Head-on runs use the forward speed set, any other heading the angled set."""
        return self.cfg.speeds_forward if outer["yaw"] == 0.0 else self.cfg.speeds_angle

    def dimensions(self) -> list[Dimension]:
        return [
            Dimension("sink", self.cfg.sinks),
            Dimension("pitch", self.cfg.pitches),
            Dimension("yaw", self.cfg.yaws),
            Dimension("speed", self.speeds_for),
        ]

    def header(self) -> list[str]:
        return list(self.labels.values()) + list(self.cfg.reports)

    def table_path(self) -> Path:
        return self.outdir / f"{self.cfg.title}_results.csv"

    def describe(self) -> dict[str, Any]:
        return {"title": self.cfg.title, "roll": self.cfg.roll, "iterations": self.cfg.run.iterations}

    def prepare(self, step: SweepStep, state: SweepState) -> SweepState:
        if step.entered(self.mesh_dimension):
            point = step.point
            _apply_frames(
                self.engine,
                hull_setup(point["sink"], self.cfg.roll, point["pitch"], point["yaw"], self.cfg.names),
            )
            self.engine.clear_solution()
            self.engine.rebuild_mesh()
        return advance_mesh(state, step, self.mesh_dimension, self.mesh_reset_dimension)

    def title(self, step: SweepStep) -> str:
        p = step.point
        return (
            f"{self.cfg.title}_sink{p['sink']}_roll{self.cfg.roll}"
            f"_pitch{p['pitch']}_yaw{p['yaw']}_speed{p['speed']}"
        )

    def run(self, step: SweepStep, state: SweepState) -> RunOutcome:
        return self.controller.execute(
            inlet_run(step.point["speed"], self.cfg.run, self.cfg.names), self.title(step)
        )

    def collect(self, step: SweepStep, state: SweepState, outcome: RunOutcome) -> dict[str, Any]:
        scene = self.cfg.names.hull_scene
        if scene:
            self.engine.export_scene(scene, self.outdir / f"{outcome.title}.png")
        row: dict[str, Any] = _point_columns(step, self.labels)
        row.update(instantaneous(self.engine, self.cfg.reports))
        self.engine.clear_solution_history()
        return row


class TankSweep(SweepMode):
    """Open-water test tank: rpm ramp run to growing physical-time targets."""

    name = "tank"

    def __init__(self, cfg: TankSweepConfig, engine: EnginePort, outdir: str | Path) -> None:
        self.cfg = cfg
        self.engine = engine
        self.outdir = Path(outdir)
        self.controller = RunController(engine, self.outdir, cfg.names)

    def dimensions(self) -> list[Dimension]:
        return [Dimension("rpm", self.cfg.rpms)]

    def header(self) -> list[str] | None:
        if not self.cfg.reports:
            return None
        return ["RPM"] + list(self.cfg.reports)

    def table_path(self) -> Path | None:
        if not self.cfg.reports:
            return None
        return self.outdir / f"{self.cfg.title}_results.csv"

    def describe(self) -> dict[str, Any]:
        run = self.cfg.run
        return {
            "stop_time_initial": run.stop_time_initial,
            "stop_time_increment": run.stop_time_increment,
            "rated_rpm": run.rated_rpm,
            "rated_mass_flow": run.rated_mass_flow,
        }

    def run(self, step: SweepStep, state: SweepState) -> RunOutcome:
        title = step.point.title(self.cfg.title, {"rpm": "rpm"})
        return self.controller.execute(
            ramp_run(step.point["rpm"], step.ordinal, self.cfg.run, self.cfg.names), title
        )

    def collect(
        self, step: SweepStep, state: SweepState, outcome: RunOutcome
    ) -> dict[str, Any] | None:
        if not self.cfg.reports:
            return None
        row: dict[str, Any] = {"RPM": step.point["rpm"]}
        row.update(instantaneous(self.engine, self.cfg.reports))
        return row


MODES = {"prop": PropSweep, "hull": HullSweep, "tank": TankSweep}
