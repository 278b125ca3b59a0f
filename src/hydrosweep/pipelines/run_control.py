"""Engine run control.

Derives timestep, step count, exhaust flow and stopping targets from a
parameter point, pushes them through the engine port, drives the blocking
step loop, exports monitor plots and checkpoints the session.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ..adapters.engine import EnginePort, apply_boundary
from ..core.config import EngineNames, RunControlConfig
from ..core.constants import DEG_PER_REV
from ..core.logging import StructuredLogger, get_logger
from ..core.types import BoundaryValue, RunConfig, RunOutcome

MASS_FLOW = "MassFlowRate"
VELOCITY = "VelocityMagnitude"


def timestep_for(rpm: float, angular_step_deg: float) -> float:
    """Physical time for the rotor to turn `angular_step_deg` at `rpm`."""
    if not rpm > 0:
        raise ValueError(f"rpm must be positive, got {rpm}")
    return angular_step_deg / (rpm / 60.0 * DEG_PER_REV)


def step_count(revolutions: float, angular_step_deg: float) -> int:
    return int(round(revolutions * DEG_PER_REV / angular_step_deg))


def revolutions_for(first_rate: bool, cfg: RunControlConfig) -> float:
    """Warm-up revolutions for the first rate of its loop, settled ones after."""
    return cfg.revs_init if first_rate else cfg.revs


def exhaust_mass_flow(rpm: float, cfg: RunControlConfig) -> float:
    """Exhaust flow following the propeller law, or constant without a rated rpm."""
    if cfg.rated_rpm is None:
        return cfg.rated_mass_flow
    return (rpm / cfg.rated_rpm) ** 3 * cfg.rated_mass_flow


def stop_time_for(ordinal: int, cfg: RunControlConfig) -> float:
    """Max-physical-time target, ramped by a fixed increment per point."""
    return cfg.stop_time_initial + cfg.stop_time_increment * ordinal


def rotating_run(
    rpm: float, first_rate: bool, cfg: RunControlConfig, names: EngineNames
) -> RunConfig:
    """Fixed number of revolutions at `rpm` (prop mode)."""
    return RunConfig(
        timestep=timestep_for(rpm, cfg.angular_step_deg),
        steps=step_count(revolutions_for(first_rate, cfg), cfg.angular_step_deg),
        rotation_rate_rpm=rpm,
        boundaries=(
            BoundaryValue(names.exhaust_boundary, MASS_FLOW, exhaust_mass_flow(rpm, cfg), "kg/s"),
        ),
    )


def ramp_run(rpm: float, ordinal: int, cfg: RunControlConfig, names: EngineNames) -> RunConfig:
    """Run to a growing physical-time target at `rpm` (tank mode)."""
    return RunConfig(
        timestep=timestep_for(rpm, cfg.angular_step_deg),
        stop_time=stop_time_for(ordinal, cfg),
        rotation_rate_rpm=rpm,
        boundaries=(
            BoundaryValue(names.exhaust_boundary, MASS_FLOW, exhaust_mass_flow(rpm, cfg), "kg/s"),
        ),
    )


def inlet_run(speed: float, cfg: RunControlConfig, names: EngineNames) -> RunConfig:
    """Fixed iteration count with the inlet velocity set to `speed` (hull mode)."""
    return RunConfig(
        steps=cfg.iterations,
        boundaries=(BoundaryValue(names.inlet_boundary, VELOCITY, speed, "ft/s"),),
    )


class RunController:
    """Applies a RunConfig to the engine and drives one run to completion."""

    def __init__(
        self,
        engine: EnginePort,
        outdir: str | Path,
        names: EngineNames,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.engine = engine
        self.outdir = Path(outdir)
        self.names = names
        self.logger = logger or get_logger(__name__)

    def apply(self, run: RunConfig) -> None:
        """Push boundary, motion and solver values; nothing is stepped."""
        for bc in run.boundaries:
            apply_boundary(self.engine, bc)
        for name, value in run.parameters:
            self.engine.set_parameter(name, value)
        if run.rotation_rate_rpm is not None:
            self.engine.set_rotation_rate(self.names.rotation, run.rotation_rate_rpm)
        if run.timestep is not None:
            self.engine.set_timestep(run.timestep)

    def advance(self, run: RunConfig) -> None:
        if run.steps is not None:
            with self.logger.timer("engine step", steps=run.steps):
                self.engine.step(run.steps)
        else:
            with self.logger.timer("engine run", stop_time=run.stop_time):
                self.engine.run_until_time(run.stop_time)

    def execute(
        self,
        run: RunConfig,
        title: str,
        plots: Mapping[str, str] | None = None,
    ) -> RunOutcome:
        """Configure, step, export plots and checkpoint.

        Args:
            run: Derived run configuration.
            title: File stem for every artifact of this point.
            plots: Series suffix -> engine plot name, exported as
                `<title>_<suffix>.csv` after stepping.

        Returns:
            RunOutcome with the checkpoint and exported series paths.
        """
        self.logger.info(
            "run start",
            title=title,
            timestep=run.timestep,
            steps=run.steps,
            stop_time=run.stop_time,
            rpm=run.rotation_rate_rpm,
        )
        self.apply(run)
        self.advance(run)

        series_files: dict[str, Path] = {}
        try:
            for suffix, plot in (plots or {}).items():
                series_files[suffix] = self.engine.export_series(
                    plot, self.outdir / f"{title}_{suffix}.csv"
                )
        finally:
            # A stepped session is checkpointed even when a plot export fails.
            checkpoint = self.engine.save_checkpoint(self.outdir / f"{title}.sim")
        self.logger.info("run complete", title=title, checkpoint=str(checkpoint))
        return RunOutcome(title=title, run=run, checkpoint=checkpoint, series_files=series_files)
