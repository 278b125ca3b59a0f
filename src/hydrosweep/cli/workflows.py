"""Sweep workflows behind the CLI subcommands."""

from __future__ import annotations

import argparse
from pathlib import Path

from hydrosweep.adapters.engine import EnginePort
from hydrosweep.adapters.recording import RecordingEngine
from hydrosweep.core.config import (
    FailurePolicy,
    SweepConfig,
    default_config,
    load_config,
)
from hydrosweep.core.exceptions import ConfigurationError
from hydrosweep.core.logging import get_logger, set_log_level
from hydrosweep.pipelines.modes import MODES
from hydrosweep.pipelines.sweep import SweepDriver, SweepReport

logger = get_logger(__name__)


def build_dry_run_engine(config: SweepConfig, mode: str) -> RecordingEngine:
    """RecordingEngine whose plots and reports match the mode's configuration."""
    if mode == "prop":
        cfg = config.prop
        return RecordingEngine(
            plots={
                cfg.names.prop_plot: [c.label for c in cfg.prop_channels],
                cfg.names.gc_plot: [c.label for c in cfg.gc_channels],
            }
        )
    if mode == "hull":
        return RecordingEngine(monitors={name: 0.0 for name in config.hull.reports})
    if mode == "tank":
        return RecordingEngine(monitors={name: 0.0 for name in config.tank.reports})
    raise ConfigurationError(f"Unknown sweep mode '{mode}'")


def run_sweep(
    config: SweepConfig,
    mode: str,
    engine: EnginePort,
    outdir: str | Path | None = None,
    policy: FailurePolicy | str | None = None,
) -> SweepReport:
    """Run one sweep mode against an engine session.

    Args:
        config: Root configuration.
        mode: One of "prop", "hull", "tank".
        engine: Engine binding implementing EnginePort.
        outdir: Output directory; defaults to `config.outdir`.
        policy: Failure policy override; defaults to the mode's configured policy.

    Returns:
        SweepReport for the completed sweep.
    """
    if mode not in MODES:
        raise ConfigurationError(f"Unknown sweep mode '{mode}', expected one of {sorted(MODES)}")

    mode_cfg = getattr(config, mode)
    out = Path(outdir if outdir is not None else config.outdir)
    out.mkdir(parents=True, exist_ok=True)

    sweep = MODES[mode](mode_cfg, engine, out)
    driver = SweepDriver(
        sweep, policy=policy or mode_cfg.policy, logger=get_logger(f"hydrosweep.{mode}")
    )
    return driver.run()


def run_sweep_workflow(args: argparse.Namespace) -> int:
    """Load config, pick the engine binding and run the requested sweep."""
    config = load_config(args.config) if args.config else default_config()
    try:
        set_log_level(args.log_level or config.log_level)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    if not args.dry_run:
        raise ConfigurationError(
            "no engine binding available; inject one through run_sweep() or pass --dry-run"
        )
    engine = build_dry_run_engine(config, args.mode)

    report = run_sweep(config, args.mode, engine, outdir=args.outdir, policy=args.policy)
    logger.info(
        "sweep finished",
        mode=report.mode,
        attempted=report.attempted,
        completed=len(report.completed),
        failed=len(report.failed),
        rows_written=report.rows_written,
    )
    return 0 if not report.failed else 2
