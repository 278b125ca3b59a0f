"""hydrosweep unified run CLI.

Usage:
    hydrosweep prop --config configs/props_6036.yaml --dry-run
    hydrosweep hull --config configs/hull_310slx.yaml --policy continue --dry-run
    hydrosweep tank --outdir outputs/tank --dry-run
"""

from __future__ import annotations

import argparse
import sys

from hydrosweep.cli.workflows import run_sweep_workflow
from hydrosweep.core.exceptions import HydrosweepError
from hydrosweep.core.logging import get_logger

logger = get_logger(__name__)


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", type=str, default=None, help="YAML config file")
    p.add_argument("--outdir", type=str, default=None)
    p.add_argument("--policy", type=str, default=None, choices=["continue", "abort"])
    p.add_argument("--dry-run", action="store_true", help="Drive an in-process recording engine")
    p.add_argument("--log-level", type=str, default=None, choices=["DEBUG", "INFO", "WARN", "ERROR"])


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="hydrosweep parameter sweep CLI")
    subparsers = parser.add_subparsers(dest="mode", required=True, help="Sweep mode")

    _add_common(subparsers.add_parser("prop", help="Prop/gearcase speed-height-trim-rpm sweep"))
    _add_common(subparsers.add_parser("hull", help="Hull sink-pitch-yaw-speed sweep"))
    _add_common(subparsers.add_parser("tank", help="Test-tank rpm ramp"))

    args = parser.parse_args(argv)

    try:
        return run_sweep_workflow(args)
    except HydrosweepError as e:
        logger.error("sweep failed", mode=args.mode, error=str(e), kind=type(e).__name__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
