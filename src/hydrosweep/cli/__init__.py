"""CLI modules for running parameter sweeps.

Note: avoid importing submodules at import-time. This keeps `python -m hydrosweep.cli.<cmd>`
free of `runpy` warnings and avoids side effects from eager imports.
"""

from __future__ import annotations


def run_main(argv: list[str] | None = None) -> int:
    """Lazy wrapper for `hydrosweep.cli.run.main`."""

    from .run import main

    return main(argv)


def run_sweep(*args, **kwargs):
    """Lazy wrapper for `hydrosweep.cli.workflows.run_sweep`."""

    from .workflows import run_sweep

    return run_sweep(*args, **kwargs)


__all__ = ["run_main", "run_sweep"]
