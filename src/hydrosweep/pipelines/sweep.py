"""Nested parameter sweep driver.

The grid is enumerated outermost dimension first, innermost fastest. Each step
records which loop levels start anew (`SweepStep.entered_from`), so a mode can
re-apply per-dimension setup (boundary speeds, mesh transforms, frames) only
when that dimension's loop body is entered, exactly as nested loops would.

Per point the driver runs three phases:

1. prepare  - frame setup and mesh rebuilds for entered dimensions
2. run      - run control, stepping, exports, checkpoint
3. collect  - aggregation and the result-table append

Errors from prepare and run always end the sweep. Errors from collect end it
under FailurePolicy.ABORT and are logged and skipped under CONTINUE.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Iterator, Sequence

from ..core.config import FailurePolicy
from ..core.exceptions import PointFailure
from ..core.logging import StructuredLogger, get_logger
from ..core.result_store import append_row, ensure_table
from ..core.types import ParameterPoint, RunOutcome, SweepStep

ValueSource = Sequence[float] | Callable[[dict[str, float]], Sequence[float]]


@dataclass(frozen=True)
class Dimension:
    """One sweep dimension.

    `values` is either a fixed sequence or a function of the outer
    dimensions' current values.
    """

    name: str
    values: ValueSource

    def values_for(self, outer: dict[str, float]) -> list[float]:
        source = self.values(outer) if callable(self.values) else self.values
        return [float(v) for v in source]


def enumerate_grid(dimensions: Sequence[Dimension]) -> Iterator[SweepStep]:
    """Yield every leaf point in nested order, innermost dimension fastest."""
    if not dimensions:
        return

    def walk(level: int, outer: list[tuple[str, float]], indices: list[int]):
        if level == len(dimensions):
            yield tuple(outer), tuple(indices)
            return
        dim = dimensions[level]
        for i, value in enumerate(dim.values_for(dict(outer))):
            yield from walk(level + 1, outer + [(dim.name, value)], indices + [i])

    previous: tuple[int, ...] | None = None
    for ordinal, (pairs, indices) in enumerate(walk(0, [], [])):
        if previous is None:
            entered_from = 0
        else:
            entered_from = next(k for k, (a, b) in enumerate(zip(indices, previous)) if a != b)
        yield SweepStep(
            point=ParameterPoint(pairs),
            ordinal=ordinal,
            indices=indices,
            entered_from=entered_from,
        )
        previous = indices


def grid_size(dimensions: Sequence[Dimension]) -> int:
    return sum(1 for _ in enumerate_grid(dimensions))


@dataclass(frozen=True)
class SweepState:
    """State carried from one step to the next.

    Attributes:
        mesh_index: Index of the current mesh in the calibration table; -1
            before the first mesh of a reset block is built.
    """

    mesh_index: int = -1


def advance_mesh(
    state: SweepState, step: SweepStep, mesh_dimension: str | None, reset_dimension: str | None
) -> SweepState:
    """Reset on entering `reset_dimension`, count one mesh on entering `mesh_dimension`."""
    if mesh_dimension is None:
        return state
    index = state.mesh_index
    if reset_dimension is not None and step.entered(reset_dimension):
        index = -1
    if step.entered(mesh_dimension):
        index += 1
    return replace(state, mesh_index=index)


class SweepMode:
    """Per-campaign behaviour plugged into the driver.

    Subclasses provide the dimensions, the table header and the three phases.
    """

    name = "sweep"

    def dimensions(self) -> list[Dimension]:
        raise NotImplementedError

    def header(self) -> list[str] | None:
        """Result-table columns, or None when the mode writes no table."""
        return None

    def table_path(self) -> Path | None:
        return None

    def describe(self) -> dict[str, Any]:
        """Inputs logged once at sweep start."""
        return {}

    def prepare(self, step: SweepStep, state: SweepState) -> SweepState:
        return state

    def run(self, step: SweepStep, state: SweepState) -> RunOutcome:
        raise NotImplementedError

    def collect(
        self, step: SweepStep, state: SweepState, outcome: RunOutcome
    ) -> dict[str, Any] | None:
        return None


@dataclass
class SweepReport:
    """Outcome of a sweep."""

    mode: str
    completed: list[ParameterPoint] = field(default_factory=list)
    failed: list[tuple[ParameterPoint, str]] = field(default_factory=list)
    rows_written: int = 0
    state: SweepState = field(default_factory=SweepState)

    @property
    def attempted(self) -> int:
        return len(self.completed) + len(self.failed)


class SweepDriver:
    """Runs a SweepMode over its grid under a failure policy."""

    def __init__(
        self,
        mode: SweepMode,
        policy: FailurePolicy = FailurePolicy.ABORT,
        logger: StructuredLogger | None = None,
    ) -> None:
        self.mode = mode
        self.policy = FailurePolicy(policy)
        self.logger = logger or get_logger(__name__)

    def run(self) -> SweepReport:
        dims = self.mode.dimensions()
        report = SweepReport(mode=self.mode.name)
        state = SweepState()

        self.logger.info(
            "sweep start",
            mode=self.mode.name,
            policy=self.policy.value,
            dimensions=[d.name for d in dims],
            n_points=grid_size(dims),
            **self.mode.describe(),
        )

        for step in enumerate_grid(dims):
            log = self.logger.bind(ordinal=step.ordinal, **step.point.as_dict())
            state = self.mode.prepare(step, state)
            outcome = self.mode.run(step, state)

            try:
                row = self.mode.collect(step, state, outcome)
                if row is not None and self._write(row):
                    report.rows_written += 1
            except PointFailure as e:
                if self.policy is FailurePolicy.ABORT:
                    log.error("point failed, aborting sweep", error=str(e), kind=type(e).__name__)
                    report.failed.append((step.point, str(e)))
                    report.state = state
                    raise
                log.error("point failed, continuing", error=str(e), kind=type(e).__name__)
                report.failed.append((step.point, str(e)))
                continue

            report.completed.append(step.point)
            log.info("point complete", mesh_index=state.mesh_index)

        report.state = state
        self.logger.info(
            "sweep complete",
            mode=self.mode.name,
            completed=len(report.completed),
            failed=len(report.failed),
            rows_written=report.rows_written,
        )
        return report

    def _write(self, row: dict[str, Any]) -> bool:
        path = self.mode.table_path()
        header = self.mode.header()
        if path is None or header is None:
            return False
        ensure_table(path, header)
        append_row(path, row)
        return True
