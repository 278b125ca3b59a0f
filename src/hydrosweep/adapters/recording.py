"""In-process engine double.

RecordingEngine keeps the session state a real engine would hold (frames,
transforms, boundary values, timestep, accumulated iterations), records every
call in order, and synthesises monitor plots on export. It backs `--dry-run`
sweeps and the test suite.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import numpy as np
import pandas as pd

from ..core.exceptions import EngineError, EngineObjectNotFound
from ..core.types import Vector3

# (plot name, iteration indices, channel index) -> samples
SeriesFactory = Callable[[str, np.ndarray, int], np.ndarray]


def default_series(plot: str, iterations: np.ndarray, channel: int) -> np.ndarray:
    """Deterministic once-per-revolution ripple around a per-channel level."""
    level = 10.0 * (channel + 1)
    return level * (1.0 + 0.05 * np.sin(2.0 * math.pi * iterations / 360.0))


@dataclass
class EngineCall:
    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)


class RecordingEngine:
    """Engine session held in memory.

    Args:
        plots: Plot name -> channel headers exported after column 0.
        monitors: Report/monitor name -> value, or a callable of the engine.
        known: Optional whitelist of every other object name (frames,
            operations, boundaries, motions, parameters, scenes). When given,
            unknown names raise EngineObjectNotFound.
        series_factory: Generator for exported plot samples.
    """

    def __init__(
        self,
        plots: Mapping[str, Sequence[str]] | None = None,
        monitors: Mapping[str, float | Callable[[RecordingEngine], float]] | None = None,
        known: Sequence[str] | None = None,
        series_factory: SeriesFactory = default_series,
    ) -> None:
        self.plots = {k: list(v) for k, v in (plots or {}).items()}
        self.monitors = dict(monitors or {})
        self.known = set(known) if known is not None else None
        self.series_factory = series_factory

        self.calls: list[EngineCall] = []
        self.frames: dict[str, dict[str, Any]] = {}
        self.transforms: dict[tuple[str, str], dict[str, Any]] = {}
        self.boundaries: dict[tuple[str, str], float] = {}
        self.parameters: dict[str, float] = {}
        self.rotation_rates: dict[str, float] = {}
        self.timestep: float | None = None
        self.iteration = 0
        self.time = 0.0
        self.mesh_builds = 0
        self._history_start = 0

    # -- bookkeeping ---------------------------------------------------------

    def _record(self, method: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append(EngineCall(method, args, kwargs))

    def _require(self, kind: str, name: str | None) -> None:
        if name is None:
            return
        if self.known is not None and name not in self.known:
            raise EngineObjectNotFound(kind, name)

    def calls_to(self, method: str) -> list[EngineCall]:
        return [c for c in self.calls if c.method == method]

    # -- port ----------------------------------------------------------------

    def set_frame(
        self,
        name: str,
        *,
        parent: str | None = None,
        origin: Vector3 | None = None,
        basis0: Vector3 | None = None,
        basis1: Vector3 | None = None,
    ) -> None:
        self._require("coordinate system", name)
        self._require("coordinate system", parent)
        self._record("set_frame", name, parent=parent, origin=origin, basis0=basis0, basis1=basis1)
        state = self.frames.setdefault(name, {"parent": parent})
        for key, value in (("origin", origin), ("basis0", basis0), ("basis1", basis1)):
            if value is not None:
                state[key] = tuple(value)

    def set_transform(
        self,
        operation: str,
        transform: str,
        *,
        angle_deg: float | None = None,
        vector: Vector3 | None = None,
    ) -> None:
        self._require("mesh operation", operation)
        self._require("transform", transform)
        self._record("set_transform", operation, transform, angle_deg=angle_deg, vector=vector)
        self.transforms[(operation, transform)] = {"angle_deg": angle_deg, "vector": vector}

    def clear_solution(self) -> None:
        self._record("clear_solution")
        self.iteration = 0
        self.time = 0.0
        self._history_start = 0

    def clear_solution_history(self) -> None:
        self._record("clear_solution_history")
        self._history_start = self.iteration

    def rebuild_mesh(self) -> None:
        self._record("rebuild_mesh")
        self.mesh_builds += 1

    def set_boundary_value(
        self, boundary: str, quantity: str, value: float, units: str | None = None
    ) -> None:
        self._require("boundary", boundary)
        self._record("set_boundary_value", boundary, quantity, value, units=units)
        self.boundaries[(boundary, quantity)] = float(value)

    def set_parameter(self, name: str, value: float) -> None:
        self._require("parameter", name)
        self._record("set_parameter", name, value)
        self.parameters[name] = float(value)

    def set_rotation_rate(self, motion: str, rpm: float) -> None:
        self._require("motion", motion)
        self._record("set_rotation_rate", motion, rpm)
        self.rotation_rates[motion] = float(rpm)

    def set_timestep(self, dt: float) -> None:
        if not dt > 0:
            raise EngineError(f"invalid timestep {dt}")
        self._record("set_timestep", dt)
        self.timestep = float(dt)

    def step(self, n: int) -> None:
        if n <= 0:
            raise EngineError(f"invalid step count {n}")
        self._record("step", n)
        self.iteration += int(n)
        if self.timestep is not None:
            self.time += n * self.timestep

    def run_until_time(self, stop_time: float) -> None:
        if self.timestep is None:
            raise EngineError("timestep must be set before a time-based run")
        self._record("run_until_time", stop_time)
        remaining = max(0.0, stop_time - self.time)
        n = int(math.ceil(remaining / self.timestep - 1e-9))
        self.iteration += n
        self.time = max(self.time, stop_time)

    def read_monitor(self, name: str) -> float:
        if name not in self.monitors:
            raise EngineObjectNotFound("report", name)
        self._record("read_monitor", name)
        value = self.monitors[name]
        return float(value(self) if callable(value) else value)

    def export_series(self, plot: str, path: Path) -> Path:
        if plot not in self.plots:
            raise EngineObjectNotFound("plot", plot)
        self._record("export_series", plot, Path(path))
        iterations = np.arange(self._history_start + 1, self.iteration + 1, dtype=np.float64)
        data = {"Iteration": iterations}
        for idx, header in enumerate(self.plots[plot]):
            data[header] = self.series_factory(plot, iterations, idx)
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        pd.DataFrame(data).to_csv(path, index=False)
        return path

    def save_checkpoint(self, path: Path) -> Path:
        self._record("save_checkpoint", Path(path))
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        snapshot = {
            "iteration": self.iteration,
            "time": self.time,
            "timestep": self.timestep,
            "frames": self.frames,
            "parameters": self.parameters,
            "rotation_rates": self.rotation_rates,
            "boundaries": {f"{b}.{q}": v for (b, q), v in self.boundaries.items()},
        }
        path.write_text(json.dumps(snapshot, indent=2, default=list))
        return path

    def export_scene(self, scene: str, path: Path) -> Path:
        self._require("scene", scene)
        self._record("export_scene", scene, Path(path))
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"scene {scene} at iteration {self.iteration}\n")
        return path
