"""Core types shared by the sweep driver, run control and aggregation.

These are the value objects passed between the pure pieces (frames,
aggregation) and the stateful ones (engine port, result table).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping

import numpy as np

from .exceptions import ConfigurationError

Vector3 = tuple[float, float, float]


def _vec3(v: Any) -> Vector3:
    arr = np.asarray(v, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {arr.shape}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


@dataclass(frozen=True)
class ParameterPoint:
    """One combination of sweep-dimension values, in nesting order.

    Attributes:
        dims: ((name, value), ...) from outermost to innermost dimension.
    """

    dims: tuple[tuple[str, float], ...]

    @classmethod
    def from_pairs(cls, pairs: Mapping[str, float] | list[tuple[str, float]]) -> ParameterPoint:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        return cls(tuple((str(k), float(v)) for k, v in items))

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.dims)

    @property
    def values(self) -> tuple[float, ...]:
        return tuple(value for _, value in self.dims)

    def __getitem__(self, name: str) -> float:
        for key, value in self.dims:
            if key == name:
                return value
        raise KeyError(name)

    def as_dict(self) -> dict[str, float]:
        return dict(self.dims)

    def title(self, prefix: str, units: Mapping[str, str] | None = None) -> str:
        """File-name stem such as `6036_hub_v1_62.7mph_7.19in_5.0deg_3135.0rpm`."""
        units = units or {}
        parts = [prefix]
        for name, value in self.dims:
            unit = units.get(name)
            parts.append(f"{value}{unit}" if unit is not None else f"{name}{value}")
        return "_".join(parts)


@dataclass(frozen=True)
class SweepStep:
    """A ParameterPoint plus its position in the nested enumeration.

    Attributes:
        point: The parameter point.
        ordinal: Zero-based position in enumeration order.
        indices: Loop index of each dimension, outermost first.
        entered_from: Outermost dimension position whose loop index changed
            relative to the previous step (0 for the first step).
    """

    point: ParameterPoint
    ordinal: int
    indices: tuple[int, ...]
    entered_from: int

    def _position(self, name: str) -> int:
        try:
            return self.point.names.index(name)
        except ValueError:
            raise ConfigurationError(
                f"unknown sweep dimension '{name}', expected one of {list(self.point.names)}"
            ) from None

    def entered(self, name: str) -> bool:
        """True when the loop body of dimension `name` starts anew at this step."""
        return self._position(name) >= self.entered_from

    def index_of(self, name: str) -> int:
        return self.indices[self._position(name)]


@dataclass(frozen=True)
class CoordinateFrame:
    """Local coordinate system placed relative to its parent.

    `None` fields are left unchanged in the engine. basis2 is implied by
    basis0 x basis1.
    """

    name: str
    parent: str | None = None
    origin: Vector3 | None = None
    basis0: Vector3 | None = None
    basis1: Vector3 | None = None

    def __post_init__(self) -> None:
        for attr in ("origin", "basis0", "basis1"):
            value = getattr(self, attr)
            if value is not None:
                object.__setattr__(self, attr, _vec3(value))


@dataclass(frozen=True)
class MeshTransform:
    """Rotation angle (deg) or translation vector of a named mesh-operation transform."""

    operation: str
    transform: str
    angle_deg: float | None = None
    vector: Vector3 | None = None

    def __post_init__(self) -> None:
        if (self.angle_deg is None) == (self.vector is None):
            raise ValueError("MeshTransform needs exactly one of angle_deg or vector")
        if self.vector is not None:
            object.__setattr__(self, "vector", _vec3(self.vector))


@dataclass(frozen=True)
class FrameSetup:
    """Frames (parent before child) and mesh transforms for one configuration."""

    frames: tuple[CoordinateFrame, ...] = ()
    transforms: tuple[MeshTransform, ...] = ()

    def frame(self, name: str) -> CoordinateFrame:
        for f in self.frames:
            if f.name == name:
                return f
        raise KeyError(name)

    def transform(self, operation: str, transform: str) -> MeshTransform:
        for t in self.transforms:
            if t.operation == operation and t.transform == transform:
                return t
        raise KeyError((operation, transform))


@dataclass(frozen=True)
class BoundaryValue:
    """Scalar assigned to a named boundary condition."""

    boundary: str
    quantity: str
    value: float
    units: str | None = None


@dataclass(frozen=True)
class RunConfig:
    """Run-control values derived for one ParameterPoint.

    Exactly one of `steps` or `stop_time` drives the run.
    """

    timestep: float | None = None
    steps: int | None = None
    stop_time: float | None = None
    rotation_rate_rpm: float | None = None
    boundaries: tuple[BoundaryValue, ...] = ()
    parameters: tuple[tuple[str, float], ...] = ()

    def __post_init__(self) -> None:
        if (self.steps is None) == (self.stop_time is None):
            raise ValueError("RunConfig needs exactly one of steps or stop_time")
        if self.steps is not None and self.steps <= 0:
            raise ValueError(f"steps must be positive, got {self.steps}")
        if self.timestep is not None and not self.timestep > 0:
            raise ValueError(f"timestep must be positive, got {self.timestep}")


@dataclass
class MonitorSeries:
    """Per-iteration samples for a channel group, in export column order.

    Attributes:
        group: Channel group name, e.g. "prop" or "gc".
        iterations: Iteration index of each sample. Shape: (n,)
        channels: Channel name -> samples. Shape: (n,) each.
    """

    group: str
    iterations: np.ndarray
    channels: dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.iterations = np.asarray(self.iterations, dtype=np.float64)
        n = len(self.iterations)
        for name, samples in list(self.channels.items()):
            arr = np.asarray(samples, dtype=np.float64)
            if arr.shape != (n,):
                raise ValueError(
                    f"channel '{name}' has shape {arr.shape}, expected ({n},)"
                )
            self.channels[name] = arr

    def __len__(self) -> int:
        return len(self.iterations)

    def __iter__(self) -> Iterator[str]:
        return iter(self.channels)


@dataclass
class RunOutcome:
    """What a completed engine run left behind."""

    title: str
    run: RunConfig
    checkpoint: Path
    series_files: dict[str, Path] = field(default_factory=dict)
