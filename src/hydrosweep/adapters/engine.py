"""Simulation engine port.

The engine is a stateful session of named objects (frames, mesh operations,
boundaries, motions, monitors, plots, scenes). The sweep only ever touches it
through this narrow interface, so a real binding and the in-process
RecordingEngine are interchangeable.

Implementations raise EngineObjectNotFound for unknown names and EngineError
for any other failure. Nothing here retries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..core.types import BoundaryValue, CoordinateFrame, FrameSetup, MeshTransform, Vector3


@runtime_checkable
class EnginePort(Protocol):
    def set_frame(
        self,
        name: str,
        *,
        parent: str | None = None,
        origin: Vector3 | None = None,
        basis0: Vector3 | None = None,
        basis1: Vector3 | None = None,
    ) -> None: ...

    def set_transform(
        self,
        operation: str,
        transform: str,
        *,
        angle_deg: float | None = None,
        vector: Vector3 | None = None,
    ) -> None: ...

    def clear_solution(self) -> None: ...

    def clear_solution_history(self) -> None: ...

    def rebuild_mesh(self) -> None: ...

    def set_boundary_value(
        self, boundary: str, quantity: str, value: float, units: str | None = None
    ) -> None: ...

    def set_parameter(self, name: str, value: float) -> None: ...

    def set_rotation_rate(self, motion: str, rpm: float) -> None: ...

    def set_timestep(self, dt: float) -> None: ...

    def step(self, n: int) -> None: ...

    def run_until_time(self, stop_time: float) -> None: ...

    def read_monitor(self, name: str) -> float: ...

    def export_series(self, plot: str, path: Path) -> Path: ...

    def save_checkpoint(self, path: Path) -> Path: ...

    def export_scene(self, scene: str, path: Path) -> Path: ...


def apply_frame(engine: EnginePort, frame: CoordinateFrame) -> None:
    engine.set_frame(
        frame.name,
        parent=frame.parent,
        origin=frame.origin,
        basis0=frame.basis0,
        basis1=frame.basis1,
    )


def apply_transform(engine: EnginePort, transform: MeshTransform) -> None:
    engine.set_transform(
        transform.operation,
        transform.transform,
        angle_deg=transform.angle_deg,
        vector=transform.vector,
    )


def apply_setup(engine: EnginePort, setup: FrameSetup) -> None:
    """Push mesh transforms, then frames in parent->child order."""
    for transform in setup.transforms:
        apply_transform(engine, transform)
    for frame in setup.frames:
        apply_frame(engine, frame)


def apply_boundary(engine: EnginePort, bc: BoundaryValue) -> None:
    engine.set_boundary_value(bc.boundary, bc.quantity, bc.value, bc.units)
