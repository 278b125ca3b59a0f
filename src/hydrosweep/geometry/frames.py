"""Coordinate-frame and mesh-transform computation from sweep angles.

Everything here is pure: callers push the returned FrameSetup into the
engine. Angles are in degrees, lengths in the engine's length unit (inches
for both campaigns).

Frames are returned parent-before-child. The engine resolves each frame's
origin and bases in its parent's axes, so reordering a chain changes the
global pose (see `compose`).
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..core.config import EngineNames
from ..core.types import CoordinateFrame, FrameSetup, MeshTransform, Vector3

_EX = np.array([1.0, 0.0, 0.0])
_EY = np.array([0.0, 1.0, 0.0])
_EZ = np.array([0.0, 0.0, 1.0])


def translation(offset: float, sign: float = 1.0) -> Vector3:
    """Vertical translation (0, 0, sign*offset). Sink uses +1, heave uses -1."""
    return (0.0, 0.0, sign * offset)


def yaw_basis(yaw_deg: float) -> Vector3:
    """basis0 of a frame yawed about +z."""
    yaw = math.radians(yaw_deg)
    return (math.cos(yaw), math.sin(yaw), 0.0)


def roll_trim_bases(roll_deg: float, pitch_deg: float) -> tuple[Vector3, Vector3]:
    """(basis0, basis1) of the combined roll/trim frame."""
    roll = math.radians(roll_deg)
    pitch = math.radians(pitch_deg)
    basis1 = (0.0, math.cos(roll), math.sin(roll))
    basis0 = (math.cos(pitch), 0.0, math.sin(-pitch))
    return basis0, basis1


def trim_center_frame(
    name: str,
    trim_deg: float,
    height: float,
    trim_point_x: float,
    trim_point_z: float,
    parent: str | None = None,
) -> CoordinateFrame:
    trim = math.radians(trim_deg)
    return CoordinateFrame(
        name=name,
        parent=parent,
        origin=(-trim_point_x, 0.0, trim_point_z - height),
        basis0=(math.cos(trim), 0.0, math.sin(trim)),
    )


def outer_refinement_translation(
    trim_deg: float, trim_point_x: float, trim_point_z: float, x_prop: float
) -> Vector3:
    """Shift of the outer refinement zone so it follows the trimmed drive."""
    s = math.sin(math.radians(trim_deg))
    return (trim_point_z * s, 0.0, (trim_point_x + x_prop) * s)


def hull_setup(
    sink: float,
    roll_deg: float,
    pitch_deg: float,
    yaw_deg: float,
    names: EngineNames,
) -> FrameSetup:
    """Hull attitude: sink -> yaw -> roll_trim frames plus the part transforms.

    Args:
        sink: Vertical offset of the hull (in).
        roll_deg, pitch_deg, yaw_deg: Attitude angles.
        names: EngineNames with the frame and mesh-operation names.
    """
    basis0, basis1 = roll_trim_bases(roll_deg, pitch_deg)
    frames = (
        CoordinateFrame(name=names.sink_frame, parent=names.lab_frame, origin=translation(sink)),
        CoordinateFrame(name=names.yaw_frame, parent=names.sink_frame, basis0=yaw_basis(yaw_deg)),
        CoordinateFrame(
            name=names.roll_trim_frame,
            parent=names.yaw_frame,
            basis0=basis0,
            basis1=basis1,
        ),
    )
    op = names.hull_operation
    transforms = (
        MeshTransform(op, names.roll_transform, angle_deg=roll_deg),
        MeshTransform(op, names.pitch_transform, angle_deg=pitch_deg),
        MeshTransform(op, names.yaw_transform, angle_deg=yaw_deg),
        MeshTransform(op, names.sink_transform, vector=translation(sink)),
    )
    return FrameSetup(frames=frames, transforms=transforms)


def heave_setup(height: float, names: EngineNames) -> FrameSetup:
    """Propshaft depth below the free surface, as a parts translation."""
    return FrameSetup(
        transforms=(
            MeshTransform(
                names.heave_operation, names.heave_transform, vector=translation(height, -1.0)
            ),
        )
    )


def trim_setup(
    trim_deg: float,
    trim_point_x: float,
    trim_point_z: float,
    x_prop: float,
    names: EngineNames,
) -> FrameSetup:
    """Drive trim rotation and the refinement zone that follows it."""
    return FrameSetup(
        transforms=(
            MeshTransform(names.trim_operation, names.trim_transform, angle_deg=trim_deg),
            MeshTransform(
                names.refine_operation,
                names.refine_transform,
                vector=outer_refinement_translation(trim_deg, trim_point_x, trim_point_z, x_prop),
            ),
        )
    )


def prop_frames(
    height: float,
    trim_deg: float,
    trim_point_x: float,
    trim_point_z: float,
    x_prop: float,
    names: EngineNames,
) -> FrameSetup:
    """trim_center -> gc_center -> prop_center chain for the trimmed drive."""
    frames = (
        trim_center_frame(
            names.trim_center, trim_deg, height, trim_point_x, trim_point_z, parent=names.lab_frame
        ),
        CoordinateFrame(
            name=names.gc_center,
            parent=names.trim_center,
            origin=(trim_point_x, 0.0, -trim_point_z),
        ),
        CoordinateFrame(name=names.prop_center, parent=names.gc_center, origin=(x_prop, 0.0, 0.0)),
    )
    return FrameSetup(frames=frames)


def rotation_matrix(frame: CoordinateFrame) -> np.ndarray:
    """3x3 matrix whose columns are the frame's basis0, basis1, basis2.

    A missing basis0 defaults to +x. A missing basis1 is completed as
    normalize(z x basis0), falling back to +y projected off basis0 when
    basis0 is vertical. basis1 is always re-orthogonalised against basis0.
    """
    b0 = _EX if frame.basis0 is None else np.asarray(frame.basis0, dtype=np.float64)
    b0 = b0 / np.linalg.norm(b0)

    if frame.basis1 is None:
        b1 = np.cross(_EZ, b0)
        if np.linalg.norm(b1) < 1e-12:
            b1 = _EY - np.dot(_EY, b0) * b0
    else:
        b1 = np.asarray(frame.basis1, dtype=np.float64)
        b1 = b1 - np.dot(b1, b0) * b0
    norm = np.linalg.norm(b1)
    if norm < 1e-12:
        raise ValueError(f"frame '{frame.name}' has parallel basis vectors")
    b1 = b1 / norm

    return np.column_stack([b0, b1, np.cross(b0, b1)])


def is_orthonormal(frame: CoordinateFrame, tol: float = 1e-9) -> bool:
    """Whether the bases the frame sets are unit length and mutually orthogonal."""
    vecs = [np.asarray(v, dtype=np.float64) for v in (frame.basis0, frame.basis1) if v is not None]
    for v in vecs:
        if abs(np.linalg.norm(v) - 1.0) > tol:
            return False
    if len(vecs) == 2 and abs(float(np.dot(vecs[0], vecs[1]))) > tol:
        return False
    return True


def compose(frames: Sequence[CoordinateFrame]) -> tuple[np.ndarray, np.ndarray]:
    """Global (origin, rotation) of the last frame in a parent->child chain.

    Frames with no origin sit at their parent's origin.
    """
    origin = np.zeros(3)
    rot = np.eye(3)
    for frame in frames:
        local = np.zeros(3) if frame.origin is None else np.asarray(frame.origin, dtype=np.float64)
        origin = origin + rot @ local
        rot = rot @ rotation_matrix(frame)
    return origin, rot
