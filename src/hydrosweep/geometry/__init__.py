"""Frame and mesh-transform computation."""

from hydrosweep.geometry.frames import (
    compose,
    heave_setup,
    hull_setup,
    is_orthonormal,
    prop_frames,
    rotation_matrix,
    trim_setup,
)

__all__ = [
    "compose",
    "heave_setup",
    "hull_setup",
    "is_orthonormal",
    "prop_frames",
    "rotation_matrix",
    "trim_setup",
]
