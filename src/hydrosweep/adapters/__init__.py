"""Engine port and the in-process recording engine."""

from .engine import EnginePort, apply_boundary, apply_frame, apply_setup, apply_transform
from .recording import RecordingEngine

__all__ = [
    "EnginePort",
    "RecordingEngine",
    "apply_boundary",
    "apply_frame",
    "apply_setup",
    "apply_transform",
]
