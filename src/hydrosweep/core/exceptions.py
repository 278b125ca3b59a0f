"""Error taxonomy for sweep runs.

Configuration errors are always fatal. Result-store and aggregation errors are
per-point failures whose treatment depends on the sweep's failure policy.
"""

from __future__ import annotations


class HydrosweepError(Exception):
    """Base exception for hydrosweep."""


class ConfigurationError(HydrosweepError):
    """Configuration is missing, invalid, or inconsistent with the engine session."""


class EngineObjectNotFound(ConfigurationError):
    """A named object is absent from the live engine session."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} '{name}' not found in engine session")
        self.kind = kind
        self.name = name


class EngineError(HydrosweepError):
    """An engine-port call failed."""


class ResultStoreError(HydrosweepError):
    """Result table or series file could not be read or written."""


class AggregationError(HydrosweepError):
    """Empty window, missing channel, or division by a zero calibration value."""


# Failures the continue-on-error policy isolates to a single point.
PointFailure = (ResultStoreError, AggregationError, OSError)
