"""Core module: types, configuration, errors, logging, result table IO."""

from .config import (
    FailurePolicy,
    HullSweepConfig,
    PropSweepConfig,
    SweepConfig,
    TankSweepConfig,
    default_config,
    load_config,
    merge_config,
    save_config,
)
from .exceptions import (
    AggregationError,
    ConfigurationError,
    EngineError,
    EngineObjectNotFound,
    HydrosweepError,
    ResultStoreError,
)
from .types import ParameterPoint, RunConfig, SweepStep

__all__ = [
    "FailurePolicy",
    "SweepConfig",
    "PropSweepConfig",
    "HullSweepConfig",
    "TankSweepConfig",
    "default_config",
    "load_config",
    "merge_config",
    "save_config",
    "HydrosweepError",
    "ConfigurationError",
    "EngineObjectNotFound",
    "EngineError",
    "ResultStoreError",
    "AggregationError",
    "ParameterPoint",
    "RunConfig",
    "SweepStep",
]
