"""Configuration management with pydantic and YAML support.

Defaults reproduce the run matrices of the three parametric campaigns:
the 6036 hub propeller/gearcase sweep, the 310slx planing-hull attitude
sweep, and the test-tank rpm ramp.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from .exceptions import ConfigurationError


class FailurePolicy(str, Enum):
    """What the sweep does when a point fails."""

    CONTINUE = "continue"
    ABORT = "abort"


class RunControlConfig(BaseModel):
    """Run-control inputs shared by every mode."""

    angular_step_deg: float = Field(default=1.0, gt=0.0, le=360.0)
    revs_init: float = Field(default=4.0, gt=0.0)
    revs: float = Field(default=2.0, gt=0.0)
    iterations: int = Field(default=500, ge=1)
    rated_rpm: float | None = Field(default=None, gt=0.0)
    rated_mass_flow: float = Field(default=0.4, ge=0.0)
    stop_time_initial: float = Field(default=25.0, gt=0.0)
    stop_time_increment: float = Field(default=5.0, ge=0.0)


class EngineNames(BaseModel):
    """Names of the objects each mode addresses in the engine session."""

    lab_frame: str | None = None

    # prop mode
    trim_center: str = "Trim_Center"
    gc_center: str = "GC_Center"
    prop_center: str = "Prop_Center"
    heave_operation: str = "Translate"
    heave_transform: str = "Heave"
    trim_operation: str = "Rotate"
    trim_transform: str = "Pitch"
    refine_operation: str = "Translate_Refine_Outer"
    refine_transform: str = "Translate"
    wave_current: str = "FlatVofWave 1.Current"
    wave_wind: str = "FlatVofWave 1.Wind"
    pressure_coeff_velocity: str = "PressureCoefficient.ReferenceVelocity"
    exhaust_boundary: str = "Inlet_Exhaust"
    rotation: str = "Rotation"
    prop_plot: str = "Prop"
    gc_plot: str = "Gearcase"
    prop_scene: str | None = "Scalar Scene"

    # hull mode
    hull_operation: str = "Transform"
    roll_transform: str = "roll"
    pitch_transform: str = "pitch"
    yaw_transform: str = "yaw"
    sink_transform: str = "sink"
    sink_frame: str = "sink"
    yaw_frame: str = "yaw"
    roll_trim_frame: str = "roll_trim"
    inlet_boundary: str = "inlet"
    hull_scene: str | None = "waterline"


class PropGeometry(BaseModel):
    """One propeller revision: diameter, prop offset and per-mesh area ratios."""

    diameter_in: float = Field(gt=0.0)
    x_prop_in: float
    area_ratios: list[float] = Field(min_length=1)


class ChannelConfig(BaseModel):
    """Declared aggregation for one exported channel."""

    name: str
    label: str
    stats: list[str] = Field(default_factory=lambda: ["mean"])

    @model_validator(mode="after")
    def _check_stats(self) -> ChannelConfig:
        allowed = {"mean", "max", "min"}
        bad = [s for s in self.stats if s not in allowed]
        if bad or not self.stats:
            raise ValueError(f"channel '{self.name}' has invalid stats {self.stats}")
        return self


def _prop_channels() -> list[ChannelConfig]:
    blade = ["mean", "max", "min"]
    return [
        ChannelConfig(name="lift", label="Prop Lift (lbf)"),
        ChannelConfig(name="sideforce", label="Prop Sideforce (lbf)"),
        ChannelConfig(name="thrust_net", label="Prop Thrust Net (lbf)"),
        ChannelConfig(name="thrust_normal", label="Prop Thrust Normal (lbf)"),
        ChannelConfig(name="pitch_moment", label="Prop Pitch Moment (lbf-ft)"),
        ChannelConfig(name="yaw_moment", label="Prop Yaw Moment (lbf-ft)"),
        ChannelConfig(name="thrust", label="Prop Thrust (lbf)"),
        ChannelConfig(name="blade_thrust", label="Blade Thrust (lbf)", stats=blade),
        ChannelConfig(name="torque", label="Prop Torque (lbf-ft)"),
        ChannelConfig(name="blade_torque", label="Blade Torque (lbf-ft)", stats=blade),
    ]


def _gc_channels() -> list[ChannelConfig]:
    return [
        ChannelConfig(name="drag", label="Gearcase Drag (lbf)"),
        ChannelConfig(name="lift", label="Gearcase Lift (lbf)"),
        ChannelConfig(name="sideforce", label="Gearcase Sideforce (lbf)"),
        ChannelConfig(name="pitch_moment", label="Gearcase Pitch Moment (lbf-ft)"),
        ChannelConfig(name="roll_moment", label="Gearcase Roll Moment (lbf-ft)"),
        ChannelConfig(name="yaw_moment", label="Gearcase Yaw Moment (lbf-ft)"),
    ]


# (diameter in, prop x offset in, area ratio per trim mesh), one row per revision
_PROP_TABLE = (
    (14.502722, 13.1907390, (0.8856, 0.7886, 0.6715)),
    (15.002926, 13.2960820, (0.8740, 0.7787, 0.6650)),
    (14.002553, 13.0882700, (0.8978, 0.7992, 0.6785)),
    (14.502607, 13.1878010, (0.8856, 0.7886, 0.6716)),
    (14.502823, 13.1942020, (0.8856, 0.7886, 0.6715)),
    (14.502741, 13.1964430, (0.8856, 0.7885, 0.6714)),
    (14.502668, 13.1851520, (0.8856, 0.7887, 0.6716)),
    (14.502708, 13.1904440, (0.8856, 0.7886, 0.6715)),
    (14.502781, 13.1912000, (0.8856, 0.7886, 0.6715)),
    (14.502813, 13.2439180, (0.8853, 0.7880, 0.6707)),
    (14.502614, 13.1389370, (0.8859, 0.7892, 0.6724)),
    (14.502743, 13.2028830, (0.8855, 0.7885, 0.6713)),
    (14.502677, 13.1789650, (0.8857, 0.7887, 0.6717)),
    (14.502832, 13.1900920, (0.8856, 0.7886, 0.6715)),
    (14.502594, 13.1913690, (0.8856, 0.7886, 0.6715)),
)


def _prop_geometries() -> list[PropGeometry]:
    return [
        PropGeometry(diameter_in=d, x_prop_in=x, area_ratios=list(ratios))
        for d, x, ratios in _PROP_TABLE
    ]


class PropSweepConfig(BaseModel):
    """speed -> height -> trim -> rpm sweep with windowed prop/gearcase aggregation."""

    revision: str = "6036_hub_v1"
    speeds: list[float] = Field(default_factory=lambda: [62.7, 58.6])  # mph
    heights: list[float] = Field(default_factory=lambda: [7.19])  # in, propshaft depth
    trims: list[float] = Field(default_factory=lambda: [5.0, 7.5, 10.0])  # deg, + is trim out
    rpms: list[float] = Field(default_factory=lambda: [3135.0, 3265.5, 3396.0, 3526.5, 3657.0])
    trim_point_x: float = 11.1  # in, trim point to GC center
    trim_point_z: float = 43.19  # in
    version: int = Field(default=0, ge=0)
    geometries: list[PropGeometry] = Field(default_factory=_prop_geometries, min_length=1)
    prop_channels: list[ChannelConfig] = Field(default_factory=_prop_channels)
    gc_channels: list[ChannelConfig] = Field(default_factory=_gc_channels)
    thrust_channel: str = "thrust_net"
    torque_channel: str = "torque"
    run: RunControlConfig = Field(default_factory=RunControlConfig)
    names: EngineNames = Field(default_factory=EngineNames)
    policy: FailurePolicy = FailurePolicy.ABORT

    @model_validator(mode="after")
    def _check(self) -> PropSweepConfig:
        if self.version >= len(self.geometries):
            raise ValueError(
                f"version {self.version} out of range for {len(self.geometries)} geometries"
            )
        names = [c.name for c in self.prop_channels]
        for ch in (self.thrust_channel, self.torque_channel):
            if ch not in names:
                raise ValueError(f"'{ch}' is not a declared prop channel")
        for key in ("speeds", "heights", "trims", "rpms"):
            if not getattr(self, key):
                raise ValueError(f"{key} must not be empty")
        return self

    @property
    def geometry(self) -> PropGeometry:
        return self.geometries[self.version]


class HullSweepConfig(BaseModel):
    """sink -> pitch -> yaw -> speed sweep reading instantaneous reports."""

    title: str = "310slx_hydro"
    sinks: list[float] = Field(default_factory=lambda: [24.5, 25.5, 26.5])  # in
    pitches: list[float] = Field(default_factory=lambda: [-0.2, 0.8, 1.8])  # deg
    yaws: list[float] = Field(
        default_factory=lambda: [0.0, 22.5, 45.0, 67.5, 90.0, 112.5, 135.0, 157.5, 180.0]
    )
    speeds_forward: list[float] = Field(default_factory=lambda: [0.25, 0.5, 1, 2, 3, 5, 10])  # ft/s
    speeds_angle: list[float] = Field(default_factory=lambda: [0.25, 0.5, 1, 2])  # ft/s
    roll: float = 0.0
    reports: list[str] = Field(
        default_factory=lambda: ["Fx", "Fy", "Fz", "Mx", "My", "Mz", "Lift", "Drag"]
    )
    run: RunControlConfig = Field(default_factory=RunControlConfig)
    names: EngineNames = Field(default_factory=EngineNames)
    policy: FailurePolicy = FailurePolicy.CONTINUE


class TankSweepConfig(BaseModel):
    """rpm ramp with a growing max-physical-time stopping criterion."""

    title: str = "test_tank"
    rpms: list[float] = Field(default_factory=lambda: [2286.0, 2857.0])
    reports: list[str] = Field(default_factory=list)
    run: RunControlConfig = Field(
        default_factory=lambda: RunControlConfig(
            angular_step_deg=5.0, rated_rpm=3543.0, rated_mass_flow=0.3
        )
    )
    names: EngineNames = Field(default_factory=lambda: EngineNames(exhaust_boundary="exh_inlet"))
    policy: FailurePolicy = FailurePolicy.ABORT


class SweepConfig(BaseModel):
    """Root configuration object."""

    outdir: str = "outputs"
    log_level: str = "INFO"
    prop: PropSweepConfig = Field(default_factory=PropSweepConfig)
    hull: HullSweepConfig = Field(default_factory=HullSweepConfig)
    tank: TankSweepConfig = Field(default_factory=TankSweepConfig)


def load_config(path: str | Path) -> SweepConfig:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML config file.

    Returns:
        Parsed SweepConfig object.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {path}: {e}") from e

    try:
        return SweepConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config {path}: {e}") from e


def save_config(config: SweepConfig, path: str | Path) -> None:
    """Save configuration to YAML file.

    Args:
        config: Configuration to save.
        path: Output path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def default_config() -> SweepConfig:
    """Return default configuration."""
    return SweepConfig()


def merge_config(base: SweepConfig, overrides: dict[str, Any]) -> SweepConfig:
    """Merge overrides into base configuration.

    Args:
        base: Base configuration.
        overrides: Dictionary of override values.

    Returns:
        New configuration with overrides applied.
    """
    base_dict = base.model_dump(mode="json")

    def deep_merge(d1: dict, d2: dict) -> dict:
        result = d1.copy()
        for k, v in d2.items():
            if k in result and isinstance(result[k], dict) and isinstance(v, dict):
                result[k] = deep_merge(result[k], v)
            else:
                result[k] = v
        return result

    merged = deep_merge(base_dict, overrides)
    try:
        return SweepConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config overrides: {e}") from e
