"""Windowed aggregation of monitor series and propeller coefficients.

Each channel declares which statistics it contributes; one routine walks the
declarations so the result columns follow the declaration order rather than
positional indices into the export.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from ..adapters.engine import EnginePort
from ..core.constants import DEG_PER_REV, FT_LBF_S_PER_HP, IN_TO_FT, MPH_TO_FTS, RHO_WATER
from ..core.exceptions import AggregationError, ResultStoreError
from ..core.logging import get_logger
from ..core.types import MonitorSeries

logger = get_logger(__name__)

_STAT_FUNCS = {"mean": np.mean, "max": np.max, "min": np.min}

COEFFICIENT_COLUMNS = ("SHP", "J", "KT_norm", "KQ_norm", "eta")


@dataclass(frozen=True)
class ChannelSpec:
    """Aggregation declared for one exported channel.

    Attributes:
        name: Channel key, bound positionally to the export columns.
        label: Column label in the result table.
        stats: Subset of ("mean", "max", "min"), in output order.
    """

    name: str
    label: str
    stats: tuple[str, ...] = ("mean",)

    def __post_init__(self) -> None:
        if not self.stats:
            raise ValueError(f"channel '{self.name}' declares no statistics")
        unknown = [s for s in self.stats if s not in _STAT_FUNCS]
        if unknown:
            raise ValueError(f"channel '{self.name}' has unknown statistics {unknown}")

    @property
    def columns(self) -> tuple[str, ...]:
        if self.stats == ("mean",):
            return (self.label,)
        return tuple(f"{stat.title()} {self.label}" for stat in self.stats)


def channel_specs(configs: Iterable) -> tuple[ChannelSpec, ...]:
    """Build ChannelSpecs from ChannelConfig models."""
    return tuple(ChannelSpec(c.name, c.label, tuple(c.stats)) for c in configs)


def schema_columns(specs: Sequence[ChannelSpec]) -> list[str]:
    return [col for spec in specs for col in spec.columns]


def window_size(angular_step_deg: float) -> int:
    """Samples in one full revolution."""
    if not angular_step_deg > 0:
        raise AggregationError(f"angular step must be positive, got {angular_step_deg}")
    return int(round(DEG_PER_REV / angular_step_deg))


def read_series(path: str | Path, group: str, channels: Sequence[str]) -> MonitorSeries:
    """Load an exported plot CSV.

    Column 0 is the iteration index; the next len(channels) columns are bound
    to `channels` in order. Extra trailing columns are ignored.
    """
    path = Path(path)
    try:
        df = pd.read_csv(path)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ResultStoreError(f"Cannot read series {path}: {e}") from e

    if df.shape[1] < len(channels) + 1:
        raise AggregationError(
            f"{path.name}: expected {len(channels)} channels after the iteration column, "
            f"found {df.shape[1] - 1}"
        )
    try:
        values = df.iloc[:, : len(channels) + 1].to_numpy(dtype=np.float64)
    except ValueError as e:
        raise AggregationError(f"{path.name}: non-numeric samples: {e}") from e

    return MonitorSeries(
        group=group,
        iterations=values[:, 0],
        channels={name: values[:, i + 1] for i, name in enumerate(channels)},
    )


def aggregate_window(
    series: MonitorSeries,
    specs: Sequence[ChannelSpec],
    window: int,
) -> dict[str, float]:
    """Statistics over the trailing `window` samples of each declared channel.

    Samples before the window are ignored entirely. A non-empty series shorter
    than the window is aggregated over every sample it has.
    """
    if window <= 0:
        raise AggregationError(f"window must be positive, got {window}")
    n = len(series)
    if n == 0:
        raise AggregationError(f"series '{series.group}' is empty")
    if n < window:
        logger.warn(
            "series shorter than one revolution window",
            group=series.group,
            samples=n,
            window=window,
        )

    out: dict[str, float] = {}
    for spec in specs:
        if spec.name not in series.channels:
            raise AggregationError(f"channel '{spec.name}' missing from series '{series.group}'")
        samples = series.channels[spec.name][-window:]
        for stat, column in zip(spec.stats, spec.columns):
            out[column] = float(_STAT_FUNCS[stat](samples))
    return out


def mean_of(series: MonitorSeries, channel: str, window: int) -> float:
    if channel not in series.channels:
        raise AggregationError(f"channel '{channel}' missing from series '{series.group}'")
    samples = series.channels[channel][-window:]
    if samples.size == 0:
        raise AggregationError(f"series '{series.group}' is empty")
    return float(np.mean(samples))


def area_ratio_for(area_ratios: Sequence[float], mesh_index: int) -> float:
    """Submerged area ratio of the current mesh."""
    if mesh_index < 0 or mesh_index >= len(area_ratios):
        raise AggregationError(
            f"mesh index {mesh_index} outside calibration table of {len(area_ratios)}"
        )
    ratio = float(area_ratios[mesh_index])
    if not math.isfinite(ratio) or ratio == 0.0:
        raise AggregationError(f"invalid area ratio {ratio} for mesh {mesh_index}")
    return ratio


def prop_coefficients(
    rpm: float,
    speed_mph: float,
    diameter_in: float,
    mean_thrust: float,
    mean_torque: float,
    area_ratio: float,
) -> dict[str, float]:
    """Shaft power, advance ratio, normalised KT/KQ and open-water efficiency.

    Args:
        rpm: Shaft speed (rev/min).
        speed_mph: Boat speed (mph).
        diameter_in: Propeller diameter (in).
        mean_thrust: Net thrust over the window (lbf).
        mean_torque: Shaft torque over the window (lbf-ft).
        area_ratio: Submerged area ratio of the mesh.

    Returns:
        {"SHP", "J", "KT_norm", "KQ_norm", "eta"}.
    """
    rps = rpm / 60.0
    if not rps > 0:
        raise AggregationError(f"rpm must be positive, got {rpm}")
    if area_ratio == 0.0:
        raise AggregationError("area ratio must be non-zero")

    d_ft = diameter_in * IN_TO_FT
    speed_fts = speed_mph * MPH_TO_FTS

    shp = rpm * 2.0 * math.pi / 60.0 * mean_torque / FT_LBF_S_PER_HP
    j = speed_fts / (rps * d_ft)
    kt = mean_thrust / (rps**2 * d_ft**4 * RHO_WATER)
    kq = mean_torque / (rps**2 * d_ft**5 * RHO_WATER)
    kt_norm = kt / area_ratio
    kq_norm = kq / area_ratio
    if kq_norm == 0.0:
        raise AggregationError("zero torque coefficient, efficiency undefined")
    eta = j / (2.0 * math.pi) * kt_norm / kq_norm

    return {"SHP": shp, "J": j, "KT_norm": kt_norm, "KQ_norm": kq_norm, "eta": eta}


def summarize_prop(
    prop: MonitorSeries,
    gc: MonitorSeries,
    prop_specs: Sequence[ChannelSpec],
    gc_specs: Sequence[ChannelSpec],
    *,
    window: int,
    rpm: float,
    speed_mph: float,
    diameter_in: float,
    area_ratios: Sequence[float],
    mesh_index: int,
    thrust_channel: str,
    torque_channel: str,
) -> dict[str, float]:
    """Result columns for one prop point: prop stats, coefficients, gearcase stats."""
    row = aggregate_window(prop, prop_specs, window)
    row.update(
        prop_coefficients(
            rpm=rpm,
            speed_mph=speed_mph,
            diameter_in=diameter_in,
            mean_thrust=mean_of(prop, thrust_channel, window),
            mean_torque=mean_of(prop, torque_channel, window),
            area_ratio=area_ratio_for(area_ratios, mesh_index),
        )
    )
    row.update(aggregate_window(gc, gc_specs, window))
    return row


def instantaneous(engine: EnginePort, reports: Sequence[str]) -> dict[str, float]:
    """Current value of each report, without windowing or derived coefficients."""
    return {name: float(engine.read_monitor(name)) for name in reports}
