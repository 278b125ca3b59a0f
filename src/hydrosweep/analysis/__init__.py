"""Windowed aggregation and propeller coefficients."""

from .aggregate import (
    ChannelSpec,
    aggregate_window,
    prop_coefficients,
    read_series,
    summarize_prop,
)

__all__ = [
    "ChannelSpec",
    "aggregate_window",
    "prop_coefficients",
    "read_series",
    "summarize_prop",
]
