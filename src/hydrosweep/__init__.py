"""hydrosweep: parameter-sweep driver for an external CFD engine session."""

__version__ = "0.1.0"
