"""Sweep driver, run control and the per-campaign sweep modes."""
