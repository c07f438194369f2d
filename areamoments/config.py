"""
Tolerances & Limits
===================
Central registry for the numeric thresholds used by the engine.

All lengths are in the native unit of the CAD document; the engine never
converts units.

Exports:
    NORMAL_EPSILON (float): Minimum length of a usable face normal.
    AREA_EPSILON (float): Below this total area the result is all zeros.
    LENGTH_EPSILON (float): Guard for radii of gyration and section moduli.
    PRINCIPAL_EPSILON (float): Absolute guard for an isotropic section.
    PRINCIPAL_RTOL (float): Relative guard for an isotropic section.
    PARALLEL_THRESHOLD (float): |normal . X| above which world Y is used.
    MAX_TRIANGLES (int): Soft limit; larger inputs are logged.
    WELD_DECIMALS (int): Rounding used when merging triangle-soup vertices.
    DEFAULT_LOG_LEVEL (str): Package log level.
"""
import logging
import os
from typing import Optional

NORMAL_EPSILON: float = 1e-10
AREA_EPSILON: float = 1e-15
LENGTH_EPSILON: float = 1e-10
PRINCIPAL_EPSILON: float = 1e-15
PRINCIPAL_RTOL: float = 1e-12
PARALLEL_THRESHOLD: float = 0.9

# A CAD face tessellated at 0.001 tolerance rarely exceeds a few 10k facets.
MAX_TRIANGLES: int = 5_000_000

WELD_DECIMALS: int = 9


def log_level_from_env(value: Optional[str]) -> str:
    """Level name from AREAMOMENTS_LOG_LEVEL, or "WARNING" if unset or unknown."""
    name = (value or "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        return "WARNING"
    return name


DEFAULT_LOG_LEVEL: str = log_level_from_env(os.environ.get("AREAMOMENTS_LOG_LEVEL"))
