"""
Bühlmann ZH-L16C constants and gradient factor calculations.

Single source of truth for compartment parameters and GF-adjusted ceiling math.
All functions are pure (no side effects); mutable tissue state lives in
tissue.TissueState.

Reference: Bühlmann, A.A. (1995). Tauchmedizin. Springer-Verlag.
"""

import math
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np

from .exceptions import InvalidInputError

SURFACE_PRESSURE = 1.01325  # bar, sea level
WATER_VAPOUR_PRESSURE = 0.0627  # bar, alveolar water vapour at 37°C
PRESSURE_PER_METER = 0.1  # bar per meter of sea water
SURFACE_N2_FRACTION = 0.79

NUM_COMPARTMENTS = 16

# Half-times in minutes, fastest to slowest (compartment 1b for N2)
ZH_L16C_N2_HALFTIMES: Tuple[float, ...] = (
    5.0, 8.0, 12.5, 18.5, 27.0, 38.3, 54.3, 77.0,
    109.0, 146.0, 187.0, 239.0, 305.0, 390.0, 498.0, 635.0,
)

ZH_L16C_HE_HALFTIMES: Tuple[float, ...] = (
    1.88, 3.02, 4.72, 6.99, 10.21, 14.48, 20.53, 29.11,
    41.20, 55.19, 70.69, 90.34, 115.29, 147.42, 188.24, 240.03,
)

# M-value coefficients: M(P) = a + P/b
ZH_L16C_N2_A: Tuple[float, ...] = (
    1.1696, 1.0000, 0.8618, 0.7562, 0.6667, 0.5933, 0.5282, 0.4701,
    0.4187, 0.3798, 0.3497, 0.3223, 0.2971, 0.2737, 0.2523, 0.2327,
)

ZH_L16C_N2_B: Tuple[float, ...] = (
    0.5578, 0.6514, 0.7222, 0.7825, 0.8126, 0.8434, 0.8693, 0.8910,
    0.9092, 0.9222, 0.9319, 0.9403, 0.9477, 0.9544, 0.9602, 0.9653,
)

ZH_L16C_HE_A: Tuple[float, ...] = (
    1.6189, 1.3830, 1.1919, 1.0458, 0.9220, 0.8205, 0.7305, 0.6502,
    0.5950, 0.5545, 0.5333, 0.5189, 0.5181, 0.5176, 0.5172, 0.5119,
)

ZH_L16C_HE_B: Tuple[float, ...] = (
    0.4770, 0.5747, 0.6527, 0.7223, 0.7582, 0.7957, 0.8279, 0.8553,
    0.8757, 0.8903, 0.8997, 0.9073, 0.9122, 0.9171, 0.9217, 0.9267,
)

# Gradient factors accepted by the planner, as fractions
GF_MIN = 0.01
GF_MAX = 0.99

# Guards the a/b blend when a compartment holds no inert gas
_BLEND_EPSILON = 1e-9


@dataclass(frozen=True)
class BuhlmannParameters:
    """Physical constants and compartment tables for one simulation.

    Defaults are ZH-L16C at sea level. Pass an alternative instance to the
    tissue state or planner to experiment with other tables.
    """
    surface_pressure: float = SURFACE_PRESSURE
    water_vapour_pressure: float = WATER_VAPOUR_PRESSURE
    pressure_per_meter: float = PRESSURE_PER_METER
    n2_halftimes: Tuple[float, ...] = field(default=ZH_L16C_N2_HALFTIMES)
    he_halftimes: Tuple[float, ...] = field(default=ZH_L16C_HE_HALFTIMES)
    n2_a: Tuple[float, ...] = field(default=ZH_L16C_N2_A)
    n2_b: Tuple[float, ...] = field(default=ZH_L16C_N2_B)
    he_a: Tuple[float, ...] = field(default=ZH_L16C_HE_A)
    he_b: Tuple[float, ...] = field(default=ZH_L16C_HE_B)

    def __post_init__(self):
        tables = {
            "n2_halftimes": self.n2_halftimes,
            "he_halftimes": self.he_halftimes,
            "n2_a": self.n2_a,
            "n2_b": self.n2_b,
            "he_a": self.he_a,
            "he_b": self.he_b,
        }
        for name, table in tables.items():
            if len(table) != NUM_COMPARTMENTS:
                raise InvalidInputError(
                    f"{name} must have {NUM_COMPARTMENTS} entries, got {len(table)}"
                )
        if self.pressure_per_meter <= 0:
            raise InvalidInputError(
                f"pressure_per_meter must be > 0, got {self.pressure_per_meter}"
            )

    def depth_to_pressure(self, depth_m: float) -> float:
        """Absolute ambient pressure (bar) at a depth in meters."""
        return self.surface_pressure + depth_m * self.pressure_per_meter

    def pressure_to_depth(self, pressure: float) -> float:
        """Depth in meters for an absolute pressure; negative above the surface."""
        return (pressure - self.surface_pressure) / self.pressure_per_meter


ZH_L16C = BuhlmannParameters()


@dataclass(frozen=True)
class GradientFactors:
    """Gradient factor pair for Bühlmann decompression adjustments.

    gf_low:  applied at the deepest ceiling (first stop), sets the first stop depth
    gf_high: applied at the surface, sets the final ascent
    Values are fractions in [0.01, 0.99]; a GF of exactly 0 would divide by zero
    in the ceiling formula.
    """
    gf_low: float
    gf_high: float

    def __post_init__(self):
        if not (GF_MIN <= self.gf_low <= GF_MAX):
            raise InvalidInputError(
                f"gf_low must be in [{GF_MIN}, {GF_MAX}], got {self.gf_low}"
            )
        if not (GF_MIN <= self.gf_high <= GF_MAX):
            raise InvalidInputError(
                f"gf_high must be in [{GF_MIN}, {GF_MAX}], got {self.gf_high}"
            )
        if self.gf_low > self.gf_high:
            raise InvalidInputError(
                f"gf_low ({self.gf_low}) must be <= gf_high ({self.gf_high})"
            )

    @classmethod
    def from_percent(cls, gf_low_pct: float, gf_high_pct: float) -> "GradientFactors":
        """Build from percentages, e.g. ``GradientFactors.from_percent(30, 70)``."""
        for name, value in (("GF low", gf_low_pct), ("GF high", gf_high_pct)):
            if not (1 <= value <= 99):
                raise InvalidInputError(f"{name} must be between 1 and 99 %, got {value}")
        return cls(gf_low=gf_low_pct / 100.0, gf_high=gf_high_pct / 100.0)

    @property
    def spread(self) -> float:
        """Difference between GF high and GF low, as a fraction."""
        return self.gf_high - self.gf_low


GF_DEFAULT = GradientFactors(gf_low=0.30, gf_high=0.70)


def inspired_pressure(
    ambient_pressure: float,
    fraction: float,
    water_vapour_pressure: float = WATER_VAPOUR_PRESSURE,
) -> float:
    """Inspired inert gas partial pressure (bar), corrected for water vapour.

    Pinsp = max(0, (Pamb - PH2O) * f)
    """
    return max(0.0, (ambient_pressure - water_vapour_pressure) * fraction)


def decay_constants(halftimes: Tuple[float, ...]) -> np.ndarray:
    """Per-compartment k = ln(2) / half-time."""
    return math.log(2) / np.array(halftimes, dtype=float)


def haldane_vec(
    pt0: np.ndarray, palv: float, t: float, k: np.ndarray
) -> np.ndarray:
    """Haldane equation at constant ambient pressure, vectorised.

    P(t) = P0 + (Pinsp - P0) * (1 - exp(-k*t))
    Exact for any t >= 0.
    """
    return pt0 + (palv - pt0) * (1.0 - np.exp(-k * t))


def ceiling_pressure_gf(
    p_n2: np.ndarray,
    p_he: np.ndarray,
    gf: float,
    params: BuhlmannParameters = ZH_L16C,
) -> np.ndarray:
    """GF-adjusted minimum ambient pressure (bar) per compartment.

    a and b are blended by each inert gas's share of the tissue tension, then
    Baker's corrected formula is solved for ambient pressure:
        P_min = (P_tissue - gf * a) / (gf / b + 1 - gf)
    """
    pn = np.maximum(0.0, p_n2)
    ph = np.maximum(0.0, p_he)
    p_total = pn + ph
    denominator = np.where(p_total > 0.0, p_total, _BLEND_EPSILON)
    a = (np.asarray(params.n2_a) * pn + np.asarray(params.he_a) * ph) / denominator
    b = (np.asarray(params.n2_b) * pn + np.asarray(params.he_b) * ph) / denominator
    # Empty compartments blend to a = b = 0; give them N2 coefficients instead
    b = np.where(p_total > 0.0, b, np.asarray(params.n2_b))
    a = np.where(p_total > 0.0, a, np.asarray(params.n2_a))
    return (p_total - gf * a) / (gf / b + (1.0 - gf))
