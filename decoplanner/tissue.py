"""
Bühlmann tissue state: inert gas tensions for the 16 ZH-L16C compartments.

One TissueState belongs to one planning run. It is mutated in place by
advance() and queried by ceiling(); nothing here is shared between runs.
"""

import numpy as np

from .buhlmann_constants import (
    NUM_COMPARTMENTS,
    SURFACE_N2_FRACTION,
    BuhlmannParameters,
    ZH_L16C,
    ceiling_pressure_gf,
    decay_constants,
    haldane_vec,
    inspired_pressure,
)
from .gas import GasMix


class TissueState:
    """Per-compartment N2 and He tensions (bar), fastest compartment first.

    All tissue math is vectorized across 16 compartments using numpy.
    """

    def __init__(self, params: BuhlmannParameters = ZH_L16C):
        self.params = params

        # Pre-compute decay constants k = ln(2) / halftime
        self.n2_k = decay_constants(params.n2_halftimes)
        self.he_k = decay_constants(params.he_halftimes)

        # Surface equilibrium on air
        surface_n2 = inspired_pressure(
            params.surface_pressure, SURFACE_N2_FRACTION, params.water_vapour_pressure
        )
        self.p_n2 = np.full(NUM_COMPARTMENTS, surface_n2)
        self.p_he = np.zeros(NUM_COMPARTMENTS)

    def advance(self, depth_m: float, gas: GasMix, minutes: float) -> None:
        """Load or unload inert gas for `minutes` at a constant depth.

        Each gas uses its own half-time table and its own inspired pressure.
        Calling this repeatedly with small steps approximates a moving depth.
        """
        if minutes <= 0:
            return
        p_amb = self.params.depth_to_pressure(depth_m)
        wvp = self.params.water_vapour_pressure
        pn2_insp = inspired_pressure(p_amb, gas.fn2, wvp)
        phe_insp = inspired_pressure(p_amb, gas.fhe, wvp)

        self.p_n2 = haldane_vec(self.p_n2, pn2_insp, minutes, self.n2_k)
        self.p_he = haldane_vec(self.p_he, phe_insp, minutes, self.he_k)

    def compartment_ceilings(self, gf: float) -> np.ndarray:
        """Ceiling depth (m) of each compartment at gradient factor `gf`."""
        p_min = ceiling_pressure_gf(self.p_n2, self.p_he, gf, self.params)
        depths = (p_min - self.params.surface_pressure) / self.params.pressure_per_meter
        return np.maximum(0.0, depths)

    def ceiling(self, gf: float) -> float:
        """Deepest compartment ceiling (m), 0.0 when free to surface.

        gf must be in (0, 1]; it appears as a divisor in the ceiling formula.
        """
        return float(np.max(self.compartment_ceilings(gf)))

    def controlling_compartment(self, gf: float) -> int:
        """Index (0-based) of the compartment with the deepest ceiling."""
        return int(np.argmax(self.compartment_ceilings(gf)))
