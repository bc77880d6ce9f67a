"""
Breathing gas mixtures and multi-gas plan inputs.

Fractions are stored as floats in [0, 1] and always sum to 1 (within 1e-6).
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .buhlmann_constants import BuhlmannParameters, ZH_L16C
from .exceptions import InvalidInputError

GAS_SUM_TOLERANCE = 1e-6


@dataclass(frozen=True)
class GasMix:
    """Immutable O2/He/N2 mixture."""
    fo2: float
    fhe: float
    fn2: float

    def __post_init__(self):
        for name, value in (("fO2", self.fo2), ("fHe", self.fhe), ("fN2", self.fn2)):
            if not (0.0 <= value <= 1.0):
                raise InvalidInputError(f"{name} must be between 0 and 1, got {value}")
        total = self.fo2 + self.fhe + self.fn2
        if abs(total - 1.0) > GAS_SUM_TOLERANCE:
            raise InvalidInputError(f"Gas fractions must sum to 1, got {total:.6f}")

    @property
    def label(self) -> str:
        """Conventional name: Air, EAN32, Oxygen, Tx18/45, Heliox21/79."""
        o2 = int(round(self.fo2 * 100))
        he = int(round(self.fhe * 100))
        if he == 0:
            if o2 == 100:
                return "Oxygen"
            if o2 == 21:
                return "Air"
            return f"EAN{o2}"
        if int(round(self.fn2 * 100)) == 0:
            return f"Heliox{o2}/{he}"
        return f"Tx{o2}/{he}"


def normalize_gas(fo2: float, fhe: float = 0.0, fn2: Optional[float] = None) -> GasMix:
    """Validate fractions and fill in nitrogen as the balance.

    Raises InvalidInputError when O2 + He exceed 1 or any fraction is out of range.
    """
    try:
        fo2 = float(fo2)
        fhe = float(fhe or 0.0)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Gas fractions must be numbers: {e}") from e

    if not (0.0 <= fo2 <= 1.0):
        raise InvalidInputError(f"fO2 must be between 0 and 1, got {fo2}")
    if not (0.0 <= fhe <= 1.0):
        raise InvalidInputError(f"fHe must be between 0 and 1, got {fhe}")
    if fo2 + fhe > 1.0 + GAS_SUM_TOLERANCE:
        raise InvalidInputError(
            f"fO2 + fHe must not exceed 1, got {fo2 + fhe:.4f}"
        )

    if fn2 is None:
        fn2 = max(0.0, 1.0 - fo2 - fhe)
    return GasMix(fo2=fo2, fhe=fhe, fn2=float(fn2))


def nitrox(fo2: float) -> GasMix:
    """Enriched air with the given oxygen fraction."""
    return normalize_gas(fo2, 0.0)


def trimix(fo2: float, fhe: float) -> GasMix:
    """Trimix (or heliox when no nitrogen remains)."""
    return normalize_gas(fo2, fhe)


AIR = GasMix(fo2=0.21, fhe=0.0, fn2=0.79)
OXYGEN = GasMix(fo2=1.0, fhe=0.0, fn2=0.0)


def partial_pressure_o2(
    depth_m: float, fo2: float, params: BuhlmannParameters = ZH_L16C
) -> float:
    """PO2 (bar) of a gas at depth."""
    return params.depth_to_pressure(depth_m) * fo2


def max_operating_depth(
    fo2: float, max_po2: float = 1.4, params: BuhlmannParameters = ZH_L16C
) -> float:
    """Deepest depth (m) at which `fo2` stays at or below `max_po2`."""
    if fo2 <= 0:
        raise InvalidInputError(f"fO2 must be > 0 to compute a MOD, got {fo2}")
    return params.pressure_to_depth(max_po2 / fo2)


@dataclass(frozen=True)
class GasSwitch:
    """A deco gas and the depth (m) from which it may be breathed."""
    depth: float
    gas: GasMix
    name: Optional[str] = None

    def __post_init__(self):
        if self.depth < 0:
            raise InvalidInputError(f"Switch depth must be >= 0, got {self.depth}")

    @property
    def display_name(self) -> str:
        return self.name or self.gas.label


@dataclass(frozen=True)
class MultiGasPlan:
    """Bottom gas plus deco gases, ideally sorted by descending switch depth."""
    bottom_gas: GasMix
    deco_gases: List[GasSwitch] = field(default_factory=list)
