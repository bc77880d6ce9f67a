"""
Gradient factor interpolation, advisories and recommended GF settings.

Recommendations follow Mitchell & Doolette (2018) and Erik Baker's
"Clearing Up The Confusion About Deep Stops".
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List

from .buhlmann_constants import GradientFactors
from .exceptions import InvalidInputError

STOP_STEP = 3.0  # meters


def gf_at_depth(
    depth_m: float,
    gf_low: float,
    gf_high: float,
    first_stop_depth: float,
    stop_step: float = STOP_STEP,
) -> float:
    """Gradient factor in effect at `depth_m`.

    GF is gf_low at the first stop and rises linearly to gf_high at the
    surface. Without a first stop (first_stop_depth <= 0) the surface value
    applies everywhere.
    """
    first_stop = max(0.0, math.ceil(first_stop_depth / stop_step) * stop_step)
    if first_stop <= 0:
        return gf_high
    frac = max(0.0, min(1.0, 1.0 - depth_m / first_stop))
    return gf_low + (gf_high - gf_low) * frac


def validate_gradient_factors(gf_low_pct: float, gf_high_pct: float) -> List[str]:
    """Check a GF pair given in percent and return advisory warnings.

    Out-of-range values or gf_low > gf_high raise InvalidInputError.
    """
    gf = GradientFactors.from_percent(gf_low_pct, gf_high_pct)
    warnings = []

    if gf_low_pct < 20:
        warnings.append(f"GF low {gf_low_pct:.0f}% is extremely aggressive and not recommended")
    elif gf_low_pct < 30:
        warnings.append(f"GF low {gf_low_pct:.0f}% below 30% can create excessive deep stops")

    if gf_high_pct > 95:
        warnings.append(f"GF high {gf_high_pct:.0f}% leaves very little safety margin")
    elif gf_high_pct > 85:
        warnings.append(f"GF high {gf_high_pct:.0f}% is aggressive; consider a more conservative value")

    spread = round(gf.spread * 100.0, 6)
    if spread > 60:
        warnings.append(f"GF spread {spread:.0f}% above 60% may produce inconsistent profiles")

    return warnings


def format_gradient_factors(gf_low: float, gf_high: float) -> str:
    """Render fractions as 'GF 30/70'."""
    return f"GF {round(gf_low * 100)}/{round(gf_high * 100)}"


@dataclass(frozen=True)
class GradientFactorProfile:
    """A named GF setting with its intended use."""
    name: str
    gf_low: int
    gf_high: int
    description: str
    use_case: str
    warnings: List[str] = field(default_factory=list)

    def to_gradient_factors(self) -> GradientFactors:
        return GradientFactors.from_percent(self.gf_low, self.gf_high)


GF_PROFILES: Dict[str, GradientFactorProfile] = {
    "RECREATIONAL_CONSERVATIVE": GradientFactorProfile(
        name="Recreational conservative",
        gf_low=85,
        gf_high=85,
        description="Stays inside the M-values with margin for recreational diving",
        use_case="Recreational dives < 30m, occasional divers, easy conditions",
    ),
    "RECREATIONAL_STANDARD": GradientFactorProfile(
        name="Recreational standard",
        gf_low=70,
        gf_high=85,
        description="Standard recreational setting with light conservatism",
        use_case="Regular recreational dives, experienced divers",
    ),
    "TECHNICAL_MODERATE": GradientFactorProfile(
        name="Technical moderate",
        gf_low=40,
        gf_high=85,
        description="Balanced setting for shallow technical diving",
        use_case="Technical dives 40-60m, moderate deco, normal conditions",
        warnings=["Requires appropriate technical training"],
    ),
    "TECHNICAL_CONSERVATIVE": GradientFactorProfile(
        name="Technical conservative",
        gf_low=30,
        gf_high=70,
        description="Conservative setting for deep technical diving",
        use_case="Dives > 60m, trimix, long deco, difficult conditions",
        warnings=[
            "GF low 30% avoids excessive deep stops",
            "GF high 70-80% keeps a margin at the surface",
        ],
    ),
    "TECHNICAL_AGGRESSIVE": GradientFactorProfile(
        name="Technical aggressive",
        gf_low=20,
        gf_high=85,
        description="Deep-stop heavy setting, no longer recommended",
        use_case="Historical practice, now considered too aggressive",
        warnings=[
            "GF low below 30% can under-protect slow tissues",
            "Associated with increased risk of type II DCS in recent studies",
        ],
    ),
    "ALTITUDE": GradientFactorProfile(
        name="Altitude / special conditions",
        gf_low=25,
        gf_high=65,
        description="Very conservative setting for altitude or adverse conditions",
        use_case="Altitude diving, cold water, heavy exertion, fatigue",
        warnings=[
            "Adjust for the actual altitude",
            "Consider personal factors such as age and fitness",
        ],
    ),
}

EXPERIENCE_LEVELS = ("beginner", "intermediate", "expert")


def recommend_gradient_factors(
    max_depth: float,
    is_trimix: bool = False,
    experience: str = "intermediate",
) -> GradientFactorProfile:
    """Pick a GF profile for a dive from depth, gas and diver experience."""
    if experience not in EXPERIENCE_LEVELS:
        raise InvalidInputError(
            f"experience must be one of {', '.join(EXPERIENCE_LEVELS)}, got {experience!r}"
        )

    if is_trimix or max_depth > 60:
        return GF_PROFILES["TECHNICAL_CONSERVATIVE"]

    if max_depth > 40:
        if experience == "expert":
            return GF_PROFILES["TECHNICAL_MODERATE"]
        return GF_PROFILES["TECHNICAL_CONSERVATIVE"]

    if experience == "beginner":
        return GF_PROFILES["RECREATIONAL_CONSERVATIVE"]
    return GF_PROFILES["RECREATIONAL_STANDARD"]
