"""
Oxygen toxicity accounting: CNS clock percentage and OTU (NOAA limits).

Exposure is integrated over (depth, minutes, fO2) segments logged by the
planner. Warnings are advisory and never raised.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

from .buhlmann_constants import BuhlmannParameters, ZH_L16C

logger = logging.getLogger(__name__)

# NOAA single-exposure limits: (PO2 bar, max minutes)
CNS_TABLE: Tuple[Tuple[float, float], ...] = (
    (0.5, 720.0),
    (0.6, 300.0),
    (0.7, 150.0),
    (0.8, 90.0),
    (0.9, 60.0),
    (1.0, 45.0),
    (1.1, 35.0),
    (1.2, 30.0),
    (1.3, 25.0),
    (1.4, 22.5),
    (1.5, 15.0),
    (1.6, 12.0),
    (1.7, 10.0),
    (1.8, 8.0),
    (1.9, 7.0),
    (2.0, 6.0),
)

PO2_THRESHOLD = 0.5
PO2_ELEVATED = 1.6
PO2_DANGEROUS = 2.0
CNS_ELEVATED = 80.0
CNS_CRITICAL = 100.0
OTU_ELEVATED = 200.0
OTU_CRITICAL = 300.0


@dataclass(frozen=True)
class OxygenExposure:
    """Time spent breathing one gas at one depth."""
    depth: float       # meters
    minutes: float
    fo2: float


@dataclass
class OxygenToxicity:
    """Accumulated oxygen exposure for a dive."""
    cns: float                  # percent of the CNS clock
    otu: float                  # oxygen tolerance units
    max_po2: float              # bar
    warnings: List[str] = field(default_factory=list)


def cns_limit_minutes(po2: float) -> float:
    """Maximum single-exposure time (min) at `po2`, interpolated in CNS_TABLE.

    Returns infinity below 0.5 bar, where the CNS clock does not run.
    """
    if po2 <= PO2_THRESHOLD:
        return float("inf")
    if po2 >= CNS_TABLE[-1][0]:
        return CNS_TABLE[-1][1]

    for (lo_p, lo_t), (hi_p, hi_t) in zip(CNS_TABLE, CNS_TABLE[1:]):
        if lo_p <= po2 <= hi_p:
            factor = (po2 - lo_p) / (hi_p - lo_p)
            return lo_t - (lo_t - hi_t) * factor
    return CNS_TABLE[-1][1]


def cns_increment(po2: float, minutes: float) -> float:
    """CNS percentage added by `minutes` at `po2`."""
    if po2 <= PO2_THRESHOLD:
        return 0.0
    return (minutes / cns_limit_minutes(po2)) * 100.0


def otu_increment(po2: float, minutes: float) -> float:
    """OTU added by `minutes` at `po2`: t * (PO2 - 0.5)^0.83."""
    if po2 <= PO2_THRESHOLD:
        return 0.0
    return minutes * (po2 - PO2_THRESHOLD) ** 0.83


def _add_once(warnings: List[str], message: str) -> None:
    # Segments are time steps, so the same depth and gas repeat
    if message not in warnings:
        warnings.append(message)


def accumulate_oxygen_toxicity(
    segments: Iterable[OxygenExposure],
    params: BuhlmannParameters = ZH_L16C,
) -> OxygenToxicity:
    """Sum CNS and OTU over exposure segments and collect safety warnings."""
    total_cns = 0.0
    total_otu = 0.0
    max_po2 = 0.0
    warnings = []

    for segment in segments:
        po2 = params.depth_to_pressure(segment.depth) * segment.fo2
        max_po2 = max(max_po2, po2)

        total_cns += cns_increment(po2, segment.minutes)
        total_otu += otu_increment(po2, segment.minutes)

        if po2 > PO2_ELEVATED:
            _add_once(
                warnings,
                f"Elevated PO2 {po2:.2f} bar at {segment.depth:.0f}m "
                f"(recommended limit {PO2_ELEVATED} bar)"
            )
        if po2 > PO2_DANGEROUS:
            _add_once(
                warnings,
                f"Dangerous PO2 {po2:.2f} bar at {segment.depth:.0f}m "
                f"(absolute limit {PO2_DANGEROUS} bar)"
            )

    if total_cns > CNS_ELEVATED:
        warnings.append(f"Elevated CNS {total_cns:.1f}% (recommended limit {CNS_ELEVATED:.0f}%)")
    if total_cns > CNS_CRITICAL:
        warnings.append(f"Critical CNS {total_cns:.1f}% (absolute limit {CNS_CRITICAL:.0f}%)")

    if total_otu > OTU_ELEVATED:
        warnings.append(
            f"Elevated OTU {total_otu:.0f} (recommended limit {OTU_ELEVATED:.0f}, "
            f"daily limit {OTU_CRITICAL:.0f})"
        )
    if total_otu > OTU_CRITICAL:
        warnings.append(f"Critical OTU {total_otu:.0f} (daily limit {OTU_CRITICAL:.0f} exceeded)")

    logger.debug(f"Oxygen exposure: CNS {total_cns:.1f}%, OTU {total_otu:.1f}, max PO2 {max_po2:.2f}")

    return OxygenToxicity(
        cns=total_cns,
        otu=total_otu,
        max_po2=max_po2,
        warnings=warnings,
    )
