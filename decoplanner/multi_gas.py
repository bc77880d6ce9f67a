"""
Multi-gas decompression support: gas selection and plan validation.

During the ascent the planner asks select_gas() at every step which gas to
breathe; the richest deco gas that is both past its switch depth and within
the PO2 limit wins.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .buhlmann_constants import BuhlmannParameters, ZH_L16C
from .exceptions import UnsafePlanError
from .gas import GasMix, GasSwitch, MultiGasPlan, partial_pressure_o2

logger = logging.getLogger(__name__)

DEFAULT_MAX_PO2 = 1.6
BOTTOM_PO2_ADVISORY = 1.4
_DEPTH_EPSILON = 1e-6


@dataclass(frozen=True)
class GasChoice:
    """Result of a gas selection at one depth."""
    gas: GasMix
    name: Optional[str]
    should_switch: bool


def _po2_within_limit(depth: float, gas: GasMix, max_po2: float, po2_tolerance: float,
                      params: BuhlmannParameters) -> bool:
    return partial_pressure_o2(depth, gas.fo2, params) <= max_po2 + po2_tolerance


def _log_tolerance(depth: float, switch: GasSwitch, max_po2: float,
                   params: BuhlmannParameters) -> None:
    po2 = partial_pressure_o2(depth, switch.gas.fo2, params)
    if po2 > max_po2:
        logger.warning(
            f"{switch.display_name} at {depth:.1f}m has PO2 {po2:.3f} bar, above the "
            f"{max_po2} bar limit; accepted only by the PO2 tolerance"
        )


def select_gas(
    depth: float,
    available_gases: Sequence[GasSwitch],
    current_gas: GasMix,
    max_po2: float = DEFAULT_MAX_PO2,
    current_name: Optional[str] = None,
    po2_tolerance: float = 0.0,
    params: BuhlmannParameters = ZH_L16C,
) -> GasChoice:
    """Choose the gas to breathe at `depth`.

    A deco gas is usable once depth <= its switch depth and its PO2 is within
    `max_po2`. A nonzero `po2_tolerance` widens that limit and logs a warning
    whenever a gas passes only because of it. The richest usable gas is
    preferred over the current one. If the current gas itself exceeds the
    limit the switch is forced to the richest safe gas, and UnsafePlanError
    is raised when none exists.
    """
    usable = [
        switch for switch in available_gases
        if depth <= switch.depth + _DEPTH_EPSILON
        and _po2_within_limit(depth, switch.gas, max_po2, po2_tolerance, params)
    ]

    if not _po2_within_limit(depth, current_gas, max_po2, po2_tolerance, params):
        if not usable:
            current_po2 = partial_pressure_o2(depth, current_gas.fo2, params)
            raise UnsafePlanError(
                f"{current_name or current_gas.label} reaches PO2 {current_po2:.2f} bar "
                f"at {depth:.1f}m and no deco gas is safe there (limit {max_po2} bar)"
            )
        forced = max(usable, key=lambda switch: switch.gas.fo2)
        _log_tolerance(depth, forced, max_po2, params)
        logger.warning(
            f"Forced switch from {current_name or current_gas.label} to "
            f"{forced.display_name} at {depth:.1f}m (PO2 limit {max_po2} bar)"
        )
        return GasChoice(
            gas=forced.gas,
            name=forced.display_name,
            should_switch=forced.gas != current_gas,
        )

    best = None
    for switch in usable:
        # Richer gas speeds up off-gassing
        if switch.gas.fo2 > (best.gas.fo2 if best else current_gas.fo2):
            best = switch

    if best is None:
        return GasChoice(gas=current_gas, name=current_name, should_switch=False)

    _log_tolerance(depth, best, max_po2, params)

    return GasChoice(
        gas=best.gas,
        name=best.display_name,
        should_switch=best.gas != current_gas,
    )


def validate_multi_gas_plan(
    plan: MultiGasPlan,
    max_depth: float,
    max_po2: float = DEFAULT_MAX_PO2,
    po2_tolerance: float = 0.0,
    params: BuhlmannParameters = ZH_L16C,
) -> Tuple[List[str], List[str]]:
    """Check a multi-gas plan against the dive's maximum depth.

    Returns:
        (errors, warnings). Errors make the plan unusable; warnings are advisory.
    """
    errors = []
    warnings = []

    bottom = plan.bottom_gas
    bottom_po2 = partial_pressure_o2(max_depth, bottom.fo2, params)
    if bottom_po2 > max_po2:
        errors.append(
            f"Bottom gas {bottom.label} reaches PO2 {bottom_po2:.2f} bar at {max_depth:.0f}m "
            f"(limit {max_po2} bar)"
        )
    elif bottom_po2 > BOTTOM_PO2_ADVISORY:
        warnings.append(
            f"High bottom PO2 {bottom_po2:.2f} bar with {bottom.fo2 * 100:.0f}% O2"
        )

    for switch in plan.deco_gases:
        name = switch.display_name
        switch_po2 = partial_pressure_o2(switch.depth, switch.gas.fo2, params)
        if not _po2_within_limit(switch.depth, switch.gas, max_po2, po2_tolerance, params):
            errors.append(
                f"{name} ({switch.gas.fo2 * 100:.0f}% O2) used too deep: {switch.depth:.0f}m "
                f"gives PO2 {switch_po2:.2f} bar (limit {max_po2} bar)"
            )
        elif switch_po2 > max_po2:
            warnings.append(
                f"{name} PO2 {switch_po2:.3f} bar at {switch.depth:.0f}m exceeds {max_po2} bar "
                f"and is accepted only by the {po2_tolerance} bar tolerance"
            )
        if switch.gas.fo2 <= bottom.fo2:
            warnings.append(f"{name} is not richer in O2 than the bottom gas")

    depths = [switch.depth for switch in plan.deco_gases]
    if depths != sorted(depths, reverse=True):
        warnings.append("Deco gases should be sorted by descending switch depth")

    return errors, warnings


def standard_deco_gases() -> List[GasSwitch]:
    """EAN50 from 21m and oxygen from 6m."""
    return [
        GasSwitch(depth=21.0, gas=GasMix(fo2=0.50, fhe=0.0, fn2=0.50), name="EAN50"),
        GasSwitch(depth=6.0, gas=GasMix(fo2=1.0, fhe=0.0, fn2=0.0), name="Oxygen"),
    ]


def suggest_deco_gases(max_depth: float) -> List[GasSwitch]:
    """Deco gases worth carrying for a dive to `max_depth`."""
    suggestions = []
    ean50, oxygen = standard_deco_gases()
    if max_depth > 30:
        suggestions.append(ean50)
    if max_depth > 15:
        suggestions.append(oxygen)
    return suggestions
