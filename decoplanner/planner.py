"""
Bühlmann ZH-L16C + gradient factor decompression scheduler.

Simulates descent, bottom time and a stepwise ascent with 3m stops:
1. Ascend to the first stop given by the GF-low ceiling
2. Hold each stop until the ceiling, at the GF of the next stop, allows
   moving 3m shallower
3. After the last stop (3m or 6m) ascend to the surface

Every planning call builds its own TissueState; DecoPlanner instances hold
only immutable settings and can be reused.
"""

import dataclasses
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .buhlmann_constants import BuhlmannParameters, GradientFactors, ZH_L16C
from .exceptions import DecompressionRunawayError, InvalidInputError, UnsafePlanError
from .gas import GasMix, GasSwitch, MultiGasPlan
from .gradient_factors import STOP_STEP, gf_at_depth, validate_gradient_factors
from .multi_gas import DEFAULT_MAX_PO2, select_gas, validate_multi_gas_plan
from .oxygen_toxicity import OxygenExposure, OxygenToxicity, accumulate_oxygen_toxicity
from .tissue import TissueState

logger = logging.getLogger(__name__)

ASCENT_RATE = 9.0  # m/min
DESCENT_RATE = 19.0  # m/min
MAX_STOP_MINUTES = 360.0
CEILING_TOLERANCE = 1e-6  # meters
_TIME_EPSILON = 1e-9

LAST_STOP_DEPTHS = (3, 6)


class Phase(Enum):
    DESCENT = "descent"
    BOTTOM = "bottom"
    ASCENT = "ascent"
    STOP = "stop"


@dataclass(frozen=True)
class PlannerConfig:
    """Scheduler settings with documented defaults.

    calculate_o2_toxicity left as None means "planner default": off for
    single-gas plans, on when deco gases are planned.
    """
    last_stop_depth: int = 3
    min_last_stop_minutes: int = 0
    time_step_minutes: float = 0.5
    calculate_o2_toxicity: Optional[bool] = None
    ascent_rate: float = ASCENT_RATE
    descent_rate: float = DESCENT_RATE
    max_stop_minutes: float = MAX_STOP_MINUTES
    max_po2: float = DEFAULT_MAX_PO2
    po2_tolerance: float = 0.0  # bar above max_po2 still accepted, with a warning

    def __post_init__(self):
        if self.last_stop_depth not in LAST_STOP_DEPTHS:
            raise InvalidInputError(
                f"last_stop_depth must be 3 or 6, got {self.last_stop_depth}"
            )
        if int(self.min_last_stop_minutes) != self.min_last_stop_minutes or self.min_last_stop_minutes < 0:
            raise InvalidInputError(
                f"min_last_stop_minutes must be an integer >= 0, got {self.min_last_stop_minutes}"
            )
        if self.time_step_minutes <= 0:
            raise InvalidInputError(
                f"time_step_minutes must be > 0, got {self.time_step_minutes}"
            )
        if self.po2_tolerance < 0:
            raise InvalidInputError(f"po2_tolerance must be >= 0, got {self.po2_tolerance}")
        for name in ("ascent_rate", "descent_rate", "max_stop_minutes", "max_po2"):
            value = getattr(self, name)
            if value <= 0:
                raise InvalidInputError(f"{name} must be > 0, got {value}")


@dataclass(frozen=True)
class DecompressionStop:
    """A single decompression stop."""
    depth: float               # meters, multiple of 3
    time: float                # minutes held
    gf: float                  # gradient factor in effect at this depth
    gas: Optional[GasMix] = None
    gas_name: Optional[str] = None


@dataclass(frozen=True)
class PlanSegment:
    """One simulated interval; transit steps end at `depth`."""
    phase: Phase
    depth: float
    minutes: float
    gas: GasMix
    gas_name: Optional[str] = None


@dataclass(frozen=True)
class DecompressionPlan:
    """Complete decompression plan for one dive."""
    depth: float
    first_stop_depth: float                 # 0.0 when no stop is required
    stops: Tuple[DecompressionStop, ...]    # ordered deepest-first
    tts: float                              # ascent + stops, excludes descent and bottom
    total_dive_time: float
    descent_time: float
    bottom_time: float
    gradient_factors: GradientFactors
    bottom_gas: GasMix
    segments: Tuple[PlanSegment, ...] = field(default=(), repr=False)
    oxygen_toxicity: Optional[OxygenToxicity] = None
    warnings: Tuple[str, ...] = ()

    @property
    def requires_deco(self) -> bool:
        return len(self.stops) > 0

    @property
    def total_stop_time(self) -> float:
        return sum(stop.time for stop in self.stops)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data view for presentation layers (segments omitted)."""
        data = {
            "depth": self.depth,
            "firstStopDepth": self.first_stop_depth,
            "stops": [
                {
                    "depth": stop.depth,
                    "time": stop.time,
                    "gf": stop.gf,
                    "gasName": stop.gas_name,
                }
                for stop in self.stops
            ],
            "tts": self.tts,
            "totalDiveTime": self.total_dive_time,
            "descentTime": self.descent_time,
            "bottomTime": self.bottom_time,
            "gfLow": self.gradient_factors.gf_low,
            "gfHigh": self.gradient_factors.gf_high,
            "warnings": list(self.warnings),
        }
        if self.oxygen_toxicity is not None:
            data["oxygenToxicity"] = dataclasses.asdict(self.oxygen_toxicity)
        return data


class _DiveRun:
    """Mutable state of a single planning call."""

    def __init__(self, config: PlannerConfig, params: BuhlmannParameters,
                 bottom_gas: GasMix, deco_gases: List[GasSwitch]):
        self.config = config
        self.params = params
        self.tissues = TissueState(params)
        self.gas = bottom_gas
        self.gas_name = bottom_gas.label
        self.deco_gases = deco_gases
        self.depth = 0.0
        self.segments: List[PlanSegment] = []

    def switch_gas(self, depth: float) -> None:
        if not self.deco_gases:
            return
        choice = select_gas(
            depth, self.deco_gases, self.gas,
            max_po2=self.config.max_po2,
            current_name=self.gas_name,
            po2_tolerance=self.config.po2_tolerance,
            params=self.params,
        )
        if choice.should_switch:
            logger.debug(f"Gas switch at {depth:.1f}m: {self.gas_name} -> {choice.name}")
            self.gas = choice.gas
            self.gas_name = choice.name

    def stay(self, minutes: float, phase: Phase) -> None:
        """Constant-depth interval at the current depth."""
        self.tissues.advance(self.depth, self.gas, minutes)
        self.segments.append(PlanSegment(phase, self.depth, minutes, self.gas, self.gas_name))

    def transit(self, target: float, rate: float, phase: Phase) -> float:
        """Move to `target` at `rate` in time steps; returns minutes spent.

        Each step is simulated at its end depth. On ascent the breathing gas
        is re-selected at every step.
        """
        distance = abs(target - self.depth)
        if distance <= 0:
            return 0.0

        total = distance / rate
        step = self.config.time_step_minutes
        steps = max(1, math.ceil(total / step - _TIME_EPSILON))
        direction = 1.0 if target > self.depth else -1.0

        elapsed = 0.0
        for i in range(steps):
            dt = min(step, total - elapsed)
            if i == steps - 1:
                dt = total - elapsed
                next_depth = target
            elif direction > 0:
                next_depth = min(target, self.depth + rate * dt)
            else:
                next_depth = max(target, self.depth - rate * dt)

            if phase is Phase.ASCENT:
                self.switch_gas(next_depth)
            self.tissues.advance(next_depth, self.gas, dt)
            self.segments.append(PlanSegment(phase, next_depth, dt, self.gas, self.gas_name))
            self.depth = next_depth
            elapsed += dt

        return elapsed


class DecoPlanner:
    """Plans a square dive with gradient-factor decompression.

    Args:
        gradient_factors: GF low/high as fractions
        config: Scheduler settings (defaults to PlannerConfig())
        params: Physical constants and compartment tables (defaults to ZH-L16C)
    """

    def __init__(
        self,
        gradient_factors: GradientFactors,
        config: Optional[PlannerConfig] = None,
        params: BuhlmannParameters = ZH_L16C,
    ):
        self.gf = gradient_factors
        self.config = config if config is not None else PlannerConfig()
        self.params = params

    def _first_stop(self, tissues: TissueState, depth: float) -> float:
        """Deepest stop required by the GF-low ceiling, never below the last stop.

        Clamped to the deepest 3m multiple that is not deeper than the dive.
        """
        ceiling = tissues.ceiling(self.gf.gf_low)
        first_stop = max(
            float(self.config.last_stop_depth),
            math.ceil(ceiling / STOP_STEP) * STOP_STEP,
        )
        reachable = math.floor(depth / STOP_STEP + _TIME_EPSILON) * STOP_STEP
        logger.debug(
            f"GF-low ceiling {ceiling:.2f}m (compartment "
            f"{tissues.controlling_compartment(self.gf.gf_low) + 1}) -> first stop "
            f"{min(first_stop, reachable):.0f}m"
        )
        return float(min(first_stop, reachable))

    def _hold(self, run: _DiveRun, stop_depth: float, next_depth: float,
              gf_next: float, minimum: float) -> float:
        """Hold at `stop_depth` until the ceiling allows `next_depth`."""
        held = 0.0
        step = self.config.time_step_minutes
        while True:
            ceiling = run.tissues.ceiling(gf_next)
            if ceiling <= next_depth + CEILING_TOLERANCE and held >= minimum - _TIME_EPSILON:
                return held
            if held >= self.config.max_stop_minutes - _TIME_EPSILON:
                logger.error(
                    f"Stop at {stop_depth:.0f}m still has ceiling {ceiling:.2f}m "
                    f"after {held:.1f} min"
                )
                raise DecompressionRunawayError(stop_depth, held, self.config.max_stop_minutes)
            run.tissues.advance(stop_depth, run.gas, step)
            held += step

    def plan(self, depth: float, bottom_time: float, gas_plan: MultiGasPlan) -> DecompressionPlan:
        """Simulate the dive and build its decompression plan.

        Args:
            depth: Bottom depth in meters
            bottom_time: Time at depth in minutes (descent excluded)
            gas_plan: Bottom gas and optional deco gases

        Returns:
            DecompressionPlan with stops deepest-first
        """
        if depth < 0:
            raise InvalidInputError(f"depth must be >= 0, got {depth}")
        if bottom_time < 0:
            raise InvalidInputError(f"bottom_time must be >= 0, got {bottom_time}")

        cfg = self.config
        gf_low, gf_high = self.gf.gf_low, self.gf.gf_high
        warnings = validate_gradient_factors(round(gf_low * 100.0, 6), round(gf_high * 100.0, 6))

        deco_gases = sorted(gas_plan.deco_gases, key=lambda switch: switch.depth, reverse=True)
        run = _DiveRun(cfg, self.params, gas_plan.bottom_gas, deco_gases)

        descent_time = run.transit(depth, cfg.descent_rate, Phase.DESCENT)
        if bottom_time > 0:
            run.stay(bottom_time, Phase.BOTTOM)

        first_stop = self._first_stop(run.tissues, depth)
        deco_time = run.transit(first_stop, cfg.ascent_rate, Phase.ASCENT)

        stops = []
        stop_depth = first_stop
        last_stop = float(cfg.last_stop_depth)
        while stop_depth >= last_stop and stop_depth > 0:
            run.switch_gas(stop_depth)

            is_last = stop_depth - STOP_STEP < last_stop
            # The last stop is left for the surface, so it must clear 0m at GF
            # high, not stop_depth - 3m at that depth's GF. With a 6m last stop
            # this can add a stop the 3m-step check would skip.
            next_depth = 0.0 if is_last else stop_depth - STOP_STEP
            gf_next = gf_at_depth(next_depth, gf_low, gf_high, first_stop)
            minimum = cfg.min_last_stop_minutes if is_last else 0.0

            held = self._hold(run, stop_depth, next_depth, gf_next, minimum)
            if held > 0:
                stop = DecompressionStop(
                    depth=stop_depth,
                    time=held,
                    gf=gf_at_depth(stop_depth, gf_low, gf_high, first_stop),
                    gas=run.gas,
                    gas_name=run.gas_name,
                )
                stops.append(stop)
                run.segments.append(PlanSegment(Phase.STOP, stop_depth, held, run.gas, run.gas_name))
                deco_time += held

            deco_time += run.transit(next_depth, cfg.ascent_rate, Phase.ASCENT)
            stop_depth = next_depth

        # Shallow dives never enter the stop loop
        if run.depth > 0:
            deco_time += run.transit(0.0, cfg.ascent_rate, Phase.ASCENT)

        oxygen_toxicity = None
        calculate_o2 = cfg.calculate_o2_toxicity
        if calculate_o2 is None:
            calculate_o2 = bool(deco_gases)
        if calculate_o2:
            exposures = [
                OxygenExposure(depth=seg.depth, minutes=seg.minutes, fo2=seg.gas.fo2)
                for seg in run.segments
            ]
            oxygen_toxicity = accumulate_oxygen_toxicity(exposures, self.params)
            warnings.extend(oxygen_toxicity.warnings)

        for warning in warnings:
            logger.warning(warning)

        plan = DecompressionPlan(
            depth=float(depth),
            first_stop_depth=stops[0].depth if stops else 0.0,
            stops=tuple(stops),
            tts=deco_time,
            total_dive_time=descent_time + bottom_time + deco_time,
            descent_time=descent_time,
            bottom_time=float(bottom_time),
            gradient_factors=self.gf,
            bottom_gas=gas_plan.bottom_gas,
            segments=tuple(run.segments),
            oxygen_toxicity=oxygen_toxicity,
            warnings=tuple(warnings),
        )
        logger.debug(
            f"Plan {depth:.0f}m/{bottom_time:.0f}min: {len(stops)} stops, "
            f"TTS {plan.tts:.1f} min, runtime {plan.total_dive_time:.1f} min"
        )
        return plan


def _build_config(config: Optional[PlannerConfig], options: Dict[str, Any]) -> PlannerConfig:
    base = config if config is not None else PlannerConfig()
    known = {f.name for f in dataclasses.fields(PlannerConfig)}
    unknown = set(options) - known
    if unknown:
        raise InvalidInputError(f"Unknown planner options: {', '.join(sorted(unknown))}")
    return dataclasses.replace(base, **options) if options else base


def plan_dive(
    depth_m: float,
    bottom_minutes: float,
    gas: GasMix,
    gf_low_pct: float,
    gf_high_pct: float,
    config: Optional[PlannerConfig] = None,
    params: BuhlmannParameters = ZH_L16C,
    **options,
) -> DecompressionPlan:
    """Plan a single-gas dive.

    GF values are percentages in [1, 99]. Keyword options override fields of
    `config`, e.g. ``plan_dive(40, 10, AIR, 85, 85, last_stop_depth=6)``.
    """
    gf = GradientFactors.from_percent(gf_low_pct, gf_high_pct)
    cfg = _build_config(config, options)
    return DecoPlanner(gf, cfg, params).plan(depth_m, bottom_minutes, MultiGasPlan(bottom_gas=gas))


def plan_dive_multi_gas(
    depth_m: float,
    bottom_minutes: float,
    gas_plan: MultiGasPlan,
    gf_low_pct: float,
    gf_high_pct: float,
    config: Optional[PlannerConfig] = None,
    params: BuhlmannParameters = ZH_L16C,
    **options,
) -> DecompressionPlan:
    """Plan a dive with gas switches during the ascent.

    Oxygen toxicity is computed unless the config sets
    calculate_o2_toxicity=False explicitly. The gas plan is validated first;
    any PO2 violation raises UnsafePlanError before simulation starts.
    """
    gf = GradientFactors.from_percent(gf_low_pct, gf_high_pct)
    cfg = _build_config(config, options)
    if cfg.calculate_o2_toxicity is None:
        cfg = dataclasses.replace(cfg, calculate_o2_toxicity=True)

    errors, gas_warnings = validate_multi_gas_plan(
        gas_plan, depth_m, max_po2=cfg.max_po2, po2_tolerance=cfg.po2_tolerance, params=params
    )
    if errors:
        raise UnsafePlanError(f"Invalid multi-gas plan: {'; '.join(errors)}")

    plan = DecoPlanner(gf, cfg, params).plan(depth_m, bottom_minutes, gas_plan)
    if gas_warnings:
        for warning in gas_warnings:
            logger.warning(warning)
        plan = dataclasses.replace(plan, warnings=tuple(gas_warnings) + plan.warnings)
    return plan
