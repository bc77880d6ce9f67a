"""
Decompression plan for a square dive from the command line.

Usage:
    python plan_dive.py --depth 40 --time 20
    python plan_dive.py --depth 45 --time 20 --fo2 0.18 --fhe 0.45 --gf 30 70 \\
        --deco-gas EAN50:0.50:21 --deco-gas O2:1.0:6 --po2-tolerance 0.02
"""

import argparse
import dataclasses
import logging
import sys

from decoplanner import (
    DecoPlannerError,
    GasSwitch,
    InvalidInputError,
    MultiGasPlan,
    format_gradient_factors,
    load_effective_config,
    normalize_gas,
    plan_dive,
    plan_dive_multi_gas,
)

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


def parse_deco_gas(text: str) -> GasSwitch:
    """Parse NAME:FO2:DEPTH, e.g. 'EAN50:0.50:21'."""
    parts = text.split(":")
    if len(parts) != 3:
        raise InvalidInputError(f"Deco gas must be NAME:FO2:DEPTH, got {text!r}")
    name, fo2, depth = parts
    try:
        depth = float(depth)
    except ValueError as e:
        raise InvalidInputError(f"Invalid switch depth in {text!r}") from e
    return GasSwitch(depth=depth, gas=normalize_gas(fo2), name=name or None)


def print_plan(plan) -> None:
    """Print the stop table and dive summary."""
    gf = plan.gradient_factors
    print("--- DECOMPRESSION PLAN ---")
    print(f"Depth: {plan.depth:.0f}m, bottom time {plan.bottom_time:.0f} min, "
          f"{plan.bottom_gas.label}, {format_gradient_factors(gf.gf_low, gf.gf_high)}")
    print(f"Descent: {plan.descent_time:.1f} min")

    if plan.requires_deco:
        print(f"First stop: {plan.first_stop_depth:.0f}m")
        print(f"{'Depth':>6}  {'Time':>6}  {'GF':>4}  Gas")
        for stop in plan.stops:
            print(f"{stop.depth:>5.0f}m  {stop.time:>6.1f}  {stop.gf * 100:>3.0f}%  {stop.gas_name or ''}")
    else:
        print("No decompression stops required")

    print(f"TTS: {plan.tts:.1f} min")
    print(f"Runtime: {plan.total_dive_time:.1f} min")

    if plan.oxygen_toxicity is not None:
        tox = plan.oxygen_toxicity
        print(f"CNS: {tox.cns:.1f}%  OTU: {tox.otu:.0f}  max PO2: {tox.max_po2:.2f} bar")

    if plan.warnings:
        print("\nWarnings:")
        for warning in plan.warnings:
            print(f"  - {warning}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Bühlmann ZH-L16C decompression planner with gradient factors"
    )
    parser.add_argument("--depth", type=float, required=True, help="Bottom depth (m)")
    parser.add_argument("--time", type=float, required=True, help="Bottom time (min)")
    parser.add_argument("--fo2", type=float, default=0.21, help="Bottom gas O2 fraction")
    parser.add_argument("--fhe", type=float, default=0.0, help="Bottom gas He fraction")
    parser.add_argument(
        "--gf",
        nargs=2,
        type=float,
        metavar=("LOW", "HIGH"),
        help="Gradient factors in percent (overrides config.yaml)",
    )
    parser.add_argument("--last-stop", type=int, choices=(3, 6), help="Last stop depth (m)")
    parser.add_argument("--min-last-stop", type=int, help="Minimum minutes at the last stop")
    parser.add_argument("--time-step", type=float, help="Simulation time step (min)")
    parser.add_argument("--o2", action="store_true", help="Compute CNS and OTU exposure")
    parser.add_argument(
        "--po2-tolerance",
        type=float,
        help="PO2 (bar) above the limit still accepted for a deco gas, with a warning",
    )
    parser.add_argument(
        "--deco-gas",
        action="append",
        default=[],
        metavar="NAME:FO2:DEPTH",
        help="Deco gas and its switch depth, repeatable",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        effective = load_effective_config(gf_override=args.gf, config_path=args.config)
        gf = effective["gf"]
        logger.debug(f"GF {gf.gf_low}/{gf.gf_high} from {effective['gf_source']}")

        overrides = {}
        if args.last_stop is not None:
            overrides["last_stop_depth"] = args.last_stop
        if args.min_last_stop is not None:
            overrides["min_last_stop_minutes"] = args.min_last_stop
        if args.time_step is not None:
            overrides["time_step_minutes"] = args.time_step
        if args.o2:
            overrides["calculate_o2_toxicity"] = True
        if args.po2_tolerance is not None:
            overrides["po2_tolerance"] = args.po2_tolerance
        config = dataclasses.replace(effective["planner"], **overrides)

        bottom_gas = normalize_gas(args.fo2, args.fhe)
        gf_low_pct = round(gf.gf_low * 100.0, 6)
        gf_high_pct = round(gf.gf_high * 100.0, 6)

        if args.deco_gas:
            deco_gases = [parse_deco_gas(text) for text in args.deco_gas]
            gas_plan = MultiGasPlan(bottom_gas=bottom_gas, deco_gases=deco_gases)
            plan = plan_dive_multi_gas(
                args.depth, args.time, gas_plan, gf_low_pct, gf_high_pct, config=config
            )
        else:
            plan = plan_dive(args.depth, args.time, bottom_gas, gf_low_pct, gf_high_pct, config=config)
    except DecoPlannerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_plan(plan)
    return 0


if __name__ == "__main__":
    sys.exit(main())
