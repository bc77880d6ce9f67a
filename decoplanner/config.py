"""
Planner configuration loading from config.yaml.

Resolution order: explicit override, then the YAML file, then built-in
defaults. A missing file is not an error.
"""

import logging
import os
from typing import Optional, Tuple

import yaml

from .buhlmann_constants import GF_DEFAULT, GradientFactors
from .exceptions import InvalidInputError
from .planner import PlannerConfig

logger = logging.getLogger(__name__)

# YAML key (deco section) -> PlannerConfig field
_DECO_KEYS = {
    "last_stop_depth": "last_stop_depth",
    "min_last_stop_minutes": "min_last_stop_minutes",
    "time_step_minutes": "time_step_minutes",
    "ascent_rate": "ascent_rate",
    "descent_rate": "descent_rate",
    "max_stop_time": "max_stop_minutes",
}


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "config.yaml")


def load_effective_config(
    gf_override: Optional[Tuple[float, float]] = None,
    config_path: Optional[str] = None,
) -> dict:
    """Load configuration from config.yaml with optional CLI GF override.

    Args:
        gf_override: (gf_low, gf_high) in percent, e.g. (30, 70)
        config_path: YAML file to read (default: config.yaml at the project root)

    Returns a dict with resolved settings:
        gf:           GradientFactors instance
        planner:      PlannerConfig instance
        config_path:  str (resolved path)
        gf_source:    'cli' | 'config' | 'default'
    """
    if config_path is None:
        config_path = default_config_path()

    gf = GF_DEFAULT
    gf_source = "default"
    planner_kwargs = {}

    if os.path.exists(config_path):
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
        if not isinstance(config, dict):
            raise InvalidInputError(f"{config_path}: top level must be a mapping")
        logger.debug(f"Loaded planner config from {config_path}")

        try:
            deco_cfg = config.get("deco") or {}
            for key, field_name in _DECO_KEYS.items():
                if key in deco_cfg:
                    planner_kwargs[field_name] = deco_cfg[key]
            if "min_last_stop_minutes" in planner_kwargs:
                planner_kwargs["min_last_stop_minutes"] = int(planner_kwargs["min_last_stop_minutes"])
            for field_name in ("time_step_minutes", "ascent_rate", "descent_rate", "max_stop_minutes"):
                if field_name in planner_kwargs:
                    planner_kwargs[field_name] = float(planner_kwargs[field_name])

            oxygen_cfg = config.get("oxygen") or {}
            if oxygen_cfg.get("calculate_toxicity") is not None:
                planner_kwargs["calculate_o2_toxicity"] = bool(oxygen_cfg["calculate_toxicity"])
            for key in ("max_po2", "po2_tolerance"):
                if key in oxygen_cfg:
                    planner_kwargs[key] = float(oxygen_cfg[key])

            buhlmann_cfg = config.get("buhlmann") or {}
            if buhlmann_cfg:
                gf = GradientFactors(
                    gf_low=float(buhlmann_cfg.get("gf_low", GF_DEFAULT.gf_low)),
                    gf_high=float(buhlmann_cfg.get("gf_high", GF_DEFAULT.gf_high)),
                )
                gf_source = "config"
        except InvalidInputError:
            raise
        except (AttributeError, TypeError, ValueError) as e:
            raise InvalidInputError(f"{config_path}: {e}") from e
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    if gf_override:
        gf = GradientFactors.from_percent(gf_override[0], gf_override[1])
        gf_source = "cli"

    return {
        "gf": gf,
        "planner": PlannerConfig(**planner_kwargs),
        "config_path": config_path,
        "gf_source": gf_source,
    }
