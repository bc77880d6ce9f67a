"""
Bühlmann ZH-L16C decompression planner with gradient factors.

Modules:
    - buhlmann_constants: ZH-L16C tables, physical constants and gradient factor types
    - tissue: Vectorised 16-compartment N2/He tissue state
    - gradient_factors: GF interpolation, advisories and recommended settings
    - gas: Gas mixtures, PO2 and MOD helpers
    - multi_gas: Deco gas selection and multi-gas plan validation
    - oxygen_toxicity: CNS and OTU accounting
    - planner: Stop scheduler and plan_dive entry points
    - profile_generator: Waypoint export of a finished plan
    - config: config.yaml loading
"""

from .buhlmann_constants import BuhlmannParameters, GradientFactors, GF_DEFAULT, ZH_L16C
from .config import load_effective_config
from .exceptions import (
    DecoPlannerError,
    DecompressionRunawayError,
    InvalidInputError,
    UnsafePlanError,
)
from .gas import (
    AIR,
    OXYGEN,
    GasMix,
    GasSwitch,
    MultiGasPlan,
    max_operating_depth,
    nitrox,
    normalize_gas,
    partial_pressure_o2,
    trimix,
)
from .gradient_factors import (
    GF_PROFILES,
    format_gradient_factors,
    gf_at_depth,
    recommend_gradient_factors,
    validate_gradient_factors,
)
from .multi_gas import select_gas, standard_deco_gases, suggest_deco_gases, validate_multi_gas_plan
from .oxygen_toxicity import OxygenToxicity, accumulate_oxygen_toxicity
from .planner import (
    DecompressionPlan,
    DecompressionStop,
    DecoPlanner,
    PlannerConfig,
    plan_dive,
    plan_dive_multi_gas,
)
from .profile_generator import DiveProfile, ProfileGenerator
from .tissue import TissueState

__all__ = [
    "AIR",
    "OXYGEN",
    "BuhlmannParameters",
    "DecoPlanner",
    "DecoPlannerError",
    "DecompressionPlan",
    "DecompressionRunawayError",
    "DecompressionStop",
    "DiveProfile",
    "GF_DEFAULT",
    "GF_PROFILES",
    "GasMix",
    "GasSwitch",
    "GradientFactors",
    "InvalidInputError",
    "MultiGasPlan",
    "OxygenToxicity",
    "PlannerConfig",
    "ProfileGenerator",
    "TissueState",
    "UnsafePlanError",
    "ZH_L16C",
    "accumulate_oxygen_toxicity",
    "format_gradient_factors",
    "gf_at_depth",
    "load_effective_config",
    "max_operating_depth",
    "nitrox",
    "normalize_gas",
    "partial_pressure_o2",
    "plan_dive",
    "plan_dive_multi_gas",
    "recommend_gradient_factors",
    "select_gas",
    "standard_deco_gases",
    "suggest_deco_gases",
    "trimix",
    "validate_gradient_factors",
    "validate_multi_gas_plan",
]
