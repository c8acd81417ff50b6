"""
Parameter Model for the Patient-Flow Simulator
==============================================
Scalar rates, probabilities and costs describing one disease in one
health system, plus the modifiers written by the AI effect compiler.

Conventions:
- mu_*    weekly resolution probability at a stage
- delta_* weekly death probability at a stage
- rho_*   weekly referral probability to the next facility level
- phi0    share of new episodes presenting directly to formal care
- sigma_i weekly transition probability from informal to formal care

Nested fields (per_diem_costs) are addressed with dotted paths such as
"per_diem_costs.L2" by get_parameter / set_parameter.
"""

import logging
import math
from dataclasses import dataclass, field, fields, is_dataclass, replace, asdict
from typing import Any, Dict, Optional

from .config import Config
from .exceptions import ParameterPathError

logger = logging.getLogger(__name__)


# ============================================
# FIELD GROUPS
# ============================================

PROBABILITY_FIELDS = (
    "phi0", "sigma_i",
    "mu_u", "delta_u", "mu_i", "delta_i",
    "mu_0", "delta_0", "rho_0",
    "mu_1", "delta_1", "rho_1",
    "mu_2", "delta_2", "rho_2",
    "mu_3", "delta_3",
)

# Written only by the AI effect compiler; reset on every compile
AI_MODIFIER_FIELDS = (
    "visit_reduction",
    "direct_routing_improvement",
    "smart_routing_rate",
    "queue_prevention_rate",
    "resolution_boost",
    "referral_optimization",
    "point_of_care_resolution",
    "referral_precision",
    "length_of_stay_reduction",
    "discharge_optimization",
    "treatment_efficiency",
    "resource_utilization",
)

# Reset by the AI effect compiler on every compile
COMPILER_OWNED_FIELDS = AI_MODIFIER_FIELDS + ("ai_fixed_cost", "ai_variable_cost", "self_care_ai_active")


# ============================================
# DATA CLASSES
# ============================================

@dataclass(frozen=True)
class PerDiemCosts:
    """Cost per patient-day at each stage (USD)"""
    I: float = 10.0
    F: float = 20.0
    L0: float = 15.0
    L1: float = 35.0
    L2: float = 100.0
    L3: float = 200.0


@dataclass(frozen=True)
class Parameters:
    """Complete parameterization of one simulation run"""

    # Disease
    incidence_rate: float = 0.20            # annual episodes per person
    disability_weight: float = 0.20
    mean_age_of_infection: float = 30.0

    # Care seeking
    phi0: float = 0.45
    sigma_i: float = 0.20
    informal_care_ratio: float = 0.20       # share of non-direct episodes staying untreated

    # Untreated / informal
    mu_u: float = 0.05
    delta_u: float = 0.015
    mu_i: float = 0.30
    delta_i: float = 0.012

    # Facility levels
    mu_0: float = 0.50
    delta_0: float = 0.008
    rho_0: float = 0.75
    mu_1: float = 0.60
    delta_1: float = 0.005
    rho_1: float = 0.25
    mu_2: float = 0.70
    delta_2: float = 0.003
    rho_2: float = 0.15
    mu_3: float = 0.80
    delta_3: float = 0.002

    # Economics
    per_diem_costs: PerDiemCosts = field(default_factory=PerDiemCosts)
    ai_fixed_cost: float = 0.0
    ai_variable_cost: float = 0.0           # per episode touched
    discount_rate: float = 0.0
    years_of_life_lost: float = 30.0
    regional_life_expectancy: float = 70.0

    # Capacity
    system_congestion: float = 0.0
    capacity_share: float = 0.1
    competition_sensitivity: float = 1.0
    clinical_priority: float = 0.5

    # Queue dynamics (weekly rates)
    queue_abandonment_rate: float = 0.15
    queue_bypass_rate: float = 0.20
    queue_clearance_rate: float = 0.30
    queue_self_resolve_rate: float = 0.10

    # AI-derived modifiers
    visit_reduction: float = 0.0
    direct_routing_improvement: float = 0.0
    smart_routing_rate: float = 0.0
    queue_prevention_rate: float = 0.0
    resolution_boost: float = 0.0
    referral_optimization: float = 0.0
    point_of_care_resolution: float = 0.0
    referral_precision: float = 0.0
    length_of_stay_reduction: float = 0.0
    discharge_optimization: float = 0.0
    treatment_efficiency: float = 0.0
    resource_utilization: float = 0.0
    self_care_ai_active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================
# SANITIZATION
# ============================================

def _sanitize_value(value, label: str):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if math.isnan(value):
        logger.warning(f"[Sanitize] {label} is NaN, replaced with 0")
        return 0.0
    if math.isinf(value):
        sentinel = Config.NUMERIC_SENTINEL if value > 0 else -Config.NUMERIC_SENTINEL
        logger.warning(f"[Sanitize] {label} is infinite, replaced with {sentinel:g}")
        return sentinel
    return value


def _sanitize_dataclass(obj, prefix: str = ""):
    updates = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        label = f"{prefix}{f.name}"
        if is_dataclass(value):
            cleaned = _sanitize_dataclass(value, f"{label}{Config.PARAMETER_PATH_SEPARATOR}")
        else:
            cleaned = _sanitize_value(value, label)
        if cleaned is not value:
            updates[f.name] = cleaned
    return replace(obj, **updates) if updates else obj


def sanitize_parameters(params: Parameters) -> Parameters:
    """
    Replace non-finite numbers: NaN -> 0, +/-Infinity -> +/-NUMERIC_SENTINEL.
    Recurses into nested cost tables. Returns the same object when clean.
    """
    return _sanitize_dataclass(params)


def sanitize_number(value: float, label: str = "value") -> float:
    """Sanitize a single output metric"""
    return _sanitize_value(value, label)


def clamp_probabilities(params: Parameters) -> Parameters:
    """Clamp every probability field to [0, 1], warning on each correction"""
    updates = {}
    for name in PROBABILITY_FIELDS:
        value = getattr(params, name)
        clamped = min(1.0, max(0.0, value))
        if clamped != value:
            logger.warning(f"[Clamp] {name}={value:.4f} outside [0, 1], clamped to {clamped}")
            updates[name] = clamped
    return replace(params, **updates) if updates else params


# ============================================
# NESTED PATH ACCESS
# ============================================

def _split_path(path: str):
    if not path or not isinstance(path, str):
        raise ParameterPathError(f"Invalid parameter path: {path!r}")
    return path.split(Config.PARAMETER_PATH_SEPARATOR)


def _field_names(obj):
    return {f.name for f in fields(obj)}


def get_parameter(params: Parameters, path: str):
    """Read a (possibly nested) parameter, e.g. get_parameter(p, "per_diem_costs.L2")"""
    obj = params
    for part in _split_path(path):
        if not is_dataclass(obj) or part not in _field_names(obj):
            raise ParameterPathError(
                f"Unknown parameter path: '{path}'",
                details={"path": path, "segment": part}
            )
        obj = getattr(obj, part)
    if is_dataclass(obj):
        raise ParameterPathError(
            f"Parameter path '{path}' names a group, not a value",
            details={"path": path}
        )
    return obj


def _set_path(obj, parts, value, path):
    head = parts[0]
    if not is_dataclass(obj) or head not in _field_names(obj):
        raise ParameterPathError(
            f"Unknown parameter path: '{path}'",
            details={"path": path, "segment": head}
        )
    current = getattr(obj, head)
    if len(parts) == 1:
        if is_dataclass(current):
            raise ParameterPathError(
                f"Parameter path '{path}' names a group, not a value",
                details={"path": path}
            )
        return replace(obj, **{head: value})
    return replace(obj, **{head: _set_path(current, parts[1:], value, path)})


def set_parameter(params: Parameters, path: str, value) -> Parameters:
    """Return a copy of params with the value at path replaced"""
    return _set_path(params, _split_path(path), value, path)


def is_numeric_parameter(params: Parameters, path: str) -> bool:
    value = get_parameter(params, path)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ============================================
# DICT CONVERSION (HTTP boundary)
# ============================================

def parameters_from_dict(data: Optional[Dict[str, Any]], base: Optional[Parameters] = None) -> Parameters:
    """
    Apply overrides from a plain dict onto base (default Parameters()).
    Accepts nested dicts ({"per_diem_costs": {"L2": 90}}) or dotted keys
    ({"per_diem_costs.L2": 90}). Unknown keys raise ParameterPathError.
    """
    params = base if base is not None else Parameters()
    if not data:
        return params

    def _flatten(mapping, prefix=""):
        for key, value in mapping.items():
            path = f"{prefix}{key}"
            if isinstance(value, dict):
                yield from _flatten(value, f"{path}{Config.PARAMETER_PATH_SEPARATOR}")
            else:
                yield path, value

    for path, value in _flatten(data):
        current = get_parameter(params, path)
        if isinstance(current, bool):
            value = bool(value)
        else:
            try:
                value = float(value)
            except (TypeError, ValueError):
                raise ParameterPathError(
                    f"Invalid value for '{path}': must be a number, got {type(value).__name__}",
                    details={"path": path}
                )
        params = set_parameter(params, path, value)

    return sanitize_parameters(params)
