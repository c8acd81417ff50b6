"""
AI Effect Compiler
==================
Turns a base parameter set plus a selection of AI interventions into a new
parameter set carrying the scaled intervention effects and AI costs.

Effect kinds:
- additive        param += effect × magnitude × uptake          (mu, phi0)
- multiplicative  param *= 1 ± |effect - 1| × magnitude × uptake (delta, rho, sigma_i)
- modifier        field = max(field, effect × magnitude × uptake) (queue / throughput rates)
- deferred        self-care visit reduction and routing improvement,
                  applied after probabilities are clamped

Effective uptake = clamp(intervention uptake × global uptake × setting
multiplier, 0, 1), with setting multiplier urban 1.2 / rural 0.7.

The effect, cost and uptake tables are read-only mappings; callers pass
customized copies as arguments rather than editing them.
"""

import logging
from dataclasses import dataclass, fields, replace
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .exceptions import UnknownIdentifierError, ValidationError
from .parameters import (
    Parameters, AI_MODIFIER_FIELDS,
    sanitize_parameters, clamp_probabilities
)

logger = logging.getLogger(__name__)


# ============================================
# INTERVENTIONS
# ============================================

# Application order is fixed
INTERVENTION_NAMES = (
    "triage_ai",
    "chw_ai",
    "diagnostic_ai",
    "bed_management_ai",
    "hospital_decision_ai",
    "self_care_ai",
)


@dataclass(frozen=True)
class AIInterventions:
    """Which AI interventions are switched on"""
    triage_ai: bool = False
    chw_ai: bool = False
    diagnostic_ai: bool = False
    bed_management_ai: bool = False
    hospital_decision_ai: bool = False
    self_care_ai: bool = False

    def active(self) -> List[str]:
        return [name for name in INTERVENTION_NAMES if getattr(self, name)]

    def any_active(self) -> bool:
        return bool(self.active())

    def to_dict(self) -> Dict[str, bool]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, bool]]) -> "AIInterventions":
        data = data or {}
        unknown = set(data) - set(INTERVENTION_NAMES)
        if unknown:
            raise ValidationError(
                f"Invalid interventions: {', '.join(sorted(unknown))}. "
                f"Valid interventions: {', '.join(INTERVENTION_NAMES)}"
            )
        return cls(**{name: bool(value) for name, value in data.items()})

    @classmethod
    def all_on(cls) -> "AIInterventions":
        return cls(**{name: True for name in INTERVENTION_NAMES})


# ============================================
# EFFECT TARGETS
# ============================================

ADDITIVE = "additive"
MULTIPLICATIVE = "multiplicative"
MODIFIER = "modifier"
DEFERRED = "deferred"

# effect name -> (parameter field, kind)
EFFECT_TARGETS = MappingProxyType({
    "phi0_effect": ("phi0", ADDITIVE),
    "sigma_i_effect": ("sigma_i", MULTIPLICATIVE),
    "mu_i_effect": ("mu_i", ADDITIVE),
    "delta_i_effect": ("delta_i", MULTIPLICATIVE),
    "mu_0_effect": ("mu_0", ADDITIVE),
    "delta_0_effect": ("delta_0", MULTIPLICATIVE),
    "rho_0_effect": ("rho_0", MULTIPLICATIVE),
    "mu_1_effect": ("mu_1", ADDITIVE),
    "delta_1_effect": ("delta_1", MULTIPLICATIVE),
    "rho_1_effect": ("rho_1", MULTIPLICATIVE),
    "mu_2_effect": ("mu_2", ADDITIVE),
    "delta_2_effect": ("delta_2", MULTIPLICATIVE),
    "rho_2_effect": ("rho_2", MULTIPLICATIVE),
    "mu_3_effect": ("mu_3", ADDITIVE),
    "delta_3_effect": ("delta_3", MULTIPLICATIVE),
    "queue_prevention_rate": ("queue_prevention_rate", MODIFIER),
    "smart_routing_rate": ("smart_routing_rate", MODIFIER),
    "resolution_boost": ("resolution_boost", MODIFIER),
    "referral_optimization": ("referral_optimization", MODIFIER),
    "point_of_care_resolution": ("point_of_care_resolution", MODIFIER),
    "referral_precision": ("referral_precision", MODIFIER),
    "length_of_stay_reduction": ("length_of_stay_reduction", MODIFIER),
    "discharge_optimization": ("discharge_optimization", MODIFIER),
    "treatment_efficiency": ("treatment_efficiency", MODIFIER),
    "resource_utilization": ("resource_utilization", MODIFIER),
    "visit_reduction_effect": ("visit_reduction", DEFERRED),
    "routing_improvement_effect": ("direct_routing_improvement", DEFERRED),
})


def freeze_table(table):
    """Recursively wrap nested dicts in read-only mapping proxies"""
    return MappingProxyType({
        key: freeze_table(value) if isinstance(value, dict) else value
        for key, value in table.items()
    })


# ============================================
# DEFAULT TABLES
# ============================================

# Fixed: programme setup (USD). Variable: per episode touched at scale.
DEFAULT_AI_COSTS = freeze_table({
    "triage_ai": {"fixed": 200000, "variable": 2.5},
    "chw_ai": {"fixed": 150000, "variable": 1.5},
    "diagnostic_ai": {"fixed": 300000, "variable": 1.0},
    "bed_management_ai": {"fixed": 250000, "variable": 1.5},
    "hospital_decision_ai": {"fixed": 400000, "variable": 3.0},
    "self_care_ai": {"fixed": 100000, "variable": 0.5},
})

# Patient-facing tools see lower uptake than provider-facing ones
DEFAULT_AI_UPTAKE = freeze_table({
    "global_uptake": 1.0,
    "triage_ai": 0.33,
    "self_care_ai": 0.33,
    "chw_ai": 0.66,
    "diagnostic_ai": 0.66,
    "bed_management_ai": 0.66,
    "hospital_decision_ai": 0.66,
    "urban_multiplier": 1.2,
    "rural_multiplier": 0.7,
})

DEFAULT_AI_BASE_EFFECTS = freeze_table({
    "triage_ai": {
        "phi0_effect": 0.15,
        "sigma_i_effect": 1.25,
        "queue_prevention_rate": 0.35,
        "smart_routing_rate": 0.45,
    },
    "chw_ai": {
        "mu_0_effect": 0.15,
        "delta_0_effect": 0.97,
        "rho_0_effect": 0.70,
        "resolution_boost": 0.20,
        "referral_optimization": 0.40,
    },
    "diagnostic_ai": {
        "mu_1_effect": 0.18,
        "delta_1_effect": 0.97,
        "rho_1_effect": 0.65,
        "mu_2_effect": 0.12,
        "delta_2_effect": 0.98,
        "rho_2_effect": 0.75,
        "point_of_care_resolution": 0.35,
        "referral_precision": 0.45,
    },
    "bed_management_ai": {
        "mu_2_effect": 0.10,
        "mu_3_effect": 0.10,
        "length_of_stay_reduction": 0.35,
        "discharge_optimization": 0.40,
    },
    "hospital_decision_ai": {
        "delta_2_effect": 0.97,
        "delta_3_effect": 0.97,
        "treatment_efficiency": 0.30,
        "resource_utilization": 0.40,
    },
    "self_care_ai": {
        "phi0_effect": 0.12,
        "sigma_i_effect": 1.20,
        "queue_prevention_rate": 0.40,
        "smart_routing_rate": 0.45,
        "mu_i_effect": 0.15,
        "delta_i_effect": 0.96,
        "visit_reduction_effect": 0.20,
        "routing_improvement_effect": 0.25,
    },
})

# Sparse per-disease overrides, merged over the base bundle (disease wins)
DISEASE_AI_EFFECTS = freeze_table({
    "childhood_pneumonia": {
        "diagnostic_ai": {
            "mu_1_effect": 0.30, "delta_1_effect": 0.85, "rho_1_effect": 0.75,
            "mu_2_effect": 0.15, "delta_2_effect": 0.88, "rho_2_effect": 0.85,
        },
        "chw_ai": {"mu_0_effect": 0.20, "delta_0_effect": 0.85, "rho_0_effect": 0.80},
        "self_care_ai": {"mu_i_effect": 0.02, "delta_i_effect": 0.98},
    },
    "malaria": {
        "diagnostic_ai": {
            "mu_1_effect": 0.30, "delta_1_effect": 0.80, "rho_1_effect": 0.75,
            "mu_2_effect": 0.12, "delta_2_effect": 0.85, "rho_2_effect": 0.90,
        },
        "chw_ai": {"mu_0_effect": 0.25, "delta_0_effect": 0.85, "rho_0_effect": 0.75},
        "self_care_ai": {"mu_i_effect": 0.05, "delta_i_effect": 0.95},
    },
    "diarrhea": {
        "self_care_ai": {"mu_i_effect": 0.25, "delta_i_effect": 0.92},
        "chw_ai": {"mu_0_effect": 0.20, "delta_0_effect": 0.80, "rho_0_effect": 0.80},
        "diagnostic_ai": {
            "mu_1_effect": 0.25, "delta_1_effect": 0.85, "rho_1_effect": 0.80,
            "mu_2_effect": 0.10, "delta_2_effect": 0.90, "rho_2_effect": 0.92,
        },
        "triage_ai": {"phi0_effect": 0.12, "sigma_i_effect": 1.25},
    },
    "tuberculosis": {
        # CHW tools surface suspects for X-ray, so referrals rise
        "chw_ai": {"mu_0_effect": 0.08, "delta_0_effect": 0.90, "rho_0_effect": 1.25},
        "diagnostic_ai": {
            "mu_1_effect": 0.35, "delta_1_effect": 0.75, "rho_1_effect": 0.75,
            "mu_2_effect": 0.20, "delta_2_effect": 0.80, "rho_2_effect": 0.80,
        },
        "hospital_decision_ai": {"delta_2_effect": 0.85, "delta_3_effect": 0.85},
        "self_care_ai": {"mu_i_effect": 0.20, "delta_i_effect": 0.92},
    },
    "high_risk_pregnancy_low_anc": {
        "chw_ai": {"mu_0_effect": 0.08, "delta_0_effect": 0.90, "rho_0_effect": 1.30},
        "diagnostic_ai": {
            "mu_1_effect": 0.15, "delta_1_effect": 0.90, "rho_1_effect": 1.25,
            "mu_2_effect": 0.12, "delta_2_effect": 0.92, "rho_2_effect": 1.15,
        },
        "triage_ai": {"phi0_effect": 0.20, "sigma_i_effect": 1.30},
        "hospital_decision_ai": {"delta_2_effect": 0.85, "delta_3_effect": 0.85},
        "self_care_ai": {"mu_i_effect": 0.15, "delta_i_effect": 0.90},
    },
    "congestive_heart_failure": {
        "self_care_ai": {
            "mu_i_effect": 0.015, "delta_i_effect": 0.996,
            "visit_reduction_effect": 0.02, "routing_improvement_effect": 0.025,
        },
        "triage_ai": {
            "queue_prevention_rate": 0.36, "smart_routing_rate": 0.405,
            "phi0_effect": 0.108, "sigma_i_effect": 1.18,
        },
        "chw_ai": {"mu_0_effect": 0.045, "delta_0_effect": 0.97, "rho_0_effect": 1.06},
        "diagnostic_ai": {
            "mu_1_effect": 0.14, "delta_1_effect": 0.91, "rho_1_effect": 0.86,
            "mu_2_effect": 0.105, "delta_2_effect": 0.895, "rho_2_effect": 0.93,
        },
        "bed_management_ai": {"length_of_stay_reduction": 0.18, "discharge_optimization": 0.135},
        "hospital_decision_ai": {
            "treatment_efficiency": 0.225, "resource_utilization": 0.27,
            "delta_2_effect": 0.82, "delta_3_effect": 0.77,
        },
    },
    "hiv_management_chronic": {
        "self_care_ai": {"mu_i_effect": 0.30, "delta_i_effect": 0.92},
        "chw_ai": {"mu_0_effect": 0.15, "delta_0_effect": 0.85, "rho_0_effect": 1.05},
        "diagnostic_ai": {
            "mu_1_effect": 0.10, "delta_1_effect": 0.85, "rho_1_effect": 0.90,
            "mu_2_effect": 0.12, "delta_2_effect": 0.82, "rho_2_effect": 0.88,
        },
    },
    "urti": {
        "chw_ai": {"mu_0_effect": 0.08, "delta_0_effect": 0.98, "rho_0_effect": 0.70},
        "diagnostic_ai": {
            "mu_1_effect": 0.05, "delta_1_effect": 0.98, "rho_1_effect": 0.70,
            "mu_2_effect": 0.03, "delta_2_effect": 0.98, "rho_2_effect": 0.75,
        },
        "self_care_ai": {"mu_i_effect": 0.08, "delta_i_effect": 0.97},
    },
    "fever": {
        "chw_ai": {"mu_0_effect": 0.12, "delta_0_effect": 0.90, "rho_0_effect": 0.85},
        "diagnostic_ai": {
            "mu_1_effect": 0.15, "delta_1_effect": 0.88, "rho_1_effect": 0.85,
            "mu_2_effect": 0.10, "delta_2_effect": 0.90, "rho_2_effect": 0.87,
        },
        "triage_ai": {"phi0_effect": 0.10, "sigma_i_effect": 1.20},
        "self_care_ai": {"mu_i_effect": 0.10, "delta_i_effect": 0.96},
    },
    "anemia": {
        "chw_ai": {"mu_0_effect": 0.15, "delta_0_effect": 0.95, "rho_0_effect": 0.80},
        "diagnostic_ai": {
            "mu_1_effect": 0.20, "delta_1_effect": 0.90, "rho_1_effect": 0.80,
            "mu_2_effect": 0.15, "delta_2_effect": 0.85, "rho_2_effect": 0.82,
        },
        "self_care_ai": {"mu_i_effect": 0.08, "delta_i_effect": 0.99},
    },
    "hiv_opportunistic": {
        "chw_ai": {"mu_0_effect": 0.08, "delta_0_effect": 0.90, "rho_0_effect": 1.35},
        "diagnostic_ai": {
            "mu_1_effect": 0.30, "delta_1_effect": 0.85, "rho_1_effect": 1.20,
            "mu_2_effect": 0.25, "delta_2_effect": 0.80, "rho_2_effect": 1.10,
        },
        "triage_ai": {"phi0_effect": 0.15, "sigma_i_effect": 1.30},
        "hospital_decision_ai": {"delta_2_effect": 0.85, "delta_3_effect": 0.80},
    },
})


# ============================================
# SCALING HELPERS
# ============================================

def effective_uptake(intervention: str, uptake: Mapping[str, float] = DEFAULT_AI_UPTAKE,
                     is_urban: bool = True) -> float:
    """Uptake after global and urban/rural multipliers, clamped to [0, 1]"""
    setting = uptake.get("urban_multiplier", 1.0) if is_urban else uptake.get("rural_multiplier", 1.0)
    raw = uptake.get(intervention, 0.0) * uptake.get("global_uptake", 1.0) * setting
    return max(0.0, min(1.0, raw))


def scale_additive(effect: float, magnitude: float, uptake: float) -> float:
    return effect * magnitude * uptake


def scale_multiplier(effect: float, magnitude: float, uptake: float) -> float:
    """
    Scale a multiplicative effect toward 1. A reduction (0.85) at half
    strength becomes 0.925; an increase (1.2) at half strength becomes 1.1.
    """
    change = abs(effect - 1.0) * magnitude * uptake
    return 1.0 - change if effect < 1.0 else 1.0 + change


def effect_bundle(intervention: str, disease: Optional[str] = None,
                  base_effects: Mapping = DEFAULT_AI_BASE_EFFECTS,
                  disease_effects: Mapping = DISEASE_AI_EFFECTS) -> Dict[str, float]:
    """Base effects for an intervention with any disease overrides merged on top"""
    overrides = {}
    if disease is not None:
        if disease not in disease_effects:
            raise UnknownIdentifierError(
                f"Unknown disease for AI effects: '{disease}'",
                details={"disease": disease, "valid": sorted(disease_effects)}
            )
        overrides = disease_effects[disease].get(intervention, {})
    return {**base_effects.get(intervention, {}), **overrides}


def magnitude_key(intervention: str, target: str) -> str:
    """Key used in the magnitudes mapping, e.g. 'chw_ai_mu_0'"""
    return f"{intervention}_{target}"


# ============================================
# COMPILER
# ============================================

def compile_ai_effects(base_params: Parameters,
                       interventions: AIInterventions,
                       disease: Optional[str] = None,
                       magnitudes: Optional[Mapping[str, float]] = None,
                       uptake: Mapping[str, float] = DEFAULT_AI_UPTAKE,
                       is_urban: bool = True,
                       costs: Mapping = DEFAULT_AI_COSTS,
                       base_effects: Mapping = DEFAULT_AI_BASE_EFFECTS,
                       disease_effects: Mapping = DISEASE_AI_EFFECTS) -> Parameters:
    """
    Apply the active interventions to base_params and return a new
    Parameters. Inputs and tables are never mutated.

    Args:
        base_params: pre-AI parameter set
        interventions: which of the six interventions are on
        disease: disease id for effect overrides (None = base effects only)
        magnitudes: optional per-effect scale, keyed "<intervention>_<field>"
        uptake: uptake table (per intervention, global, urban/rural)
        is_urban: selects the urban or rural uptake multiplier
    """
    magnitudes = magnitudes or {}
    params = sanitize_parameters(base_params)

    values = {f.name: getattr(params, f.name) for f in fields(params)}
    values["ai_fixed_cost"] = 0.0
    values["ai_variable_cost"] = 0.0
    values["self_care_ai_active"] = False
    for name in AI_MODIFIER_FIELDS:
        values[name] = 0.0

    deferred = {}   # target -> (effect, magnitude, uptake)

    for intervention in interventions.active():
        bundle = effect_bundle(intervention, disease, base_effects, disease_effects)
        u = effective_uptake(intervention, uptake, is_urban)

        for effect_name, effect in bundle.items():
            if effect_name not in EFFECT_TARGETS:
                logger.warning(f"[AI Effects] Ignoring unknown effect '{effect_name}' on {intervention}")
                continue
            target, kind = EFFECT_TARGETS[effect_name]
            magnitude = magnitudes.get(magnitude_key(intervention, target), 1.0)

            if kind == ADDITIVE:
                values[target] += scale_additive(effect, magnitude, u)
            elif kind == MULTIPLICATIVE:
                values[target] *= scale_multiplier(effect, magnitude, u)
            elif kind == MODIFIER:
                values[target] = max(values[target], scale_additive(effect, magnitude, u))
            else:
                deferred[target] = (effect, magnitude, u)

        cost = costs.get(intervention, {})
        values["ai_fixed_cost"] += cost.get("fixed", 0.0)
        values["ai_variable_cost"] += cost.get("variable", 0.0) * u

        if intervention == "self_care_ai":
            values["self_care_ai_active"] = True

        logger.debug(f"[AI Effects] Applied {intervention} (uptake {u:.2f})")

    params = clamp_probabilities(Parameters(**values))

    # Visit reduction only reaches episodes that would have used informal care
    updates = {}
    if "visit_reduction" in deferred:
        effect, magnitude, u = deferred["visit_reduction"]
        informal_usage = (1.0 - params.phi0) * (1.0 - params.informal_care_ratio)
        updates["visit_reduction"] = scale_additive(effect * informal_usage, magnitude, u)
    if "direct_routing_improvement" in deferred:
        effect, magnitude, u = deferred["direct_routing_improvement"]
        updates["direct_routing_improvement"] = scale_additive(effect, magnitude, u)
    if updates:
        params = replace(params, **updates)

    return sanitize_parameters(params)
