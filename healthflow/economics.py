"""
Economic & Outcome Calculator
=============================
Costs, disability-adjusted life years and cost-effectiveness for a
simulated cohort.

- Cost       Σ patient-days × per-diem + AI fixed + AI variable × episodes touched
- DALYs      YLL (deaths × years lost) + YLD (time ill × disability weight)
- ICER       Δcost / ΔDALYs averted versus a baseline run

Discounting is a flat factor (1 - r) applied once, not compounded per year.

References:
- Murray & Lopez (1996) - The Global Burden of Disease
- Drummond et al. (2015) - Methods for the Economic Evaluation of Health Care Programmes
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, Tuple

from .config import Config
from .parameters import Parameters, sanitize_number
from .transition import CohortState, PATIENT_DAY_STAGES

logger = logging.getLogger(__name__)

# Returned instead of a negative ratio when an intervention is cheaper and better
DOMINANT_ICER = 1.0
MIN_RESOLUTION_RATE = 0.01  # caps expected time to resolution at 100 weeks


@dataclass(frozen=True)
class EconomicOutcome:
    total_cost: float
    dalys: float
    death_dalys: float
    disability_dalys: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def discount_factor(params: Parameters) -> float:
    return 1.0 - params.discount_rate if params.discount_rate > 0 else 1.0


def calculate_costs(state: CohortState, params: Parameters) -> float:
    """Total care cost plus AI programme cost"""
    costs = params.per_diem_costs
    care = sum(state.patient_days[stage] * getattr(costs, stage) for stage in PATIENT_DAY_STAGES)
    ai = params.ai_fixed_cost + params.ai_variable_cost * state.episodes_touched
    return sanitize_number(care + ai, "total_cost")


def calculate_dalys(state: CohortState, params: Parameters) -> Tuple[float, float]:
    """(death DALYs, disability DALYs)"""
    factor = discount_factor(params)
    years_lost = max(0.0, params.regional_life_expectancy - params.mean_age_of_infection)
    death = state.dead * years_lost * factor

    # Untreated stock counts as time ill alongside recorded patient-days
    days_ill = state.untreated + sum(state.patient_days.values())
    disability = days_ill * (params.disability_weight / Config.DAYS_PER_YEAR) * factor

    return sanitize_number(death, "death_dalys"), sanitize_number(disability, "disability_dalys")


def summarize_outcomes(state: CohortState, params: Parameters) -> EconomicOutcome:
    death, disability = calculate_dalys(state, params)
    return EconomicOutcome(
        total_cost=calculate_costs(state, params),
        dalys=death + disability,
        death_dalys=death,
        disability_dalys=disability,
    )


def mean_time_to_resolution(params: Parameters) -> float:
    """
    Expected weeks to resolution, from the pathway-weighted resolution rate.

    Pathway weights: untreated (1-phi0)·icr, informal (1-phi0)(1-icr),
    L0 phi0, and each higher level the previous weight × its referral rate.
    """
    p_untreated = (1.0 - params.phi0) * params.informal_care_ratio
    p_informal = (1.0 - params.phi0) * (1.0 - params.informal_care_ratio)
    p_l0 = params.phi0
    p_l1 = p_l0 * params.rho_0
    p_l2 = p_l1 * params.rho_1
    p_l3 = p_l2 * params.rho_2

    weighted = (p_untreated * params.mu_u
                + p_informal * params.mu_i
                + p_l0 * params.mu_0
                + p_l1 * params.mu_1
                + p_l2 * params.mu_2
                + p_l3 * params.mu_3)
    return 1.0 / max(weighted, MIN_RESOLUTION_RATE)


def calculate_icer(intervention_cost: float, intervention_dalys: float,
                   baseline_cost: float, baseline_dalys: float) -> Tuple[float, float]:
    """
    Incremental cost-effectiveness ratio versus a baseline.

    Returns (icer, raw_icer). raw_icer is Δcost / ΔDALYs averted (infinite
    when no DALYs are averted). icer equals raw_icer except for dominant
    interventions (cheaper and fewer DALYs), reported as DOMINANT_ICER.
    """
    cost_diff = intervention_cost - baseline_cost
    daly_diff = baseline_dalys - intervention_dalys

    raw_icer = cost_diff / daly_diff if daly_diff != 0 else math.inf
    if cost_diff < 0 and daly_diff > 0:
        logger.debug(f"[Economics] Dominant intervention (saves {-cost_diff:,.0f}, averts {daly_diff:,.1f} DALYs)")
        return DOMINANT_ICER, raw_icer
    return raw_icer, raw_icer


def is_dominant(icer: float, raw_icer: float) -> bool:
    return icer == DOMINANT_ICER and raw_icer < 0
