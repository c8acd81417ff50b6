"""
Weekly Transition Engine
========================
Deterministic cohort model of patient flow through a tiered health system.

Stages:
    U   untreated                 I   informal care
    F   formal-care entry         L0  community health worker
    L1  primary care              L2  district hospital
    L3  tertiary hospital         R   resolved (absorbing)
    D   dead (absorbing)

Each week new episodes arrive at rate incidence × population / 52, every
transient stage loses resolutions, deaths and referrals in proportion to
its stock, and admissions to facility levels are throttled by system
congestion, with the overflow waiting in per-level queues.

step() is pure: it returns a new CohortState and never mutates its inputs.
"""

import logging
from dataclasses import dataclass, field, replace, asdict
from typing import Dict

from .config import Config
from .parameters import Parameters
from .queueing import LEVELS, empty_queues, advance_queues

logger = logging.getLogger(__name__)

PATIENT_DAY_STAGES = ("I", "F", "L0", "L1", "L2", "L3")

# Share of smart-routed formal-entry patients sent straight to L1 (rest to L2)
SMART_ROUTING_L1_SHARE = 0.6
CONGESTION_THRESHOLD = 0.5
MIN_CAPACITY_MULTIPLIER = 0.2


def _zero_patient_days() -> Dict[str, float]:
    return {stage: 0.0 for stage in PATIENT_DAY_STAGES}


@dataclass(frozen=True)
class CohortState:
    """Stocks of patients at one point in time plus running accumulators"""
    untreated: float = 0.0
    informal: float = 0.0
    formal_entry: float = 0.0
    l0: float = 0.0
    l1: float = 0.0
    l2: float = 0.0
    l3: float = 0.0
    resolved: float = 0.0
    dead: float = 0.0
    patient_days: Dict[str, float] = field(default_factory=_zero_patient_days)
    queues: Dict[str, float] = field(default_factory=empty_queues)
    queue_related_deaths: float = 0.0
    new_cases: float = 0.0
    episodes_touched: float = 0.0
    cumulative_incidence: float = 0.0

    @property
    def total_queued(self) -> float:
        return sum(self.queues.values())

    @property
    def active_patients(self) -> float:
        """Patients still in a transient stage or a queue"""
        return (self.untreated + self.informal + self.formal_entry
                + self.l0 + self.l1 + self.l2 + self.l3 + self.total_queued)

    @property
    def accounted_patients(self) -> float:
        """Everyone the model has seen; equals cumulative_incidence"""
        return self.active_patients + self.resolved + self.dead

    def stage_counts(self) -> Dict[str, float]:
        return {
            "U": self.untreated, "I": self.informal, "F": self.formal_entry,
            "L0": self.l0, "L1": self.l1, "L2": self.l2, "L3": self.l3,
            "R": self.resolved, "D": self.dead,
        }

    def to_dict(self) -> Dict:
        return asdict(self)


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def _split_outflows(stock: float, *rates: float):
    """
    Flows out of a stage at the given weekly rates. Rates summing above 1
    are scaled down proportionally so the stage never goes negative.
    """
    rates = [max(0.0, r) for r in rates]
    total = sum(rates)
    if total > 1.0:
        rates = [r / total for r in rates]
    return [stock * r for r in rates]


def congestion_adjustments(congestion: float):
    """(arrival multiplier, mu boost, rho reduction) for a congestion level"""
    if congestion <= CONGESTION_THRESHOLD:
        return 1.0, 1.0, 1.0
    excess = congestion - CONGESTION_THRESHOLD
    # People stay home when facilities are known to be full
    arrival_multiplier = _unit(1.0 - excess * 0.5)
    # Overwhelmed staff resolve faster and refer less
    mu_boost = 1.0 + excess * 0.4
    rho_reduction = max(0.0, 1.0 - excess * 0.6)
    return arrival_multiplier, mu_boost, rho_reduction


def capacity_multiplier(params: Parameters) -> float:
    """Share of desired admissions the system can take this week"""
    effective = params.system_congestion * params.competition_sensitivity
    return min(1.0, max(MIN_CAPACITY_MULTIPLIER, 1.0 - effective * 0.5))


def step(state: CohortState, params: Parameters, population: float) -> CohortState:
    """Advance the cohort by one week"""
    congestion = params.system_congestion
    arrival_multiplier, mu_boost, rho_reduction = congestion_adjustments(congestion)

    # New episodes
    weekly_incidence = params.incidence_rate * population / Config.WEEKS_PER_YEAR
    avoided = weekly_incidence * _unit(params.visit_reduction)
    presenting = weekly_incidence - avoided
    arrivals = presenting * arrival_multiplier
    deterred = presenting - arrivals

    phi0 = _unit(params.phi0)
    informal_care_ratio = _unit(params.informal_care_ratio)
    direct_to_formal = phi0 * arrivals
    non_direct = arrivals - direct_to_formal
    to_informal = (1.0 - informal_care_ratio) * non_direct
    to_untreated = informal_care_ratio * non_direct + deterred

    # Untreated and informal care
    deaths_u, resolved_u = _split_outflows(state.untreated, params.delta_u, params.mu_u)
    remaining_u = state.untreated - deaths_u - resolved_u

    informal_to_formal, resolved_i, deaths_i = _split_outflows(
        state.informal, params.sigma_i, params.mu_i, params.delta_i
    )
    remaining_i = state.informal - informal_to_formal - resolved_i - deaths_i

    # Facility levels
    referral_0, resolved_0, deaths_0 = _split_outflows(
        state.l0, params.rho_0 * rho_reduction, params.mu_0 * mu_boost, params.delta_0
    )
    referral_1, resolved_1, deaths_1 = _split_outflows(
        state.l1, params.rho_1 * rho_reduction, params.mu_1 * mu_boost, params.delta_1
    )
    referral_2, resolved_2, deaths_2 = _split_outflows(
        state.l2, params.rho_2 * rho_reduction, params.mu_2 * mu_boost, params.delta_2
    )
    resolved_3, deaths_3 = _split_outflows(state.l3, params.mu_3 * mu_boost, params.delta_3)

    remaining_0 = state.l0 - referral_0 - resolved_0 - deaths_0
    remaining_1 = state.l1 - referral_1 - resolved_1 - deaths_1
    remaining_2 = state.l2 - referral_2 - resolved_2 - deaths_2
    remaining_3 = state.l3 - resolved_3 - deaths_3

    # Formal entry empties every week; smart routing skips congested L0
    routing = _unit(params.direct_routing_improvement + params.smart_routing_rate)
    bypassed = 0.0
    if routing > 0 and congestion > CONGESTION_THRESHOLD:
        bypassed = state.formal_entry * _unit(routing * congestion)
    direct_to_l1 = bypassed * SMART_ROUTING_L1_SHARE
    direct_to_l2 = bypassed - direct_to_l1
    formal_to_l0 = state.formal_entry - bypassed

    # Capacity-constrained admissions
    multiplier = capacity_multiplier(params)
    desired = dict(zip(LEVELS, (formal_to_l0, referral_0, referral_1, referral_2)))
    admitted = {level: flow * multiplier for level, flow in desired.items()}
    prevention = _unit(params.queue_prevention_rate)
    newly_queued = {}
    prevented = 0.0
    for level in LEVELS:
        unmet = desired[level] - admitted[level]
        newly_queued[level] = unmet * (1.0 - prevention)
        prevented += unmet * prevention

    flows = advance_queues(state.queues, newly_queued, params, multiplier)

    patient_days = dict(state.patient_days)
    patient_days["I"] += state.informal
    patient_days["F"] += state.formal_entry
    patient_days["L0"] += state.l0 * max(0.0, 1.0 - params.resolution_boost * 0.5)
    patient_days["L1"] += state.l1 * max(0.0, 1.0 - params.point_of_care_resolution * 0.5)
    patient_days["L2"] += state.l2 * max(0.0, 1.0 - params.length_of_stay_reduction)
    patient_days["L3"] += state.l3 * max(0.0, 1.0 - params.length_of_stay_reduction)

    episodes_touched = state.episodes_touched + direct_to_formal + informal_to_formal
    if params.self_care_ai_active:
        episodes_touched += state.informal

    return replace(
        state,
        untreated=to_untreated + remaining_u + flows.abandoned,
        informal=to_informal + remaining_i + flows.bypassed,
        formal_entry=direct_to_formal + informal_to_formal,
        l0=admitted["L0"] + remaining_0 + flows.cleared["L0"],
        l1=admitted["L1"] + remaining_1 + flows.cleared["L1"] + direct_to_l1,
        l2=admitted["L2"] + remaining_2 + flows.cleared["L2"] + direct_to_l2,
        l3=admitted["L3"] + remaining_3 + flows.cleared["L3"],
        resolved=(state.resolved + resolved_u + resolved_i + resolved_0 + resolved_1
                  + resolved_2 + resolved_3 + avoided + prevented + flows.self_resolved),
        dead=(state.dead + deaths_u + deaths_i + deaths_0 + deaths_1
              + deaths_2 + deaths_3 + flows.deaths),
        patient_days=patient_days,
        queues=flows.queues,
        queue_related_deaths=state.queue_related_deaths + flows.deaths,
        new_cases=weekly_incidence,
        episodes_touched=episodes_touched,
        cumulative_incidence=state.cumulative_incidence + weekly_incidence,
    )
