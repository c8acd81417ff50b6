"""
Simulation Driver
=================
Runs the weekly transition engine for a burn-in period (discarded) and
then for the requested horizon, recording the state at the start of every
recorded week, and summarizes the run with economics and queue metrics.
"""

import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Dict, List, Optional, Union

import pandas as pd

from .config import Config
from .economics import summarize_outcomes, mean_time_to_resolution, calculate_icer
from .exceptions import ValidationError
from .parameters import Parameters, sanitize_parameters, clamp_probabilities, sanitize_number
from .queueing import LEVELS, exit_rate_total
from .transition import CohortState, step

logger = logging.getLogger(__name__)


# ============================================
# RESULT TYPES
# ============================================

@dataclass(frozen=True)
class QueueSummary:
    average_length: Dict[str, float]     # total over recorded weeks / weeks
    peak_length: Dict[str, float]
    total_queued_patients: float         # patient-weeks spent queueing
    weeks_with_queues: int

    def to_dict(self) -> Dict:
        return {
            "average_length": self.average_length,
            "peak_length": self.peak_length,
            "total_queued_patients": self.total_queued_patients,
            "weeks_with_queues": self.weeks_with_queues,
        }


@dataclass(frozen=True)
class SimulationResults:
    weekly_states: List[CohortState]
    weeks: int
    population: float
    cumulative_deaths: float
    cumulative_resolved: float
    mean_time_to_resolution: float
    total_cost: float
    dalys: float
    death_dalys: float = 0.0
    disability_dalys: float = 0.0
    queue_related_deaths: float = 0.0
    queue_summary: Optional[QueueSummary] = None
    icer: Optional[float] = None
    raw_icer: Optional[float] = None

    @property
    def final_state(self) -> CohortState:
        return self.weekly_states[-1]

    def with_baseline(self, baseline: "SimulationResults") -> "SimulationResults":
        """Copy of these results carrying ICER and raw ICER versus baseline"""
        icer, raw_icer = calculate_icer(self.total_cost, self.dalys, baseline.total_cost, baseline.dalys)
        return replace(self, icer=icer, raw_icer=raw_icer)

    def summary(self) -> Dict:
        return {
            "deaths": self.cumulative_deaths,
            "resolved": self.cumulative_resolved,
            "total_cost": self.total_cost,
            "dalys": self.dalys,
            "icer": self.icer,
            "raw_icer": self.raw_icer,
        }

    def to_dict(self, include_weekly: bool = False) -> Dict:
        """JSON-safe dict; non-finite numbers become the numeric sentinel"""
        def clean(value, label):
            return None if value is None else sanitize_number(value, label)

        result = {
            "weeks": self.weeks,
            "population": self.population,
            "cumulative_deaths": round(self.cumulative_deaths, 4),
            "cumulative_resolved": round(self.cumulative_resolved, 4),
            "mean_time_to_resolution": round(self.mean_time_to_resolution, 4),
            "total_cost": round(self.total_cost, 2),
            "dalys": round(self.dalys, 4),
            "death_dalys": round(self.death_dalys, 4),
            "disability_dalys": round(self.disability_dalys, 4),
            "queue_related_deaths": round(self.queue_related_deaths, 4),
            "queue_summary": self.queue_summary.to_dict() if self.queue_summary else None,
            "icer": clean(self.icer, "icer"),
            "raw_icer": clean(self.raw_icer, "raw_icer"),
        }
        if include_weekly:
            result["weekly"] = self.weekly_frame().to_dict(orient="records")
        return result

    def weekly_frame(self) -> pd.DataFrame:
        """One row per recorded week: stage stocks, queues and patient-days"""
        rows = []
        for week, state in enumerate(self.weekly_states):
            row = {"week": week}
            row.update(state.stage_counts())
            row.update({f"queue_{level}": state.queues[level] for level in LEVELS})
            row.update({f"patient_days_{stage}": days for stage, days in state.patient_days.items()})
            row["new_cases"] = state.new_cases
            row["episodes_touched"] = state.episodes_touched
            rows.append(row)
        return pd.DataFrame(rows)


# ============================================
# INITIAL STATE
# ============================================

def initial_state(population: float, incidence_rate: float,
                  overrides: Optional[Dict[str, float]] = None) -> CohortState:
    """
    Starting cohort: one week's incidence sitting untreated, everything
    else empty. overrides replaces individual CohortState fields.
    """
    state = CohortState(untreated=incidence_rate * population / Config.WEEKS_PER_YEAR)
    if overrides:
        valid = {f.name for f in fields(CohortState)}
        unknown = set(overrides) - valid
        if unknown:
            raise ValidationError(
                f"Invalid initial state fields: {', '.join(sorted(unknown))}",
                details={"valid": sorted(valid)}
            )
        state = replace(state, **overrides)
    if not overrides or "cumulative_incidence" not in overrides:
        state = replace(state, cumulative_incidence=state.accounted_patients)
    return state


# ============================================
# QUEUE METRICS
# ============================================

def summarize_queues(weekly_states: List[CohortState]) -> Optional[QueueSummary]:
    """Average and peak backlog per level; None when no queue ever formed"""
    totals = {level: 0.0 for level in LEVELS}
    peaks = {level: 0.0 for level in LEVELS}
    weeks_with_queues = 0

    for state in weekly_states:
        for level in LEVELS:
            totals[level] += state.queues[level]
            peaks[level] = max(peaks[level], state.queues[level])
        if state.total_queued > 0:
            weeks_with_queues += 1

    if weeks_with_queues == 0:
        return None

    weeks = len(weekly_states)
    return QueueSummary(
        average_length={level: totals[level] / weeks for level in LEVELS},
        peak_length=peaks,
        total_queued_patients=sum(totals.values()),
        weeks_with_queues=weeks_with_queues,
    )


# ============================================
# DRIVER
# ============================================

def _validate_horizon(weeks, population, burn_in_weeks):
    if isinstance(weeks, bool) or not isinstance(weeks, int) or weeks < 1:
        raise ValidationError(f"Invalid weeks: must be an integer of at least 1, got {weeks!r}")
    if isinstance(burn_in_weeks, bool) or not isinstance(burn_in_weeks, int) or burn_in_weeks < 0:
        raise ValidationError(f"Invalid burn-in: must be a non-negative integer, got {burn_in_weeks!r}")
    if not isinstance(population, (int, float)) or not math.isfinite(population) or population < 0:
        raise ValidationError(f"Invalid population: must be a non-negative number, got {population!r}")


def run_simulation(params: Parameters,
                   weeks: int = None,
                   population: float = None,
                   initial: Union[CohortState, Dict[str, float], None] = None,
                   burn_in_weeks: int = None) -> SimulationResults:
    """
    Simulate a cohort.

    Args:
        params: compiled parameters (after AI effects, if any)
        weeks: recorded horizon (default Config.DEFAULT_WEEKS)
        population: catchment population (default Config.DEFAULT_POPULATION)
        initial: starting CohortState, or a dict of field overrides
        burn_in_weeks: unrecorded warm-up weeks (default Config.BURN_IN_WEEKS)
    """
    weeks = Config.DEFAULT_WEEKS if weeks is None else weeks
    population = Config.DEFAULT_POPULATION if population is None else population
    burn_in_weeks = Config.BURN_IN_WEEKS if burn_in_weeks is None else burn_in_weeks
    _validate_horizon(weeks, population, burn_in_weeks)

    params = clamp_probabilities(sanitize_parameters(params))
    exit_total = exit_rate_total(params)
    if exit_total > 1.0:
        logger.warning(f"[Simulation] Queue exit rates sum to {exit_total:.3f}, scaling to 1")

    if isinstance(initial, CohortState):
        state = initial
    else:
        state = initial_state(population, params.incidence_rate, initial)

    for _ in range(burn_in_weeks):
        state = step(state, params, population)

    weekly_states = []
    for _ in range(weeks):
        weekly_states.append(state)
        state = step(state, params, population)

    final = weekly_states[-1]
    outcome = summarize_outcomes(final, params)

    logger.debug(
        f"[Simulation] {weeks} weeks (+{burn_in_weeks} burn-in), population {population:,.0f}: "
        f"deaths={final.dead:.1f}, cost={outcome.total_cost:,.0f}, dalys={outcome.dalys:.1f}"
    )

    return SimulationResults(
        weekly_states=weekly_states,
        weeks=weeks,
        population=population,
        cumulative_deaths=final.dead,
        cumulative_resolved=final.resolved,
        mean_time_to_resolution=mean_time_to_resolution(params),
        total_cost=outcome.total_cost,
        dalys=outcome.dalys,
        death_dalys=outcome.death_dalys,
        disability_dalys=outcome.disability_dalys,
        queue_related_deaths=final.queue_related_deaths,
        queue_summary=summarize_queues(weekly_states),
    )
