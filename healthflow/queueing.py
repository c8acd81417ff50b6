"""
Capacity & Queueing Subsystem
=============================
Weekly dynamics of the backlog waiting for admission at each facility
level (L0 community health worker, L1 primary care, L2 district hospital,
L3 tertiary hospital).

Exits from the existing backlog, applied in order:
1. mortality        rate delta_u        -> Dead (and queue-related deaths)
2. abandonment      queue_abandonment   -> Untreated
3. bypass           queue_bypass        -> Informal care
4. self-resolution  queue_self_resolve  -> Resolved
5. clearance        capacity × clearance × (1 + AI boost), capped by what
                    remains after 1-4   -> admitted to the same level

Patients newly turned away by capacity join the backlog after exits.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping

import numpy as np

from .parameters import Parameters

logger = logging.getLogger(__name__)

LEVELS = ("L0", "L1", "L2", "L3")


@dataclass(frozen=True)
class QueueFlows:
    """Outcome of one week of queue dynamics"""
    queues: Dict[str, float]      # backlog carried into next week
    cleared: Dict[str, float]     # admitted from the backlog, per level
    deaths: float
    abandoned: float
    bypassed: float
    self_resolved: float


def empty_queues() -> Dict[str, float]:
    return {level: 0.0 for level in LEVELS}


def _as_vector(mapping: Mapping[str, float]) -> np.ndarray:
    return np.array([float(mapping.get(level, 0.0)) for level in LEVELS])


def _as_dict(vector: np.ndarray) -> Dict[str, float]:
    return {level: float(value) for level, value in zip(LEVELS, vector)}


def clearance_boosts(params: Parameters) -> np.ndarray:
    """Per-level throughput boost from AI modifiers"""
    hospital = (params.length_of_stay_reduction
                + params.discharge_optimization
                + params.treatment_efficiency)
    return np.array([
        params.resolution_boost,
        params.point_of_care_resolution,
        hospital,
        hospital + params.resource_utilization,
    ])


def _raw_exit_rates(params: Parameters) -> np.ndarray:
    return np.clip(np.array([
        params.delta_u,
        params.queue_abandonment_rate,
        params.queue_bypass_rate,
        params.queue_self_resolve_rate,
    ], dtype=float), 0.0, None)


def exit_rate_total(params: Parameters) -> float:
    """Sum of the unscaled queue exit rates"""
    return float(_raw_exit_rates(params).sum())


def exit_rates(params: Parameters) -> np.ndarray:
    """
    Mortality, abandonment, bypass and self-resolution rates, scaled down
    proportionally when they would remove more than the whole backlog.
    """
    rates = _raw_exit_rates(params)
    total = rates.sum()
    if total > 1.0:
        rates = rates / total
    return rates


def advance_queues(queues: Mapping[str, float],
                   newly_queued: Mapping[str, float],
                   params: Parameters,
                   capacity_multiplier: float) -> QueueFlows:
    """
    Advance every level's backlog by one week.

    Args:
        queues: backlog at the start of the week
        newly_queued: patients turned away by capacity this week
        params: compiled parameters (queue rates and AI modifiers)
        capacity_multiplier: share of normal admissions the system can take
    """
    backlog = np.clip(_as_vector(queues), 0.0, None)
    arrivals = np.clip(_as_vector(newly_queued), 0.0, None)

    mortality_rate, abandon_rate, bypass_rate, resolve_rate = exit_rates(params)
    deaths = backlog * mortality_rate
    abandoned = backlog * abandon_rate
    bypassed = backlog * bypass_rate
    self_resolved = backlog * resolve_rate

    remainder = np.clip(backlog - deaths - abandoned - bypassed - self_resolved, 0.0, None)
    clearance_rate = max(0.0, capacity_multiplier * params.queue_clearance_rate)
    capacity = backlog * clearance_rate * (1.0 + np.clip(clearance_boosts(params), 0.0, None))
    cleared = np.minimum(capacity, remainder)

    new_backlog = np.clip(remainder - cleared + arrivals, 0.0, None)

    return QueueFlows(
        queues=_as_dict(new_backlog),
        cleared=_as_dict(cleared),
        deaths=float(deaths.sum()),
        abandoned=float(abandoned.sum()),
        bypassed=float(bypassed.sum()),
        self_resolved=float(self_resolved.sum()),
    )
