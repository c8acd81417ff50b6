"""
Sensitivity Analysis Driver
===========================
One- and two-way parameter sweeps over the full pipeline.

Every grid point perturbs the pre-AI parameter set through a dotted path
(e.g. "mu_0", "per_diem_costs.L2"), recompiles the AI effects, runs a
full simulation and keeps only the summary metrics. Grid points are
independent and run on a bounded thread pool; results keep grid order.

Sweep values are symmetric about the base value:

    v_i = base × (1 + span × (2i / steps - 1)),   i = 0..steps

so an even step count puts the unperturbed value exactly at the midpoint.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, asdict
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import Config
from .exceptions import ParameterPathError, ValidationError
from .parameters import (
    COMPILER_OWNED_FIELDS, Parameters, get_parameter, set_parameter, is_numeric_parameter
)
from .scenario import Scenario, run_scenario
from .simulation import SimulationResults

logger = logging.getLogger(__name__)


# ============================================
# RESULT TYPES
# ============================================

@dataclass(frozen=True)
class SensitivityPoint:
    value: float
    deaths: float
    total_cost: float
    dalys: float
    icer: Optional[float] = None
    raw_icer: Optional[float] = None
    secondary_value: Optional[float] = None


@dataclass(frozen=True)
class SensitivityResult1D:
    parameter: str
    base_value: float
    points: List[SensitivityPoint]

    @property
    def values(self) -> List[float]:
        return [p.value for p in self.points]

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame([asdict(p) for p in self.points])
        return frame.drop(columns=["secondary_value"])

    def to_dict(self):
        return {
            "parameter": self.parameter,
            "base_value": self.base_value,
            "points": self.to_frame().to_dict(orient="records"),
        }


@dataclass(frozen=True)
class SensitivityResult2D:
    primary_parameter: str
    secondary_parameter: str
    primary_values: np.ndarray
    secondary_values: np.ndarray
    deaths: np.ndarray          # [primary index, secondary index]
    costs: np.ndarray
    dalys: np.ndarray
    icer: Optional[np.ndarray]
    points: List[SensitivityPoint]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.deaths.shape

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([asdict(p) for p in self.points])

    def to_dict(self):
        return {
            "primary_parameter": self.primary_parameter,
            "secondary_parameter": self.secondary_parameter,
            "primary_values": self.primary_values.tolist(),
            "secondary_values": self.secondary_values.tolist(),
            "deaths": self.deaths.tolist(),
            "costs": self.costs.tolist(),
            "dalys": self.dalys.tolist(),
            "icer": self.icer.tolist() if self.icer is not None else None,
            "points": self.to_frame().to_dict(orient="records"),
        }


# ============================================
# HELPERS
# ============================================

def sweep_values(base_value: float, span: float, steps: int) -> List[float]:
    """steps + 1 values from base × (1 - span) to base × (1 + span)"""
    if isinstance(steps, bool) or not isinstance(steps, int) or steps < 1:
        raise ValidationError(f"Invalid sweep steps: must be a positive integer, got {steps!r}")
    if span < 0:
        raise ValidationError(f"Invalid sweep span: must be non-negative, got {span}")
    return [base_value * (1.0 + span * (2.0 * i / steps - 1.0)) for i in range(steps + 1)]


def _check_path(params: Parameters, path: str) -> float:
    if path in COMPILER_OWNED_FIELDS:
        raise ParameterPathError(
            f"Parameter '{path}' is set by the AI effect compiler and cannot be swept",
            details={"path": path}
        )
    if not is_numeric_parameter(params, path):
        raise ParameterPathError(
            f"Parameter '{path}' is not numeric and cannot be swept",
            details={"path": path}
        )
    return float(get_parameter(params, path))


def _evaluate(base_params: Parameters, assignments, scenario: Scenario,
              weeks: int, population: float,
              baseline: Optional[SimulationResults]) -> SensitivityPoint:
    params = base_params
    for path, value in assignments:
        params = set_parameter(params, path, value)
    results = run_scenario(params, scenario, weeks, population, baseline=baseline)
    return SensitivityPoint(
        value=assignments[0][1],
        secondary_value=assignments[1][1] if len(assignments) > 1 else None,
        deaths=results.cumulative_deaths,
        total_cost=results.total_cost,
        dalys=results.dalys,
        icer=results.icer,
        raw_icer=results.raw_icer,
    )


def _run_grid(base_params, tasks, scenario, weeks, population, baseline, max_workers):
    workers = max(1, max_workers or Config.SENSITIVITY_MAX_WORKERS)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(
            lambda assignments: _evaluate(base_params, assignments, scenario, weeks, population, baseline),
            tasks
        ))


# ============================================
# SWEEPS
# ============================================

def run_sensitivity_1d(base_params: Parameters,
                       path: str,
                       scenario: Optional[Scenario] = None,
                       weeks: int = None,
                       population: float = None,
                       baseline: Optional[SimulationResults] = None,
                       span: float = None,
                       steps: int = None,
                       max_workers: int = None) -> SensitivityResult1D:
    """
    One-way sweep of a single parameter (default ±25% in 10 steps).

    Args:
        base_params: pre-AI parameters; the sweep perturbs these
        path: dotted parameter path
        scenario: AI configuration recompiled at every point
        baseline: fixed comparator for per-point ICER (None = no ICER)
    """
    scenario = scenario or Scenario()
    span = Config.SENSITIVITY_SPAN_1D if span is None else span
    steps = Config.SENSITIVITY_STEPS_1D if steps is None else steps

    base_value = _check_path(base_params, path)
    values = sweep_values(base_value, span, steps)
    logger.info(f"[Sensitivity] 1-D sweep of {path}: {len(values)} points around {base_value:g}")

    tasks = [((path, value),) for value in values]
    points = _run_grid(base_params, tasks, scenario, weeks, population, baseline, max_workers)
    return SensitivityResult1D(parameter=path, base_value=base_value, points=points)


def run_sensitivity_2d(base_params: Parameters,
                       primary_path: str,
                       secondary_path: str,
                       scenario: Optional[Scenario] = None,
                       weeks: int = None,
                       population: float = None,
                       baseline: Optional[SimulationResults] = None,
                       span: float = None,
                       steps: int = None,
                       max_workers: int = None) -> SensitivityResult2D:
    """Two-way sweep over a grid (default ±20% in 5 steps per axis, 6×6 points)"""
    scenario = scenario or Scenario()
    span = Config.SENSITIVITY_SPAN_2D if span is None else span
    steps = Config.SENSITIVITY_STEPS_2D if steps is None else steps

    if primary_path == secondary_path:
        raise ValidationError("Two-way sweep needs two different parameters")

    primary = sweep_values(_check_path(base_params, primary_path), span, steps)
    secondary = sweep_values(_check_path(base_params, secondary_path), span, steps)
    logger.info(
        f"[Sensitivity] 2-D sweep of {primary_path} × {secondary_path}: "
        f"{len(primary) * len(secondary)} points"
    )

    tasks = [((primary_path, p), (secondary_path, s)) for p in primary for s in secondary]
    points = _run_grid(base_params, tasks, scenario, weeks, population, baseline, max_workers)

    shape = (len(primary), len(secondary))

    def grid(metric):
        return np.array([getattr(point, metric) for point in points], dtype=float).reshape(shape)

    return SensitivityResult2D(
        primary_parameter=primary_path,
        secondary_parameter=secondary_path,
        primary_values=np.array(primary),
        secondary_values=np.array(secondary),
        deaths=grid("deaths"),
        costs=grid("total_cost"),
        dalys=grid("dalys"),
        icer=grid("icer") if baseline is not None else None,
        points=points,
    )
