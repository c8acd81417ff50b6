"""
Scenario runner: compile AI effects onto a base parameter set, simulate,
and compare against the no-intervention baseline.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional, Tuple

from .ai_effects import (
    AIInterventions, compile_ai_effects,
    DEFAULT_AI_UPTAKE, DEFAULT_AI_COSTS, DEFAULT_AI_BASE_EFFECTS, DISEASE_AI_EFFECTS
)
from .parameters import Parameters
from .simulation import SimulationResults, run_simulation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scenario:
    """Everything needed to turn a pre-AI parameter set into a compiled one"""
    interventions: AIInterventions = field(default_factory=AIInterventions)
    disease: Optional[str] = None
    magnitudes: Mapping[str, float] = field(default_factory=dict)
    uptake: Mapping[str, float] = field(default_factory=lambda: DEFAULT_AI_UPTAKE)
    is_urban: bool = True
    costs: Mapping = field(default_factory=lambda: DEFAULT_AI_COSTS)
    base_effects: Mapping = field(default_factory=lambda: DEFAULT_AI_BASE_EFFECTS)
    disease_effects: Mapping = field(default_factory=lambda: DISEASE_AI_EFFECTS)

    def compile(self, base_params: Parameters) -> Parameters:
        return compile_ai_effects(
            base_params,
            self.interventions,
            disease=self.disease,
            magnitudes=self.magnitudes,
            uptake=self.uptake,
            is_urban=self.is_urban,
            costs=self.costs,
            base_effects=self.base_effects,
            disease_effects=self.disease_effects,
        )

    def baseline(self) -> "Scenario":
        """Same setting with every intervention switched off"""
        return replace(self, interventions=AIInterventions())


def run_scenario(base_params: Parameters, scenario: Scenario,
                 weeks: int = None, population: float = None,
                 baseline: Optional[SimulationResults] = None) -> SimulationResults:
    """Compile and simulate; attach ICER when a baseline run is given"""
    results = run_simulation(scenario.compile(base_params), weeks=weeks, population=population)
    if baseline is not None:
        results = results.with_baseline(baseline)
    return results


def compare_to_baseline(base_params: Parameters, scenario: Scenario,
                        weeks: int = None, population: float = None
                        ) -> Tuple[SimulationResults, SimulationResults]:
    """(baseline, intervention) results, the latter carrying ICER and raw ICER"""
    baseline = run_scenario(base_params, scenario.baseline(), weeks, population)
    intervention = run_scenario(base_params, scenario, weeks, population, baseline=baseline)
    logger.info(
        f"[Scenario] {', '.join(scenario.interventions.active()) or 'no AI'}: "
        f"Δdeaths={intervention.cumulative_deaths - baseline.cumulative_deaths:+.1f}, "
        f"ICER={intervention.icer}"
    )
    return baseline, intervention


def scenario_from_dict(data: Optional[Dict]) -> Scenario:
    """Build a Scenario from request fields: interventions, disease, magnitudes, uptake, is_urban"""
    data = data or {}
    uptake = dict(DEFAULT_AI_UPTAKE)
    uptake.update(data.get("uptake") or {})
    return Scenario(
        interventions=AIInterventions.from_dict(data.get("interventions")),
        disease=data.get("disease"),
        magnitudes=dict(data.get("magnitudes") or {}),
        uptake=uptake,
        is_urban=bool(data.get("is_urban", True)),
    )
