"""
HealthFlow - Health-System Patient-Flow Simulator
Weekly cohort model of patients moving through a tiered health system,
with AI intervention effects, capacity queues, economics and sensitivity
analysis.
"""

from .ai_effects import AIInterventions, INTERVENTION_NAMES, compile_ai_effects
from .economics import calculate_icer, DOMINANT_ICER
from .exceptions import (
    HealthFlowError, ValidationError, UnknownIdentifierError,
    ParameterPathError, SimulationError
)
from .parameters import (
    Parameters, PerDiemCosts,
    sanitize_parameters, get_parameter, set_parameter, parameters_from_dict
)
from .profiles import build_base_parameters
from .scenario import Scenario, run_scenario, compare_to_baseline
from .sensitivity import run_sensitivity_1d, run_sensitivity_2d
from .simulation import SimulationResults, run_simulation
from .transition import CohortState, step

__version__ = "0.1.0"
