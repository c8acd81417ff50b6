"""
Health-System Patient-Flow Simulator - HTTP API
Flask server exposing scenario simulation and sensitivity analysis

Endpoints:
- GET  /health          liveness
- GET  /profiles        disease, health-system, country and intervention ids
- POST /simulate        baseline vs AI scenario with ICER
- POST /sensitivity     one- or two-way parameter sweep
- GET  /cache/stats     baseline cache statistics
- POST /cache/clear     drop cached baselines
"""

import logging
import math

from flask import Flask, request, jsonify
from flask_cors import CORS

from .ai_effects import INTERVENTION_NAMES
from .cache_manager import result_cache
from .config import Config
from .exceptions import HealthFlowError, SimulationError
from .parameters import parameters_from_dict
from .profiles import build_base_parameters, list_profiles, DISEASE_NAMES
from .scenario import run_scenario, scenario_from_dict
from .sensitivity import run_sensitivity_1d, run_sensitivity_2d
from .validators import validate_simulate_request, validate_sensitivity_request

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)


# ============================================
# ERROR HANDLERS
# ============================================

@app.errorhandler(HealthFlowError)
def handle_healthflow_error(error):
    """Return structured JSON for all simulator errors"""
    response = jsonify(error.to_dict())
    response.status_code = error.status_code
    return response


@app.errorhandler(404)
def not_found(error):
    return jsonify({"error": "Endpoint not found", "status_code": 404}), 404


@app.errorhandler(405)
def method_not_allowed(error):
    return jsonify({"error": "Method not allowed", "status_code": 405}), 405


# ============================================
# HELPERS
# ============================================

def _json_safe(value):
    """Replace non-finite floats so the payload is strict JSON"""
    if isinstance(value, float) and not math.isfinite(value):
        if math.isnan(value):
            return None
        return Config.NUMERIC_SENTINEL if value > 0 else -Config.NUMERIC_SENTINEL
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def _base_parameters(validated):
    params = build_base_parameters(
        validated["disease"],
        validated["health_system"],
        country=validated["country"],
        is_urban=validated["is_urban"],
    )
    return parameters_from_dict(validated["parameter_overrides"], base=params)


def _scenario(validated):
    return scenario_from_dict(validated)


def _baseline(validated, base_params, scenario):
    """No-AI run for the same setting, shared across requests"""
    inputs = {
        key: validated[key]
        for key in ("disease", "health_system", "country", "is_urban",
                    "population", "weeks", "parameter_overrides")
    }
    return result_cache.get_or_compute(
        "baseline", inputs,
        lambda: run_scenario(base_params, scenario.baseline(), validated["weeks"], validated["population"])
    )


# ============================================
# ROUTES
# ============================================

@app.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok", "service": "healthflow"})


@app.route('/profiles', methods=['GET'])
def profiles():
    """Available ids for building a scenario"""
    result = list_profiles()
    result["interventions"] = list(INTERVENTION_NAMES)
    result["disease_names"] = dict(DISEASE_NAMES)
    return jsonify(result)


@app.route('/simulate', methods=['POST'])
def simulate():
    """
    Simulate a disease in a health system with and without the requested
    AI interventions. Baselines are cached per setting.
    """
    validated = validate_simulate_request(request.get_json(silent=True))
    try:
        base_params = _base_parameters(validated)
        scenario = _scenario(validated)
        baseline = _baseline(validated, base_params, scenario)
        results = run_scenario(base_params, scenario, validated["weeks"], validated["population"],
                               baseline=baseline)
    except HealthFlowError:
        raise
    except Exception as e:
        logger.exception("[API] Simulation failed")
        raise SimulationError(f"Simulation failed: {str(e)}")

    logger.info(
        f"[API] /simulate {validated['disease']} in {validated['health_system']}: "
        f"{', '.join(scenario.interventions.active()) or 'no AI'}"
    )

    return jsonify(_json_safe({
        "disease": validated["disease"],
        "health_system": validated["health_system"],
        "country": validated["country"],
        "interventions": scenario.interventions.active(),
        "baseline": baseline.to_dict(),
        "intervention": results.to_dict(include_weekly=validated["include_weekly"]),
        "deaths_averted": baseline.cumulative_deaths - results.cumulative_deaths,
        "dalys_averted": baseline.dalys - results.dalys,
    }))


@app.route('/sensitivity', methods=['POST'])
def sensitivity():
    """One-way sweep of `parameter`, or two-way with `secondary_parameter`"""
    validated = validate_sensitivity_request(request.get_json(silent=True))
    try:
        base_params = _base_parameters(validated)
        scenario = _scenario(validated)
        baseline = _baseline(validated, base_params, scenario)
        common = dict(
            scenario=scenario,
            weeks=validated["weeks"],
            population=validated["population"],
            baseline=baseline,
        )
        if validated["secondary_parameter"]:
            result = run_sensitivity_2d(base_params, validated["parameter"],
                                        validated["secondary_parameter"], **common)
        else:
            result = run_sensitivity_1d(base_params, validated["parameter"], **common)
    except HealthFlowError:
        raise
    except Exception as e:
        logger.exception("[API] Sensitivity analysis failed")
        raise SimulationError(f"Sensitivity analysis failed: {str(e)}")

    return jsonify(_json_safe(result.to_dict()))


@app.route('/cache/stats', methods=['GET'])
def cache_stats():
    return jsonify(result_cache.stats())


@app.route('/cache/clear', methods=['POST'])
def cache_clear():
    return jsonify({"cleared": result_cache.clear()})


if __name__ == '__main__':
    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    print("=" * 60)
    print("  HealthFlow - Health-System Patient-Flow Simulator")
    print("=" * 60)
    print(f"  [+] Burn-in weeks:      {Config.BURN_IN_WEEKS}")
    print(f"  [+] Sweep workers:      {Config.SENSITIVITY_MAX_WORKERS}")
    print(f"  [+] Cache TTL:          {Config.CACHE_TTL_SECONDS}s")
    print("  [+] Endpoints:          /simulate, /sensitivity, /profiles")
    print("=" * 60)

    app.run(host="0.0.0.0", port=Config.PORT, debug=Config.DEBUG)
