"""
Input Validation for the Simulator API
Validates and normalizes all incoming request data
"""

import math

from .ai_effects import INTERVENTION_NAMES, DEFAULT_AI_UPTAKE
from .config import Config
from .exceptions import ValidationError, UnknownIdentifierError, ParameterPathError
from .parameters import COMPILER_OWNED_FIELDS, Parameters, is_numeric_parameter
from .profiles import DISEASE_PROFILES, HEALTH_SYSTEM_DEFAULTS, COUNTRY_PROFILES

DEFAULT_HEALTH_SYSTEM = "moderate_urban_system"


def _normalize_id(value):
    return str(value).lower().strip()


def _as_number(value, field):
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}: must be a number, got bool")
    try:
        value = float(value)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid {field}: must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValidationError(f"Invalid {field}: must be finite, got {value}")
    return value


def validate_population(population):
    """Validate catchment population"""
    if population is None:
        return Config.DEFAULT_POPULATION

    population = _as_number(population, "population")

    if population < 0:
        raise ValidationError(f"Invalid population: must be non-negative, got {population}")

    if population > Config.MAX_POPULATION:
        raise ValidationError(
            f"Population {population:,.0f} exceeds maximum of {Config.MAX_POPULATION:,.0f}"
        )

    return population


def validate_weeks(weeks):
    """Validate simulation horizon"""
    if weeks is None:
        return Config.DEFAULT_WEEKS

    if isinstance(weeks, bool):
        raise ValidationError("Invalid weeks value: must be an integer, got bool")
    if isinstance(weeks, float) and not weeks.is_integer():
        raise ValidationError(f"Invalid weeks value: must be a whole number, got {weeks}")
    try:
        weeks = int(weeks)
    except (ValueError, TypeError, OverflowError):
        raise ValidationError(f"Invalid weeks value: must be an integer, got {type(weeks).__name__}")

    if weeks < 1:
        raise ValidationError(f"Invalid weeks: must be at least 1, got {weeks}")

    if weeks > Config.MAX_WEEKS:
        raise ValidationError(f"Weeks {weeks} exceeds maximum of {Config.MAX_WEEKS}")

    return weeks


def validate_disease(disease):
    """Validate disease id"""
    if not disease:
        raise ValidationError("Missing required field: disease")

    disease = _normalize_id(disease)

    if disease not in DISEASE_PROFILES:
        raise UnknownIdentifierError(
            f"Unknown disease: '{disease}'. "
            f"Valid diseases: {', '.join(sorted(DISEASE_PROFILES))}"
        )

    return disease


def validate_health_system(health_system):
    """Validate health-system id"""
    if not health_system:
        return DEFAULT_HEALTH_SYSTEM

    health_system = _normalize_id(health_system)

    if health_system not in HEALTH_SYSTEM_DEFAULTS:
        raise UnknownIdentifierError(
            f"Unknown health system: '{health_system}'. "
            f"Valid health systems: {', '.join(sorted(HEALTH_SYSTEM_DEFAULTS))}"
        )

    return health_system


def validate_country(country):
    """Validate optional country id"""
    if not country:
        return None

    country = _normalize_id(country)

    if country not in COUNTRY_PROFILES:
        raise UnknownIdentifierError(
            f"Unknown country: '{country}'. "
            f"Valid countries: {', '.join(sorted(COUNTRY_PROFILES))}"
        )

    return country


def validate_interventions(interventions):
    """Validate intervention toggles"""
    if interventions is None:
        return {}

    if not isinstance(interventions, dict):
        raise ValidationError("Invalid interventions: must be an object of name -> bool")

    unknown = sorted(set(interventions) - set(INTERVENTION_NAMES))
    if unknown:
        raise ValidationError(
            f"Invalid interventions: {', '.join(unknown)}. "
            f"Valid interventions: {', '.join(INTERVENTION_NAMES)}"
        )

    for name, value in interventions.items():
        if not isinstance(value, bool):
            raise ValidationError(f"Invalid intervention flag '{name}': must be true or false")

    return dict(interventions)


def validate_magnitudes(magnitudes):
    """Validate per-effect magnitude multipliers"""
    if magnitudes is None:
        return {}

    if not isinstance(magnitudes, dict):
        raise ValidationError("Invalid magnitudes: must be an object of key -> number")

    return {key: _as_number(value, f"magnitude '{key}'") for key, value in magnitudes.items()}


def validate_uptake(uptake):
    """Validate uptake overrides"""
    if uptake is None:
        return {}

    if not isinstance(uptake, dict):
        raise ValidationError("Invalid uptake: must be an object of key -> number")

    unknown = sorted(set(uptake) - set(DEFAULT_AI_UPTAKE))
    if unknown:
        raise ValidationError(
            f"Invalid uptake keys: {', '.join(unknown)}. "
            f"Valid keys: {', '.join(sorted(DEFAULT_AI_UPTAKE))}"
        )

    validated = {}
    for key, value in uptake.items():
        value = _as_number(value, f"uptake '{key}'")
        if value < 0:
            raise ValidationError(f"Invalid uptake '{key}': must be non-negative, got {value}")
        validated[key] = value
    return validated


def validate_parameter_overrides(overrides):
    """Validate raw parameter overrides (applied later by parameters_from_dict)"""
    if overrides is None:
        return {}

    if not isinstance(overrides, dict):
        raise ValidationError("Invalid parameter_overrides: must be an object")

    return overrides


def validate_parameter_path(path, field="parameter"):
    """Validate a dotted parameter path that can be swept"""
    if not path or not isinstance(path, str):
        raise ValidationError(f"Missing required field: {field}")

    path = path.strip()
    if path in COMPILER_OWNED_FIELDS:
        raise ValidationError(
            f"Invalid {field}: '{path}' is set by the AI effect compiler and cannot be swept"
        )

    try:
        numeric = is_numeric_parameter(Parameters(), path)
    except ParameterPathError as e:
        raise ValidationError(f"Invalid {field}: {e.message}", details=e.details)

    if not numeric:
        raise ValidationError(f"Invalid {field}: '{path}' is not a numeric parameter")

    return path


def validate_simulate_request(data):
    """Validate complete /simulate request"""
    if not data:
        raise ValidationError("Request body is required")
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body: must be a JSON object")

    return {
        "disease": validate_disease(data.get("disease")),
        "health_system": validate_health_system(data.get("health_system")),
        "country": validate_country(data.get("country")),
        "is_urban": bool(data.get("is_urban", True)),
        "population": validate_population(data.get("population")),
        "weeks": validate_weeks(data.get("weeks")),
        "interventions": validate_interventions(data.get("interventions")),
        "magnitudes": validate_magnitudes(data.get("magnitudes")),
        "uptake": validate_uptake(data.get("uptake")),
        "parameter_overrides": validate_parameter_overrides(data.get("parameter_overrides")),
        "include_weekly": bool(data.get("include_weekly", False)),
    }


def validate_sensitivity_request(data):
    """Validate complete /sensitivity request"""
    validated = validate_simulate_request(data)
    validated["parameter"] = validate_parameter_path(data.get("parameter"))

    secondary = data.get("secondary_parameter")
    validated["secondary_parameter"] = (
        validate_parameter_path(secondary, "secondary_parameter") if secondary else None
    )
    if validated["secondary_parameter"] == validated["parameter"]:
        raise ValidationError("secondary_parameter must differ from parameter")

    return validated
