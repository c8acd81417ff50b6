import pytest

from healthflow.config import Config
from healthflow.exceptions import ValidationError, UnknownIdentifierError
from healthflow.validators import (
    DEFAULT_HEALTH_SYSTEM,
    validate_population, validate_weeks, validate_disease, validate_health_system,
    validate_country, validate_interventions, validate_magnitudes, validate_uptake,
    validate_parameter_overrides, validate_parameter_path,
    validate_simulate_request, validate_sensitivity_request
)


class TestPopulation:
    def test_default(self):
        assert validate_population(None) == Config.DEFAULT_POPULATION

    def test_accepts_zero_and_numeric_strings(self):
        assert validate_population(0) == 0.0
        assert validate_population("1500") == 1500.0

    @pytest.mark.parametrize("value", [-1, "lots", True, float("nan"), float("inf"), 2e9])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_population(value)


class TestWeeks:
    def test_default(self):
        assert validate_weeks(None) == Config.DEFAULT_WEEKS

    @pytest.mark.parametrize("value", [0, -5, 2.5, float("inf"), Config.MAX_WEEKS + 1, "soon", False])
    def test_rejects_invalid(self, value):
        with pytest.raises(ValidationError):
            validate_weeks(value)

    def test_whole_float_accepted(self):
        assert validate_weeks(4.0) == 4


class TestIdentifiers:
    def test_disease_normalized(self):
        assert validate_disease("  Malaria ") == "malaria"

    def test_missing_disease(self):
        with pytest.raises(ValidationError):
            validate_disease(None)

    def test_unknown_disease(self):
        with pytest.raises(UnknownIdentifierError):
            validate_disease("dragon_pox")

    def test_health_system_default_and_unknown(self):
        assert validate_health_system(None) == DEFAULT_HEALTH_SYSTEM
        with pytest.raises(UnknownIdentifierError):
            validate_health_system("utopia")

    def test_country_optional(self):
        assert validate_country(None) is None
        assert validate_country("Kenya") == "kenya"
        with pytest.raises(UnknownIdentifierError):
            validate_country("atlantis")


class TestScenarioInputs:
    def test_interventions(self):
        assert validate_interventions({"chw_ai": True}) == {"chw_ai": True}
        with pytest.raises(ValidationError):
            validate_interventions({"robot_ai": True})
        with pytest.raises(ValidationError):
            validate_interventions({"chw_ai": "yes"})
        with pytest.raises(ValidationError):
            validate_interventions(["chw_ai"])

    def test_magnitudes(self):
        assert validate_magnitudes({"chw_ai_mu_0": "2"}) == {"chw_ai_mu_0": 2.0}
        with pytest.raises(ValidationError):
            validate_magnitudes({"chw_ai_mu_0": float("inf")})

    def test_uptake(self):
        assert validate_uptake({"global_uptake": 0.5}) == {"global_uptake": 0.5}
        with pytest.raises(ValidationError):
            validate_uptake({"martian_multiplier": 1.0})
        with pytest.raises(ValidationError):
            validate_uptake({"chw_ai": -0.1})

    def test_parameter_overrides_must_be_object(self):
        assert validate_parameter_overrides(None) == {}
        with pytest.raises(ValidationError):
            validate_parameter_overrides([1, 2])


class TestParameterPath:
    def test_nested_path(self):
        assert validate_parameter_path(" per_diem_costs.L2 ") == "per_diem_costs.L2"

    @pytest.mark.parametrize("path", [None, "", "per_diem_costs", "self_care_ai_active", "bogus",
                                      "queue_prevention_rate", "ai_variable_cost"])
    def test_rejected(self, path):
        with pytest.raises(ValidationError):
            validate_parameter_path(path)


class TestRequests:
    def test_simulate_defaults(self):
        validated = validate_simulate_request({"disease": "malaria"})
        assert validated["health_system"] == DEFAULT_HEALTH_SYSTEM
        assert validated["country"] is None
        assert validated["is_urban"] is True
        assert validated["weeks"] == Config.DEFAULT_WEEKS
        assert validated["interventions"] == {}
        assert validated["include_weekly"] is False

    def test_empty_body(self):
        with pytest.raises(ValidationError):
            validate_simulate_request(None)

    @pytest.mark.parametrize("body", [[1, 2], "malaria", 7])
    def test_body_must_be_object(self, body):
        with pytest.raises(ValidationError):
            validate_simulate_request(body)
        with pytest.raises(ValidationError):
            validate_sensitivity_request(body)

    def test_sensitivity_requires_parameter(self):
        with pytest.raises(ValidationError):
            validate_sensitivity_request({"disease": "malaria"})

    def test_sensitivity_paths(self):
        validated = validate_sensitivity_request({
            "disease": "malaria", "parameter": "mu_0", "secondary_parameter": "per_diem_costs.L2"
        })
        assert validated["parameter"] == "mu_0"
        assert validated["secondary_parameter"] == "per_diem_costs.L2"

    def test_sensitivity_same_parameter_twice(self):
        with pytest.raises(ValidationError):
            validate_sensitivity_request({"disease": "malaria", "parameter": "mu_0",
                                          "secondary_parameter": "mu_0"})
