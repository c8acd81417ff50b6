import numpy as np
import pytest

from healthflow.ai_effects import AIInterventions
from healthflow.exceptions import ParameterPathError, ValidationError
from healthflow.scenario import Scenario, run_scenario
from healthflow.sensitivity import run_sensitivity_1d, run_sensitivity_2d, sweep_values

WEEKS = 4
POPULATION = 5000


class TestSweepValues:
    def test_symmetric_about_base(self):
        values = sweep_values(10.0, 0.25, 10)
        assert len(values) == 11
        assert values[0] == pytest.approx(7.5)
        assert values[-1] == pytest.approx(12.5)
        assert values[5] == 10.0

    def test_two_way_default_grid_axis(self):
        values = sweep_values(1.0, 0.20, 5)
        assert values == pytest.approx([0.8, 0.88, 0.96, 1.04, 1.12, 1.2])

    @pytest.mark.parametrize("steps", [0, -1, 2.5, True])
    def test_invalid_steps(self, steps):
        with pytest.raises(ValidationError):
            sweep_values(1.0, 0.25, steps)

    def test_negative_span(self):
        with pytest.raises(ValidationError):
            sweep_values(1.0, -0.1, 10)


class TestOneWay:
    def test_eleven_points_with_unperturbed_midpoint(self, params):
        result = run_sensitivity_1d(params, "per_diem_costs.I", weeks=WEEKS, population=POPULATION)
        reference = run_scenario(params, Scenario(), weeks=WEEKS, population=POPULATION)

        assert result.base_value == 10.0
        assert len(result.points) == 11
        assert result.values[0] == pytest.approx(7.5)
        assert result.values[-1] == pytest.approx(12.5)
        assert result.points[5].total_cost == pytest.approx(reference.total_cost)
        assert result.points[5].deaths == pytest.approx(reference.cumulative_deaths)

    def test_nested_cost_changes_only_cost(self, params):
        result = run_sensitivity_1d(params, "per_diem_costs.L2", weeks=WEEKS, population=POPULATION)
        deaths = [p.deaths for p in result.points]
        costs = [p.total_cost for p in result.points]

        assert deaths == pytest.approx([deaths[0]] * len(deaths))
        assert all(b > a for a, b in zip(costs, costs[1:]))

    def test_flow_parameter_changes_deaths(self, params):
        result = run_sensitivity_1d(params, "delta_u", weeks=WEEKS, population=POPULATION)
        deaths = [p.deaths for p in result.points]
        assert all(b > a for a, b in zip(deaths, deaths[1:]))

    def test_icer_against_fixed_baseline(self, params):
        scenario = Scenario(interventions=AIInterventions(hospital_decision_ai=True))
        baseline = run_scenario(params, Scenario(), weeks=WEEKS, population=POPULATION)
        result = run_sensitivity_1d(params, "mu_2", scenario=scenario, weeks=WEEKS,
                                    population=POPULATION, baseline=baseline, steps=4)
        assert len(result.points) == 5
        assert all(p.icer is not None and p.raw_icer is not None for p in result.points)

    def test_no_icer_without_baseline(self, params):
        result = run_sensitivity_1d(params, "mu_0", weeks=WEEKS, population=POPULATION, steps=2)
        assert all(p.icer is None for p in result.points)

    def test_worker_count_does_not_change_results(self, params):
        serial = run_sensitivity_1d(params, "mu_1", weeks=WEEKS, population=POPULATION, max_workers=1)
        parallel = run_sensitivity_1d(params, "mu_1", weeks=WEEKS, population=POPULATION, max_workers=4)
        assert serial.points == parallel.points

    def test_frame_and_dict(self, params):
        result = run_sensitivity_1d(params, "mu_0", weeks=WEEKS, population=POPULATION, steps=2)
        frame = result.to_frame()
        assert list(frame["value"]) == result.values
        assert "secondary_value" not in frame.columns
        assert len(result.to_dict()["points"]) == 3

    @pytest.mark.parametrize("path", ["self_care_ai_active", "per_diem_costs", "no_such_field"])
    def test_non_numeric_paths_rejected(self, params, path):
        with pytest.raises(ParameterPathError):
            run_sensitivity_1d(params, path, weeks=WEEKS, population=POPULATION)


class TestTwoWay:
    def test_default_grid_is_six_by_six(self, params):
        result = run_sensitivity_2d(params, "mu_0", "per_diem_costs.L2",
                                    weeks=WEEKS, population=POPULATION)

        assert result.shape == (6, 6)
        assert result.costs.shape == (6, 6)
        assert len(result.points) == 36
        assert result.icer is None

        assert result.points[0].value == result.primary_values[0]
        assert result.points[0].secondary_value == result.secondary_values[0]
        assert result.points[1].value == result.primary_values[0]
        assert result.points[1].secondary_value == result.secondary_values[1]
        assert result.points[6].value == result.primary_values[1]

    def test_grid_indexed_primary_then_secondary(self, params):
        result = run_sensitivity_2d(params, "delta_u", "per_diem_costs.L2", weeks=WEEKS,
                                    population=POPULATION, steps=2)
        # Cost-only secondary axis leaves deaths unchanged along each row
        for row in result.deaths:
            np.testing.assert_allclose(row, row[0])
        assert np.all(np.diff(result.deaths[:, 0]) > 0)

    def test_icer_grid_with_baseline(self, params):
        baseline = run_scenario(params, Scenario(), weeks=WEEKS, population=POPULATION)
        scenario = Scenario(interventions=AIInterventions(chw_ai=True))
        result = run_sensitivity_2d(params, "mu_0", "rho_0", scenario=scenario, weeks=WEEKS,
                                    population=POPULATION, baseline=baseline, steps=1)
        assert result.icer.shape == (2, 2)

    def test_same_parameter_twice_rejected(self, params):
        with pytest.raises(ValidationError):
            run_sensitivity_2d(params, "mu_0", "mu_0", weeks=WEEKS, population=POPULATION)

    def test_to_dict_shapes(self, params):
        data = run_sensitivity_2d(params, "mu_0", "mu_1", weeks=WEEKS, population=POPULATION,
                                  steps=1).to_dict()
        assert len(data["deaths"]) == 2
        assert len(data["deaths"][0]) == 2
        assert len(data["points"]) == 4


class TestCompilerOwnedPaths:
    @pytest.mark.parametrize("path", ["queue_prevention_rate", "visit_reduction", "ai_fixed_cost"])
    def test_one_way_rejected(self, params, path):
        with pytest.raises(ParameterPathError):
            run_sensitivity_1d(params, path, weeks=WEEKS, population=POPULATION)

    def test_two_way_rejected(self, params):
        with pytest.raises(ParameterPathError):
            run_sensitivity_2d(params, "mu_0", "smart_routing_rate", weeks=WEEKS, population=POPULATION)
