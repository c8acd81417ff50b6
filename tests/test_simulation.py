import pytest

from healthflow.ai_effects import AIInterventions, compile_ai_effects
from healthflow.config import Config
from healthflow.exceptions import ValidationError
from healthflow.parameters import Parameters
from healthflow.simulation import initial_state, run_simulation, summarize_queues

POPULATION = 10000


def test_records_requested_weeks(params):
    results = run_simulation(params, weeks=12, population=POPULATION)
    assert len(results.weekly_states) == 12
    assert results.weeks == 12


def test_burn_in_is_discarded(params):
    results = run_simulation(params, weeks=3, population=POPULATION, burn_in_weeks=10)
    first = results.weekly_states[0]
    start = initial_state(POPULATION, params.incidence_rate)
    weekly = params.incidence_rate * POPULATION / Config.WEEKS_PER_YEAR
    assert first.cumulative_incidence == pytest.approx(start.cumulative_incidence + 10 * weekly)


def test_without_burn_in_first_week_is_initial_state(params):
    results = run_simulation(params, weeks=3, population=POPULATION, burn_in_weeks=0)
    assert results.weekly_states[0] == initial_state(POPULATION, params.incidence_rate)


def test_outcomes_come_from_last_recorded_state(params):
    results = run_simulation(params, weeks=8, population=POPULATION)
    assert results.cumulative_deaths == results.final_state.dead
    assert results.cumulative_resolved == results.final_state.resolved
    assert results.queue_related_deaths == results.final_state.queue_related_deaths


@pytest.mark.parametrize("weeks", [0, -3, 2.5])
def test_invalid_weeks_rejected(params, weeks):
    with pytest.raises(ValidationError):
        run_simulation(params, weeks=weeks, population=POPULATION)


def test_negative_population_rejected(params):
    with pytest.raises(ValidationError):
        run_simulation(params, weeks=4, population=-1)


def test_zero_population(params):
    results = run_simulation(params, weeks=5, population=0)
    assert results.cumulative_deaths == 0.0
    assert results.total_cost == 0.0
    assert results.dalys == 0.0
    assert results.queue_summary is None


class TestInitialState:
    def test_one_week_of_incidence_untreated(self):
        state = initial_state(52000, 0.2)
        assert state.untreated == pytest.approx(200.0)
        assert state.cumulative_incidence == pytest.approx(200.0)

    def test_partial_overrides(self, params):
        results = run_simulation(params, weeks=4, population=POPULATION,
                                 initial={"l1": 50.0}, burn_in_weeks=0)
        first = results.weekly_states[0]
        assert first.l1 == 50.0
        for state in results.weekly_states:
            assert state.accounted_patients == pytest.approx(state.cumulative_incidence)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            initial_state(POPULATION, 0.2, {"zombies": 3.0})


class TestMonotonicity:
    def test_deaths_rise_with_untreated_mortality(self):
        low = run_simulation(Parameters(delta_u=0.01), weeks=20, population=POPULATION)
        high = run_simulation(Parameters(delta_u=0.05), weeks=20, population=POPULATION)
        assert high.cumulative_deaths > low.cumulative_deaths

    def test_flows_scale_with_population(self, params):
        small = run_simulation(params, weeks=10, population=POPULATION)
        large = run_simulation(params, weeks=10, population=2 * POPULATION)
        assert large.cumulative_deaths == pytest.approx(2 * small.cumulative_deaths)
        assert large.dalys == pytest.approx(2 * small.dalys)

    def test_absorbing_stocks_never_fall_under_full_ai_and_congestion(self):
        params = compile_ai_effects(Parameters(system_congestion=0.9), AIInterventions.all_on())
        results = run_simulation(params, weeks=30, population=POPULATION)
        for before, after in zip(results.weekly_states, results.weekly_states[1:]):
            assert after.resolved >= before.resolved
            assert after.dead >= before.dead


class TestQueueSummary:
    def test_none_without_queues(self, params):
        assert run_simulation(params, weeks=6, population=POPULATION).queue_summary is None

    def test_summary_under_congestion(self, congested_params):
        results = run_simulation(congested_params, weeks=6, population=POPULATION)
        summary = results.queue_summary
        assert summary is not None
        assert summary.weeks_with_queues == 6
        for level, peak in summary.peak_length.items():
            assert peak >= summary.average_length[level]
        assert summary.total_queued_patients == pytest.approx(
            sum(state.total_queued for state in results.weekly_states)
        )

    def test_empty_history(self):
        assert summarize_queues([]) is None


class TestSerialization:
    def test_to_dict_without_baseline(self, params):
        data = run_simulation(params, weeks=4, population=POPULATION).to_dict()
        assert data["icer"] is None
        assert data["raw_icer"] is None
        assert "weekly" not in data

    def test_to_dict_with_weekly_rows(self, params):
        data = run_simulation(params, weeks=4, population=POPULATION).to_dict(include_weekly=True)
        assert len(data["weekly"]) == 4
        assert {"week", "U", "D", "queue_L0", "patient_days_L2"} <= set(data["weekly"][0])

    def test_infinite_icer_becomes_sentinel(self, params):
        results = run_simulation(params, weeks=4, population=POPULATION)
        compared = results.with_baseline(results)
        data = compared.to_dict()
        assert data["raw_icer"] == Config.NUMERIC_SENTINEL
        assert data["icer"] == Config.NUMERIC_SENTINEL

    def test_weekly_frame(self, params):
        frame = run_simulation(params, weeks=5, population=POPULATION).weekly_frame()
        assert len(frame) == 5
        assert list(frame["week"]) == [0, 1, 2, 3, 4]
        assert (frame["D"].diff().dropna() >= 0).all()


def test_queue_exit_warning_logged_once_per_run(caplog):
    params = Parameters(queue_abandonment_rate=0.9, queue_bypass_rate=0.9)
    run_simulation(params, weeks=10, population=POPULATION)
    warnings = [r for r in caplog.records if "exit rates" in r.getMessage()]
    assert len(warnings) == 1
