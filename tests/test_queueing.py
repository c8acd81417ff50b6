import numpy as np
import pytest

from healthflow.parameters import Parameters
from healthflow.queueing import (
    LEVELS, advance_queues, clearance_boosts, empty_queues, exit_rates,
    exit_rate_total
)


def total_out(flows):
    return (flows.deaths + flows.abandoned + flows.bypassed + flows.self_resolved
            + sum(flows.cleared.values()))


def test_empty_backlog_stays_empty(params):
    flows = advance_queues(empty_queues(), empty_queues(), params, 1.0)
    assert flows.queues == empty_queues()
    assert total_out(flows) == 0.0


def test_exit_order_and_clearance(params):
    flows = advance_queues({"L0": 100.0}, {"L0": 10.0}, params, 1.0)

    assert flows.deaths == pytest.approx(1.5)
    assert flows.abandoned == pytest.approx(15.0)
    assert flows.bypassed == pytest.approx(20.0)
    assert flows.self_resolved == pytest.approx(10.0)
    assert flows.cleared["L0"] == pytest.approx(30.0)
    # 100 - 46.5 exits - 30 cleared + 10 new
    assert flows.queues["L0"] == pytest.approx(33.5)
    assert flows.queues["L1"] == 0.0


def test_clearance_scales_with_capacity(params):
    flows = advance_queues({"L2": 100.0}, empty_queues(), params, 0.5)
    assert flows.cleared["L2"] == pytest.approx(15.0)


def test_clearance_capped_by_remaining_backlog():
    params = Parameters(resolution_boost=10.0)
    flows = advance_queues({"L0": 100.0}, empty_queues(), params, 1.0)
    assert flows.cleared["L0"] == pytest.approx(53.5)
    assert flows.queues["L0"] == pytest.approx(0.0)


def test_exit_rates_scaled_when_above_one():
    params = Parameters(queue_abandonment_rate=0.9, queue_bypass_rate=0.9)
    rates = exit_rates(params)
    assert rates.sum() == pytest.approx(1.0)
    assert exit_rate_total(params) == pytest.approx(1.8 + params.delta_u + params.queue_self_resolve_rate)

    flows = advance_queues({"L1": 50.0}, empty_queues(), params, 1.0)
    assert flows.cleared["L1"] == 0.0
    assert flows.queues["L1"] == pytest.approx(0.0)


def test_queue_flows_conserve_patients():
    params = Parameters(discharge_optimization=0.4, treatment_efficiency=0.3)
    backlog = {"L0": 40.0, "L1": 25.0, "L2": 60.0, "L3": 5.0}
    arrivals = {"L0": 3.0, "L1": 7.0, "L2": 0.0, "L3": 11.0}
    flows = advance_queues(backlog, arrivals, params, 0.7)

    assert sum(flows.queues.values()) + total_out(flows) == pytest.approx(
        sum(backlog.values()) + sum(arrivals.values())
    )
    assert all(value >= 0.0 for value in flows.queues.values())


def test_clearance_boosts_by_level():
    params = Parameters(resolution_boost=0.1, point_of_care_resolution=0.2,
                        length_of_stay_reduction=0.3, discharge_optimization=0.1,
                        treatment_efficiency=0.05, resource_utilization=0.4)
    boosts = clearance_boosts(params)
    assert len(boosts) == len(LEVELS)
    np.testing.assert_allclose(boosts, [0.1, 0.2, 0.45, 0.85])


def test_inputs_not_mutated(params):
    backlog = {"L0": 10.0, "L1": 0.0, "L2": 0.0, "L3": 0.0}
    advance_queues(backlog, empty_queues(), params, 1.0)
    assert backlog["L0"] == 10.0
