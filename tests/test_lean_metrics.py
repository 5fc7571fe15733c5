import numpy as np
import pytest

from vsm_engine import compute_lean_metrics
from vsm_engine.analysis.bands import classify, classify_metric
from vsm_engine.analysis.metrics import METRIC_UNITS, LeanMetricsCalculator
from vsm_engine.model.core import FlowType, Inventory, Process, ValueStreamState


@pytest.fixture
def state():
    return ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="P1", name="Cut", cycle_time=5, yield_rate=0.9),
            Process(
                id="P2",
                name="Weld",
                cycle_time=8,
                yield_rate=0.8,
                flow_type=FlowType.PULL,
                inventory_before=4,
            ),
        ],
        inventories=[Inventory(id="I1", name="Raw", quantity=20)],
    )


def test_oee_ftt_and_rolled_yield(state):
    calc = LeanMetricsCalculator()
    assert calc.oee(state) == pytest.approx((0.95 * 0.9 + 0.95 * 0.8) / 2 * 100)
    assert calc.first_time_through(state) == pytest.approx(0.85**2 * 100)
    assert calc.rolled_throughput_yield(state) == pytest.approx(72.0)


def test_performance_factor_is_configurable(state):
    calc = LeanMetricsCalculator({"metrics": {"performance_factor": 0.5}})
    assert calc.oee(state) == pytest.approx((0.95 * 0.9 + 0.95 * 0.8) / 4 * 100)


def test_inventory_metrics_include_process_wip(state):
    metrics = compute_lean_metrics(state)
    assert metrics.days_of_inventory.value == pytest.approx(24 / 48)
    assert metrics.inventory_turns.value == pytest.approx(48 * 365 / 24)
    assert metrics.days_of_inventory.status == "excellent"
    assert metrics.inventory_turns.unit == "turns/year"


def test_capacity_utilization_and_flow_type(state):
    metrics = compute_lean_metrics(state)
    assert metrics.capacity_utilization.value == pytest.approx(80.0)
    assert metrics.capacity_utilization.status == "excellent"
    assert metrics.flow_type == "mixed_pull"
    assert metrics.takt_time == 10.0


@pytest.mark.parametrize(
    "pull_count,expected",
    [
        (0, "push_dominant"),
        (1, "mixed_push"),
        (2, "mixed_push"),
        (3, "mixed_pull"),
        (4, "pull_dominant"),
    ],
)
def test_flow_type_shares(pull_count, expected):
    processes = [
        Process(
            id=f"P{i}",
            name=f"Step {i}",
            cycle_time=1,
            flow_type=FlowType.PULL if i < pull_count else FlowType.PUSH,
        )
        for i in range(5)
    ]
    state = ValueStreamState(daily_demand=10, available_time=100, processes=processes)
    assert LeanMetricsCalculator.flow_type(state) == expected


def test_pce_within_bounds(state):
    rng = np.random.default_rng(42)
    for _ in range(25):
        for process in state.processes:
            process.cycle_time = float(rng.uniform(0.1, 20))
            process.value_added = bool(rng.integers(0, 2))
            process.inventory_before = float(rng.integers(0, 30))
        pce = compute_lean_metrics(state).process_cycle_efficiency.value
        assert 0 <= pce <= 100


def test_empty_stream_metrics_are_zero():
    metrics = compute_lean_metrics(ValueStreamState(daily_demand=48, available_time=480))
    assert all(v == 0 for v in metrics.values().values())
    assert set(metrics.values()) == set(METRIC_UNITS)
    assert all(getattr(metrics, name).status == "n/a" for name in METRIC_UNITS)
    assert metrics.flow_type == "unknown"
    assert metrics.takt_time == 10.0
    assert metrics.recommendations == []


def test_recommendations(state):
    state.update_process("P2", inventory_before=3000, value_added=False)
    areas = [r.area for r in compute_lean_metrics(state).recommendations]
    assert areas == [
        "Process Efficiency",
        "Value Added Activities",
        "Inventory Management",
        "Quality",
    ]


def test_band_classification():
    higher = {"higher_is_better": True, "bands": [[25, "excellent"], [15, "good"], [5, "fair"]]}
    assert classify(30, higher) == "excellent"
    assert classify(25, higher) == "good"
    assert classify(6, higher) == "fair"
    assert classify(5, higher) == "poor"

    lower = {"higher_is_better": False, "bands": [[15, "excellent"], [30, "good"]]}
    assert classify(10, lower) == "excellent"
    assert classify(15, lower) == "good"
    assert classify(30, lower) == "poor"


def test_status_bands_from_config():
    config = {"status_bands": {"oee": {"higher_is_better": True, "bands": [[50, "fine"]]}}}
    assert classify_metric("oee", 60, config) == "fine"
    assert classify_metric("first_time_through", 96, config) == "excellent"
    with pytest.raises(KeyError):
        classify_metric("happiness", 1, config)
