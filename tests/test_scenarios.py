"""End-to-end checks on small reference value streams."""

import pytest

from vsm_engine import (
    analyze_improvement_opportunities,
    compute_lead_time,
    compute_lean_metrics,
    compute_takt_time,
    identify_bottleneck,
    project_future_state,
)
from vsm_engine.model.core import Inventory, Process, ValueStreamState

SIMPLIFIED = {"lead_time": {"move_time_minutes": 0.0, "include_queue_time": False}}


@pytest.fixture
def single_step():
    return ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(
                id="P1",
                name="Machining",
                cycle_time=10,
                setup_time=0,
                inventory_before=0,
                value_added=True,
            )
        ],
    )


@pytest.fixture
def two_step():
    return ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="P1", name="Cut", cycle_time=5, value_added=True),
            Process(
                id="P2",
                name="Inspect",
                cycle_time=15,
                value_added=False,
                inventory_before=10,
            ),
        ],
    )


def test_single_step_at_takt(single_step):
    assert compute_takt_time(48, 480).value == 10

    bottleneck = identify_bottleneck(single_step, SIMPLIFIED)
    assert bottleneck.utilization == 1.0
    assert bottleneck.severity == "bottleneck"

    lead_time = compute_lead_time(single_step, SIMPLIFIED)
    assert lead_time.total_lead_time == 10
    assert lead_time.process_cycle_efficiency == 100.0
    assert compute_lean_metrics(single_step, SIMPLIFIED).process_cycle_efficiency.value == 100.0


def test_single_step_default_move_time(single_step):
    # 10 min processing + 5 min move
    lead_time = compute_lead_time(single_step)
    assert lead_time.process_cycle_efficiency == pytest.approx(10 / 15 * 100)


def test_downstream_bottleneck_with_queue(two_step):
    bottleneck = identify_bottleneck(two_step)
    assert bottleneck.process.id == "P2"
    assert bottleneck.utilization == 1.5
    assert bottleneck.severity == "critical_bottleneck"
    assert bottleneck.is_critical

    lead_time = compute_lead_time(two_step)
    assert lead_time.processes[1].waiting_time == 100
    assert lead_time.breakdown.waiting == 100
    assert lead_time.total_lead_time >= 100 + 5 + 15

    simple = compute_lead_time(two_step, SIMPLIFIED)
    assert simple.total_lead_time == 5 + 15 + 100


def test_zero_inventory_metrics_are_defined():
    state = ValueStreamState(
        daily_demand=100,
        available_time=480,
        processes=[Process(id="P1", name="Cut", cycle_time=2)],
        inventories=[Inventory(id="I1", name="Raw", quantity=0)],
    )
    metrics = compute_lean_metrics(state)
    assert metrics.days_of_inventory.value == 0
    assert metrics.inventory_turns.value == 0
    # nothing held, so neither figure is rated
    assert metrics.days_of_inventory.status == "n/a"
    assert metrics.inventory_turns.status == "n/a"
    assert metrics.capacity_utilization.status != "n/a"


def test_empty_stream_is_fully_defined():
    state = ValueStreamState(daily_demand=48, available_time=480)
    assert identify_bottleneck(state) is None
    assert all(v == 0 for v in compute_lean_metrics(state).values().values())
    assert analyze_improvement_opportunities(state) == []

    future = project_future_state(state)
    assert future.improvements == []
    assert future.current.bottleneck is None
    assert all(gap.change_pct == 0 for gap in future.gap_analysis.values())

    fin = future.financial
    assert fin.quality_savings == 0
    assert fin.total_annual_savings == 0
    assert fin.implementation_cost == 0
    assert fin.payback_months is None
    assert fin.break_even_days is None
