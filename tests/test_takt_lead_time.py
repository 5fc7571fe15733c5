import pytest

from vsm_engine import compute_lead_time, compute_takt_time, littles_law_check
from vsm_engine.analysis.lead_time import LeadTimeCalculator
from vsm_engine.analysis.takt import TaktCalculator
from vsm_engine.analysis.throughput import ThroughputCalculator
from vsm_engine.errors import InvalidDemand
from vsm_engine.model.core import Inventory, Process, ValueStreamState


@pytest.fixture
def two_step():
    # takt = 10 min; the second step is the bottleneck
    return ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="P1", name="Cut", cycle_time=5),
            Process(
                id="P2",
                name="Weld",
                cycle_time=15,
                value_added=False,
                inventory_before=10,
            ),
        ],
    )


@pytest.mark.parametrize(
    "demand,available,expected",
    [(48, 480, 10.0), (7, 450, 450 / 7), (960, 480, 0.5), (1, 0.3, 0.3)],
)
def test_takt_is_exact_ratio(demand, available, expected):
    first = compute_takt_time(demand, available)
    second = compute_takt_time(demand, available)
    assert first.value == available / demand
    assert first.value == expected
    assert first == second


@pytest.mark.parametrize("demand,available", [(0, 480), (-1, 480), (48, 0), (48, -10)])
def test_takt_rejects_non_positive_inputs(demand, available):
    with pytest.raises(InvalidDemand):
        compute_takt_time(demand, available)


def test_takt_status_and_rates():
    result = compute_takt_time(240, 480)
    assert result.status == "optimal"
    assert result.units_per_hour == 30.0
    assert result.units_per_period == 240.0
    assert result.recommendations == []

    fast = compute_takt_time(2000, 480)
    assert fast.status == "very_fast"
    assert fast.recommendations[0].type == "warning"

    assert compute_takt_time(960, 480).status == "fast"
    assert compute_takt_time(48, 480).status == "very_slow"


def test_takt_critical_recommendation(two_step):
    result = TaktCalculator().for_state(two_step)
    critical = [r for r in result.recommendations if r.type == "critical"]
    assert len(critical) == 1
    assert "Weld" in critical[0].message


def test_required_resources(two_step):
    resources = TaktCalculator().required_resources(two_step)
    assert resources.operators == 3
    assert resources.machines == 2
    assert resources.shifts == 2


def test_demand_change(two_step):
    change = TaktCalculator().simulate_demand_change(two_step, 96)
    assert change.new_takt == 5.0
    assert change.takt_change_pct == pytest.approx(-50.0)
    assert change.throughput_change_pct == pytest.approx(100.0)
    assert change.operators_change == 1
    assert change.machines_change == 0
    assert change.shifts_change == 1
    assert change.monthly_labor_cost == 1 * 25 * 8 * 20
    assert change.total_monthly_cost == change.monthly_labor_cost


def test_demand_sensitivity(two_step):
    scenarios = TaktCalculator().demand_sensitivity(two_step)
    assert [round(s.new_demand, 6) for s in scenarios] == [
        33.6,
        38.4,
        43.2,
        52.8,
        57.6,
        62.4,
    ]


def test_optimize_takt_time(two_step):
    result = TaktCalculator().optimize_takt_time(two_step)
    assert result.target_utilization == 0.85
    assert result.optimal_cycle_time == pytest.approx(15 / 0.85)
    assert result.optimal_demand == 27

    half = TaktCalculator().optimize_takt_time(two_step, 0.5)
    assert half.target_utilization == 0.5
    assert half.optimal_cycle_time == pytest.approx(30.0)

    for bad in (0, 0.0, -0.1):
        with pytest.raises(ValueError):
            TaktCalculator().optimize_takt_time(two_step, bad)

    empty = ValueStreamState(daily_demand=48, available_time=480)
    assert TaktCalculator().optimize_takt_time(empty) is None


def test_no_inventory_means_no_wait_or_queue():
    calc = LeadTimeCalculator()
    for cycle in (0.5, 3, 12):
        lt = calc.process_lead_time(Process(id="P", name="Step", cycle_time=cycle), 7.0)
        assert lt.waiting_time == 0
        assert lt.queue_time == 0
        assert lt.total == cycle + 5.0


def test_process_lead_time_components():
    process = Process(
        id="P", name="Step", cycle_time=4, setup_time=30, batch_size=10, inventory_before=6
    )
    lt = LeadTimeCalculator().process_lead_time(process, 2.0)
    assert lt.processing_time == 4
    assert lt.waiting_time == 12
    assert lt.setup_time_per_unit == 3
    assert lt.move_time == 5
    assert lt.queue_time == 10
    assert lt.total == 34

    simple = LeadTimeCalculator.simplified().process_lead_time(process, 2.0)
    assert simple.total == 19


def test_value_stream_lead_time(two_step):
    two_step.inventories.append(Inventory(id="I1", name="Raw", quantity=3))
    result = compute_lead_time(two_step)

    # P1: 5 + 5 move; P2: 15 + 100 wait + 5 move + 90 queue; I1: 30
    assert result.total_lead_time == 250
    assert result.breakdown.waiting == 100
    assert result.breakdown.inventory == 30
    assert result.value_added_time == 5
    assert result.non_value_added_time == 245
    assert result.process_cycle_efficiency == pytest.approx(2.0)
    assert [p.process_id for p in result.processes] == ["P1", "P2"]


def test_lead_time_config_switches(two_step):
    config = {"lead_time": {"move_time_minutes": 2, "include_queue_time": False}}
    result = compute_lead_time(two_step, config)
    assert result.total_lead_time == 5 + 2 + 15 + 100 + 2


def test_empty_stream_lead_time():
    result = compute_lead_time(ValueStreamState(daily_demand=10, available_time=100))
    assert result.total_lead_time == 0
    assert result.process_cycle_efficiency == 0


def test_throughput_and_littles_law(two_step):
    throughput = ThroughputCalculator().throughput(two_step)
    # 60 / (15 / (0.95 * 0.98))
    assert throughput == pytest.approx(60 / 15 * 0.95 * 0.98)

    check = littles_law_check(two_step)
    assert check.lead_time == 220
    assert check.theoretical_wip == pytest.approx(throughput * 220 / 60)
    assert check.actual_wip == 10
    assert check.difference == pytest.approx(10 - check.theoretical_wip)

    empty = littles_law_check(ValueStreamState(daily_demand=10, available_time=100))
    assert empty.throughput == 0
    assert empty.efficiency == 0
