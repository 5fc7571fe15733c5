import pytest

from vsm_engine import identify_bottleneck, simulate_bottleneck_improvement
from vsm_engine.analysis.bands import classify_severity
from vsm_engine.analysis.bottleneck import BottleneckAnalyzer, ImprovementType
from vsm_engine.model.core import Process, ValueStreamState


@pytest.fixture
def line():
    return ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="P1", name="Cut", cycle_time=5),
            Process(
                id="P2",
                name="Weld",
                cycle_time=15,
                setup_time=20,
                batch_size=10,
                uptime=0.9,
                inventory_before=10,
            ),
            Process(id="P3", name="Pack", cycle_time=9, machines=2),
        ],
    )


def test_empty_stream_has_no_bottleneck():
    assert identify_bottleneck(ValueStreamState(daily_demand=1, available_time=1)) is None


def test_identify_highest_utilization(line):
    bottleneck = identify_bottleneck(line)
    assert bottleneck.process.id == "P2"
    assert bottleneck.position == 1
    assert bottleneck.utilization == 1.5
    assert bottleneck.severity == "critical_bottleneck"
    assert bottleneck.is_critical
    assert bottleneck.total_time == 17.0
    # (2/3) * 1 - min(1, 10/10) * 0.3
    assert bottleneck.flow_impact == pytest.approx(2 / 3 - 0.3)


def test_flow_impact_redundancy(line):
    analyzer = BottleneckAnalyzer()
    assert analyzer.flow_impact(line, 2) == pytest.approx(1.0 * 0.8)
    assert analyzer.flow_impact(line, 0) == pytest.approx(1 / 3)
    assert analyzer.flow_impact(line, 5) == 0.0


def test_tie_goes_to_downstream_step_with_high_flow_impact():
    state = ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="A", name="First", cycle_time=8),
            Process(id="B", name="Second", cycle_time=8),
        ],
    )
    assert identify_bottleneck(state).process.id == "B"


def test_tie_keeps_earlier_step_when_flow_impact_low():
    state = ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[
            Process(id="A", name="First", cycle_time=8),
            Process(id="B", name="Second", cycle_time=8, inventory_before=10),
        ],
    )
    assert identify_bottleneck(state).process.id == "A"


@pytest.mark.parametrize(
    "utilization,severity",
    [
        (1.5, "critical_bottleneck"),
        (1.2, "bottleneck"),
        (1.0, "bottleneck"),
        (0.95, "potential_bottleneck"),
        (0.9, "capacity_constraint"),
        (0.85, "capacity_constraint"),
        (0.8, "balanced"),
        (0.2, "balanced"),
    ],
)
def test_severity_bands(utilization, severity):
    assert classify_severity(utilization) == severity


def test_efficiency_and_suggestions(line):
    bottleneck = identify_bottleneck(line)
    assert bottleneck.efficiency.cycle_time == pytest.approx(10 / 15 * 100)
    assert bottleneck.efficiency.uptime == pytest.approx(90.0)

    areas = [s.area for s in bottleneck.suggestions]
    assert areas == ["cycle_time", "setup_time", "capacity", "uptime"]
    assert "SMED" in bottleneck.suggestions[1].methods[0]


def test_no_suggestions_for_balanced_redundant_step():
    state = ValueStreamState(
        daily_demand=48,
        available_time=480,
        processes=[Process(id="P1", name="Pack", cycle_time=5, machines=2, uptime=0.97)],
    )
    assert identify_bottleneck(state).suggestions == []


def test_lead_time_impact(line):
    impact = identify_bottleneck(line).lead_time_impact
    # 15 + 100 wait + 2 setup + 5 move + 90 queue
    assert impact.current_lead_time == 212
    assert impact.ideal_lead_time == 15
    assert impact.wait_time_impact == 197


def test_multiple_bottlenecks(line):
    line.update_process("P3", cycle_time=11)
    analysis = BottleneckAnalyzer().analyze_multiple(line)
    assert analysis.count == 2
    assert [c.process.id for c in analysis.bottlenecks] == ["P2", "P3"]
    assert analysis.bottlenecks[0].severity_score == 1.0
    assert analysis.bottlenecks[1].severity_score == 0.8
    assert analysis.bottlenecks[0].position == 2
    assert analysis.has_critical
    assert [a["type"] for a in analysis.recommended_actions] == [
        "balancing",
        "system_design",
    ]


def test_simulate_cycle_time_reduction(line):
    before = line.snapshot()
    sim = simulate_bottleneck_improvement(line, ImprovementType.CYCLE_TIME, 0.5)

    assert sim.simulated_process.cycle_time == 7.5
    assert sim.new_utilization == 0.75
    assert sim.improvement_impact == pytest.approx(50.0)
    assert not sim.is_still_bottleneck
    assert sim.next_bottleneck is None
    assert sim.throughput.improvement == pytest.approx(100.0)
    assert line == before


def test_simulate_added_machine_keeps_bottleneck(line):
    sim = simulate_bottleneck_improvement(line, "machines", 1)
    assert sim.simulated_process.machines == 2
    assert sim.is_still_bottleneck
    assert sim.next_bottleneck.process.id == "P3"
    assert sim.next_bottleneck.utilization == pytest.approx(0.9)
    assert line.get_process("P2").machines == 1


def test_simulate_uptime_is_capped(line):
    sim = simulate_bottleneck_improvement(line, ImprovementType.UPTIME, 0.5)
    assert sim.simulated_process.uptime == 1.0
    assert sim.improvement_impact == pytest.approx(10.0)


def test_simulate_rejects_bad_input(line):
    with pytest.raises(ValueError):
        simulate_bottleneck_improvement(line, "paint", 0.1)
    with pytest.raises(ValueError):
        simulate_bottleneck_improvement(line, ImprovementType.SETUP_TIME, 1.0)


def test_simulate_on_empty_stream():
    empty = ValueStreamState(daily_demand=1, available_time=1)
    assert simulate_bottleneck_improvement(empty, "cycle_time", 0.1) is None
