"""
Functional entry points.

Each call builds the calculators it needs from ``config`` (the parsed
engine configuration; ``None`` uses the built-in defaults) and returns a
dataclass result. Nothing here mutates the state passed in.
"""

from typing import Any

from vsm_engine.analysis.bottleneck import (
    Bottleneck,
    BottleneckAnalyzer,
    ImprovementSimulation,
    ImprovementType,
)
from vsm_engine.analysis.future_state import (
    FutureStateProjector,
    FutureStateResult,
    FutureStateTargets,
)
from vsm_engine.analysis.lead_time import LeadTimeCalculator, LeadTimeResult
from vsm_engine.analysis.metrics import LeanMetrics, LeanMetricsCalculator
from vsm_engine.analysis.opportunities import ImprovementAnalyzer, ImprovementOpportunity
from vsm_engine.analysis.takt import TaktCalculator, TaktResult
from vsm_engine.analysis.throughput import LittlesLawResult, ThroughputCalculator
from vsm_engine.model.core import ValueStreamState


def compute_takt_time(
    daily_demand: float, available_time: float, config: dict[str, Any] | None = None
) -> TaktResult:
    """Raises InvalidDemand when either input is not strictly positive."""
    return TaktCalculator(config).compute(daily_demand, available_time)


def compute_lead_time(
    state: ValueStreamState, config: dict[str, Any] | None = None
) -> LeadTimeResult:
    return LeadTimeCalculator(config).total_value_stream_lead_time(state)


def compute_lean_metrics(
    state: ValueStreamState, config: dict[str, Any] | None = None
) -> LeanMetrics:
    return LeanMetricsCalculator(config).calculate(state)


def identify_bottleneck(
    state: ValueStreamState, config: dict[str, Any] | None = None
) -> Bottleneck | None:
    return BottleneckAnalyzer(config).identify(state)


def analyze_improvement_opportunities(
    state: ValueStreamState, config: dict[str, Any] | None = None
) -> list[ImprovementOpportunity]:
    return ImprovementAnalyzer(config).analyze(state)


def project_future_state(
    state: ValueStreamState,
    targets: FutureStateTargets | dict[str, Any] | None = None,
    config: dict[str, Any] | None = None,
) -> FutureStateResult:
    return FutureStateProjector(config).project(state, targets)


def simulate_bottleneck_improvement(
    state: ValueStreamState,
    improvement_type: ImprovementType | str,
    value: float,
    config: dict[str, Any] | None = None,
) -> ImprovementSimulation | None:
    """What-if on the current bottleneck; None when the stream is empty."""
    analyzer = BottleneckAnalyzer(config)
    bottleneck = analyzer.identify(state)
    if bottleneck is None:
        return None
    return analyzer.simulate_improvement(state, bottleneck, improvement_type, value)


def littles_law_check(
    state: ValueStreamState, config: dict[str, Any] | None = None
) -> LittlesLawResult:
    return ThroughputCalculator(config).littles_law_check(state)
