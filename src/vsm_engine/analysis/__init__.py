"""Calculators that derive lean metrics and projections from a value stream."""

from vsm_engine.analysis.bottleneck import Bottleneck, BottleneckAnalyzer, ImprovementType
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

__all__ = [
    "Bottleneck",
    "BottleneckAnalyzer",
    "FutureStateProjector",
    "FutureStateResult",
    "FutureStateTargets",
    "ImprovementAnalyzer",
    "ImprovementOpportunity",
    "ImprovementType",
    "LeadTimeCalculator",
    "LeadTimeResult",
    "LeanMetrics",
    "LeanMetricsCalculator",
    "LittlesLawResult",
    "TaktCalculator",
    "TaktResult",
    "ThroughputCalculator",
]
