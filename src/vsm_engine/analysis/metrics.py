"""
Lean metrics over a value stream.

Each metric is independently computable and reported as a value plus a
status from the configurable band tables in ``bands.py``.

Assumptions carried by the formulas:
- OEE uses a fixed performance factor (1.0 unless configured).
- First-time-through compounds the *mean* yield over the chain,
  ``mean(yield) ** n``. The true chained figure, ``prod(yield)``, is
  reported separately as rolled throughput yield.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from vsm_engine.analysis.bands import NOT_APPLICABLE, classify_metric
from vsm_engine.analysis.bottleneck import BottleneckAnalyzer
from vsm_engine.analysis.lead_time import LeadTimeCalculator, LeadTimeResult
from vsm_engine.model.core import FlowType, ValueStreamState

logger = logging.getLogger(__name__)

METRIC_UNITS = {
    "process_cycle_efficiency": ("%", "> 25%"),
    "oee": ("%", "> 85%"),
    "first_time_through": ("%", "> 95%"),
    "rolled_throughput_yield": ("%", "> 95%"),
    "value_added_ratio": ("%", "> 30%"),
    "inventory_turns": ("turns/year", "> 12"),
    "days_of_inventory": ("days", "< 15"),
    "capacity_utilization": ("%", "< 85%"),
}


@dataclass
class MetricValue:
    value: float
    status: str
    unit: str = ""
    target: str = ""


@dataclass
class MetricRecommendation:
    priority: str
    area: str
    suggestion: str
    impact: str
    effort: str


@dataclass
class LeanMetrics:
    takt_time: float
    process_cycle_efficiency: MetricValue
    oee: MetricValue
    first_time_through: MetricValue
    rolled_throughput_yield: MetricValue
    value_added_ratio: MetricValue
    inventory_turns: MetricValue
    days_of_inventory: MetricValue
    capacity_utilization: MetricValue
    flow_type: str
    recommendations: list[MetricRecommendation] = field(default_factory=list)

    def values(self) -> dict[str, float]:
        """Flat name -> number view, handy for diffs."""
        return {name: getattr(self, name).value for name in METRIC_UNITS}


class LeanMetricsCalculator:
    def __init__(
        self,
        config: dict[str, Any] | None = None,
        lead_time: LeadTimeCalculator | None = None,
        bottleneck: BottleneckAnalyzer | None = None,
    ) -> None:
        self.config = config or {}
        metrics_config = self.config.get("metrics", {})
        self.performance_factor = metrics_config.get("performance_factor", 1.0)
        self.days_per_year = metrics_config.get("days_per_year", 365)

        self.lead_time = lead_time or LeadTimeCalculator(self.config)
        self.bottleneck = bottleneck or BottleneckAnalyzer(self.config, self.lead_time)

    def _metric(self, name: str, value: float, defined: bool = True) -> MetricValue:
        unit, target = METRIC_UNITS[name]
        status = classify_metric(name, value, self.config) if defined else NOT_APPLICABLE
        return MetricValue(
            value=float(value),
            status=status,
            unit=unit,
            target=target,
        )

    def oee(self, state: ValueStreamState) -> float:
        if state.is_empty:
            return 0.0
        per_process = [
            p.uptime * self.performance_factor * p.yield_rate for p in state.processes
        ]
        return float(np.mean(per_process)) * 100

    def first_time_through(self, state: ValueStreamState) -> float:
        if state.is_empty:
            return 0.0
        mean_yield = float(np.mean([p.yield_rate for p in state.processes]))
        return mean_yield ** len(state.processes) * 100

    def rolled_throughput_yield(self, state: ValueStreamState) -> float:
        if state.is_empty:
            return 0.0
        return float(np.prod([p.yield_rate for p in state.processes])) * 100

    def inventory_turns(self, state: ValueStreamState) -> float:
        units = state.total_inventory_units
        if units > 0:
            return (state.daily_demand * self.days_per_year) / units
        return 0.0

    def days_of_inventory(self, state: ValueStreamState) -> float:
        units = state.total_inventory_units
        if units > 0:
            return units / state.daily_demand
        return 0.0

    def capacity_utilization(self, state: ValueStreamState) -> float:
        bottleneck = self.bottleneck.identify(state)
        if bottleneck is None:
            return 0.0
        return bottleneck.utilization * 100

    @staticmethod
    def flow_type(state: ValueStreamState) -> str:
        if state.is_empty:
            return "unknown"
        push = sum(1 for p in state.processes if p.flow_type == FlowType.PUSH)
        push_pct = push / len(state.processes) * 100
        if push_pct > 80:
            return "push_dominant"
        if push_pct > 50:
            return "mixed_push"
        if push_pct > 20:
            return "mixed_pull"
        return "pull_dominant"

    def calculate(
        self, state: ValueStreamState, lead_time: LeadTimeResult | None = None
    ) -> LeanMetrics:
        """
        All metrics. An empty value stream yields zeros throughout, and
        inventory metrics are zero when nothing is held; those carry the
        n/a status instead of a band.
        """
        if state.is_empty:
            return self._empty(state)

        lt = lead_time or self.lead_time.total_value_stream_lead_time(state)
        has_inventory = state.total_inventory_units > 0
        va_ratio = 0.0
        if lt.total_lead_time > 0:
            va_ratio = lt.value_added_time / lt.total_lead_time * 100

        metrics = LeanMetrics(
            takt_time=state.takt_time,
            process_cycle_efficiency=self._metric(
                "process_cycle_efficiency", lt.process_cycle_efficiency
            ),
            oee=self._metric("oee", self.oee(state)),
            first_time_through=self._metric(
                "first_time_through", self.first_time_through(state)
            ),
            rolled_throughput_yield=self._metric(
                "rolled_throughput_yield", self.rolled_throughput_yield(state)
            ),
            value_added_ratio=self._metric("value_added_ratio", va_ratio),
            inventory_turns=self._metric(
                "inventory_turns", self.inventory_turns(state), has_inventory
            ),
            days_of_inventory=self._metric(
                "days_of_inventory", self.days_of_inventory(state), has_inventory
            ),
            capacity_utilization=self._metric(
                "capacity_utilization", self.capacity_utilization(state)
            ),
            flow_type=self.flow_type(state),
        )
        metrics.recommendations = self.recommendations(metrics)

        logger.debug("Lean metrics for %s: %s", state.name, metrics.values())
        return metrics

    def _empty(self, state: ValueStreamState) -> LeanMetrics:
        zero = {name: self._metric(name, 0.0, defined=False) for name in METRIC_UNITS}
        return LeanMetrics(takt_time=state.takt_time, flow_type="unknown", **zero)

    @staticmethod
    def recommendations(metrics: LeanMetrics) -> list[MetricRecommendation]:
        recs: list[MetricRecommendation] = []
        if metrics.process_cycle_efficiency.value < 10:
            recs.append(
                MetricRecommendation(
                    "high",
                    "Process Efficiency",
                    "Focus on reducing wait time and inventory between processes",
                    "high",
                    "medium",
                )
            )
        if metrics.value_added_ratio.value < 20:
            recs.append(
                MetricRecommendation(
                    "high",
                    "Value Added Activities",
                    "Identify and eliminate non-value added activities",
                    "high",
                    "high",
                )
            )
        if metrics.days_of_inventory.value > 30:
            recs.append(
                MetricRecommendation(
                    "medium",
                    "Inventory Management",
                    "Implement pull system and reduce batch sizes",
                    "medium",
                    "medium",
                )
            )
        if metrics.first_time_through.value < 90:
            recs.append(
                MetricRecommendation(
                    "medium",
                    "Quality",
                    "Implement mistake-proofing and improve process controls",
                    "medium",
                    "high",
                )
            )
        return recs
