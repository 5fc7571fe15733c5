"""
Improvement opportunity rules.

Rules fire against fixed, overridable thresholds and produce typed
opportunities ordered high -> medium -> low (stable within a priority).

The ROI attached to each opportunity is a lookup on the qualitative
effort/impact classes, not a model of the user's financials. Treat it as
an order-of-magnitude heuristic only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from vsm_engine.analysis.bottleneck import BottleneckAnalyzer
from vsm_engine.analysis.lead_time import LeadTimeCalculator
from vsm_engine.model.core import ValueStreamState

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}

DEFAULT_IMPLEMENTATION_COST = {"high": 50000, "medium": 25000, "low": 10000}
DEFAULT_ANNUAL_SAVINGS = {"high": 100000, "medium": 50000, "low": 20000}

TIMELINE_BY_EFFORT = {"high": "2-4 months", "medium": "1-3 months", "low": "2-4 weeks"}
RESOURCES_BY_EFFORT = {
    "high": [
        "Process Engineer",
        "Maintenance Team",
        "Quality Engineer",
        "Operations Manager",
    ],
    "medium": ["Process Engineer", "Operations Supervisor"],
    "low": ["Team Leader", "Operators"],
}


@dataclass
class RoiEstimate:
    implementation_cost: float
    annual_savings: float
    roi_pct: float
    payback_months: float
    net_benefit: float


@dataclass
class ImprovementOpportunity:
    id: str
    category: str  # bottleneck | inventory | waste | quality | flow
    priority: str
    title: str
    description: str
    impact: str
    effort: str
    estimated_savings: str
    actions: list[str] = field(default_factory=list)
    roi: RoiEstimate | None = None


@dataclass
class PlannedOpportunity:
    opportunity: ImprovementOpportunity
    timeline: str
    resources: list[str]


@dataclass
class ImprovementPlan:
    opportunities: list[PlannedOpportunity]
    total_investment: float
    total_annual_savings: float
    overall_roi_pct: float
    payback_months: float | None  # None when nothing is saved


@dataclass
class InventoryAnalysis:
    total_inventory: float
    optimal_inventory: float
    excess_units: float
    excess_pct: float
    has_excess: bool


@dataclass
class QualityAnalysis:
    mean_yield: float
    defect_rate: float
    daily_defects: float
    daily_defect_cost: float


class ImprovementAnalyzer:
    """Scans a value stream and emits prioritised improvement opportunities."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        lead_time: LeadTimeCalculator | None = None,
        bottleneck: BottleneckAnalyzer | None = None,
    ) -> None:
        config = config or {}
        opp_config = config.get("opportunities", {})
        roi_config = config.get("roi", {})

        self.optimal_inventory_days = opp_config.get("optimal_inventory_days", 1.5)
        self.excess_tolerance_days = opp_config.get("excess_tolerance_days", 0.5)
        self.max_defect_rate = opp_config.get("max_defect_rate", 0.02)
        self.min_flow_efficiency = opp_config.get("min_flow_efficiency", 0.3)
        self.defect_cost_per_unit = opp_config.get("defect_cost_per_unit", 50)

        self.implementation_cost = roi_config.get(
            "implementation_cost", DEFAULT_IMPLEMENTATION_COST
        )
        self.annual_savings = roi_config.get("annual_savings", DEFAULT_ANNUAL_SAVINGS)
        self.plan_size = roi_config.get("plan_size", 5)

        self.lead_time = lead_time or LeadTimeCalculator(config)
        self.bottleneck = bottleneck or BottleneckAnalyzer(config, self.lead_time)

    def analyze_inventory(self, state: ValueStreamState) -> InventoryAnalysis:
        total = state.total_inventory_units
        optimal = state.daily_demand * self.optimal_inventory_days
        excess = max(0.0, total - optimal)
        return InventoryAnalysis(
            total_inventory=total,
            optimal_inventory=optimal,
            excess_units=excess,
            excess_pct=(excess / total) * 100 if total > 0 else 0.0,
            has_excess=excess > state.daily_demand * self.excess_tolerance_days,
        )

    def analyze_quality(self, state: ValueStreamState) -> QualityAnalysis:
        mean_yield = 1.0
        if not state.is_empty:
            mean_yield = float(np.mean([p.yield_rate for p in state.processes]))
        defect_rate = 1 - mean_yield
        daily_defects = state.daily_demand * defect_rate
        return QualityAnalysis(
            mean_yield=mean_yield,
            defect_rate=defect_rate,
            daily_defects=daily_defects,
            daily_defect_cost=daily_defects * self.defect_cost_per_unit,
        )

    def analyze(self, state: ValueStreamState) -> list[ImprovementOpportunity]:
        """Empty value streams produce no opportunities."""
        if state.is_empty:
            return []

        opportunities: list[ImprovementOpportunity] = []

        bottleneck = self.bottleneck.identify(state)
        if bottleneck is not None:
            opportunities.append(
                ImprovementOpportunity(
                    id="bottleneck_01",
                    category="bottleneck",
                    priority="high",
                    title="Bottleneck Process Improvement",
                    description=(
                        f"{bottleneck.process.name} is the primary bottleneck "
                        f"({bottleneck.utilization * 100:.1f}% utilization)"
                    ),
                    impact="high",
                    effort="medium",
                    estimated_savings="15-25% productivity increase",
                    actions=[
                        "Reduce cycle time through work method improvement",
                        "Add resources (machines, operators)",
                        "Improve equipment maintenance to increase uptime",
                        "Balance work with other processes",
                    ],
                )
            )

        inventory = self.analyze_inventory(state)
        if inventory.has_excess:
            opportunities.append(
                ImprovementOpportunity(
                    id="inventory_01",
                    category="inventory",
                    priority="high",
                    title="Excess Inventory Reduction",
                    description=(
                        f"{inventory.excess_units:g} units of excess inventory "
                        f"({inventory.excess_pct:.1f}%)"
                    ),
                    impact="high",
                    effort="low",
                    estimated_savings="20-30% storage cost reduction",
                    actions=[
                        "Implement JIT (Just-In-Time) system",
                        "Reduce batch sizes",
                        "Improve production planning",
                        "Implement Kanban system for inventory control",
                    ],
                )
            )

        non_va = [p for p in state.processes if not p.value_added]
        if non_va:
            waste_time = sum(p.cycle_time for p in non_va)
            opportunities.append(
                ImprovementOpportunity(
                    id="waste_01",
                    category="waste",
                    priority="medium",
                    title="Waste Elimination",
                    description=(
                        f"{len(non_va)} non-value added processes "
                        f"({waste_time:.1f} minutes)"
                    ),
                    impact="medium",
                    effort="high",
                    estimated_savings="10-20% time savings",
                    actions=[
                        "Analyze and evaluate each non-value added process",
                        "Combine similar processes",
                        "Redesign processes to convert to value-added",
                        "Eliminate unnecessary processes",
                    ],
                )
            )

        quality = self.analyze_quality(state)
        if quality.defect_rate > self.max_defect_rate:
            opportunities.append(
                ImprovementOpportunity(
                    id="quality_01",
                    category="quality",
                    priority="medium",
                    title="Quality Improvement",
                    description=(
                        f"{quality.defect_rate * 100:.1f}% defect rate "
                        f"(${quality.daily_defect_cost:.0f}/day)"
                    ),
                    impact="medium",
                    effort="medium",
                    estimated_savings="30-50% defect reduction",
                    actions=[
                        "Implement Poka-Yoke (Error Proofing)",
                        "Improve quality control at source",
                        "Train employees on quality standards",
                        "Implement Statistical Process Control (SPC)",
                    ],
                )
            )

        lt = self.lead_time.total_value_stream_lead_time(state)
        flow_efficiency = 0.0
        if lt.total_lead_time > 0:
            flow_efficiency = lt.value_added_time / lt.total_lead_time
        if flow_efficiency < self.min_flow_efficiency:
            opportunities.append(
                ImprovementOpportunity(
                    id="flow_01",
                    category="flow",
                    priority="high",
                    title="Workflow Improvement",
                    description=f"{flow_efficiency * 100:.1f}% flow efficiency (low)",
                    impact="high",
                    effort="high",
                    estimated_savings="25-40% lead time reduction",
                    actions=[
                        "Convert from push to pull system",
                        "Reduce wait time between processes",
                        "Improve material flow planning",
                        "Implement manufacturing cells",
                    ],
                )
            )

        for opportunity in opportunities:
            opportunity.roi = self.estimate_roi(opportunity)

        # sorted() is stable: equal priorities keep generation order
        ranked = sorted(
            opportunities, key=lambda o: PRIORITY_RANK[o.priority], reverse=True
        )
        logger.debug(
            "Opportunities for %s: %s", state.name, [o.id for o in ranked]
        )
        return ranked

    def estimate_roi(self, opportunity: ImprovementOpportunity) -> RoiEstimate:
        cost = float(self.implementation_cost.get(opportunity.effort, 25000))
        savings = float(self.annual_savings.get(opportunity.impact, 50000))
        return RoiEstimate(
            implementation_cost=cost,
            annual_savings=savings,
            roi_pct=(savings - cost) / cost * 100,
            payback_months=cost / (savings / 12),
            net_benefit=savings - cost,
        )

    def create_improvement_plan(
        self,
        opportunities: list[ImprovementOpportunity],
        limit: int | None = None,
    ) -> ImprovementPlan:
        selected = opportunities[: limit or self.plan_size]
        planned = [
            PlannedOpportunity(
                opportunity=o,
                timeline=TIMELINE_BY_EFFORT.get(o.effort, "1-2 months"),
                resources=list(RESOURCES_BY_EFFORT.get(o.effort, ["Process Engineer"])),
            )
            for o in selected
        ]
        rois = [o.roi or self.estimate_roi(o) for o in selected]
        investment = sum(r.implementation_cost for r in rois)
        savings = sum(r.annual_savings for r in rois)

        return ImprovementPlan(
            opportunities=planned,
            total_investment=investment,
            total_annual_savings=savings,
            overall_roi_pct=(
                (savings - investment) / investment * 100 if investment > 0 else 0.0
            ),
            payback_months=investment / (savings / 12) if savings > 0 else None,
        )

    @staticmethod
    def roadmap(
        opportunities: list[ImprovementOpportunity],
    ) -> dict[str, list[ImprovementOpportunity]]:
        """Quick wins first: phase by effort class."""
        return {
            "phase1": [o for o in opportunities if o.effort == "low"],
            "phase2": [o for o in opportunities if o.effort == "medium"],
            "phase3": [o for o in opportunities if o.effort == "high"],
        }
