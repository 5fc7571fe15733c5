"""
Future-state projection.

A fixed, ordered pipeline of improvements applied to a deep clone of the
current processes and inventories. Later steps read fields written by
earlier ones, so the order is part of the contract:

1. Bottleneck improvement (cycle time, uptime, setup time)
2. Inventory and WIP reduction
3. Waste elimination (cost/benefit check)
4. Push -> pull conversion with kanban sizing
5. Yield improvement

The live state is never touched. Metrics are recomputed on the clone and
diffed against the current state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any

import numpy as np

from vsm_engine.analysis.bottleneck import Bottleneck, BottleneckAnalyzer
from vsm_engine.analysis.lead_time import LeadTimeCalculator, LeadTimeResult
from vsm_engine.analysis.metrics import LeanMetrics, LeanMetricsCalculator
from vsm_engine.analysis.throughput import ThroughputCalculator
from vsm_engine.model.core import (
    FlowType,
    Inventory,
    Process,
    ValueStreamState,
)

logger = logging.getLogger(__name__)


@dataclass
class FutureStateTargets:
    lead_time_reduction: float = 0.3
    efficiency_improvement: float = 0.15
    inventory_reduction: float = 0.4
    throughput_increase: float = 0.2
    quality_improvement: float = 0.1

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if not 0 <= value < 1:
                raise ValueError(f"Target {f.name} must be in [0, 1), got {value}")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> FutureStateTargets:
        known = {f.name for f in fields(cls)}
        return cls(**{k: float(v) for k, v in (data or {}).items() if k in known})


@dataclass
class Improvement:
    type: str
    description: str
    impact: str
    implementation_estimate: str  # free text, e.g. "2-4 weeks"
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class EliminationCost:
    cost: float
    savings: float
    roi: float
    payback_months: float


@dataclass
class StateMetrics:
    lead_time: LeadTimeResult
    lean_metrics: LeanMetrics
    bottleneck: Bottleneck | None
    throughput: float


@dataclass
class GapEntry:
    current: float
    future: float
    change: float  # future - current
    change_pct: float  # relative to current; 0 when current is 0
    improved: bool


@dataclass
class FinancialAnalysis:
    inventory_carrying_savings: float
    labor_efficiency_savings: float
    quality_savings: float
    total_annual_savings: float
    implementation_cost: float
    roi_pct: float
    payback_months: float | None
    break_even_days: int | None


@dataclass
class FutureStateResult:
    targets: FutureStateTargets
    current: StateMetrics
    future: StateMetrics
    improvements: list[Improvement]
    gap_analysis: dict[str, GapEntry]
    roadmap: dict[str, list[str]]
    financial: FinancialAnalysis
    processes: list[Process]
    inventories: list[Inventory]
    eliminated_process_ids: list[str] = field(default_factory=list)


# Direction of improvement for each gap entry
_HIGHER_IS_BETTER = {
    "lead_time": False,
    "process_cycle_efficiency": True,
    "days_of_inventory": False,
    "oee": True,
    "first_time_through": True,
    "capacity_utilization": False,
    "throughput": True,
}


class FutureStateProjector:
    def __init__(self, config: dict[str, Any] | None = None) -> None:
        config = config or {}
        fs_config = config.get("future_state", {})
        cost_config = config.get("costs", {})

        self.default_targets = FutureStateTargets.from_dict(fs_config.get("targets"))
        self.cycle_time_factor = fs_config.get("bottleneck_cycle_time_factor", 0.85)
        self.uptime_step = fs_config.get("bottleneck_uptime_step", 0.05)
        self.uptime_cap = fs_config.get("bottleneck_uptime_cap", 0.98)
        self.setup_factor = fs_config.get("bottleneck_setup_factor", 0.5)
        self.max_level_factor = fs_config.get("max_level_factor", 1.5)
        self.reorder_point_factor = fs_config.get("reorder_point_factor", 0.3)
        self.pull_inventory_threshold = fs_config.get("pull_inventory_threshold", 5)
        self.kanban_factor = fs_config.get("kanban_factor", 0.5)
        self.yield_cap = fs_config.get("yield_cap", 0.999)
        self.elimination_savings_ratio = fs_config.get(
            "elimination_savings_ratio", 0.8
        )

        self.operator_hourly = cost_config.get("operator_hourly", 25)
        self.hours_per_day = cost_config.get("hours_per_day", 8)
        self.days_per_month = cost_config.get("days_per_month", 20)
        self.machine_monthly = cost_config.get("machine_monthly_depreciation", 5000)
        self.space_monthly = cost_config.get("space_monthly", 1000)
        self.inventory_value_per_unit = cost_config.get("inventory_value_per_unit", 1000)
        self.holding_cost_rate = cost_config.get("holding_cost_rate", 0.25)
        self.labor_hourly = cost_config.get("labor_hourly", 50)
        self.quality_annual_savings = cost_config.get("quality_annual_savings", 50000)
        self.default_improvement_cost = cost_config.get(
            "default_improvement_cost", 10000
        )

        self.lead_time = LeadTimeCalculator(config)
        self.bottleneck = BottleneckAnalyzer(config, self.lead_time)
        self.metrics = LeanMetricsCalculator(config, self.lead_time, self.bottleneck)
        self.throughput = ThroughputCalculator(config, self.lead_time, self.bottleneck)

    def measure(self, state: ValueStreamState) -> StateMetrics:
        lead_time = self.lead_time.total_value_stream_lead_time(state)
        return StateMetrics(
            lead_time=lead_time,
            lean_metrics=self.metrics.calculate(state, lead_time),
            bottleneck=self.bottleneck.identify(state),
            throughput=self.throughput.throughput(state),
        )

    def project(
        self,
        state: ValueStreamState,
        targets: FutureStateTargets | dict[str, Any] | None = None,
    ) -> FutureStateResult:
        if targets is None:
            targets = self.default_targets
        elif isinstance(targets, dict):
            merged = {
                f.name: getattr(self.default_targets, f.name)
                for f in fields(FutureStateTargets)
            }
            merged.update(targets)
            targets = FutureStateTargets.from_dict(merged)

        current = self.measure(state)
        clone = state.snapshot()
        log: list[Improvement] = []

        if current.bottleneck is not None:
            self._improve_bottleneck(clone, current.bottleneck.process.id, log)
        self._reduce_inventory(clone, targets.inventory_reduction, log)
        eliminated = self._eliminate_waste(clone, log)
        self._improve_flow(clone, log)
        self._enhance_quality(clone, targets.quality_improvement, log)

        future_state = ValueStreamState(
            daily_demand=clone.daily_demand,
            available_time=clone.available_time,
            processes=[p for p in clone.processes if p.id not in eliminated],
            inventories=clone.inventories,
            name=f"{state.name} (future)",
        )
        future = self.measure(future_state)
        gap = self.gap_analysis(current, future)

        logger.debug(
            "Future state for %s: %d improvements, lead time %.1f -> %.1f",
            state.name,
            len(log),
            current.lead_time.total_lead_time,
            future.lead_time.total_lead_time,
        )

        return FutureStateResult(
            targets=targets,
            current=current,
            future=future,
            improvements=log,
            gap_analysis=gap,
            roadmap=self.roadmap(log),
            financial=self.financial_analysis(gap, log),
            processes=clone.processes,
            inventories=clone.inventories,
            eliminated_process_ids=sorted(eliminated),
        )

    def _improve_bottleneck(
        self, clone: ValueStreamState, process_id: str, log: list[Improvement]
    ) -> None:
        index = clone.process_index(process_id)
        if index == -1:
            return
        process = clone.processes[index]

        new_cycle_time = process.cycle_time * self.cycle_time_factor
        log.append(
            Improvement(
                type="cycle_time_reduction",
                description=(
                    f"Reduce cycle time from {process.cycle_time:g} to "
                    f"{new_cycle_time:.2f} min"
                ),
                impact="High",
                implementation_estimate="1-2 weeks",
            )
        )
        process.cycle_time = new_cycle_time

        new_uptime = min(self.uptime_cap, process.uptime + self.uptime_step)
        log.append(
            Improvement(
                type="uptime_improvement",
                description=(
                    f"Improve uptime from {process.uptime:.0%} to {new_uptime:.0%}"
                ),
                impact="Medium",
                implementation_estimate="2-4 weeks",
            )
        )
        process.uptime = new_uptime

        if process.setup_time > 0:
            new_setup = process.setup_time * self.setup_factor
            log.append(
                Improvement(
                    type="setup_reduction",
                    description=(
                        f"Reduce setup time from {process.setup_time:g} to "
                        f"{new_setup:.2f} min"
                    ),
                    impact="High",
                    implementation_estimate="3-6 weeks",
                )
            )
            process.setup_time = new_setup

    def _reduced(self, quantity: float, reduction: float) -> float:
        return float(max(1, int(np.floor(quantity * (1 - reduction)))))

    def _reduce_inventory(
        self, clone: ValueStreamState, reduction: float, log: list[Improvement]
    ) -> None:
        for inventory in clone.inventories:
            current_qty = inventory.quantity
            new_qty = self._reduced(current_qty, reduction)
            if new_qty < current_qty:
                log.append(
                    Improvement(
                        type="inventory_reduction",
                        description=(
                            f"Reduce {inventory.name} from {current_qty:g} to "
                            f"{new_qty:g} units"
                        ),
                        impact="High",
                        implementation_estimate="4-8 weeks",
                    )
                )
                inventory.quantity = new_qty
                inventory.max_level = new_qty * self.max_level_factor
                inventory.reorder_point = float(
                    np.ceil(new_qty * self.reorder_point_factor)
                )

        for process in clone.processes:
            if process.inventory_before <= 0:
                continue
            new_wip = self._reduced(process.inventory_before, reduction)
            if new_wip < process.inventory_before:
                log.append(
                    Improvement(
                        type="wip_reduction",
                        description=(
                            f"Reduce WIP before {process.name} from "
                            f"{process.inventory_before:g} to {new_wip:g} units"
                        ),
                        impact="Medium",
                        implementation_estimate="2-4 weeks",
                    )
                )
                process.inventory_before = new_wip

    def elimination_cost(self, process: Process) -> EliminationCost:
        labor = (
            process.operators
            * self.operator_hourly
            * self.hours_per_day
            * self.days_per_month
        )
        equipment = process.machines * self.machine_monthly
        cost = labor + equipment + self.space_monthly
        savings = cost * self.elimination_savings_ratio
        return EliminationCost(
            cost=cost,
            savings=savings,
            roi=(savings - cost) / cost,
            payback_months=cost / (savings / 12) if savings > 0 else float("inf"),
        )

    def _eliminate_waste(
        self, clone: ValueStreamState, log: list[Improvement]
    ) -> set[str]:
        # With savings a fixed fraction (< 1) of cost this never marks anything.
        # Kept as-is until the intended threshold is decided.
        eliminated: set[str] = set()
        for process in clone.processes:
            if process.value_added:
                continue
            estimate = self.elimination_cost(process)
            if estimate.savings > estimate.cost:
                log.append(
                    Improvement(
                        type="process_elimination",
                        description=(
                            f"Eliminate non-value added process: {process.name}"
                        ),
                        impact="High",
                        implementation_estimate="1-3 months",
                        details={"savings": estimate.savings, "cost": estimate.cost},
                    )
                )
                eliminated.add(process.id)
        return eliminated

    def _improve_flow(self, clone: ValueStreamState, log: list[Improvement]) -> None:
        for process in clone.processes:
            if (
                process.flow_type == FlowType.PUSH
                and process.inventory_before > self.pull_inventory_threshold
            ):
                kanban = float(np.ceil(process.inventory_before * self.kanban_factor))
                log.append(
                    Improvement(
                        type="pull_implementation",
                        description=(
                            f"Implement pull system for {process.name} with "
                            f"Kanban size of {kanban:g}"
                        ),
                        impact="Medium",
                        implementation_estimate="2-3 months",
                        details={
                            "current_system": FlowType.PUSH.value,
                            "new_system": FlowType.PULL.value,
                            "kanban_size": kanban,
                        },
                    )
                )
                process.flow_type = FlowType.PULL
                process.kanban_size = kanban
                process.inventory_before = kanban

    def _enhance_quality(
        self, clone: ValueStreamState, improvement: float, log: list[Improvement]
    ) -> None:
        for process in clone.processes:
            current_yield = process.yield_rate
            new_yield = min(self.yield_cap, current_yield + improvement)
            if new_yield > current_yield:
                log.append(
                    Improvement(
                        type="quality_improvement",
                        description=(
                            f"Improve yield for {process.name} from "
                            f"{current_yield:.1%} to {new_yield:.1%}"
                        ),
                        impact="Medium",
                        implementation_estimate="3-6 months",
                        details={
                            "methods": [
                                "Statistical Process Control",
                                "Mistake Proofing",
                                "Training",
                            ]
                        },
                    )
                )
                process.yield_rate = new_yield

    @staticmethod
    def _gap(name: str, current: float, future: float) -> GapEntry:
        change = future - current
        higher_is_better = _HIGHER_IS_BETTER[name]
        return GapEntry(
            current=current,
            future=future,
            change=change,
            change_pct=(change / current) * 100 if current != 0 else 0.0,
            improved=change > 0 if higher_is_better else change < 0,
        )

    def gap_analysis(
        self, current: StateMetrics, future: StateMetrics
    ) -> dict[str, GapEntry]:
        cur, fut = current.lean_metrics, future.lean_metrics
        pairs = {
            "lead_time": (
                current.lead_time.total_lead_time,
                future.lead_time.total_lead_time,
            ),
            "process_cycle_efficiency": (
                cur.process_cycle_efficiency.value,
                fut.process_cycle_efficiency.value,
            ),
            "days_of_inventory": (
                cur.days_of_inventory.value,
                fut.days_of_inventory.value,
            ),
            "oee": (cur.oee.value, fut.oee.value),
            "first_time_through": (
                cur.first_time_through.value,
                fut.first_time_through.value,
            ),
            "capacity_utilization": (
                cur.capacity_utilization.value,
                fut.capacity_utilization.value,
            ),
            "throughput": (current.throughput, future.throughput),
        }
        return {name: self._gap(name, c, f) for name, (c, f) in pairs.items()}

    @staticmethod
    def roadmap(improvements: list[Improvement]) -> dict[str, list[str]]:
        """Bucket improvements by the wording of their time estimate."""
        return {
            "phase1": [
                i.description
                for i in improvements
                if "weeks" in i.implementation_estimate
            ],
            "phase2": [
                i.description
                for i in improvements
                if "months" in i.implementation_estimate
                and "6-12" not in i.implementation_estimate
            ],
            "phase3": [
                i.description
                for i in improvements
                if "6-12" in i.implementation_estimate
            ],
        }

    def financial_analysis(
        self, gap: dict[str, GapEntry], improvements: list[Improvement]
    ) -> FinancialAnalysis:
        """
        Coarse savings heuristic; the constants are not the user's data.

        The flat quality saving counts only when a yield improvement was made.
        """
        inventory_reduction_pct = -gap["days_of_inventory"].change_pct
        lead_time_reduction_pct = -gap["lead_time"].change_pct

        carrying = (
            self.inventory_value_per_unit
            * inventory_reduction_pct
            / 100
            * self.holding_cost_rate
        )
        labor = (
            lead_time_reduction_pct
            / 100
            * self.labor_hourly
            * self.hours_per_day
            * self.days_per_month
            * 12
        )
        quality = 0.0
        if any(i.type == "quality_improvement" for i in improvements):
            quality = float(self.quality_annual_savings)
        total = carrying + labor + quality

        cost = float(
            sum(
                i.details.get("cost", self.default_improvement_cost)
                for i in improvements
            )
        )
        roi_pct = (total - cost) / cost * 100 if cost > 0 else 0.0
        payback = None
        break_even = None
        if cost > 0 and total > 0:
            payback = cost / (total / 12)
            break_even = int(np.ceil(cost / (total / 365)))

        return FinancialAnalysis(
            inventory_carrying_savings=carrying,
            labor_efficiency_savings=labor,
            quality_savings=quality,
            total_annual_savings=total,
            implementation_cost=cost,
            roi_pct=roi_pct,
            payback_months=payback,
            break_even_days=break_even,
        )
