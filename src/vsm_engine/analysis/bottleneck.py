"""
Bottleneck identification and what-if simulation.

Selection walks the process sequence once. A process replaces the current
candidate when its utilization (cycle_time / takt) is strictly higher, or
equal while its flow impact exceeds the tie-break threshold.

    flow_impact = position_impact * redundancy - buffer_protection * 0.3
    position_impact = (index + 1) / n
    redundancy = 0.8 if machines > 1 else 1
    buffer_protection = min(1, inventory_before / 10)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from typing import Any

from vsm_engine.analysis.bands import DEFAULT_SEVERITY_BANDS, classify_severity
from vsm_engine.analysis.lead_time import LeadTimeCalculator
from vsm_engine.model.core import Process, ValueStreamState

logger = logging.getLogger(__name__)


class ImprovementType(enum.Enum):
    CYCLE_TIME = "cycle_time"  # scale by (1 - value)
    SETUP_TIME = "setup_time"  # scale by (1 - value)
    MACHINES = "machines"  # add value
    UPTIME = "uptime"  # add value, capped at 1.0


@dataclass
class BottleneckSuggestion:
    priority: str
    area: str
    suggestion: str
    impact: str
    effort: str
    methods: list[str] = field(default_factory=list)


@dataclass
class BottleneckEfficiency:
    """Percentages of ideal for the constraining step."""

    cycle_time: float
    uptime: float
    yield_rate: float
    overall: float


@dataclass
class LeadTimeImpact:
    current_lead_time: float
    ideal_lead_time: float
    wait_time_impact: float
    total_process_impact: float
    percentage_impact: float


@dataclass
class Bottleneck:
    process: Process
    position: int  # zero-based index in the flow
    utilization: float
    flow_impact: float
    severity: str
    is_critical: bool
    total_time: float  # cycle time + setup per unit
    efficiency: BottleneckEfficiency
    suggestions: list[BottleneckSuggestion] = field(default_factory=list)
    lead_time_impact: LeadTimeImpact | None = None


@dataclass
class BottleneckCandidate:
    process: Process
    position: int  # one-based, as shown to users
    utilization: float
    severity_score: float


@dataclass
class MultiBottleneckAnalysis:
    count: int
    bottlenecks: list[BottleneckCandidate]
    has_critical: bool
    recommended_actions: list[dict[str, str]] = field(default_factory=list)


@dataclass
class NextBottleneck:
    process: Process
    utilization: float


@dataclass
class ThroughputChange:
    original_throughput: float  # good units/hour
    new_throughput: float
    improvement: float  # percent


@dataclass
class ImprovementSimulation:
    improvement_type: ImprovementType
    value: float
    simulated_process: Process
    original_utilization: float
    new_utilization: float
    improvement_impact: float  # percent
    is_still_bottleneck: bool
    next_bottleneck: NextBottleneck | None
    throughput: ThroughputChange


class BottleneckAnalyzer:
    """Finds the constraining process and explores improvements on copies."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        lead_time: LeadTimeCalculator | None = None,
    ) -> None:
        bn_config = (config or {}).get("bottleneck", {})
        self.severity_bands = bn_config.get("severity_bands", DEFAULT_SEVERITY_BANDS)
        self.critical_utilization = bn_config.get("critical_utilization", 1.0)
        self.critical_flow_impact = bn_config.get("critical_flow_impact", 0.9)
        self.tie_break_flow_impact = bn_config.get("tie_break_flow_impact", 0.8)
        self.redundancy_factor = bn_config.get("redundancy_factor", 0.8)
        self.buffer_saturation_units = bn_config.get("buffer_saturation_units", 10)
        self.buffer_weight = bn_config.get("buffer_weight", 0.3)
        self.still_bottleneck_utilization = bn_config.get(
            "still_bottleneck_utilization", 0.9
        )
        self.scan_utilization = bn_config.get("scan_utilization", 0.8)
        self.uptime_target = bn_config.get("uptime_target", 0.95)
        self.setup_reduction = bn_config.get("setup_reduction", 0.5)

        self.lead_time = lead_time or LeadTimeCalculator(config)

    def flow_impact(self, state: ValueStreamState, index: int) -> float:
        """Positional weight of a step; later steps waste more accumulated value."""
        n = len(state.processes)
        if n == 0 or not 0 <= index < n:
            return 0.0
        process = state.processes[index]

        position_impact = (index + 1) / n
        buffer_protection = 0.0
        if process.inventory_before > 0:
            buffer_protection = min(
                1.0, process.inventory_before / self.buffer_saturation_units
            )
        redundancy = self.redundancy_factor if process.machines > 1 else 1.0

        return (position_impact * redundancy) - (buffer_protection * self.buffer_weight)

    def classify(self, utilization: float) -> str:
        return classify_severity(utilization, self.severity_bands)

    def identify(self, state: ValueStreamState) -> Bottleneck | None:
        """Returns None for an empty value stream."""
        takt = state.takt_time
        best_index = -1
        best_utilization = 0.0
        best_flow_impact = 0.0

        for i, process in enumerate(state.processes):
            utilization = process.utilization(takt)
            flow_impact = self.flow_impact(state, i)
            if utilization > best_utilization or (
                utilization == best_utilization
                and flow_impact > self.tie_break_flow_impact
            ):
                best_index = i
                best_utilization = utilization
                best_flow_impact = flow_impact

        if best_index == -1:
            return None

        process = state.processes[best_index]
        bottleneck = Bottleneck(
            process=process,
            position=best_index,
            utilization=best_utilization,
            flow_impact=best_flow_impact,
            severity=self.classify(best_utilization),
            is_critical=(
                best_utilization > self.critical_utilization
                or best_flow_impact > self.critical_flow_impact
            ),
            total_time=process.cycle_time + process.setup_time_per_unit,
            efficiency=self.efficiency(process, takt),
        )
        bottleneck.suggestions = self.suggestions(bottleneck, takt)
        bottleneck.lead_time_impact = self.lead_time_impact(state, bottleneck)

        logger.debug(
            "Bottleneck %s: utilization=%.3f flow_impact=%.3f severity=%s",
            process.id,
            best_utilization,
            best_flow_impact,
            bottleneck.severity,
        )
        return bottleneck

    def efficiency(self, process: Process, takt_time: float) -> BottleneckEfficiency:
        cycle_time_eff = takt_time / process.cycle_time
        return BottleneckEfficiency(
            cycle_time=cycle_time_eff * 100,
            uptime=process.uptime * 100,
            yield_rate=process.yield_rate * 100,
            overall=cycle_time_eff * process.uptime * process.yield_rate * 100,
        )

    def suggestions(
        self, bottleneck: Bottleneck, takt_time: float
    ) -> list[BottleneckSuggestion]:
        process = bottleneck.process
        suggestions: list[BottleneckSuggestion] = []

        if process.cycle_time > takt_time:
            suggestions.append(
                BottleneckSuggestion(
                    priority="high",
                    area="cycle_time",
                    suggestion=(
                        f"Reduce cycle time from {process.cycle_time:g} to "
                        f"{takt_time:.2f} minutes"
                    ),
                    impact="high",
                    effort="medium",
                    methods=[
                        "Work method improvement",
                        "Process simplification",
                        "Reduce unnecessary movements",
                    ],
                )
            )

        if process.setup_time > 0:
            target = process.setup_time * (1 - self.setup_reduction)
            suggestions.append(
                BottleneckSuggestion(
                    priority="medium",
                    area="setup_time",
                    suggestion=(
                        f"Reduce setup time by {self.setup_reduction:.0%} "
                        f"({process.setup_time:g} -> {target:g} minutes)"
                    ),
                    impact="medium",
                    effort="low",
                    methods=[
                        "Implement SMED quick changeover",
                        "Improve setup tools",
                        "Standardize procedures",
                    ],
                )
            )

        if process.machines < 2:
            suggestions.append(
                BottleneckSuggestion(
                    priority="low",
                    area="capacity",
                    suggestion="Add second machine to increase capacity",
                    impact="high",
                    effort="high",
                    methods=[
                        "Purchase additional equipment",
                        "Parallel operation training",
                    ],
                )
            )

        if process.uptime < self.uptime_target:
            suggestions.append(
                BottleneckSuggestion(
                    priority="medium",
                    area="uptime",
                    suggestion=(
                        f"Improve uptime from {process.uptime:.0%} to "
                        f"{self.uptime_target:.0%}"
                    ),
                    impact="medium",
                    effort="medium",
                    methods=[
                        "Preventive maintenance",
                        "Spare parts improvement",
                        "Operator training",
                    ],
                )
            )

        return suggestions

    def lead_time_impact(
        self, state: ValueStreamState, bottleneck: Bottleneck
    ) -> LeadTimeImpact:
        current = self.lead_time.process_lead_time(
            bottleneck.process, state.takt_time
        ).total
        ideal = bottleneck.process.cycle_time
        wait_impact = current - ideal
        return LeadTimeImpact(
            current_lead_time=current,
            ideal_lead_time=ideal,
            wait_time_impact=wait_impact,
            total_process_impact=wait_impact * (len(state.processes) or 1),
            percentage_impact=(wait_impact / current) * 100 if current > 0 else 0.0,
        )

    @staticmethod
    def severity_score(utilization: float) -> float:
        if utilization > 1.2:
            return 1.0
        if utilization > 1.1:
            return 0.9
        if utilization > 1.0:
            return 0.8
        if utilization > 0.9:
            return 0.7
        if utilization > 0.8:
            return 0.6
        return 0.0

    def analyze_multiple(self, state: ValueStreamState) -> MultiBottleneckAnalysis:
        """Every process above the scan threshold, most severe first."""
        takt = state.takt_time
        candidates = [
            BottleneckCandidate(
                process=p,
                position=i + 1,
                utilization=p.utilization(takt),
                severity_score=self.severity_score(p.utilization(takt)),
            )
            for i, p in enumerate(state.processes)
            if p.utilization(takt) > self.scan_utilization
        ]
        candidates.sort(key=lambda c: c.severity_score, reverse=True)

        actions: list[dict[str, str]] = []
        if len(candidates) >= 2:
            actions.append(
                {
                    "type": "balancing",
                    "description": "Redistribute work between processes for balancing",
                    "priority": "high",
                    "expected_improvement": "15-25%",
                }
            )
        if candidates and len(candidates) > len(state.processes) / 2:
            actions.append(
                {
                    "type": "system_design",
                    "description": "Redesign entire workflow",
                    "priority": "high",
                    "expected_improvement": "30-50%",
                }
            )

        return MultiBottleneckAnalysis(
            count=len(candidates),
            bottlenecks=candidates,
            has_critical=any(c.severity_score > 0.9 for c in candidates),
            recommended_actions=actions,
        )

    def next_bottleneck(
        self, state: ValueStreamState, exclude_id: str
    ) -> NextBottleneck | None:
        takt = state.takt_time
        best: Process | None = None
        best_utilization = 0.0
        for process in state.processes:
            if process.id == exclude_id:
                continue
            utilization = process.utilization(takt)
            if utilization > best_utilization:
                best = process
                best_utilization = utilization
        if best is None:
            return None
        return NextBottleneck(process=best, utilization=best_utilization)

    def simulate_improvement(
        self,
        state: ValueStreamState,
        bottleneck: Bottleneck,
        improvement_type: ImprovementType | str,
        value: float,
    ) -> ImprovementSimulation:
        """
        What-if query on a copy of the bottleneck process.

        Neither the state nor the bottleneck's process is modified.
        """
        kind = ImprovementType(improvement_type)
        original = bottleneck.process

        if kind in (ImprovementType.CYCLE_TIME, ImprovementType.SETUP_TIME):
            if not 0 <= value < 1:
                raise ValueError(
                    f"{kind.value} reduction must be a fraction in [0, 1), got {value}"
                )

        if kind == ImprovementType.CYCLE_TIME:
            simulated = replace(original, cycle_time=original.cycle_time * (1 - value))
            impact = (original.cycle_time - simulated.cycle_time) / original.cycle_time * 100
        elif kind == ImprovementType.SETUP_TIME:
            simulated = replace(original, setup_time=original.setup_time * (1 - value))
            impact = 0.0
            if original.setup_time > 0:
                impact = (
                    (original.setup_time - simulated.setup_time)
                    / original.setup_time
                    * 100
                )
        elif kind == ImprovementType.MACHINES:
            simulated = replace(original, machines=original.machines + int(value))
            impact = (int(value) / original.machines) * 100
        else:
            simulated = replace(original, uptime=min(1.0, original.uptime + value))
            impact = (simulated.uptime - original.uptime) * 100

        new_utilization = simulated.utilization(state.takt_time)
        still_bottleneck = new_utilization > self.still_bottleneck_utilization

        original_tp = original.throughput_per_hour
        new_tp = simulated.throughput_per_hour

        logger.debug(
            "Simulated %s=%s on %s: utilization %.3f -> %.3f",
            kind.value,
            value,
            original.id,
            bottleneck.utilization,
            new_utilization,
        )

        return ImprovementSimulation(
            improvement_type=kind,
            value=value,
            simulated_process=simulated,
            original_utilization=bottleneck.utilization,
            new_utilization=new_utilization,
            improvement_impact=impact,
            is_still_bottleneck=still_bottleneck,
            next_bottleneck=(
                self.next_bottleneck(state, original.id) if still_bottleneck else None
            ),
            throughput=ThroughputChange(
                original_throughput=original_tp,
                new_throughput=new_tp,
                improvement=(new_tp - original_tp) / original_tp * 100,
            ),
        )
