from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from vsm_engine.analysis.bands import DEFAULT_TAKT_BANDS, classify_takt
from vsm_engine.analysis.bottleneck import BottleneckAnalyzer
from vsm_engine.errors import InvalidDemand
from vsm_engine.model.core import ValueStreamState

logger = logging.getLogger(__name__)

DEFAULT_DEMAND_SCENARIOS_PCT = [-30, -20, -10, 10, 20, 30]


@dataclass
class TaktRecommendation:
    type: str  # warning | critical
    message: str


@dataclass
class TaktResult:
    value: float  # minutes per unit
    status: str
    daily_demand: float
    available_time: float
    units_per_hour: float
    units_per_period: float
    recommendations: list[TaktRecommendation] = field(default_factory=list)


@dataclass
class RequiredResources:
    operators: int
    machines: int
    shifts: int


@dataclass
class DemandChange:
    current_demand: float
    new_demand: float
    current_takt: float
    new_takt: float
    takt_change_pct: float
    throughput_change_pct: float
    operators_change: int
    machines_change: int
    shifts_change: int
    monthly_labor_cost: float
    monthly_machine_cost: float

    @property
    def total_monthly_cost(self) -> float:
        return self.monthly_labor_cost + self.monthly_machine_cost


@dataclass
class TaktOptimization:
    target_utilization: float
    current_utilization: float
    optimal_cycle_time: float
    optimal_demand: int
    improvement_pct: float


class TaktCalculator:
    """
    Takt time and the capacity questions that hang off it.

    takt = available_time / daily_demand
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        bottleneck: BottleneckAnalyzer | None = None,
    ) -> None:
        config = config or {}
        takt_config = config.get("takt", {})
        cost_config = config.get("costs", {})

        self.status_bands = takt_config.get("status_bands", DEFAULT_TAKT_BANDS)
        self.target_utilization = takt_config.get("target_utilization", 0.85)
        self.demand_scenarios_pct = takt_config.get(
            "demand_scenarios_pct", DEFAULT_DEMAND_SCENARIOS_PCT
        )

        self.operator_hourly = cost_config.get("operator_hourly", 25)
        self.machine_hourly = cost_config.get("machine_hourly", 50)
        self.hours_per_day = cost_config.get("hours_per_day", 8)
        self.days_per_month = cost_config.get("days_per_month", 20)

        self.bottleneck = bottleneck or BottleneckAnalyzer(config)

    def compute(self, daily_demand: float, available_time: float) -> TaktResult:
        """Raises InvalidDemand; has no side effects."""
        if daily_demand <= 0:
            raise InvalidDemand(
                f"Daily demand must be greater than zero, got {daily_demand}"
            )
        if available_time <= 0:
            raise InvalidDemand(
                f"Available time must be greater than zero, got {available_time}"
            )

        takt = available_time / daily_demand
        status = classify_takt(takt, self.status_bands)

        recommendations: list[TaktRecommendation] = []
        if status == "very_fast":
            recommendations.append(
                TaktRecommendation(
                    "warning",
                    "Takt time is very fast. May need multiple production lines "
                    "or efficiency improvements",
                )
            )
        elif status == "very_slow":
            recommendations.append(
                TaktRecommendation(
                    "warning",
                    "Takt time is very slow. Consider increasing demand or "
                    "reducing available production time",
                )
            )

        return TaktResult(
            value=takt,
            status=status,
            daily_demand=daily_demand,
            available_time=available_time,
            units_per_hour=60.0 / takt,
            units_per_period=available_time / takt,
            recommendations=recommendations,
        )

    def for_state(self, state: ValueStreamState) -> TaktResult:
        """Takt result for a state, including the bottleneck check."""
        result = self.compute(state.daily_demand, state.available_time)
        result.recommendations.extend(self.recommendations(state))
        return result

    def recommendations(self, state: ValueStreamState) -> list[TaktRecommendation]:
        bottleneck = self.bottleneck.identify(state)
        if bottleneck is None:
            return []
        takt = state.takt_time
        cycle_time = bottleneck.process.cycle_time
        if cycle_time <= takt:
            return []
        return [
            TaktRecommendation(
                "critical",
                f"{bottleneck.process.name} process is slower than takt time "
                f"({cycle_time:.2f} > {takt:.2f})",
            )
        ]

    def required_resources(
        self, state: ValueStreamState, daily_demand: float | None = None
    ) -> RequiredResources:
        demand = daily_demand if daily_demand is not None else state.daily_demand
        takt = state.available_time / demand

        operators = 0
        machines = 0
        shift_load = 0.0
        for process in state.processes:
            operators += int(np.ceil(process.cycle_time / takt)) * process.machines
            machines += process.machines
            # Fraction of one period this step needs to cover the demand
            load = demand * process.cycle_time / (state.available_time * process.machines)
            shift_load = max(shift_load, load)

        shifts = max(1, int(np.ceil(shift_load))) if state.processes else 1
        return RequiredResources(operators=operators, machines=machines, shifts=shifts)

    def simulate_demand_change(
        self, state: ValueStreamState, new_demand: float
    ) -> DemandChange:
        new_result = self.compute(new_demand, state.available_time)
        current_takt = state.takt_time

        current_res = self.required_resources(state)
        new_res = self.required_resources(state, new_demand)

        operators_change = new_res.operators - current_res.operators
        machines_change = new_res.machines - current_res.machines
        monthly_hours = self.hours_per_day * self.days_per_month

        return DemandChange(
            current_demand=state.daily_demand,
            new_demand=new_demand,
            current_takt=current_takt,
            new_takt=new_result.value,
            takt_change_pct=(new_result.value - current_takt) / current_takt * 100,
            throughput_change_pct=(
                (new_demand - state.daily_demand) / state.daily_demand * 100
            ),
            operators_change=operators_change,
            machines_change=machines_change,
            shifts_change=new_res.shifts - current_res.shifts,
            monthly_labor_cost=operators_change * self.operator_hourly * monthly_hours,
            monthly_machine_cost=machines_change * self.machine_hourly * monthly_hours,
        )

    def demand_sensitivity(self, state: ValueStreamState) -> list[DemandChange]:
        return [
            self.simulate_demand_change(state, state.daily_demand * (1 + pct / 100))
            for pct in self.demand_scenarios_pct
            if pct > -100
        ]

    def optimize_takt_time(
        self, state: ValueStreamState, target_utilization: float | None = None
    ) -> TaktOptimization | None:
        """Demand the bottleneck could sustain at the target utilization."""
        target = (
            self.target_utilization if target_utilization is None else target_utilization
        )
        if target <= 0:
            raise ValueError(f"Target utilization must be positive, got {target}")
        bottleneck = self.bottleneck.identify(state)
        if bottleneck is None:
            return None

        optimal_cycle_time = bottleneck.process.cycle_time / target
        optimal_demand = int(np.floor(state.available_time / optimal_cycle_time))

        logger.debug(
            "Takt optimisation for %s: target=%.2f optimal_demand=%d",
            bottleneck.process.id,
            target,
            optimal_demand,
        )

        return TaktOptimization(
            target_utilization=target,
            current_utilization=bottleneck.utilization,
            optimal_cycle_time=optimal_cycle_time,
            optimal_demand=optimal_demand,
            improvement_pct=(
                (bottleneck.utilization - target) / bottleneck.utilization * 100
            ),
        )
