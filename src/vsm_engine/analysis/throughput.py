"""Bottleneck-limited throughput and the Little's Law WIP check."""

from dataclasses import dataclass
from typing import Any

from vsm_engine.analysis.bottleneck import BottleneckAnalyzer
from vsm_engine.analysis.lead_time import LeadTimeCalculator
from vsm_engine.model.core import ValueStreamState


@dataclass
class LittlesLawResult:
    throughput: float  # units/hour at the bottleneck
    lead_time: float  # minutes
    theoretical_wip: float
    actual_wip: float
    difference: float
    efficiency: float  # actual / theoretical, percent


class ThroughputCalculator:
    def __init__(
        self,
        config: dict[str, Any] | None = None,
        lead_time: LeadTimeCalculator | None = None,
        bottleneck: BottleneckAnalyzer | None = None,
    ) -> None:
        self.lead_time = lead_time or LeadTimeCalculator(config)
        self.bottleneck = bottleneck or BottleneckAnalyzer(config, self.lead_time)

    def throughput(self, state: ValueStreamState) -> float:
        """Good units per hour the bottleneck can release; 0 when empty."""
        bottleneck = self.bottleneck.identify(state)
        if bottleneck is None:
            return 0.0
        process = bottleneck.process
        return (60.0 / process.effective_cycle_time) * process.machines

    def littles_law_check(self, state: ValueStreamState) -> LittlesLawResult:
        # WIP = throughput x lead time (hours)
        throughput = self.throughput(state)
        lead_time = self.lead_time.total_value_stream_lead_time(state).total_lead_time
        theoretical = throughput * (lead_time / 60.0)
        actual = state.total_inventory_units

        return LittlesLawResult(
            throughput=throughput,
            lead_time=lead_time,
            theoretical_wip=theoretical,
            actual_wip=actual,
            difference=actual - theoretical,
            efficiency=(actual / theoretical) * 100 if theoretical > 0 else 0.0,
        )
