"""
Lead-time model for the value stream.

One canonical per-process formula:

    total = processing + waiting + setup_per_unit + move + queue

Simplified variants (no move or queue time) are the same formula with
``move_time_minutes = 0`` and ``include_queue_time = false`` in the
``lead_time`` config section.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from vsm_engine.model.core import Process, ValueStreamState

logger = logging.getLogger(__name__)

DEFAULT_MOVE_TIME_MINUTES = 5.0


@dataclass
class ProcessLeadTime:
    process_id: str
    processing_time: float
    waiting_time: float
    setup_time_per_unit: float
    move_time: float
    queue_time: float
    total: float


@dataclass
class LeadTimeBreakdown:
    processing: float = 0.0
    waiting: float = 0.0
    setup: float = 0.0
    move: float = 0.0
    queue: float = 0.0
    inventory: float = 0.0  # quantity * takt for standalone inventories


@dataclass
class LeadTimeResult:
    total_lead_time: float
    value_added_time: float
    non_value_added_time: float
    process_cycle_efficiency: float  # percent
    takt_time: float
    processes: list[ProcessLeadTime] = field(default_factory=list)
    breakdown: LeadTimeBreakdown = field(default_factory=LeadTimeBreakdown)


class LeadTimeCalculator:
    """Per-process and whole-stream lead time, in minutes."""

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        lt_config = (config or {}).get("lead_time", {})
        self.move_time = float(
            lt_config.get("move_time_minutes", DEFAULT_MOVE_TIME_MINUTES)
        )
        self.include_queue_time = bool(lt_config.get("include_queue_time", True))

    @classmethod
    def simplified(cls) -> "LeadTimeCalculator":
        """Processing + waiting + setup only."""
        return cls(
            {"lead_time": {"move_time_minutes": 0.0, "include_queue_time": False}}
        )

    def process_lead_time(self, process: Process, takt_time: float) -> ProcessLeadTime:
        processing_time = process.cycle_time
        waiting_time = process.inventory_before * takt_time
        setup_per_unit = process.setup_time_per_unit
        queue_time = 0.0
        if self.include_queue_time:
            queue_time = max(0.0, process.inventory_before - 1) * takt_time

        total = processing_time + waiting_time + setup_per_unit + self.move_time + queue_time
        return ProcessLeadTime(
            process_id=process.id,
            processing_time=processing_time,
            waiting_time=waiting_time,
            setup_time_per_unit=setup_per_unit,
            move_time=self.move_time,
            queue_time=queue_time,
            total=total,
        )

    def total_value_stream_lead_time(self, state: ValueStreamState) -> LeadTimeResult:
        takt = state.takt_time
        breakdown = LeadTimeBreakdown()
        per_process: list[ProcessLeadTime] = []
        value_added_time = 0.0

        for process in state.processes:
            lt = self.process_lead_time(process, takt)
            per_process.append(lt)
            breakdown.processing += lt.processing_time
            breakdown.waiting += lt.waiting_time
            breakdown.setup += lt.setup_time_per_unit
            breakdown.move += lt.move_time
            breakdown.queue += lt.queue_time
            if process.value_added:
                value_added_time += lt.processing_time

        for inventory in state.inventories:
            breakdown.inventory += inventory.wait_time(takt)

        total = sum(lt.total for lt in per_process) + breakdown.inventory
        pce = (value_added_time / total) * 100 if total > 0 else 0.0

        logger.debug(
            "Lead time: total=%.2f va=%.2f pce=%.2f over %d processes",
            total,
            value_added_time,
            pce,
            len(per_process),
        )

        return LeadTimeResult(
            total_lead_time=total,
            value_added_time=value_added_time,
            non_value_added_time=total - value_added_time,
            process_cycle_efficiency=pce,
            takt_time=takt,
            processes=per_process,
            breakdown=breakdown,
        )
