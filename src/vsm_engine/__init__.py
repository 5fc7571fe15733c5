"""Value stream mapping metrics and analysis engine."""

from vsm_engine.api import (
    analyze_improvement_opportunities,
    compute_lead_time,
    compute_lean_metrics,
    compute_takt_time,
    identify_bottleneck,
    littles_law_check,
    project_future_state,
    simulate_bottleneck_improvement,
)
from vsm_engine.config.loader import load_engine_config, load_value_stream
from vsm_engine.errors import (
    EmptyValueStream,
    InvalidDemand,
    InvalidInventory,
    InvalidProcess,
    VSMError,
)
from vsm_engine.model.core import (
    FlowType,
    Inventory,
    InventoryType,
    Process,
    ProcessType,
    ValueStreamState,
)
from vsm_engine.model.records import (
    deserialize_inventory,
    deserialize_process,
    deserialize_state,
    serialize_inventory,
    serialize_process,
    serialize_state,
    to_plain,
)

__all__ = [
    "EmptyValueStream",
    "FlowType",
    "InvalidDemand",
    "InvalidInventory",
    "InvalidProcess",
    "Inventory",
    "InventoryType",
    "Process",
    "ProcessType",
    "VSMError",
    "ValueStreamState",
    "analyze_improvement_opportunities",
    "compute_lead_time",
    "compute_lean_metrics",
    "compute_takt_time",
    "deserialize_inventory",
    "deserialize_process",
    "deserialize_state",
    "identify_bottleneck",
    "littles_law_check",
    "load_engine_config",
    "load_value_stream",
    "project_future_state",
    "serialize_inventory",
    "serialize_process",
    "serialize_state",
    "simulate_bottleneck_improvement",
    "to_plain",
]
