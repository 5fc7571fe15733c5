"""Domain records for the value stream."""

from vsm_engine.model.core import (
    FlowType,
    Inventory,
    InventoryType,
    Process,
    ProcessType,
    ValueStreamState,
)

__all__ = [
    "FlowType",
    "Inventory",
    "InventoryType",
    "Process",
    "ProcessType",
    "ValueStreamState",
]
