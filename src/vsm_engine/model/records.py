"""
Plain-record conversion for value-stream entities and engine results.

Hosts (storage, renderers, the terminal runner) only ever see the
JSON-compatible dicts produced here. Enum members are written as their
string values; the process field ``yield_rate`` is written under ``yield``.
"""

from __future__ import annotations

import enum
from dataclasses import fields, is_dataclass
from typing import Any

import numpy as np

from vsm_engine.model.core import (
    FlowType,
    Inventory,
    InventoryType,
    Process,
    ProcessType,
    ValueStreamState,
)

RECORD_VERSION = "1.0"


def serialize_process(process: Process) -> dict[str, Any]:
    """Serialize a Process to a JSON-compatible dict."""
    return {
        "id": process.id,
        "name": process.name,
        "cycle_time": float(process.cycle_time),
        "setup_time": float(process.setup_time),
        "batch_size": int(process.batch_size),
        "operators": int(process.operators),
        "machines": int(process.machines),
        "uptime": float(process.uptime),
        "yield": float(process.yield_rate),
        "process_type": process.process_type.value,
        "value_added": bool(process.value_added),
        "flow_type": process.flow_type.value,
        "inventory_before": float(process.inventory_before),
        "kanban_size": float(process.kanban_size),
    }


def deserialize_process(record: dict[str, Any]) -> Process:
    """Rebuild a Process; missing optional keys fall back to constructor defaults."""
    kwargs: dict[str, Any] = {
        "id": str(record["id"]),
        "name": record["name"],
        "cycle_time": float(record["cycle_time"]),
    }
    optional = {
        "setup_time": float,
        "batch_size": int,
        "operators": int,
        "machines": int,
        "uptime": float,
        "value_added": bool,
        "inventory_before": float,
        "kanban_size": float,
    }
    for key, cast in optional.items():
        if key in record:
            kwargs[key] = cast(record[key])
    if "yield" in record:
        kwargs["yield_rate"] = float(record["yield"])
    if "process_type" in record:
        kwargs["process_type"] = ProcessType(record["process_type"])
    if "flow_type" in record:
        kwargs["flow_type"] = FlowType(record["flow_type"])
    return Process(**kwargs)


def serialize_inventory(inventory: Inventory) -> dict[str, Any]:
    """Serialize an Inventory to a JSON-compatible dict."""
    return {
        "id": inventory.id,
        "name": inventory.name,
        "quantity": float(inventory.quantity),
        "inventory_type": inventory.inventory_type.value,
        "max_level": float(inventory.max_level or 0.0),
        "min_level": float(inventory.min_level),
        "reorder_point": float(inventory.reorder_point),
        "lead_time": float(inventory.lead_time),
        "cost_per_unit": float(inventory.cost_per_unit),
    }


def deserialize_inventory(record: dict[str, Any]) -> Inventory:
    kwargs: dict[str, Any] = {"id": str(record["id"]), "name": record["name"]}
    for key in (
        "quantity",
        "max_level",
        "min_level",
        "reorder_point",
        "lead_time",
        "cost_per_unit",
    ):
        if record.get(key) is not None:
            kwargs[key] = float(record[key])
    if "inventory_type" in record:
        kwargs["inventory_type"] = InventoryType(record["inventory_type"])
    return Inventory(**kwargs)


def serialize_state(state: ValueStreamState) -> dict[str, Any]:
    """
    Serialize a ValueStreamState.

    Takt time is derived and deliberately not stored.
    """
    return {
        "version": RECORD_VERSION,
        "name": state.name,
        "daily_demand": float(state.daily_demand),
        "available_time": float(state.available_time),
        "processes": [serialize_process(p) for p in state.processes],
        "inventories": [serialize_inventory(i) for i in state.inventories],
    }


def deserialize_state(record: dict[str, Any]) -> ValueStreamState:
    if not isinstance(record, dict):
        raise TypeError(f"Expected dict for value stream record, got {type(record)}")
    return ValueStreamState(
        daily_demand=float(record["daily_demand"]),
        available_time=float(record["available_time"]),
        processes=[deserialize_process(p) for p in record.get("processes", [])],
        inventories=[deserialize_inventory(i) for i in record.get("inventories", [])],
        name=record.get("name", "Value Stream"),
    )


def to_plain(obj: Any) -> Any:
    """
    Recursively convert engine results into JSON-compatible values.

    Processes and inventories use their record form so that a result can be
    fed back into ``deserialize_process``.
    """
    if isinstance(obj, Process):
        return serialize_process(obj)
    if isinstance(obj, Inventory):
        return serialize_inventory(obj)
    if isinstance(obj, ValueStreamState):
        return serialize_state(obj)
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, np.generic):
        return obj.item()
    return obj
