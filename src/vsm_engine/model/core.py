import copy
import enum
from dataclasses import dataclass, field, replace
from typing import Any

from vsm_engine.errors import (
    EmptyValueStream,
    InvalidDemand,
    InvalidInventory,
    InvalidProcess,
)


class ProcessType(enum.Enum):
    MANUFACTURING = "manufacturing"
    ASSEMBLY = "assembly"
    INSPECTION = "inspection"
    TESTING = "testing"
    PACKAGING = "packaging"
    SHIPPING = "shipping"


class FlowType(enum.Enum):
    PUSH = "push"  # Forecast driven
    PULL = "pull"  # Kanban signal from downstream


class InventoryType(enum.Enum):
    BUFFER = "buffer"
    SUPERMARKET = "supermarket"
    FIFO = "fifo"
    SAFETY_STOCK = "safety_stock"


@dataclass
class Process:
    """
    One step of the value stream.

    Times are in minutes. Defaults apply at construction only; the
    calculators never substitute a default for a stored value.
    """

    id: str
    name: str
    cycle_time: float  # min/unit
    setup_time: float = 0.0  # min/batch
    batch_size: int = 1
    operators: int = 1
    machines: int = 1
    uptime: float = 0.95
    yield_rate: float = 0.98
    process_type: ProcessType = ProcessType.MANUFACTURING
    value_added: bool = True
    flow_type: FlowType = FlowType.PUSH
    inventory_before: float = 0.0  # units queued in front of the step
    kanban_size: float = 0.0  # only meaningful for pull steps

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidProcess("Process ID cannot be empty")
        if not self.name or not self.name.strip():
            raise InvalidProcess(f"Process {self.id}: name cannot be empty")
        if self.cycle_time <= 0:
            raise InvalidProcess(
                f"Process {self.id}: cycle_time must be positive, got {self.cycle_time}"
            )
        if self.setup_time < 0:
            raise InvalidProcess(f"Process {self.id}: setup_time cannot be negative")
        if self.batch_size < 1:
            raise InvalidProcess(f"Process {self.id}: batch_size must be >= 1")
        if self.operators < 1 or self.machines < 1:
            raise InvalidProcess(
                f"Process {self.id}: operators and machines must be >= 1"
            )
        if not 0 < self.uptime <= 1:
            raise InvalidProcess(
                f"Process {self.id}: uptime must be in (0, 1], got {self.uptime}"
            )
        if not 0 < self.yield_rate <= 1:
            raise InvalidProcess(
                f"Process {self.id}: yield must be in (0, 1], got {self.yield_rate}"
            )
        if self.inventory_before < 0 or self.kanban_size < 0:
            raise InvalidProcess(
                f"Process {self.id}: inventory_before and kanban_size cannot be negative"
            )
        if not isinstance(self.process_type, ProcessType):
            raise InvalidProcess(f"Process {self.id}: unknown process_type")
        if not isinstance(self.flow_type, FlowType):
            raise InvalidProcess(f"Process {self.id}: unknown flow_type")

    @property
    def setup_time_per_unit(self) -> float:
        return self.setup_time / self.batch_size

    @property
    def effective_cycle_time(self) -> float:
        """Cycle time inflated by downtime and scrap."""
        return self.cycle_time / (self.uptime * self.yield_rate)

    @property
    def throughput_per_hour(self) -> float:
        return (60.0 / self.cycle_time) * self.machines * self.uptime * self.yield_rate

    def utilization(self, takt_time: float) -> float:
        return self.cycle_time / takt_time

    def daily_capacity(self, available_time: float) -> float:
        """Good units per period considering uptime, yield and parallel machines."""
        available_minutes = available_time * self.uptime
        return (available_minutes / self.effective_cycle_time) * self.machines


@dataclass
class Inventory:
    """
    A buffer or queue of units between or before processes.

    min_level <= reorder_point <= max_level is a target, not enforced here.
    """

    id: str
    name: str
    quantity: float = 0.0
    inventory_type: InventoryType = InventoryType.BUFFER
    max_level: float | None = None  # None -> current quantity
    min_level: float = 0.0
    reorder_point: float = 0.0
    lead_time: float = 0.0  # replenishment lead time
    cost_per_unit: float = 0.0

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidInventory("Inventory ID cannot be empty")
        if self.max_level is None:
            self.max_level = self.quantity
        for label in ("quantity", "max_level", "min_level", "reorder_point", "lead_time"):
            if getattr(self, label) < 0:
                raise InvalidInventory(f"Inventory {self.id}: {label} cannot be negative")
        if self.cost_per_unit < 0:
            raise InvalidInventory(f"Inventory {self.id}: cost_per_unit cannot be negative")
        if not isinstance(self.inventory_type, InventoryType):
            raise InvalidInventory(f"Inventory {self.id}: unknown inventory_type")

    @property
    def levels_consistent(self) -> bool:
        return self.min_level <= self.reorder_point <= (self.max_level or 0.0)

    @property
    def inventory_cost(self) -> float:
        return self.quantity * self.cost_per_unit

    @property
    def is_below_reorder_point(self) -> bool:
        return self.quantity <= self.reorder_point

    def wait_time(self, takt_time: float) -> float:
        return self.quantity * takt_time

    def days_of_supply(self, daily_usage: float) -> float:
        if daily_usage > 0:
            return self.quantity / daily_usage
        return 0.0


def _check_demand(daily_demand: float, available_time: float) -> None:
    if daily_demand <= 0:
        raise InvalidDemand(f"Daily demand must be greater than zero, got {daily_demand}")
    if available_time <= 0:
        raise InvalidDemand(
            f"Available time must be greater than zero, got {available_time}"
        )


@dataclass
class ValueStreamState:
    """
    The aggregate every calculator operates on.

    Process order is flow order. Hosts own the mutable copy and hand
    snapshots to the engine.
    """

    daily_demand: float
    available_time: float  # minutes per period
    processes: list[Process] = field(default_factory=list)
    inventories: list[Inventory] = field(default_factory=list)
    name: str = "Value Stream"

    def __post_init__(self) -> None:
        _check_demand(self.daily_demand, self.available_time)

    @property
    def takt_time(self) -> float:
        return self.available_time / self.daily_demand

    @property
    def is_empty(self) -> bool:
        return not self.processes

    @property
    def total_inventory_units(self) -> float:
        """Units held in inventories plus units queued before processes."""
        return sum(inv.quantity for inv in self.inventories) + sum(
            p.inventory_before for p in self.processes
        )

    def set_demand(self, daily_demand: float, available_time: float) -> None:
        _check_demand(daily_demand, available_time)
        self.daily_demand = daily_demand
        self.available_time = available_time

    def get_process(self, process_id: str) -> Process:
        for process in self.processes:
            if process.id == process_id:
                return process
        raise KeyError(process_id)

    def process_index(self, process_id: str) -> int:
        for i, process in enumerate(self.processes):
            if process.id == process_id:
                return i
        return -1

    def add_process(self, process: Process, position: int | None = None) -> None:
        if self.process_index(process.id) != -1:
            raise InvalidProcess(f"Duplicate process ID {process.id}")
        if position is None:
            self.processes.append(process)
        else:
            self.processes.insert(position, process)

    def update_process(self, process_id: str, **changes: Any) -> Process:
        """
        Edit a process in place.

        The changes are validated on a candidate copy first, so a rejected
        edit leaves the stored process untouched.
        """
        process = self.get_process(process_id)
        if "id" in changes and changes["id"] != process_id:
            raise InvalidProcess("Process ID cannot be changed")
        replace(process, **changes)
        for key, value in changes.items():
            setattr(process, key, value)
        return process

    def remove_process(self, process_id: str) -> None:
        self.processes = [p for p in self.processes if p.id != process_id]

    def get_inventory(self, inventory_id: str) -> Inventory:
        for inventory in self.inventories:
            if inventory.id == inventory_id:
                return inventory
        raise KeyError(inventory_id)

    def add_inventory(self, inventory: Inventory) -> None:
        if any(inv.id == inventory.id for inv in self.inventories):
            raise InvalidInventory(f"Duplicate inventory ID {inventory.id}")
        self.inventories.append(inventory)

    def update_inventory(self, inventory_id: str, **changes: Any) -> Inventory:
        inventory = self.get_inventory(inventory_id)
        if "id" in changes and changes["id"] != inventory_id:
            raise InvalidInventory("Inventory ID cannot be changed")
        replace(inventory, **changes)
        for key, value in changes.items():
            setattr(inventory, key, value)
        return inventory

    def remove_inventory(self, inventory_id: str) -> None:
        self.inventories = [i for i in self.inventories if i.id != inventory_id]

    def snapshot(self) -> "ValueStreamState":
        """Deep copy, safe to analyse while the host keeps editing."""
        return copy.deepcopy(self)

    def validate(self) -> list[str]:
        problems: list[str] = []
        if not self.name or not self.name.strip():
            problems.append("Value stream name is required")
        if not self.processes:
            problems.append("At least one process is required")

        seen: set[str] = set()
        for index, process in enumerate(self.processes):
            if process.id in seen:
                problems.append(f"Process {index + 1}: duplicate ID {process.id}")
            seen.add(process.id)

        for inventory in self.inventories:
            if not inventory.levels_consistent:
                problems.append(
                    f"Inventory {inventory.name}: expected min_level <= reorder_point "
                    f"<= max_level, got {inventory.min_level} / "
                    f"{inventory.reorder_point} / {inventory.max_level}"
                )
        return problems

    def ensure_not_empty(self) -> None:
        if self.is_empty:
            raise EmptyValueStream(f"{self.name} has no processes")
