"""
Threshold tables that turn numeric metrics into qualitative statuses.

A band table is an ordered list of ``[threshold, label]`` pairs. For
higher-is-better metrics the first threshold the value strictly exceeds
wins; for lower-is-better metrics the first threshold the value stays
strictly below wins. Anything else falls through to ``poor``.
"""

from typing import Any

FALLBACK_STATUS = "poor"
# Status for a metric with nothing to measure (no processes, no inventory)
NOT_APPLICABLE = "n/a"

DEFAULT_STATUS_BANDS: dict[str, dict[str, Any]] = {
    "process_cycle_efficiency": {
        "higher_is_better": True,
        "bands": [[25, "excellent"], [15, "good"], [5, "fair"]],
    },
    "oee": {
        "higher_is_better": True,
        "bands": [[85, "excellent"], [75, "good"], [65, "fair"]],
    },
    "first_time_through": {
        "higher_is_better": True,
        "bands": [[95, "excellent"], [90, "good"], [85, "fair"]],
    },
    "rolled_throughput_yield": {
        "higher_is_better": True,
        "bands": [[95, "excellent"], [90, "good"], [85, "fair"]],
    },
    "value_added_ratio": {
        "higher_is_better": True,
        "bands": [[30, "excellent"], [20, "good"], [10, "fair"]],
    },
    "inventory_turns": {
        "higher_is_better": True,
        "bands": [[12, "excellent"], [8, "good"], [4, "fair"]],
    },
    "days_of_inventory": {
        "higher_is_better": False,
        "bands": [[15, "excellent"], [30, "good"], [45, "fair"]],
    },
    "capacity_utilization": {
        "higher_is_better": False,
        "bands": [[85, "excellent"], [95, "good"], [100, "fair"]],
    },
}

# Lower bound of each takt band; anything at or above "slow" is very_slow.
DEFAULT_TAKT_BANDS: dict[str, float] = {
    "very_fast": 0.5,
    "fast": 1.0,
    "optimal": 5.0,
    "slow": 10.0,
}

# [threshold, label, inclusive]
DEFAULT_SEVERITY_BANDS: list[list[Any]] = [
    [1.2, "critical_bottleneck", False],
    [1.0, "bottleneck", True],
    [0.9, "potential_bottleneck", False],
    [0.8, "capacity_constraint", False],
]
BALANCED = "balanced"


def classify(value: float, band_spec: dict[str, Any]) -> str:
    higher_is_better = band_spec.get("higher_is_better", True)
    for threshold, label in band_spec.get("bands", []):
        if higher_is_better and value > threshold:
            return str(label)
        if not higher_is_better and value < threshold:
            return str(label)
    return FALLBACK_STATUS


def classify_metric(name: str, value: float, config: dict[str, Any]) -> str:
    """Classify a named metric using the configured table (or the default one)."""
    tables = config.get("status_bands", {})
    band_spec = tables.get(name, DEFAULT_STATUS_BANDS.get(name))
    if band_spec is None:
        raise KeyError(f"No status bands configured for metric {name!r}")
    return classify(value, band_spec)


def classify_takt(takt_time: float, bands: dict[str, float] | None = None) -> str:
    bands = bands or DEFAULT_TAKT_BANDS
    for label in ("very_fast", "fast", "optimal", "slow"):
        if takt_time < bands[label]:
            return label
    return "very_slow"


def classify_severity(
    utilization: float, bands: list[list[Any]] | None = None
) -> str:
    for threshold, label, inclusive in bands or DEFAULT_SEVERITY_BANDS:
        if utilization > threshold or (inclusive and utilization == threshold):
            return str(label)
    return BALANCED
