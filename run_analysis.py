"""
Value Stream Analysis Runner.

Usage:
    poetry run python run_analysis.py data/sample_value_stream.json
    poetry run python run_analysis.py stream.json --future-state   # Add projection
    poetry run python run_analysis.py stream.json --json           # Machine-readable
    poetry run python run_analysis.py stream.json --strict         # Fail on warnings
"""

import argparse
import json
import logging
import sys

from vsm_engine import (
    analyze_improvement_opportunities,
    compute_lead_time,
    compute_lean_metrics,
    compute_takt_time,
    deserialize_state,
    identify_bottleneck,
    littles_law_check,
    load_engine_config,
    load_value_stream,
    project_future_state,
    to_plain,
)
from vsm_engine.model.core import ValueStreamState


def load_state(record_path: str) -> ValueStreamState:
    """Read a value stream record, exiting with a message when it is invalid."""
    try:
        return deserialize_state(load_value_stream(record_path))
    except (ValueError, KeyError, TypeError) as e:
        sys.exit(f"Invalid value stream record {record_path}: {e}")


def _print_report(state, takt, lead_time, metrics, bottleneck, opportunities) -> None:
    print(f"\n=== {state.name} ===")
    print(
        f"Demand {state.daily_demand:g}/day over {state.available_time:g} min "
        f"-> takt {takt.value:.2f} min/unit ({takt.status})"
    )
    for rec in takt.recommendations:
        print(f"  [{rec.type}] {rec.message}")

    print(
        f"\nLead time {lead_time.total_lead_time:.1f} min "
        f"(value added {lead_time.value_added_time:.1f} min)"
    )

    print("\nLean metrics:")
    for name, value in metrics.values().items():
        metric = getattr(metrics, name)
        print(f"  {name:<26} {value:>10.2f} {metric.unit:<11} {metric.status}")
    print(f"  {'flow_type':<26} {metrics.flow_type:>10}")

    if bottleneck is None:
        print("\nNo bottleneck (empty value stream)")
    else:
        print(
            f"\nBottleneck: {bottleneck.process.name} "
            f"(utilization {bottleneck.utilization:.0%}, {bottleneck.severity}"
            f"{', critical' if bottleneck.is_critical else ''})"
        )
        for s in bottleneck.suggestions:
            print(f"  [{s.priority}] {s.suggestion}")

    print(f"\nImprovement opportunities ({len(opportunities)}):")
    for o in opportunities:
        payback = f", payback {o.roi.payback_months:.1f} mo" if o.roi else ""
        print(f"  [{o.priority}] {o.title}: {o.description}{payback}")


def _print_future_state(result) -> None:
    print("\nFuture state gap analysis:")
    for name, gap in result.gap_analysis.items():
        marker = "+" if gap.improved else " "
        print(
            f" {marker}{name:<26} {gap.current:>10.2f} -> {gap.future:>10.2f} "
            f"({gap.change_pct:+.1f}%)"
        )
    for phase, items in result.roadmap.items():
        print(f"\n{phase}:")
        for item in items:
            print(f"  - {item}")
    fin = result.financial
    print(
        f"\nEstimated annual savings {fin.total_annual_savings:,.0f} "
        f"against {fin.implementation_cost:,.0f} implementation "
        f"(ROI {fin.roi_pct:.0f}%)"
    )


def main() -> None:
    """Analyse a value stream record and print the lean metrics."""
    parser = argparse.ArgumentParser(
        description="Value Stream Analysis Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  poetry run python run_analysis.py data/sample_value_stream.json --future-state
  poetry run python run_analysis.py stream.json --config my_thresholds.json --json
        """,
    )
    parser.add_argument("record", help="Path to a value stream JSON record")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Engine configuration JSON (default: bundled engine_config.json)",
    )
    parser.add_argument(
        "--future-state",
        action="store_true",
        help="Also project the future state and print the gap analysis",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON instead of a text report",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with an error when the record has validation warnings",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging from the calculators",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_engine_config(args.config)

    state = load_state(args.record)

    problems = state.validate()
    for problem in problems:
        print(f"Warning: {problem}", file=sys.stderr)
    if args.strict and problems:
        sys.exit(1)

    takt = compute_takt_time(state.daily_demand, state.available_time, config)
    lead_time = compute_lead_time(state, config)
    metrics = compute_lean_metrics(state, config)
    bottleneck = identify_bottleneck(state, config)
    opportunities = analyze_improvement_opportunities(state, config)
    littles_law = littles_law_check(state, config)
    future = project_future_state(state, config=config) if args.future_state else None

    if args.json:
        payload = {
            "takt": takt,
            "lead_time": lead_time,
            "lean_metrics": metrics,
            "bottleneck": bottleneck,
            "opportunities": opportunities,
            "littles_law": littles_law,
        }
        if future is not None:
            payload["future_state"] = future
        print(json.dumps(to_plain(payload), indent=2))
        return

    _print_report(state, takt, lead_time, metrics, bottleneck, opportunities)
    print(
        f"\nLittle's Law: theoretical WIP {littles_law.theoretical_wip:.1f}, "
        f"actual {littles_law.actual_wip:.1f}"
    )
    if future is not None:
        _print_future_state(future)


if __name__ == "__main__":
    main()
