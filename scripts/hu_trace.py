#!/usr/bin/env python3
"""
Trace the lineage of a virtual handling unit (VHU).

Usage:
    python3 scripts/hu_trace.py --vhu-id 4711
    python3 scripts/hu_trace.py --vhu-id 4711 --direction backward
    python3 scripts/hu_trace.py --vhu-id 4711 --direction forward --json

Examples:
    # Which VHUs went into VHU 4711 (recursively)
    python3 scripts/hu_trace.py --vhu-id 4711 --direction backward

    # Custom configuration file
    python3 scripts/hu_trace.py --vhu-id 4711 --config /etc/material/prod.yaml
"""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 80


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def print_events(events) -> None:
    if not events:
        print("    (no trace records)")
        return

    print(f"    {'vhu':>8}  {'source':>8}  {'top hu':>8}  {'type':<20}  event_time")
    print(f"    {'---':>8}  {'------':>8}  {'------':>8}  {'----':<20}  ----------")
    for event in events:
        print(
            f"    {event.vhu_id:>8}  {event.vhu_source_id:>8}  "
            f"{event.top_level_hu_id:>8}  {event.type.name:<20}  "
            f"{event.event_time.isoformat()}"
        )


def _json_default(value):
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "name"):
        return value.name
    return str(value)


def main() -> int:
    parser = argparse.ArgumentParser(description="Trace HU lineage")
    parser.add_argument("--vhu-id", type=int, required=True, help="VHU to start from")
    parser.add_argument(
        "--direction",
        choices=["none", "backward", "forward"],
        default="none",
        help="Follow lineage to source VHUs (backward) or derived VHUs (forward)",
    )
    parser.add_argument("--config", type=Path, default=None, help="Configuration YAML")
    parser.add_argument("--json", action="store_true", help="Output JSON")
    args = parser.parse_args()

    from material_config import get_active_config
    from material_kernel.db.engine import session_scope
    from material_modules.bootstrap import bootstrap
    from material_modules.handling_units import (
        HUTraceQuery,
        HUTraceRepository,
        RecursionMode,
    )

    config = bootstrap(get_active_config(args.config))
    query = HUTraceQuery.of_vhu_id(args.vhu_id, RecursionMode[args.direction.upper()])

    with session_scope() as session:
        events = HUTraceRepository(session, config.trace).query(query)

    if args.json:
        print(json.dumps([asdict(e) for e in events], indent=2, default=_json_default))
        return 0

    banner(f"HU TRACE vhu_id={args.vhu_id} direction={args.direction}")
    print_events(events)
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
