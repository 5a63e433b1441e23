"""
Handling Units Module.

Trace records for virtual handling units (VHUs) and lineage-aware lookup:
which source VHUs went into a VHU (BACKWARD) and which VHUs were derived from
it (FORWARD).
"""

from material_modules.handling_units.models import (
    HUTraceEvent,
    HUTraceQuery,
    HUTraceType,
    RecursionMode,
)
from material_modules.handling_units.repository import HUTraceRepository

__all__ = [
    "HUTraceEvent",
    "HUTraceQuery",
    "HUTraceType",
    "RecursionMode",
    "HUTraceRepository",
]
