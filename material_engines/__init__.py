"""
Material Engines - Pure algorithms with zero I/O.

Engines take plain values (and injected lookups) and return plain values.
They never import the database layer, configuration or modules.

Engines:
    - lineage: worklist walker for handling-unit trace lineage
"""

from material_engines.lineage import (
    LineageDirection,
    LineageNode,
    backward_children,
    forward_children,
    walk_lineage,
)
from material_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "LineageDirection",
    "LineageNode",
    "backward_children",
    "forward_children",
    "walk_lineage",
    "compute_input_fingerprint",
    "traced_engine",
]
