"""
material_engines.lineage -- Worklist walker for handling-unit lineage.

Responsibility:
    Given the records matched by a base trace query, expand them along the
    VHU lineage graph (backward to source VHUs, or forward to VHUs derived
    from them) and return every reachable record exactly once.

Architecture position:
    Engines -- pure algorithm layer, zero I/O.  Record lookups are injected
    as callables; this module never imports SQLAlchemy, kernel db, config or
    modules.

Algorithm:
    Depth-first worklist with an explicit stack.  Each stack entry is a VHU
    id to expand together with its depth below the base query.  Children are
    pushed in reverse so they pop in ascending id order, which reproduces the
    pre-order of the equivalent recursive definition:

        BACKWARD  children(records) = sorted distinct positive vhu_source_id
        FORWARD   children(records) = for each sorted distinct vhu_id v:
                      sorted distinct vhu_id of records whose source is v

    A VHU id is expanded at most once (visited set).  Cyclic lineage
    therefore terminates; for acyclic graphs the output is identical to the
    recursive definition.

Invariants enforced:
    - Output contains no duplicate record (identity = ``record_id``).
    - Output order: base records first, then expansions in depth-first
      pre-order, each group in the order the lookup returned it.
    - ``max_depth`` / ``max_records`` bound the expansion; exceeding either
      raises ``LineageLimitExceededError``.  ``None`` disables a bound.  A
      walk without direction returns the base records whatever their count.

Failure modes:
    - LineageLimitExceededError when a bound is exceeded.
    - Exceptions raised by the injected lookups propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from enum import Enum
from typing import Protocol, TypeVar

from material_engines.tracer import traced_engine
from material_kernel.exceptions import LineageLimitExceededError


class LineageDirection(str, Enum):
    """Direction in which lineage is followed."""

    BACKWARD = "backward"
    FORWARD = "forward"


class LineageNode(Protocol):
    """Minimal record shape the walker needs."""

    @property
    def record_id(self) -> Hashable: ...

    @property
    def vhu_id(self) -> int: ...

    @property
    def vhu_source_id(self) -> int: ...


N = TypeVar("N", bound=LineageNode)

RecordLookup = Callable[[int], Sequence[N]]


def _distinct_sorted(values: Iterable[int]) -> list[int]:
    return sorted(set(values))


class _Collector:
    """
    Insertion-ordered, duplicate-free accumulator.

    Base records are taken as they are; ``max_records`` bounds only the
    records the expansion adds on top of them.
    """

    def __init__(self, base_records: Iterable[LineageNode], max_records: int | None):
        self._max_records = max_records
        self._seen: set[Hashable] = set()
        self.records: list = []
        for record in base_records:
            self._add(record)
        self._base_count = len(self.records)

    def _add(self, record: LineageNode) -> bool:
        if record.record_id in self._seen:
            return False
        self._seen.add(record.record_id)
        self.records.append(record)
        return True

    def extend(self, records: Iterable[LineageNode], vhu_id: int) -> None:
        for record in records:
            if not self._add(record):
                continue
            added = len(self.records) - self._base_count
            if self._max_records is not None and added > self._max_records:
                raise LineageLimitExceededError("max_records", self._max_records, vhu_id)


def backward_children(records: Sequence[LineageNode]) -> list[int]:
    """Source VHU ids to expand when walking backward."""
    return _distinct_sorted(r.vhu_source_id for r in records if r.vhu_source_id > 0)


def forward_children(
    records: Sequence[LineageNode],
    fetch_by_vhu_source_id: RecordLookup,
) -> list[int]:
    """Derived VHU ids to expand when walking forward.

    For every distinct VHU id in *records* the records sourced from it are
    looked up; their distinct VHU ids are appended in ascending order.  The
    same id may appear more than once when two VHUs feed the same target.
    """
    children: list[int] = []
    for vhu_id in _distinct_sorted(r.vhu_id for r in records):
        derived = fetch_by_vhu_source_id(vhu_id)
        children.extend(_distinct_sorted(r.vhu_id for r in derived))
    return children


@traced_engine("hu_lineage", "1.0", fingerprint_fields=("direction", "max_depth", "max_records"))
def walk_lineage(
    base_records: Sequence[N],
    *,
    direction: LineageDirection | None,
    fetch_by_vhu_id: RecordLookup,
    fetch_by_vhu_source_id: RecordLookup,
    max_depth: int | None = None,
    max_records: int | None = None,
) -> list[N]:
    """
    Expand *base_records* along the lineage graph.

    Args:
        base_records: Records matched by the literal (non-recursive) query.
        direction: BACKWARD, FORWARD, or None for no expansion.
        fetch_by_vhu_id: Returns the records of one VHU.
        fetch_by_vhu_source_id: Returns the records whose source is one VHU.
        max_depth: Maximum expansion depth below the base records.
        max_records: Maximum number of records the expansion may add to the
            base records.  The base step itself is never capped.

    Returns:
        Distinct records, base first, then expansions in depth-first order.

    Raises:
        LineageLimitExceededError: a bound was exceeded.
    """
    collector = _Collector(base_records, max_records)

    if direction is None or not base_records:
        return collector.records

    def children_of(records: Sequence[N]) -> list[int]:
        match direction:
            case LineageDirection.BACKWARD:
                return backward_children(records)
            case LineageDirection.FORWARD:
                return forward_children(records, fetch_by_vhu_source_id)
        raise ValueError(f"Unknown lineage direction: {direction!r}")

    expanded: set[int] = set()
    stack: list[tuple[int, int]] = [(child, 1) for child in reversed(children_of(base_records))]

    while stack:
        vhu_id, depth = stack.pop()
        if vhu_id in expanded:
            continue
        if max_depth is not None and depth > max_depth:
            raise LineageLimitExceededError("max_depth", max_depth, vhu_id)
        expanded.add(vhu_id)

        records = fetch_by_vhu_id(vhu_id)
        collector.extend(records, vhu_id)

        for child in reversed(children_of(records)):
            if child not in expanded:
                stack.append((child, depth + 1))

    return collector.records
