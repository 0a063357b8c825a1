"""Node table builder for the sequential importer.

The table is the canonical node array in the making: one entry per node that
will exist, appended in canonical category order so that an entry's position
is its final index. Category order (nodes generated per definition line):

    nodes[1], nodes2[1], cinecam[1],
    wheels[rays*2], wheels2[rays*4], meshwheels[rays*2],
    meshwheels2[rays*2], flexbodywheels[rays*4]

Entries are never reordered or removed, so every index handed out during a
pass stays valid for the rest of it.
"""

from __future__ import annotations

from rigdef.keywords import (
    CANONICAL_NODE_ORDER,
    NODES_PER_RAY,
    NodeKeyword,
    WheelKeyword,
    canonical_rank,
    is_wheel_keyword,
)
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.types import (
    DETAIL_UNDEFINED,
    RAY_PATTERN_2,
    RAY_PATTERN_4,
    GeneratedNodeEntry,
    NamedNodeEntry,
    NodeEntry,
    NumberedNodeEntry,
    OriginDetail,
    WheelNodeEntry,
)


def ray_pattern(keyword: WheelKeyword) -> tuple[OriginDetail, ...]:
    """Per-ray node pattern of a wheel family."""
    return RAY_PATTERN_4 if NODES_PER_RAY[keyword] == 4 else RAY_PATTERN_2


def _is_count(value: object, minimum: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= minimum


def _is_standalone_generated(keyword: str) -> bool:
    """Node categories whose entries come one per line with no id (cinecam)."""
    return keyword not in ("nodes", "nodes2") and not is_wheel_keyword(keyword) and canonical_rank(keyword) >= 0


class NodeTable:
    """Append-only canonical node table with name and number lookups."""

    __slots__ = (
        "_log",
        "_entries",
        "_numbered",
        "_named",
        "_counts",
        "_wheels",
        "_rigidity_links",
    )

    def __init__(self, log: MessageLog) -> None:
        self._log = log
        self._entries: list[NodeEntry] = []
        self._numbered: dict[int, int] = {}
        self._named: dict[str, int] = {}
        self._counts: dict[NodeKeyword, int] = {keyword: 0 for keyword in CANONICAL_NODE_ORDER}
        # (family, wheel_index) -> (first canonical index, num_rays)
        self._wheels: dict[tuple[str, int], tuple[int, int]] = {}
        self._rigidity_links: dict[str, int] = {keyword: 0 for keyword in NODES_PER_RAY}

    # -- registration --------------------------------------------------------

    def register_numbered(self, number: int) -> bool:
        if not _is_count(number, 0):
            self._log.report("error", f"Invalid node number {number!r}, node ignored")
            return False
        existing = self._numbered.get(number)
        if existing is not None:
            self._log.report(
                "warning",
                f"Duplicate definition of node {number}, keeping first definition (index {existing})",
            )
            return False
        if not self._check_order("nodes"):
            return False
        expected = self._counts["nodes"]
        if number != expected:
            self._log.report(
                "info",
                f"Node {number} defined out of sequence (expected {expected}), "
                "legacy index references may shift",
            )
        self._numbered[number] = self._append("nodes", NumberedNodeEntry(number))
        return True

    def register_named(self, name: str) -> bool:
        if not name:
            self._log.report("error", "Empty node name, node ignored")
            return False
        existing = self._named.get(name)
        if existing is not None:
            self._log.report(
                "warning",
                f'Duplicate definition of node "{name}", keeping first definition (index {existing})',
            )
            return False
        if not self._check_order("nodes2"):
            return False
        self._named[name] = self._append("nodes2", NamedNodeEntry(name))
        return True

    def register_generated(self, keyword: NodeKeyword, detail: OriginDetail = DETAIL_UNDEFINED) -> bool:
        if not _is_standalone_generated(keyword):
            self._log.report("error", f"Section '{keyword}' cannot generate a standalone node")
            return False
        if not self._check_order(keyword):
            return False
        sub_index = self._counts[keyword]
        self._append(keyword, GeneratedNodeEntry(keyword=keyword, origin_detail=detail, sub_index=sub_index))
        return True

    def register_wheel(self, keyword: WheelKeyword, num_rays: int, has_rigidity_node: bool) -> bool:
        if not is_wheel_keyword(keyword):
            self._log.report("error", f"Section '{keyword}' is not a wheel family, no nodes generated")
            return False
        if not _is_count(num_rays, 1):
            self._log.report("error", f"Wheel with {num_rays!r} rays generates no nodes, wheel ignored")
            return False
        if not self._check_order(keyword):
            return False
        wheel_index = sum(1 for family, _ in self._wheels if family == keyword)
        base = len(self._entries)
        pattern = ray_pattern(keyword)
        for ray in range(num_rays):
            for detail in pattern:
                self._append(
                    keyword,
                    WheelNodeEntry(keyword=keyword, wheel_index=wheel_index, ray=ray, origin_detail=detail),
                )
        self._wheels[(keyword, wheel_index)] = (base, num_rays)
        if has_rigidity_node:
            self._rigidity_links[keyword] += 1
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._numbered.clear()
        self._named.clear()
        for keyword in self._counts:
            self._counts[keyword] = 0
        for keyword in self._rigidity_links:
            self._rigidity_links[keyword] = 0
        self._wheels.clear()

    # -- lookups -------------------------------------------------------------

    @property
    def entries(self) -> tuple[NodeEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, index: int) -> NodeEntry:
        return self._entries[index]

    def count(self, keyword: NodeKeyword) -> int:
        return self._counts[keyword]

    def offset(self, keyword: NodeKeyword) -> int:
        """First canonical index of a category: sum of all preceding categories."""
        rank = canonical_rank(keyword)
        if rank < 0:
            raise ValueError(f"{keyword!r} is not a node-producing section")
        return sum(self._counts[prior] for prior in CANONICAL_NODE_ORDER[:rank])

    def numbered_index(self, number: int) -> int | None:
        return self._numbered.get(number)

    def named_index(self, name: str) -> int | None:
        return self._named.get(name)

    def wheel_base(self, keyword: WheelKeyword, wheel_index: int) -> int | None:
        found = self._wheels.get((keyword, wheel_index))
        return found[0] if found is not None else None

    def wheel_node_index(
        self,
        keyword: WheelKeyword,
        wheel_index: int,
        ray: int,
        detail: OriginDetail,
    ) -> int | None:
        """Canonical index of one generated wheel node, None if it does not exist."""
        found = self._wheels.get((keyword, wheel_index))
        if found is None:
            return None
        base, num_rays = found
        pattern = ray_pattern(keyword)
        if not 0 <= ray < num_rays or detail not in pattern:
            return None
        return base + ray * len(pattern) + pattern.index(detail)

    def generated_index(self, keyword: NodeKeyword, sub_index: int) -> int | None:
        """Canonical index of the ``sub_index``-th standalone generated node."""
        if not _is_standalone_generated(keyword) or not 0 <= sub_index < self._counts[keyword]:
            return None
        return self.offset(keyword) + sub_index

    def wheel_count(self, keyword: WheelKeyword) -> int:
        return sum(1 for family, _ in self._wheels if family == keyword)

    @property
    def rigidity_links(self) -> dict[str, int]:
        return dict(self._rigidity_links)

    def statistics(self) -> dict[str, object]:
        return {
            "total_nodes": len(self._entries),
            "counts": {keyword: self._counts[keyword] for keyword in CANONICAL_NODE_ORDER},
            "offsets": {keyword: self.offset(keyword) for keyword in CANONICAL_NODE_ORDER},
            "wheels": {keyword: self.wheel_count(keyword) for keyword in NODES_PER_RAY},
            "rigidity_links": dict(self._rigidity_links),
        }

    # -- internals -----------------------------------------------------------

    def _append(self, keyword: NodeKeyword, entry: NodeEntry) -> int:
        index = len(self._entries)
        self._entries.append(entry)
        self._counts[keyword] += 1
        return index

    def _check_order(self, keyword: NodeKeyword) -> bool:
        rank = canonical_rank(keyword)
        for later in CANONICAL_NODE_ORDER[rank + 1:]:
            if self._counts[later]:
                self._log.report(
                    "fatal",
                    f"'{keyword}' node registered after '{later}' nodes; "
                    "canonical node order violated, registration rejected",
                )
                return False
        return True
