"""Reference resolver: maps node references to canonical array positions."""

from __future__ import annotations

from collections.abc import Container
from dataclasses import replace

from rigdef.document import NodeRange, NodeRef
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.node_table import NodeTable


class ReferenceResolver:
    """Resolve numbered and named references against a ``NodeTable``.

    Numbers are looked up as original ``nodes`` ids, names in the ``nodes2``
    index; the two namespaces never mix. Generated references (cinecam and
    wheel nodes) are located by origin. Misses are reported as errors and
    yield an unresolved marker, never a guessed index. Already-resolved
    references pass through untouched.
    """

    __slots__ = (
        "_table",
        "_log",
        "enabled",
        "total_resolved",
        "resolved_to_self",
        "resolved_unchanged",
        "unresolved",
    )

    def __init__(self, table: NodeTable, log: MessageLog, *, enabled: bool = True) -> None:
        self._table = table
        self._log = log
        self.enabled = enabled
        self.total_resolved = 0
        self.resolved_to_self = 0
        self.resolved_unchanged = 0
        self.unresolved = 0

    def reset_statistics(self) -> None:
        self.total_resolved = 0
        self.resolved_to_self = 0
        self.resolved_unchanged = 0
        self.unresolved = 0

    def resolve(self, ref: NodeRef, *, referrer: Container[int] | int | None = None) -> NodeRef:
        """Return ``ref`` rewritten to its canonical index.

        ``referrer`` holds the canonical index (or indices) the referring
        construct already points at; resolving onto one of them is counted
        as a self-reference, not rejected.
        """

        if not self.enabled or ref.is_resolved or ref.is_unresolved:
            return ref

        if ref.kind == "name":
            index = self._table.named_index(ref.token)
            if index is None:
                return self._fail(ref, f'Node "{ref.token}" is not defined')
        elif ref.kind == "generated":
            index = self._generated_index(ref)
            if index is None:
                return self._fail(ref, f"Generated node {ref.token} is not defined")
        else:
            number = int(ref.token)
            index = self._table.numbered_index(number)
            if index is None:
                return self._fail(ref, f"Node {number} is not defined")
            if index == number:
                self.resolved_unchanged += 1

        self.total_resolved += 1
        if _is_self_reference(index, referrer):
            self.resolved_to_self += 1
        return ref.resolved_to(index)

    def resolve_range(self, ranges: list[NodeRange]) -> int:
        """Resolve every range endpoint in place; return the number of invalid ranges."""

        if not self.enabled:
            return 0
        invalid = 0
        for position, node_range in enumerate(ranges):
            start = self.resolve(node_range.start)
            end = start if node_range.is_single else self.resolve(node_range.end)
            valid = node_range.valid and start.is_resolved and end.is_resolved
            if not valid:
                invalid += 1
            ranges[position] = replace(node_range, start=start, end=end, valid=valid)
        return invalid

    def statistics(self) -> dict[str, int]:
        return {
            "total_resolved": self.total_resolved,
            "resolved_to_self": self.resolved_to_self,
            "resolved_unchanged": self.resolved_unchanged,
            "unresolved": self.unresolved,
        }

    def _generated_index(self, ref: NodeRef) -> int | None:
        parts = ref.generated_parts
        if parts is None:
            return None
        if len(parts) == 2:
            keyword, sub_index = parts
            return self._table.generated_index(keyword, sub_index)  # type: ignore[arg-type]
        keyword, wheel_index, ray, detail = parts
        return self._table.wheel_node_index(keyword, wheel_index, ray, detail)  # type: ignore[arg-type]

    def _fail(self, ref: NodeRef, text: str) -> NodeRef:
        self.unresolved += 1
        self._log.report("error", f"{text}, reference left unresolved")
        return ref.as_unresolved()


def _is_self_reference(index: int, referrer: Container[int] | int | None) -> bool:
    if referrer is None:
        return False
    if isinstance(referrer, int):
        return index == referrer
    return index in referrer
