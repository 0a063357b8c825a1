"""Document walker: drives one full resolution pass over a parsed document."""

from __future__ import annotations

import logging
from typing import Any

from rigdef.document import Document, Module, NodeRef
from rigdef.keywords import CANONICAL_NODE_ORDER, REFERENCE_SECTIONS, is_wheel_keyword
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.node_table import NodeTable
from rigdef.sequential.resolver import ReferenceResolver


log = logging.getLogger(__name__)


class DocumentWalker:
    """Build the node table, then rewrite every reference, module by module.

    Build phase is category-major: all ``nodes`` of every module, then all
    ``nodes2``, and so on, so the table is canonical across modules too.
    Resolve phase walks modules in document order. Sections this walker does
    not know (``Module.extra_sections``) are left as they are.
    """

    __slots__ = ("_table", "_resolver", "_log")

    def __init__(self, table: NodeTable, resolver: ReferenceResolver, messages: MessageLog) -> None:
        self._table = table
        self._resolver = resolver
        self._log = messages

    def walk(self, document: Document) -> None:
        modules = self._usable_modules(document)
        log.debug("Resolution pass over %d module(s)", len(modules))
        for keyword in CANONICAL_NODE_ORDER:
            for module in modules:
                self._build_section(module, keyword)
        for module in modules:
            self._resolve_module(module)
        self._log.current_keyword = "none"
        self._log.current_module = ""

    # -- build phase ---------------------------------------------------------

    def _usable_modules(self, document: Document) -> list[Module]:
        usable: list[Module] = []
        for position, module in enumerate(document.modules):
            if not module.name:
                self._log.add(
                    "fatal",
                    f"Module #{position} has no name and cannot be associated with the pass, module skipped",
                    "none",
                    "",
                )
                continue
            usable.append(module)
        return usable

    def _build_section(self, module: Module, keyword: str) -> None:
        rows = module.section(keyword)
        if not rows:
            return
        self._log.current_module = module.name
        self._log.current_keyword = keyword
        for row in rows:
            if keyword == "nodes":
                self._table.register_numbered(row.number)
            elif keyword == "nodes2":
                self._table.register_named(row.name)
            elif keyword == "cinecam":
                self._table.register_generated("cinecam")
            elif is_wheel_keyword(keyword):
                self._table.register_wheel(keyword, row.num_rays, row.rigidity_node is not None)

    # -- resolve phase -------------------------------------------------------

    def _resolve_module(self, module: Module) -> None:
        self._log.current_module = module.name
        for keyword in REFERENCE_SECTIONS:
            rows = module.section(keyword)
            if not rows:
                continue
            self._log.current_keyword = keyword
            for row in rows:
                self._resolve_row(row)
                if keyword == "flexbodies":
                    self._resolver.resolve_range(row.forset)

    def _resolve_row(self, row: Any) -> None:
        # Indices this row already points at; landing on one again is a self-reference.
        seen: set[int] = set()
        for name in getattr(row, "REF_FIELDS", ()):
            value = getattr(row, name)
            if value is None:
                continue
            if isinstance(value, NodeRef):
                setattr(row, name, self._resolve_into(value, seen))
            else:
                setattr(row, name, [self._resolve_into(ref, seen) for ref in value])

    def _resolve_into(self, ref: NodeRef, seen: set[int]) -> NodeRef:
        resolved = self._resolver.resolve(ref, referrer=seen)
        if resolved.index is not None:
            seen.add(resolved.index)
        return resolved
