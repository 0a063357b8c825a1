"""Sequential importer for legacy rig files.

Rig physics work on a flat node array. Legacy truck files fixed a node's
array position by the order its definition appeared, which let files address
nodes before they existed, address nodes that never existed, and made indices
of generated nodes (cinecam, wheels) hard to predict.

The importer re-derives a canonical node order from the parsed document
(numbered nodes, named nodes, cinecam, then the wheel families) and rewrites
every node reference to its position in that order. Failures are recorded as
messages; a pass always completes and the caller decides, from the counts,
whether the document is usable.

Usage::

    importer = SequentialImporter()
    importer.init(enabled=is_legacy_file)
    importer.process(document)
    if importer.error_count():
        print(importer.messages_as_text())
"""

from __future__ import annotations

import logging

from rigdef.document import Document, NodeRange, NodeRef
from rigdef.keywords import NodeKeyword, WheelKeyword
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.node_table import NodeTable
from rigdef.sequential.resolver import ReferenceResolver
from rigdef.sequential.types import DETAIL_UNDEFINED, Message, OriginDetail, entry_to_dict
from rigdef.sequential.walker import DocumentWalker
from rigdef.settings import ImporterSettings


log = logging.getLogger(__name__)


class SequentialImporter:
    """Resolution context for one document: node table, lookups and message log.

    When disabled (modern files already use final indices) every operation is
    a no-op and the table stays empty.
    """

    def __init__(self, settings: ImporterSettings | None = None) -> None:
        self.settings = settings or ImporterSettings()
        self._messages = MessageLog()
        self._table = NodeTable(self._messages)
        self._resolver = ReferenceResolver(self._table, self._messages, enabled=False)
        self._walker = DocumentWalker(self._table, self._resolver, self._messages)
        self._enabled = False
        self._initialized = False

    @classmethod
    def from_settings(cls, settings: ImporterSettings) -> SequentialImporter:
        importer = cls(settings)
        importer.init(settings.enabled)
        return importer

    # -- lifecycle -----------------------------------------------------------

    def init(self, enabled: bool) -> None:
        """Start a fresh pass."""
        self._table.clear()
        self._messages.clear()
        self._resolver.reset_statistics()
        self._enabled = enabled
        self._resolver.enabled = enabled
        self._initialized = True

    def disable(self) -> None:
        self._enabled = False
        self._resolver.enabled = False
        self._table.clear()

    def is_enabled(self) -> bool:
        return self._enabled

    # -- table building ------------------------------------------------------

    def register_numbered(self, number: int) -> bool:
        if not self._enabled:
            return False
        return self._table.register_numbered(number)

    def register_named(self, name: str) -> bool:
        if not self._enabled:
            return False
        return self._table.register_named(name)

    def register_generated(self, keyword: NodeKeyword, detail: OriginDetail = DETAIL_UNDEFINED) -> bool:
        if not self._enabled:
            return False
        return self._table.register_generated(keyword, detail)

    def register_wheel(self, keyword: WheelKeyword, num_rays: int, has_rigidity_node: bool) -> bool:
        if not self._enabled:
            return False
        return self._table.register_wheel(keyword, num_rays, has_rigidity_node)

    # -- resolution ----------------------------------------------------------

    def process(self, document: Document) -> None:
        """Build the canonical table from ``document`` and rewrite its references."""
        if not self._initialized:
            self._messages.add(
                "fatal",
                "Importer used before init(); document was not processed",
                "none",
                "",
            )
            return
        if not self._enabled:
            return
        self._walker.walk(document)
        log.debug(
            "Resolution pass finished: %d nodes, %d errors, %d warnings",
            len(self._table),
            self._messages.error_count,
            self._messages.warning_count,
        )
        if self.settings.log_statistics:
            self.log_node_statistics()
        if self.settings.dump_nodes:
            self.dump_all_nodes()

    def resolve(self, ref: NodeRef) -> NodeRef:
        return self._resolver.resolve(ref)

    def resolve_range(self, ranges: list[NodeRange]) -> int:
        return self._resolver.resolve_range(ranges)

    @property
    def table(self) -> NodeTable:
        return self._table

    def node_array_offset(self, keyword: NodeKeyword) -> int:
        return self._table.offset(keyword)

    # -- diagnostics ---------------------------------------------------------

    def error_count(self) -> int:
        return self._messages.error_count

    def warning_count(self) -> int:
        return self._messages.warning_count

    def other_count(self) -> int:
        return self._messages.other_count

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages.messages

    def messages_as_text(self) -> str:
        return self._messages.as_text()

    def messages_as_dicts(self) -> list[dict[str, str]]:
        return self._messages.to_dicts()

    def node_statistics(self) -> dict[str, object]:
        return {
            "enabled": self._enabled,
            **self._table.statistics(),
            "resolution": self._resolver.statistics(),
            "messages": {
                "errors": self._messages.error_count,
                "warnings": self._messages.warning_count,
                "other": self._messages.other_count,
            },
        }

    def log_node_statistics(self) -> None:
        stats = self._table.statistics()
        counts = stats["counts"]
        log.info(
            "Node statistics: total=%d numbered=%d named=%d cinecam=%d wheels=%d wheels2=%d "
            "meshwheels=%d meshwheels2=%d flexbodywheels=%d",
            stats["total_nodes"],
            counts["nodes"],
            counts["nodes2"],
            counts["cinecam"],
            counts["wheels"],
            counts["wheels2"],
            counts["meshwheels"],
            counts["meshwheels2"],
            counts["flexbodywheels"],
        )
        resolution = self._resolver.statistics()
        log.info(
            "Resolution statistics: resolved=%d resolved_to_self=%d unchanged=%d unresolved=%d",
            resolution["total_resolved"],
            resolution["resolved_to_self"],
            resolution["resolved_unchanged"],
            resolution["unresolved"],
        )

    def dump_all_nodes(self) -> list[dict[str, object]]:
        rows = [entry_to_dict(index, entry) for index, entry in enumerate(self._table.entries)]
        for row in rows:
            log.debug(
                "node #%d: keyword=%s source=%s sub_index=%d detail=%s",
                row["index"],
                row["keyword"],
                row["source_id"],
                row["sub_index"],
                row["origin_detail"],
            )
        return rows
