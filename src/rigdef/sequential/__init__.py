"""Sequential importer: canonical node ordering and reference rewriting."""

from rigdef.sequential.importer import SequentialImporter
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.node_table import NodeTable, ray_pattern
from rigdef.sequential.resolver import ReferenceResolver
from rigdef.sequential.types import (
    DETAIL_UNDEFINED,
    GeneratedNodeEntry,
    Message,
    NamedNodeEntry,
    NodeEntry,
    NumberedNodeEntry,
    OriginDetail,
    Severity,
    WheelNodeEntry,
    entry_to_dict,
)
from rigdef.sequential.walker import DocumentWalker

__all__ = [
    "DETAIL_UNDEFINED",
    "DocumentWalker",
    "GeneratedNodeEntry",
    "Message",
    "MessageLog",
    "NamedNodeEntry",
    "NodeEntry",
    "NodeTable",
    "NumberedNodeEntry",
    "OriginDetail",
    "ReferenceResolver",
    "SequentialImporter",
    "Severity",
    "WheelNodeEntry",
    "entry_to_dict",
    "ray_pattern",
]
