"""Core types for the sequential node importer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rigdef.keywords import Keyword, WheelKeyword


type OriginDetail = Literal["tyre_a", "tyre_b", "rim_a", "rim_b", "undefined"]
type Severity = Literal["info", "warning", "error", "fatal"]

DETAIL_UNDEFINED: OriginDetail = "undefined"

# Nodes generated for one wheel ray, in array order.
RAY_PATTERN_2: tuple[OriginDetail, ...] = ("tyre_a", "tyre_b")
RAY_PATTERN_4: tuple[OriginDetail, ...] = ("rim_a", "rim_b", "tyre_a", "tyre_b")

SEVERITIES: tuple[Severity, ...] = ("info", "warning", "error", "fatal")


@dataclass(frozen=True, slots=True)
class NumberedNodeEntry:
    """Node defined in ``nodes`` by explicit number."""

    number: int

    def __post_init__(self) -> None:
        if self.number < 0:
            raise ValueError(f"number must be >= 0, got {self.number}")

    @property
    def keyword(self) -> Keyword:
        return "nodes"

    @property
    def origin_detail(self) -> OriginDetail:
        return DETAIL_UNDEFINED

    @property
    def source_id(self) -> int:
        return self.number

    @property
    def sub_index(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class NamedNodeEntry:
    """Node defined in ``nodes2`` by name."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name cannot be empty")

    @property
    def keyword(self) -> Keyword:
        return "nodes2"

    @property
    def origin_detail(self) -> OriginDetail:
        return DETAIL_UNDEFINED

    @property
    def source_id(self) -> str:
        return self.name

    @property
    def sub_index(self) -> int:
        return 0


@dataclass(frozen=True, slots=True)
class GeneratedNodeEntry:
    """Synthetic node that the file cannot address (e.g. a cinecam's own node)."""

    keyword: Keyword
    origin_detail: OriginDetail = DETAIL_UNDEFINED
    sub_index: int = 0

    @property
    def source_id(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class WheelNodeEntry:
    """One node generated by a wheel; ``ray`` doubles as the sub-index."""

    keyword: WheelKeyword
    wheel_index: int
    ray: int
    origin_detail: OriginDetail

    def __post_init__(self) -> None:
        if self.wheel_index < 0:
            raise ValueError("wheel_index must be >= 0")
        if self.ray < 0:
            raise ValueError("ray must be >= 0")

    @property
    def source_id(self) -> None:
        return None

    @property
    def sub_index(self) -> int:
        return self.ray


type NodeEntry = NumberedNodeEntry | NamedNodeEntry | GeneratedNodeEntry | WheelNodeEntry


@dataclass(frozen=True, slots=True)
class Message:
    """One diagnostic record emitted during a resolution pass."""

    text: str
    severity: Severity
    keyword: Keyword
    module_name: str

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"unknown severity {self.severity!r}")


def entry_to_dict(index: int, entry: NodeEntry) -> dict[str, object]:
    """Serialize one table row for dumps and reports."""

    row: dict[str, object] = {
        "index": index,
        "keyword": entry.keyword,
        "origin_detail": entry.origin_detail,
        "source_id": entry.source_id,
        "sub_index": entry.sub_index,
    }
    if isinstance(entry, WheelNodeEntry):
        row["wheel_index"] = entry.wheel_index
    return row
