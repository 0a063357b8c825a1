"""Rig-file keyword tags and the canonical node-category order.

Keywords are plain section names as they appear in a truck file. They are
only used as provenance and diagnostic labels; the few behaviours that depend
on them (canonical order, nodes generated per wheel ray) live here.
"""

from __future__ import annotations

from typing import Literal


type NodeKeyword = Literal[
    "nodes",
    "nodes2",
    "cinecam",
    "wheels",
    "wheels2",
    "meshwheels",
    "meshwheels2",
    "flexbodywheels",
]
type WheelKeyword = Literal["wheels", "wheels2", "meshwheels", "meshwheels2", "flexbodywheels"]
type Keyword = str


# Order in which node-producing sections populate the node array.
CANONICAL_NODE_ORDER: tuple[NodeKeyword, ...] = (
    "nodes",
    "nodes2",
    "cinecam",
    "wheels",
    "wheels2",
    "meshwheels",
    "meshwheels2",
    "flexbodywheels",
)

WHEEL_KEYWORDS: tuple[WheelKeyword, ...] = (
    "wheels",
    "wheels2",
    "meshwheels",
    "meshwheels2",
    "flexbodywheels",
)

NODES_PER_RAY: dict[WheelKeyword, int] = {
    "wheels": 2,
    "wheels2": 4,
    "meshwheels": 2,
    "meshwheels2": 2,
    "flexbodywheels": 4,
}

# Sections whose rows carry node references, in the order they are resolved.
REFERENCE_SECTIONS: tuple[Keyword, ...] = (
    "beams",
    "shocks",
    "shocks2",
    "hydros",
    "commands2",
    "triggers",
    "ropes",
    "ties",
    "fixes",
    "contacters",
    "hooks",
    "ropables",
    "slidenodes",
    "axles",
    "cameras",
    "cinecam",
    "wheels",
    "wheels2",
    "meshwheels",
    "meshwheels2",
    "flexbodywheels",
    "flexbodies",
    "props",
    "submesh",
)


def is_wheel_keyword(keyword: str) -> bool:
    return keyword in WHEEL_KEYWORDS


def canonical_rank(keyword: str) -> int:
    """Position of a node category in the canonical order, -1 if unknown."""
    try:
        return CANONICAL_NODE_ORDER.index(keyword)  # type: ignore[arg-type]
    except ValueError:
        return -1
