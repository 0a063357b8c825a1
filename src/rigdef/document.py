"""In-memory model of a parsed rig document.

The line parser produces one ``Document`` per truck file: the root module plus
any sectionconfig modules, each holding its sections as ordered row lists.
Node references inside rows are ``NodeRef`` values; the resolver replaces them
with canonical ones in place, so rows are mutable while references are not.

Type hierarchy:
  NodeRef     -- reference to a node by number, name or origin, raw or resolved
  NodeRange   -- inclusive range of node references (flexbody ``forset``)
  NodeDef     -- ``nodes`` line (numbered node)
  NamedNodeDef -- ``nodes2`` line (named node)
  Beam .. CabTriangle -- reference-bearing rows
  Module      -- one module's sections
  Document    -- ordered modules
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Literal


type RefKind = Literal["number", "name", "generated"]
type RefState = Literal["raw", "resolved", "unresolved"]

ROOT_MODULE_NAME = "_Root_"


def _is_plain_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_decimal(text: str) -> bool:
    return text.isascii() and text.isdigit()


# ---------------------------------------------------------------------------
# Node references
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class NodeRef:
    """Reference to a node as written in the file, plus its resolution state.

    ``kind`` keeps numbers and names in separate namespaces: the name ``"5"``
    and the number ``5`` are different nodes. Generated nodes (cinecam and
    wheel nodes) have no number or name of their own; they are addressed by
    origin, with a ``"generated"`` token of the form ``cinecam:0`` or
    ``wheels:<wheel>:<ray>:<detail>``. ``index`` is only present once the
    reference is resolved; an unresolved marker never carries an index.
    """

    token: str
    kind: RefKind
    state: RefState = "raw"
    index: int | None = None

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("token cannot be empty")
        if self.kind not in ("number", "name", "generated"):
            raise ValueError(f"unknown reference kind {self.kind!r}")
        if self.kind == "number" and not _is_decimal(self.token):
            raise ValueError(f"numbered reference must be a non-negative integer, got {self.token!r}")
        if self.kind == "generated" and self.generated_parts is None:
            raise ValueError(
                f"generated reference must look like 'keyword:sub_index' or "
                f"'keyword:wheel:ray:detail', got {self.token!r}",
            )
        if self.state == "resolved":
            if not _is_plain_int(self.index) or self.index < 0:
                raise ValueError("resolved reference must carry index >= 0")
        elif self.index is not None:
            raise ValueError(f"{self.state} reference must not carry an index")

    @classmethod
    def numbered(cls, number: int) -> NodeRef:
        if not _is_plain_int(number) or number < 0:
            raise ValueError(f"node number must be an integer >= 0, got {number!r}")
        return cls(token=str(number), kind="number")

    @classmethod
    def named(cls, name: str) -> NodeRef:
        return cls(token=name, kind="name")

    @classmethod
    def generated(cls, keyword: str, sub_index: int) -> NodeRef:
        """Standalone generated node, e.g. the ``sub_index``-th cinecam."""
        return cls(token=f"{keyword}:{sub_index}", kind="generated")

    @classmethod
    def wheel_node(cls, keyword: str, wheel_index: int, ray: int, detail: str) -> NodeRef:
        return cls(token=f"{keyword}:{wheel_index}:{ray}:{detail}", kind="generated")

    @classmethod
    def canonical(cls, index: int) -> NodeRef:
        """Reference that already points at a canonical array position."""
        return cls(token=str(index), kind="number", state="resolved", index=index)

    @classmethod
    def parse(cls, token: str | int) -> NodeRef:
        """Legacy token rule: all-digit tokens are numbers, anything else a name."""
        if isinstance(token, int):
            return cls.numbered(token)
        text = token.strip()
        if _is_decimal(text):
            return cls.numbered(int(text))
        return cls.named(text)

    @property
    def number(self) -> int | None:
        return int(self.token) if self.kind == "number" else None

    @property
    def generated_parts(self) -> tuple[str, int] | tuple[str, int, int, str] | None:
        """``(keyword, sub_index)`` or ``(keyword, wheel, ray, detail)``."""
        if self.kind != "generated":
            return None
        parts = self.token.split(":")
        if not all(parts) or not all(_is_decimal(part) for part in parts[1:3]):
            return None
        if len(parts) == 2:
            return parts[0], int(parts[1])
        if len(parts) == 4:
            return parts[0], int(parts[1]), int(parts[2]), parts[3]
        return None

    @property
    def is_resolved(self) -> bool:
        return self.state == "resolved"

    @property
    def is_unresolved(self) -> bool:
        return self.state == "unresolved"

    def resolved_to(self, index: int) -> NodeRef:
        return replace(self, state="resolved", index=index)

    def as_unresolved(self) -> NodeRef:
        return replace(self, state="unresolved", index=None)

    def __str__(self) -> str:
        if self.is_resolved:
            return f"#{self.index}"
        if self.kind == "generated":
            return f"<{self.token}>"
        return self.token if self.kind == "number" else f'"{self.token}"'


@dataclass(frozen=True, slots=True)
class NodeRange:
    """Inclusive node range; ``valid`` drops to False when an endpoint fails.

    ``is_single`` marks a one-node entry written as a bare reference. Only
    those share one endpoint; ``[9, 9]`` is a two-endpoint range.
    """

    start: NodeRef
    end: NodeRef
    valid: bool = True
    is_single: bool = False

    @classmethod
    def single(cls, ref: NodeRef) -> NodeRange:
        return cls(start=ref, end=ref, is_single=True)


# ---------------------------------------------------------------------------
# Node definitions
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class NodeDef:
    number: int
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    options: str = ""

    def __post_init__(self) -> None:
        if not _is_plain_int(self.number) or self.number < 0:
            raise ValueError(f"node number must be an integer >= 0, got {self.number!r}")


@dataclass(slots=True)
class NamedNodeDef:
    name: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    options: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("node name cannot be empty")


# ---------------------------------------------------------------------------
# Reference-bearing rows
#
# REF_FIELDS lists the attributes holding NodeRef, NodeRef | None or
# list[NodeRef] values. The walker rewrites exactly those attributes.
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Beam:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2")

    node1: NodeRef
    node2: NodeRef
    options: str = ""


@dataclass(slots=True)
class Shock:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2")

    node1: NodeRef
    node2: NodeRef
    spring_rate: float = 0.0
    damping: float = 0.0
    options: str = ""


@dataclass(slots=True)
class Hydro:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2")

    node1: NodeRef
    node2: NodeRef
    lengthening_factor: float = 0.0
    options: str = ""


@dataclass(slots=True)
class Command2:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2")

    node1: NodeRef
    node2: NodeRef
    shorten_key: int = 0
    lengthen_key: int = 0
    description: str = ""


@dataclass(slots=True)
class Trigger:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2")

    node1: NodeRef
    node2: NodeRef
    options: str = ""


@dataclass(slots=True)
class Rope:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("root_node", "end_node")

    root_node: NodeRef
    end_node: NodeRef
    invisible: bool = False


@dataclass(slots=True)
class Tie:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("root_node",)

    root_node: NodeRef
    max_reach_length: float = 0.0


@dataclass(slots=True)
class Fix:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node",)

    node: NodeRef


@dataclass(slots=True)
class Contacter:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node",)

    node: NodeRef


@dataclass(slots=True)
class Hook:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node",)

    node: NodeRef
    option_hook_range: float = 0.4


@dataclass(slots=True)
class Ropable:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node",)

    node: NodeRef
    group: int = -1


@dataclass(slots=True)
class SlideNode:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("slide_node", "rail_nodes")

    slide_node: NodeRef
    rail_nodes: list[NodeRef] = field(default_factory=list)


@dataclass(slots=True)
class Axle:
    REF_FIELDS: ClassVar[tuple[str, ...]] = (
        "wheel1_node1",
        "wheel1_node2",
        "wheel2_node1",
        "wheel2_node2",
    )

    wheel1_node1: NodeRef
    wheel1_node2: NodeRef
    wheel2_node1: NodeRef
    wheel2_node2: NodeRef
    options: str = ""


@dataclass(slots=True)
class Camera:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("center_node", "back_node", "left_node")

    center_node: NodeRef
    back_node: NodeRef
    left_node: NodeRef


@dataclass(slots=True)
class Cinecam:
    """Cinecam line: generates one node, attached to eight existing ones."""

    REF_FIELDS: ClassVar[tuple[str, ...]] = ("nodes",)

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    nodes: list[NodeRef] = field(default_factory=list)
    spring: float = 8000.0
    damping: float = 800.0


@dataclass(slots=True)
class Wheel:
    """Row shared by every wheel family; the family is the section keyword."""

    REF_FIELDS: ClassVar[tuple[str, ...]] = (
        "node1",
        "node2",
        "rigidity_node",
        "reference_arm_node",
    )

    num_rays: int
    node1: NodeRef
    node2: NodeRef
    rigidity_node: NodeRef | None = None
    reference_arm_node: NodeRef | None = None
    radius: float = 0.5
    width: float = 0.2
    mass: float = 10.0

    def __post_init__(self) -> None:
        if not _is_plain_int(self.num_rays) or self.num_rays < 1:
            raise ValueError(f"num_rays must be an integer >= 1, got {self.num_rays!r}")


@dataclass(slots=True)
class Flexbody:
    """Flexbody line plus its ``forset`` node ranges."""

    REF_FIELDS: ClassVar[tuple[str, ...]] = ("reference_node", "x_axis_node", "y_axis_node")

    reference_node: NodeRef
    x_axis_node: NodeRef
    y_axis_node: NodeRef
    mesh_name: str = ""
    forset: list[NodeRange] = field(default_factory=list)


@dataclass(slots=True)
class Prop:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("reference_node", "x_axis_node", "y_axis_node")

    reference_node: NodeRef
    x_axis_node: NodeRef
    y_axis_node: NodeRef
    mesh_name: str = ""


@dataclass(slots=True)
class CabTriangle:
    REF_FIELDS: ClassVar[tuple[str, ...]] = ("node1", "node2", "node3")

    node1: NodeRef
    node2: NodeRef
    node3: NodeRef
    options: str = ""


# Row type per known section; used by the walker and the JSON codec.
SECTION_ROW_TYPES: dict[str, type] = {
    "beams": Beam,
    "shocks": Shock,
    "shocks2": Shock,
    "hydros": Hydro,
    "commands2": Command2,
    "triggers": Trigger,
    "ropes": Rope,
    "ties": Tie,
    "fixes": Fix,
    "contacters": Contacter,
    "hooks": Hook,
    "ropables": Ropable,
    "slidenodes": SlideNode,
    "axles": Axle,
    "cameras": Camera,
    "cinecam": Cinecam,
    "wheels": Wheel,
    "wheels2": Wheel,
    "meshwheels": Wheel,
    "meshwheels2": Wheel,
    "flexbodywheels": Wheel,
    "flexbodies": Flexbody,
    "props": Prop,
    "submesh": CabTriangle,
}


# ---------------------------------------------------------------------------
# Modules and documents
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Module:
    name: str
    nodes: list[NodeDef] = field(default_factory=list)
    nodes2: list[NamedNodeDef] = field(default_factory=list)
    cinecam: list[Cinecam] = field(default_factory=list)
    wheels: list[Wheel] = field(default_factory=list)
    wheels2: list[Wheel] = field(default_factory=list)
    meshwheels: list[Wheel] = field(default_factory=list)
    meshwheels2: list[Wheel] = field(default_factory=list)
    flexbodywheels: list[Wheel] = field(default_factory=list)
    beams: list[Beam] = field(default_factory=list)
    shocks: list[Shock] = field(default_factory=list)
    shocks2: list[Shock] = field(default_factory=list)
    hydros: list[Hydro] = field(default_factory=list)
    commands2: list[Command2] = field(default_factory=list)
    triggers: list[Trigger] = field(default_factory=list)
    ropes: list[Rope] = field(default_factory=list)
    ties: list[Tie] = field(default_factory=list)
    fixes: list[Fix] = field(default_factory=list)
    contacters: list[Contacter] = field(default_factory=list)
    hooks: list[Hook] = field(default_factory=list)
    ropables: list[Ropable] = field(default_factory=list)
    slidenodes: list[SlideNode] = field(default_factory=list)
    axles: list[Axle] = field(default_factory=list)
    cameras: list[Camera] = field(default_factory=list)
    flexbodies: list[Flexbody] = field(default_factory=list)
    props: list[Prop] = field(default_factory=list)
    submesh: list[CabTriangle] = field(default_factory=list)
    # Sections this model does not know; carried through untouched.
    extra_sections: dict[str, list[Any]] = field(default_factory=dict)

    def section(self, keyword: str) -> list[Any]:
        if keyword in SECTION_ROW_TYPES or keyword in ("nodes", "nodes2"):
            return getattr(self, keyword)
        return self.extra_sections.get(keyword, [])


@dataclass(slots=True)
class Document:
    modules: list[Module] = field(default_factory=list)

    @classmethod
    def single(cls, module: Module | None = None) -> Document:
        return cls(modules=[module if module is not None else Module(name=ROOT_MODULE_NAME)])

    @property
    def root(self) -> Module:
        if not self.modules:
            raise ValueError("document has no modules")
        return self.modules[0]
