"""JSON codec for parsed rig documents.

Layout::

    {"modules": [{"name": "_Root_",
                  "nodes": [{"number": 0, "x": 0.0, "y": 0.0, "z": 0.0}],
                  "nodes2": [{"name": "axle_l"}],
                  "beams": [{"node1": 0, "node2": "axle_l"}],
                  "flexbodies": [{..., "forset": [[0, 10], 12]}],
                  "guisettings": [...]}]}

Node references are JSON integers (numbers) or strings (names), so the name
``"5"`` and the number ``5`` stay distinct. Generated nodes are addressed by
origin: ``{"generated": "cinecam", "sub_index": 0}`` or
``{"generated": "wheels", "wheel": 0, "ray": 3, "detail": "tyre_a"}``.
Resolved references encode as ``{"index": n}`` and unresolved markers as
``{"unresolved": token}``. Module keys this model does not know are kept in
``Module.extra_sections`` and written back under their own key.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

from rigdef.document import (
    SECTION_ROW_TYPES,
    Document,
    Module,
    NamedNodeDef,
    NodeDef,
    NodeRange,
    NodeRef,
)
from rigdef.io_utils import load_json, save_json


class DocumentFormatError(ValueError):
    """Raised when a JSON payload does not describe a valid document."""


_NODE_SECTIONS: dict[str, type] = {"nodes": NodeDef, "nodes2": NamedNodeDef}


# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------

def ref_to_json(ref: NodeRef) -> Any:
    if ref.is_resolved:
        return {"index": ref.index, "token": ref.token, "kind": ref.kind}
    if ref.is_unresolved:
        return {"unresolved": ref.token, "kind": ref.kind}
    if ref.kind == "generated":
        return _generated_to_json(ref)
    return ref.number if ref.kind == "number" else ref.token


def _generated_to_json(ref: NodeRef) -> dict[str, Any]:
    parts = ref.generated_parts
    assert parts is not None
    if len(parts) == 2:
        return {"generated": parts[0], "sub_index": parts[1]}
    keyword, wheel_index, ray, detail = parts
    return {"generated": keyword, "wheel": wheel_index, "ray": ray, "detail": detail}


def _generated_from_json(payload: dict[str, Any], where: str) -> NodeRef:
    keys = ("wheel", "ray", "detail") if "ray" in payload else ("sub_index",)
    missing = [key for key in keys if key not in payload]
    if missing:
        raise DocumentFormatError(f"{where}: generated reference is missing {', '.join(missing)}")
    values = [payload[key] for key in keys]
    if not all(_is_int(value) and value >= 0 for value in values[:2]):
        raise DocumentFormatError(f"{where}: generated reference positions must be integers >= 0")
    if len(keys) == 1:
        return NodeRef.generated(str(payload["generated"]), values[0])
    return NodeRef.wheel_node(str(payload["generated"]), values[0], values[1], str(values[2]))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def ref_from_json(payload: Any, where: str) -> NodeRef:
    try:
        if isinstance(payload, bool):
            raise DocumentFormatError(f"{where}: boolean is not a node reference")
        if isinstance(payload, int):
            return NodeRef.numbered(payload)
        if isinstance(payload, str):
            return NodeRef.named(payload)
        if isinstance(payload, dict):
            kind = payload.get("kind", "number")
            if "index" in payload:
                index = payload["index"]
                if not _is_int(index):
                    raise DocumentFormatError(f"{where}: index must be an integer, got {index!r}")
                token = str(payload.get("token", index))
                return NodeRef(token=token, kind=kind, state="resolved", index=index)
            if "unresolved" in payload:
                return NodeRef(token=str(payload["unresolved"]), kind=kind, state="unresolved")
            if "generated" in payload:
                return _generated_from_json(payload, where)
    except (TypeError, ValueError) as exc:
        if isinstance(exc, DocumentFormatError):
            raise
        raise DocumentFormatError(f"{where}: {exc}") from exc
    raise DocumentFormatError(f"{where}: cannot read node reference from {payload!r}")


def range_to_json(node_range: NodeRange) -> Any:
    if node_range.is_single:
        if node_range.valid:
            return ref_to_json(node_range.start)
        return {"start": ref_to_json(node_range.start), "valid": False}
    payload: dict[str, Any] = {"start": ref_to_json(node_range.start), "end": ref_to_json(node_range.end)}
    if not node_range.valid:
        payload["valid"] = False
    return payload


def range_from_json(payload: Any, where: str) -> NodeRange:
    if isinstance(payload, list):
        if len(payload) != 2:
            raise DocumentFormatError(f"{where}: range must have exactly two endpoints")
        return NodeRange(start=ref_from_json(payload[0], where), end=ref_from_json(payload[1], where))
    if isinstance(payload, dict) and "start" in payload:
        start = ref_from_json(payload["start"], where)
        valid = payload.get("valid", True)
        if not isinstance(valid, bool):
            raise DocumentFormatError(f"{where}: valid must be a boolean")
        if "end" not in payload:
            return NodeRange(start=start, end=start, valid=valid, is_single=True)
        return NodeRange(start=start, end=ref_from_json(payload["end"], where), valid=valid)
    return NodeRange.single(ref_from_json(payload, where))


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def row_to_json(row: Any) -> dict[str, Any]:
    ref_fields = set(getattr(row, "REF_FIELDS", ()))
    payload: dict[str, Any] = {}
    for item in fields(row):
        value = getattr(row, item.name)
        if item.name in ref_fields:
            if value is None:
                continue
            if isinstance(value, NodeRef):
                payload[item.name] = ref_to_json(value)
            else:
                payload[item.name] = [ref_to_json(ref) for ref in value]
        elif item.name == "forset":
            payload[item.name] = [range_to_json(node_range) for node_range in value]
        else:
            payload[item.name] = value
    return payload


def row_from_json(row_type: type, payload: Any, where: str) -> Any:
    if not isinstance(payload, dict):
        raise DocumentFormatError(f"{where}: row must be a JSON object")
    known = {item.name for item in fields(row_type)}
    unknown = sorted(set(payload) - known)
    if unknown:
        raise DocumentFormatError(f"{where}: unknown field(s) {', '.join(unknown)}")
    ref_fields = set(getattr(row_type, "REF_FIELDS", ()))
    kwargs: dict[str, Any] = {}
    for name, value in payload.items():
        if name in ref_fields:
            if value is None:
                kwargs[name] = None
            elif isinstance(value, list):
                kwargs[name] = [ref_from_json(item, f"{where}.{name}") for item in value]
            else:
                kwargs[name] = ref_from_json(value, f"{where}.{name}")
        elif name == "forset":
            if not isinstance(value, list):
                raise DocumentFormatError(f"{where}.forset: must be a JSON array")
            kwargs[name] = [range_from_json(item, f"{where}.forset") for item in value]
        else:
            kwargs[name] = value
    try:
        return row_type(**kwargs)
    except (TypeError, ValueError) as exc:
        raise DocumentFormatError(f"{where}: {exc}") from exc


# ---------------------------------------------------------------------------
# Modules and documents
# ---------------------------------------------------------------------------

def module_to_json(module: Module) -> dict[str, Any]:
    payload: dict[str, Any] = {"name": module.name}
    for keyword in (*_NODE_SECTIONS, *SECTION_ROW_TYPES):
        rows = module.section(keyword)
        if rows:
            payload[keyword] = [row_to_json(row) for row in rows]
    for keyword, rows in module.extra_sections.items():
        if keyword == "name" or keyword in _NODE_SECTIONS or keyword in SECTION_ROW_TYPES:
            raise DocumentFormatError(f"module {module.name!r}: extra section {keyword!r} shadows a known key")
        payload[keyword] = rows
    return payload


def module_from_json(payload: Any, where: str) -> Module:
    if not isinstance(payload, dict):
        raise DocumentFormatError(f"{where}: module must be a JSON object")
    name = payload.get("name")
    if not isinstance(name, str):
        raise DocumentFormatError(f"{where}: module name must be a string")
    module = Module(name=name)
    for keyword, rows in payload.items():
        if keyword == "name":
            continue
        row_type = _NODE_SECTIONS.get(keyword) or SECTION_ROW_TYPES.get(keyword)
        if row_type is None:
            module.extra_sections[keyword] = rows
            continue
        if not isinstance(rows, list):
            raise DocumentFormatError(f"{where}.{keyword}: section must be a JSON array")
        section = module.section(keyword)
        section.extend(
            row_from_json(row_type, row, f"{where}.{keyword}[{position}]")
            for position, row in enumerate(rows)
        )
    return module


def document_to_dict(document: Document) -> dict[str, Any]:
    return {"modules": [module_to_json(module) for module in document.modules]}


def document_from_dict(payload: Any) -> Document:
    if not isinstance(payload, dict) or not isinstance(payload.get("modules"), list):
        raise DocumentFormatError("document must be a JSON object with a 'modules' array")
    return Document(
        modules=[
            module_from_json(module, f"modules[{position}]")
            for position, module in enumerate(payload["modules"])
        ],
    )


def load_document(path: Path) -> Document:
    return document_from_dict(load_json(path))


def save_document(document: Document, path: Path) -> None:
    save_json(document_to_dict(document), path)
