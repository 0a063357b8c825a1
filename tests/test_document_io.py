"""Tests for the rig document JSON codec."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest

from rigdef.document import Beam, Document, NodeRange, NodeRef
from rigdef.document_io import (
    DocumentFormatError,
    document_from_dict,
    document_to_dict,
    load_document,
    range_from_json,
    range_to_json,
    ref_from_json,
    ref_to_json,
    save_document,
)


_PAYLOAD = {
    "modules": [
        {
            "name": "_Root_",
            "nodes": [{"number": 0, "x": 0.0, "y": 1.0, "z": 0.5}, {"number": 1}],
            "nodes2": [{"name": "5"}],
            "beams": [{"node1": 0, "node2": "5"}],
            "wheels": [{"num_rays": 6, "node1": 0, "node2": 1, "rigidity_node": "5"}],
            "flexbodies": [
                {
                    "reference_node": 0,
                    "x_axis_node": 1,
                    "y_axis_node": "5",
                    "mesh_name": "cab.mesh",
                    "forset": [[0, 1], "5"],
                },
            ],
            "guisettings": [{"tacho": "rpm"}],
        },
        {"name": "trailer", "hooks": [{"node": 1}]},
    ],
}


class TestReferences:
    def test_int_is_number_and_string_is_name(self) -> None:
        assert ref_from_json(5, "x") == NodeRef.numbered(5)
        assert ref_from_json("5", "x") == NodeRef.named("5")

    def test_resolved_and_unresolved_markers(self) -> None:
        resolved = NodeRef.named("axle").resolved_to(7)
        marker = NodeRef.numbered(3).as_unresolved()

        assert ref_to_json(resolved) == {"index": 7, "token": "axle", "kind": "name"}
        assert ref_from_json(ref_to_json(resolved), "x") == resolved
        assert ref_to_json(marker) == {"unresolved": "3", "kind": "number"}
        assert ref_from_json(ref_to_json(marker), "x") == marker
        assert ref_from_json({"index": 2}, "x") == NodeRef.canonical(2)

    def test_generated_references(self) -> None:
        wheel = {"generated": "wheels", "wheel": 0, "ray": 3, "detail": "tyre_a"}
        cinecam = {"generated": "cinecam", "sub_index": 1}

        assert ref_from_json(wheel, "x") == NodeRef.wheel_node("wheels", 0, 3, "tyre_a")
        assert ref_from_json(cinecam, "x") == NodeRef.generated("cinecam", 1)
        assert ref_to_json(ref_from_json(wheel, "x")) == wheel
        assert ref_to_json(ref_from_json(cinecam, "x")) == cinecam
        resolved = NodeRef.generated("cinecam", 1).resolved_to(6)
        assert ref_from_json(ref_to_json(resolved), "x") == resolved

    @pytest.mark.parametrize("payload", [True, -1, 1.5, {"foo": 1}, ""])
    def test_bad_references_raise(self, payload: object) -> None:
        with pytest.raises(DocumentFormatError):
            ref_from_json(payload, "beams[0].node1")


class TestDocuments:
    def test_payload_decodes_into_typed_rows(self) -> None:
        document = document_from_dict(_PAYLOAD)
        root, trailer = document.modules

        assert root.name == "_Root_"
        assert [row.number for row in root.nodes] == [0, 1]
        assert root.nodes[0].y == 1.0
        assert root.beams[0].node2 == NodeRef.named("5")
        assert root.wheels[0].rigidity_node == NodeRef.named("5")
        assert root.flexbodies[0].forset == [
            NodeRange(start=NodeRef.numbered(0), end=NodeRef.numbered(1)),
            NodeRange.single(NodeRef.named("5")),
        ]
        assert root.extra_sections == {"guisettings": [{"tacho": "rpm"}]}
        assert trailer.hooks[0].node == NodeRef.numbered(1)

    def test_encoding_is_stable(self) -> None:
        document = document_from_dict(_PAYLOAD)
        encoded = document_to_dict(document)
        assert document_to_dict(document_from_dict(encoded)) == encoded
        assert encoded["modules"][0]["guisettings"] == [{"tacho": "rpm"}]
        assert "extra_sections" not in encoded["modules"][0]

    def test_bare_reference_is_the_only_single_range(self) -> None:
        assert range_from_json(9, "forset").is_single is True
        assert range_from_json([9, 9], "forset").is_single is False
        missing = NodeRef.numbered(9).as_unresolved()
        marker = NodeRange(start=missing, end=missing, valid=False, is_single=True)
        assert range_from_json(range_to_json(marker), "forset") == marker

    def test_invalid_range_keeps_its_flag(self) -> None:
        node_range = NodeRange(
            start=NodeRef.named("gone").as_unresolved(),
            end=NodeRef.canonical(3),
            valid=False,
        )
        encoded = range_to_json(node_range)

        assert encoded["valid"] is False
        assert range_from_json(encoded, "forset") == node_range

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"modules": {}},
            {"modules": [{"nodes": []}]},
            {"modules": [{"name": "_Root_", "beams": {}}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": 0}]}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": 0, "node2": 1, "bogus": 2}]}]},
            {"modules": [{"name": "_Root_", "nodes": [{"number": -4}]}]},
            {"modules": [{"name": "_Root_", "wheels": [{"num_rays": 0, "node1": 0, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "wheels": [{"num_rays": 4.5, "node1": 0, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "wheels": [{"num_rays": True, "node1": 0, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "nodes": [{"number": 1.5}]}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": {"index": None}, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": {"index": [1]}, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": {"index": 1.7}, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "beams": [{"node1": {"generated": "wheels", "ray": 1}, "node2": 1}]}]},
            {"modules": [{"name": "_Root_", "flexbodies": [{"reference_node": 0, "x_axis_node": 1, "y_axis_node": 2, "forset": 5}]}]},
        ],
    )
    def test_malformed_documents_raise(self, payload: object) -> None:
        with pytest.raises(DocumentFormatError):
            document_from_dict(payload)


class TestFiles:
    def test_save_and_load(self, tmp_path: Path) -> None:
        document = Document.single()
        document.root.beams.append(Beam(NodeRef.canonical(0), NodeRef.named("x").as_unresolved()))
        path = tmp_path / "out" / "truck.json"
        save_document(document, path)

        raw = orjson.loads(path.read_bytes())
        assert raw["modules"][0]["beams"][0]["node1"]["index"] == 0
        loaded = load_document(path)
        assert loaded.root.beams[0].node2.is_unresolved
        assert loaded.root.name == "_Root_"


class TestNodeRef:
    def test_legacy_token_rule(self) -> None:
        assert NodeRef.parse(" 12 ") == NodeRef.numbered(12)
        assert NodeRef.parse(3) == NodeRef.numbered(3)
        assert NodeRef.parse("wheel_hub") == NodeRef.named("wheel_hub")
        assert NodeRef.parse("\u00b2") == NodeRef.named("\u00b2")
        with pytest.raises(ValueError):
            NodeRef(token="\u00b2", kind="number")

    def test_resolution_state_guards_index(self) -> None:
        with pytest.raises(ValueError):
            NodeRef(token="1", kind="number", state="resolved")
        with pytest.raises(ValueError):
            NodeRef(token="1", kind="number", state="unresolved", index=0)
        with pytest.raises(ValueError):
            NodeRef(token="abc", kind="number")
        with pytest.raises(ValueError):
            NodeRef(token="abc", kind="label")  # type: ignore[arg-type]
        with pytest.raises(ValueError):
            NodeRef(token="wheels:0:x", kind="generated")

    def test_markers_render_distinctly(self) -> None:
        assert str(NodeRef.numbered(4)) == "4"
        assert str(NodeRef.named("4")) == '"4"'
        assert str(NodeRef.named("4").resolved_to(9)) == "#9"
        assert str(NodeRef.wheel_node("wheels", 0, 3, "tyre_a")) == "<wheels:0:3:tyre_a>"
        assert NodeRef.named("4").resolved_to(9).as_unresolved().index is None
