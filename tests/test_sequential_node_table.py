"""Tests for the sequential importer node table builder."""

from __future__ import annotations

import pytest

from rigdef.keywords import CANONICAL_NODE_ORDER
from rigdef.sequential.messages import MessageLog
from rigdef.sequential.node_table import NodeTable, ray_pattern
from rigdef.sequential.types import (
    GeneratedNodeEntry,
    NamedNodeEntry,
    NumberedNodeEntry,
    WheelNodeEntry,
)


def _table() -> tuple[NodeTable, MessageLog]:
    messages = MessageLog()
    return NodeTable(messages), messages


def _assert_offsets_additive(table: NodeTable) -> None:
    for rank, keyword in enumerate(CANONICAL_NODE_ORDER):
        expected = sum(table.count(prior) for prior in CANONICAL_NODE_ORDER[:rank])
        assert table.offset(keyword) == expected


class TestRegisterNumbered:
    def test_numbered_nodes_take_consecutive_indices(self) -> None:
        table, messages = _table()
        for number in (0, 1, 2):
            assert table.register_numbered(number) is True

        assert len(table) == 3
        assert table.count("nodes") == 3
        assert [table.numbered_index(n) for n in (0, 1, 2)] == [0, 1, 2]
        assert table.entries == (NumberedNodeEntry(0), NumberedNodeEntry(1), NumberedNodeEntry(2))
        assert len(messages) == 0

    def test_duplicate_number_warns_and_keeps_first(self) -> None:
        table, messages = _table()
        assert table.register_numbered(7) is True
        assert table.register_numbered(7) is False

        assert messages.warning_count == 1
        assert sum(1 for entry in table.entries if entry.source_id == 7) == 1
        assert table.numbered_index(7) == 0
        warning = next(row for row in messages.messages if row.severity == "warning")
        assert "Duplicate definition of node 7" in warning.text

    def test_out_of_sequence_number_is_informational(self) -> None:
        table, messages = _table()
        table.register_numbered(0)
        table.register_numbered(5)

        assert messages.other_count == 1
        assert messages.error_count == 0
        assert table.numbered_index(5) == 1

    def test_negative_number_is_rejected(self) -> None:
        table, messages = _table()
        assert table.register_numbered(-1) is False
        assert len(table) == 0
        assert messages.error_count == 1

    def test_non_integer_number_is_rejected(self) -> None:
        table, messages = _table()
        assert table.register_numbered(1.5) is False  # type: ignore[arg-type]
        assert table.register_numbered(False) is False
        assert len(table) == 0
        assert messages.error_count == 2


class TestRegisterNamed:
    def test_named_nodes_follow_numbered_nodes(self) -> None:
        table, _ = _table()
        table.register_numbered(0)
        table.register_numbered(1)
        assert table.register_named("axle_l") is True

        assert table.named_index("axle_l") == 2
        assert table.entry(2) == NamedNodeEntry("axle_l")
        assert table.offset("nodes2") == 2

    def test_duplicate_name_warns(self) -> None:
        table, messages = _table()
        table.register_named("hook")
        assert table.register_named("hook") is False
        assert messages.warning_count == 1
        assert table.count("nodes2") == 1

    def test_name_and_number_namespaces_are_disjoint(self) -> None:
        table, messages = _table()
        for number in range(6):
            table.register_numbered(number)
        table.register_named("5")

        assert table.numbered_index(5) == 5
        assert table.named_index("5") == 6
        assert messages.warning_count == 0


class TestRegisterGenerated:
    def test_cinecam_node_is_synthetic(self) -> None:
        table, _ = _table()
        table.register_numbered(0)
        assert table.register_generated("cinecam") is True
        assert table.register_generated("cinecam") is True

        assert table.entry(1) == GeneratedNodeEntry(keyword="cinecam", sub_index=0)
        assert table.entry(2).sub_index == 1
        assert table.entry(2).source_id is None
        assert table.entry(2).origin_detail == "undefined"
        assert table.generated_index("cinecam", 1) == 2
        assert table.generated_index("cinecam", 2) is None
        assert table.generated_index("wheels", 0) is None

    @pytest.mark.parametrize("keyword", ["nodes", "nodes2", "wheels", "beams"])
    def test_non_generating_sections_are_rejected(self, keyword: str) -> None:
        table, messages = _table()
        assert table.register_generated(keyword) is False  # type: ignore[arg-type]
        assert len(table) == 0
        assert messages.error_count == 1


class TestRegisterWheel:
    def test_two_node_family_grows_by_two_per_ray(self) -> None:
        table, messages = _table()
        for number in range(3):
            table.register_numbered(number)
        base = table.offset("wheels")
        assert table.register_wheel("wheels", 4, False) is True

        assert len(table) == base + 8
        assert table.count("wheels") == 8
        assert table.wheel_node_index("wheels", 0, 3, "tyre_a") == base + 2 * 3
        assert table.wheel_node_index("wheels", 0, 3, "tyre_b") == base + 2 * 3 + 1
        assert table.entry(base + 7) == WheelNodeEntry(
            keyword="wheels",
            wheel_index=0,
            ray=3,
            origin_detail="tyre_b",
        )
        assert len(messages) == 0

    def test_four_node_family_uses_rim_and_tyre_pattern(self) -> None:
        table, _ = _table()
        table.register_wheel("flexbodywheels", 3, False)

        assert ray_pattern("flexbodywheels") == ("rim_a", "rim_b", "tyre_a", "tyre_b")
        assert len(table) == 12
        assert [table.entry(i).origin_detail for i in range(4)] == ["rim_a", "rim_b", "tyre_a", "tyre_b"]
        assert table.wheel_node_index("flexbodywheels", 0, 2, "tyre_a") == 4 * 2 + 2

    def test_meshwheels2_generates_two_nodes_per_ray(self) -> None:
        table, _ = _table()
        table.register_wheel("meshwheels2", 6, False)
        assert len(table) == 12

    def test_second_wheel_of_family_gets_next_block(self) -> None:
        table, _ = _table()
        table.register_wheel("wheels", 2, False)
        table.register_wheel("wheels", 3, False)

        assert table.wheel_base("wheels", 0) == 0
        assert table.wheel_base("wheels", 1) == 4
        assert table.wheel_node_index("wheels", 1, 0, "tyre_a") == 4
        assert table.wheel_node_index("wheels", 1, 3, "tyre_a") is None
        assert table.wheel_node_index("wheels", 0, 0, "rim_a") is None
        assert table.wheel_count("wheels") == 2

    def test_rigidity_node_is_counted_not_generated(self) -> None:
        table, _ = _table()
        table.register_wheel("wheels2", 2, True)

        assert len(table) == 8
        assert table.rigidity_links["wheels2"] == 1
        assert table.statistics()["rigidity_links"]["wheels2"] == 1  # type: ignore[index]

    def test_invalid_wheels_are_rejected(self) -> None:
        table, messages = _table()
        assert table.register_wheel("wheels", 0, False) is False
        assert table.register_wheel("beams", 4, False) is False  # type: ignore[arg-type]
        assert table.register_wheel("wheels", 4.5, False) is False  # type: ignore[arg-type]
        assert table.register_wheel("wheels", True, False) is False
        assert len(table) == 0
        assert messages.error_count == 4


class TestCanonicalOrder:
    def test_offsets_are_additive_throughout_the_build(self) -> None:
        table, _ = _table()
        _assert_offsets_additive(table)
        table.register_numbered(0)
        table.register_numbered(1)
        _assert_offsets_additive(table)
        table.register_named("a")
        table.register_generated("cinecam")
        _assert_offsets_additive(table)
        table.register_wheel("wheels", 2, False)
        table.register_wheel("wheels2", 1, False)
        table.register_wheel("meshwheels", 1, False)
        table.register_wheel("meshwheels2", 1, False)
        table.register_wheel("flexbodywheels", 2, True)
        _assert_offsets_additive(table)

        assert table.offset("cinecam") == 3
        assert table.offset("wheels") == 4
        assert table.offset("wheels2") == 8
        assert table.offset("meshwheels") == 12
        assert table.offset("meshwheels2") == 14
        assert table.offset("flexbodywheels") == 16
        assert len(table) == 24

    def test_registered_indices_never_move(self) -> None:
        table, _ = _table()
        table.register_numbered(0)
        table.register_named("a")
        snapshot = table.entries
        table.register_generated("cinecam")
        table.register_wheel("wheels", 4, False)

        assert table.entries[: len(snapshot)] == snapshot
        assert table.numbered_index(0) == 0
        assert table.named_index("a") == 1

    def test_registration_against_canonical_order_is_fatal(self) -> None:
        table, messages = _table()
        table.register_wheel("wheels", 2, False)
        assert table.register_numbered(0) is False
        assert table.register_named("late") is False

        assert len(table) == 4
        assert messages.error_count == 2
        assert messages.has_fatal()
        _assert_offsets_additive(table)

    def test_unknown_offset_keyword_raises(self) -> None:
        table, _ = _table()
        with pytest.raises(ValueError):
            table.offset("beams")  # type: ignore[arg-type]

    def test_clear_resets_everything(self) -> None:
        table, _ = _table()
        table.register_numbered(0)
        table.register_named("a")
        table.register_wheel("wheels", 1, True)
        table.clear()

        assert len(table) == 0
        assert table.numbered_index(0) is None
        assert table.named_index("a") is None
        assert table.wheel_base("wheels", 0) is None
        assert all(table.count(keyword) == 0 for keyword in CANONICAL_NODE_ORDER)
        assert table.rigidity_links["wheels"] == 0
