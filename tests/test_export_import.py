"""Tests for export_tree / import_tree.

Tests:
- Export document layout
- Round trip through JSON
- Rejection of malformed or inconsistent documents
"""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from blocktree.blocks import EXPORT_FORMAT_VERSION, BlockStore, BlockType
from blocktree.errors import IntegrityError, UnknownTypeError, ValidationError


def _structure(store: BlockStore) -> dict[str, Any]:
    document = store.export_tree()
    return {"roots": document["roots"], "blocks": document["blocks"]}


# =============================================================================
# Export
# =============================================================================


class TestExport:
    """Test the export document."""

    def test_layout(self, store: BlockStore, kanban_board) -> None:
        document = store.export_tree()

        assert document["roots"] == [kanban_board["board"]]
        assert set(document["blocks"]) == set(kanban_board.values())
        meta = document["metadata"]
        assert meta["version"] == EXPORT_FORMAT_VERSION
        assert meta["blockCount"] == 7
        assert {"createdAt", "updatedAt", "exportedAt"} <= set(meta)

    def test_blocks_use_wire_form(self, store: BlockStore, kanban_board) -> None:
        card = store.export_tree()["blocks"][kanban_board["card"]]
        assert card["type"] == "kanban_card"
        assert card["parentId"] == kanban_board["todo_col"]
        assert card["children"] == [kanban_board["check_a"], kanban_board["check_b"]]
        assert set(card) == {"id", "type", "data", "children", "parentId", "createdAt", "updatedAt", "version", "metadata"}

    def test_export_is_detached(self, store: BlockStore, kanban_board) -> None:
        document = store.export_tree()
        document["blocks"][kanban_board["card"]]["data"]["title"] = "mutated"
        document["roots"].clear()

        assert store.get(kanban_board["card"]).data["title"] == "Write docs"
        assert len(store.get_roots()) == 1

    def test_export_empty_store(self, store: BlockStore) -> None:
        document = store.export_tree()
        assert document["roots"] == []
        assert document["blocks"] == {}


# =============================================================================
# Round trip
# =============================================================================


class TestRoundTrip:
    """Import(Export(s)) reproduces s."""

    def test_round_trip_through_json(self, store: BlockStore, other_store: BlockStore, kanban_board) -> None:
        store.create(BlockType.PAGE, {"title": "Second root"}, metadata={"pinned": True})
        payload = json.dumps(store.export_tree())

        count = other_store.import_tree(json.loads(payload))

        assert count == store.count()
        assert _structure(other_store) == _structure(store)
        assert other_store.check_integrity() == []

    def test_import_keeps_store_timestamps(self, store: BlockStore, other_store: BlockStore, kanban_board) -> None:
        document = store.export_tree()
        other_store.import_tree(document)

        meta = other_store.export_tree()["metadata"]
        assert meta["createdAt"] == document["metadata"]["createdAt"]
        assert meta["updatedAt"] == document["metadata"]["updatedAt"]

    def test_import_replaces_existing_contents(self, store: BlockStore, other_store: BlockStore, kanban_board) -> None:
        other_store.create(BlockType.PAGE, {"title": "Will vanish"})
        other_store.import_tree(store.export_tree())

        assert other_store.count() == 7
        assert [r.type for r in other_store.get_roots()] == ["kanban_board"]

    def test_imported_store_keeps_working(self, store: BlockStore, other_store: BlockStore, kanban_board) -> None:
        other_store.import_tree(store.export_tree())

        card = other_store.create(BlockType.KANBAN_CARD, {"title": "New"}, parent_id=kanban_board["done_col"])
        assert card.id not in kanban_board.values()
        other_store.move(kanban_board["card"], new_parent_id=kanban_board["done_col"])
        assert other_store.check_integrity() == []

    def test_missing_version_is_accepted(self, store: BlockStore, other_store: BlockStore, kanban_board) -> None:
        document = store.export_tree()
        del document["metadata"]
        assert other_store.import_tree(document) == 7


# =============================================================================
# Rejection
# =============================================================================


class TestImportRejection:
    """Invalid documents leave the store unchanged."""

    @pytest.fixture
    def document(self, store: BlockStore, kanban_board) -> dict[str, Any]:
        return copy.deepcopy(store.export_tree())

    def _assert_untouched(self, other_store: BlockStore, before: dict[str, Any]) -> None:
        assert _structure(other_store) == before

    def test_dangling_child(self, other_store: BlockStore, document, kanban_board) -> None:
        other_store.create(BlockType.PAGE, {"title": "Keep me"})
        before = _structure(other_store)
        document["blocks"][kanban_board["card"]]["children"].append("ghost")

        with pytest.raises(IntegrityError) as exc_info:
            other_store.import_tree(document)

        assert any(p.code == "missing_block" for p in exc_info.value.problems)
        self._assert_untouched(other_store, before)

    def test_cycle(self, other_store: BlockStore, document, kanban_board) -> None:
        board = document["blocks"][kanban_board["board"]]
        card = document["blocks"][kanban_board["card"]]
        board["parentId"] = kanban_board["card"]
        card["children"].append(kanban_board["board"])
        document["roots"] = []

        with pytest.raises(IntegrityError) as exc_info:
            other_store.import_tree(document)
        assert any(p.code == "cycle" for p in exc_info.value.problems)
        assert other_store.count() == 0

    def test_unknown_root(self, other_store: BlockStore, document) -> None:
        document["roots"].append("ghost")
        with pytest.raises(IntegrityError):
            other_store.import_tree(document)

    def test_newer_format_version(self, other_store: BlockStore, document) -> None:
        document["metadata"]["version"] = EXPORT_FORMAT_VERSION + 1
        with pytest.raises(IntegrityError, match="Unsupported export format version"):
            other_store.import_tree(document)

    @pytest.mark.parametrize("bad", [None, [], {"roots": "b1", "blocks": {}}, {"roots": []}])
    def test_malformed_document(self, other_store: BlockStore, bad) -> None:
        with pytest.raises(IntegrityError):
            other_store.import_tree(bad)

    def test_malformed_block(self, other_store: BlockStore, document, kanban_board) -> None:
        del document["blocks"][kanban_board["other"]]["type"]
        with pytest.raises(IntegrityError, match="Malformed block"):
            other_store.import_tree(document)

    def test_unregistered_type(self, other_store: BlockStore, document, kanban_board) -> None:
        document["blocks"][kanban_board["check_a"]]["type"] = "hologram"
        with pytest.raises(UnknownTypeError):
            other_store.import_tree(document)
        assert other_store.count() == 0

    def test_illegal_type_pairing(self, other_store: BlockStore, document, kanban_board) -> None:
        document["blocks"][kanban_board["check_a"]]["type"] = "kanban_column"
        with pytest.raises(IntegrityError) as exc_info:
            other_store.import_tree(document)
        assert [p.code for p in exc_info.value.problems] == ["invalid_relationship"]

    def test_data_validation_is_opt_in(self, other_store: BlockStore, document, kanban_board) -> None:
        document["blocks"][kanban_board["card"]]["data"]["title"] = ""

        with pytest.raises(ValidationError):
            other_store.import_tree(document, validate_data=True)
        assert other_store.count() == 0

        assert other_store.import_tree(document) == 7
