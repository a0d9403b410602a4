"""Tests for the built-in block schemas.

Tests:
- Every built-in type is registered and its defaults validate
- Type-specific validation rules
- Tree-shape rules between built-in types
"""

from __future__ import annotations

import pytest

from blocktree.blocks import BlockType, SchemaRegistry
from blocktree.blocks.schemas import BUILTIN_SCHEMAS, create_default_registry


class TestBuiltinRegistry:
    """Test the default registry."""

    def test_every_block_type_is_registered(self, registry: SchemaRegistry) -> None:
        assert set(registry.types()) == {t.value for t in BlockType}
        assert len(BUILTIN_SCHEMAS) == len(BlockType)

    @pytest.mark.parametrize("block_type", list(BlockType))
    def test_default_data_is_valid(self, registry: SchemaRegistry, block_type: BlockType) -> None:
        data = registry.create_default_data(block_type)
        result = registry.validate(block_type, data)
        assert result.valid, result.errors

    def test_registries_are_isolated(self) -> None:
        first = create_default_registry()
        second = create_default_registry()
        first.unregister(BlockType.DIVIDER)
        assert BlockType.DIVIDER not in first
        assert BlockType.DIVIDER in second


class TestContentValidation:
    """Test text, list and media validators."""

    def test_heading_level_bounds(self, registry: SchemaRegistry) -> None:
        assert registry.validate("heading", {"content": "Intro", "level": 3}).valid
        result = registry.validate("heading", {"content": "Intro", "level": 7})
        assert [e.field for e in result.errors] == ["level"]

    def test_heading_content_cannot_be_empty(self, registry: SchemaRegistry) -> None:
        result = registry.validate("heading", {"content": "", "level": 1})
        assert result.errors[0].code == "empty"

    def test_text_content_may_be_empty(self, registry: SchemaRegistry) -> None:
        assert registry.validate("text", {"content": ""}).valid
        assert not registry.validate("text", {}).valid

    def test_todo_requires_checked_bool(self, registry: SchemaRegistry) -> None:
        result = registry.validate("todo", {"content": "x", "checked": "no"})
        assert result.errors[0].field == "checked"

    def test_list_style_enum(self, registry: SchemaRegistry) -> None:
        assert registry.validate("list", {"style": "numbered"}).valid
        assert registry.validate("list", {"style": "dotted"}).errors[0].code == "invalid_enum"

    def test_image_requires_url(self, registry: SchemaRegistry) -> None:
        result = registry.validate("image", {"caption": "cat"})
        assert result.errors[0].field == "url"


class TestKanbanValidation:
    """Test Kanban validators."""

    def test_card_title_required_and_non_empty(self, registry: SchemaRegistry) -> None:
        assert registry.validate("kanban_card", {"title": "Fix bug"}).valid
        assert registry.validate("kanban_card", {"title": ""}).errors[0].code == "empty"
        assert registry.validate("kanban_card", {}).errors[0].code == "required"

    def test_card_priority_and_tags(self, registry: SchemaRegistry) -> None:
        result = registry.validate(
            "kanban_card",
            {"title": "t", "priority": "someday", "tags": "urgent"},
        )
        assert {e.field for e in result.errors} == {"priority", "tags"}

    def test_column_wip_limit(self, registry: SchemaRegistry) -> None:
        assert registry.validate("kanban_column", {"name": "Doing", "wipLimit": 3}).valid
        assert not registry.validate("kanban_column", {"name": "Doing", "wipLimit": -1}).valid


class TestTableAndAiValidation:
    """Test table and AI validators."""

    def test_table_column_count(self, registry: SchemaRegistry) -> None:
        assert registry.validate("table", {"columnCount": 3}).valid
        assert not registry.validate("table", {"columnCount": 0}).valid
        assert not registry.validate("table", {}).valid

    def test_cell_alignment(self, registry: SchemaRegistry) -> None:
        assert registry.validate("table_cell", {"content": "", "align": "center"}).valid
        assert not registry.validate("table_cell", {"content": "", "align": "justify"}).valid

    def test_ai_block_status_and_temperature(self, registry: SchemaRegistry) -> None:
        assert registry.validate("ai_block", {"prompt": "Summarize", "status": "pending", "temperature": 0.7}).valid
        result = registry.validate("ai_block", {"prompt": "", "status": "sleeping", "temperature": 3})
        assert {e.field for e in result.errors} == {"status", "temperature"}

    def test_ai_chat_message_roles(self, registry: SchemaRegistry) -> None:
        good = {"messages": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]}
        assert registry.validate("ai_chat", good).valid

        bad = {"messages": [{"role": "robot", "content": "beep"}]}
        result = registry.validate("ai_chat", bad)
        assert result.errors[0].field == "messages[0].role"

    def test_ai_chat_role_must_be_a_string(self, registry: SchemaRegistry) -> None:
        result = registry.validate("ai_chat", {"messages": [{"role": {"a": 1}, "content": "x"}]})
        assert result.errors[0].field == "messages[0].role"
        assert result.errors[0].code == "invalid_type"

    @pytest.mark.parametrize(
        ("block_type", "data"),
        [
            ("kanban_card", {"title": "t", "priority": ["high"]}),
            ("list", {"style": ["bulleted"]}),
            ("ai_block", {"prompt": "", "status": {"state": "idle"}}),
            ("table_cell", {"content": "", "align": ["left"]}),
        ],
    )
    def test_enum_fields_reject_unhashable_values(
        self, registry: SchemaRegistry, block_type: str, data: dict
    ) -> None:
        result = registry.validate(block_type, data)
        assert not result.valid
        assert result.errors[0].code == "invalid_type"

    def test_ai_suggestion_confidence(self, registry: SchemaRegistry) -> None:
        assert registry.validate("ai_suggestion", {"content": "Try this", "confidence": 0.9}).valid
        assert not registry.validate("ai_suggestion", {"content": "Try this", "confidence": 1.5}).valid


class TestBuiltinRelationships:
    """Test tree-shape rules between built-in types."""

    @pytest.mark.parametrize(
        ("parent", "child"),
        [
            (BlockType.KANBAN_BOARD, BlockType.KANBAN_COLUMN),
            (BlockType.KANBAN_BOARD, BlockType.KANBAN_SWIMLANE),
            (BlockType.KANBAN_SWIMLANE, BlockType.KANBAN_COLUMN),
            (BlockType.KANBAN_COLUMN, BlockType.KANBAN_CARD),
            (BlockType.KANBAN_CARD, BlockType.TODO),
            (BlockType.TABLE, BlockType.TABLE_ROW),
            (BlockType.TABLE_ROW, BlockType.TABLE_CELL),
            (BlockType.ROW, BlockType.COLUMN),
            (BlockType.LIST, BlockType.LIST_ITEM),
            (BlockType.LIST_ITEM, BlockType.LIST),
            (BlockType.TODO, BlockType.TODO),
            (BlockType.AI_BLOCK, BlockType.AI_SUGGESTION),
            (BlockType.PAGE, BlockType.HEADING),
            (BlockType.PAGE, BlockType.PAGE),
        ],
    )
    def test_allowed(self, registry: SchemaRegistry, parent: BlockType, child: BlockType) -> None:
        assert registry.can_have_child(parent, child)

    @pytest.mark.parametrize(
        ("parent", "child"),
        [
            (BlockType.KANBAN_BOARD, BlockType.KANBAN_CARD),
            (BlockType.KANBAN_COLUMN, BlockType.KANBAN_BOARD),
            (BlockType.KANBAN_CARD, BlockType.KANBAN_COLUMN),
            (BlockType.TABLE, BlockType.TABLE_CELL),
            (BlockType.PAGE, BlockType.COLUMN),
            (BlockType.TEXT, BlockType.TEXT),
            (BlockType.DIVIDER, BlockType.TEXT),
            (BlockType.TABLE_CELL, BlockType.TEXT),
            (BlockType.AI_CHAT, BlockType.TEXT),
        ],
    )
    def test_forbidden(self, registry: SchemaRegistry, parent: BlockType, child: BlockType) -> None:
        assert not registry.can_have_child(parent, child)
