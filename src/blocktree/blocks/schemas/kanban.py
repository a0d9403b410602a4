"""Kanban blocks: board, swimlane, column and card.

A board holds columns directly, or swimlanes that in turn hold columns.
Cards only live in columns but may carry arbitrary content children
(todo checklists, notes, images).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import BlockType
from ..registry import BlockSchema, FieldError
from ..validators import (
    check_bool,
    check_enum,
    check_number_range,
    check_string,
    check_string_list,
    collect,
)

CARD_PRIORITIES = frozenset({"low", "medium", "high", "urgent"})


def validate_board(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "name", required=True, max_length=200),
        check_string(data, "description", allow_empty=True),
    )


def validate_swimlane(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "name", required=True, max_length=200),
        check_bool(data, "collapsed"),
    )


def validate_column(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "name", required=True, max_length=200),
        check_string(data, "color", allow_empty=True, max_length=32),
        check_number_range(data, "wipLimit", minimum=0, integer=True),
    )


def validate_card(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "title", required=True, max_length=500),
        check_string(data, "description", allow_empty=True),
        check_enum(data, "priority", CARD_PRIORITIES),
        check_string(data, "dueDate", allow_empty=True, max_length=64),
        check_string(data, "assignee", allow_empty=True, max_length=200),
        check_string_list(data, "tags"),
        check_bool(data, "completed"),
    )


SCHEMAS = (
    BlockSchema(
        type=BlockType.KANBAN_BOARD,
        name="Kanban board",
        category="kanban",
        can_have_children=True,
        allowed_children=frozenset({BlockType.KANBAN_COLUMN, BlockType.KANBAN_SWIMLANE}),
        default_data={"name": "Untitled board", "description": ""},
        validator=validate_board,
        searchable_fields=("name", "description"),
    ),
    BlockSchema(
        type=BlockType.KANBAN_SWIMLANE,
        name="Kanban swimlane",
        category="kanban",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.KANBAN_BOARD}),
        allowed_children=frozenset({BlockType.KANBAN_COLUMN}),
        default_data={"name": "Swimlane", "collapsed": False},
        validator=validate_swimlane,
        searchable_fields=("name",),
    ),
    BlockSchema(
        type=BlockType.KANBAN_COLUMN,
        name="Kanban column",
        category="kanban",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.KANBAN_BOARD, BlockType.KANBAN_SWIMLANE}),
        allowed_children=frozenset({BlockType.KANBAN_CARD}),
        default_data={"name": "Column", "color": None, "wipLimit": None},
        validator=validate_column,
        searchable_fields=("name",),
    ),
    BlockSchema(
        type=BlockType.KANBAN_CARD,
        name="Kanban card",
        category="kanban",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.KANBAN_COLUMN}),
        default_data={
            "title": "Untitled card",
            "description": "",
            "priority": "medium",
            "dueDate": None,
            "assignee": None,
            "tags": [],
            "completed": False,
        },
        validator=validate_card,
        searchable_fields=("title", "description", "tags"),
    ),
)
