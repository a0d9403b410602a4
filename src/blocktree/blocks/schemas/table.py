"""Table blocks: table, row and cell."""

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

CELL_ALIGNMENTS = frozenset({"left", "center", "right"})


def validate_table(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "title", allow_empty=True, max_length=500),
        check_number_range(data, "columnCount", minimum=1, maximum=100, integer=True, required=True),
        check_bool(data, "hasHeaderRow"),
        check_string_list(data, "headers", max_items=100),
    )


def validate_table_row(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(check_number_range(data, "height", minimum=1, integer=True))


def validate_table_cell(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "content", required=True, allow_empty=True),
        check_enum(data, "align", CELL_ALIGNMENTS),
    )


SCHEMAS = (
    BlockSchema(
        type=BlockType.TABLE,
        name="Table",
        category="table",
        can_have_children=True,
        allowed_children=frozenset({BlockType.TABLE_ROW}),
        default_data={"title": "", "columnCount": 1, "hasHeaderRow": False, "headers": []},
        validator=validate_table,
        searchable_fields=("title", "headers"),
    ),
    BlockSchema(
        type=BlockType.TABLE_ROW,
        name="Table row",
        category="table",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.TABLE}),
        allowed_children=frozenset({BlockType.TABLE_CELL}),
        default_data={"height": None},
        validator=validate_table_row,
    ),
    BlockSchema(
        type=BlockType.TABLE_CELL,
        name="Table cell",
        category="table",
        allowed_parents=frozenset({BlockType.TABLE_ROW}),
        default_data={"content": "", "align": "left"},
        validator=validate_table_cell,
        searchable_fields=("content",),
    ),
)
