"""Layout blocks: pages and row/column grids."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import BlockType
from ..registry import BlockSchema, FieldError
from ..validators import check_number_range, check_string, collect


def validate_page(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "title", required=True, max_length=500),
        check_string(data, "icon", allow_empty=True, max_length=64),
        check_string(data, "cover", allow_empty=True, max_length=2048),
    )


def validate_row(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(check_number_range(data, "gap", minimum=0, maximum=256))


def validate_column(data: Mapping[str, Any]) -> list[FieldError]:
    # width is a fraction of the row
    return collect(check_number_range(data, "width", minimum=0, maximum=1))


SCHEMAS = (
    BlockSchema(
        type=BlockType.PAGE,
        name="Page",
        category="layout",
        can_have_children=True,
        default_data={"title": "Untitled", "icon": None, "cover": None},
        validator=validate_page,
        searchable_fields=("title",),
    ),
    BlockSchema(
        type=BlockType.ROW,
        name="Row",
        category="layout",
        can_have_children=True,
        allowed_children=frozenset({BlockType.COLUMN}),
        default_data={"gap": 16},
        validator=validate_row,
    ),
    BlockSchema(
        type=BlockType.COLUMN,
        name="Column",
        category="layout",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.ROW}),
        default_data={"width": None},
        validator=validate_column,
    ),
)
