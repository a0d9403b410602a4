"""Text, list and media blocks."""

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
    collect,
)

LIST_STYLES = frozenset({"bulleted", "numbered"})

# Leaf-ish content a todo may nest
_TODO_CHILDREN = frozenset({BlockType.TODO, BlockType.TEXT})


def validate_text(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(check_string(data, "content", required=True, allow_empty=True))


def validate_heading(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "content", required=True),
        check_number_range(data, "level", minimum=1, maximum=6, integer=True, required=True),
    )


def validate_todo(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "content", required=True, allow_empty=True),
        check_bool(data, "checked", required=True),
    )


def validate_quote(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "content", required=True, allow_empty=True),
        check_string(data, "citation", allow_empty=True, max_length=500),
    )


def validate_code(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "code", required=True, allow_empty=True),
        check_string(data, "language", required=True, max_length=64),
    )


def validate_list(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(check_enum(data, "style", LIST_STYLES, required=True))


def validate_list_item(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(check_string(data, "content", required=True, allow_empty=True))


def validate_image(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "url", required=True, max_length=4096),
        check_string(data, "caption", allow_empty=True, max_length=1000),
        check_string(data, "alt", allow_empty=True, max_length=1000),
        check_number_range(data, "width", minimum=1, integer=True),
        check_number_range(data, "height", minimum=1, integer=True),
    )


def validate_embed(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "url", required=True, max_length=4096),
        check_string(data, "provider", allow_empty=True, max_length=64),
        check_string(data, "caption", allow_empty=True, max_length=1000),
    )


SCHEMAS = (
    BlockSchema(
        type=BlockType.TEXT,
        name="Text",
        category="text",
        default_data={"content": ""},
        validator=validate_text,
        searchable_fields=("content",),
    ),
    BlockSchema(
        type=BlockType.HEADING,
        name="Heading",
        category="text",
        default_data={"content": "Heading", "level": 1},
        validator=validate_heading,
        searchable_fields=("content",),
    ),
    BlockSchema(
        type=BlockType.TODO,
        name="To-do",
        category="text",
        can_have_children=True,
        allowed_children=_TODO_CHILDREN,
        default_data={"content": "", "checked": False},
        validator=validate_todo,
        searchable_fields=("content",),
    ),
    BlockSchema(
        type=BlockType.QUOTE,
        name="Quote",
        category="text",
        default_data={"content": "", "citation": None},
        validator=validate_quote,
        searchable_fields=("content", "citation"),
    ),
    BlockSchema(
        type=BlockType.CODE,
        name="Code",
        category="text",
        default_data={"code": "", "language": "plaintext"},
        validator=validate_code,
        searchable_fields=("code",),
    ),
    BlockSchema(
        type=BlockType.LIST,
        name="List",
        category="text",
        can_have_children=True,
        allowed_children=frozenset({BlockType.LIST_ITEM}),
        default_data={"style": "bulleted"},
        validator=validate_list,
    ),
    BlockSchema(
        type=BlockType.LIST_ITEM,
        name="List item",
        category="text",
        can_have_children=True,
        allowed_parents=frozenset({BlockType.LIST}),
        # nested lists hang off an item
        allowed_children=frozenset({BlockType.LIST}),
        default_data={"content": ""},
        validator=validate_list_item,
        searchable_fields=("content",),
    ),
    BlockSchema(
        type=BlockType.IMAGE,
        name="Image",
        category="media",
        default_data={"url": "about:blank", "caption": None, "alt": None},
        validator=validate_image,
        searchable_fields=("caption", "alt"),
    ),
    BlockSchema(
        type=BlockType.EMBED,
        name="Embed",
        category="media",
        default_data={"url": "about:blank", "provider": None, "caption": None},
        validator=validate_embed,
        searchable_fields=("caption",),
    ),
    BlockSchema(
        type=BlockType.DIVIDER,
        name="Divider",
        category="media",
        default_data={},
    ),
)
