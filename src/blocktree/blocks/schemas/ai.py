"""AI blocks: prompt blocks, chats and suggestions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..models import BlockType
from ..registry import BlockSchema, FieldError
from ..validators import (
    INVALID_ENUM,
    INVALID_TYPE,
    check_bool,
    check_enum,
    check_mapping_list,
    check_number_range,
    check_string,
    collect,
)

AI_STATUSES = frozenset({"idle", "pending", "complete", "error"})
CHAT_ROLES = frozenset({"system", "user", "assistant"})


def validate_ai_block(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "prompt", required=True, allow_empty=True),
        check_string(data, "response", allow_empty=True),
        check_string(data, "model", allow_empty=True, max_length=200),
        check_enum(data, "status", AI_STATUSES, required=True),
        check_number_range(data, "temperature", minimum=0, maximum=2),
    )


def validate_ai_chat(data: Mapping[str, Any]) -> list[FieldError]:
    errors = collect(
        check_string(data, "title", allow_empty=True, max_length=500),
        check_string(data, "model", allow_empty=True, max_length=200),
        check_mapping_list(data, "messages", required_keys=("role", "content")),
    )
    if errors:
        return errors

    for i, message in enumerate(data.get("messages") or []):
        role = message["role"]
        if not isinstance(role, str):
            errors.append(
                FieldError(f"messages[{i}].role", f"messages[{i}].role must be a string", INVALID_TYPE)
            )
        elif role not in CHAT_ROLES:
            errors.append(
                FieldError(
                    f"messages[{i}].role",
                    f"messages[{i}].role must be one of: {', '.join(sorted(CHAT_ROLES))}",
                    INVALID_ENUM,
                )
            )
        error = check_string(message, "content", required=True, allow_empty=True)
        if error is not None:
            errors.append(FieldError(f"messages[{i}].content", error.message, error.code))
    return errors


def validate_ai_suggestion(data: Mapping[str, Any]) -> list[FieldError]:
    return collect(
        check_string(data, "content", required=True),
        check_bool(data, "accepted"),
        check_string(data, "targetBlockId", max_length=256),
        check_number_range(data, "confidence", minimum=0, maximum=1),
    )


SCHEMAS = (
    BlockSchema(
        type=BlockType.AI_BLOCK,
        name="AI block",
        category="ai",
        can_have_children=True,
        allowed_children=frozenset({BlockType.AI_SUGGESTION, BlockType.TEXT}),
        default_data={"prompt": "", "response": None, "model": None, "status": "idle"},
        validator=validate_ai_block,
        searchable_fields=("prompt", "response"),
    ),
    BlockSchema(
        type=BlockType.AI_CHAT,
        name="AI chat",
        category="ai",
        can_have_children=True,
        allowed_children=frozenset({BlockType.AI_SUGGESTION}),
        default_data={"title": "", "model": None, "messages": []},
        validator=validate_ai_chat,
        searchable_fields=("title", "messages"),
    ),
    BlockSchema(
        type=BlockType.AI_SUGGESTION,
        name="AI suggestion",
        category="ai",
        default_data={"content": "Suggestion", "accepted": False, "targetBlockId": None},
        validator=validate_ai_suggestion,
        searchable_fields=("content",),
    ),
)
