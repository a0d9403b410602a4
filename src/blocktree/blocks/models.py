"""Data models for the block tree.

This module defines the core data structures: the ``BlockType`` tag and
the ``Block`` record stored by the engine. A block's ``data`` payload is a
plain JSON-compatible mapping whose shape is owned by the schema
registered for its type.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4


class BlockType(str, Enum):
    """Built-in block types.

    The set is extensible: any string registered with a SchemaRegistry is
    a valid block type, these are the ones shipped by default.
    """

    # Layout
    PAGE = "page"
    ROW = "row"
    COLUMN = "column"

    # Text content
    TEXT = "text"
    HEADING = "heading"
    TODO = "todo"
    QUOTE = "quote"
    CODE = "code"
    LIST = "list"
    LIST_ITEM = "list_item"

    # Media and separators
    IMAGE = "image"
    EMBED = "embed"
    DIVIDER = "divider"

    # Kanban
    KANBAN_BOARD = "kanban_board"
    KANBAN_SWIMLANE = "kanban_swimlane"
    KANBAN_COLUMN = "kanban_column"
    KANBAN_CARD = "kanban_card"

    # Tables
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"

    # AI
    AI_BLOCK = "ai_block"
    AI_CHAT = "ai_chat"
    AI_SUGGESTION = "ai_suggestion"


def normalize_type(value: BlockType | str) -> str:
    """Return the plain string tag for a block type.

    Built-in names come back as their ``BlockType`` member (which compares
    equal to its string value); custom types pass through unchanged.
    """
    if isinstance(value, BlockType):
        return value
    try:
        return BlockType(value)
    except ValueError:
        return value


def type_value(value: BlockType | str) -> str:
    """Plain ``str`` for a block type, suitable for JSON."""
    return value.value if isinstance(value, BlockType) else str(value)


def now_iso() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def new_id(prefix: str = "block") -> str:
    """Generate a new unique ID with prefix."""
    return f"{prefix}-{uuid4().hex[:12]}"


@dataclass
class Block:
    """A typed node in the block forest.

    ``children`` holds child ids in display order; ``parent_id`` is None for
    root blocks. Both sides of every edge are kept consistent by the store.
    """

    id: str
    type: str
    data: dict[str, Any] = field(default_factory=dict)
    children: list[str] = field(default_factory=list)
    parent_id: str | None = None
    created_at: str = ""
    updated_at: str = ""
    version: int = 1
    metadata: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> Block:
        """Deep copy, detached from any store."""
        return Block(
            id=self.id,
            type=self.type,
            data=copy.deepcopy(self.data),
            children=list(self.children),
            parent_id=self.parent_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
            version=self.version,
            metadata=copy.deepcopy(self.metadata),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire form used by Export and the RPC layer."""
        return {
            "id": self.id,
            "type": type_value(self.type),
            "data": copy.deepcopy(self.data),
            "children": list(self.children),
            "parentId": self.parent_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "version": self.version,
            "metadata": copy.deepcopy(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Block:
        """Create from the JSON wire form.

        Raises:
            KeyError: If ``id`` or ``type`` is missing.
            TypeError: If a field has the wrong container type.
        """
        children = data.get("children", [])
        if not isinstance(children, list):
            raise TypeError("children must be a list")
        payload = data.get("data", {})
        if not isinstance(payload, dict):
            raise TypeError("data must be an object")
        metadata = data.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise TypeError("metadata must be an object")

        return cls(
            id=str(data["id"]),
            type=normalize_type(data["type"]),
            data=copy.deepcopy(payload),
            children=[str(c) for c in children],
            parent_id=data.get("parentId"),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            version=int(data.get("version", 1)),
            metadata=copy.deepcopy(metadata),
        )
