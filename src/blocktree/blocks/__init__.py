"""Block tree engine.

Usage:
    from blocktree.blocks import BlockStore, BlockType, create_default_registry

    store = BlockStore(create_default_registry())
    board = store.create(BlockType.KANBAN_BOARD, {"name": "Roadmap"})
    todo = store.create(BlockType.KANBAN_COLUMN, {"name": "To do"}, parent_id=board.id)
"""

from __future__ import annotations

from .models import Block, BlockType
from .registry import BlockSchema, FieldError, SchemaRegistry, ValidationResult
from .schemas import create_default_registry, register_builtin_schemas
from .store import ANY_PARENT, EXPORT_FORMAT_VERSION, BlockStore
from .tree import IntegrityProblem

__all__ = [
    "ANY_PARENT",
    "EXPORT_FORMAT_VERSION",
    "Block",
    "BlockSchema",
    "BlockStore",
    "BlockType",
    "FieldError",
    "IntegrityProblem",
    "SchemaRegistry",
    "ValidationResult",
    "create_default_registry",
    "register_builtin_schemas",
]
