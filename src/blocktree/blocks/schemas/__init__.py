"""Schema definitions for the built-in block types.

Usage:
    from blocktree.blocks.schemas import create_default_registry

    registry = create_default_registry()
    store = BlockStore(registry)
"""

from __future__ import annotations

from ..registry import BlockSchema, SchemaRegistry
from . import ai, content, kanban, layout, table

BUILTIN_SCHEMAS: tuple[BlockSchema, ...] = (
    *layout.SCHEMAS,
    *content.SCHEMAS,
    *kanban.SCHEMAS,
    *table.SCHEMAS,
    *ai.SCHEMAS,
)


def register_builtin_schemas(registry: SchemaRegistry) -> SchemaRegistry:
    """Register every built-in schema on ``registry`` and return it."""
    for schema in BUILTIN_SCHEMAS:
        registry.register(schema)
    return registry


def create_default_registry() -> SchemaRegistry:
    """A new registry holding all built-in block types."""
    return register_builtin_schemas(SchemaRegistry())


__all__ = [
    "BUILTIN_SCHEMAS",
    "create_default_registry",
    "register_builtin_schemas",
]
