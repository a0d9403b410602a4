"""Blocks RPC handlers - block tree operations over JSON-RPC.

Every handler takes the shared ``BlockStore`` as its first argument and
keyword parameters straight from the request's ``params`` object.
"""

from __future__ import annotations

import logging
from typing import Any

from blocktree.blocks.store import ANY_PARENT, BlockStore
from blocktree.rpc.types import NOT_FOUND_ERROR
from blocktree.rpc.validation import (
    validate_block_id,
    validate_bool,
    validate_int,
    validate_list,
    validate_object,
    validate_optional_block_id,
    validate_position,
    validate_string,
    validate_type_filter,
    validated,
)
from blocktree.settings import settings

from . import RpcError
from ._base import require_params, rpc_handler

logger = logging.getLogger(__name__)


def _not_found(block_id: str) -> RpcError:
    return RpcError(
        code=NOT_FOUND_ERROR,
        message=f"Block not found: {block_id}",
        data={"type": "not_found", "resource_type": "block", "resource_id": block_id},
    )


# =============================================================================
# Block CRUD Handlers
# =============================================================================


@rpc_handler("blocks/create")
@validated(
    type=lambda v, n: validate_string(v, n, max_length=100),
    data=validate_object,
    parent_id=validate_optional_block_id,
    position=validate_position,
    metadata=validate_object,
)
def handle_blocks_create(
    store: BlockStore,
    *,
    type: str,
    data: dict[str, Any] | None = None,
    parent_id: str | None = None,
    position: int | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a new block.

    Args:
        type: Block type (kanban_card, heading, todo, ...)
        data: Type-specific payload, merged over the type's defaults
        parent_id: Parent block ID, omitted for a root block
        position: Index among siblings (appended if omitted)
        metadata: Initial metadata

    Returns:
        Created block data
    """
    block = store.create(
        type,
        data,
        parent_id=parent_id,
        position=position,
        metadata=metadata,
    )
    return {"block": block.to_dict()}


@rpc_handler("blocks/get")
@validated(block_id=validate_block_id, include_children=validate_bool)
def handle_blocks_get(
    store: BlockStore,
    *,
    block_id: str,
    include_children: bool = False,
) -> dict[str, Any]:
    """Get a block by ID.

    Args:
        block_id: The block ID
        include_children: Inline the whole subtree as nested blocks

    Returns:
        Block data, or a not-found error
    """
    if include_children:
        nodes = store.get_tree(block_id)
        if not nodes:
            raise _not_found(block_id)
        return {"block": nodes[0]}

    block = store.get(block_id)
    if block is None:
        raise _not_found(block_id)
    return {"block": block.to_dict()}


@rpc_handler("blocks/get_many")
@validated(block_ids=lambda v, n: validate_list(v, n, item_validator=validate_block_id))
def handle_blocks_get_many(store: BlockStore, *, block_ids: list[str]) -> dict[str, Any]:
    """Get the blocks that exist among ``block_ids`` (input order)."""
    blocks = store.get_many(block_ids)
    return {"blocks": [b.to_dict() for b in blocks]}


@rpc_handler("blocks/query")
@validated(type=validate_type_filter)
def handle_blocks_query(
    store: BlockStore,
    *,
    type: str | list[str] | None = None,
    parent_id: Any = ANY_PARENT,
) -> dict[str, Any]:
    """List blocks filtered by type and/or parent.

    Args:
        type: One type or a list of types
        parent_id: Parent block ID; an explicit null selects root blocks,
            omitting it matches every parent

    Returns:
        Matching blocks
    """
    if parent_id is not ANY_PARENT:
        parent_id = validate_optional_block_id(parent_id, "parent_id")
    blocks = store.query(type=type, parent_id=parent_id)
    return {"blocks": [b.to_dict() for b in blocks]}


@rpc_handler("blocks/search")
@validated(
    query=lambda v, n: validate_string(v, n, max_length=1000, allow_empty=True),
    type=validate_type_filter,
    offset=lambda v, n: validate_int(v, n, min_value=0),
)
def handle_blocks_search(
    store: BlockStore,
    *,
    query: str,
    type: str | list[str] | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> dict[str, Any]:
    """Search block text (case-insensitive substring).

    Args:
        query: Text to find
        type: Restrict to one type or a list of types
        limit: Page size (defaults and caps come from settings)
        offset: Matches to skip

    Returns:
        Matching blocks plus the effective paging window
    """
    if limit is None:
        limit = settings.default_search_limit
    limit = validate_int(limit, "limit", min_value=1, max_value=settings.max_search_limit)

    blocks = store.search(query, type=type, limit=limit, offset=offset)
    return {
        "blocks": [b.to_dict() for b in blocks],
        "limit": limit,
        "offset": offset,
    }


@rpc_handler("blocks/update")
@validated(block_id=validate_block_id, data=validate_object, metadata=validate_object)
def handle_blocks_update(
    store: BlockStore,
    *,
    block_id: str,
    data: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Update a block.

    Args:
        block_id: The block to update
        data: Fields merged into the existing data (validated as a whole)
        metadata: Top-level keys merged into the existing metadata

    Returns:
        Updated block data
    """
    block = store.update(block_id, data=data, metadata=metadata)
    return {"block": block.to_dict()}


@rpc_handler("blocks/delete")
@validated(block_id=validate_block_id, delete_children=validate_bool)
def handle_blocks_delete(
    store: BlockStore,
    *,
    block_id: str,
    delete_children: bool = False,
) -> dict[str, Any]:
    """Delete a block.

    Args:
        block_id: The block to delete
        delete_children: Also delete all descendants

    Returns:
        Ids of every deleted block
    """
    deleted = store.delete(block_id, delete_children=delete_children)
    return {"deleted": deleted, "count": len(deleted)}


# =============================================================================
# Block Tree Handlers
# =============================================================================


@rpc_handler("blocks/move")
@validated(
    block_id=validate_block_id,
    new_parent_id=validate_optional_block_id,
    position=validate_position,
)
def handle_blocks_move(
    store: BlockStore,
    *,
    block_id: str,
    new_parent_id: str | None = None,
    position: int | None = None,
) -> dict[str, Any]:
    """Move a block to a new parent and/or position.

    Args:
        block_id: The block to move
        new_parent_id: New parent block ID (None for root level)
        position: Index among the new siblings

    Returns:
        Moved block data
    """
    block = store.move(block_id, new_parent_id=new_parent_id, position=position)
    return {"block": block.to_dict()}


@rpc_handler("blocks/reorder")
@validated(
    parent_id=validate_optional_block_id,
    block_ids=lambda v, n: validate_list(v, n, item_validator=validate_block_id),
)
def handle_blocks_reorder(
    store: BlockStore,
    *,
    block_ids: list[str],
    parent_id: str | None = None,
) -> dict[str, Any]:
    """Reorder the children of a parent (or the roots).

    Args:
        block_ids: Every current child ID, in the desired order
        parent_id: Parent whose children are reordered, None for roots

    Returns:
        Reordered blocks
    """
    blocks = store.reorder_children(parent_id, block_ids)
    return {"blocks": [b.to_dict() for b in blocks]}


@rpc_handler("blocks/duplicate")
@validated(
    block_id=validate_block_id,
    duplicate_children=validate_bool,
    position=validate_position,
)
def handle_blocks_duplicate(
    store: BlockStore,
    *,
    block_id: str,
    duplicate_children: bool = False,
    position: int | None = None,
) -> dict[str, Any]:
    """Duplicate a block, optionally with its whole subtree.

    Returns:
        The new top-level block
    """
    block = store.duplicate(block_id, duplicate_children=duplicate_children, position=position)
    return {"block": block.to_dict()}


@rpc_handler("blocks/children")
@validated(block_id=validate_block_id, recursive=validate_bool)
def handle_blocks_children(
    store: BlockStore,
    *,
    block_id: str,
    recursive: bool = False,
) -> dict[str, Any]:
    """Direct children, or all descendants in depth-first order."""
    blocks = store.get_children(block_id, recursive=recursive)
    return {"blocks": [b.to_dict() for b in blocks]}


@rpc_handler("blocks/parent")
@validated(block_id=validate_block_id)
def handle_blocks_parent(store: BlockStore, *, block_id: str) -> dict[str, Any]:
    parent = store.get_parent(block_id)
    return {"parent": parent.to_dict() if parent else None}


@rpc_handler("blocks/ancestors")
@validated(block_id=validate_block_id)
def handle_blocks_ancestors(store: BlockStore, *, block_id: str) -> dict[str, Any]:
    """Ancestors of a block, immediate parent first."""
    ancestors = store.get_ancestors(block_id)
    return {"ancestors": [a.to_dict() for a in ancestors]}


@rpc_handler("blocks/siblings")
@validated(block_id=validate_block_id, include_self=validate_bool)
def handle_blocks_siblings(
    store: BlockStore,
    *,
    block_id: str,
    include_self: bool = False,
) -> dict[str, Any]:
    siblings = store.get_siblings(block_id, include_self=include_self)
    return {"blocks": [s.to_dict() for s in siblings]}


@rpc_handler("blocks/roots")
def handle_blocks_roots(store: BlockStore) -> dict[str, Any]:
    return {"blocks": [r.to_dict() for r in store.get_roots()]}


@rpc_handler("blocks/tree")
@validated(block_id=validate_optional_block_id)
def handle_blocks_tree(store: BlockStore, *, block_id: str | None = None) -> dict[str, Any]:
    """Nested tree for one block, or the whole forest when omitted."""
    if block_id is not None and not store.exists(block_id):
        raise _not_found(block_id)
    return {"blocks": store.get_tree(block_id)}


# =============================================================================
# Store-level Handlers
# =============================================================================


@rpc_handler("blocks/export")
def handle_blocks_export(store: BlockStore) -> dict[str, Any]:
    return store.export_tree()


@rpc_handler("blocks/import")
@require_params("document")
@validated(validate_data=validate_bool)
def handle_blocks_import(
    store: BlockStore,
    *,
    document: dict[str, Any],
    validate_data: bool = False,
) -> dict[str, Any]:
    """Replace the store's contents with an export document.

    Args:
        document: Output of blocks/export
        validate_data: Also validate each block's data

    Returns:
        Number of imported blocks
    """
    count = store.import_tree(document, validate_data=validate_data)
    logger.info("Imported %d blocks over RPC", count)
    return {"imported": count}


@rpc_handler("blocks/clear")
def handle_blocks_clear(store: BlockStore) -> dict[str, Any]:
    removed = store.count()
    store.clear()
    return {"cleared": removed}


@rpc_handler("blocks/count")
def handle_blocks_count(store: BlockStore) -> dict[str, Any]:
    return {"count": store.count()}


@rpc_handler("blocks/check")
def handle_blocks_check(store: BlockStore) -> dict[str, Any]:
    """Run the structural integrity check on the live store."""
    problems = store.check_integrity()
    return {"ok": not problems, "problems": [p.to_dict() for p in problems]}


# =============================================================================
# Schema Handlers
# =============================================================================


@rpc_handler("schemas/list")
def handle_schemas_list(store: BlockStore) -> dict[str, Any]:
    return {"schemas": [s.to_dict() for s in store.registry.schemas()]}


@rpc_handler("schemas/validate")
@validated(type=lambda v, n: validate_string(v, n, max_length=100), data=validate_object)
def handle_schemas_validate(
    store: BlockStore,
    *,
    type: str,
    data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Validate a payload without creating anything."""
    return store.registry.validate(type, data or {}).to_dict()
