"""In-memory block forest engine.

``BlockStore`` owns every block record, the parent/child adjacency and the
ordered root set. All public operations:

- run under one re-entrant lock per store, so a store can be shared by a
  multi-threaded host
- validate everything before touching state, so a raised error leaves the
  store unchanged
- return detached copies, so callers cannot mutate stored blocks

Edges are only ever changed through ``_link`` / ``_unlink``, which update
``children``, ``parent_id`` and the root list together.

Ordering conventions:
- ``get_many``: input order, missing ids dropped
- ``query`` / ``search``: store insertion order
- ``get_children(recursive=True)``: pre-order depth-first
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..errors import (
    CycleError,
    HasChildrenError,
    IntegrityError,
    InvalidRelationshipError,
    NotFoundError,
    ValidationError,
)
from . import tree
from .models import Block, new_id, normalize_type, now_iso, type_value
from .registry import SchemaRegistry

logger = logging.getLogger(__name__)

# Version of the export document layout produced by export_tree()
EXPORT_FORMAT_VERSION = 1


class _AnyParent:
    """Sentinel: no parent filter (distinct from None, which means roots)."""

    def __repr__(self) -> str:
        return "ANY_PARENT"


ANY_PARENT: Any = _AnyParent()


class BlockStore:
    """Typed block forest with CRUD, move, duplicate, search and export.

    Args:
        registry: Schema registry consulted for validation and tree rules.
        id_factory: Produces new block ids (default ``block-<12 hex>``).
        clock: Produces ISO timestamps (default current UTC time).
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        *,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], str] | None = None,
    ) -> None:
        self.registry = registry
        self._new_id = id_factory or new_id
        self._now = clock or now_iso
        self._lock = threading.RLock()
        self._blocks: dict[str, Block] = {}
        self._roots: list[str] = []
        self._created_at = self._now()
        self._updated_at = self._created_at

    # =========================================================================
    # Internal primitives
    # =========================================================================

    def _require(self, block_id: str) -> Block:
        block = self._blocks.get(block_id)
        if block is None:
            raise NotFoundError(f"Block not found: {block_id}", resource_id=block_id)
        return block

    def _check_relationship(self, parent: Block, child_type: str) -> None:
        if not self.registry.can_have_child(parent.type, child_type):
            raise InvalidRelationshipError(
                f"{type_value(parent.type)} cannot contain {type_value(child_type)}",
                parent_type=type_value(parent.type),
                child_type=type_value(child_type),
            )

    def _validate(self, block_type: str, data: Mapping[str, Any]) -> None:
        result = self.registry.validate(block_type, data)
        if not result.valid:
            raise ValidationError(
                f"Invalid data for {type_value(block_type)}",
                block_type=type_value(block_type),
                errors=result.errors,
            )

    def _fresh_id(self) -> str:
        block_id = self._new_id()
        while block_id in self._blocks:
            block_id = self._new_id()
        return block_id

    def _siblings_of(self, parent_id: str | None) -> list[str]:
        """The live children list (or root list) that ``parent_id`` owns."""
        if parent_id is None:
            return self._roots
        return self._blocks[parent_id].children

    def _link(self, block: Block, parent_id: str | None, position: int | None, now: str) -> None:
        """Attach ``block`` under ``parent_id`` (None = root) at ``position``.

        Positions outside ``0..len(siblings)`` append.
        """
        siblings = self._siblings_of(parent_id)
        if position is None or position < 0 or position > len(siblings):
            siblings.append(block.id)
        else:
            siblings.insert(position, block.id)
        block.parent_id = parent_id
        if parent_id is not None:
            self._blocks[parent_id].updated_at = now

    def _unlink(self, block: Block, now: str) -> None:
        """Detach ``block`` from its parent's children (or the root list)."""
        parent_id = block.parent_id
        self._siblings_of(parent_id).remove(block.id)
        if parent_id is not None:
            self._blocks[parent_id].updated_at = now
        block.parent_id = None

    def _touch(self, now: str) -> None:
        self._updated_at = now

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self,
        type: str,
        data: Mapping[str, Any] | None = None,
        *,
        parent_id: str | None = None,
        position: int | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Block:
        """Create a block.

        ``data`` is shallow-merged over the type's default payload and the
        result validated before anything is stored.

        Args:
            type: Registered block type.
            data: Type-specific payload (defaults used when omitted).
            parent_id: Parent block id, None for a root block.
            position: Insertion index among siblings; out-of-range appends.
            metadata: Initial metadata.

        Returns:
            The created block.

        Raises:
            UnknownTypeError: If the type is not registered.
            ValidationError: If the merged data fails validation.
            NotFoundError: If the parent does not exist.
            InvalidRelationshipError: If the parent cannot hold this type.
        """
        block_type = normalize_type(type)
        with self._lock:
            payload = self.registry.create_default_data(block_type)
            if data is not None:
                payload.update(copy.deepcopy(dict(data)))
            self._validate(block_type, payload)

            if parent_id is not None:
                parent = self._require(parent_id)
                self._check_relationship(parent, block_type)

            now = self._now()
            block = Block(
                id=self._fresh_id(),
                type=block_type,
                data=payload,
                created_at=now,
                updated_at=now,
                version=1,
                metadata=copy.deepcopy(dict(metadata or {})),
            )
            self._blocks[block.id] = block
            self._link(block, parent_id, position, now)
            self._touch(now)

            logger.debug("Created block %s (%s) under %s", block.id, type_value(block_type), parent_id)
            return block.copy()

    # =========================================================================
    # Read
    # =========================================================================

    def get(self, block_id: str) -> Block | None:
        """Get a block by id, or None."""
        with self._lock:
            block = self._blocks.get(block_id)
            return block.copy() if block else None

    def get_many(self, block_ids: Iterable[str]) -> list[Block]:
        """Blocks for the ids that exist, in input order; missing ids are dropped."""
        with self._lock:
            return [self._blocks[bid].copy() for bid in block_ids if bid in self._blocks]

    def exists(self, block_id: str) -> bool:
        with self._lock:
            return block_id in self._blocks

    def query(
        self,
        *,
        type: str | Iterable[str] | None = None,
        parent_id: Any = ANY_PARENT,
    ) -> list[Block]:
        """Filter blocks by type and/or parent (logical AND).

        Args:
            type: One type or a collection of types; None matches all.
            parent_id: Exact parent id; None matches root blocks; omitted
                matches any parent.

        Returns:
            Matching blocks in store insertion order.
        """
        types = _type_filter(type)
        with self._lock:
            return [
                block.copy()
                for block in self._blocks.values()
                if (types is None or type_value(block.type) in types)
                and (parent_id is ANY_PARENT or block.parent_id == parent_id)
            ]

    def search(
        self,
        query: str,
        *,
        type: str | Iterable[str] | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Block]:
        """Case-insensitive substring search over each type's searchable fields.

        Args:
            query: Text to look for; blank queries match nothing.
            type: Restrict to one type or a collection of types.
            limit: Maximum number of results, None for all.
            offset: Number of matches to skip.

        Returns:
            Matching blocks in store insertion order.
        """
        if not query.strip():
            return []
        needle = query.casefold()
        if offset < 0:
            raise ValueError("offset must be non-negative")
        if limit is not None and limit < 0:
            raise ValueError("limit must be non-negative")

        types = _type_filter(type)
        with self._lock:
            matches = []
            for block in self._blocks.values():
                if types is not None and type_value(block.type) not in types:
                    continue
                texts = self.registry.searchable_text(block.type, block.data)
                if any(needle in text.casefold() for text in texts):
                    matches.append(block)

            end = None if limit is None else offset + limit
            return [b.copy() for b in matches[offset:end]]

    def count(self) -> int:
        with self._lock:
            return len(self._blocks)

    # =========================================================================
    # Hierarchy navigation
    # =========================================================================

    def get_children(self, block_id: str, *, recursive: bool = False) -> list[Block]:
        """Direct children in order, or all descendants in pre-order.

        Unknown ids yield an empty list.
        """
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None:
                return []
            if recursive:
                return [b.copy() for b in tree.iter_descendants(self._blocks, block_id)]
            return [self._blocks[cid].copy() for cid in block.children]

    def get_parent(self, block_id: str) -> Block | None:
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None or block.parent_id is None:
                return None
            return self._blocks[block.parent_id].copy()

    def get_ancestors(self, block_id: str) -> list[Block]:
        """Ancestors from immediate parent up to the root."""
        with self._lock:
            return [b.copy() for b in tree.iter_ancestors(self._blocks, block_id)]

    def get_roots(self) -> list[Block]:
        """Root blocks in root order."""
        with self._lock:
            return [self._blocks[rid].copy() for rid in self._roots]

    def get_siblings(self, block_id: str, *, include_self: bool = False) -> list[Block]:
        """Blocks sharing ``block_id``'s parent (or the root list), in order."""
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None:
                return []
            return [
                self._blocks[sid].copy()
                for sid in self._siblings_of(block.parent_id)
                if include_self or sid != block_id
            ]

    def get_depth(self, block_id: str) -> int:
        """Nesting depth (0 for root blocks).

        Raises:
            NotFoundError: If the block does not exist.
        """
        with self._lock:
            self._require(block_id)
            return sum(1 for _ in tree.iter_ancestors(self._blocks, block_id))

    def get_root(self, block_id: str) -> Block | None:
        """Root ancestor of a block, or the block itself if it is a root."""
        with self._lock:
            block = self._blocks.get(block_id)
            if block is None:
                return None
            for block in tree.iter_ancestors(self._blocks, block_id):
                pass
            return block.copy()

    def get_tree(self, block_id: str | None = None) -> list[dict[str, Any]]:
        """Nested rendering of one subtree, or of the whole forest.

        Returns:
            List of nested block dicts (one entry for a subtree, one per
            root otherwise; empty if ``block_id`` does not exist).
        """
        with self._lock:
            ids = [block_id] if block_id is not None else list(self._roots)
            nodes = [tree.build_nested(self._blocks, bid) for bid in ids]
            return [n for n in nodes if n is not None]

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        block_id: str,
        *,
        data: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> Block:
        """Merge new fields into a block's data and/or metadata.

        Both merges are shallow: top-level keys of the argument replace the
        stored keys, nested values are replaced wholesale. The merged data
        must pass validation or nothing changes.

        Raises:
            NotFoundError: If the block does not exist.
            ValidationError: If the merged data fails validation.
        """
        with self._lock:
            block = self._require(block_id)

            new_data = block.data
            if data is not None:
                new_data = {**copy.deepcopy(block.data), **copy.deepcopy(dict(data))}
                self._validate(block.type, new_data)

            now = self._now()
            block.data = new_data
            if metadata is not None:
                block.metadata = {**block.metadata, **copy.deepcopy(dict(metadata))}
            block.updated_at = now
            self._touch(now)

            logger.debug("Updated block %s", block_id)
            return block.copy()

    # =========================================================================
    # Move / reorder
    # =========================================================================

    def move(
        self,
        block_id: str,
        *,
        new_parent_id: str | None = None,
        position: int | None = None,
    ) -> Block:
        """Move a block under a new parent (or to the root list).

        ``position`` indexes the destination list after the block has been
        removed from its old place, so it also reorders within one parent.
        Out-of-range positions append.

        Raises:
            NotFoundError: If the block or the new parent does not exist.
            CycleError: If the new parent is the block or one of its descendants.
            InvalidRelationshipError: If the new parent cannot hold this type.
        """
        with self._lock:
            block = self._require(block_id)

            if new_parent_id is not None:
                parent = self._require(new_parent_id)
                if new_parent_id == block_id or tree.is_descendant(self._blocks, new_parent_id, block_id):
                    raise CycleError(
                        f"Cannot move block {block_id} into itself or its descendant {new_parent_id}",
                        block_id=block_id,
                        target_id=new_parent_id,
                    )
                self._check_relationship(parent, block.type)

            now = self._now()
            self._unlink(block, now)
            self._link(block, new_parent_id, position, now)
            block.updated_at = now
            self._touch(now)

            logger.debug("Moved block %s under %s at %s", block_id, new_parent_id, position)
            return block.copy()

    def reorder_children(self, parent_id: str | None, ordered_ids: list[str]) -> list[Block]:
        """Replace the order of a parent's children (or of the roots).

        Args:
            parent_id: Parent whose children to reorder, None for roots.
            ordered_ids: Exact permutation of the current child ids.

        Returns:
            The children in their new order.

        Raises:
            NotFoundError: If the parent does not exist.
            ValueError: If ``ordered_ids`` is not a permutation of the children.
        """
        with self._lock:
            if parent_id is not None:
                self._require(parent_id)
            siblings = self._siblings_of(parent_id)
            if len(ordered_ids) != len(siblings) or set(ordered_ids) != set(siblings):
                raise ValueError("ordered_ids must be a permutation of the current children")

            now = self._now()
            siblings[:] = ordered_ids
            if parent_id is not None:
                self._blocks[parent_id].updated_at = now
            self._touch(now)
            return [self._blocks[cid].copy() for cid in siblings]

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, block_id: str, *, delete_children: bool = False) -> list[str]:
        """Delete a block, optionally with its whole subtree.

        Descendants are removed depth-first (children before parents).

        Returns:
            Ids of every removed block, in removal order.

        Raises:
            NotFoundError: If the block does not exist.
            HasChildrenError: If the block has children and
                ``delete_children`` is False.
        """
        with self._lock:
            block = self._require(block_id)
            if block.children and not delete_children:
                raise HasChildrenError(
                    f"Block {block_id} has {len(block.children)} children",
                    block_id=block_id,
                    child_count=len(block.children),
                )

            # Pre-order reversed is a valid post-order for removal
            doomed = [b.id for b in tree.iter_descendants(self._blocks, block_id)]
            doomed.reverse()

            now = self._now()
            self._unlink(block, now)
            for did in doomed:
                del self._blocks[did]
            del self._blocks[block_id]
            doomed.append(block_id)
            self._touch(now)

            logger.debug("Deleted %d block(s) rooted at %s", len(doomed), block_id)
            return doomed

    # =========================================================================
    # Duplicate
    # =========================================================================

    def duplicate(
        self,
        block_id: str,
        *,
        duplicate_children: bool = False,
        position: int | None = None,
    ) -> Block:
        """Clone a block (and optionally its subtree) under the same parent.

        Clones get fresh ids and timestamps, deep-copied data and metadata,
        and version 1. The clone is appended to the original's siblings
        unless ``position`` is given.

        Returns:
            The cloned top-level block.

        Raises:
            NotFoundError: If the block does not exist.
            InvalidRelationshipError: If the registry no longer allows the
                clone under the original's parent.
        """
        with self._lock:
            source = self._require(block_id)
            if source.parent_id is not None:
                self._check_relationship(self._blocks[source.parent_id], source.type)

            now = self._now()
            clone = self._clone(source, now)
            self._blocks[clone.id] = clone
            self._link(clone, source.parent_id, position, now)

            if duplicate_children:
                # (original, clone) pairs whose children still need copying
                pending = [(source, clone)]
                while pending:
                    original, copied = pending.pop()
                    for child_id in original.children:
                        child = self._blocks[child_id]
                        child_clone = self._clone(child, now)
                        self._blocks[child_clone.id] = child_clone
                        child_clone.parent_id = copied.id
                        copied.children.append(child_clone.id)
                        pending.append((child, child_clone))

            self._touch(now)
            logger.debug("Duplicated block %s as %s", block_id, clone.id)
            return clone.copy()

    def _clone(self, source: Block, now: str) -> Block:
        return Block(
            id=self._fresh_id(),
            type=source.type,
            data=copy.deepcopy(source.data),
            created_at=now,
            updated_at=now,
            version=1,
            metadata=copy.deepcopy(source.metadata),
        )

    # =========================================================================
    # Export / import
    # =========================================================================

    def export_tree(self) -> dict[str, Any]:
        """Snapshot of the whole store as a JSON-serializable document.

        Layout: ``{"roots": [...], "blocks": {id: block}, "metadata":
        {"version", "createdAt", "updatedAt", "exportedAt", "blockCount"}}``.
        """
        with self._lock:
            return {
                "roots": list(self._roots),
                "blocks": {bid: block.to_dict() for bid, block in self._blocks.items()},
                "metadata": {
                    "version": EXPORT_FORMAT_VERSION,
                    "createdAt": self._created_at,
                    "updatedAt": self._updated_at,
                    "exportedAt": self._now(),
                    "blockCount": len(self._blocks),
                },
            }

    def import_tree(self, document: Mapping[str, Any], *, validate_data: bool = False) -> int:
        """Replace the store's contents with an exported document.

        Ids, timestamps and versions are kept exactly. The document is fully
        checked before the swap; on any error the store is unchanged.

        Args:
            document: Output of ``export_tree()`` (possibly via JSON).
            validate_data: Also validate each block's data against its schema.

        Returns:
            Number of blocks loaded.

        Raises:
            IntegrityError: Malformed document, unsupported format version,
                dangling ids, cycles, or illegal type pairings.
            UnknownTypeError: A block uses an unregistered type.
            ValidationError: ``validate_data`` is set and a block is invalid.
        """
        blocks, roots, meta = _parse_document(document)

        problems = tree.check_integrity(blocks, roots)
        if problems:
            logger.warning("Rejected import with %d integrity problem(s)", len(problems))
            raise IntegrityError(
                f"Import rejected: {len(problems)} integrity problem(s)",
                problems=problems,
            )

        with self._lock:
            for block in blocks.values():
                self.registry.require_schema(block.type)

            type_problems = tree.check_integrity(blocks, roots, self.registry)
            if type_problems:
                logger.warning("Rejected import with %d type problem(s)", len(type_problems))
                raise IntegrityError(
                    f"Import rejected: {len(type_problems)} integrity problem(s)",
                    problems=type_problems,
                )

            if validate_data:
                for block in blocks.values():
                    self._validate(block.type, block.data)

            now = self._now()
            self._blocks = blocks
            self._roots = roots
            self._created_at = meta.get("createdAt") or now
            self._updated_at = meta.get("updatedAt") or now

            logger.info("Imported %d block(s) in %d tree(s)", len(blocks), len(roots))
            return len(blocks)

    def clear(self) -> None:
        """Remove every block."""
        with self._lock:
            self._blocks = {}
            self._roots = []
            self._touch(self._now())

    def check_integrity(self) -> list[tree.IntegrityProblem]:
        """Structural problems in the live store (empty when consistent)."""
        with self._lock:
            return tree.check_integrity(self._blocks, self._roots, self.registry)


# =============================================================================
# Helpers
# =============================================================================


def _type_filter(value: str | Iterable[str] | None) -> frozenset[str] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return frozenset({type_value(value)})
    return frozenset(type_value(v) for v in value)


def _parse_document(document: Mapping[str, Any]) -> tuple[dict[str, Block], list[str], dict[str, Any]]:
    """Turn an export document into a block map, root list and metadata.

    Raises:
        IntegrityError: If the document is not shaped like an export.
    """
    if not isinstance(document, Mapping):
        raise IntegrityError("Import document must be an object")

    meta = document.get("metadata") or {}
    if not isinstance(meta, Mapping):
        raise IntegrityError("metadata must be an object")
    version = meta.get("version", EXPORT_FORMAT_VERSION)
    if not isinstance(version, int) or isinstance(version, bool) or version > EXPORT_FORMAT_VERSION:
        raise IntegrityError(
            f"Unsupported export format version {version!r} "
            f"(supported up to {EXPORT_FORMAT_VERSION})"
        )

    roots = document.get("roots")
    raw_blocks = document.get("blocks")
    if not isinstance(roots, list) or not isinstance(raw_blocks, Mapping):
        raise IntegrityError("Import document needs a 'roots' list and a 'blocks' object")

    blocks: dict[str, Block] = {}
    for key, raw in raw_blocks.items():
        try:
            block = Block.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise IntegrityError(f"Malformed block {key}: {exc}") from exc
        blocks[str(key)] = block

    return blocks, [str(r) for r in roots], dict(meta)
