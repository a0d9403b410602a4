"""Pure tree utilities over a block map.

These functions take a ``{id: Block}`` mapping plus the ordered root list
and never mutate them. The store uses them for traversal and for
checking structural invariants (on demand and on import):

- no block is its own ancestor
- every child id exists and points back at its parent
- root membership matches ``parent_id is None`` exactly once
- every parent/child type pairing is allowed by the registry
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .models import Block, type_value
from .registry import SchemaRegistry

# Problem codes
MISSING_BLOCK = "missing_block"
ID_MISMATCH = "id_mismatch"
PARENT_MISMATCH = "parent_mismatch"
DUPLICATE_CHILD = "duplicate_child"
DUPLICATE_ROOT = "duplicate_root"
ROOT_HAS_PARENT = "root_has_parent"
MISSING_ROOT = "missing_root"
ORPHAN = "orphan"
CYCLE = "cycle"
INVALID_RELATIONSHIP = "invalid_relationship"
UNKNOWN_TYPE = "unknown_type"


@dataclass(frozen=True)
class IntegrityProblem:
    """One violated structural invariant."""

    code: str
    block_id: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "blockId": self.block_id, "message": self.message}


# =============================================================================
# Traversal
# =============================================================================


def iter_descendants(blocks: Mapping[str, Block], block_id: str) -> Iterator[Block]:
    """Yield all descendants of ``block_id`` in pre-order (depth-first).

    Iterative, so deep trees do not hit the recursion limit. Unknown ids
    yield nothing.
    """
    block = blocks.get(block_id)
    if block is None:
        return
    stack = list(reversed(block.children))
    while stack:
        child = blocks.get(stack.pop())
        if child is None:
            continue
        yield child
        stack.extend(reversed(child.children))


def iter_ancestors(blocks: Mapping[str, Block], block_id: str) -> Iterator[Block]:
    """Yield ancestors from immediate parent up to the root.

    Stops early if the chain loops back on itself or is broken.
    """
    seen = {block_id}
    block = blocks.get(block_id)
    while block is not None and block.parent_id is not None:
        if block.parent_id in seen:
            return
        parent = blocks.get(block.parent_id)
        if parent is None:
            return
        seen.add(parent.id)
        yield parent
        block = parent


def is_descendant(blocks: Mapping[str, Block], candidate_id: str, ancestor_id: str) -> bool:
    """True if ``candidate_id`` sits somewhere below ``ancestor_id``."""
    return any(a.id == ancestor_id for a in iter_ancestors(blocks, candidate_id))


def build_nested(blocks: Mapping[str, Block], block_id: str) -> dict[str, Any] | None:
    """Render a subtree as nested dicts, children inlined in order.

    Each node is ``Block.to_dict()`` with ``children`` replaced by the
    nested child nodes.
    """
    root = blocks.get(block_id)
    if root is None:
        return None

    node = root.to_dict()
    # (block, node) pairs still waiting for their children
    pending = [(root, node)]
    while pending:
        block, rendered = pending.pop()
        rendered_children = []
        for child_id in block.children:
            child = blocks.get(child_id)
            if child is None:
                continue
            child_node = child.to_dict()
            rendered_children.append(child_node)
            pending.append((child, child_node))
        rendered["children"] = rendered_children
    return node


# =============================================================================
# Integrity
# =============================================================================


def check_integrity(
    blocks: Mapping[str, Block],
    root_ids: list[str],
    registry: SchemaRegistry | None = None,
) -> list[IntegrityProblem]:
    """Check every structural invariant of a forest.

    Args:
        blocks: Block map keyed by id.
        root_ids: Ordered root list.
        registry: When given, also check that types are registered and every
            parent/child pairing is permitted.

    Returns:
        List of problems; empty if the forest is consistent.
    """
    problems: list[IntegrityProblem] = []

    for key, block in blocks.items():
        if key != block.id:
            problems.append(
                IntegrityProblem(ID_MISMATCH, key, f"Block stored under {key} has id {block.id}")
            )

    # Root set: exists, unique, parentless, and complete
    seen_roots: set[str] = set()
    for root_id in root_ids:
        if root_id in seen_roots:
            problems.append(IntegrityProblem(DUPLICATE_ROOT, root_id, f"Root {root_id} listed twice"))
            continue
        seen_roots.add(root_id)
        root = blocks.get(root_id)
        if root is None:
            problems.append(IntegrityProblem(MISSING_BLOCK, root_id, f"Root {root_id} does not exist"))
        elif root.parent_id is not None:
            problems.append(
                IntegrityProblem(
                    ROOT_HAS_PARENT,
                    root_id,
                    f"Root {root_id} has parent {root.parent_id}",
                )
            )

    for block in blocks.values():
        if block.parent_id is None and block.id not in seen_roots:
            problems.append(
                IntegrityProblem(MISSING_ROOT, block.id, f"Parentless block {block.id} is not a root")
            )

    # Edges, both directions
    for block in blocks.values():
        seen_children: set[str] = set()
        for child_id in block.children:
            if child_id in seen_children:
                problems.append(
                    IntegrityProblem(
                        DUPLICATE_CHILD,
                        block.id,
                        f"Child {child_id} listed twice under {block.id}",
                    )
                )
                continue
            seen_children.add(child_id)
            child = blocks.get(child_id)
            if child is None:
                problems.append(
                    IntegrityProblem(
                        MISSING_BLOCK,
                        child_id,
                        f"Child {child_id} of {block.id} does not exist",
                    )
                )
            elif child.parent_id != block.id:
                problems.append(
                    IntegrityProblem(
                        PARENT_MISMATCH,
                        child_id,
                        f"Child {child_id} of {block.id} points at parent {child.parent_id}",
                    )
                )

        if block.parent_id is not None:
            parent = blocks.get(block.parent_id)
            if parent is None:
                problems.append(
                    IntegrityProblem(
                        ORPHAN,
                        block.id,
                        f"Parent {block.parent_id} of {block.id} does not exist",
                    )
                )
            elif block.id not in parent.children:
                problems.append(
                    IntegrityProblem(
                        PARENT_MISMATCH,
                        block.id,
                        f"Block {block.id} is missing from children of {block.parent_id}",
                    )
                )

    problems.extend(_find_cycles(blocks))

    if registry is not None:
        problems.extend(_check_types(blocks, registry))

    return problems


def _find_cycles(blocks: Mapping[str, Block]) -> list[IntegrityProblem]:
    """Report one problem per block whose parent chain loops."""
    problems: list[IntegrityProblem] = []
    # 0 = unvisited, 1 = on current chain, 2 = known acyclic
    state: dict[str, int] = {}
    for start in blocks:
        if state.get(start):
            continue
        chain: list[str] = []
        current: str | None = start
        while current is not None and current in blocks and not state.get(current):
            state[current] = 1
            chain.append(current)
            current = blocks[current].parent_id
        if current is not None and state.get(current) == 1:
            problems.append(
                IntegrityProblem(CYCLE, current, f"Block {current} is its own ancestor")
            )
        for block_id in chain:
            state[block_id] = 2
    return problems


def _check_types(blocks: Mapping[str, Block], registry: SchemaRegistry) -> list[IntegrityProblem]:
    problems: list[IntegrityProblem] = []
    for block in blocks.values():
        if not registry.is_registered(block.type):
            problems.append(
                IntegrityProblem(
                    UNKNOWN_TYPE,
                    block.id,
                    f"Block {block.id} has unknown type {type_value(block.type)}",
                )
            )
            continue
        parent = blocks.get(block.parent_id) if block.parent_id is not None else None
        if parent is None or not registry.is_registered(parent.type):
            continue
        if not registry.can_have_child(parent.type, block.type):
            problems.append(
                IntegrityProblem(
                    INVALID_RELATIONSHIP,
                    block.id,
                    f"{type_value(parent.type)} cannot contain {type_value(block.type)}",
                )
            )
    return problems
