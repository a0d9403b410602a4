from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import Any

import pytest

from blocktree.blocks import BlockStore, BlockType, SchemaRegistry, create_default_registry


class FakeClock:
    """Deterministic ISO timestamps, one second apart per call."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        minutes, seconds = divmod(self.calls, 60)
        return f"2024-01-01T00:{minutes:02d}:{seconds:02d}+00:00"


def sequential_ids(prefix: str = "b") -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture
def registry() -> SchemaRegistry:
    """Isolated registry with every built-in schema."""
    return create_default_registry()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(registry: SchemaRegistry, clock: FakeClock) -> BlockStore:
    """Empty store with deterministic ids (b1, b2, ...) and clock."""
    return BlockStore(registry, id_factory=sequential_ids(), clock=clock)


@pytest.fixture
def other_store() -> BlockStore:
    """Second empty store with its own id sequence (x1, x2, ...)."""
    return BlockStore(create_default_registry(), id_factory=sequential_ids("x"), clock=FakeClock())


@pytest.fixture
def kanban_board(store: BlockStore) -> dict[str, Any]:
    """Board with two columns; the first holds two cards, one with todos.

    Returns a dict of ids keyed by role.
    """
    board = store.create(BlockType.KANBAN_BOARD, {"name": "Roadmap"})
    todo_col = store.create(BlockType.KANBAN_COLUMN, {"name": "To do"}, parent_id=board.id)
    done_col = store.create(BlockType.KANBAN_COLUMN, {"name": "Done"}, parent_id=board.id)
    card = store.create(
        BlockType.KANBAN_CARD,
        {"title": "Write docs", "tags": ["docs"]},
        parent_id=todo_col.id,
    )
    other = store.create(BlockType.KANBAN_CARD, {"title": "Ship release"}, parent_id=todo_col.id)
    check_a = store.create(BlockType.TODO, {"content": "Outline", "checked": True}, parent_id=card.id)
    check_b = store.create(BlockType.TODO, {"content": "Draft", "checked": False}, parent_id=card.id)
    return {
        "board": board.id,
        "todo_col": todo_col.id,
        "done_col": done_col.id,
        "card": card.id,
        "other": other.id,
        "check_a": check_a.id,
        "check_b": check_b.id,
    }
