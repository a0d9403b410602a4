from __future__ import annotations

import pytest

from blocktree.blocks import FieldError
from blocktree.blocks.tree import IntegrityProblem
from blocktree.errors import (
    ERROR_CODES,
    BlockTreeError,
    CycleError,
    HasChildrenError,
    IntegrityError,
    InvalidRelationshipError,
    NotFoundError,
    SnapshotError,
    UnknownTypeError,
    ValidationError,
    get_error_code,
)


# =============================================================================
# Error Hierarchy Tests
# =============================================================================


class TestErrorHierarchy:
    """Every engine error is a BlockTreeError with structured context."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ValidationError,
            NotFoundError,
            InvalidRelationshipError,
            CycleError,
            HasChildrenError,
            UnknownTypeError,
            IntegrityError,
            SnapshotError,
        ],
    )
    def test_subclasses_base(self, error_class: type[BlockTreeError]) -> None:
        exc = error_class("boom")
        assert isinstance(exc, BlockTreeError)
        assert str(exc) == "boom"
        assert exc.recoverable is False

    def test_validation_error_to_dict(self) -> None:
        exc = ValidationError(
            "Invalid data for kanban_card",
            block_type="kanban_card",
            errors=[FieldError("title", "title cannot be empty", "empty")],
        )
        assert exc.to_dict() == {
            "type": "validation",
            "message": "Invalid data for kanban_card",
            "recoverable": False,
            "block_type": "kanban_card",
            "errors": [{"field": "title", "message": "title cannot be empty", "code": "empty"}],
        }

    def test_not_found_to_dict(self) -> None:
        data = NotFoundError("Block not found: b9", resource_id="b9").to_dict()
        assert data["type"] == "not_found"
        assert data["resource_type"] == "block"
        assert data["resource_id"] == "b9"

    def test_type_names(self) -> None:
        assert CycleError("x").to_dict()["type"] == "cycle"
        assert InvalidRelationshipError("x").to_dict()["type"] == "invalid_relationship"
        assert HasChildrenError("x").to_dict()["type"] == "has_children"
        assert UnknownTypeError("x").to_dict()["type"] == "unknown_type"

    def test_none_context_values_are_dropped(self) -> None:
        data = CycleError("x", block_id="a").to_dict()
        assert data["block_id"] == "a"
        assert "target_id" not in data

    def test_integrity_error_carries_problems(self) -> None:
        problem = IntegrityProblem("cycle", "b1", "Block b1 is its own ancestor")
        exc = IntegrityError("Import rejected", problems=[problem])

        assert exc.problems == [problem]
        assert exc.to_dict()["problems"] == [
            {"code": "cycle", "blockId": "b1", "message": "Block b1 is its own ancestor"}
        ]
        assert "problems" not in IntegrityError("empty").to_dict()

    def test_snapshot_error_truncates_path(self) -> None:
        exc = SnapshotError("failed", path="x" * 500, operation="save")
        assert len(exc.context["path"]) == 203
        assert exc.context["operation"] == "save"


# =============================================================================
# Error Code Tests
# =============================================================================


class TestErrorCodes:
    """Test the JSON-RPC error code mapping."""

    def test_codes_are_unique(self) -> None:
        assert len(set(ERROR_CODES.values())) == len(ERROR_CODES)

    def test_exact_type(self) -> None:
        assert get_error_code(ValidationError("x")) == -32000
        assert get_error_code(NotFoundError("x")) == -32003
        assert get_error_code(CycleError("x")) == -32006
        assert get_error_code(HasChildrenError("x")) == -32007

    def test_subclass_resolves_through_mro(self) -> None:
        class StaleBlockError(NotFoundError):
            pass

        assert get_error_code(StaleBlockError("x")) == -32003

    def test_base_falls_back_to_internal(self) -> None:
        assert get_error_code(BlockTreeError("x")) == -32603
