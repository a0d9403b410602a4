"""Block Tree Error Hierarchy.

Provides a structured error hierarchy for all engine operations:
- BlockTreeError: Base exception for all engine errors
- ValidationError: Block data failed its type's validator
- NotFoundError: Referenced block does not exist
- InvalidRelationshipError: Parent/child type pairing not permitted
- CycleError: A move would make a block its own ancestor
- HasChildrenError: Non-cascading delete of a block with children
- UnknownTypeError: Block type was never registered
- IntegrityError: Imported tree violates structural invariants
- SnapshotError: Persistence backend failure

Each error type includes:
- Descriptive message
- Recoverable flag for retry logic
- Structured context for RPC responses

Usage:
    from blocktree.errors import NotFoundError, CycleError

    if block_id not in blocks:
        raise NotFoundError(f"Block not found: {block_id}", resource_id=block_id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .blocks.registry import FieldError
    from .blocks.tree import IntegrityProblem


# =============================================================================
# Error Base Class
# =============================================================================


class BlockTreeError(Exception):
    """Base exception for all block tree errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary for RPC responses."""
        return {
            "type": _error_type_name(self),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Engine Errors
# =============================================================================


class ValidationError(BlockTreeError):
    """Block data failed validation.

    Carries the structured field/message/code list produced by the
    schema registry.

    Example:
        raise ValidationError(
            "Invalid data for kanban_card",
            block_type="kanban_card",
            errors=[FieldError("title", "title cannot be empty", "empty")],
        )
    """

    def __init__(
        self,
        message: str,
        *,
        block_type: str | None = None,
        errors: list[FieldError] | None = None,
    ) -> None:
        self.block_type = block_type
        self.errors = list(errors or [])
        super().__init__(
            message,
            recoverable=False,
            context={
                "block_type": block_type,
                "errors": [e.to_dict() for e in self.errors],
            },
        )


class NotFoundError(BlockTreeError):
    """Referenced block does not exist."""

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = "block",
        resource_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_id = resource_id


class InvalidRelationshipError(BlockTreeError):
    """Parent/child type pairing not permitted by the registry."""

    def __init__(
        self,
        message: str,
        *,
        parent_type: str | None = None,
        child_type: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"parent_type": parent_type, "child_type": child_type},
        )
        self.parent_type = parent_type
        self.child_type = child_type


class CycleError(BlockTreeError):
    """A move would make a block its own ancestor."""

    def __init__(
        self,
        message: str,
        *,
        block_id: str | None = None,
        target_id: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"block_id": block_id, "target_id": target_id},
        )
        self.block_id = block_id
        self.target_id = target_id


class HasChildrenError(BlockTreeError):
    """Delete without cascade on a block that still has children."""

    def __init__(
        self,
        message: str,
        *,
        block_id: str | None = None,
        child_count: int | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"block_id": block_id, "child_count": child_count},
        )
        self.block_id = block_id
        self.child_count = child_count


class UnknownTypeError(BlockTreeError):
    """Block type was never registered."""

    def __init__(self, message: str, *, block_type: str | None = None) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"block_type": block_type},
        )
        self.block_type = block_type


class IntegrityError(BlockTreeError):
    """An imported tree violates structural invariants."""

    def __init__(
        self,
        message: str,
        *,
        problems: list[IntegrityProblem] | None = None,
    ) -> None:
        self.problems = list(problems or [])
        super().__init__(
            message,
            recoverable=False,
            context={"problems": [p.to_dict() for p in self.problems] or None},
        )


class SnapshotError(BlockTreeError):
    """Snapshot persistence failed (I/O, malformed payload, schema)."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        operation: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=False,
            context={"path": _truncate(path, 200), "operation": operation},
        )


# =============================================================================
# Helpers
# =============================================================================


def _error_type_name(exc: BaseException) -> str:
    """Short snake-ish name used in structured payloads (CycleError -> cycle)."""
    name = type(exc).__name__
    if name.endswith("Error") and name != "Error":
        name = name[: -len("Error")]
    out = []
    for i, ch in enumerate(name):
        if ch.isupper() and i:
            out.append("_")
        out.append(ch.lower())
    return "".join(out)


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."


# =============================================================================
# RPC Error Code Mapping
# =============================================================================


# Map engine errors to JSON-RPC error codes
ERROR_CODES: dict[type[BlockTreeError], int] = {
    ValidationError: -32000,
    NotFoundError: -32003,
    InvalidRelationshipError: -32005,
    CycleError: -32006,
    HasChildrenError: -32007,
    UnknownTypeError: -32008,
    IntegrityError: -32021,
    SnapshotError: -32051,
}


def get_error_code(exc: BlockTreeError) -> int:
    """Get the JSON-RPC error code for an engine error."""
    if type(exc) in ERROR_CODES:
        return ERROR_CODES[type(exc)]
    for error_type, code in ERROR_CODES.items():
        if isinstance(exc, error_type):
            return code
    # Default internal error
    return -32603
