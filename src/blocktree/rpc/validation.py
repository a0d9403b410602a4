"""Input validation helpers for RPC handlers.

Provides validation decorators and utility functions that handlers
can use to ensure inputs are well-formed before they reach the engine.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, TypeVar

from blocktree.rpc.types import INVALID_PARAMS, RpcError

F = TypeVar("F", bound=Callable[..., Any])

MAX_ID_LENGTH = 256


# =============================================================================
# String Validation
# =============================================================================


def validate_string(
    value: Any,
    name: str,
    *,
    max_length: int = 10000,
    allow_empty: bool = False,
) -> str:
    """Validate a string parameter.

    Raises:
        RpcError: If validation fails
    """
    if not isinstance(value, str):
        raise RpcError(INVALID_PARAMS, f"{name} must be a string")

    if not value and not allow_empty:
        raise RpcError(INVALID_PARAMS, f"{name} cannot be empty")

    if len(value) > max_length:
        raise RpcError(INVALID_PARAMS, f"{name} must be at most {max_length} characters")

    return value


def validate_block_id(value: Any, name: str) -> str:
    """Validate a block id (non-empty string, bounded length)."""
    return validate_string(value, name, max_length=MAX_ID_LENGTH)


def validate_optional_block_id(value: Any, name: str) -> str | None:
    if value is None:
        return None
    return validate_block_id(value, name)


# =============================================================================
# Numeric Validation
# =============================================================================


def validate_int(
    value: Any,
    name: str,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Validate an integer parameter.

    Raises:
        RpcError: If validation fails
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise RpcError(INVALID_PARAMS, f"{name} must be an integer")

    if min_value is not None and value < min_value:
        raise RpcError(INVALID_PARAMS, f"{name} must be at least {min_value}")

    if max_value is not None and value > max_value:
        raise RpcError(INVALID_PARAMS, f"{name} must be at most {max_value}")

    return value


def validate_position(value: Any, name: str) -> int | None:
    """Optional non-negative sibling index."""
    if value is None:
        return None
    return validate_int(value, name, min_value=0)


# =============================================================================
# Boolean / Container Validation
# =============================================================================


def validate_bool(value: Any, name: str) -> bool:
    """Validate a boolean parameter."""
    if not isinstance(value, bool):
        raise RpcError(INVALID_PARAMS, f"{name} must be a boolean")
    return value


def validate_object(value: Any, name: str) -> dict[str, Any] | None:
    """Validate an optional JSON object parameter."""
    if value is None:
        return None
    if not isinstance(value, dict):
        raise RpcError(INVALID_PARAMS, f"{name} must be an object")
    return value


def validate_list(
    value: Any,
    name: str,
    *,
    max_length: int = 10000,
    item_validator: Callable[[Any, str], Any] | None = None,
) -> list[Any]:
    """Validate a list parameter.

    Raises:
        RpcError: If validation fails
    """
    if not isinstance(value, list):
        raise RpcError(INVALID_PARAMS, f"{name} must be a list")

    if len(value) > max_length:
        raise RpcError(INVALID_PARAMS, f"{name} cannot have more than {max_length} items")

    if item_validator:
        return [item_validator(item, f"{name}[{i}]") for i, item in enumerate(value)]

    return value


def validate_type_filter(value: Any, name: str) -> str | list[str] | None:
    """A block type, a list of block types, or None."""
    if value is None:
        return None
    if isinstance(value, list):
        return validate_list(value, name, max_length=100, item_validator=validate_string)
    return validate_string(value, name, max_length=100)


# =============================================================================
# Validation Decorator
# =============================================================================


def validated(**validators: Callable[[Any, str], Any]) -> Callable[[F], F]:
    """Decorator to validate handler parameters.

    Usage:
        @validated(
            block_id=validate_block_id,
            limit=lambda v, n: validate_int(v, n, min_value=1, max_value=100),
        )
        def handle_something(store, *, block_id: str, limit: int) -> dict:
            ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for param_name, validator in validators.items():
                if param_name in kwargs:
                    kwargs[param_name] = validator(kwargs[param_name], param_name)
            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
