"""Reusable field validators for block schemas.

Each helper inspects one field of a ``data`` mapping and returns either
``None`` or a single ``FieldError``. Schema validators compose them with
``collect()``:

    def validate_heading(data):
        return collect(
            check_string(data, "content", required=True),
            check_number_range(data, "level", minimum=1, maximum=6, integer=True),
        )
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from typing import Any

from .registry import FieldError

# Error codes shared by all schemas
REQUIRED = "required"
INVALID_TYPE = "invalid_type"
EMPTY = "empty"
TOO_LONG = "too_long"
OUT_OF_RANGE = "out_of_range"
INVALID_ENUM = "invalid_enum"

MAX_TEXT_LENGTH = 100_000


# =============================================================================
# Presence
# =============================================================================


def check_required(data: Mapping[str, Any], name: str) -> FieldError | None:
    """Field must be present and not None."""
    if data.get(name) is None:
        return FieldError(name, f"{name} is required", REQUIRED)
    return None


# =============================================================================
# Strings
# =============================================================================


def check_string(
    data: Mapping[str, Any],
    name: str,
    *,
    required: bool = False,
    allow_empty: bool = False,
    max_length: int = MAX_TEXT_LENGTH,
) -> FieldError | None:
    """Validate a string field.

    Args:
        data: The block data
        name: Field name
        required: Whether the field must be present
        allow_empty: Whether "" (or whitespace only) is accepted
        max_length: Maximum length

    Returns:
        None if valid, otherwise the first problem found
    """
    value = data.get(name)
    if value is None:
        return FieldError(name, f"{name} is required", REQUIRED) if required else None

    if not isinstance(value, str):
        return FieldError(name, f"{name} must be a string", INVALID_TYPE)

    if not allow_empty and not value.strip():
        return FieldError(name, f"{name} cannot be empty", EMPTY)

    if len(value) > max_length:
        return FieldError(name, f"{name} must be at most {max_length} characters", TOO_LONG)

    return None


# =============================================================================
# Numbers
# =============================================================================


def check_number_range(
    data: Mapping[str, Any],
    name: str,
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    integer: bool = False,
    required: bool = False,
) -> FieldError | None:
    """Validate a numeric field and its bounds (inclusive)."""
    value = data.get(name)
    if value is None:
        return FieldError(name, f"{name} is required", REQUIRED) if required else None

    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return FieldError(name, f"{name} must be a number", INVALID_TYPE)

    if integer and not isinstance(value, int):
        return FieldError(name, f"{name} must be an integer", INVALID_TYPE)

    if minimum is not None and value < minimum:
        return FieldError(name, f"{name} must be at least {minimum}", OUT_OF_RANGE)

    if maximum is not None and value > maximum:
        return FieldError(name, f"{name} must be at most {maximum}", OUT_OF_RANGE)

    return None


# =============================================================================
# Booleans and enums
# =============================================================================


def check_bool(data: Mapping[str, Any], name: str, *, required: bool = False) -> FieldError | None:
    """Validate a boolean field."""
    value = data.get(name)
    if value is None:
        return FieldError(name, f"{name} is required", REQUIRED) if required else None
    if not isinstance(value, bool):
        return FieldError(name, f"{name} must be a boolean", INVALID_TYPE)
    return None


def check_enum(
    data: Mapping[str, Any],
    name: str,
    allowed: Collection[str],
    *,
    required: bool = False,
) -> FieldError | None:
    """Validate that a field is one of ``allowed``."""
    value = data.get(name)
    if value is None:
        return FieldError(name, f"{name} is required", REQUIRED) if required else None
    if not isinstance(value, str):
        return FieldError(name, f"{name} must be a string", INVALID_TYPE)
    if value not in allowed:
        options = ", ".join(sorted(allowed))
        return FieldError(name, f"{name} must be one of: {options}", INVALID_ENUM)
    return None


# =============================================================================
# Collections
# =============================================================================


def check_string_list(
    data: Mapping[str, Any],
    name: str,
    *,
    max_items: int = 1000,
) -> FieldError | None:
    """Validate an optional list of strings (tags, headers, ...)."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return FieldError(name, f"{name} must be a list of strings", INVALID_TYPE)
    if len(value) > max_items:
        return FieldError(name, f"{name} cannot have more than {max_items} items", TOO_LONG)
    return None


def check_mapping_list(
    data: Mapping[str, Any],
    name: str,
    *,
    required_keys: Collection[str] = (),
) -> FieldError | None:
    """Validate an optional list of objects, each carrying ``required_keys``."""
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, list):
        return FieldError(name, f"{name} must be a list", INVALID_TYPE)
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            return FieldError(f"{name}[{i}]", f"{name}[{i}] must be an object", INVALID_TYPE)
        for key in required_keys:
            if key not in item:
                return FieldError(f"{name}[{i}].{key}", f"{name}[{i}].{key} is required", REQUIRED)
    return None


def collect(*results: FieldError | None) -> list[FieldError]:
    """Drop the ``None`` results of a run of checks."""
    return [r for r in results if r is not None]
