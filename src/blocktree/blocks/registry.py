"""Schema registry: per-type validation, defaults and tree-shape rules.

The registry is a plain object handed to ``BlockStore`` at construction;
there is no module-level registry. Tests and hosts build their own with
``SchemaRegistry()`` or ``create_default_registry()``.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import UnknownTypeError
from .models import normalize_type, type_value

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "unknown_type"


@dataclass(frozen=True)
class FieldError:
    """One validation problem on one field of a block's data."""

    field: str
    message: str
    code: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass
class ValidationResult:
    """Outcome of validating a data payload against a schema."""

    valid: bool
    errors: list[FieldError] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> ValidationResult:
        return cls(valid=not errors, errors=list(errors))

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}


Validator = Callable[[Mapping[str, Any]], list[FieldError]]


def _accept_all(_data: Mapping[str, Any]) -> list[FieldError]:
    return []


@dataclass
class BlockSchema:
    """Registry entry describing one block type.

    Attributes:
        type: Block type tag this schema governs
        name: Human-readable name
        category: Grouping for UIs (layout, text, kanban, table, ai, media)
        can_have_children: Whether blocks of this type accept any children
        allowed_parents: Parent types permitted, None means unrestricted
        allowed_children: Child types permitted, None means unrestricted
        default_data: Template payload for new blocks
        validator: Callable returning the list of field errors for a payload
        searchable_fields: Data keys whose text Search inspects
    """

    type: str
    name: str
    category: str = "general"
    can_have_children: bool = False
    allowed_parents: frozenset[str] | None = None
    allowed_children: frozenset[str] | None = None
    default_data: dict[str, Any] = field(default_factory=dict)
    validator: Validator = _accept_all
    searchable_fields: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        self.type = normalize_type(self.type)
        if self.allowed_parents is not None:
            self.allowed_parents = frozenset(type_value(t) for t in self.allowed_parents)
        if self.allowed_children is not None:
            self.allowed_children = frozenset(type_value(t) for t in self.allowed_children)

    def validate(self, data: Mapping[str, Any]) -> ValidationResult:
        if not isinstance(data, Mapping):
            return ValidationResult(
                valid=False,
                errors=[FieldError("data", "data must be an object", "invalid_type")],
            )
        return ValidationResult.from_errors(self.validator(data))

    def to_dict(self) -> dict[str, Any]:
        """Describe the schema (without the validator) for RPC listings."""
        return {
            "type": type_value(self.type),
            "name": self.name,
            "category": self.category,
            "canHaveChildren": self.can_have_children,
            "allowedParents": sorted(self.allowed_parents) if self.allowed_parents is not None else None,
            "allowedChildren": sorted(self.allowed_children) if self.allowed_children is not None else None,
            "defaultData": copy.deepcopy(self.default_data),
            "searchableFields": list(self.searchable_fields),
        }


class SchemaRegistry:
    """Lookup table of block schemas keyed by type."""

    def __init__(self, schemas: list[BlockSchema] | None = None) -> None:
        self._schemas: dict[str, BlockSchema] = {}
        for schema in schemas or []:
            self.register(schema)

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, schema: BlockSchema) -> None:
        """Add or replace the schema for ``schema.type``.

        Existing blocks of that type are not revalidated.
        """
        key = type_value(schema.type)
        if key in self._schemas:
            logger.debug("Replacing schema for block type %s", key)
        self._schemas[key] = schema

    def unregister(self, block_type: str) -> bool:
        """Remove a schema. Returns False if it was not registered."""
        return self._schemas.pop(type_value(block_type), None) is not None

    def is_registered(self, block_type: str) -> bool:
        return type_value(block_type) in self._schemas

    def get_schema(self, block_type: str) -> BlockSchema | None:
        return self._schemas.get(type_value(block_type))

    def require_schema(self, block_type: str) -> BlockSchema:
        """Get a schema or raise UnknownTypeError."""
        schema = self.get_schema(block_type)
        if schema is None:
            raise UnknownTypeError(
                f"Unknown block type: {type_value(block_type)}",
                block_type=type_value(block_type),
            )
        return schema

    def types(self) -> list[str]:
        """Registered type tags in registration order."""
        return list(self._schemas)

    def schemas(self) -> list[BlockSchema]:
        return list(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, block_type: object) -> bool:
        return isinstance(block_type, str) and self.is_registered(block_type)

    # =========================================================================
    # Validation and relationships
    # =========================================================================

    def validate(self, block_type: str, data: Mapping[str, Any]) -> ValidationResult:
        """Validate ``data`` against the schema of ``block_type``.

        Unregistered types yield a single ``unknown_type`` error rather than
        raising.
        """
        schema = self.get_schema(block_type)
        if schema is None:
            return ValidationResult(
                valid=False,
                errors=[
                    FieldError(
                        "type",
                        f"Unknown block type: {type_value(block_type)}",
                        UNKNOWN_TYPE,
                    )
                ],
            )
        return schema.validate(data)

    def can_have_child(self, parent_type: str, child_type: str) -> bool:
        """Whether a ``child_type`` block may sit directly under ``parent_type``.

        Both types must be registered. The parent must accept children, its
        child allow-list (if any) must include the child type and the
        child's parent allow-list (if any) must include the parent type.
        """
        parent = self.get_schema(parent_type)
        child = self.get_schema(child_type)
        if parent is None or child is None:
            return False
        if not parent.can_have_children:
            return False
        if parent.allowed_children is not None and type_value(child_type) not in parent.allowed_children:
            return False
        if child.allowed_parents is not None and type_value(parent_type) not in child.allowed_parents:
            return False
        return True

    def create_default_data(self, block_type: str) -> dict[str, Any]:
        """Fresh deep copy of the type's default payload.

        Raises:
            UnknownTypeError: If the type is not registered.
        """
        return copy.deepcopy(self.require_schema(block_type).default_data)

    def searchable_text(self, block_type: str, data: Mapping[str, Any]) -> list[str]:
        """Strings from the schema's searchable fields of ``data``.

        String values are taken as-is; lists contribute their string items
        and the ``content`` of any mapping items.
        """
        schema = self.get_schema(block_type)
        if schema is None:
            return []

        texts: list[str] = []
        for name in schema.searchable_fields:
            value = data.get(name)
            if isinstance(value, str):
                texts.append(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, str):
                        texts.append(item)
                    elif isinstance(item, Mapping) and isinstance(item.get("content"), str):
                        texts.append(item["content"])
        return texts
