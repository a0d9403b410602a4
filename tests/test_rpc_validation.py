"""Tests for RPC input validation helpers."""

from __future__ import annotations

import pytest

from blocktree.rpc.types import INVALID_PARAMS, RpcError
from blocktree.rpc.validation import (
    MAX_ID_LENGTH,
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


class TestStringValidation:
    def test_valid(self) -> None:
        assert validate_string("hello", "name") == "hello"

    def test_not_a_string(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            validate_string(123, "name")
        assert exc_info.value.code == INVALID_PARAMS
        assert "name must be a string" in exc_info.value.message

    def test_empty(self) -> None:
        with pytest.raises(RpcError, match="cannot be empty"):
            validate_string("", "name")
        assert validate_string("", "name", allow_empty=True) == ""

    def test_too_long(self) -> None:
        with pytest.raises(RpcError, match="at most 3"):
            validate_string("abcd", "name", max_length=3)


class TestIdValidation:
    def test_block_id(self) -> None:
        assert validate_block_id("b1", "block_id") == "b1"
        with pytest.raises(RpcError):
            validate_block_id("x" * (MAX_ID_LENGTH + 1), "block_id")

    def test_optional_block_id(self) -> None:
        assert validate_optional_block_id(None, "parent_id") is None
        with pytest.raises(RpcError):
            validate_optional_block_id(5, "parent_id")


class TestNumericValidation:
    def test_int_bounds(self) -> None:
        assert validate_int(5, "limit", min_value=1, max_value=10) == 5
        with pytest.raises(RpcError, match="at least 1"):
            validate_int(0, "limit", min_value=1)
        with pytest.raises(RpcError, match="at most 10"):
            validate_int(11, "limit", max_value=10)

    def test_bool_is_not_an_int(self) -> None:
        with pytest.raises(RpcError, match="must be an integer"):
            validate_int(True, "limit")

    def test_position(self) -> None:
        assert validate_position(None, "position") is None
        assert validate_position(0, "position") == 0
        with pytest.raises(RpcError):
            validate_position(-1, "position")


class TestContainerValidation:
    def test_bool(self) -> None:
        assert validate_bool(False, "recursive") is False
        with pytest.raises(RpcError):
            validate_bool("true", "recursive")

    def test_object(self) -> None:
        assert validate_object(None, "data") is None
        assert validate_object({"a": 1}, "data") == {"a": 1}
        with pytest.raises(RpcError, match="must be an object"):
            validate_object([1], "data")

    def test_list_with_item_validator(self) -> None:
        assert validate_list(["a", "b"], "ids", item_validator=validate_block_id) == ["a", "b"]
        with pytest.raises(RpcError, match=r"ids\[1\] must be a string"):
            validate_list(["a", 2], "ids", item_validator=validate_block_id)
        with pytest.raises(RpcError, match="more than 1 items"):
            validate_list(["a", "b"], "ids", max_length=1)

    def test_type_filter(self) -> None:
        assert validate_type_filter(None, "type") is None
        assert validate_type_filter("todo", "type") == "todo"
        assert validate_type_filter(["todo", "text"], "type") == ["todo", "text"]
        with pytest.raises(RpcError):
            validate_type_filter(["todo", 3], "type")


class TestValidatedDecorator:
    def test_validates_present_params_only(self) -> None:
        @validated(block_id=validate_block_id, recursive=validate_bool)
        def handler(store, *, block_id: str, recursive: bool = False) -> dict:
            return {"block_id": block_id, "recursive": recursive}

        assert handler(None, block_id="b1") == {"block_id": "b1", "recursive": False}
        with pytest.raises(RpcError):
            handler(None, block_id="b1", recursive="yes")
