"""Tests for RPC handler base utilities.

Tests the rpc_handler and require_params decorators.
"""

from __future__ import annotations

from typing import Any

import pytest

from blocktree.blocks import BlockStore
from blocktree.errors import CycleError, NotFoundError, ValidationError, get_error_code
from blocktree.rpc_handlers import RpcError
from blocktree.rpc_handlers._base import require_params, rpc_handler


class TestRpcHandlerDecorator:
    """Tests for the @rpc_handler decorator."""

    def test_returns_result_on_success(self, store: BlockStore) -> None:
        """Handler returns result on successful execution."""

        @rpc_handler("test/method")
        def handler(store: BlockStore, *, name: str) -> dict[str, Any]:
            return {"greeting": f"Hello, {name}!", "count": store.count()}

        assert handler(store, name="World") == {"greeting": "Hello, World!", "count": 0}

    def test_propagates_rpc_error_unchanged(self, store: BlockStore) -> None:
        """RpcError is propagated without modification."""

        @rpc_handler("test/method")
        def handler(store: BlockStore) -> dict:
            raise RpcError(code=-32600, message="Invalid Request")

        with pytest.raises(RpcError) as exc_info:
            handler(store)

        assert exc_info.value.code == -32600
        assert exc_info.value.message == "Invalid Request"

    def test_converts_engine_error(self, store: BlockStore) -> None:
        """BlockTreeError is converted to RpcError with its mapped code."""

        @rpc_handler("test/method")
        def handler(store: BlockStore) -> dict:
            raise ValidationError("Invalid data for heading", block_type="heading")

        with pytest.raises(RpcError) as exc_info:
            handler(store)

        assert exc_info.value.code == get_error_code(ValidationError(""))
        assert exc_info.value.message == "Invalid data for heading"
        assert exc_info.value.data["block_type"] == "heading"
        assert exc_info.value.data["type"] == "validation"

    @pytest.mark.parametrize(
        ("exc", "code"),
        [
            (NotFoundError("Block not found: b1", resource_id="b1"), -32003),
            (CycleError("loop", block_id="a", target_id="b"), -32006),
        ],
    )
    def test_engine_error_codes(self, store: BlockStore, exc: Exception, code: int) -> None:
        @rpc_handler("test/method")
        def handler(store: BlockStore) -> dict:
            raise exc

        with pytest.raises(RpcError) as exc_info:
            handler(store)
        assert exc_info.value.code == code

    def test_converts_value_error(self, store: BlockStore) -> None:
        """ValueError is converted to RpcError with -32602."""

        @rpc_handler("test/method")
        def handler(store: BlockStore) -> dict:
            raise ValueError("ordered_ids must be a permutation")

        with pytest.raises(RpcError) as exc_info:
            handler(store)

        assert exc_info.value.code == -32602
        assert "permutation" in exc_info.value.message

    def test_converts_type_error(self, store: BlockStore) -> None:
        """TypeError (e.g. an unexpected keyword) is converted to -32602."""

        @rpc_handler("test/method")
        def handler(store: BlockStore, *, block_id: str) -> dict:
            return {}

        with pytest.raises(RpcError) as exc_info:
            handler(store, block_id="b1", bogus=True)

        assert exc_info.value.code == -32602
        assert "Invalid parameter" in exc_info.value.message

    def test_converts_unexpected_error(self, store: BlockStore) -> None:
        """Unexpected exceptions become internal error -32603."""

        @rpc_handler("blocks/export")
        def handler(store: BlockStore) -> dict:
            raise RuntimeError("Something unexpected")

        with pytest.raises(RpcError) as exc_info:
            handler(store)

        assert exc_info.value.code == -32603
        assert exc_info.value.message == "Internal error in blocks/export"
        assert exc_info.value.data["error_type"] == "RuntimeError"

    def test_sets_rpc_method_and_keeps_name(self) -> None:
        @rpc_handler("blocks/get")
        def handle_blocks_get(store: BlockStore) -> dict:
            """Docstring survives."""
            return {}

        assert handle_blocks_get.rpc_method == "blocks/get"
        assert handle_blocks_get.__name__ == "handle_blocks_get"
        assert handle_blocks_get.__doc__ == "Docstring survives."


class TestRequireParams:
    """Tests for the @require_params decorator."""

    def test_passes_when_present(self, store: BlockStore) -> None:
        @require_params("document")
        def handler(store: BlockStore, **kwargs: Any) -> dict:
            return kwargs

        assert handler(store, document={}) == {"document": {}}

    def test_rejects_missing_and_none(self, store: BlockStore) -> None:
        @require_params("document", "mode")
        def handler(store: BlockStore, **kwargs: Any) -> dict:
            return kwargs

        with pytest.raises(RpcError) as exc_info:
            handler(store, mode=None)

        assert exc_info.value.code == -32602
        assert exc_info.value.data == {"missing": ["document", "mode"]}
