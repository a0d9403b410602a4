"""FastAPI APIRouter that exposes the block store over JSON-RPC 2.0.

The dispatcher is a flat ``_METHODS`` registry mapping JSON-RPC method names
to handler functions, so adding a new handler is a one-line change. Every
handler receives the application's shared ``BlockStore`` as its first
argument and runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Request

from blocktree.blocks.store import BlockStore
from blocktree.rpc.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSON,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    jsonrpc_error,
    jsonrpc_result,
)
from blocktree.rpc_handlers import RpcError
from blocktree.rpc_handlers.blocks import (
    handle_blocks_ancestors,
    handle_blocks_check,
    handle_blocks_children,
    handle_blocks_clear,
    handle_blocks_count,
    handle_blocks_create,
    handle_blocks_delete,
    handle_blocks_duplicate,
    handle_blocks_export,
    handle_blocks_get,
    handle_blocks_get_many,
    handle_blocks_import,
    handle_blocks_move,
    handle_blocks_parent,
    handle_blocks_query,
    handle_blocks_reorder,
    handle_blocks_roots,
    handle_blocks_search,
    handle_blocks_siblings,
    handle_blocks_tree,
    handle_blocks_update,
    handle_schemas_list,
    handle_schemas_validate,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Method registry
# ---------------------------------------------------------------------------

_METHODS: dict[str, Callable[..., Any]] = {
    # Blocks - CRUD
    "blocks/create": handle_blocks_create,
    "blocks/get": handle_blocks_get,
    "blocks/get_many": handle_blocks_get_many,
    "blocks/query": handle_blocks_query,
    "blocks/search": handle_blocks_search,
    "blocks/update": handle_blocks_update,
    "blocks/delete": handle_blocks_delete,
    # Blocks - tree
    "blocks/move": handle_blocks_move,
    "blocks/reorder": handle_blocks_reorder,
    "blocks/duplicate": handle_blocks_duplicate,
    "blocks/children": handle_blocks_children,
    "blocks/parent": handle_blocks_parent,
    "blocks/ancestors": handle_blocks_ancestors,
    "blocks/siblings": handle_blocks_siblings,
    "blocks/roots": handle_blocks_roots,
    "blocks/tree": handle_blocks_tree,
    # Blocks - store level
    "blocks/export": handle_blocks_export,
    "blocks/import": handle_blocks_import,
    "blocks/clear": handle_blocks_clear,
    "blocks/count": handle_blocks_count,
    "blocks/check": handle_blocks_check,
    # Schemas
    "schemas/list": handle_schemas_list,
    "schemas/validate": handle_schemas_validate,
}


def available_methods() -> list[str]:
    return sorted(_METHODS)


# ---------------------------------------------------------------------------
# JSON-RPC 2.0 dispatcher
# ---------------------------------------------------------------------------


def _error(req_id: str | int | None, code: int, message: str, data: Any = None) -> JSON:
    return jsonrpc_error(req_id, RpcError(code, message, data))


async def _dispatch(store: BlockStore, body: dict[str, Any]) -> JSON:
    """Core JSON-RPC 2.0 dispatcher for a single request object.

    Separated from the route handler so it can be tested without a full HTTP
    request cycle.
    """
    req_id: str | int | None = body.get("id")
    method: str | None = body.get("method")
    params: Any = body.get("params") or {}

    if not isinstance(method, str) or not method:
        return _error(req_id, INVALID_REQUEST, "Invalid Request: method is required")

    if not isinstance(params, dict):
        return _error(req_id, INVALID_REQUEST, "Invalid Request: params must be an object")

    handler = _METHODS.get(method)
    if handler is None:
        return _error(req_id, METHOD_NOT_FOUND, f"Method not found: {method}")

    try:
        result = await asyncio.to_thread(handler, store, **params)
        return jsonrpc_result(req_id, result)
    except RpcError as exc:
        return jsonrpc_error(req_id, exc)
    except TypeError as exc:
        # Wrong / missing parameters
        return _error(req_id, INVALID_PARAMS, f"Invalid parameters: {exc}")
    except Exception as exc:
        logger.exception("Unexpected error in method=%s", method)
        return _error(
            req_id,
            INTERNAL_ERROR,
            f"Internal error in {method}",
            {"error_type": type(exc).__name__},
        )


@router.post("/rpc")
async def rpc_dispatch(request: Request) -> JSON:
    """JSON-RPC 2.0 endpoint.

    Accepts a single JSON-RPC request object (batch not supported).
    """
    try:
        body = await request.json()
    except Exception:
        return _error(None, PARSE_ERROR, "Parse error: invalid JSON")

    if not isinstance(body, dict):
        return _error(None, INVALID_REQUEST, "Invalid Request: expected a JSON object")

    store: BlockStore = request.app.state.store
    return await _dispatch(store, body)
