"""JSON-RPC 2.0 types and utilities for the block tree host."""

from __future__ import annotations

from blocktree.rpc.types import (
    CYCLE_ERROR,
    HAS_CHILDREN_ERROR,
    INTEGRITY_ERROR,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    JSON,
    METHOD_NOT_FOUND,
    NOT_FOUND_ERROR,
    PARSE_ERROR,
    RELATIONSHIP_ERROR,
    SNAPSHOT_ERROR,
    UNKNOWN_TYPE_ERROR,
    VALIDATION_ERROR,
    RpcError,
    jsonrpc_error,
    jsonrpc_result,
)

__all__ = [
    # Types
    "JSON",
    "RpcError",
    # Error codes
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "VALIDATION_ERROR",
    "NOT_FOUND_ERROR",
    "RELATIONSHIP_ERROR",
    "CYCLE_ERROR",
    "HAS_CHILDREN_ERROR",
    "UNKNOWN_TYPE_ERROR",
    "INTEGRITY_ERROR",
    "SNAPSHOT_ERROR",
    # Utilities
    "jsonrpc_error",
    "jsonrpc_result",
]
