"""Base utilities for RPC handlers.

Provides decorators and helpers for standardized error handling across
all RPC handler modules.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable

from blocktree.errors import BlockTreeError, get_error_code
from blocktree.rpc.types import INTERNAL_ERROR, INVALID_PARAMS

from . import RpcError

if TYPE_CHECKING:
    from blocktree.blocks.store import BlockStore

logger = logging.getLogger(__name__)


def rpc_handler(method_name: str) -> Callable:
    """Decorator that converts engine errors to RpcError.

    Standardizes error handling for RPC handlers by:
    1. Propagating RpcError unchanged
    2. Converting BlockTreeError to structured RpcError
    3. Converting ValueError to parameter error (-32602)
    4. Logging and converting unexpected exceptions to internal error (-32603)

    Args:
        method_name: The RPC method name (e.g., "blocks/create")

    Usage:
        @rpc_handler("blocks/get")
        def handle_blocks_get(store: BlockStore, *, block_id: str) -> dict:
            ...
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(store: "BlockStore", **kwargs: Any) -> Any:
            try:
                return func(store, **kwargs)
            except RpcError:
                raise
            except BlockTreeError as e:
                raise RpcError(
                    code=get_error_code(e),
                    message=e.message,
                    data=e.to_dict(),
                ) from e
            except ValueError as e:
                raise RpcError(
                    code=INVALID_PARAMS,
                    message=str(e),
                ) from e
            except TypeError as e:
                # Missing or wrong parameter type
                raise RpcError(
                    code=INVALID_PARAMS,
                    message=f"Invalid parameter: {e}",
                ) from e
            except Exception as e:
                logger.error(
                    "Internal error in RPC handler %s: %s",
                    method_name,
                    e,
                    exc_info=True,
                )
                raise RpcError(
                    code=INTERNAL_ERROR,
                    message=f"Internal error in {method_name}",
                    data={"error_type": type(e).__name__},
                ) from e

        wrapper.rpc_method = method_name  # type: ignore[attr-defined]
        return wrapper

    return decorator


def require_params(*required: str) -> Callable:
    """Decorator that validates required parameters are present.

    Args:
        *required: Names of required parameters

    Usage:
        @rpc_handler("blocks/import")
        @require_params("document")
        def handle_blocks_import(store: BlockStore, **kwargs) -> dict:
            ...

    Raises:
        RpcError: If any required parameter is missing
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing = [p for p in required if p not in kwargs or kwargs[p] is None]
            if missing:
                raise RpcError(
                    code=INVALID_PARAMS,
                    message=f"Missing required parameters: {', '.join(missing)}",
                    data={"missing": missing},
                )
            return func(*args, **kwargs)

        return wrapper

    return decorator
