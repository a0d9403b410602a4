"""RPC handler modules.

This package contains handler functions organized by domain:
- blocks: block tree CRUD, navigation, move/duplicate, export/import
"""

from __future__ import annotations

from blocktree.rpc.types import RpcError

__all__ = ["RpcError"]
