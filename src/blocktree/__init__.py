"""Block Tree - a typed, hierarchical block engine.

Blocks (pages, headings, kanban cards, table cells, AI blocks, ...) live in
an in-memory forest owned by ``blocktree.blocks.BlockStore``. The rest of
the package hosts that store over JSON-RPC.
"""

from __future__ import annotations

__version__ = "0.1.0"
