"""Block Tree - typed block engine served over JSON-RPC.

Usage:
    blocktree                   Start the RPC server (default)
    blocktree --check PATH      Verify a snapshot file and exit
    blocktree --help            Show this help message

Environment Variables:
    BLOCKTREE_HOST              Server host (default: 127.0.0.1)
    BLOCKTREE_PORT              Server port (default: 8020)
    BLOCKTREE_SNAPSHOT_PATH     Snapshot loaded on start, saved on stop
    BLOCKTREE_LOG_LEVEL         Logging level (default: INFO)
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import uvicorn

from . import __version__
from .blocks import BlockStore, create_default_registry
from .blocks.persistence import load_snapshot
from .errors import BlockTreeError, IntegrityError
from .logging_setup import configure_logging
from .settings import settings


def check_snapshot(path: Path) -> int:
    """Load a snapshot into a scratch store and report its health.

    Returns:
        Process exit code: 0 when the snapshot loads cleanly, 1 otherwise.
    """
    store = BlockStore(create_default_registry())
    try:
        loaded = load_snapshot(store, path)
    except IntegrityError as exc:
        print(f"{path}: {exc.message}")
        for problem in exc.problems:
            print(f"  [{problem.code}] {problem.message}")
        return 1
    except BlockTreeError as exc:
        print(f"{path}: {exc.message}")
        return 1

    if not loaded:
        print(f"{path}: no snapshot found")
        return 1

    problems = store.check_integrity()
    print(f"{path}: {store.count()} block(s) in {len(store.get_roots())} tree(s)")
    for problem in problems:
        print(f"  [{problem.code}] {problem.message}")
    return 1 if problems else 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the block tree server."""
    parser = argparse.ArgumentParser(
        prog="blocktree",
        description="Block Tree - typed block engine over JSON-RPC",
        epilog="""
Examples:
  blocktree                          Start the RPC server on default port
  blocktree --port 8030              Start on custom port
  blocktree --snapshot tree.json     Persist the store to a JSON snapshot
  blocktree --check tree.db          Verify the newest SQLite snapshot
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Server host (default: {settings.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=settings.port,
        help=f"Server port (default: {settings.port})",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Snapshot file (.json, or .db/.sqlite for SQLite); disables auto-reload",
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload (for production)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.log_level.upper(),
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--check",
        type=Path,
        metavar="PATH",
        help="Check a snapshot's integrity and exit",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if args.check is not None:
        sys.exit(check_snapshot(args.check))

    print(f"Starting Block Tree server on {args.host}:{args.port}")
    print("Press Ctrl+C to stop\n")

    if args.snapshot is not None:
        # An app object (not an import string) cannot be reloaded
        from .app import create_app

        uvicorn.run(
            create_app(snapshot_path=args.snapshot),
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
        )
        return

    uvicorn.run(
        "blocktree.app:app",
        host=args.host,
        port=args.port,
        reload=not args.no_reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
