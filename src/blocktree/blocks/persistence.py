"""Snapshot persistence for block stores.

The engine only knows ``export_tree()`` / ``import_tree()``; this module
writes those documents somewhere durable:

- JSON file: one export document per file, replaced atomically
- SQLite: an append-only ``snapshots`` table, newest row wins on load
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ..errors import SnapshotError
from .models import now_iso
from .store import BlockStore

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})

# Schema version for migrations
# v1: snapshots table
SCHEMA_VERSION = 1


# =============================================================================
# JSON file snapshots
# =============================================================================


def save_json_snapshot(store: BlockStore, path: Path) -> int:
    """Write the store's export document to ``path`` atomically.

    Returns:
        Number of blocks written.
    """
    document = store.export_tree()
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(document, fh, ensure_ascii=False, indent=2)
        os.replace(tmp_name, path)
    except OSError as exc:
        Path(tmp_name).unlink(missing_ok=True)
        raise SnapshotError(f"Failed to write snapshot: {exc}", path=str(path), operation="save") from exc

    count = len(document["blocks"])
    logger.info("Saved %d block(s) to %s", count, path)
    return count


def load_json_snapshot(store: BlockStore, path: Path, *, validate_data: bool = False) -> int:
    """Replace the store's contents with the document at ``path``.

    Returns:
        Number of blocks loaded.

    Raises:
        SnapshotError: If the file cannot be read or is not JSON.
        IntegrityError: If the document violates tree invariants.
    """
    path = Path(path)
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise SnapshotError(f"Failed to read snapshot: {exc}", path=str(path), operation="load") from exc
    except json.JSONDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid JSON: {exc}", path=str(path), operation="load") from exc
    except UnicodeDecodeError as exc:
        raise SnapshotError(f"Snapshot is not valid UTF-8: {exc}", path=str(path), operation="load") from exc

    return store.import_tree(document, validate_data=validate_data)


# =============================================================================
# SQLite snapshots
# =============================================================================


class SqliteSnapshotStore:
    """Append-only snapshot history in a SQLite database."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        # Thread-local storage for connections
        self._local = threading.local()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a thread-local database connection."""
        conn = getattr(self._local, "conn", None)
        if conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            self._local.conn = conn
            self._init_schema(conn)
        return conn

    def close(self) -> None:
        """Close this thread's connection."""
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            conn.close()
            self._local.conn = None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def _init_schema(self, conn: sqlite3.Connection) -> None:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );

            CREATE TABLE IF NOT EXISTS snapshots (
                snapshot_id INTEGER PRIMARY KEY AUTOINCREMENT,
                format_version INTEGER NOT NULL,
                block_count INTEGER NOT NULL,
                payload TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
        """)
        row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        if row is None:
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
        elif row[0] > SCHEMA_VERSION:
            raise SnapshotError(
                f"Snapshot database schema v{row[0]} is newer than supported v{SCHEMA_VERSION}",
                path=str(self.db_path),
                operation="init",
            )
        conn.commit()

    def save(self, store: BlockStore) -> int:
        """Append the store's current export document.

        Returns:
            The new snapshot id.
        """
        document = store.export_tree()
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO snapshots (format_version, block_count, payload, created_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        document["metadata"]["version"],
                        len(document["blocks"]),
                        json.dumps(document, ensure_ascii=False),
                        now_iso(),
                    ),
                )
                snapshot_id = cursor.lastrowid
        except sqlite3.Error as exc:
            raise SnapshotError(f"Failed to save snapshot: {exc}", path=str(self.db_path), operation="save") from exc

        logger.info("Saved snapshot %s (%d blocks)", snapshot_id, len(document["blocks"]))
        return int(snapshot_id)

    def load_latest(self, store: BlockStore, *, validate_data: bool = False) -> bool:
        """Import the newest snapshot into ``store``.

        Returns:
            False if there are no snapshots yet (store left untouched).
        """
        try:
            row = self._get_connection().execute(
                "SELECT snapshot_id, payload FROM snapshots ORDER BY snapshot_id DESC LIMIT 1"
            ).fetchone()
        except sqlite3.Error as exc:
            raise SnapshotError(f"Failed to read snapshots: {exc}", path=str(self.db_path), operation="load") from exc

        if row is None:
            return False

        try:
            document = json.loads(row["payload"])
        except json.JSONDecodeError as exc:
            raise SnapshotError(
                f"Snapshot {row['snapshot_id']} is not valid JSON: {exc}",
                path=str(self.db_path),
                operation="load",
            ) from exc

        store.import_tree(document, validate_data=validate_data)
        logger.info("Loaded snapshot %s", row["snapshot_id"])
        return True

    def list_snapshots(self, limit: int = 20) -> list[dict[str, Any]]:
        """Newest-first snapshot summaries (without payloads)."""
        rows = self._get_connection().execute(
            """
            SELECT snapshot_id, format_version, block_count, created_at
            FROM snapshots ORDER BY snapshot_id DESC LIMIT ?
            """,
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]

    def prune(self, keep: int = 10) -> int:
        """Delete all but the newest ``keep`` snapshots. Returns rows removed."""
        if keep < 1:
            raise ValueError("keep must be at least 1")
        with self._transaction() as conn:
            cursor = conn.execute(
                """
                DELETE FROM snapshots WHERE snapshot_id NOT IN (
                    SELECT snapshot_id FROM snapshots ORDER BY snapshot_id DESC LIMIT ?
                )
                """,
                (keep,),
            )
            return cursor.rowcount


# =============================================================================
# Path-based dispatch
# =============================================================================


def is_sqlite_path(path: Path) -> bool:
    return Path(path).suffix.lower() in SQLITE_SUFFIXES


def save_snapshot(store: BlockStore, path: Path) -> None:
    """Save to ``path`` with the backend its suffix selects."""
    if is_sqlite_path(path):
        backend = SqliteSnapshotStore(path)
        try:
            backend.save(store)
        finally:
            backend.close()
    else:
        save_json_snapshot(store, path)


def load_snapshot(store: BlockStore, path: Path) -> bool:
    """Load from ``path`` if it exists. Returns False when nothing was loaded."""
    path = Path(path)
    if not path.exists():
        return False
    if is_sqlite_path(path):
        backend = SqliteSnapshotStore(path)
        try:
            return backend.load_latest(store)
        finally:
            backend.close()
    load_json_snapshot(store, path)
    return True
