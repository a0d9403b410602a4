from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in {"1", "true", "yes", "y", "on"}:
        return True
    if val in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_path(name: str) -> Path | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True)
class Settings:
    """Static settings for the block tree host.

    The engine itself (BlockStore, SchemaRegistry) never reads these; only
    the HTTP/RPC host and the CLI do.
    """

    root_dir: Path = Path(__file__).resolve().parents[2]
    data_dir: Path = _env_path("BLOCKTREE_DATA_DIR") or root_dir / ".blocktree-data"
    log_path: Path = _env_path("BLOCKTREE_LOG_PATH") or data_dir / "blocktree.log"
    log_level: str = os.environ.get("BLOCKTREE_LOG_LEVEL", "INFO")
    log_to_file: bool = _env_bool("BLOCKTREE_LOG_TO_FILE", False)
    log_max_bytes: int = int(os.environ.get("BLOCKTREE_LOG_MAX_BYTES", str(1_000_000)))
    log_backup_count: int = int(os.environ.get("BLOCKTREE_LOG_BACKUP_COUNT", "3"))
    host: str = os.environ.get("BLOCKTREE_HOST", "127.0.0.1")
    port: int = int(os.environ.get("BLOCKTREE_PORT", "8020"))

    # =========================================================================
    # Snapshot persistence
    # =========================================================================
    # Unset means the store lives purely in memory for the process lifetime.
    # A path ending in .db/.sqlite/.sqlite3 selects the SQLite backend,
    # anything else is written as a JSON export document.
    # =========================================================================
    snapshot_path: Path | None = _env_path("BLOCKTREE_SNAPSHOT_PATH")
    save_on_shutdown: bool = _env_bool("BLOCKTREE_SAVE_ON_SHUTDOWN", True)

    # Search pagination applied by the RPC layer
    default_search_limit: int = int(os.environ.get("BLOCKTREE_DEFAULT_SEARCH_LIMIT", "50"))
    max_search_limit: int = int(os.environ.get("BLOCKTREE_MAX_SEARCH_LIMIT", "500"))


settings = Settings()
