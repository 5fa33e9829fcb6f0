import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

import aiosqlite

CAPTION_DB_NAME = "captions.db"

CAPTION_LOG_SCHEMA = """
CREATE TABLE IF NOT EXISTS CAPTION_LOG (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    caption TEXT NOT NULL,
    image_size INTEGER NOT NULL DEFAULT 0,
    mime_type TEXT NOT NULL
)
"""


def _resolve_db_dir(db_dir: Optional[Path | str]) -> Path:
    raw_dir = str(db_dir) if db_dir is not None else os.getenv("DATABASE_DIR")
    if raw_dir is None or not raw_dir.strip():
        raise RuntimeError(
            "DATABASE_DIR must be set to a writable directory for the caption log database."
        )

    path = Path(raw_dir).expanduser()
    if path.exists() and not path.is_dir():
        raise RuntimeError(f"DATABASE_DIR={raw_dir!r} points to a file, not a directory.")
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise RuntimeError(f"Cannot create caption log directory {path}") from exc
    return path


class AsyncDatabaseInitializer:
    """
    Own the SQLite caption log at `<DATABASE_DIR>/captions.db`.

    `ensure_database()` creates the file and table when missing and keeps any
    existing entries, so a log kept at shutdown is appended to on the next
    start. `delete_database()` removes the file at shutdown when log deletion
    is on.
    """

    def __init__(self, db_dir: Optional[Path | str] = None) -> None:
        self.db_dir = _resolve_db_dir(db_dir)
        self.db_path = self.db_dir / CAPTION_DB_NAME
        self._ready = False

    async def ensure_database(self) -> None:
        if self._ready:
            return
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(CAPTION_LOG_SCHEMA)
            await db.commit()
        self._ready = True

    def delete_database(self) -> bool:
        """Remove the database file; return True if a file was deleted."""
        self._ready = False
        if not self.db_path.exists():
            return False
        self.db_path.unlink()
        return True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection, creating the caption log on first use."""
        await self.ensure_database()
        async with aiosqlite.connect(self.db_path) as conn:
            yield conn
