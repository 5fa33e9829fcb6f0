"""Async Data Access Layer for the CAPTION_LOG table.

Provides CaptionDAL with the async operations the server needs, built on
`utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from typing import List, Sequence

from models.caption_record import CaptionLogEntry
from utils.database_init import AsyncDatabaseInitializer


class CaptionDAL:
    """Data access layer for caption log entries.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = ("id", "timestamp", "caption", "image_size", "mime_type")
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def append(self, entry: CaptionLogEntry) -> int:
        """Insert a caption entry and return its new id."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO CAPTION_LOG ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?)",
                (entry.timestamp, entry.caption, entry.image_size, entry.mime_type),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_recent(self, limit: int = 2) -> List[CaptionLogEntry]:
        """Return the `limit` newest entries, most recent first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM CAPTION_LOG ORDER BY id DESC LIMIT ?",
                (limit,),
            )
            rows = await cur.fetchall()
            return [self._row_to_entry(r) for r in rows]

    async def count(self) -> int:
        """Return the number of stored caption entries."""
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM CAPTION_LOG")
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_entry(row: Sequence[object]) -> CaptionLogEntry:
        """Convert a DB row tuple into a CaptionLogEntry."""
        return CaptionLogEntry(
            id=row[0],
            timestamp=row[1],
            caption=row[2],
            image_size=int(row[3] or 0),
            mime_type=row[4],
        )
