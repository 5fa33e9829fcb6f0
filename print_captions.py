"""Print the caption log stored in the project's SQLite database.

Unlike the server, this script does not reset the database: it opens the
existing `captions.db` under `DATABASE_DIR` read-only and prints every
entry, oldest first.

Run: set the `DATABASE_DIR` environment variable and run
      `python print_captions.py`.
"""
import asyncio

import aiosqlite
from dotenv import load_dotenv

from utils.database_init import AsyncDatabaseInitializer


async def main() -> None:
    """Print each caption log row as `timestamp [mime, size]: caption`."""
    initializer = AsyncDatabaseInitializer()
    if not initializer.db_path.exists():
        print(f"No caption log at {initializer.db_path}")
        return

    async with aiosqlite.connect(f"file:{initializer.db_path}?mode=ro", uri=True) as conn:
        cur = await conn.execute(
            "SELECT timestamp, caption, image_size, mime_type FROM CAPTION_LOG ORDER BY id"
        )
        rows = await cur.fetchall()

    if not rows:
        print("Caption log is empty.")
        return
    for timestamp, caption, image_size, mime_type in rows:
        print(f"{timestamp} [{mime_type}, {image_size} bytes]: {caption.strip()}")


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
