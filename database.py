# database.py
import logging
from datetime import datetime, timezone
from typing import List, Tuple

import aiosqlite

from services.alert_state import AlertLevel

DB_PATH = "alert_state.db"
logger = logging.getLogger(__name__)


class AlertStateStore:
    """Keeps the token id -> alert level map across restarts."""

    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path

    async def init(self):
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                             CREATE TABLE IF NOT EXISTS alert_state
                             (
                                 token_id   INTEGER PRIMARY KEY,
                                 level      TEXT NOT NULL,
                                 updated_at TEXT NOT NULL
                             )
                             """)
            await db.commit()

    async def save(self, token_id: int, level: AlertLevel) -> bool:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                # never let a stale write move a token back to PARTIAL
                await db.execute(
                    """INSERT INTO alert_state (token_id, level, updated_at)
                       VALUES (?, ?, ?)
                       ON CONFLICT(token_id) DO UPDATE SET level      = excluded.level,
                                                           updated_at = excluded.updated_at
                       WHERE alert_state.level != 'FULL'""",
                    (token_id, level.name, datetime.now(timezone.utc).isoformat())
                )
                await db.commit()
            return True
        except aiosqlite.Error as e:
            logger.error(f"❌ Could not persist alert state for token {token_id}: {e}")
            return False

    async def load_recent(self, limit: int) -> List[Tuple[int, AlertLevel]]:
        """Newest `limit` entries, returned oldest first so they can be replayed in order."""
        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                    "SELECT token_id, level FROM alert_state ORDER BY updated_at DESC, token_id DESC LIMIT ?",
                    (limit,)
            ) as cursor:
                rows = await cursor.fetchall()

        entries = []
        for token_id, level_name in reversed(rows):
            try:
                entries.append((int(token_id), AlertLevel[level_name]))
            except KeyError:
                logger.warning(f"⚠️ Unknown alert level '{level_name}' for token {token_id}, skipped")
        return entries
