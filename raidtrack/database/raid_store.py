"""SQLite storage for published raids, signups and player profiles."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import aiosqlite


logger = logging.getLogger("raidtrack.raid_store")


@dataclass(frozen=True)
class RaidRecord:
    """Represents a stored raid and its published artifacts."""

    raid_id: str
    scope: str
    raid_title: str
    difficulty: str
    start_at: int
    end_at: int
    notes: Optional[str]
    caps: Optional[Dict[str, int]]
    channel_id: str
    message_id: Optional[str]
    scheduled_event_id: Optional[str]
    created_at: int
    updated_at: int


@dataclass(frozen=True)
class SignupEntry:
    """One user's signup for a raid."""

    raid_id: str
    user_id: str
    username: str
    role: str
    created_at: int


@dataclass(frozen=True)
class PlayerProfile:
    """A user's class and spec within a guild."""

    scope: str
    user_id: str
    class_key: str
    spec_key: str
    updated_at: int


_RAID_COLUMNS = """
    raid_id, scope, raid_title, difficulty, start_at, end_at, notes, caps,
    channel_id, message_id, scheduled_event_id, created_at, updated_at
"""


def _now() -> int:
    return int(datetime.now(timezone.utc).timestamp())


class RaidStore:
    """SQLite-based storage for raids, signups and profiles."""

    def __init__(self, db_path: str = "data/raidtrack.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialized = False

    async def initialize(self) -> None:
        """Ensure the database schema exists."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")

            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS raids (
                    raid_id TEXT PRIMARY KEY,
                    scope TEXT NOT NULL,
                    raid_title TEXT NOT NULL,
                    difficulty TEXT NOT NULL,
                    start_at INTEGER NOT NULL,
                    end_at INTEGER NOT NULL,
                    notes TEXT,
                    caps TEXT,
                    channel_id TEXT NOT NULL,
                    message_id TEXT,
                    scheduled_event_id TEXT,
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )

            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS raid_signups (
                    raid_id TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    username TEXT NOT NULL,
                    role TEXT NOT NULL,
                    created_at INTEGER NOT NULL,
                    PRIMARY KEY (raid_id, user_id)
                )
                """
            )

            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_raid_signups_raid
                ON raid_signups(raid_id)
                """
            )

            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS player_profiles (
                    scope TEXT NOT NULL,
                    user_id TEXT NOT NULL,
                    class_key TEXT NOT NULL,
                    spec_key TEXT NOT NULL,
                    updated_at INTEGER NOT NULL,
                    PRIMARY KEY (scope, user_id)
                )
                """
            )

            await db.commit()

        self._initialized = True
        logger.info("Raid store initialized at %s", self.db_path)

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> RaidRecord:
        caps = json.loads(row[7]) if row[7] else None
        return RaidRecord(
            raid_id=row[0],
            scope=row[1],
            raid_title=row[2],
            difficulty=row[3],
            start_at=int(row[4]),
            end_at=int(row[5]),
            notes=row[6],
            caps=caps,
            channel_id=row[8],
            message_id=row[9],
            scheduled_event_id=row[10],
            created_at=int(row[11]),
            updated_at=int(row[12]),
        )

    async def upsert_raid(
        self,
        raid_id: str,
        scope: str,
        raid_title: str,
        difficulty: str,
        start_at: int,
        end_at: int,
        notes: Optional[str],
        caps: Optional[Dict[str, int]],
        channel_id: str,
    ) -> RaidRecord:
        """
        Insert a raid or overwrite its display fields.

        Artifact IDs of an existing raid are left as they are.
        """
        await self.initialize()
        now = _now()
        caps_json = json.dumps(caps, sort_keys=True) if caps else None

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO raids (
                    raid_id, scope, raid_title, difficulty, start_at, end_at,
                    notes, caps, channel_id, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(raid_id)
                DO UPDATE SET scope = excluded.scope,
                              raid_title = excluded.raid_title,
                              difficulty = excluded.difficulty,
                              start_at = excluded.start_at,
                              end_at = excluded.end_at,
                              notes = excluded.notes,
                              caps = excluded.caps,
                              channel_id = excluded.channel_id,
                              updated_at = excluded.updated_at
                """,
                (
                    raid_id,
                    scope,
                    raid_title,
                    difficulty,
                    start_at,
                    end_at,
                    notes,
                    caps_json,
                    channel_id,
                    now,
                    now,
                ),
            )
            await db.commit()

            cursor = await db.execute(
                f"SELECT {_RAID_COLUMNS} FROM raids WHERE raid_id = ?",
                (raid_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_record(row)

    async def get_raid(self, raid_id: str) -> Optional[RaidRecord]:
        """Fetch a raid by its external ID."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"SELECT {_RAID_COLUMNS} FROM raids WHERE raid_id = ?",
                (raid_id,),
            )
            row = await cursor.fetchone()
            return self._row_to_record(row) if row else None

    async def set_artifact_ids(
        self,
        raid_id: str,
        message_id: Optional[str],
        scheduled_event_id: Optional[str],
    ) -> None:
        """Store the announcement message and scheduled event IDs."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                UPDATE raids
                SET message_id = ?, scheduled_event_id = ?, updated_at = ?
                WHERE raid_id = ?
                """,
                (message_id, scheduled_event_id, _now(), raid_id),
            )
            await db.commit()

    async def clear_message_id(self, raid_id: str) -> None:
        """Forget a deleted announcement message."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                "UPDATE raids SET message_id = NULL, updated_at = ? WHERE raid_id = ?",
                (_now(), raid_id),
            )
            await db.commit()

    async def list_signups(self, raid_id: str) -> List[SignupEntry]:
        """Return signups for a raid in signup order."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT raid_id, user_id, username, role, created_at
                FROM raid_signups
                WHERE raid_id = ?
                ORDER BY created_at ASC, rowid ASC
                """,
                (raid_id,),
            )
            rows = await cursor.fetchall()
            return [
                SignupEntry(
                    raid_id=row[0],
                    user_id=row[1],
                    username=row[2],
                    role=row[3],
                    created_at=int(row[4]),
                )
                for row in rows
            ]

    async def get_user_role(self, raid_id: str, user_id: str) -> Optional[str]:
        """Return a user's current role for a raid."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                "SELECT role FROM raid_signups WHERE raid_id = ? AND user_id = ?",
                (raid_id, user_id),
            )
            row = await cursor.fetchone()
            return row[0] if row else None

    async def upsert_signup(
        self,
        raid_id: str,
        user_id: str,
        username: str,
        role: str,
    ) -> None:
        """Insert or update a signup; the original signup time is kept."""
        await self.initialize()
        created_at = _now()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO raid_signups (raid_id, user_id, username, role, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(raid_id, user_id)
                DO UPDATE SET role = excluded.role,
                              username = excluded.username
                """,
                (raid_id, user_id, username, role, created_at),
            )
            await db.commit()

    async def get_profile(self, scope: str, user_id: str) -> Optional[PlayerProfile]:
        """Return a user's class/spec profile."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT scope, user_id, class_key, spec_key, updated_at
                FROM player_profiles
                WHERE scope = ? AND user_id = ?
                """,
                (scope, user_id),
            )
            row = await cursor.fetchone()
            if not row:
                return None
            return PlayerProfile(
                scope=row[0],
                user_id=row[1],
                class_key=row[2],
                spec_key=row[3],
                updated_at=int(row[4]),
            )

    async def get_profiles(
        self,
        scope: str,
        user_ids: Iterable[str],
    ) -> Dict[str, PlayerProfile]:
        """Return profiles for several users keyed by user ID."""
        await self.initialize()
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(
                f"""
                SELECT scope, user_id, class_key, spec_key, updated_at
                FROM player_profiles
                WHERE scope = ? AND user_id IN ({placeholders})
                """,
                (scope, *ids),
            )
            rows = await cursor.fetchall()
            return {
                row[1]: PlayerProfile(
                    scope=row[0],
                    user_id=row[1],
                    class_key=row[2],
                    spec_key=row[3],
                    updated_at=int(row[4]),
                )
                for row in rows
            }

    async def upsert_profile(
        self,
        scope: str,
        user_id: str,
        class_key: str,
        spec_key: str,
    ) -> None:
        """Insert or replace a user's class/spec."""
        await self.initialize()
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO player_profiles (scope, user_id, class_key, spec_key, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(scope, user_id)
                DO UPDATE SET class_key = excluded.class_key,
                              spec_key = excluded.spec_key,
                              updated_at = excluded.updated_at
                """,
                (scope, user_id, class_key, spec_key, _now()),
            )
            await db.commit()
