"""
Schema migrations for the SQLite database.

Each migration runs once; applied versions are tracked in ``schema_migrations``.
"""

import logging
from pathlib import Path
from typing import List, Tuple

import aiosqlite

logger = logging.getLogger(__name__)

MIGRATIONS: List[Tuple[int, str, str]] = [
    (1, "create_core_tables", """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        discord_id INTEGER NOT NULL UNIQUE,
        gw2_id TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS tiers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS tier_mappings (
        tier_id INTEGER NOT NULL REFERENCES tiers(id) ON DELETE CASCADE,
        discord_role_id INTEGER NOT NULL,
        PRIMARY KEY (tier_id, discord_role_id)
    );

    CREATE TABLE IF NOT EXISTS trainings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        date TEXT NOT NULL,
        state TEXT NOT NULL DEFAULT 'created'
            CHECK (state IN ('created', 'open', 'closed', 'started', 'finished')),
        tier_id INTEGER REFERENCES tiers(id)
    );

    CREATE INDEX IF NOT EXISTS idx_trainings_state ON trainings(state);

    CREATE TABLE IF NOT EXISTS roles (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        repr TEXT NOT NULL,
        emoji TEXT NOT NULL,
        priority INTEGER NOT NULL DEFAULT 2 CHECK (priority >= 0 AND priority <= 4),
        active INTEGER NOT NULL DEFAULT 1
    );

    CREATE UNIQUE INDEX IF NOT EXISTS roles_active_repr ON roles(repr) WHERE active = 1;

    CREATE TABLE IF NOT EXISTS training_roles (
        training_id INTEGER NOT NULL REFERENCES trainings(id) ON DELETE CASCADE,
        role_id INTEGER NOT NULL REFERENCES roles(id),
        PRIMARY KEY (training_id, role_id)
    );

    CREATE TABLE IF NOT EXISTS signups (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id),
        training_id INTEGER NOT NULL REFERENCES trainings(id),
        comment TEXT,
        UNIQUE (user_id, training_id)
    );

    CREATE TABLE IF NOT EXISTS signup_roles (
        signup_id INTEGER NOT NULL REFERENCES signups(id) ON DELETE CASCADE,
        role_id INTEGER NOT NULL REFERENCES roles(id),
        PRIMARY KEY (signup_id, role_id)
    );

    CREATE TABLE IF NOT EXISTS config (
        name TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    """),
    (2, "create_training_bosses", """
    CREATE TABLE IF NOT EXISTS training_bosses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        repr TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        wing INTEGER NOT NULL,
        position INTEGER NOT NULL,
        emoji TEXT NOT NULL,
        url TEXT,
        UNIQUE (wing, position)
    );

    CREATE TABLE IF NOT EXISTS training_boss_mappings (
        training_id INTEGER NOT NULL REFERENCES trainings(id) ON DELETE CASCADE,
        training_boss_id INTEGER NOT NULL REFERENCES training_bosses(id) ON DELETE CASCADE,
        PRIMARY KEY (training_id, training_boss_id)
    );

    CREATE TABLE IF NOT EXISTS signup_boss_preferences (
        signup_id INTEGER NOT NULL REFERENCES signups(id) ON DELETE CASCADE,
        training_boss_id INTEGER NOT NULL REFERENCES training_bosses(id) ON DELETE CASCADE,
        PRIMARY KEY (signup_id, training_boss_id)
    );
    """),
    (3, "create_board_state", """
    CREATE TABLE IF NOT EXISTS board_channels (
        day TEXT PRIMARY KEY,
        channel_id INTEGER NOT NULL
    );

    CREATE TABLE IF NOT EXISTS board_messages (
        message_id INTEGER PRIMARY KEY,
        channel_id INTEGER NOT NULL,
        training_id INTEGER NOT NULL UNIQUE,
        day TEXT NOT NULL,
        fingerprint TEXT NOT NULL
    );
    """),
]


class MigrationRunner:
    """Applies pending migrations to a SQLite database."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def applied_versions(self, conn: aiosqlite.Connection) -> List[int]:
        await conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """)
        cursor = await conn.execute("SELECT version FROM schema_migrations ORDER BY version")
        return [row[0] for row in await cursor.fetchall()]

    async def run(self) -> List[int]:
        """
        Apply all pending migrations.

        Returns:
            Versions applied by this run
        """
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        applied = []
        async with aiosqlite.connect(self.db_path) as conn:
            await conn.execute("PRAGMA foreign_keys=ON")
            done = set(await self.applied_versions(conn))
            for version, name, sql in MIGRATIONS:
                if version in done:
                    continue
                logger.info(f"Applying migration {version:03d}_{name}")
                await conn.executescript(sql)
                await conn.execute(
                    "INSERT INTO schema_migrations (version, name) VALUES (?, ?)", (version, name)
                )
                await conn.commit()
                applied.append(version)
        return applied


async def run_migrations(db_path: str) -> List[int]:
    """Apply pending migrations to the database at ``db_path``."""
    applied = await MigrationRunner(db_path).run()
    if applied:
        logger.info(f"Applied {len(applied)} migration(s) to {db_path}")
    else:
        logger.info(f"Database {db_path} is up to date")
    return applied
