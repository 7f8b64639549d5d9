"""
SQLite implementation of data repositories using aiosqlite.

This module provides full SQLite support with connection pooling,
transactions, and async database operations.
"""

import aiosqlite
from typing import List, Optional, Dict, Any, Iterable, Sequence
from datetime import date, datetime
from pathlib import Path
import asyncio
from contextlib import asynccontextmanager

from .base import (
    TrainingRepository,
    RoleRepository,
    TierRepository,
    SignupRepository,
    UserRepository,
    BossRepository,
    ConfigRepository,
    BoardRepository,
    DatabaseConnection,
    Transaction
)
from ..models.training import Training, TrainingState, TrainingBoss, ACTIVE_STATES
from ..models.user import User
from ..models.role import Role, Tier
from ..models.signup import Signup
from ..models.board import BoardState, BoardMessage
from ..exceptions import RepositoryError, NotFoundError, create_error_context

BOARD_CATEGORY_KEY = "board_category_id"


class SQLiteTransaction(Transaction):
    """SQLite transaction bound to one pooled connection."""

    def __init__(self, connection: aiosqlite.Connection, pool: asyncio.Queue):
        self.connection = connection
        self._pool = pool
        self._active = False

    async def execute(self, query: str, params: Optional[tuple] = None) -> aiosqlite.Cursor:
        return await self.connection.execute(query, params or ())

    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        cursor = await self.connection.execute(query, params or ())
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def commit(self) -> None:
        """Commit the transaction."""
        if self._active:
            await self.connection.commit()
            self._active = False

    async def rollback(self) -> None:
        """Rollback the transaction."""
        if self._active:
            await self.connection.rollback()
            self._active = False

    async def __aenter__(self) -> 'SQLiteTransaction':
        """Enter transaction context."""
        await self.connection.execute("BEGIN")
        self._active = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit transaction context and hand the connection back to the pool."""
        try:
            if exc_type is not None:
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self._pool.put(self.connection)


class SQLiteConnection(DatabaseConnection):
    """SQLite database connection with connection pooling."""

    def __init__(self, db_path: str, pool_size: int = 5):
        self.db_path = db_path
        self.pool_size = pool_size
        self._connections: List[aiosqlite.Connection] = []
        self._available: asyncio.Queue = asyncio.Queue(maxsize=pool_size)
        self._lock = asyncio.Lock()
        self._initialized = False

    async def connect(self) -> None:
        """Establish database connection pool."""
        async with self._lock:
            if self._initialized:
                return

            # Ensure database directory exists
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            for _ in range(self.pool_size):
                conn = await aiosqlite.connect(self.db_path)
                conn.row_factory = aiosqlite.Row
                await conn.execute("PRAGMA journal_mode=WAL")
                await conn.execute("PRAGMA foreign_keys=ON")
                self._connections.append(conn)
                await self._available.put(conn)

            self._initialized = True

    async def disconnect(self) -> None:
        """Close all database connections."""
        async with self._lock:
            if not self._initialized:
                return

            for conn in self._connections:
                await conn.close()

            self._connections.clear()
            self._available = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False

    @asynccontextmanager
    async def _get_connection(self):
        """Get a connection from the pool."""
        if not self._initialized:
            await self.connect()

        conn = await self._available.get()
        try:
            yield conn
        finally:
            await self._available.put(conn)

    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a database query."""
        async with self._get_connection() as conn:
            try:
                cursor = await conn.execute(query, params or ())
                await conn.commit()
            except aiosqlite.Error:
                await conn.rollback()
                raise
            return cursor

    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        """Fetch a single row from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        """Fetch all rows from the database."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(query, params or ())
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def begin_transaction(self) -> SQLiteTransaction:
        """Begin a new database transaction."""
        if not self._initialized:
            await self.connect()
        conn = await self._available.get()
        return SQLiteTransaction(conn, self._available)


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class SQLiteTrainingRepository(TrainingRepository):
    """SQLite implementation of training repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def list_active_trainings(self) -> List[Training]:
        trainings = await self.list_trainings(ACTIVE_STATES)
        return sorted(trainings, key=Training.board_sort_key)

    async def get_training(self, training_id: int) -> Optional[Training]:
        row = await self.connection.fetch_one(
            "SELECT * FROM trainings WHERE id = ?", (training_id,)
        )
        if not row:
            return None
        return self._row_to_training(row)

    async def list_trainings(self, states: Optional[Iterable[TrainingState]] = None) -> List[Training]:
        query = "SELECT * FROM trainings"
        params: tuple = ()
        if states is not None:
            values = tuple(state.value for state in states)
            query += f" WHERE state IN ({_placeholders(len(values))})"
            params = values
        query += " ORDER BY date, id"
        rows = await self.connection.fetch_all(query, params)
        return [self._row_to_training(row) for row in rows]

    async def create_training(self, title: str, when: datetime,
                              tier_id: Optional[int] = None) -> Training:
        query = "INSERT INTO trainings (title, date, state, tier_id) VALUES (?, ?, ?, ?)"
        try:
            cursor = await self.connection.execute(
                query, (title, when.isoformat(), TrainingState.CREATED.value, tier_id)
            )
        except aiosqlite.IntegrityError as e:
            raise RepositoryError(
                f"Could not create training {title!r}: {e}",
                error_code="TRAINING_CREATE_FAILED",
                context=create_error_context(operation="create_training"),
                cause=e
            )
        return Training(id=cursor.lastrowid, title=title, date=when,
                        state=TrainingState.CREATED, tier_id=tier_id)

    async def set_state(self, training_id: int, state: TrainingState) -> Training:
        cursor = await self.connection.execute(
            "UPDATE trainings SET state = ? WHERE id = ?", (state.value, training_id)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Training", training_id)
        return await self.get_training(training_id)

    async def deactivate(self, training_id: int) -> Training:
        return await self.set_state(training_id, TrainingState.FINISHED)

    async def set_bosses(self, training_id: int, boss_ids: Sequence[int]) -> None:
        if await self.get_training(training_id) is None:
            raise NotFoundError("Training", training_id)
        async with await self.connection.begin_transaction() as tx:
            await tx.execute(
                "DELETE FROM training_boss_mappings WHERE training_id = ?", (training_id,)
            )
            for boss_id in dict.fromkeys(boss_ids):
                await tx.execute(
                    "INSERT INTO training_boss_mappings (training_id, training_boss_id) VALUES (?, ?)",
                    (training_id, boss_id)
                )

    async def bosses_for_training(self, training_id: int) -> List[TrainingBoss]:
        query = """
        SELECT b.* FROM training_bosses b
        JOIN training_boss_mappings m ON m.training_boss_id = b.id
        WHERE m.training_id = ?
        ORDER BY b.wing, b.position
        """
        rows = await self.connection.fetch_all(query, (training_id,))
        return [SQLiteBossRepository.row_to_boss(row) for row in rows]

    def _row_to_training(self, row: Dict[str, Any]) -> Training:
        return Training(
            id=row['id'],
            title=row['title'],
            date=datetime.fromisoformat(row['date']),
            state=TrainingState(row['state']),
            tier_id=row['tier_id']
        )


class SQLiteRoleRepository(RoleRepository):
    """SQLite implementation of role repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def roles_for_training(self, training_id: int) -> List[Role]:
        query = """
        SELECT r.* FROM roles r
        JOIN training_roles tr ON tr.role_id = r.id
        WHERE tr.training_id = ? AND r.active = 1
        ORDER BY r.priority, r.title
        """
        rows = await self.connection.fetch_all(query, (training_id,))
        return [self._row_to_role(row) for row in rows]

    async def set_training_roles(self, training_id: int, role_ids: Sequence[int]) -> None:
        async with await self.connection.begin_transaction() as tx:
            if await tx.fetch_one("SELECT id FROM trainings WHERE id = ?", (training_id,)) is None:
                raise NotFoundError("Training", training_id)
            await tx.execute("DELETE FROM training_roles WHERE training_id = ?", (training_id,))
            for role_id in dict.fromkeys(role_ids):
                await tx.execute(
                    "INSERT INTO training_roles (training_id, role_id) VALUES (?, ?)",
                    (training_id, role_id)
                )

    async def create_role(self, title: str, repr: str, emoji: str, priority: int = 2) -> Role:
        if not 0 <= priority <= 4:
            raise RepositoryError(
                f"Role priority must be between 0 and 4, got {priority}",
                error_code="ROLE_PRIORITY_RANGE"
            )
        query = "INSERT INTO roles (title, repr, emoji, priority, active) VALUES (?, ?, ?, ?, 1)"
        try:
            cursor = await self.connection.execute(query, (title, repr, emoji, priority))
        except aiosqlite.IntegrityError as e:
            raise RepositoryError(
                f"An active role with repr {repr!r} already exists",
                error_code="ROLE_EXISTS",
                context=create_error_context(operation="create_role", repr=repr),
                cause=e
            )
        return Role(id=cursor.lastrowid, title=title, repr=repr, emoji=emoji,
                    priority=priority, active=True)

    async def deactivate(self, repr: str) -> Role:
        role = await self.get_by_repr(repr)
        if role is None:
            raise NotFoundError("Role", repr)
        await self.connection.execute("UPDATE roles SET active = 0 WHERE id = ?", (role.id,))
        return Role(id=role.id, title=role.title, repr=role.repr, emoji=role.emoji,
                    priority=role.priority, active=False)

    async def get_by_repr(self, repr: str) -> Optional[Role]:
        row = await self.connection.fetch_one(
            "SELECT * FROM roles WHERE repr = ? AND active = 1", (repr,)
        )
        return self._row_to_role(row) if row else None

    async def list_active_roles(self) -> List[Role]:
        rows = await self.connection.fetch_all(
            "SELECT * FROM roles WHERE active = 1 ORDER BY priority, title"
        )
        return [self._row_to_role(row) for row in rows]

    async def get_roles(self, role_ids: Sequence[int]) -> List[Role]:
        if not role_ids:
            return []
        ids = tuple(role_ids)
        rows = await self.connection.fetch_all(
            f"SELECT * FROM roles WHERE id IN ({_placeholders(len(ids))}) ORDER BY priority, title",
            ids
        )
        return [self._row_to_role(row) for row in rows]

    def _row_to_role(self, row: Dict[str, Any]) -> Role:
        return Role(
            id=row['id'],
            title=row['title'],
            repr=row['repr'],
            emoji=row['emoji'],
            priority=row['priority'],
            active=bool(row['active'])
        )


class SQLiteTierRepository(TierRepository):
    """SQLite implementation of tier repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def tier_for_training(self, training_id: int) -> Optional[Tier]:
        row = await self.connection.fetch_one(
            "SELECT t.* FROM tiers t JOIN trainings tr ON tr.tier_id = t.id WHERE tr.id = ?",
            (training_id,)
        )
        if not row:
            return None
        return await self._load_tier(row)

    async def create_tier(self, name: str) -> Tier:
        try:
            cursor = await self.connection.execute("INSERT INTO tiers (name) VALUES (?)", (name,))
        except aiosqlite.IntegrityError as e:
            raise RepositoryError(
                f"Tier {name!r} already exists",
                error_code="TIER_EXISTS",
                context=create_error_context(operation="create_tier", tier=name),
                cause=e
            )
        return Tier(id=cursor.lastrowid, name=name)

    async def delete_tier(self, name: str) -> None:
        tier = await self.get_by_name(name)
        if tier is None:
            raise NotFoundError("Tier", name)
        async with await self.connection.begin_transaction() as tx:
            await tx.execute("UPDATE trainings SET tier_id = NULL WHERE tier_id = ?", (tier.id,))
            await tx.execute("DELETE FROM tier_mappings WHERE tier_id = ?", (tier.id,))
            await tx.execute("DELETE FROM tiers WHERE id = ?", (tier.id,))

    async def get_by_name(self, name: str) -> Optional[Tier]:
        row = await self.connection.fetch_one("SELECT * FROM tiers WHERE name = ?", (name,))
        if not row:
            return None
        return await self._load_tier(row)

    async def list_tiers(self) -> List[Tier]:
        rows = await self.connection.fetch_all("SELECT * FROM tiers ORDER BY name")
        return [await self._load_tier(row) for row in rows]

    async def add_discord_role(self, tier_id: int, discord_role_id: int) -> None:
        await self.connection.execute(
            "INSERT OR IGNORE INTO tier_mappings (tier_id, discord_role_id) VALUES (?, ?)",
            (tier_id, discord_role_id)
        )

    async def remove_discord_role(self, tier_id: int, discord_role_id: int) -> None:
        cursor = await self.connection.execute(
            "DELETE FROM tier_mappings WHERE tier_id = ? AND discord_role_id = ?",
            (tier_id, discord_role_id)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Tier role", discord_role_id)

    async def _load_tier(self, row: Dict[str, Any]) -> Tier:
        mappings = await self.connection.fetch_all(
            "SELECT discord_role_id FROM tier_mappings WHERE tier_id = ? ORDER BY discord_role_id",
            (row['id'],)
        )
        return Tier(
            id=row['id'],
            name=row['name'],
            discord_role_ids=tuple(m['discord_role_id'] for m in mappings)
        )


class SQLiteSignupRepository(SignupRepository):
    """SQLite implementation of sign-up repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def upsert_signup(self, user_id: int, training_id: int,
                            role_ids: Sequence[int],
                            boss_ids: Sequence[int] = ()) -> Signup:
        async with await self.connection.begin_transaction() as tx:
            row = await tx.fetch_one(
                "SELECT id FROM signups WHERE user_id = ? AND training_id = ?",
                (user_id, training_id)
            )
            if row:
                signup_id = row['id']
            else:
                cursor = await tx.execute(
                    "INSERT INTO signups (user_id, training_id) VALUES (?, ?)",
                    (user_id, training_id)
                )
                signup_id = cursor.lastrowid

            await tx.execute("DELETE FROM signup_roles WHERE signup_id = ?", (signup_id,))
            for role_id in dict.fromkeys(role_ids):
                await tx.execute(
                    "INSERT INTO signup_roles (signup_id, role_id) VALUES (?, ?)",
                    (signup_id, role_id)
                )

            await tx.execute(
                "DELETE FROM signup_boss_preferences WHERE signup_id = ?", (signup_id,)
            )
            for boss_id in dict.fromkeys(boss_ids):
                await tx.execute(
                    "INSERT INTO signup_boss_preferences (signup_id, training_boss_id) VALUES (?, ?)",
                    (signup_id, boss_id)
                )

        return await self.get_signup(user_id, training_id)

    async def get_signup(self, user_id: int, training_id: int) -> Optional[Signup]:
        row = await self.connection.fetch_one(
            "SELECT * FROM signups WHERE user_id = ? AND training_id = ?",
            (user_id, training_id)
        )
        if not row:
            return None
        return await self._load_signup(row)

    async def delete_signup(self, user_id: int, training_id: int) -> None:
        cursor = await self.connection.execute(
            "DELETE FROM signups WHERE user_id = ? AND training_id = ?",
            (user_id, training_id)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Signup", (user_id, training_id))

    async def set_comment(self, user_id: int, training_id: int, comment: Optional[str]) -> Signup:
        cursor = await self.connection.execute(
            "UPDATE signups SET comment = ? WHERE user_id = ? AND training_id = ?",
            (comment, user_id, training_id)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Signup", (user_id, training_id))
        return await self.get_signup(user_id, training_id)

    async def count_for_training(self, training_id: int) -> int:
        row = await self.connection.fetch_one(
            "SELECT COUNT(*) AS count FROM signups WHERE training_id = ?", (training_id,)
        )
        return row['count'] if row else 0

    async def list_for_user(self, user_id: int) -> List[Signup]:
        rows = await self.connection.fetch_all(
            "SELECT * FROM signups WHERE user_id = ? ORDER BY training_id", (user_id,)
        )
        return [await self._load_signup(row) for row in rows]

    async def list_for_training(self, training_id: int) -> List[Signup]:
        rows = await self.connection.fetch_all(
            "SELECT * FROM signups WHERE training_id = ? ORDER BY id", (training_id,)
        )
        return [await self._load_signup(row) for row in rows]

    async def _load_signup(self, row: Dict[str, Any]) -> Signup:
        roles = await self.connection.fetch_all(
            "SELECT role_id FROM signup_roles WHERE signup_id = ? ORDER BY role_id", (row['id'],)
        )
        bosses = await self.connection.fetch_all(
            "SELECT training_boss_id FROM signup_boss_preferences WHERE signup_id = ? "
            "ORDER BY training_boss_id",
            (row['id'],)
        )
        return Signup(
            id=row['id'],
            user_id=row['user_id'],
            training_id=row['training_id'],
            comment=row['comment'],
            role_ids=tuple(r['role_id'] for r in roles),
            boss_preference_ids=tuple(b['training_boss_id'] for b in bosses)
        )


class SQLiteUserRepository(UserRepository):
    """SQLite implementation of user repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def get_by_discord_id(self, discord_id: int) -> Optional[User]:
        row = await self.connection.fetch_one(
            "SELECT * FROM users WHERE discord_id = ?", (discord_id,)
        )
        if not row:
            return None
        return User(id=row['id'], discord_id=row['discord_id'], gw2_id=row['gw2_id'])

    async def get_users(self, user_ids: Sequence[int]) -> List[User]:
        if not user_ids:
            return []
        ids = tuple(user_ids)
        rows = await self.connection.fetch_all(
            f"SELECT * FROM users WHERE id IN ({_placeholders(len(ids))}) ORDER BY id", ids
        )
        return [User(id=row['id'], discord_id=row['discord_id'], gw2_id=row['gw2_id']) for row in rows]

    async def upsert_user(self, discord_id: int, gw2_id: str) -> User:
        query = """
        INSERT INTO users (discord_id, gw2_id) VALUES (?, ?)
        ON CONFLICT(discord_id) DO UPDATE SET gw2_id = excluded.gw2_id
        """
        await self.connection.execute(query, (discord_id, gw2_id))
        return await self.get_by_discord_id(discord_id)

    async def delete_by_discord_id(self, discord_id: int) -> bool:
        user = await self.get_by_discord_id(discord_id)
        if user is None:
            return False
        async with await self.connection.begin_transaction() as tx:
            # signup_roles and boss preferences cascade
            await tx.execute("DELETE FROM signups WHERE user_id = ?", (user.id,))
            await tx.execute("DELETE FROM users WHERE id = ?", (user.id,))
        return True


class SQLiteBossRepository(BossRepository):
    """SQLite implementation of boss repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def create_boss(self, repr: str, name: str, wing: int, position: int,
                          emoji: str, url: Optional[str] = None) -> TrainingBoss:
        query = """
        INSERT INTO training_bosses (repr, name, wing, position, emoji, url)
        VALUES (?, ?, ?, ?, ?, ?)
        """
        try:
            cursor = await self.connection.execute(query, (repr, name, wing, position, emoji, url))
        except aiosqlite.IntegrityError as e:
            raise RepositoryError(
                f"Boss {repr!r} or wing {wing} position {position} already exists",
                error_code="BOSS_EXISTS",
                context=create_error_context(operation="create_boss", repr=repr),
                cause=e
            )
        return TrainingBoss(id=cursor.lastrowid, repr=repr, name=name, wing=wing,
                            position=position, emoji=emoji, url=url)

    async def delete_boss(self, repr: str) -> None:
        cursor = await self.connection.execute(
            "DELETE FROM training_bosses WHERE repr = ?", (repr,)
        )
        if cursor.rowcount == 0:
            raise NotFoundError("Boss", repr)

    async def get_by_repr(self, repr: str) -> Optional[TrainingBoss]:
        row = await self.connection.fetch_one(
            "SELECT * FROM training_bosses WHERE repr = ?", (repr,)
        )
        return self.row_to_boss(row) if row else None

    async def list_bosses(self) -> List[TrainingBoss]:
        rows = await self.connection.fetch_all(
            "SELECT * FROM training_bosses ORDER BY wing, position"
        )
        return [self.row_to_boss(row) for row in rows]

    @staticmethod
    def row_to_boss(row: Dict[str, Any]) -> TrainingBoss:
        return TrainingBoss(
            id=row['id'],
            repr=row['repr'],
            name=row['name'],
            wing=row['wing'],
            position=row['position'],
            emoji=row['emoji'],
            url=row['url']
        )


class SQLiteConfigRepository(ConfigRepository):
    """SQLite implementation of configuration repository."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def get_value(self, name: str) -> Optional[str]:
        row = await self.connection.fetch_one("SELECT value FROM config WHERE name = ?", (name,))
        return row['value'] if row else None

    async def set_value(self, name: str, value: str) -> None:
        await self.connection.execute(
            "INSERT OR REPLACE INTO config (name, value) VALUES (?, ?)", (name, value)
        )


class SQLiteBoardRepository(BoardRepository):
    """SQLite implementation of board state persistence."""

    def __init__(self, connection: SQLiteConnection):
        self.connection = connection

    async def load_state(self) -> BoardState:
        state = BoardState()

        row = await self.connection.fetch_one(
            "SELECT value FROM config WHERE name = ?", (BOARD_CATEGORY_KEY,)
        )
        if row:
            state.category_id = int(row['value'])

        for channel in await self.connection.fetch_all("SELECT * FROM board_channels"):
            state.channels[date.fromisoformat(channel['day'])] = channel['channel_id']

        for message in await self.connection.fetch_all("SELECT * FROM board_messages"):
            state.messages[message['message_id']] = BoardMessage(
                message_id=message['message_id'],
                channel_id=message['channel_id'],
                training_id=message['training_id'],
                day=date.fromisoformat(message['day']),
                fingerprint=message['fingerprint']
            )

        return state

    async def save_category(self, category_id: int) -> None:
        await self.connection.execute(
            "INSERT OR REPLACE INTO config (name, value) VALUES (?, ?)",
            (BOARD_CATEGORY_KEY, str(category_id))
        )

    async def save_channel(self, day: date, channel_id: int) -> None:
        await self.connection.execute(
            "INSERT OR REPLACE INTO board_channels (day, channel_id) VALUES (?, ?)",
            (day.isoformat(), channel_id)
        )

    async def delete_channel(self, day: date) -> None:
        await self.connection.execute(
            "DELETE FROM board_channels WHERE day = ?", (day.isoformat(),)
        )

    async def save_message(self, message: BoardMessage) -> None:
        query = """
        INSERT OR REPLACE INTO board_messages (message_id, channel_id, training_id, day, fingerprint)
        VALUES (?, ?, ?, ?, ?)
        """
        await self.connection.execute(query, (
            message.message_id,
            message.channel_id,
            message.training_id,
            message.day.isoformat(),
            message.fingerprint
        ))

    async def delete_message(self, message_id: int) -> None:
        await self.connection.execute(
            "DELETE FROM board_messages WHERE message_id = ?", (message_id,)
        )

    async def clear(self) -> None:
        async with await self.connection.begin_transaction() as tx:
            await tx.execute("DELETE FROM board_messages")
            await tx.execute("DELETE FROM board_channels")
