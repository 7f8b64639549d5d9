"""
Repository bundle and the factory that builds it from one connection pool.
"""

from dataclasses import dataclass
from typing import Optional

from ..base import (
    TrainingRepository, RoleRepository, TierRepository, SignupRepository,
    UserRepository, BossRepository, ConfigRepository, BoardRepository
)
from ..sqlite import (
    SQLiteConnection,
    SQLiteTrainingRepository,
    SQLiteRoleRepository,
    SQLiteTierRepository,
    SQLiteSignupRepository,
    SQLiteUserRepository,
    SQLiteBossRepository,
    SQLiteConfigRepository,
    SQLiteBoardRepository
)

DEFAULT_DB_PATH = "data/signup_bot.db"


@dataclass
class Repositories:
    """Every repository of one database, handed to flows, commands and the board."""
    trainings: TrainingRepository
    roles: RoleRepository
    tiers: TierRepository
    signups: SignupRepository
    users: UserRepository
    bosses: BossRepository
    config: ConfigRepository
    board: BoardRepository


class RepositoryFactory:
    """Opens the connection pool lazily and builds the repository bundle on it.

    Args:
        backend: Storage backend; only ``"sqlite"`` exists
        db_path: SQLite database file
        pool_size: Number of pooled connections
    """

    def __init__(self, backend: str = "sqlite", db_path: str = DEFAULT_DB_PATH, pool_size: int = 5):
        if backend != "sqlite":
            raise ValueError(f"Unsupported backend: {backend}")
        self.backend = backend
        self.db_path = db_path
        self.pool_size = pool_size
        self._pool: Optional[SQLiteConnection] = None

    async def _open_pool(self) -> SQLiteConnection:
        if self._pool is None:
            pool = SQLiteConnection(self.db_path, self.pool_size)
            await pool.connect()
            self._pool = pool
        return self._pool

    async def create_repositories(self) -> Repositories:
        pool = await self._open_pool()
        return Repositories(
            trainings=SQLiteTrainingRepository(pool),
            roles=SQLiteRoleRepository(pool),
            tiers=SQLiteTierRepository(pool),
            signups=SQLiteSignupRepository(pool),
            users=SQLiteUserRepository(pool),
            bosses=SQLiteBossRepository(pool),
            config=SQLiteConfigRepository(pool),
            board=SQLiteBoardRepository(pool)
        )

    async def close(self) -> None:
        """Close every pooled connection; repositories built so far become unusable."""
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None
