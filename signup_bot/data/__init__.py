"""
Data access layer for Signup Bot.

Public Interface:
    - Repository interfaces and their SQLite implementations
    - Database connection management
    - Migration utilities
    - Factory for repository creation

Example Usage:
    ```python
    from signup_bot.data import RepositoryFactory, run_migrations

    await run_migrations("data/signup_bot.db")
    factory = RepositoryFactory(db_path="data/signup_bot.db")

    repos = await factory.create_repositories()
    trainings = await repos.trainings.list_active_trainings()
    ```
"""

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

from .sqlite import (
    SQLiteConnection,
    SQLiteTransaction,
    SQLiteTrainingRepository,
    SQLiteRoleRepository,
    SQLiteTierRepository,
    SQLiteSignupRepository,
    SQLiteUserRepository,
    SQLiteBossRepository,
    SQLiteConfigRepository,
    SQLiteBoardRepository
)

from .repositories import (
    Repositories,
    RepositoryFactory
)

from .migrations import MigrationRunner, run_migrations

__all__ = [
    'TrainingRepository',
    'RoleRepository',
    'TierRepository',
    'SignupRepository',
    'UserRepository',
    'BossRepository',
    'ConfigRepository',
    'BoardRepository',
    'DatabaseConnection',
    'Transaction',
    'SQLiteConnection',
    'SQLiteTransaction',
    'SQLiteTrainingRepository',
    'SQLiteRoleRepository',
    'SQLiteTierRepository',
    'SQLiteSignupRepository',
    'SQLiteUserRepository',
    'SQLiteBossRepository',
    'SQLiteConfigRepository',
    'SQLiteBoardRepository',
    'Repositories',
    'RepositoryFactory',
    'MigrationRunner',
    'run_migrations',
]
