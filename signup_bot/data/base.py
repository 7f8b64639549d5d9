"""
Abstract repository interfaces for data access layer.

This module defines the repository pattern interfaces for all data operations.
Concrete implementations should inherit from these abstract base classes.
Lookups return None when a record does not exist; mutations of missing
records raise NotFoundError.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.training import Training, TrainingState, TrainingBoss
from ..models.user import User
from ..models.role import Role, Tier
from ..models.signup import Signup
from ..models.board import BoardState, BoardMessage


class TrainingRepository(ABC):
    """Abstract repository for trainings."""

    @abstractmethod
    async def list_active_trainings(self) -> List[Training]:
        """
        List all trainings shown on the board.

        Returns:
            Trainings in an active state, ordered for the board
        """
        pass

    @abstractmethod
    async def get_training(self, training_id: int) -> Optional[Training]:
        """
        Retrieve a training by its ID.

        Args:
            training_id: The training identifier

        Returns:
            The training if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_trainings(self, states: Optional[Iterable[TrainingState]] = None) -> List[Training]:
        """List trainings, optionally restricted to the given states."""
        pass

    @abstractmethod
    async def create_training(self, title: str, when: datetime,
                              tier_id: Optional[int] = None) -> Training:
        """
        Create a training in the CREATED state.

        Args:
            title: Display title
            when: Start time in UTC
            tier_id: Optional tier requirement

        Returns:
            The created training
        """
        pass

    @abstractmethod
    async def set_state(self, training_id: int, state: TrainingState) -> Training:
        """
        Change the lifecycle state of a training.

        Raises:
            NotFoundError: No training with that id
        """
        pass

    @abstractmethod
    async def deactivate(self, training_id: int) -> Training:
        """Move a training to FINISHED so it leaves the board."""
        pass

    @abstractmethod
    async def set_bosses(self, training_id: int, boss_ids: Sequence[int]) -> None:
        """Replace the boss pool of a training."""
        pass

    @abstractmethod
    async def bosses_for_training(self, training_id: int) -> List[TrainingBoss]:
        """Bosses of a training ordered by wing and position."""
        pass


class RoleRepository(ABC):
    """Abstract repository for sign-up roles."""

    @abstractmethod
    async def roles_for_training(self, training_id: int) -> List[Role]:
        """
        List the active roles users can pick for a training.

        Args:
            training_id: The training identifier

        Returns:
            Active roles ordered by priority, then title
        """
        pass

    @abstractmethod
    async def set_training_roles(self, training_id: int, role_ids: Sequence[int]) -> None:
        pass

    @abstractmethod
    async def create_role(self, title: str, repr: str, emoji: str, priority: int = 2) -> Role:
        """
        Create a new active role.

        Raises:
            RepositoryError: An active role with the same repr exists
        """
        pass

    @abstractmethod
    async def deactivate(self, repr: str) -> Role:
        """Deactivate the active role with the given repr."""
        pass

    @abstractmethod
    async def get_by_repr(self, repr: str) -> Optional[Role]:
        pass

    @abstractmethod
    async def list_active_roles(self) -> List[Role]:
        pass

    @abstractmethod
    async def get_roles(self, role_ids: Sequence[int]) -> List[Role]:
        pass


class TierRepository(ABC):
    """Abstract repository for tiers and their Discord role mappings."""

    @abstractmethod
    async def tier_for_training(self, training_id: int) -> Optional[Tier]:
        """
        Get the tier required to join a training.

        Returns:
            The tier with its Discord roles, None if the training has no tier
        """
        pass

    @abstractmethod
    async def create_tier(self, name: str) -> Tier:
        pass

    @abstractmethod
    async def delete_tier(self, name: str) -> None:
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Tier]:
        pass

    @abstractmethod
    async def list_tiers(self) -> List[Tier]:
        pass

    @abstractmethod
    async def add_discord_role(self, tier_id: int, discord_role_id: int) -> None:
        pass

    @abstractmethod
    async def remove_discord_role(self, tier_id: int, discord_role_id: int) -> None:
        pass


class SignupRepository(ABC):
    """Abstract repository for sign-ups."""

    @abstractmethod
    async def upsert_signup(self, user_id: int, training_id: int,
                            role_ids: Sequence[int],
                            boss_ids: Sequence[int] = ()) -> Signup:
        """
        Create a sign-up or replace the roles and boss preferences of an existing one.

        Args:
            user_id: Internal user id
            training_id: The training identifier
            role_ids: Selected roles
            boss_ids: Preferred bosses

        Returns:
            The stored sign-up
        """
        pass

    @abstractmethod
    async def get_signup(self, user_id: int, training_id: int) -> Optional[Signup]:
        pass

    @abstractmethod
    async def delete_signup(self, user_id: int, training_id: int) -> None:
        pass

    @abstractmethod
    async def set_comment(self, user_id: int, training_id: int, comment: Optional[str]) -> Signup:
        pass

    @abstractmethod
    async def count_for_training(self, training_id: int) -> int:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: int) -> List[Signup]:
        pass

    @abstractmethod
    async def list_for_training(self, training_id: int) -> List[Signup]:
        pass


class UserRepository(ABC):
    """Abstract repository for registered users."""

    @abstractmethod
    async def get_by_discord_id(self, discord_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_users(self, user_ids: Sequence[int]) -> List[User]:
        """Users by internal id; unknown ids are skipped."""
        pass

    @abstractmethod
    async def upsert_user(self, discord_id: int, gw2_id: str) -> User:
        """Register a user or update their account name."""
        pass

    @abstractmethod
    async def delete_by_discord_id(self, discord_id: int) -> bool:
        """
        Delete a user and all of their sign-ups.

        Returns:
            True if a user was deleted
        """
        pass


class BossRepository(ABC):
    """Abstract repository for training bosses."""

    @abstractmethod
    async def create_boss(self, repr: str, name: str, wing: int, position: int,
                          emoji: str, url: Optional[str] = None) -> TrainingBoss:
        pass

    @abstractmethod
    async def delete_boss(self, repr: str) -> None:
        pass

    @abstractmethod
    async def get_by_repr(self, repr: str) -> Optional[TrainingBoss]:
        pass

    @abstractmethod
    async def list_bosses(self) -> List[TrainingBoss]:
        pass


class ConfigRepository(ABC):
    """Key/value store for runtime settings such as the log channel."""

    @abstractmethod
    async def get_value(self, name: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_value(self, name: str, value: str) -> None:
        pass


class BoardRepository(ABC):
    """Persists the board state so it survives restarts."""

    @abstractmethod
    async def load_state(self) -> BoardState:
        """
        Load the persisted board state.

        Returns:
            The board state, empty if nothing was saved yet
        """
        pass

    @abstractmethod
    async def save_category(self, category_id: int) -> None:
        pass

    @abstractmethod
    async def save_channel(self, day: date, channel_id: int) -> None:
        pass

    @abstractmethod
    async def delete_channel(self, day: date) -> None:
        pass

    @abstractmethod
    async def save_message(self, message: BoardMessage) -> None:
        pass

    @abstractmethod
    async def delete_message(self, message_id: int) -> None:
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Forget all channels and messages, keeping the category."""
        pass


class DatabaseConnection(ABC):
    """Abstract database connection interface."""

    @abstractmethod
    async def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    async def execute(self, query: str, params: Optional[tuple] = None) -> Any:
        """
        Execute a database query.

        Args:
            query: SQL query to execute
            params: Query parameters

        Returns:
            Query result
        """
        pass

    @abstractmethod
    async def fetch_one(self, query: str, params: Optional[tuple] = None) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def fetch_all(self, query: str, params: Optional[tuple] = None) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def begin_transaction(self) -> 'Transaction':
        """Begin a new database transaction."""
        pass


class Transaction(ABC):
    """Abstract transaction interface."""

    @abstractmethod
    async def commit(self) -> None:
        """Commit the transaction."""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the transaction."""
        pass

    @abstractmethod
    async def __aenter__(self) -> 'Transaction':
        """Enter transaction context."""
        pass

    @abstractmethod
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit transaction context."""
        pass
