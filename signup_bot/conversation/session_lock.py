"""
Registry of users that currently have an exclusive private session.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Set

from ..exceptions import ConversationLocked, create_error_context

logger = logging.getLogger(__name__)


class SessionLock:
    """Set of user ids guarded by a single mutex.

    Only ``try_acquire`` and ``release`` mutate the set; ``hold`` scopes an
    acquisition so every exit path releases it.
    """

    def __init__(self):
        self._users: Set[int] = set()
        self._mutex = threading.Lock()

    def try_acquire(self, user_id: int) -> bool:
        """Insert ``user_id`` if absent. Returns False if it was already held."""
        with self._mutex:
            if user_id in self._users:
                return False
            self._users.add(user_id)
        logger.debug(f"Session lock acquired for user {user_id}")
        return True

    def release(self, user_id: int) -> None:
        """Remove ``user_id``. Releasing a free user is a no-op."""
        with self._mutex:
            self._users.discard(user_id)
        logger.debug(f"Session lock released for user {user_id}")

    @contextmanager
    def hold(self, user_id: int) -> Iterator[None]:
        """Hold the lock for the duration of the block.

        Raises:
            ConversationLocked: The user already holds the lock
        """
        if not self.try_acquire(user_id):
            raise ConversationLocked(
                user_id, context=create_error_context(user_id=user_id, operation="session_lock")
            )
        try:
            yield
        finally:
            self.release(user_id)

    def __contains__(self, user_id: int) -> bool:
        with self._mutex:
            return user_id in self._users

    def __len__(self) -> int:
        with self._mutex:
            return len(self._users)
