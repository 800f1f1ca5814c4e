"""
In-memory user store seeded with sample users.
"""

from typing import Dict, Iterable, List, Optional

from lambda_kit.models.user import User

SAMPLE_USERS = (
    User(id='1', name='John Doe', email='john@example.com', created_at='2024-01-15T10:30:00Z'),
    User(id='2', name='Jane Smith', email='jane@example.com', created_at='2024-01-16T14:45:00Z'),
    User(id='3', name='Alice Johnson', email='alice@example.com', created_at='2024-01-17T09:15:00Z'),
)


class InMemoryUserRepository:
    """Read-only user store kept in process memory."""

    def __init__(self, users: Optional[Iterable[User]] = None) -> None:
        self._users: Dict[str, User] = {}
        for user in SAMPLE_USERS if users is None else users:
            self._users[user.id] = user

    def list_users(self) -> List[User]:
        return list(self._users.values())

    def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)
