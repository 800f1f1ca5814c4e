"""
Data access layer for the users function.

``get_user_repository`` selects the DynamoDB store when a table name is
configured and the in-memory sample store otherwise.
"""

from typing import List, Optional, Protocol, runtime_checkable

from lambda_kit.models.user import User
from lambda_kit.observability.logger import ServiceLogger


@runtime_checkable
class UserRepository(Protocol):
    """Protocol defining the user store interface."""

    def list_users(self) -> List[User]:
        """Return every user."""
        ...

    def get_user(self, user_id: str) -> Optional[User]:
        """Return the user with ``user_id`` or ``None``."""
        ...


def get_user_repository(table_name: str = '', logger: Optional[ServiceLogger] = None) -> UserRepository:
    """
    Factory function to get the appropriate user repository.

    Args:
        table_name: DynamoDB table name; empty selects the in-memory store
        logger: Logger passed to the DynamoDB store

    Returns:
        User repository instance
    """
    if table_name:
        # Import here so boto3 is only loaded when DynamoDB is used
        from lambda_kit.dal.dynamodb_handler import DynamoDBUserRepository

        return DynamoDBUserRepository(table_name, logger=logger)

    from lambda_kit.dal.memory_handler import InMemoryUserRepository

    return InMemoryUserRepository()


__all__ = [
    'UserRepository',
    'get_user_repository',
]
