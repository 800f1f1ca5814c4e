"""
DynamoDB implementation of the user store.

Items are keyed by ``id`` and hold ``name``, ``email`` and ``created_at``.
Client failures are logged and re-raised as retryable
``ExternalServiceError`` so the pipeline renders them with the upstream
status code.
"""

from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from pydantic import ValidationError as PydanticValidationError

from lambda_kit.handlers.errors import ExternalServiceError, InternalError
from lambda_kit.models.user import User
from lambda_kit.observability.logger import ServiceLogger


class DynamoDBUserRepository:
    """User store backed by a DynamoDB table."""

    def __init__(self, table_name: str, logger: Optional[ServiceLogger] = None, resource: Any = None) -> None:
        """
        Initialize the repository.

        Args:
            table_name: Name of the DynamoDB table
            logger: Logger for client failures
            resource: boto3 DynamoDB resource, created when omitted
        """
        self.table_name = table_name
        self.logger = logger
        self.dynamodb = resource if resource is not None else boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def list_users(self) -> List[User]:
        """
        Scan the table for every user.

        Raises:
            ExternalServiceError: If DynamoDB operation fails
        """
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        try:
            while True:
                response = self.table.scan(**scan_kwargs)
                items.extend(response.get('Items', []))
                last_key = response.get('LastEvaluatedKey')
                if not last_key:
                    break
                scan_kwargs['ExclusiveStartKey'] = last_key
        except ClientError as exc:
            raise self._client_error('scan', exc) from exc

        users = [self._item_to_user(item) for item in items]
        users.sort(key=lambda user: user.id)
        return users

    def get_user(self, user_id: str) -> Optional[User]:
        """
        Retrieve a user by ID.

        Returns:
            User if found, None otherwise

        Raises:
            ExternalServiceError: If DynamoDB operation fails
        """
        try:
            response = self.table.get_item(Key={'id': user_id})
        except ClientError as exc:
            raise self._client_error('get_item', exc) from exc

        item = response.get('Item')
        if not item:
            return None
        return self._item_to_user(item)

    def put_user(self, user: User) -> None:
        try:
            self.table.put_item(Item=user.model_dump())
        except ClientError as exc:
            raise self._client_error('put_item', exc) from exc

    def _client_error(self, operation: str, exc: ClientError) -> ExternalServiceError:
        error_code = exc.response.get('Error', {}).get('Code', 'Unknown')
        status_code = exc.response.get('ResponseMetadata', {}).get('HTTPStatusCode', 0)
        if self.logger is not None:
            self.logger.with_error(exc).error(f'DynamoDB error during {operation}: {error_code}', extra={
                'table_name': self.table_name,
                'operation': operation,
            })
        return ExternalServiceError(
            'dynamodb',
            f'{operation} on {self.table_name} failed: {error_code}',
            status_code=status_code,
            retryable=True,
            cause=exc,
        )

    def _item_to_user(self, item: Dict[str, Any]) -> User:
        try:
            return User.model_validate(item)
        except PydanticValidationError as exc:
            raise InternalError('stored user item is malformed', operation='decode_user', cause=exc) from exc
