"""
Users Lambda entry point (API Gateway REST API).

Deployed with handler ``lambda_function.lambda_handler``; use
``lambda_handler_v2`` behind an HTTP API. Set ``USERS_TABLE_NAME`` to read
users from DynamoDB instead of the built-in sample data.
"""

from lambda_kit.handlers.users_handler import lambda_handler, lambda_handler_v2

__all__ = ['lambda_handler', 'lambda_handler_v2']
