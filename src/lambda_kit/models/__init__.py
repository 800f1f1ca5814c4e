"""
Data models for requests, responses and the user domain.
"""

from lambda_kit.models.output import ErrorResponse, HelloOutput, SuccessResponse, UsersOutput
from lambda_kit.models.request import HttpRequest, RequestContext
from lambda_kit.models.user import User

__all__ = [
    'ErrorResponse',
    'HelloOutput',
    'HttpRequest',
    'RequestContext',
    'SuccessResponse',
    'User',
    'UsersOutput',
]
