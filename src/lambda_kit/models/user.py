"""
User domain model served by the users function.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class User(BaseModel):
    """User record as stored and as returned by the API."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Annotated[str, Field(
        min_length=1,
        description='Unique identifier for the user',
        examples=['1']
    )]

    name: Annotated[str, Field(
        description='Display name',
        examples=['John Doe']
    )]

    email: Annotated[str, Field(
        description='Email address',
        examples=['john@example.com']
    )]

    created_at: Annotated[str, Field(
        description='RFC 3339 creation timestamp',
        examples=['2024-01-15T10:30:00Z']
    )]
