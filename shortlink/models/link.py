"""Pydantic request models for the shortlink service."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while accepting snake_case too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LinkCreate(CamelModel):
    """Model for creating a short link.

    URL and code formats are checked by the registry so that bad values
    surface as InvalidInput rather than schema errors.
    """

    original_url: str = Field(..., description="The original long URL to shorten")
    short_code: Optional[str] = Field(
        None, description="Custom short code, 6-8 alphanumeric characters"
    )
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    expires_at: Optional[datetime] = Field(
        None, description="Expiration timestamp"
    )


class ErrorResponse(BaseModel):
    """Model for error responses."""

    success: bool = False
    message: str
    stack: Optional[str] = None
