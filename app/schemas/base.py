"""
Base Pydantic schemas.

The mobile and web clients speak camelCase JSON, so every API schema
serializes with camelCase aliases while Python code uses snake_case.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API schemas: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RecordRead(CamelModel):
    """Common fields of every stored record."""
    
    id: UUID
    created_at: datetime
    updated_at: datetime
