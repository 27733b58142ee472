"""
Base schema module.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema with common fields."""
    model_config = ConfigDict(from_attributes=True)

    id: int = Field(...)
    created_at: datetime
    updated_at: datetime
