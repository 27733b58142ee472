"""
Custom database types.
"""
from pydantic import BaseModel
from sqlalchemy import JSON, TypeDecorator


class ExtraJSON(TypeDecorator):
    """
    JSON column that accepts pydantic models as well as plain values.

    Models are stored in their aliased (camelCase) form; values are
    returned exactly as stored.
    """
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert pydantic models to plain JSON when saving to database."""
        if value is None:
            return value
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json", by_alias=True, exclude_none=True)
        return value

    def process_result_value(self, value, dialect):
        """Return stored JSON untouched."""
        return value
