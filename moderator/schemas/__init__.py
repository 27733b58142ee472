"""
Schemas package initialization.
"""
from moderator.schemas.base import BaseSchema
from moderator.schemas.user import (
    User,
    UserCreate,
    UserUpdate,
    ScorerExtra,
    IntegrationExtra,
    ServiceExtra,
    parse_extra,
)

__all__ = [
    "BaseSchema",
    "User",
    "UserCreate",
    "UserUpdate",
    "ScorerExtra",
    "IntegrationExtra",
    "ServiceExtra",
    "parse_extra",
]
