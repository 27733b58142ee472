"""
Models package initialization.

Importing this package registers every model and wires the user associations.
"""

from moderator.models.base import BaseModel
from moderator.models.category import Category
from moderator.models.article import Article
from moderator.models.assignments import UserCategoryAssignment, ModeratorAssignment
from moderator.models.user import (
    User,
    UserGroup,
    UserValidationError,
    associate,
    is_user,
    require_email_for_humans,
)
from moderator.db.session import SessionLocal
from moderator.db.tracking import track_changes
from moderator.models.last_update import update_happened

associate(
    category=Category,
    article=Article,
    user_category_assignment=UserCategoryAssignment,
    moderator_assignment=ModeratorAssignment,
)
track_changes(SessionLocal, User, update_happened)

__all__ = [
    "BaseModel",
    "User",
    "UserGroup",
    "UserValidationError",
    "Category",
    "Article",
    "UserCategoryAssignment",
    "ModeratorAssignment",
    "is_user",
    "require_email_for_humans",
]
