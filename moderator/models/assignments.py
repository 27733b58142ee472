"""
Join models linking users to the categories and articles they moderate.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey

from moderator.db.session import Base
from moderator.models.base import IdType


class UserCategoryAssignment(Base):
    """
    A user assigned to moderate a category.
    """
    __tablename__ = "user_category_assignments"

    user_id = Column(IdType, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    category_id = Column(IdType, ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class ModeratorAssignment(Base):
    """
    A user assigned to moderate a single article.
    """
    __tablename__ = "moderator_assignments"

    user_id = Column(IdType, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    article_id = Column(IdType, ForeignKey("articles.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
