"""
Category model module.
"""
from sqlalchemy import Boolean, Column, String

from moderator.models.base import BaseModel


class Category(BaseModel):
    """
    Category that articles are filed under and moderators are assigned to.
    """
    __tablename__ = "categories"

    label = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self):
        return f"<Category {self.label}>"
