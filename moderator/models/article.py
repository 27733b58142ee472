"""
Article model module.
"""
from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from moderator.models.base import BaseModel, IdType


class Article(BaseModel):
    """
    Content item whose comments are moderated.
    """
    __tablename__ = "articles"

    source_id = Column(String(255), index=True)
    category_id = Column(IdType, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    text = Column(Text)

    category = relationship("Category")

    def __repr__(self):
        return f"<Article {self.title}>"
