"""
Base model for all models.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer
from sqlalchemy.dialects import mysql

from moderator.db.session import Base

# Unsigned on MySQL, plain INTEGER elsewhere so SQLite keeps its rowid alias
IdType = Integer().with_variant(mysql.INTEGER(unsigned=True), "mysql")


class BaseModel(Base):
    """
    Base class for all models.
    Provides common fields and functionality.
    """
    __abstract__ = True

    id = Column(IdType, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def get(self, key, default=None):
        """Read a mapped attribute by name."""
        return getattr(self, key, default)
