"""
User model module.
"""
import enum
import logging

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy import Boolean, Column, Enum, Index, String, UniqueConstraint, event, func, select
from sqlalchemy.orm import object_session, relationship, with_parent

from moderator.db.custom_types import ExtraJSON
from moderator.models.base import BaseModel

logger = logging.getLogger(__name__)

USER_GROUP_GENERAL = "general"
USER_GROUP_ADMIN = "admin"
USER_GROUP_SERVICE = "service"
USER_GROUP_YOUTUBE = "youtube"
USER_GROUP_MODERATOR = "moderator"

USER_GROUPS = [
    USER_GROUP_GENERAL,
    USER_GROUP_ADMIN,
    USER_GROUP_SERVICE,
    USER_GROUP_YOUTUBE,
    USER_GROUP_MODERATOR,
]

# Groups made of people, who must have an email address
HUMAN_GROUPS = (USER_GROUP_GENERAL, USER_GROUP_ADMIN)

# Endpoint types for moderator service users
ENDPOINT_TYPE_PROXY = "perspective-proxy"
ENDPOINT_TYPE_API = "perspective-api"

EMAIL_REQUIRED_MESSAGE = "Email address required for human users"

_email_adapter = TypeAdapter(EmailStr)


class UserGroup(str, enum.Enum):
    """User group enum."""
    GENERAL = USER_GROUP_GENERAL
    ADMIN = USER_GROUP_ADMIN
    SERVICE = USER_GROUP_SERVICE
    YOUTUBE = USER_GROUP_YOUTUBE
    MODERATOR = USER_GROUP_MODERATOR


class UserValidationError(ValueError):
    """Raised when a user record breaks a business rule."""


def require_email_for_humans(group, email) -> None:
    """
    Require an email address for non-service users.

    Args:
        group: The candidate record's group
        email: The candidate record's email

    Raises:
        UserValidationError: If a human user has a missing or malformed email
    """
    if group not in HUMAN_GROUPS:
        return

    try:
        _email_adapter.validate_python(email, strict=True)
    except ValidationError as e:
        logger.debug(f"Rejected email for {group} user: {e.errors()[0]['type']}")
        raise UserValidationError(EMAIL_REQUIRED_MESSAGE) from e


class User(BaseModel):
    """
    User model for people and service accounts taking part in moderation.
    """
    __tablename__ = "users"
    __table_args__ = (
        Index("users_email", "email"),
        Index("group_index", "group"),
        Index("isActive_index", "is_active"),
        UniqueConstraint("email", "group", name="users_email_group"),
    )

    group = Column(
        Enum(UserGroup, name="user_group", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=False)
    avatar_url = Column(String(255), nullable=True)

    # Scorer, integration or service payload depending on group
    extra = Column(ExtraJSON, nullable=True)

    def validate(self) -> None:
        """Run the model level validation rules."""
        require_email_for_humans(self.group, self.email)

    def get_assigned_articles(self):
        """Articles this user is assigned to moderate."""
        return list(self.assigned_articles)

    def count_assigned_articles(self) -> int:
        """Number of articles assigned to this user."""
        return self._count_related(User.assigned_articles)

    def get_assigned_categories(self):
        """Categories this user is assigned to moderate."""
        return list(self.assigned_categories)

    def count_assigned_categories(self) -> int:
        """Number of categories assigned to this user."""
        return self._count_related(User.assigned_categories)

    def _count_related(self, attribute) -> int:
        session = object_session(self)
        if session is None or self.id is None:
            return len(getattr(self, attribute.key))

        target = attribute.property.mapper.class_
        return session.scalar(
            select(func.count(target.id)).where(with_parent(self, attribute))
        )

    def __repr__(self):
        return f"<User {self.name} ({self.group})>"


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _validate_user(mapper, connection, target):
    target.validate()


def associate(category, article, user_category_assignment, moderator_assignment) -> None:
    """
    Declare the many-to-many relationships between users, categories and articles.

    Args:
        category: The Category model
        article: The Article model
        user_category_assignment: Join model between users and categories
        moderator_assignment: Join model between users and articles
    """
    User.categories = relationship(
        category,
        secondary=user_category_assignment.__table__,
        overlaps="assigned_categories",
    )

    User.assigned_articles = relationship(
        article,
        secondary=moderator_assignment.__table__,
    )

    # Same rows as categories; writes go through categories
    User.assigned_categories = relationship(
        category,
        secondary=user_category_assignment.__table__,
        viewonly=True,
    )


def is_user(instance) -> bool:
    """
    Check whether a value represents a user record.

    User instances are recognised by type. Anything else falls back to a
    structural check: a truthy group read through a get() method.
    """
    if isinstance(instance, User):
        return True
    if instance is None:
        return False

    getter = getattr(instance, "get", None)
    if not callable(getter):
        return False

    try:
        return bool(getter("group"))
    except (TypeError, KeyError, AttributeError):
        return False
