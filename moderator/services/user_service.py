"""
User service module.

Provides the create, update and delete entry points for users, including
their bulk variants. Every committed call notifies the update notifier once.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from moderator.models.assignments import ModeratorAssignment, UserCategoryAssignment
from moderator.models.user import User, UserGroup
from moderator.schemas.user import UserCreate, UserUpdate, parse_extra

logger = logging.getLogger(__name__)


class UserNotFoundError(LookupError):
    """Raised when a user does not exist."""


class UserService:
    """
    Service for user-related operations.
    """

    def __init__(self, db: Session):
        """
        Initialize the user service.

        Args:
            db: Database session
        """
        self.db = db

    def get_user(self, user_id: int) -> User:
        """
        Get a user by ID.

        Args:
            user_id: The user ID

        Returns:
            User: The user

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = self.db.get(User, user_id)
        if not user:
            logger.warning(f"User not found: {user_id}")
            raise UserNotFoundError(f"User not found: {user_id}")
        return user

    def get_user_by_email(self, email: str, group: Union[UserGroup, str]) -> Optional[User]:
        """
        Get a user by email address within a group.

        Args:
            email: The email address
            group: The user group

        Returns:
            Optional[User]: The user if found, None otherwise
        """
        return self.db.scalar(
            select(User).where(User.email == email, User.group == UserGroup(group))
        )

    def list_users(
        self,
        group: Optional[Union[UserGroup, str]] = None,
        is_active: Optional[bool] = None,
    ) -> List[User]:
        """
        List users, optionally filtered by group and active flag.
        """
        query = select(User).order_by(User.id)
        if group is not None:
            query = query.where(User.group == UserGroup(group))
        if is_active is not None:
            query = query.where(User.is_active == is_active)
        return list(self.db.scalars(query))

    def create_user(self, user_in: UserCreate) -> User:
        """
        Create a new user.

        Args:
            user_in: The user data

        Returns:
            User: The created user

        Raises:
            UserValidationError: If a human user has no valid email
            IntegrityError: If the email is already taken within the group
        """
        user = self._build(user_in)

        try:
            self.db.add(user)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating user {user_in.name}: {str(e)}")
            raise

        self.db.refresh(user)
        logger.info(f"Created {user.group.value} user {user.id}")
        return user

    def bulk_create_users(self, users_in: Iterable[UserCreate]) -> List[User]:
        """
        Create several users in a single transaction.

        Either every user is created or none is.

        Args:
            users_in: The users' data

        Returns:
            List[User]: The created users
        """
        users = [self._build(user_in) for user_in in users_in]

        try:
            self.db.add_all(users)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating {len(users)} users: {str(e)}")
            raise

        logger.info(f"Created {len(users)} users")
        return users

    def update_user(self, user_id: int, user_in: Union[UserUpdate, Dict[str, Any]]) -> User:
        """
        Update a user.

        Args:
            user_id: The user ID
            user_in: The fields to change

        Returns:
            User: The updated user

        Raises:
            UserNotFoundError: If the user does not exist
            UserValidationError: If the change leaves a human user without a valid email
        """
        user = self.get_user(user_id)
        changes = self._changes(user_in)

        try:
            self._apply(user, changes)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating user {user_id}: {str(e)}")
            raise

        self.db.refresh(user)
        logger.info(f"Updated user {user_id}")
        return user

    def bulk_update_users(
        self,
        user_in: Union[UserUpdate, Dict[str, Any]],
        group: Optional[Union[UserGroup, str]] = None,
        user_ids: Optional[Iterable[int]] = None,
    ) -> int:
        """
        Apply the same change to every matching user in one transaction.

        Users are changed through the ORM so each one is validated.

        Args:
            user_in: The fields to change
            group: Only change users in this group
            user_ids: Only change these users

        Returns:
            int: Number of users changed
        """
        changes = self._changes(user_in)
        query = select(User)
        if group is not None:
            query = query.where(User.group == UserGroup(group))
        if user_ids is not None:
            query = query.where(User.id.in_(list(user_ids)))

        try:
            users = list(self.db.scalars(query))
            for user in users:
                self._apply(user, changes)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error bulk updating users: {str(e)}")
            raise

        logger.info(f"Updated {len(users)} users")
        return len(users)

    def delete_user(self, user_id: int) -> None:
        """
        Delete a user and their assignments.

        Args:
            user_id: The user ID

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = self.get_user(user_id)

        try:
            self.db.delete(user)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting user {user_id}: {str(e)}")
            raise

        logger.info(f"Deleted user {user_id}")

    def bulk_delete_users(self, user_ids: Iterable[int]) -> int:
        """
        Delete several users and their assignments with bulk statements.

        Args:
            user_ids: The user IDs

        Returns:
            int: Number of users deleted
        """
        ids = list(user_ids)

        try:
            self.db.execute(delete(UserCategoryAssignment).where(UserCategoryAssignment.user_id.in_(ids)))
            self.db.execute(delete(ModeratorAssignment).where(ModeratorAssignment.user_id.in_(ids)))
            result = self.db.execute(delete(User).where(User.id.in_(ids)))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error bulk deleting users: {str(e)}")
            raise

        logger.info(f"Deleted {result.rowcount} users")
        return result.rowcount

    @staticmethod
    def _build(user_in: UserCreate) -> User:
        # Keep extra as a schema instance so it is stored with its aliases
        data = user_in.model_dump(exclude={"extra"})
        return User(**data, extra=user_in.extra)

    @staticmethod
    def _changes(user_in: Union[UserUpdate, Dict[str, Any]]) -> Dict[str, Any]:
        if isinstance(user_in, UserUpdate):
            return user_in.model_dump(exclude_unset=True)
        return UserUpdate(**user_in).model_dump(exclude_unset=True)

    @staticmethod
    def _apply(user: User, changes: Dict[str, Any]) -> None:
        group = changes.get("group", user.group)
        if "extra" in changes:
            changes = {**changes, "extra": parse_extra(group, changes["extra"])}
        for key, value in changes.items():
            setattr(user, key, value)
