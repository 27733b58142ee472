"""
Tests for the user model.
"""
import logging

import pytest
from sqlalchemy import UniqueConstraint, func, select
from sqlalchemy.exc import IntegrityError

from moderator.models import User, UserGroup, UserValidationError, is_user, require_email_for_humans
from moderator.models.user import EMAIL_REQUIRED_MESSAGE, USER_GROUPS


def count_users(db_session):
    return db_session.scalar(select(func.count(User.id)))


@pytest.mark.parametrize("group", ["general", "admin"])
@pytest.mark.parametrize("email", [None, "", "not-an-email", "bob@", b"bob@example.com", 42])
def test_human_users_need_a_valid_email(group, email):
    """Human groups reject missing, malformed or non-string emails."""
    with pytest.raises(UserValidationError, match=EMAIL_REQUIRED_MESSAGE):
        require_email_for_humans(group, email)


@pytest.mark.parametrize("group", ["service", "youtube", "moderator"])
def test_other_groups_need_no_email(group):
    """Non-human groups are exempt from the email rule."""
    require_email_for_humans(group, None)
    require_email_for_humans(group, "not-an-email")


def test_group_enum_members_are_checked_too():
    """Enum members behave like their string values."""
    require_email_for_humans(UserGroup.ADMIN, "admin@example.com")
    with pytest.raises(UserValidationError):
        require_email_for_humans(UserGroup.ADMIN, None)


def test_rejected_email_is_not_logged(caplog):
    """The rejection log names the group and the error kind, never the address."""
    with caplog.at_level(logging.DEBUG, logger="moderator.models.user"):
        with pytest.raises(UserValidationError):
            require_email_for_humans("general", "jane.doe@@example.com")

    assert "general" in caplog.text
    assert "jane.doe" not in caplog.text


def test_group_list_matches_enum():
    """The group list and the enum describe the same groups."""
    assert USER_GROUPS == [group.value for group in UserGroup]


def test_create_human_user(db_session):
    """A general user with a valid email is stored with defaults applied."""
    user = User(group="general", email="a@example.com", name="Alice", is_active=True)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    assert user.id is not None
    assert user.group == UserGroup.GENERAL
    assert user.is_active is True
    assert user.avatar_url is None
    assert user.extra is None
    assert user.created_at is not None


def test_human_user_without_email_is_not_persisted(db_session):
    """A general user with no email fails and leaves nothing behind."""
    db_session.add(User(group="general", email=None, name="Bob", is_active=True))

    with pytest.raises(UserValidationError):
        db_session.commit()

    db_session.rollback()
    assert count_users(db_session) == 0


def test_service_user_without_email(db_session):
    """A service user needs no email."""
    user = User(group="service", email=None, name="svc-bot", is_active=True)
    db_session.add(user)
    db_session.commit()

    assert count_users(db_session) == 1


def test_is_active_defaults_to_false(db_session):
    """New users are inactive unless said otherwise."""
    user = User(group="moderator", name="scorer")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    assert user.is_active is False


def test_update_is_validated(db_session, test_user):
    """Clearing a human user's email is rejected on update."""
    test_user.email = None

    with pytest.raises(UserValidationError):
        db_session.commit()

    db_session.rollback()
    db_session.refresh(test_user)
    assert test_user.email == "test@example.com"


def test_moving_service_user_to_human_group_requires_email(db_session):
    """Changing the group re-runs the email rule."""
    user = User(group="service", name="svc-bot")
    db_session.add(user)
    db_session.commit()

    user.group = "admin"
    with pytest.raises(UserValidationError):
        db_session.commit()
    db_session.rollback()


def test_email_is_unique_within_group(db_session, test_user):
    """The same email can not be used twice in one group."""
    db_session.add(User(group="general", email=test_user.email, name="Copy"))

    with pytest.raises(IntegrityError):
        db_session.commit()

    db_session.rollback()
    assert count_users(db_session) == 1


def test_email_can_repeat_across_groups(db_session, test_user):
    """The same email may exist in different groups."""
    db_session.add(User(group="admin", email=test_user.email, name="Test Admin"))
    db_session.commit()

    assert count_users(db_session) == 2


def test_many_service_users_without_email(db_session):
    """Missing emails do not collide with each other."""
    db_session.add_all([
        User(group="service", name="svc-1"),
        User(group="service", name="svc-2"),
    ])
    db_session.commit()

    assert count_users(db_session) == 2


def test_table_indexes():
    """The users table carries the expected indexes and unique constraint."""
    table = User.__table__
    indexes = {index.name: [column.name for column in index.columns] for index in table.indexes}

    assert indexes["users_email"] == ["email"]
    assert indexes["group_index"] == ["group"]
    assert indexes["isActive_index"] == ["is_active"]

    unique = [
        [column.name for column in constraint.columns]
        for constraint in table.constraints
        if isinstance(constraint, UniqueConstraint)
    ]
    assert ["email", "group"] in unique


def test_column_nullability():
    """Only the optional attributes accept NULL."""
    columns = User.__table__.columns

    assert columns["group"].nullable is False
    assert columns["name"].nullable is False
    assert columns["is_active"].nullable is False
    assert columns["email"].nullable is True
    assert columns["avatar_url"].nullable is True
    assert columns["extra"].nullable is True


class TestIsUser:
    """Tests for the is_user predicate."""

    def test_user_instance(self):
        assert is_user(User(group="admin", name="Root", email="root@example.com"))

    def test_value_with_group_and_getter(self):
        assert is_user({"group": "admin", "get": lambda key: None})

    def test_object_with_getter(self):
        class Record:
            def get(self, key):
                return {"group": "moderator"}.get(key)

        assert is_user(Record())

    @pytest.mark.parametrize("value", [None, {}, {"group": ""}, object(), "admin", 3])
    def test_rejects_other_values(self, value):
        assert not is_user(value)

    def test_rejects_value_without_getter(self):
        class Record:
            group = "admin"

        assert not is_user(Record())
