"""
Pytest configuration file.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from moderator.db.session import Base
from moderator.db.tracking import TrackedSession, track_changes
from moderator.models import Article, Category, User
from moderator.models.last_update import notifier, update_happened


# Test database URL
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def engine():
    """Create a test database engine with all tables."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory reporting user changes to the update notifier."""
    factory = sessionmaker(class_=TrackedSession, autocommit=False, autoflush=False, bind=engine)
    track_changes(factory, User, update_happened)
    return factory


@pytest.fixture
def db_session(session_factory):
    """
    Create a new database session for a test.

    The fixture will handle closing of the session.
    """
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def updates():
    """
    Record every update notification sent during a test.
    """
    calls = []

    def record():
        calls.append(True)

    notifier.subscribe(record)
    yield calls
    notifier.unsubscribe(record)


@pytest.fixture
def test_user(db_session):
    """
    Create a test user in the database.
    """
    user = User(
        group="general",
        email="test@example.com",
        name="Test User",
        is_active=True,
    )

    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)

    return user


@pytest.fixture
def category(db_session):
    """Create a test category."""
    category = Category(label="News")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture
def article(db_session, category):
    """Create a test article in the test category."""
    article = Article(title="Local election results", source_id="a-1", category_id=category.id)
    db_session.add(article)
    db_session.commit()
    return article
