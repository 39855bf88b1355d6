"""Shared fixtures: in-memory SQLite databases and preconfigured managers."""

import random
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.database import create_db_engine, init_db
from schemas.token import TokenSettings
from utils.catalog_manager import CatalogManager
from utils.token_manager import TokenManager
from utils.user_manager import UserManager

# bcrypt's minimum cost keeps the suite fast
TEST_BCRYPT_ROUNDS = 4


def _memory_sessionmaker() -> sessionmaker:
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory() -> sessionmaker:
    """A sessionmaker bound to a fresh in-memory database."""
    return _memory_sessionmaker()


@pytest.fixture
def fresh_db():
    """Callable returning a session on a brand-new database.

    Property tests call it once per example so examples do not share state.
    """
    sessions = []

    def _make():
        session = _memory_sessionmaker()()
        sessions.append(session)
        return session

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user_manager(db) -> UserManager:
    return UserManager(db, bcrypt_rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def catalog(db) -> CatalogManager:
    return CatalogManager(db, rng=random.Random(1234))


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        signing_key=b"test-signing-key-that-is-long-enough-for-hs256",
        issuer="GameReviewSystem",
        audience="GameReviewSystemUsers",
        lifetime=timedelta(hours=24),
    )


@pytest.fixture
def token_manager(token_settings) -> TokenManager:
    return TokenManager(token_settings)


@pytest.fixture
def alice_id(user_manager) -> str:
    return user_manager.register("alice", "correct horse", "alice@example.com")
