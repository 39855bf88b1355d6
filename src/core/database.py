"""Database connection and session management.

This module handles the database connection using SQLAlchemy. SQLite
connections get foreign-key enforcement switched on so review references are
checked by the database as well as by CatalogManager.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from config import DATA_DIR, DATABASE_URL
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_db_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    """Create an engine, enabling foreign keys on SQLite.

    Args:
        url: SQLAlchemy database URL.
        **kwargs: Extra keyword arguments for create_engine.

    Returns:
        Configured Engine.
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = create_db_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create tables if they do not exist."""
    if bind.url.get_backend_name() == "sqlite" and bind.url.database:
        # Ensure data directory exists for file-backed SQLite
        DATA_DIR.mkdir(parents=True, exist_ok=True)
    Base.metadata.create_all(bind=bind)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
