"""Database schema initialization."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from supplement_engine.database.models import Base


def init_database(db_path: Path, echo: bool = False):
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file
        echo: Whether to echo SQL queries (for debugging)
    """
    # Ensure parent directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    # check_same_thread is off so parallel pattern queries can share the engine
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=echo,
        connect_args={"check_same_thread": False},
    )

    # Create all tables
    Base.metadata.create_all(engine)

    return engine


def get_session_factory(engine):
    """
    Get session factory for database operations.

    Args:
        engine: SQLAlchemy engine

    Returns:
        Session factory
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
