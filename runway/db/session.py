"""Database connection and session configuration.

This module sets up the SQLAlchemy engine and the SessionLocal factory based on DATABASE_URL.
It also provides a context manager for database sessions to ensure proper cleanup.
"""

from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from runway.config import get_settings

database_url = get_settings().database_url

connect_args = {}
if database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(database_url, connect_args=connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session(session_factory=None):
    """Context manager for database sessions.

    Ensures that sessions are committed on success, rolled back on exceptions
    and always closed.

    Args:
        session_factory: Optional sessionmaker to use instead of SessionLocal.

    Yields:
        Session: SQLAlchemy Session object.
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
