"""Database connection and session management."""

from collections.abc import Generator
from typing import Annotated, Any

from fastapi import Depends
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from project_tracker.core.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base class."""

    pass


def _engine_options() -> dict[str, Any]:
    if settings.is_sqlite:
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 10, "max_overflow": 20}


# Create sync engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=False,
    **_engine_options(),
)

# Create sync session factory. Objects stay loaded across commits because the
# workflow engine commits each document write on its own.
SessionLocal = sessionmaker(
    bind=engine,
    class_=Session,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create all tables directly (development and tests only)."""
    import project_tracker.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# Type alias for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
