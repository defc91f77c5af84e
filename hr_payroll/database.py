from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from hr_payroll.core.config import settings


def create_db_engine(url: str) -> Engine:
    """
    Build an engine for PostgreSQL or SQLite.

    An in-memory SQLite database lives only as long as its connection, so it
    is pinned to a single shared connection.
    """
    if url.startswith("postgresql"):
        return create_engine(url, pool_pre_ping=True)
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, connect_args={"check_same_thread": False})


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """
    One session per request. Services commit or roll back explicitly;
    the session is always closed here.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine = None):
    """Create every payroll table on `bind` (the application engine by default)."""
    from hr_payroll import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
