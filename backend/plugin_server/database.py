"""
Database configuration for the plugin store
SQLAlchemy engine, session factory and the plugins table
"""

import logging
from datetime import datetime
from typing import Generator

from sqlalchemy import Column, DateTime, LargeBinary, String, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DATABASE_URL = settings.database_url


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {"pool_pre_ping": True, "pool_recycle": 3600}

    options: dict = {"connect_args": {"check_same_thread": False}}
    # An in-memory database only exists on its connection, share one
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


class PluginRecord(Base):  # type: ignore[valid-type, misc]
    """Stored plugin archive, replaced wholesale on re-upload"""

    __tablename__ = "plugins"

    name = Column(String(255), primary_key=True)
    filename = Column(String(255), nullable=False)
    archive = Column(LargeBinary, nullable=False)  # raw JAR bytes, never modified
    user = Column(String(255), nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI endpoints.

    Yields:
        One session per request, closed when the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    """Create database tables if they don't exist."""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Failed to create database tables: {e}")
        raise


def check_database_health() -> bool:
    """Check database connectivity"""
    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
