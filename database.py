import logging
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

# Process-wide store handle, created on first use and disposed at shutdown.
_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _database_url() -> str:
    url = settings.DATABASE_URL
    # Fix if the host provides postgres://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def get_engine() -> Engine:
    """Return the shared engine, creating it on first call"""
    global _engine, _session_factory

    if _engine is None:
        url = _database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}

        _engine = create_engine(
            url,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        _session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=_engine
        )
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))

    return _engine


def init_db() -> None:
    """Create tables that do not exist yet"""
    import models  # noqa: F401  registers the mapped classes

    Base.metadata.create_all(bind=get_engine())


def dispose_engine() -> None:
    """Release pooled connections; the next get_engine() starts over"""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


def get_db():
    get_engine()
    db = _session_factory()
    try:
        yield db
    finally:
        db.close()
