"""
Engine and session handling.

The engine is built on first use from ``DATABASE_URL`` and rebuilt when that
variable changes, so tests can point each run at a fresh SQLite file.
"""

import os
from contextlib import contextmanager
from typing import Generator, Dict, Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from .models import Base

DEFAULT_DATABASE_URL = "sqlite:///./nyayasetu.db"

_engine = None
_engine_url = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": os.environ.get("SQL_ECHO", "false").lower() == "true"}
    if url.startswith("sqlite"):
        # TestClient runs handlers on a worker thread
        options["connect_args"] = {"check_same_thread": False}
    else:
        options.update(
            pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
            max_overflow=10,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> Engine:
    global _engine, _engine_url
    url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)
    if _engine is None or url != _engine_url:
        if _engine is not None:
            _engine.dispose()
        _engine = create_engine(url, **_engine_options(url))
        _engine_url = url
        SessionLocal.configure(bind=_engine)
    return _engine


def reset_engine():
    """Forget the current engine; the next session rebinds from DATABASE_URL."""
    global _engine, _engine_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _engine_url = None
    SessionLocal.configure(bind=None)


def init_db():
    Base.metadata.create_all(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency; handlers commit their own work."""
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Transactional scope outside a request: commits on success, rolls back
    on any exception.

        with get_db_session() as db:
            db.add(LegalAct(name="Indian Penal Code"))
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
