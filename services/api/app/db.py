from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .core.config import get_settings

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker[Session]] = None


class Base(DeclarativeBase):
    pass


def normalize_database_url(url: str) -> str:
    """Pin the psycopg 3 driver for bare ``postgresql://`` URLs."""
    scheme, sep, rest = url.partition("://")
    if scheme == "postgresql" and sep:
        return f"postgresql+psycopg://{rest}"
    return url


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 5}


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = normalize_database_url(get_settings().database_url)
        _engine = create_engine(url, future=True, **_engine_options(url))
    return _engine


def get_sessionmaker() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), expire_on_commit=False, future=True)
    return _SessionLocal


def upsert_insert(session: Session, model):
    """Dialect-specific INSERT supporting ``on_conflict_do_update``.

    Upserts must resolve conflicts in the database, not with a separate
    read-then-write.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"upsert not supported for dialect {dialect}")
    return insert(model)


def check_database_health() -> dict:
    """Round-trip ``SELECT 1`` on a pooled connection."""
    try:
        with get_engine().connect() as connection:
            value = connection.execute(text("SELECT 1")).scalar()
    except SQLAlchemyError as exc:
        return {"ok": False, "details": str(exc)}
    if value != 1:
        return {"ok": False, "details": f"unexpected result {value!r}"}
    return {"ok": True, "details": "ok"}
