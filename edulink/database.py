"""
database.py — Engine and session scope for the EduLink store
============================================================
Profiles, wallets, transactions and testimonials all live in one
relational database named by settings.database_url (SQLite for local
development and tests). Route handlers and the gate's profile store open
short-lived sessions through db_session(); there is no request-scoped
session dependency.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    # SQLite connections are shared with the threadpool the gate uses for lookups.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    echo=settings.log_sql,
    future=True,
    connect_args=_connect_args(settings.database_url),
)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@contextmanager
def db_session() -> Iterator[Session]:
    """Open a session, commit on success, roll back and re-raise on error."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create any missing EduLink tables."""
    from . import models  # noqa: F401 — registers tables on Base.metadata

    Base.metadata.create_all(bind=engine)
