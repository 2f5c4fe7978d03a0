import os
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pokerledger.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "").strip().lower() in {"1", "true", "yes", "on"}

Base = declarative_base()


def create_ledger_engine(url: str = DATABASE_URL, *, echo: bool = False) -> Engine:
    """In-memory SQLite keeps a single shared connection so every session sees the same tables."""
    options: dict[str, Any] = {}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            options["poolclass"] = StaticPool
    return create_engine(url, future=True, echo=echo, **options)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False, future=True)


def create_schema(bind: Engine) -> None:
    from pokerledger.storage import models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(bind=bind)


engine = create_ledger_engine(DATABASE_URL, echo=DATABASE_ECHO)
SessionLocal = make_session_factory(engine)


def init_db() -> None:
    create_schema(engine)
