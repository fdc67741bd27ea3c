import os

from sqlalchemy import create_engine, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import declarative_base, sessionmaker

from .deadline import Deadline
from .errors import DeadlineExceeded, Unavailable

DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://postgres:postgres@db:5432/nearmatch")
QUERY_CANCELED = "57014"

Base = declarative_base()


def build_engine(url: str = DATABASE_URL, **kwargs):
    return create_engine(url, future=True, **kwargs)


def build_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def init_db(engine) -> None:
    from . import models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(engine)


def storage_error(exc: DBAPIError, message: str) -> Unavailable:
    """Map a driver error to the core error the caller should raise."""
    # 57014 is query_canceled: statement_timeout fired.
    if getattr(exc.orig, "pgcode", None) == QUERY_CANCELED:
        return DeadlineExceeded("deadline exceeded while waiting on storage")
    return Unavailable(message)


def guard_deadline(db, deadline: Deadline | None, operation: str) -> None:
    """Fail fast on an expired deadline and bound the statement time on PostgreSQL."""
    if deadline is None:
        return
    deadline.check(operation)
    if db.get_bind().dialect.name == "postgresql":
        db.execute(
            text("SELECT set_config('statement_timeout', :ms, true)"),
            {"ms": str(deadline.remaining_ms())},
        )
