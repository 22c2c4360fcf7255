import os
from dotenv import load_dotenv
from datetime import datetime, timezone
from threading import Lock

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./assist_desk.db")

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_schema_checked = False


def ensure_schema() -> None:
    global _schema_checked

    if _schema_checked:
        return

    with _schema_lock:
        if _schema_checked:
            return

        # Registers every table on Base.metadata before create_all runs.
        from backend.models import appointment, help_request, user  # noqa: F401

        Base.metadata.create_all(bind=engine)
        _schema_checked = True


def utc_now() -> datetime:
    """Current UTC time without tzinfo, as stored in the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
