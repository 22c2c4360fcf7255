from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from backend.core.listing import build_snapshot
from backend.database import SessionLocal, ensure_schema
from backend.realtime import broker

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def database_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def ensure_database_ready() -> None:
    try:
        ensure_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def load_stream_snapshot(owner_id: int | None) -> dict:
    db = SessionLocal()
    try:
        return build_snapshot(db, owner_id)
    finally:
        db.close()


def publish_change(collection: str, record_id: int, owner_id: int | None) -> None:
    broker.publish(collection, record_id, owner_id)
