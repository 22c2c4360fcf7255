import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.auth.passwords import hash_password  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models.appointment import Appointment  # noqa: E402
from backend.models.help_request import HelpRequest  # noqa: E402
from backend.models.user import User  # noqa: E402

TABLES = [User.__table__, Appointment.__table__, HelpRequest.__table__]


@pytest.fixture
def request_session_factory():
    # One shared connection so threadpool work sees the same in-memory database.
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine, tables=TABLES)
    try:
        yield testing_session_local
    finally:
        Base.metadata.drop_all(bind=engine, tables=list(reversed(TABLES)))
        engine.dispose()


@pytest.fixture
def request_db(request_session_factory):
    db = request_session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in (
        'auth_routes',
        'profile_routes',
        'appointment_routes',
        'help_request_routes',
        'request_routes',
        'admin_routes',
    ):
        monkeypatch.setattr(f'backend.routes.{module}.ensure_database_ready', lambda: None)


@pytest.fixture
def make_user(request_db):
    def _make_user(email: str = 'student@example.edu', name: str = 'Student User', phone: str = '+15551234567'):
        user = User(
            email=email,
            hashed_password=hash_password('secret123'),
            name=name,
            phone=phone,
            role='user',
        )
        request_db.add(user)
        request_db.commit()
        request_db.refresh(user)
        return user

    return _make_user
