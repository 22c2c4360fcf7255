import pytest

from backend.auth.passwords import verify_password
from backend.create_demo_user import create_demo_user
from backend.models.user import User


def test_create_demo_user_is_idempotent(request_db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.core.config.DEMO_USER_EMAIL', 'Demo@Example.com')
    monkeypatch.setattr('backend.core.config.DEMO_USER_PASSWORD', 'demo123')

    user, created = create_demo_user(request_db)
    again, created_again = create_demo_user(request_db)

    assert created is True
    assert created_again is False
    assert again.id == user.id
    assert user.email == 'demo@example.com'
    assert verify_password('demo123', user.hashed_password)
    assert request_db.query(User).count() == 1
