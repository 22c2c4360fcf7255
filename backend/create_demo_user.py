"""Create the demo account used for manual testing.

Usage:
    python -m backend.create_demo_user
"""
import sys

from backend.auth.passwords import hash_password
from backend.core import config
from backend.core.choices import ROLE_USER
from backend.database import SessionLocal, ensure_schema
from backend.models.user import User

DEMO_NAME = 'Demo User'
DEMO_PHONE = '+1234567890'


def create_demo_user(db) -> tuple[User, bool]:
    """Return the demo user and whether it was created by this call."""
    email = config.DEMO_USER_EMAIL.strip().lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing is not None:
        return existing, False

    user = User(
        email=email,
        hashed_password=hash_password(config.DEMO_USER_PASSWORD),
        name=DEMO_NAME,
        phone=DEMO_PHONE,
        role=ROLE_USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user, True


def main() -> int:
    ensure_schema()
    db = SessionLocal()
    try:
        user, created = create_demo_user(db)
    finally:
        db.close()

    print('Demo user created.' if created else 'Demo user already exists.')
    print(f'Email: {user.email}')
    print(f'Password: {config.DEMO_USER_PASSWORD}')
    return 0


if __name__ == '__main__':
    sys.exit(main())
