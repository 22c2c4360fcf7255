import logging
import secrets

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import get_current_admin, get_current_user
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.core.choices import ROLE_ADMIN, ROLE_USER
from backend.models.user import User
from backend.routes.common import database_unavailable, ensure_database_ready, get_db
from backend.schemas import AdminLoginRequest, LoginRequest, ProfileResponse, SignupRequest, TokenResponse

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


@router.post('/signup', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(data: SignupRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        existing_user = db.query(User).filter(User.email == data.email).first()
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='Email already in use',
            )

        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            name=data.name,
            phone=data.phone,
            role=ROLE_USER,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # Another signup claimed the email between the check and the commit.
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='Email already in use',
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable() from exc

    logger.info('Created account %s', user.id)
    token = jwt_handler.create_access_token(subject=user.email, role=ROLE_USER)
    return TokenResponse(access_token=token, role=ROLE_USER)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise database_unavailable() from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        logger.warning('Failed login for %s', data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid email or password',
        )

    role = user.role or ROLE_USER
    token = jwt_handler.create_access_token(subject=user.email, role=role)
    return TokenResponse(access_token=token, role=role)


@router.post('/admin/login', response_model=TokenResponse)
def admin_login(data: AdminLoginRequest):
    username_ok = secrets.compare_digest(data.username.encode(), config.ADMIN_USERNAME.encode())
    password_ok = secrets.compare_digest(data.password.encode(), config.ADMIN_PASSWORD.encode())
    if not (username_ok and password_ok):
        logger.warning('Failed admin login for %s', data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Invalid admin credentials',
        )

    token = jwt_handler.create_access_token(subject=data.username, role=ROLE_ADMIN)
    return TokenResponse(access_token=token, role=ROLE_ADMIN)


@router.get('/me', response_model=ProfileResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.get('/admin/me')
def admin_me(admin_username: str = Depends(get_current_admin)):
    return {'username': admin_username, 'role': ROLE_ADMIN}
