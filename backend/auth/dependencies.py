from fastapi import Depends, HTTPException, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from backend.auth import jwt_handler
from backend.core.choices import ROLE_ADMIN
from backend.database import SessionLocal
from backend.models.user import User

security = HTTPBearer()


def decode_token(token: str) -> dict:
    try:
        payload = jwt_handler.decode_access_token(token)
    except Exception as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    if not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token subject")
    return payload


def resolve_user(token: str) -> User:
    payload = decode_token(token)
    if payload.get("role") == ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin tokens cannot act as a user")

    email = payload["sub"]
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).first()
    finally:
        db.close()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def resolve_admin(token: str) -> str:
    payload = decode_token(token)
    if payload.get("role") != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return payload["sub"]


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> User:
    return resolve_user(credentials.credentials)


def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    return resolve_admin(credentials.credentials)


# EventSource cannot send an Authorization header, so streams take ?token=.
def get_stream_user(token: str = Query(...)) -> User:
    return resolve_user(token)


def get_stream_admin(token: str = Query(...)) -> str:
    return resolve_admin(token)
