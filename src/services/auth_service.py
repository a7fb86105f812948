"""
Authentication service - local JWT/bcrypt accounts or Firebase ID tokens.
"""

import logging
import re

import jwt
import bcrypt as _bcrypt
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from fastapi import Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core import errors
from core.config import settings
from core.errors import AppError
from Data.models import User, ActivityAction
from Data.database import get_db, utcnow
from services import activity_service, firebase_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only hashes the first 72 bytes and rejects longer input
MAX_PASSWORD_BYTES = 72
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return _bcrypt.hashpw(password.encode("utf-8"),
                          _bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    return _bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def create_access_token(user_id: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": now + timedelta(hours=settings.jwt_expires_hours),
        "iat": now,
    }
    return jwt.encode(payload, settings.jwt_secret,
                      algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret,
                          algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise AppError("Token expired", status.HTTP_401_UNAUTHORIZED,
                       errors.TOKEN_EXPIRED)
    except jwt.InvalidTokenError:
        raise AppError("Invalid token", status.HTTP_401_UNAUTHORIZED,
                       errors.INVALID_TOKEN)


def user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "firebase_uid": user.firebase_uid,
        "email_verified": bool(user.email_verified),
        "photo_url": user.photo_url,
        "last_login": user.last_login.isoformat() if user.last_login else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


def _require_local_provider():
    if settings.use_firebase:
        raise AppError(
            "Password authentication is disabled; sign in with Firebase",
            status.HTTP_403_FORBIDDEN,
        )


def register(db: Session, name: str, email: str, password: str) -> dict:
    """Register a new user and return a token for it."""
    _require_local_provider()
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email or not password:
        raise AppError("Name, email, and password are required")
    if not EMAIL_RE.match(email):
        raise AppError("Please provide a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AppError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise AppError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise AppError("Email already in use", status.HTTP_400_BAD_REQUEST,
                       errors.DUPLICATE_FIELD)
    user = User(name=name, email=email, password_hash=hash_password(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)
    activity_service.log_activity(db, user.id, ActivityAction.user_registered)
    return {
        "token": create_access_token(user.id, user.email),
        "user": user_to_dict(user),
    }


def login(db: Session, email: str, password: str) -> dict:
    """Authenticate and return token."""
    _require_local_provider()
    email = (email or "").strip().lower()
    if not email or not password:
        raise AppError("Please provide email and password")
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        raise AppError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    activity_service.log_activity(db, user.id, ActivityAction.user_logged_in)
    return {
        "message": "Login successful",
        "token": create_access_token(user.id, user.email),
        "user": user_to_dict(user),
    }


def get_or_create_firebase_user(db: Session, claims: dict) -> User:
    """Look up the user for verified Firebase claims, creating it on first sight."""
    uid = claims["uid"]
    email = claims.get("email") or f"{uid}@firebase.local"
    user = db.query(User).filter(User.firebase_uid == uid).first()
    if not user:
        # Link an existing password account with the same email
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.firebase_uid = uid
        else:
            user = User(
                firebase_uid=uid,
                email=email,
                name=claims.get("name") or email.split("@")[0],
            )
            db.add(user)
            logger.info("Creating new user for Firebase UID %s", uid)
    user.email_verified = bool(claims.get("email_verified", False))
    if claims.get("picture"):
        user.photo_url = claims["picture"]
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)
    return user


def _extract_token(request: Request,
                   credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.cookie_name) or None


def _user_from_token(db: Session, token: str) -> User:
    if settings.use_firebase:
        claims = firebase_service.verify_id_token(token)
        return get_or_create_firebase_user(db, claims)

    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise AppError("Invalid token payload", status.HTTP_401_UNAUTHORIZED,
                       errors.INVALID_TOKEN)
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AppError("User not found", status.HTTP_401_UNAUTHORIZED)
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency - resolves the current user from bearer token or cookie."""
    token = _extract_token(request, credentials)
    if not token:
        raise AppError("Not authorized, no token", status.HTTP_401_UNAUTHORIZED)
    return _user_from_token(db, token)


def get_optional_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Like get_current_user, but anonymous requests resolve to None."""
    token = _extract_token(request, credentials)
    if not token:
        return None
    return _user_from_token(db, token)
