"""Auth API - register, login, logout and current-user endpoints."""

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.config import settings
from Data.database import get_db
from Data.models import User
from services import auth_service

router = APIRouter()


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        max_age=settings.jwt_expires_hours * 3600,
    )


@router.post("/register", status_code=201)
async def register(body: RegisterRequest, response: Response,
                   db: Session = Depends(get_db)):
    """Register a new user account."""
    result = auth_service.register(db, body.name, body.email, body.password)
    _set_token_cookie(response, result["token"])
    return result


@router.post("/login")
async def login(body: LoginRequest, response: Response,
                db: Session = Depends(get_db)):
    """Login and receive a JWT token."""
    result = auth_service.login(db, body.email, body.password)
    _set_token_cookie(response, result["token"])
    return result


@router.post("/logout")
async def logout(response: Response):
    """Clear the auth cookie."""
    response.delete_cookie(settings.cookie_name)
    return {"message": "Logged out"}


@router.get("/me")
async def me(user: User = Depends(auth_service.get_current_user)):
    """Return the authenticated user."""
    return {"success": True, "user": auth_service.user_to_dict(user)}
