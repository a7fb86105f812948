"""
Firebase ID-token verification via the Firebase Admin SDK.
"""

import logging

import firebase_admin
from firebase_admin import auth as firebase_auth, credentials, exceptions
from fastapi import status

from core import errors
from core.config import settings
from core.errors import AppError

logger = logging.getLogger(__name__)

_app = None


def get_app():
    """Initialise the default Firebase app once."""
    global _app
    if _app is None:
        try:
            _app = firebase_admin.get_app()
        except ValueError:
            cred = None
            if settings.firebase_credentials:
                cred = credentials.Certificate(settings.firebase_credentials)
            _app = firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin initialised")
    return _app


def verify_id_token(token: str) -> dict:
    """Verify a Firebase ID token and return its decoded claims."""
    try:
        decoded = firebase_auth.verify_id_token(token, app=get_app())
    except firebase_auth.ExpiredIdTokenError:
        raise AppError("Token expired", status.HTTP_401_UNAUTHORIZED,
                       errors.TOKEN_EXPIRED)
    except (exceptions.FirebaseError, ValueError) as e:
        logger.warning("Firebase token verification failed: %s", e)
        raise AppError("Invalid token", status.HTTP_401_UNAUTHORIZED,
                       errors.INVALID_TOKEN)
    if not decoded.get("uid"):
        raise AppError("Invalid token: No UID found",
                       status.HTTP_401_UNAUTHORIZED, errors.INVALID_TOKEN)
    return decoded
