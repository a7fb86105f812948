"""
Application error type and error codes shared by services and routers.
"""

from fastapi import HTTPException, status

UNAUTHORIZED = "UNAUTHORIZED"
INVALID_TOKEN = "INVALID_TOKEN"
TOKEN_EXPIRED = "TOKEN_EXPIRED"
VALIDATION_ERROR = "VALIDATION_ERROR"
DUPLICATE_FIELD = "DUPLICATE_FIELD"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
CONFLICT = "CONFLICT"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

_DEFAULT_CODES = {
    status.HTTP_400_BAD_REQUEST: VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: FORBIDDEN,
    status.HTTP_404_NOT_FOUND: NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: METHOD_NOT_ALLOWED,
    status.HTTP_409_CONFLICT: CONFLICT,
    422: VALIDATION_ERROR,
}


def code_for_status(status_code: int) -> str:
    return _DEFAULT_CODES.get(status_code, INTERNAL_SERVER_ERROR)


class AppError(HTTPException):
    """HTTPException that also carries a machine-readable error code."""

    def __init__(self, message: str, status_code: int = 400,
                 code: str | None = None, headers: dict | None = None):
        super().__init__(status_code=status_code, detail=message,
                         headers=headers)
        self.code = code or code_for_status(status_code)

    @property
    def message(self) -> str:
        return self.detail
