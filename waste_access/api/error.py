from typing import Dict, Optional

from fastapi import status

from waste_access.libs.result import Error


class ClientError(Exception):
    def __init__(
        self,
        base_error: Error,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_error = base_error
        self.status_code = status_code
        self.headers = headers
        super().__init__(base_error.message)


class ServerError(Exception):
    def __init__(self, base_error: Error):
        self.base_error = base_error
        super().__init__(base_error.message)


# Error code -> HTTP status for every code a use case or dependency returns
STATUS_BY_CODE = {
    # 400
    "COMPANY_ID_REQUIRED": status.HTTP_400_BAD_REQUEST,
    "INVALID_COMPANY_ID": status.HTTP_400_BAD_REQUEST,
    "INVALID_EXPIRY": status.HTTP_400_BAD_REQUEST,
    "PASSWORD_UNCHANGED": status.HTTP_400_BAD_REQUEST,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    # 401
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_TOKEN": status.HTTP_401_UNAUTHORIZED,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "SESSION_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "INVALID_CREDENTIALS": status.HTTP_401_UNAUTHORIZED,
    "INVALID_CURRENT_PASSWORD": status.HTTP_401_UNAUTHORIZED,
    "INVALID_API_KEY": status.HTTP_401_UNAUTHORIZED,
    # 403
    "ACCOUNT_DEACTIVATED": status.HTTP_403_FORBIDDEN,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "ADMIN_REQUIRED": status.HTTP_403_FORBIDDEN,
    "SUPER_ADMIN_REQUIRED": status.HTTP_403_FORBIDDEN,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "COMPANY_ACCESS_REQUIRED": status.HTTP_403_FORBIDDEN,
    "CANNOT_MODIFY_SELF": status.HTTP_403_FORBIDDEN,
    "INVITATION_EMAIL_MISMATCH": status.HTTP_403_FORBIDDEN,
    "SUSPICIOUS_ACTIVITY_BLOCKED": status.HTTP_403_FORBIDDEN,
    # 404
    "USER_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "COMPANY_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "ACCESS_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "INVITATION_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "IP_NOT_SUSPICIOUS": status.HTTP_404_NOT_FOUND,
    # 409
    "EMAIL_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "INVITE_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    "INVITATION_NOT_PENDING": status.HTTP_409_CONFLICT,
    "TWO_FACTOR_ALREADY_ENABLED": status.HTTP_409_CONFLICT,
    "COMPANY_ALREADY_EXISTS": status.HTTP_409_CONFLICT,
    # 410
    "INVITATION_EXPIRED": status.HTTP_410_GONE,
    # 413
    "PAYLOAD_TOO_LARGE": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    # 423
    "ACCOUNT_LOCKED": status.HTTP_423_LOCKED,
    # 429
    "RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "AUTH_RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
    "INVITE_RATE_LIMIT_EXCEEDED": status.HTTP_429_TOO_MANY_REQUESTS,
}


def to_http_error(error: Error, overrides: Optional[Dict[str, int]] = None) -> Exception:
    """
    Map a use case Error to the exception the app handlers render.

    Unknown codes become a ServerError so internals never leak.
    """
    status_code = (overrides or {}).get(error.code) or STATUS_BY_CODE.get(error.code)
    if status_code is None:
        return ServerError(error)
    return ClientError(error, status_code=status_code)
