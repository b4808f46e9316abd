"""
Admin API Key Authentication

Validates admin API keys for operator endpoints (maintenance, reports).
"""

import hmac

from fastapi import Depends, Header, status

from waste_access.api.error import ClientError
from waste_access.depends import get_config
from waste_access.libs.result import Error


async def verify_admin_api_key(
    x_admin_api_key: str = Header(None),
    config=Depends(get_config),
):
    """
    Verify admin API key from X-Admin-API-Key header.

    Service-to-service auth for cron jobs and operators, separate from
    user bearer tokens.

    Raises:
        ClientError: 401 if key is missing or invalid

    Returns:
        True if valid
    """
    if not x_admin_api_key:
        raise ClientError(
            Error("UNAUTHORIZED", "Admin API key required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not hmac.compare_digest(x_admin_api_key, config.ADMIN_API_KEY):
        raise ClientError(
            Error("INVALID_API_KEY", "Invalid admin API key"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    return True
