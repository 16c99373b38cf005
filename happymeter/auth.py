"""HTTP Basic authentication for admin endpoints."""
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from config import config
from exceptions import AuthError

logger = logging.getLogger(__name__)


class OptionalHTTPBasic(HTTPBasic):
    """HTTP Basic scheme that treats malformed credentials as absent."""

    async def __call__(self, request: Request) -> Optional[HTTPBasicCredentials]:
        try:
            return await super().__call__(request)
        except HTTPException:
            return None


basic_auth = OptionalHTTPBasic(scheme_name="HTTPBasic", realm=config.ADMIN_REALM, auto_error=False)


def credentials_match(credentials: HTTPBasicCredentials) -> bool:
    """Compare against the shared admin pair in constant time."""
    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), config.ADMIN_USERNAME.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), config.ADMIN_PASSWORD.encode("utf-8")
    )
    return username_ok and password_ok


async def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth)
) -> str:
    """Dependency guarding admin endpoints.

    Returns:
        The authenticated username

    Raises:
        AuthError: If credentials are missing or wrong
    """
    if credentials is None or not credentials_match(credentials):
        raise AuthError(
            "Authentication required to access admin endpoints",
            headers={"WWW-Authenticate": f'Basic realm="{config.ADMIN_REALM}"'}
        )
    return credentials.username
