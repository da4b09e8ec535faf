"""
API key authentication for the transcoding admin surface
"""

import logging
from typing import Optional

from fastapi import Header, HTTPException, status
from fastapi.security import APIKeyHeader

from config import settings

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_READONLY = "readonly"

# Declared for the OpenAPI docs
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


def parse_api_keys(raw: str) -> dict[str, str]:
    """
    Parse the API_KEYS setting into a key -> role mapping.

    Entries are comma separated, either "key" (admin) or "role:key".
    """
    keys = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        if ":" in entry:
            role, key = entry.split(":", 1)
            keys[key.strip()] = role.strip()
        else:
            keys[entry] = ROLE_ADMIN
    return keys


class APIKeyAuth:
    """Maps X-API-Key values to roles."""

    def __init__(self, api_keys: Optional[str] = None, require_auth: Optional[bool] = None):
        self.keys = parse_api_keys(settings.api_keys if api_keys is None else api_keys)
        self.require_auth = settings.require_api_auth if require_auth is None else require_auth

        if self.require_auth and not self.keys:
            logger.warning(
                "API authentication required but no keys configured! "
                "Set API_KEYS environment variable."
            )

    def verify_key(self, api_key: Optional[str]) -> str:
        """
        Return the role for an API key.

        Raises:
            HTTPException: 401 when the key is missing, 403 when it is unknown
        """
        if not self.require_auth:
            return ROLE_ADMIN

        if not api_key:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key required. Provide X-API-Key header.",
                headers={"WWW-Authenticate": "ApiKey"},
            )

        role = self.keys.get(api_key)
        if not role:
            logger.warning(f"Invalid API key attempt: {api_key[:8]}...")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid API key",
            )
        return role

    def require_admin(self, api_key: Optional[str]) -> str:
        role = self.verify_key(api_key)
        if role != ROLE_ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin access required",
            )
        return role


auth = APIKeyAuth()


async def get_current_user(
    api_key: Optional[str] = Header(None, alias="X-API-Key")
) -> str:
    """FastAPI dependency for any authenticated endpoint."""
    return auth.verify_key(api_key)


async def require_admin(
    api_key: Optional[str] = Header(None, alias="X-API-Key")
) -> str:
    """FastAPI dependency for preset and cache administration."""
    return auth.require_admin(api_key)
