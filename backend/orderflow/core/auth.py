"""API key authentication for the scheduling API.

Keys are configured as a comma-separated list in ``API_KEYS`` so the
dashboard and integration clients can rotate independently. With no keys
configured, authentication is disabled for local development.
"""

import logging
import secrets
from typing import Annotated

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from orderflow.core.config import settings

logger = logging.getLogger(__name__)

_api_key_header = APIKeyHeader(
    name=settings.API_KEY_HEADER,
    auto_error=False,
)


def _matches_any(candidate: str, keys: list[str]) -> bool:
    # Compare against every key so timing does not reveal which one matched.
    matched = False
    for key in keys:
        if secrets.compare_digest(candidate, key):
            matched = True
    return matched


async def verify_api_key(
    api_key: Annotated[str | None, Security(_api_key_header)] = None,
) -> str:
    """Validate the API key header.

    Raises HTTP 401 when the header is missing and HTTP 403 when the key is
    not one of the configured keys.
    """
    keys = settings.api_keys
    if not keys:
        return "dev-no-auth"

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key",
        )

    if not _matches_any(api_key, keys):
        logger.warning("Rejected request with unknown API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key
