"""
Shared-secret authentication for mutating control routes.

Clients send the key in the X-API-Key header; it is compared against
RADIO_API_KEY in constant time.
"""

import logging
import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status

logger = logging.getLogger(__name__)


class APIKeyError(HTTPException):
    """Exception raised when API key authentication fails."""

    def __init__(self, detail: str = "Invalid or missing API key"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def verify_api_key(provided: Optional[str], expected: str) -> bool:
    """Compare a provided key with the configured one.

    Args:
        provided: Value from the X-API-Key header
        expected: Configured API key

    Returns:
        True if the key matches

    Raises:
        APIKeyError: If the key is missing or does not match
    """
    if not provided:
        raise APIKeyError("Missing X-API-Key header")

    # An unset key on the server side never authenticates anyone
    if not expected or not secrets.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    ):
        raise APIKeyError("Invalid API key")

    return True


async def require_api_key(
    request: Request,
    x_api_key: Optional[str] = Header(None),
) -> bool:
    """FastAPI dependency guarding mutating routes.

    Raises:
        APIKeyError: If the key is missing or invalid
    """
    try:
        return verify_api_key(x_api_key, request.app.state.config.api_key)
    except APIKeyError:
        client = request.client.host if request.client else "unknown"
        logger.warning(f"Rejected API key from {client} for {request.url.path}")
        raise
