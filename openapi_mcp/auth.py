"""
Bearer token protection for the HTTP transport.
"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an `Authorization: Bearer <token>` header value, scheme case-insensitive."""
    if not authorization:
        return None
    if not authorization.lower().startswith("bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


class BearerTokenGuard:
    """
    Static bearer token check, used as a FastAPI dependency and in front of
    the MCP endpoint.

    With no expected token configured every request passes.
    """

    def __init__(self, expected_token: Optional[str] = None):
        self.expected_token = expected_token

    def check(self, authorization: Optional[str], path: str = "") -> Optional[str]:
        """Failure detail for an Authorization header value, or None when it is accepted."""
        if not self.expected_token:
            return None

        token = extract_bearer_token(authorization)
        if token is None:
            logger.warning(f"Bearer token authentication failed: missing token, {path}")
            return "Missing bearer token"
        if not secrets.compare_digest(token.encode("utf-8"), self.expected_token.encode("utf-8")):
            logger.warning(f"Bearer token authentication failed: invalid token, {path}")
            return "Invalid bearer token"
        return None

    async def __call__(self, request: Request) -> None:
        detail = self.check(request.headers.get("authorization"), request.url.path)
        if detail is not None:
            raise HTTPException(status_code=401, detail=detail)
