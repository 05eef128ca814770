"""
Cron secret middleware.

Cron and bulk-import routes trigger expensive batch work, so they require
the shared secret as ``Authorization: Bearer <secret>`` (or a ``secret``
query parameter for schedulers that cannot set headers). When no secret is
configured every protected request is rejected.

Responsibility: Capability check for scheduled and manual trigger routes
"""

import hmac
import logging
from typing import Optional

from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ledge.config import settings

logger = logging.getLogger(__name__)

DEFAULT_PROTECTED_PATHS = ["/api/cron/", "/api/import-bills"]


def extract_secret(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the ``secret`` query param."""
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.query_params.get("secret")


def secret_matches(provided: Optional[str], expected: Optional[str]) -> bool:
    """Constant-time comparison; an unset expected secret never matches."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


class CronSecretMiddleware(BaseHTTPMiddleware):
    """Rejects unauthenticated requests to trigger routes with 401."""

    def __init__(self, app, protected_paths: Optional[list[str]] = None, secret: Optional[str] = None):
        """
        Args:
            app: FastAPI application
            protected_paths: Path prefixes requiring the secret
            secret: Expected secret; read from settings per request when omitted
        """
        super().__init__(app)
        self.protected_paths = protected_paths or DEFAULT_PROTECTED_PATHS
        self.secret = secret

    def _should_protect(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.protected_paths)

    async def dispatch(self, request: Request, call_next):
        if not self._should_protect(request.url.path):
            return await call_next(request)

        expected = self.secret if self.secret is not None else settings.app.cron_secret
        if not expected:
            logger.error(f"CRON_SECRET is not configured; rejecting {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Unauthorized"}
            )

        if not secret_matches(extract_secret(request), expected):
            logger.warning(f"Unauthorized trigger attempt: {request.method} {request.url.path}")
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "Unauthorized"}
            )

        return await call_next(request)
