"""
Authentication middleware for resolving caller identity.

This middleware:
1. Reads a bearer token from the Authorization header
2. Verifies it and places an ``Identity`` into the request scope
3. Leaves requests without a token anonymous (public job views need this)
4. Rejects malformed or expired tokens with a 401 envelope

It never touches memberships: those are loaded fresh per request by the
``api.dependencies`` caller dependencies.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from core.errors import Unauthenticated
from core.security import decode_access_token

logger = logging.getLogger(__name__)

# Paths that never look at the Authorization header
PUBLIC_PREFIXES = ("/health", "/docs", "/redoc", "/openapi")


@dataclass(frozen=True)
class Identity:
    """Authenticated user as asserted by the access token."""

    user_id: int
    email: str


class AuthenticationMiddleware:
    """Pure ASGI middleware injecting ``scope["identity"]``."""

    def __init__(self, app: Callable):
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        scope["identity"] = None

        if self._is_public_endpoint(request.url.path):
            await self.app(scope, receive, send)
            return

        token = self._extract_token(request)
        if token is not None:
            try:
                payload = decode_access_token(token)
            except Unauthenticated as e:
                await self._send_error_response(scope, receive, send, e.message)
                return
            scope["identity"] = Identity(user_id=payload.user_id, email=payload.email)

        await self.app(scope, receive, send)

    def _is_public_endpoint(self, path: str) -> bool:
        return path == "/" or any(path.startswith(prefix) for prefix in PUBLIC_PREFIXES)

    def _extract_token(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return auth_header[7:].strip() or None
        return None

    async def _send_error_response(
        self,
        scope: dict,
        receive: Callable,
        send: Callable,
        message: str,
    ) -> None:
        error_response = {
            "error": {
                "code": Unauthenticated.code,
                "message": message,
                "path": scope.get("path", "unknown"),
                "method": scope.get("method", "unknown"),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        }
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_response,
            headers={"WWW-Authenticate": "Bearer"},
        )
        await response(scope, receive, send)


def get_identity(request: Request) -> Optional[Identity]:
    """Identity placed in scope by the middleware, or None for anonymous."""
    return request.scope.get("identity")
