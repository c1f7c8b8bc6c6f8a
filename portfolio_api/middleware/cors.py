"""
CORS policy middleware

Allows Vercel deployments (preview and production), localhost and the
configured frontend URL. Requests without an Origin header (curl, mobile
apps, server-to-server) pass through untouched. Any other origin is rejected
with 403 before reaching a route.
"""

import logging
from typing import Optional

from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

TRUSTED_ORIGIN_SUFFIX = ".vercel.app"
ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
ALLOWED_HEADERS = ["Content-Type", "Authorization"]


def is_origin_allowed(origin: Optional[str], frontend_url: Optional[str] = None) -> bool:
    """Decide whether a browser origin may call the API"""
    if not origin:
        return True
    if origin.endswith(TRUSTED_ORIGIN_SUFFIX):
        return True
    if "localhost" in origin:
        return True
    if frontend_url and origin == frontend_url:
        return True
    return False


class CORSPolicyMiddleware(CORSMiddleware):
    """Starlette CORS handling with the portfolio origin policy"""

    def __init__(self, app: ASGIApp, frontend_url: Optional[str] = None):
        super().__init__(
            app,
            allow_methods=ALLOWED_METHODS,
            allow_headers=ALLOWED_HEADERS,
            allow_credentials=True,
        )
        self.frontend_url = frontend_url

    def is_allowed_origin(self, origin: str) -> bool:
        return is_origin_allowed(origin, self.frontend_url)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            origin = None
            for key, value in scope.get("headers", []):
                if key == b"origin":
                    origin = value.decode("latin-1")
                    break
            if origin is not None and not self.is_allowed_origin(origin=origin):
                logger.warning("Rejected request from origin %s", origin)
                response = JSONResponse(
                    status_code=403,
                    content={"success": False, "error": "Not allowed by CORS"},
                )
                await response(scope, receive, send)
                return
        await super().__call__(scope, receive, send)
