"""
RecipeBox Backend — Access-Control Middleware
===============================================

What:  Bearer-token gate in front of every recipe route.
How:   For protected paths, reads `Authorization: Bearer <token>`, verifies it
       with the TokenService on app.state, and stores the user id on
       request.state.user_id. Anything else gets a uniform 403.
Who:   Applied to every request; unprotected paths pass straight through.

Per-request state machine:
    NoToken                 → Reject(403)
    TokenPresent → Verify   → Valid:   attach identity, continue
                            → Invalid: Reject(403)

Missing header, wrong scheme, extra parts, bad signature and expired
tokens all produce the same response body.
"""

import logging
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from recipebox.exceptions import UnauthorizedError
from recipebox.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

PROTECTED_PREFIXES = ("/auth/recipe", "/auth/searchRecipes")


def is_protected(path: str) -> bool:
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PROTECTED_PREFIXES)


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Return the token from 'Bearer <token>', or None for anything else."""
    if not header:
        return None
    parts = header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1]:
        return None
    return parts[1]


class AccessControlMiddleware(BaseHTTPMiddleware):
    """
    Verifies bearer tokens for protected routes.

    CORS preflight (OPTIONS) requests are never gated; browsers send them
    without credentials.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS" or not is_protected(request.url.path):
            return await call_next(request)

        token = extract_bearer_token(request.headers.get("Authorization"))
        try:
            if token is None:
                raise UnauthorizedError(context={"reason": "missing_or_malformed_header"})
            user_id = request.app.state.token_service.verify(token)
        except UnauthorizedError as exc:
            rid = request_id_var.get("")
            logger.warning(
                "[%s] Rejected %s %s: %s",
                rid,
                request.method,
                request.url.path,
                exc.context.get("reason", "invalid_token"),
            )
            return JSONResponse(
                status_code=403,
                content={
                    "error": "unauthorized",
                    "message": exc.message,
                    "request_id": rid,
                },
            )

        request.state.user_id = user_id
        return await call_next(request)
