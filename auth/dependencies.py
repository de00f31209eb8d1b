"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The authentication gate for every protected route:
  1. Read "Authorization: Bearer <token>".
  2. Validate the token with the TokenService on app.state.
  3. Coerce the string subject to the integer account id.

Any failure along the way is a 401. A subject that is not an integer means
the token was not issued by this service for an account, so it is treated as
an authentication failure rather than a server fault.

The gate does not re-check that the account still exists. Routes that read
the account (GET /user) get a NotFound from the service if it is gone.

Layer rule: no imports from catalog/. auth/dependencies.py may import from
fastapi because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request

from auth.tokens import TokenService
from core.errors import TokenError

logger = logging.getLogger("storefront.auth")


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def get_current_account_id(request: Request) -> int:
    """Require a valid bearer token. Returns the authenticated account id.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account_id: int = Depends(get_current_account_id)): ...
    """
    if not request.headers.get("Authorization"):
        logger.debug("Authorization header missing on %s", request.url.path)
        raise _unauthorized("Authorization header missing.")

    token = _bearer_token(request)
    if token is None:
        logger.debug("Malformed Authorization header on %s", request.url.path)
        raise _unauthorized("Invalid Authorization header format.")

    tokens: TokenService = request.app.state.token_service
    try:
        claims = tokens.validate(token)
    except TokenError as exc:
        logger.info("Token rejected on %s: %s", request.url.path, exc.message)
        raise _unauthorized("Invalid or expired token.") from exc

    try:
        account_id = int(claims.subject)
    except ValueError as exc:
        logger.warning("Token subject is not an account id: %r", claims.subject)
        raise _unauthorized("Invalid or expired token.") from exc
    if account_id <= 0:
        raise _unauthorized("Invalid or expired token.")
    return account_id
