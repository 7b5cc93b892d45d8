"""Admin authorization dependency."""

from __future__ import annotations

import logging
import secrets

from fastapi import Header, HTTPException, Request

logger = logging.getLogger(__name__)

ADMIN_ACTOR = "admin"


def require_admin(request: Request, authorization: str | None = Header(default=None)) -> str:
    """Reject the request unless it carries the configured admin bearer token.

    Returns the actor name recorded in the activity log.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    expected = request.app.state.settings.admin_token
    token = authorization.split(" ", 1)[1].strip()
    if not expected:
        logger.warning("Admin request rejected: no admin token configured")
        raise HTTPException(status_code=403, detail="Forbidden")
    if not secrets.compare_digest(token.encode(), expected.encode()):
        raise HTTPException(status_code=403, detail="Forbidden")
    return ADMIN_ACTOR
