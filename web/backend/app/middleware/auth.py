"""Auth middleware -- FastAPI dependencies for the caller's identity.

Token issuance and verification happen upstream; by the time a request
reaches this service the gateway has resolved it to a user id carried in
``X-User-Id``.  Admin endpoints additionally require ``X-Admin-Token``.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from echoguard.services import Services
from web.backend.app.deps import get_services


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """FastAPI dependency returning the authenticated user's id.

    Raises ``401 Unauthorized`` if the header is missing.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return x_user_id


async def require_admin(
    x_admin_token: Optional[str] = Header(None, alias="X-Admin-Token"),
    services: Services = Depends(get_services),
) -> None:
    """Reject the request with 403 unless it carries the admin token."""
    expected = services.settings.admin_token
    if not expected or not x_admin_token or not hmac.compare_digest(expected, x_admin_token):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
