"""Context-auth router -- signin context verification and context-data management.

Prefix: ``/auth``
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from echoguard.context.fingerprint import build_fingerprint
from echoguard.context.models import Context, SuspiciousLogin, Verdict
from echoguard.errors import PolicyRejection
from echoguard.services import Services
from web.backend.app.deps import get_services
from web.backend.app.middleware.auth import get_current_user_id
from web.backend.app.models.api import (
    ContextResponse,
    MessageResponse,
    SuspiciousLoginResponse,
    VerifyRequest,
    VerifyResponse,
)

router = APIRouter(prefix="/auth", tags=["context-auth"])

UNVERIFIED_NOTICE = (
    "This login came from a device we have not seen before. "
    "If this was not you, secure your account."
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _context_response(c: Context) -> ContextResponse:
    return ContextResponse(
        id=c.id,
        user=c.user,
        email=c.email,
        trusted=c.trusted,
        created_at=c.created_at,
        **c.fingerprint.to_dict(),
    )


def _suspicious_response(s: SuspiciousLogin) -> SuspiciousLoginResponse:
    return SuspiciousLoginResponse(
        id=s.id,
        user=s.user,
        email=s.email,
        unverified_attempts=s.unverified_attempts,
        is_blocked=s.is_blocked,
        created_at=s.created_at,
        updated_at=s.updated_at,
        **s.fingerprint.to_dict(),
    )


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else ""


# ---------------------------------------------------------------------------
# Signin verification
# ---------------------------------------------------------------------------


@router.post("/verify", response_model=VerifyResponse, summary="Classify a signin context")
def verify_context(
    body: VerifyRequest,
    request: Request,
    user_agent: Optional[str] = Header(None),
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Compare the caller's device fingerprint with their known contexts.

    ``match`` and ``no_context_data`` let the login proceed; ``unverified``
    proceeds with a notice; ``blocked`` refuses it with 403.
    """
    fingerprint = build_fingerprint(_client_ip(request), user_agent or "", services.geo)
    result = services.trust.classify(user_id, body.email, fingerprint)

    if not result.verdict.allows_login:
        raise PolicyRejection(
            "You've been blocked due to suspicious login activity. Please contact support for assistance.",
            code="blockedContext",
            status_code=HTTPStatus.FORBIDDEN,
        )
    if result.verdict is Verdict.unverified:
        return VerifyResponse(
            status=result.verdict.value,
            notice=UNVERIFIED_NOTICE,
            attempts=result.suspicious.unverified_attempts if result.suspicious else 0,
        )
    return VerifyResponse(status=result.verdict.value)


# ---------------------------------------------------------------------------
# Context data
# ---------------------------------------------------------------------------


@router.get("/context-data/primary", response_model=ContextResponse)
def get_primary_context(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Return the first context recorded for the caller."""
    return _context_response(services.trust.primary_context(user_id))


@router.get("/context-data/trusted", response_model=list[ContextResponse])
def get_trusted_contexts(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Contexts the caller has explicitly confirmed."""
    return [_context_response(c) for c in services.trust.trusted_contexts(user_id)]


@router.get("/context-data/blocked", response_model=list[SuspiciousLoginResponse])
def get_blocked_contexts(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    return [_suspicious_response(s) for s in services.trust.blocked_logins(user_id)]


@router.get("/context-data/suspicious", response_model=list[SuspiciousLoginResponse])
def get_suspicious_contexts(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    return [_suspicious_response(s) for s in services.trust.suspicious_logins(user_id)]


@router.delete("/context-data/{record_id}", response_model=MessageResponse)
def delete_context_data(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    services.trust.delete_context_data(record_id, owner=user_id)
    return MessageResponse(message="Data deleted successfully")


@router.patch("/context-data/block/{record_id}", response_model=MessageResponse)
def block_context(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    services.trust.block(record_id, owner=user_id)
    return MessageResponse(message="Blocked successfully")


@router.patch("/context-data/unblock/{record_id}", response_model=MessageResponse)
def unblock_context(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    services.trust.unblock(record_id, owner=user_id)
    return MessageResponse(message="Unblocked successfully")


@router.patch("/context-data/trust/{record_id}", response_model=ContextResponse)
def trust_context(
    record_id: str,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Confirm a suspicious login as the caller's own device."""
    return _context_response(services.trust.trust(record_id, owner=user_id))
