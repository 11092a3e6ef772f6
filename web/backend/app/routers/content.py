"""Content router -- toxicity screening and category tagging.

Prefix: ``/content``
"""

from __future__ import annotations

from http import HTTPStatus

from fastapi import APIRouter, Depends

from echoguard.errors import PolicyRejection
from echoguard.moderation.models import RejectionType
from echoguard.services import Services
from web.backend.app.deps import get_services
from web.backend.app.middleware.auth import get_current_user_id
from web.backend.app.models.api import (
    CategorizeRequest,
    CategorizeResponse,
    ContentRequest,
    ScreenResponse,
)

router = APIRouter(prefix="/content", tags=["content"])


@router.post("/screen", response_model=ScreenResponse)
def screen_content(
    body: ContentRequest,
    _user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Gate a post or comment before it is saved.

    Rejected content answers 403 with ``{"type": "inappropriateContent"}``.
    With the fail-closed policy a classifier outage answers 503 with
    ``{"type": "moderationUnavailable"}``.
    """
    result = services.gate.screen(body.content)
    if result.rejection_type == RejectionType.moderation_unavailable.value:
        raise PolicyRejection(
            "Content moderation is temporarily unavailable. Please try again later.",
            code=result.rejection_type,
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        )
    if not result.accepted:
        raise PolicyRejection(
            "Your content was flagged as inappropriate. Please revise it and try again.",
            code=result.rejection_type,
            details={"reason": result.reason} if result.reason else None,
        )
    return ScreenResponse(scores=result.scores, failed_open=result.failed_open)


@router.post("/categorize", response_model=CategorizeResponse)
def categorize_content(
    body: CategorizeRequest,
    _user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Tag content with categories from the configured provider."""
    categories = services.gate.categorize(body.content, body.timeout)
    return CategorizeResponse(
        provider=services.config.get().category_filtering_service_provider,
        categories=categories,
    )
