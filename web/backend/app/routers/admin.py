"""Admin router -- moderation preferences.

Prefix: ``/admin``
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from echoguard.moderation.models import ModerationConfig
from echoguard.services import Services
from web.backend.app.deps import get_services
from web.backend.app.middleware.auth import require_admin
from web.backend.app.models.api import PreferencesResponse, PreferencesUpdateRequest

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _preferences_response(cfg: ModerationConfig) -> PreferencesResponse:
    return PreferencesResponse(**cfg.to_dict())


@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences(services: Services = Depends(get_services)):
    """Return the live moderation configuration."""
    return _preferences_response(services.config.get())


@router.put("/preferences", response_model=PreferencesResponse)
def update_preferences(
    body: PreferencesUpdateRequest,
    services: Services = Depends(get_services),
):
    """Update the moderation configuration.  Omitted fields are left unchanged."""
    changes = body.model_dump(exclude_none=True)
    return _preferences_response(services.config.update(**changes))
