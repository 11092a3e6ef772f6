"""Pydantic models for API request/response serialization.

These mirror the echoguard dataclasses.  Field aliases keep the camelCase
wire names the social client already speaks (``usePerspectiveAPI``,
``reportedPosts``, ...).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Context trust models
# ---------------------------------------------------------------------------


class VerifyRequest(BaseModel):
    """Signin attempt to classify; the fingerprint comes from the request."""

    email: str


class VerifyResponse(BaseModel):
    status: str
    notice: str = ""
    attempts: int = 0


class ContextResponse(BaseModel):
    """Mirrors echoguard.context.models.Context."""

    id: str
    user: str
    email: str = ""
    ip: str = ""
    country: str = ""
    city: str = ""
    browser: str
    platform: str
    os: str
    device: str
    device_type: str = Field(alias="deviceType")
    trusted: bool = False
    created_at: str = Field("", alias="createdAt")

    model_config = {"populate_by_name": True}


class SuspiciousLoginResponse(BaseModel):
    """Mirrors echoguard.context.models.SuspiciousLogin."""

    id: str
    user: str
    email: str = ""
    ip: str = ""
    country: str = ""
    city: str = ""
    browser: str
    platform: str
    os: str
    device: str
    device_type: str = Field(alias="deviceType")
    unverified_attempts: int = Field(0, alias="unverifiedAttempts")
    is_blocked: bool = Field(False, alias="isBlocked")
    created_at: str = Field("", alias="createdAt")
    updated_at: str = Field("", alias="updatedAt")

    model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
    message: str


# ---------------------------------------------------------------------------
# Content moderation models
# ---------------------------------------------------------------------------


class ContentRequest(BaseModel):
    content: str


class ScreenResponse(BaseModel):
    message: str = "Content OK"
    scores: dict[str, float] = Field(default_factory=dict)
    failed_open: bool = Field(False, alias="failedOpen")

    model_config = {"populate_by_name": True}


class CategorizeRequest(BaseModel):
    content: str
    timeout: Optional[int] = Field(None, gt=0, description="Request timeout in ms")


class CategorizeResponse(BaseModel):
    provider: str
    categories: dict[str, float] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class ReportInfo(BaseModel):
    post_id: str = Field(alias="postId")
    community_id: str = Field(alias="communityId")
    report_reason: str = Field("", alias="reportReason")

    model_config = {"populate_by_name": True}


class ReportPostRequest(BaseModel):
    info: ReportInfo


class ReportResponse(BaseModel):
    """Mirrors echoguard.moderation.models.Report."""

    id: str
    post: str
    community: str
    reported_by: list[str] = Field(default_factory=list, alias="reportedBy")
    report_reason: str = Field("", alias="reportReason")
    reasons: dict[str, str] = Field(default_factory=dict)
    created_at: str = Field("", alias="createdAt")

    model_config = {"populate_by_name": True}


class ReportedPostsResponse(BaseModel):
    reported_posts: list[ReportResponse] = Field(default_factory=list, alias="reportedPosts")

    model_config = {"populate_by_name": True}


class BannedUsersResponse(BaseModel):
    community: str
    banned_users: list[str] = Field(default_factory=list, alias="bannedUsers")

    model_config = {"populate_by_name": True}


# ---------------------------------------------------------------------------
# Admin preference models
# ---------------------------------------------------------------------------


class PreferencesResponse(BaseModel):
    """Mirrors echoguard.moderation.models.ModerationConfig."""

    use_perspective_api: bool = Field(alias="usePerspectiveAPI")
    category_filtering_service_provider: str = Field(alias="categoryFilteringServiceProvider")
    category_filtering_request_timeout: int = Field(alias="categoryFilteringRequestTimeout")
    updated_at: str = Field("", alias="updatedAt")

    model_config = {"populate_by_name": True}


class PreferencesUpdateRequest(BaseModel):
    use_perspective_api: Optional[bool] = Field(None, alias="usePerspectiveAPI")
    category_filtering_service_provider: Optional[str] = Field(
        None, alias="categoryFilteringServiceProvider"
    )
    category_filtering_request_timeout: Optional[int] = Field(
        None, alias="categoryFilteringRequestTimeout"
    )

    model_config = {"populate_by_name": True}
