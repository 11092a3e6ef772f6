"""Data models for content moderation and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class FailPolicy(str, Enum):
    """What the gate does when the toxicity classifier is unavailable."""

    open = "open"  # accept, log the failure
    closed = "closed"  # reject as moderationUnavailable


class RejectionType(str, Enum):
    inappropriate_content = "inappropriateContent"
    moderation_unavailable = "moderationUnavailable"


@dataclass
class ModerationConfig:
    """The single, admin-editable moderation configuration record."""

    use_perspective_api: bool = False
    category_filtering_service_provider: str = "TextRazor"
    category_filtering_request_timeout: int = 30000  # milliseconds
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "use_perspective_api": self.use_perspective_api,
            "category_filtering_service_provider": self.category_filtering_service_provider,
            "category_filtering_request_timeout": self.category_filtering_request_timeout,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ModerationConfig":
        return cls(
            use_perspective_api=bool(d.get("use_perspective_api", False)),
            category_filtering_service_provider=d.get("category_filtering_service_provider", "TextRazor"),
            category_filtering_request_timeout=int(d.get("category_filtering_request_timeout", 30000)),
            updated_at=d.get("updated_at", ""),
        )


@dataclass
class ScreenResult:
    """Outcome of screening one piece of content."""

    accepted: bool
    rejection_type: str = ""
    reason: str = ""
    scores: dict[str, float] = field(default_factory=dict)
    classifier_invoked: bool = False
    failed_open: bool = False


@dataclass
class Report:
    """All flags raised against one post.

    ``report_reason`` is the reason given by the first reporter; ``reasons``
    keeps every reporter's own reason.
    """

    id: str
    post: str
    community: str
    reported_by: list[str] = field(default_factory=list)
    report_reason: str = ""
    reasons: dict[str, str] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "post": self.post,
            "community": self.community,
            "reported_by": list(self.reported_by),
            "report_reason": self.report_reason,
            "reasons": dict(self.reasons),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Report":
        return cls(
            id=d["id"],
            post=d["post"],
            community=d.get("community", ""),
            reported_by=list(d.get("reported_by", [])),
            report_reason=d.get("report_reason", ""),
            reasons=dict(d.get("reasons") or {}),
            created_at=d.get("created_at", ""),
        )
