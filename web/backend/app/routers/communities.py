"""Communities router -- reporting posts, moderator review and bans.

Prefix: ``/communities``
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from echoguard.moderation.models import Report
from echoguard.services import Services
from web.backend.app.deps import get_services
from web.backend.app.middleware.auth import get_current_user_id
from web.backend.app.models.api import (
    BannedUsersResponse,
    MessageResponse,
    ReportedPostsResponse,
    ReportPostRequest,
    ReportResponse,
)

router = APIRouter(prefix="/communities", tags=["communities"])


def _report_response(r: Report) -> ReportResponse:
    return ReportResponse(
        id=r.id,
        post=r.post,
        community=r.community,
        reported_by=r.reported_by,
        report_reason=r.report_reason,
        reasons=r.reasons,
        created_at=r.created_at,
    )


@router.post("/report", response_model=MessageResponse)
def report_post(
    body: ReportPostRequest,
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Flag a post.  A second flag from the same user answers 400."""
    info = body.info
    services.reports.report_post(info.post_id, info.community_id, user_id, info.report_reason)
    return MessageResponse(message="Post reported successfully.")


@router.get("/{community_id}/reported-posts", response_model=ReportedPostsResponse)
def get_reported_posts(
    community_id: str,
    _user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    reports = services.reports.reported_posts(community_id)
    return ReportedPostsResponse(reported_posts=[_report_response(r) for r in reports])


@router.get("/reports/mine", response_model=list[ReportResponse])
def get_my_reports(
    user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Reports the caller has filed."""
    return [_report_response(r) for r in services.reports.reports_by_user(user_id)]


@router.delete("/reported-posts/{post_id}", response_model=MessageResponse)
def remove_reported_post(
    post_id: str,
    _user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Clear the reports of a post the moderator has removed."""
    services.reports.remove_reported_post(post_id)
    return MessageResponse(message="Reported post removed successfully")


@router.delete("/reports/{report_id}", response_model=MessageResponse)
def dismiss_report(
    report_id: str,
    _user_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Dismiss a report and keep the post."""
    services.reports.dismiss(report_id)
    return MessageResponse(message="Report dismissed successfully")


@router.post("/{community_id}/ban/{user_id}", response_model=BannedUsersResponse)
def ban_user(
    community_id: str,
    user_id: str,
    _moderator_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    """Ban a user from a community.  Banning twice leaves one entry."""
    banned = services.communities.ban(community_id, user_id)
    return BannedUsersResponse(community=community_id, banned_users=banned)


@router.post("/{community_id}/unban/{user_id}", response_model=BannedUsersResponse)
def unban_user(
    community_id: str,
    user_id: str,
    _moderator_id: str = Depends(get_current_user_id),
    services: Services = Depends(get_services),
):
    banned = services.communities.unban(community_id, user_id)
    return BannedUsersResponse(community=community_id, banned_users=banned)
