"""Report aggregation for flagged posts.

One report per post collects every user who flagged it.  Adding a reporter
is an add-to-set under the collection lock, so concurrent identical reports
never duplicate an entry.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from pathlib import Path

from echoguard.errors import NotFoundError, PolicyRejection, ValidationError
from echoguard.moderation.models import Report
from echoguard.storage import JsonCollection, new_id

logger = logging.getLogger(__name__)

ALREADY_REPORTED = "You have already reported this post."


class ReportStore:
    """Storage path: ``<data_dir>/reports.json``."""

    def __init__(self, base_dir: str | Path) -> None:
        self._reports = JsonCollection(base_dir, "reports")

    def report_post(self, post: str, community: str, user: str, reason: str) -> Report:
        """Record *user*'s flag on *post*.

        Raises :class:`PolicyRejection` (``alreadyReported``) if the user has
        flagged this post before.
        """
        if not post or not community or not user:
            raise ValidationError("post, community and user are required to report a post")

        fresh = Report(
            id=new_id(),
            post=post,
            community=community,
            reported_by=[user],
            report_reason=reason,
            reasons={user: reason},
        )
        doc, created = self._reports.insert_if_absent({"post": post}, fresh.to_dict())
        if created:
            logger.info("Post %s reported by %s: %s", post, user, reason)
            return Report.from_dict(doc)

        duplicate = False

        def add_reporter(d: dict) -> None:
            nonlocal duplicate
            reporters = d.setdefault("reported_by", [])
            if user in reporters:
                duplicate = True
                return
            reporters.append(user)
            d.setdefault("reasons", {})[user] = reason

        updated = self._reports.update_one({"post": post}, add_reporter)
        if duplicate:
            raise PolicyRejection(
                ALREADY_REPORTED,
                code="alreadyReported",
                status_code=HTTPStatus.BAD_REQUEST,
            )
        if updated is None:
            # Removed between the two steps: start over with a fresh report.
            return self.report_post(post, community, user, reason)

        logger.info("Post %s reported again by %s (%d reporters)", post, user, len(updated["reported_by"]))
        return Report.from_dict(updated)

    def get_report(self, report_id: str) -> Report:
        doc = self._reports.find_one({"id": report_id})
        if doc is None:
            raise NotFoundError(f"Report '{report_id}' not found")
        return Report.from_dict(doc)

    def report_for_post(self, post: str) -> Report | None:
        doc = self._reports.find_one({"post": post})
        return Report.from_dict(doc) if doc else None

    def reported_posts(self, community: str) -> list[Report]:
        """Reports raised in *community*, newest first."""
        reports = [Report.from_dict(d) for d in self._reports.find({"community": community})]
        reports.sort(key=lambda r: r.created_at, reverse=True)
        return reports

    def reports_by_user(self, user: str) -> list[Report]:
        return [Report.from_dict(d) for d in self._reports.find() if user in d.get("reported_by", [])]

    def remove_reported_post(self, post: str) -> int:
        """Drop every report on *post* after the post itself is removed.

        Succeeds even when the post has no report.
        """
        removed = self._reports.delete_many({"post": post})
        logger.info("Removed %d report(s) for post %s", removed, post)
        return removed

    def dismiss(self, report_id: str) -> None:
        """Dismiss one report, keeping the post."""
        if not self._reports.delete_one({"id": report_id}):
            raise NotFoundError(f"Report '{report_id}' not found")
        logger.info("Report %s dismissed", report_id)
