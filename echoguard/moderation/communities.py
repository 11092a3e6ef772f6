"""Community moderation: banning users from a community.

Storage path: ``<data_dir>/community_bans.json``, one document per community
holding its ``banned_users`` set.  Ban and unban are add-to-set and
remove-from-set updates, so repeating either leaves the same state.
"""

from __future__ import annotations

import logging
from pathlib import Path

from echoguard.errors import ValidationError
from echoguard.storage import JsonCollection, new_id, utcnow

logger = logging.getLogger(__name__)


class CommunityModerationStore:
    """Per-community ban lists."""

    def __init__(self, base_dir: str | Path) -> None:
        self._bans = JsonCollection(base_dir, "community_bans")

    @staticmethod
    def _check(community: str, user: str) -> None:
        if not community or not user:
            raise ValidationError("community and user are required")

    def banned_users(self, community: str) -> list[str]:
        doc = self._bans.find_one({"community": community})
        return list(doc.get("banned_users", [])) if doc else []

    def is_banned(self, community: str, user: str) -> bool:
        return user in self.banned_users(community)

    def ban(self, community: str, user: str) -> list[str]:
        """Add *user* to the community's ban list.  Returns the updated list."""
        self._check(community, user)

        def add(d: dict) -> None:
            banned = d.setdefault("banned_users", [])
            if user not in banned:
                banned.append(user)
            d["updated_at"] = utcnow()

        doc = self._bans.update_one({"community": community}, add)
        if doc is None:
            doc, created = self._bans.insert_if_absent(
                {"community": community},
                {"id": new_id(), "community": community, "banned_users": [user], "updated_at": utcnow()},
            )
            if not created:
                doc = self._bans.update_one({"community": community}, add) or doc

        logger.info("User %s banned from community %s", user, community)
        return list(doc["banned_users"])

    def unban(self, community: str, user: str) -> list[str]:
        """Remove *user* from the ban list.  Unbanning a user who is not banned succeeds."""
        self._check(community, user)

        def remove(d: dict) -> None:
            d["banned_users"] = [u for u in d.get("banned_users", []) if u != user]
            d["updated_at"] = utcnow()

        doc = self._bans.update_one({"community": community}, remove)
        logger.info("User %s unbanned from community %s", user, community)
        return list(doc["banned_users"]) if doc else []
