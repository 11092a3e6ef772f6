"""Persistence for login contexts and suspicious logins.

Storage path: ``<data_dir>/`` with:
- ``contexts.json`` -- accepted fingerprints, one list per deployment
- ``suspicious_logins.json`` -- unmatched fingerprints under escalation
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from echoguard.context.models import Context, Fingerprint, SuspiciousLogin
from echoguard.storage import JsonCollection, new_id, utcnow


def _identity_filter(user: str, fingerprint: Fingerprint) -> dict:
    flt = {"user": user}
    flt.update(fingerprint.identity())
    return flt


class ContextStore:
    """Document store for :class:`Context` and :class:`SuspiciousLogin`."""

    def __init__(self, base_dir: str | Path) -> None:
        self._contexts = JsonCollection(base_dir, "contexts")
        self._suspicious = JsonCollection(base_dir, "suspicious_logins")

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    def list_contexts(self, user: str) -> list[Context]:
        docs = self._contexts.find({"user": user})
        docs.sort(key=lambda d: d.get("created_at", ""))
        return [Context.from_dict(d) for d in docs]

    def has_contexts(self, user: str) -> bool:
        return self._contexts.find_one({"user": user}) is not None

    def find_matching_context(self, user: str, fingerprint: Fingerprint) -> Optional[Context]:
        doc = self._contexts.find_one(_identity_filter(user, fingerprint))
        return Context.from_dict(doc) if doc else None

    def add_context(
        self, user: str, email: str, fingerprint: Fingerprint, trusted: bool = False
    ) -> Context:
        context = Context(id=new_id(), user=user, email=email, fingerprint=fingerprint, trusted=trusted)
        self._contexts.insert(context.to_dict())
        return context

    def get_context(self, context_id: str) -> Optional[Context]:
        doc = self._contexts.find_one({"id": context_id})
        return Context.from_dict(doc) if doc else None

    def delete_context(self, context_id: str) -> bool:
        return self._contexts.delete_one({"id": context_id})

    # ------------------------------------------------------------------
    # Suspicious logins
    # ------------------------------------------------------------------

    def list_suspicious(self, user: str, blocked: Optional[bool] = None) -> list[SuspiciousLogin]:
        flt: dict = {"user": user}
        if blocked is not None:
            flt["is_blocked"] = blocked
        return [SuspiciousLogin.from_dict(d) for d in self._suspicious.find(flt)]

    def get_suspicious(self, suspicious_id: str) -> Optional[SuspiciousLogin]:
        doc = self._suspicious.find_one({"id": suspicious_id})
        return SuspiciousLogin.from_dict(doc) if doc else None

    def find_suspicious(self, user: str, fingerprint: Fingerprint) -> Optional[SuspiciousLogin]:
        doc = self._suspicious.find_one(_identity_filter(user, fingerprint))
        return SuspiciousLogin.from_dict(doc) if doc else None

    def create_suspicious(
        self, user: str, email: str, fingerprint: Fingerprint, attempts: int = 1
    ) -> tuple[SuspiciousLogin, bool]:
        """Insert a record for (user, fingerprint) unless one already exists.

        Returns ``(record, created)``.  Two concurrent first sightings of the
        same fingerprint yield one record; the loser gets ``created=False``.
        """
        record = SuspiciousLogin(
            id=new_id(),
            user=user,
            email=email,
            fingerprint=fingerprint,
            unverified_attempts=attempts,
        )
        doc, created = self._suspicious.insert_if_absent(
            _identity_filter(user, fingerprint), record.to_dict()
        )
        return SuspiciousLogin.from_dict(doc), created

    def register_attempt(
        self, suspicious_id: str, block_at: int, fingerprint: Fingerprint
    ) -> Optional[SuspiciousLogin]:
        """Atomically bump the attempt counter and block at ``block_at``.

        The latest ip/geo replace the stored ones; identity fields are left as is.
        """

        def mutate(d: dict) -> None:
            d["unverified_attempts"] = d.get("unverified_attempts", 0) + 1
            if d["unverified_attempts"] >= block_at:
                d["is_blocked"] = True
            d["ip"] = fingerprint.ip
            d["country"] = fingerprint.country
            d["city"] = fingerprint.city
            d["updated_at"] = utcnow()

        doc = self._suspicious.update_one({"id": suspicious_id}, mutate)
        return SuspiciousLogin.from_dict(doc) if doc else None

    def set_blocked(self, suspicious_id: str, blocked: bool) -> Optional[SuspiciousLogin]:
        return self._update_suspicious(suspicious_id, lambda d: d.update(is_blocked=blocked))

    def delete_suspicious(self, suspicious_id: str) -> bool:
        return self._suspicious.delete_one({"id": suspicious_id})

    def _update_suspicious(
        self, suspicious_id: str, mutate: Callable[[dict], None]
    ) -> Optional[SuspiciousLogin]:
        def wrapped(d: dict) -> None:
            mutate(d)
            d["updated_at"] = utcnow()

        doc = self._suspicious.update_one({"id": suspicious_id}, wrapped)
        return SuspiciousLogin.from_dict(doc) if doc else None
