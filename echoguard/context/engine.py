"""Contextual trust engine for signin attempts.

Classifies a login fingerprint against the user's stored contexts:

- no stored context at all: ``no_context_data``; the fingerprint becomes the
  user's primary context
- a stored context with the same device identity: ``match``
- anything else is tracked as a suspicious login; each repeat bumps its
  counter and the attempt that reaches ``max_unverified_attempts`` blocks it

A blocked fingerprint stays blocked until an administrator unblocks it.
Unblocking keeps the counter, so the next mismatch from it re-blocks at once.
"""

from __future__ import annotations

import logging
from typing import Optional

from echoguard.config import MAX_UNVERIFIED_ATTEMPTS
from echoguard.context.models import Classification, Context, Fingerprint, SuspiciousLogin, Verdict
from echoguard.context.store import ContextStore
from echoguard.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ContextTrustEngine:
    """Stateless classifier over a :class:`ContextStore`."""

    def __init__(self, store: ContextStore, max_unverified_attempts: int = MAX_UNVERIFIED_ATTEMPTS) -> None:
        if max_unverified_attempts < 1:
            raise ValueError("max_unverified_attempts must be at least 1")
        self._store = store
        self.max_unverified_attempts = max_unverified_attempts

    # -- classification ------------------------------------------------------

    def classify(self, user: str, email: str, fingerprint: Fingerprint) -> Classification:
        """Classify one signin attempt and apply the escalation side effects."""
        if not user:
            raise ValidationError("A user reference is required")

        if not self._store.has_contexts(user):
            context = self._store.add_context(user, email, fingerprint)
            logger.info("First login context recorded for user %s (%s)", user, fingerprint.browser)
            return Classification(Verdict.no_context_data, context=context)

        context = self._store.find_matching_context(user, fingerprint)
        if context is not None:
            logger.debug("Login context match for user %s", user)
            return Classification(Verdict.match, context=context)

        return self._escalate(user, email, fingerprint)

    def _escalate(self, user: str, email: str, fingerprint: Fingerprint) -> Classification:
        record, created = self._store.create_suspicious(user, email, fingerprint)
        if not created:
            if record.is_blocked:
                logger.warning("Blocked login context used again by user %s from %s", user, fingerprint.ip)
                return Classification(Verdict.blocked, suspicious=record)
            updated = self._store.register_attempt(record.id, self.max_unverified_attempts, fingerprint)
            if updated is None:
                # Deleted by an administrator between the lookup and the update.
                record, _ = self._store.create_suspicious(user, email, fingerprint)
            else:
                record = updated

        if record.is_blocked or record.unverified_attempts >= self.max_unverified_attempts:
            if not record.is_blocked:
                record = self._store.set_blocked(record.id, True) or record
            logger.warning(
                "Login context blocked for user %s after %d unverified attempts (%s, %s)",
                user,
                record.unverified_attempts,
                fingerprint.browser,
                fingerprint.ip,
            )
            return Classification(Verdict.blocked, suspicious=record)

        logger.info(
            "Unverified login context for user %s, attempt %d of %d",
            user,
            record.unverified_attempts,
            self.max_unverified_attempts,
        )
        return Classification(Verdict.unverified, suspicious=record)

    # -- administrative actions ---------------------------------------------
    #
    # ``owner`` restricts an action to records of that user; records of other
    # users are reported as missing.

    def _require_suspicious(self, suspicious_id: str, owner: Optional[str] = None) -> SuspiciousLogin:
        record = self._store.get_suspicious(suspicious_id)
        if record is None or (owner is not None and record.user != owner):
            raise NotFoundError(f"Suspicious login '{suspicious_id}' not found")
        return record

    def block(self, suspicious_id: str, owner: Optional[str] = None) -> SuspiciousLogin:
        """Block a suspicious login regardless of its counter.  Idempotent."""
        record = self._require_suspicious(suspicious_id, owner)
        if record.is_blocked:
            return record
        updated = self._store.set_blocked(suspicious_id, True)
        if updated is None:
            raise NotFoundError(f"Suspicious login '{suspicious_id}' not found")
        logger.info("Suspicious login %s blocked", suspicious_id)
        return updated

    def unblock(self, suspicious_id: str, owner: Optional[str] = None) -> SuspiciousLogin:
        """Lift a block.  The attempt counter is kept.  Idempotent."""
        record = self._require_suspicious(suspicious_id, owner)
        if not record.is_blocked:
            return record
        updated = self._store.set_blocked(suspicious_id, False)
        if updated is None:
            raise NotFoundError(f"Suspicious login '{suspicious_id}' not found")
        logger.info("Suspicious login %s unblocked", suspicious_id)
        return updated

    def trust(self, suspicious_id: str, owner: Optional[str] = None) -> Context:
        """Promote a suspicious fingerprint into a trusted context.

        The suspicious record is deleted; its fingerprint matches from now on.
        """
        record = self._require_suspicious(suspicious_id, owner)
        context = self._store.find_matching_context(record.user, record.fingerprint)
        if context is None:
            context = self._store.add_context(record.user, record.email, record.fingerprint, trusted=True)
        self._store.delete_suspicious(suspicious_id)
        logger.info("Suspicious login %s promoted to trusted context %s", suspicious_id, context.id)
        return context

    # -- queries --------------------------------------------------------------

    def primary_context(self, user: str) -> Context:
        contexts = self._store.list_contexts(user)
        if not contexts:
            raise NotFoundError(f"No login context recorded for user '{user}'")
        return contexts[0]

    def trusted_contexts(self, user: str) -> list[Context]:
        return [c for c in self._store.list_contexts(user) if c.trusted]

    def blocked_logins(self, user: str) -> list[SuspiciousLogin]:
        return self._store.list_suspicious(user, blocked=True)

    def suspicious_logins(self, user: str) -> list[SuspiciousLogin]:
        return self._store.list_suspicious(user)

    def delete_context_data(self, record_id: str, owner: Optional[str] = None) -> None:
        """Delete a context or a suspicious login by id."""
        context = self._store.get_context(record_id)
        if context is not None and (owner is None or context.user == owner):
            self._store.delete_context(record_id)
            logger.info("Login context %s deleted", record_id)
            return

        record = self._store.get_suspicious(record_id)
        if record is not None and (owner is None or record.user == owner):
            self._store.delete_suspicious(record_id)
            logger.info("Suspicious login %s deleted", record_id)
            return

        raise NotFoundError(f"Context data '{record_id}' not found")
