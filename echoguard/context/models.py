"""Data models for login-context tracking."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from echoguard.errors import ValidationError


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Verdict(str, Enum):
    """Outcome of classifying a signin attempt."""

    no_context_data = "no_context_data"
    match = "match"
    unverified = "unverified"
    blocked = "blocked"

    @property
    def allows_login(self) -> bool:
        return self is not Verdict.blocked


# Fields compared when deciding whether two fingerprints are the same device.
IDENTITY_FIELDS = ("browser", "platform", "os", "device", "device_type")


@dataclass(frozen=True)
class Fingerprint:
    """Device and network fingerprint of one authentication attempt.

    ``ip``, ``country`` and ``city`` are informative only: dynamic addresses
    make them unreliable for matching.
    """

    browser: str
    platform: str
    os: str
    device: str
    device_type: str
    ip: str = ""
    country: str = "Unknown"
    city: str = "Unknown"

    def __post_init__(self) -> None:
        missing = [f for f in IDENTITY_FIELDS if not str(getattr(self, f) or "").strip()]
        if missing:
            raise ValidationError(
                f"Fingerprint is missing fields: {', '.join(missing)}",
                details={"missing": missing},
            )

    def identity(self) -> dict[str, str]:
        return {f: getattr(self, f) for f in IDENTITY_FIELDS}

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "Fingerprint":
        return cls(
            browser=d.get("browser", ""),
            platform=d.get("platform", ""),
            os=d.get("os", ""),
            device=d.get("device", ""),
            device_type=d.get("device_type", ""),
            ip=d.get("ip", ""),
            country=d.get("country", "Unknown"),
            city=d.get("city", "Unknown"),
        )


@dataclass
class Context:
    """A fingerprint accepted as belonging to a user.

    The first context recorded for a user is its primary context.  ``trusted``
    marks contexts promoted from a suspicious login by explicit confirmation.
    """

    id: str
    user: str
    email: str
    fingerprint: Fingerprint
    trusted: bool = False
    created_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()

    def to_dict(self) -> dict:
        d = {"id": self.id, "user": self.user, "email": self.email}
        d.update(self.fingerprint.to_dict())
        d["trusted"] = self.trusted
        d["created_at"] = self.created_at
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "Context":
        return cls(
            id=d["id"],
            user=d["user"],
            email=d.get("email", ""),
            fingerprint=Fingerprint.from_dict(d),
            trusted=d.get("trusted", False),
            created_at=d.get("created_at", ""),
        )


@dataclass
class SuspiciousLogin:
    """A fingerprint that did not match any trusted context of its user."""

    id: str
    user: str
    email: str
    fingerprint: Fingerprint
    unverified_attempts: int = 0
    is_blocked: bool = False
    created_at: str = ""
    updated_at: str = ""

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = _now()
        if not self.updated_at:
            self.updated_at = self.created_at

    def to_dict(self) -> dict:
        d = {"id": self.id, "user": self.user, "email": self.email}
        d.update(self.fingerprint.to_dict())
        d.update(
            unverified_attempts=self.unverified_attempts,
            is_blocked=self.is_blocked,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "SuspiciousLogin":
        return cls(
            id=d["id"],
            user=d["user"],
            email=d.get("email", ""),
            fingerprint=Fingerprint.from_dict(d),
            unverified_attempts=d.get("unverified_attempts", 0),
            is_blocked=d.get("is_blocked", False),
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
        )


@dataclass
class Classification:
    """Verdict plus the records touched while reaching it."""

    verdict: Verdict
    context: Optional[Context] = None
    suspicious: Optional[SuspiciousLogin] = None
