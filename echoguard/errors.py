"""Error taxonomy shared by the trust engine, the moderation gate and the web layer."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Optional


class EchoguardError(Exception):
    """Base class for all echoguard errors.

    ``code`` is the machine-readable type the web layer returns to clients so
    they can branch on it (e.g. ``alreadyReported`` vs ``notFound``).
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "internalError"

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.code, "message": self.message}
        if self.details:
            data["details"] = self.details
        return data

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(EchoguardError):
    """Malformed fingerprint or content input."""

    status_code = HTTPStatus.BAD_REQUEST
    code = "validationError"


class NotFoundError(EchoguardError):
    """A referenced user, post, community or record does not exist."""

    status_code = HTTPStatus.NOT_FOUND
    code = "notFound"


class ConfigurationError(EchoguardError):
    """Settings file or moderation config holds an invalid value."""

    code = "configurationError"


class PersistenceError(EchoguardError):
    """The datastore could not be read or written. Never retried."""

    code = "persistenceError"


class ProviderError(EchoguardError):
    """An external classifier or category provider failed."""

    status_code = HTTPStatus.BAD_GATEWAY
    code = "providerError"

    def __init__(self, message: str, *, provider: str = "", **kwargs: Any) -> None:
        self.provider = provider
        super().__init__(message, **kwargs)


class ProviderTimeout(ProviderError):
    """An external provider did not answer within the configured bound."""

    status_code = HTTPStatus.GATEWAY_TIMEOUT
    code = "providerTimeout"


class PolicyRejection(EchoguardError):
    """Content or a login attempt refused by policy.

    Not a failure of the system: a normal outcome with a specific
    user-visible type and status.
    """

    status_code = HTTPStatus.FORBIDDEN
    code = "policyRejection"
