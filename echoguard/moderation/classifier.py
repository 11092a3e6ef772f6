"""Toxicity classification via the Perspective comment-analyzer API."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx

from echoguard.config import DEFAULT_MONITORED_ATTRIBUTES
from echoguard.errors import ProviderError, ProviderTimeout

logger = logging.getLogger(__name__)

PERSPECTIVE_URL = "https://commentanalyzer.googleapis.com/v1alpha1/comments:analyze"


class ToxicityClassifier(Protocol):
    name: str

    def analyze(self, text: str, timeout_ms: int) -> dict[str, float]:
        """Return attribute -> score in ``[0.0, 1.0]``."""
        ...


def request_json(
    client: httpx.Client,
    provider: str,
    method: str,
    url: str,
    timeout_ms: int,
    **kwargs: Any,
) -> Any:
    """Issue one HTTP call and decode its JSON body.

    Timeouts become :class:`ProviderTimeout`; transport errors, non-2xx
    statuses and undecodable bodies become :class:`ProviderError`.
    """
    try:
        resp = client.request(method, url, timeout=timeout_ms / 1000.0, **kwargs)
        resp.raise_for_status()
        return resp.json()
    except httpx.TimeoutException as e:
        raise ProviderTimeout(
            f"{provider} did not answer within {timeout_ms} ms", provider=provider
        ) from e
    except httpx.HTTPStatusError as e:
        raise ProviderError(
            f"{provider} returned HTTP {e.response.status_code}", provider=provider
        ) from e
    except httpx.HTTPError as e:
        raise ProviderError(f"{provider} request failed: {e}", provider=provider) from e
    except ValueError as e:
        raise ProviderError(f"{provider} returned a non-JSON body", provider=provider) from e


class PerspectiveClassifier:
    """Scores text with Google's Perspective API.

    Parameters
    ----------
    api_key : str
        Perspective API key.
    attributes : tuple[str, ...]
        Attributes to request, e.g. ``TOXICITY`` and ``INSULT``.
    client : httpx.Client | None
        Injected HTTP client; one is created when *None*.
    """

    name = "Perspective"

    def __init__(
        self,
        api_key: str,
        attributes: tuple[str, ...] = DEFAULT_MONITORED_ATTRIBUTES,
        client: Optional[httpx.Client] = None,
        url: str = PERSPECTIVE_URL,
    ) -> None:
        self.api_key = api_key
        self.attributes = attributes
        self.url = url
        self._client = client or httpx.Client()

    def analyze(self, text: str, timeout_ms: int) -> dict[str, float]:
        if not self.api_key:
            raise ProviderError("Perspective API key is not configured", provider=self.name)

        body = {
            "comment": {"text": text},
            "languages": ["en"],
            "requestedAttributes": {attr: {} for attr in self.attributes},
        }
        data = request_json(
            self._client,
            self.name,
            "POST",
            self.url,
            timeout_ms,
            params={"key": self.api_key},
            json=body,
        )

        try:
            return {
                attr: float(entry["summaryScore"]["value"])
                for attr, entry in data.get("attributeScores", {}).items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError("Perspective response has no usable scores", provider=self.name) from e
