"""Category-filter providers.

Each provider maps text to ``{category: score}`` through a different external
API.  The gate never branches on provider names: it looks the configured
identifier up in :data:`PROVIDERS` and falls back to
:data:`DEFAULT_PROVIDER` for identifiers it does not know.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

import httpx

from echoguard.config import Settings
from echoguard.errors import ProviderError
from echoguard.moderation.classifier import request_json

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "TextRazor"

TEXTRAZOR_URL = "https://api.textrazor.com/"
INTERFACE_API_URL = "https://api-inference.huggingface.co/models/facebook/bart-large-mnli"
CLASSIFIER_API_URL = "https://api.uclassify.com/v1/uclassify/topics/classify"

# Candidate labels for the zero-shot InterfaceAPI model.
DEFAULT_LABELS = (
    "Spam",
    "Advertising",
    "Politics",
    "Violence",
    "Adult",
    "Health",
    "Sports",
    "Technology",
)


class CategoryFilterProvider(Protocol):
    name: str

    def get_categories(self, text: str, timeout_ms: int) -> dict[str, float]: ...


class TextRazorProvider:
    """TextRazor media-topic classification."""

    name = "TextRazor"

    def __init__(self, api_key: str, client: Optional[httpx.Client] = None, url: str = TEXTRAZOR_URL) -> None:
        self.api_key = api_key
        self.url = url
        self._client = client or httpx.Client()

    def get_categories(self, text: str, timeout_ms: int) -> dict[str, float]:
        data = request_json(
            self._client,
            self.name,
            "POST",
            self.url,
            timeout_ms,
            headers={"x-textrazor-key": self.api_key},
            data={
                "text": text,
                "extractors": "entities,topics",
                "classifiers": "textrazor_mediatopics_2023Q1",
            },
        )
        try:
            categories = data["response"].get("categories", [])
            return {c["label"]: float(c["score"]) for c in categories}
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError("TextRazor response has no categories", provider=self.name) from e


class InterfaceAPIProvider:
    """Zero-shot classification through the Hugging Face inference API."""

    name = "InterfaceAPI"

    def __init__(
        self,
        api_key: str,
        client: Optional[httpx.Client] = None,
        url: str = INTERFACE_API_URL,
        labels: tuple[str, ...] = DEFAULT_LABELS,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.labels = labels
        self._client = client or httpx.Client()

    def get_categories(self, text: str, timeout_ms: int) -> dict[str, float]:
        data = request_json(
            self._client,
            self.name,
            "POST",
            self.url,
            timeout_ms,
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "inputs": text,
                "parameters": {"candidate_labels": list(self.labels), "multi_label": True},
            },
        )
        try:
            return {label: float(score) for label, score in zip(data["labels"], data["scores"])}
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError("InterfaceAPI response has no labels", provider=self.name) from e


class ClassifierAPIProvider:
    """uClassify-style topic classifier."""

    name = "ClassifierAPI"

    def __init__(self, api_key: str, client: Optional[httpx.Client] = None, url: str = CLASSIFIER_API_URL) -> None:
        self.api_key = api_key
        self.url = url
        self._client = client or httpx.Client()

    def get_categories(self, text: str, timeout_ms: int) -> dict[str, float]:
        data = request_json(
            self._client,
            self.name,
            "POST",
            self.url,
            timeout_ms,
            headers={"Authorization": f"Token {self.api_key}"},
            json={"texts": [text]},
        )
        try:
            first = data[0] if isinstance(data, list) else data
            return {c["className"]: float(c["p"]) for c in first["classification"]}
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError("ClassifierAPI response has no classification", provider=self.name) from e


ProviderFactory = Callable[[Settings, Optional[httpx.Client]], CategoryFilterProvider]

PROVIDERS: dict[str, ProviderFactory] = {
    "TextRazor": lambda s, c: TextRazorProvider(s.textrazor_api_key, client=c),
    "InterfaceAPI": lambda s, c: InterfaceAPIProvider(s.interface_api_key, client=c),
    "ClassifierAPI": lambda s, c: ClassifierAPIProvider(s.classifier_api_key, client=c),
}

PROVIDER_NAMES = tuple(PROVIDERS)


def create_category_filter(
    name: str,
    settings: Settings,
    client: Optional[httpx.Client] = None,
) -> CategoryFilterProvider:
    """Return the provider registered under *name*, or the default one."""
    factory = PROVIDERS.get(name)
    if factory is None:
        logger.warning("Unknown category filter provider %r, using %s", name, DEFAULT_PROVIDER)
        factory = PROVIDERS[DEFAULT_PROVIDER]
    return factory(settings, client)
