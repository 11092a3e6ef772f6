"""Storage and cached access for the moderation configuration record.

The record is a singleton: ``moderation_config.json`` holds at most one
document and every write replaces it (last write wins).  Engines receive a
:class:`ConfigProvider` instead of reading the store directly.
"""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from echoguard.errors import ValidationError
from echoguard.moderation.models import ModerationConfig
from echoguard.storage import JsonCollection, utcnow

logger = logging.getLogger(__name__)

_SINGLETON = {"key": "moderation"}


class ConfigProvider(Protocol):
    def get(self) -> ModerationConfig: ...

    def update(self, **changes: Any) -> ModerationConfig: ...


class ModerationConfigStore:
    """Persists the moderation configuration record."""

    def __init__(self, base_dir: str | Path, provider_names: Optional[tuple[str, ...]] = None) -> None:
        self._collection = JsonCollection(base_dir, "moderation_config")
        self._provider_names = provider_names

    def get(self) -> ModerationConfig:
        doc = self._collection.find_one(_SINGLETON)
        return ModerationConfig.from_dict(doc) if doc else ModerationConfig()

    def _validate(self, changes: dict[str, Any]) -> None:
        unknown = set(changes) - set(ModerationConfig.__dataclass_fields__) - {"updated_at"}
        if unknown:
            raise ValidationError(f"Unknown moderation settings: {', '.join(sorted(unknown))}")

        if "use_perspective_api" in changes and not isinstance(changes["use_perspective_api"], bool):
            raise ValidationError("use_perspective_api must be a boolean")

        provider = changes.get("category_filtering_service_provider")
        if provider is not None and self._provider_names and provider not in self._provider_names:
            raise ValidationError(
                f"Unknown category filtering provider '{provider}'",
                details={"allowed": list(self._provider_names)},
            )

        timeout = changes.get("category_filtering_request_timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0):
            raise ValidationError("category_filtering_request_timeout must be a positive integer (ms)")

    def update(self, **changes: Any) -> ModerationConfig:
        """Apply ``changes`` to the record, creating it on first write."""
        changes.pop("updated_at", None)
        self._validate(changes)

        def mutate(d: dict) -> None:
            d.update(changes)
            d["updated_at"] = utcnow()

        doc = self._collection.update_one(_SINGLETON, mutate)
        if doc is None:
            config = ModerationConfig.from_dict({**ModerationConfig().to_dict(), **changes})
            config.updated_at = utcnow()
            doc, created = self._collection.insert_if_absent(_SINGLETON, {**_SINGLETON, **config.to_dict()})
            if not created:
                # Another writer created the record first; apply on top of it.
                doc = self._collection.update_one(_SINGLETON, mutate) or doc

        config = ModerationConfig.from_dict(doc)
        logger.info("Moderation config updated: %s", ", ".join(sorted(changes)) or "no changes")
        return config


class CachedConfigProvider:
    """Serve the config record from memory for ``ttl`` seconds.

    Writes made through :meth:`update` refresh the cache immediately, so a read
    after a write in the same process always observes it.  Writes from other
    processes become visible once the cached copy expires.
    """

    def __init__(
        self,
        store: ModerationConfigStore,
        ttl: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: Optional[ModerationConfig] = None
        self._loaded_at = 0.0

    def get(self) -> ModerationConfig:
        with self._lock:
            now = self._clock()
            if self._cached is None or now - self._loaded_at >= self._ttl:
                self._cached = self._store.get()
                self._loaded_at = now
            return self._cached

    def update(self, **changes: Any) -> ModerationConfig:
        with self._lock:
            config = self._store.update(**changes)
            self._cached = config
            self._loaded_at = self._clock()
            return config

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
