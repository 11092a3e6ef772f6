"""Tests for the moderation configuration record and its cache."""

import tempfile

import pytest

from echoguard.errors import ValidationError
from echoguard.moderation.config_store import CachedConfigProvider, ModerationConfigStore
from echoguard.moderation.providers import PROVIDER_NAMES


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_defaults_when_absent():
    with tempfile.TemporaryDirectory() as tmpdir:
        config = ModerationConfigStore(tmpdir).get()
        assert config.use_perspective_api is False
        assert config.category_filtering_service_provider == "TextRazor"
        assert config.category_filtering_request_timeout == 30000


def test_update_persists_single_record():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationConfigStore(tmpdir)
        store.update(use_perspective_api=True)
        updated = store.update(category_filtering_request_timeout=5000)

        assert updated.use_perspective_api is True
        assert updated.category_filtering_request_timeout == 5000
        assert updated.updated_at

        reopened = ModerationConfigStore(tmpdir).get()
        assert reopened.use_perspective_api is True
        assert reopened.category_filtering_request_timeout == 5000


def test_update_validation():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationConfigStore(tmpdir, provider_names=PROVIDER_NAMES)
        with pytest.raises(ValidationError):
            store.update(bogus=True)
        with pytest.raises(ValidationError):
            store.update(use_perspective_api="yes")
        with pytest.raises(ValidationError):
            store.update(category_filtering_service_provider="Nope")
        with pytest.raises(ValidationError):
            store.update(category_filtering_request_timeout=0)
        assert store.update(category_filtering_service_provider="ClassifierAPI").category_filtering_service_provider == "ClassifierAPI"


def test_cache_serves_stale_until_ttl():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationConfigStore(tmpdir)
        clock = FakeClock()
        cached = CachedConfigProvider(store, ttl=5.0, clock=clock)

        assert cached.get().use_perspective_api is False
        store.update(use_perspective_api=True)  # bypasses the cache
        clock.now = 4.9
        assert cached.get().use_perspective_api is False
        clock.now = 5.0
        assert cached.get().use_perspective_api is True


def test_cache_refreshed_on_write_through_provider():
    with tempfile.TemporaryDirectory() as tmpdir:
        clock = FakeClock()
        cached = CachedConfigProvider(ModerationConfigStore(tmpdir), ttl=60.0, clock=clock)
        cached.get()
        cached.update(use_perspective_api=True)
        assert cached.get().use_perspective_api is True


def test_invalidate():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = ModerationConfigStore(tmpdir)
        cached = CachedConfigProvider(store, ttl=60.0, clock=FakeClock())
        cached.get()
        store.update(use_perspective_api=True)
        cached.invalidate()
        assert cached.get().use_perspective_api is True
