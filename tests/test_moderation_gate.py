"""Tests for the content moderation gate."""

import tempfile

import pytest

from echoguard.config import Settings
from echoguard.errors import ProviderError, ProviderTimeout, ValidationError
from echoguard.moderation.config_store import ModerationConfigStore
from echoguard.moderation.gate import ModerationGate
from echoguard.moderation.models import RejectionType
from echoguard.moderation.providers import TextRazorProvider, create_category_filter


class FakeClassifier:
    """Returns fixed scores and counts invocations."""

    name = "Fake"

    def __init__(self, scores=None, error=None):
        self.scores = scores or {}
        self.error = error
        self.calls = []

    def analyze(self, text, timeout_ms):
        self.calls.append((text, timeout_ms))
        if self.error is not None:
            raise self.error
        return dict(self.scores)


class FakeProvider:
    def __init__(self, name, categories):
        self.name = name
        self.categories = categories
        self.calls = []

    def get_categories(self, text, timeout_ms):
        self.calls.append((text, timeout_ms))
        return dict(self.categories)


def _gate(tmpdir, classifier=None, toggle=True, providers=None, **kwargs):
    store = ModerationConfigStore(tmpdir)
    store.update(use_perspective_api=toggle)
    return ModerationGate(store, classifier=classifier, providers=providers, **kwargs), store


# --- Toxicity screening ---


def test_toggle_off_accepts_without_calling_classifier():
    with tempfile.TemporaryDirectory() as tmpdir:
        classifier = FakeClassifier({"TOXICITY": 0.99})
        gate, _ = _gate(tmpdir, classifier, toggle=False)
        result = gate.screen("you are awful")
        assert result.accepted
        assert not result.classifier_invoked
        assert classifier.calls == []


def test_toxic_content_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier({"TOXICITY": 0.8, "INSULT": 0.3}))
        result = gate.screen("you are awful")
        assert not result.accepted
        assert result.rejection_type == RejectionType.inappropriate_content.value == "inappropriateContent"
        assert "TOXICITY" in result.reason
        assert result.scores["TOXICITY"] == 0.8


def test_clean_content_is_accepted():
    with tempfile.TemporaryDirectory() as tmpdir:
        classifier = FakeClassifier({"TOXICITY": 0.1})
        gate, _ = _gate(tmpdir, classifier)
        result = gate.screen("have a nice day")
        assert result.accepted
        assert result.classifier_invoked
        assert len(classifier.calls) == 1


def test_score_at_threshold_is_accepted():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier({"TOXICITY": 0.5}))
        assert gate.screen("borderline").accepted


def test_any_monitored_attribute_rejects():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier({"TOXICITY": 0.2, "THREAT": 0.9}))
        result = gate.screen("threatening text")
        assert not result.accepted
        assert "THREAT" in result.reason


def test_unmonitored_attributes_are_ignored():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(
            tmpdir,
            FakeClassifier({"TOXICITY": 0.1, "FLIRTATION": 0.95}),
            monitored_attributes=("TOXICITY",),
        )
        assert gate.screen("hello there").accepted


def test_custom_threshold():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier({"TOXICITY": 0.3}), threshold=0.2)
        assert not gate.screen("mildly rude").accepted


def test_classifier_receives_configured_timeout():
    with tempfile.TemporaryDirectory() as tmpdir:
        classifier = FakeClassifier({"TOXICITY": 0.1})
        gate, store = _gate(tmpdir, classifier)
        store.update(category_filtering_request_timeout=1500)
        gate.screen("hello")
        assert classifier.calls == [("hello", 1500)]


def test_toggle_change_takes_effect_on_next_call():
    with tempfile.TemporaryDirectory() as tmpdir:
        classifier = FakeClassifier({"TOXICITY": 0.9})
        gate, store = _gate(tmpdir, classifier, toggle=False)
        assert gate.screen("awful").accepted
        store.update(use_perspective_api=True)
        assert not gate.screen("awful").accepted


def test_empty_content_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier())
        with pytest.raises(ValidationError):
            gate.screen("   ")


# --- Fail policy ---


def test_fail_open_accepts_on_timeout():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, FakeClassifier(error=ProviderTimeout("slow", provider="Fake")))
        result = gate.screen("hello")
        assert result.accepted
        assert result.failed_open


def test_fail_closed_rejects_on_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(
            tmpdir,
            FakeClassifier(error=ProviderError("down", provider="Fake")),
            fail_policy="closed",
        )
        result = gate.screen("hello")
        assert not result.accepted
        assert result.rejection_type == "moderationUnavailable"


def test_missing_classifier_follows_fail_policy():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir, None, fail_policy="closed")
        assert not gate.screen("hello").accepted


# --- Categorisation ---


def test_categorize_uses_configured_provider():
    with tempfile.TemporaryDirectory() as tmpdir:
        textrazor = FakeProvider("TextRazor", {"Sports": 0.7})
        interface = FakeProvider("InterfaceAPI", {"Politics": 0.9})
        registry = {"TextRazor": textrazor, "InterfaceAPI": interface}
        gate, store = _gate(tmpdir, providers=registry.__getitem__)

        assert gate.categorize("match report") == {"Sports": 0.7}
        assert textrazor.calls == [("match report", 30000)]

        store.update(category_filtering_service_provider="InterfaceAPI")
        assert gate.categorize("election news", timeout_ms=200) == {"Politics": 0.9}
        assert interface.calls == [("election news", 200)]


def test_categorize_without_providers():
    with tempfile.TemporaryDirectory() as tmpdir:
        gate, _ = _gate(tmpdir)
        with pytest.raises(ProviderError):
            gate.categorize("anything")


def test_unknown_provider_falls_back_to_default(caplog):
    with caplog.at_level("WARNING", logger="echoguard"):
        provider = create_category_filter("NoSuchProvider", Settings(textrazor_api_key="k"))
    assert isinstance(provider, TextRazorProvider)
    assert "NoSuchProvider" in caplog.text
