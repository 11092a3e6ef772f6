"""Tests for the login-context trust engine."""

import tempfile

import pytest

from echoguard.context.engine import ContextTrustEngine
from echoguard.context.models import Fingerprint, Verdict
from echoguard.context.store import ContextStore
from echoguard.errors import NotFoundError, ValidationError


def _fp(browser: str = "Chrome 120.0", ip: str = "127.0.0.1", **overrides) -> Fingerprint:
    fields = {
        "browser": browser,
        "platform": "Windows",
        "os": "Windows 10",
        "device": "Desktop",
        "device_type": "Desktop",
        "ip": ip,
        "country": "VN",
        "city": "Hanoi",
    }
    fields.update(overrides)
    return Fingerprint(**fields)


def _engine(tmpdir: str, **kwargs) -> tuple[ContextTrustEngine, ContextStore]:
    store = ContextStore(tmpdir)
    return ContextTrustEngine(store, **kwargs), store


# --- Classification ---


def test_first_login_has_no_context_data():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        result = engine.classify("u1", "u1@example.com", _fp())
        assert result.verdict == Verdict.no_context_data
        assert result.context is not None
        assert len(store.list_contexts("u1")) == 1


def test_same_device_matches():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        result = engine.classify("u1", "u1@example.com", _fp())
        assert result.verdict == Verdict.match


def test_match_ignores_network_address_and_location():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp(ip="10.0.0.1"))
        result = engine.classify(
            "u1", "u1@example.com", _fp(ip="203.0.113.9", country="US", city="Austin")
        )
        assert result.verdict == Verdict.match


def test_contexts_are_per_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        result = engine.classify("u2", "u2@example.com", _fp())
        assert result.verdict == Verdict.no_context_data


def test_new_device_escalates_to_block_on_third_attempt():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        engine.classify("u1", "u1@example.com", _fp())

        novel = _fp(browser="Firefox 121.0", ip="1.2.3.4")
        first = engine.classify("u1", "u1@example.com", novel)
        second = engine.classify("u1", "u1@example.com", novel)
        third = engine.classify("u1", "u1@example.com", novel)

        assert first.verdict == Verdict.unverified
        assert first.suspicious.unverified_attempts == 1
        assert second.verdict == Verdict.unverified
        assert second.suspicious.unverified_attempts == 2
        assert third.verdict == Verdict.blocked
        assert third.suspicious.is_blocked

        records = store.list_suspicious("u1")
        assert len(records) == 1
        assert records[0].unverified_attempts == 3


def test_record_with_two_attempts_blocks_on_next():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        store.add_context("u1", "u1@example.com", _fp(browser="chrome 1.0"))
        store.create_suspicious("u1", "u1@example.com", _fp(browser="test 1.0"), attempts=2)

        result = engine.classify("u1", "u1@example.com", _fp(browser="test 1.0"))
        assert result.verdict == Verdict.blocked


def test_blocked_fingerprint_stays_blocked_and_counter_stops():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        novel = _fp(browser="Edge 120.0")
        for _ in range(3):
            engine.classify("u1", "u1@example.com", novel)

        result = engine.classify("u1", "u1@example.com", novel)
        assert result.verdict == Verdict.blocked
        assert store.find_suspicious("u1", novel).unverified_attempts == 3


def test_distinct_novel_devices_are_tracked_separately():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        engine.classify("u1", "u1@example.com", _fp(browser="Firefox 121.0"))
        engine.classify("u1", "u1@example.com", _fp(browser="Safari 17.0"))
        assert len(store.list_suspicious("u1")) == 2


def test_custom_attempt_limit():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir, max_unverified_attempts=1)
        engine.classify("u1", "u1@example.com", _fp())
        result = engine.classify("u1", "u1@example.com", _fp(browser="Opera 100.0"))
        assert result.verdict == Verdict.blocked


def test_missing_user_is_rejected():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        with pytest.raises(ValidationError):
            engine.classify("", "x@example.com", _fp())


def test_fingerprint_requires_identity_fields():
    with pytest.raises(ValidationError):
        _fp(browser="")


# --- Administrative actions ---


def _suspicious(engine: ContextTrustEngine, user: str = "u1"):
    engine.classify(user, f"{user}@example.com", _fp())
    return engine.classify(user, f"{user}@example.com", _fp(browser="Firefox 90.0")).suspicious


def test_block_and_unblock_are_idempotent():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        record = _suspicious(engine)

        assert engine.block(record.id).is_blocked
        assert engine.block(record.id).is_blocked
        assert not engine.unblock(record.id).is_blocked
        assert not engine.unblock(record.id).is_blocked


def test_admin_block_ignores_counter():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        record = _suspicious(engine)
        assert record.unverified_attempts == 1
        engine.block(record.id)
        result = engine.classify("u1", "u1@example.com", _fp(browser="Firefox 90.0"))
        assert result.verdict == Verdict.blocked


def test_unblock_keeps_counter_and_reblocks_on_next_mismatch():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        engine.classify("u1", "u1@example.com", _fp())
        novel = _fp(browser="Firefox 90.0")
        for _ in range(3):
            record = engine.classify("u1", "u1@example.com", novel).suspicious

        unblocked = engine.unblock(record.id)
        assert unblocked.unverified_attempts == 3
        assert not unblocked.is_blocked

        result = engine.classify("u1", "u1@example.com", novel)
        assert result.verdict == Verdict.blocked
        assert result.suspicious.unverified_attempts == 4


def test_unknown_record_raises_not_found():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        with pytest.raises(NotFoundError):
            engine.block("missing")
        with pytest.raises(NotFoundError):
            engine.unblock("missing")
        with pytest.raises(NotFoundError):
            engine.delete_context_data("missing")


def test_owner_cannot_touch_other_users_records():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        record = _suspicious(engine, "u1")
        with pytest.raises(NotFoundError):
            engine.block(record.id, owner="u2")
        with pytest.raises(NotFoundError):
            engine.delete_context_data(record.id, owner="u2")


def test_trust_promotes_fingerprint_and_removes_record():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        record = _suspicious(engine)

        context = engine.trust(record.id)
        assert context.trusted
        assert store.get_suspicious(record.id) is None
        assert [c.id for c in engine.trusted_contexts("u1")] == [context.id]

        result = engine.classify("u1", "u1@example.com", _fp(browser="Firefox 90.0"))
        assert result.verdict == Verdict.match


# --- Queries ---


def test_primary_trusted_and_blocked_views():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        first = engine.classify("u1", "u1@example.com", _fp()).context

        assert engine.primary_context("u1").id == first.id
        assert engine.trusted_contexts("u1") == []
        assert engine.blocked_logins("u1") == []

        record = engine.classify("u1", "u1@example.com", _fp(browser="Firefox 90.0")).suspicious
        engine.block(record.id)
        assert [r.id for r in engine.blocked_logins("u1")] == [record.id]


def test_primary_context_missing():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, _ = _engine(tmpdir)
        with pytest.raises(NotFoundError):
            engine.primary_context("nobody")


def test_delete_context_data_handles_both_kinds():
    with tempfile.TemporaryDirectory() as tmpdir:
        engine, store = _engine(tmpdir)
        context = engine.classify("u1", "u1@example.com", _fp()).context
        record = engine.classify("u1", "u1@example.com", _fp(browser="Firefox 90.0")).suspicious

        engine.delete_context_data(record.id, owner="u1")
        engine.delete_context_data(context.id, owner="u1")
        assert store.list_suspicious("u1") == []
        assert store.list_contexts("u1") == []
