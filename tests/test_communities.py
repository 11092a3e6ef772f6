"""Tests for community ban lists."""

import tempfile

import pytest

from echoguard.errors import ValidationError
from echoguard.moderation.communities import CommunityModerationStore


def test_ban_adds_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = CommunityModerationStore(tmpdir)
        assert store.ban("c1", "u1") == ["u1"]
        assert store.ban("c1", "u2") == ["u1", "u2"]
        assert store.is_banned("c1", "u1")
        assert not store.is_banned("c2", "u1")


def test_ban_twice_keeps_single_entry():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = CommunityModerationStore(tmpdir)
        store.ban("c1", "u1")
        assert store.ban("c1", "u1") == ["u1"]
        assert store.banned_users("c1") == ["u1"]


def test_unban_removes_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = CommunityModerationStore(tmpdir)
        store.ban("c1", "u1")
        store.ban("c1", "u2")
        assert store.unban("c1", "u1") == ["u2"]
        assert not store.is_banned("c1", "u1")


def test_unban_when_not_banned():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = CommunityModerationStore(tmpdir)
        assert store.unban("c1", "u1") == []
        store.ban("c1", "u2")
        assert store.unban("c1", "u1") == ["u2"]


def test_bans_survive_reopen():
    with tempfile.TemporaryDirectory() as tmpdir:
        CommunityModerationStore(tmpdir).ban("c1", "u1")
        assert CommunityModerationStore(tmpdir).banned_users("c1") == ["u1"]


def test_ban_requires_community_and_user():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = CommunityModerationStore(tmpdir)
        with pytest.raises(ValidationError):
            store.ban("", "u1")
        with pytest.raises(ValidationError):
            store.unban("c1", "")
