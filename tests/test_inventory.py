"""Tests for the in-memory package databases."""

import pytest

from aurkit.modules.inventory import (
    InstallReason,
    PackageDB,
    orphans,
    statistics,
)
from aurkit.modules.version import FormatError

from conftest import make_entry


class TestPackageDB:
    def test_find_satisfier_by_name(self, local_db):
        assert local_db.find_satisfier("foo>=1.0").name == "foo"
        assert local_db.find_satisfier("foo>=1.1") is None

    def test_find_satisfier_by_provide(self, local_db):
        assert local_db.find_satisfier("libc.so").name == "glibc"

    def test_invalid_dependency(self, local_db):
        with pytest.raises(FormatError):
            local_db.find_satisfier(">=1.0")

    def test_invalid_dependency_in_sync(self, sync_dbs):
        with pytest.raises(FormatError):
            sync_dbs.find_satisfier("foo=>1.0")

    def test_reverse_dependents(self):
        db = PackageDB("local", [
            make_entry("a", "1", depends=["b>=1", "sh"]),
            make_entry("b", "1"),
            make_entry("bash", "5", provides=["sh"]),
        ])
        assert db.reverse_dependents("b") == ["a"]
        assert db.reverse_dependents("bash") == ["a"]
        assert db.reverse_dependents("a") == []

    def test_group_members(self, sync_dbs):
        assert [e.name for e in sync_dbs.group_members("tools")] == ["bar", "qux"]


class TestSyncDBList:
    def test_lookup_first_repository_wins(self, sync_dbs):
        repo, entry = sync_dbs.lookup("foo")
        assert repo == "core"
        assert entry.version == "1.2-1"
        assert sync_dbs.lookup("nope") is None

    def test_name_match_beats_provider(self, sync_dbs):
        assert sync_dbs.find_satisfier("baz").name in ("bar", "qux")
        assert sync_dbs.find_satisfier("bar").name == "bar"

    def test_versioned_provider(self, sync_dbs):
        assert sync_dbs.find_satisfier("baz>=1.5").name == "bar"

    def test_later_repository_satisfies(self, sync_dbs):
        assert sync_dbs.find_satisfier("foo>=5").repository == "extra"


class TestReports:
    def test_statistics(self, local_db):
        st = statistics(local_db)
        assert st["total"] == 3
        assert st["explicit"] == 2
        assert st["depend"] == 1
        assert st["foreign"] == 1

    def test_orphans(self):
        db = PackageDB("local", [
            make_entry("app", "1", depends=["lib"]),
            make_entry("lib", "1", reason=InstallReason.DEPEND),
            make_entry("stale", "1", reason=InstallReason.DEPEND),
        ])
        assert [e.name for e in orphans(db)] == ["stale"]
