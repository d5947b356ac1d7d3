"""Tests for dependency classification."""

import pytest

from aurkit.modules.inventory import InventoryError, PackageDB, SyncDBList
from aurkit.modules.resolver import Classification, Resolver

from conftest import make_entry


@pytest.fixture
def resolver(local_db, sync_dbs):
    return Resolver(local_db, sync_dbs)


class BrokenDB(PackageDB):
    def find_satisfier(self, dep):
        raise InventoryError("local database is locked")


def test_newer_constraint_resolves_from_repository():
    local = PackageDB("local", [make_entry("foo", "1.0-1")])
    sync = SyncDBList([PackageDB("core", [make_entry("foo", "1.2-1")])])
    res = Resolver(local, sync).classify(["foo>=1.1"])
    assert res == Classification(satisfied=[], from_repo=["foo"], unresolved=[])


def test_unsatisfiable_constraint_is_unresolved():
    local = PackageDB("local", [make_entry("foo", "1.0-1")])
    sync = SyncDBList([PackageDB("core", [make_entry("foo", "1.2-1")])])
    res = Resolver(local, sync).classify(["foo>=2.0"])
    assert res == Classification(satisfied=[], from_repo=[], unresolved=["foo"])


def test_classification(resolver):
    res = resolver.classify(["foo", "libc.so", "baz>=1.5", "yay>=12", "aur-only"])
    assert res.satisfied == ["foo", "libc.so"]
    assert res.from_repo == ["bar"]
    assert res.unresolved == ["yay", "aur-only"]


def test_baseline_is_skipped(resolver):
    res = resolver.classify(["foo", "aur-only"], baseline=["aur-only"])
    assert res.satisfied == ["foo"]
    assert res.unresolved == []


def test_stable(resolver):
    names = ["foo>=1.1", "baz", "nope", "glibc"]
    assert resolver.classify(names) == resolver.classify(names)


def test_inventory_error_propagates(sync_dbs):
    with pytest.raises(InventoryError):
        Resolver(BrokenDB("local"), sync_dbs).classify(["foo"])


def test_split_by_origin(resolver):
    repo, aur = resolver.split_by_origin(["foo", "tools", "yay", "paru"])
    assert repo == ["foo", "tools"]
    assert aur == ["yay", "paru"]
