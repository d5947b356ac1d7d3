"""Tests for the libalpm backend, with a fake handle in place of the real databases."""

import os

import pytest

pyalpm = pytest.importorskip("pyalpm")
pytest.importorskip("pycman")

from aurkit.modules.alpm import PacmanBackend, entry_from_package, option_list, strip_comments  # noqa: E402
from aurkit.modules.inventory import InstallReason, InventoryError, Origin  # noqa: E402

PACMAN_CONF = """\
# pacman.conf
[options]
HoldPkg     = pacman glibc
IgnorePkg   = linux # pinned kernel
IgnorePkg   = nvidia
IgnoreGroup = gnome
Color
CheckSpace

[core]
Server = https://mirror.example.org/$repo/os/$arch

[extra]
Server = https://mirror.example.org/$repo/os/$arch
"""


class FakePkg:
    def __init__(self, name, version, reason=None, provides=(), depends=(), groups=(),
                 required_by=(), isize=0, builddate=0, desc=""):
        self.name = name
        self.version = version
        self.reason = pyalpm.PKG_REASON_EXPLICIT if reason is None else reason
        self.provides = list(provides)
        self.depends = list(depends)
        self.groups = list(groups)
        self.isize = isize
        self.builddate = builddate
        self.desc = desc
        self._required_by = list(required_by)

    def compute_requiredby(self):
        return list(self._required_by)


class FakeDB:
    def __init__(self, name, pkgs):
        self.name = name
        self.pkgcache = pkgs


class FakeHandle:
    def __init__(self, local, syncdbs):
        self.local = FakeDB("local", local)
        self.syncdbs = syncdbs

    def get_localdb(self):
        return self.local

    def get_syncdbs(self):
        return self.syncdbs


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "pacman.conf"
    path.write_text(PACMAN_CONF)
    return str(path)


@pytest.fixture
def handle():
    return FakeHandle(
        local=[
            FakePkg("bash", "5.2.026-2", provides=["sh"], depends=["readline", "glibc"],
                    required_by=["base"], isize=9 * 1024 * 1024, builddate=1709287933,
                    desc="The GNU Bourne Again shell"),
            FakePkg("yay", "12.3.5-1", reason=pyalpm.PKG_REASON_DEPEND),
        ],
        syncdbs=[
            FakeDB("core", [FakePkg("bash", "5.2.026-2", provides=["sh"], required_by=["never"])]),
            FakeDB("extra", [FakePkg("xfce4-terminal", "1.1.3-1", groups=["xfce4"])]),
        ],
    )


class TestReadConf:
    def test_repositories_and_ignores(self, conf):
        repos, pkgs, groups = PacmanBackend(pacman_conf=conf).read_conf()
        assert repos == ["core", "extra"]
        assert pkgs == ["linux", "nvidia"]
        assert groups == ["gnome"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InventoryError):
            PacmanBackend(pacman_conf=str(tmp_path / "nope.conf")).read_conf()

    def test_strip_comments(self, conf):
        clean = strip_comments(conf)
        try:
            with open(clean) as f:
                text = f.read()
        finally:
            os.unlink(clean)
        assert "IgnorePkg   = linux\n" in text
        assert "pinned" not in text
        assert "Server = https://mirror.example.org/$repo/os/$arch\n" in text

    def test_option_list(self):
        assert option_list({"IgnorePkg": ["linux", "nvidia lts"]}, "IgnorePkg") == ["linux", "nvidia", "lts"]
        assert option_list({"IgnorePkg": "a b"}, "IgnorePkg") == ["a", "b"]
        assert option_list({}, "IgnoreGroup") == []


class TestLoad:
    def test_entry_from_package(self, handle):
        bash, yay = [entry_from_package(p, Origin.LOCAL) for p in handle.local.pkgcache]
        assert bash.name == "bash"
        assert bash.version == "5.2.026-2"
        assert bash.provides == ["sh"]
        assert bash.depends == ["readline", "glibc"]
        assert bash.required_by == ["base"]
        assert bash.size == 9 * 1024 * 1024
        assert bash.build_date == 1709287933
        assert bash.description == "The GNU Bourne Again shell"
        assert bash.reason is InstallReason.EXPLICIT
        assert yay.reason is InstallReason.DEPEND

    def test_sync_entries_skip_required_by(self, handle):
        (bash,) = handle.syncdbs[0].pkgcache
        entry = entry_from_package(bash, Origin.SYNC, "core")
        assert entry.repository == "core"
        assert entry.required_by == []

    def test_load(self, conf, handle):
        local, sync = PacmanBackend(pacman_conf=conf, handle=handle).load()
        assert sync.names == ["core", "extra"]
        assert local.lookup("bash").origin is Origin.LOCAL
        assert local.lookup("yay").origin is Origin.FOREIGN
        assert sync.lookup("xfce4-terminal")[0] == "extra"
        assert sync.lookup("bash")[1].origin is Origin.SYNC
        assert [e.name for e in sync.group_members("xfce4")] == ["xfce4-terminal"]

    def test_database_error(self, conf):
        class Broken(FakeHandle):
            def get_localdb(self):
                raise pyalpm.error("could not open database")

        backend = PacmanBackend(pacman_conf=conf, handle=Broken([], []))
        with pytest.raises(InventoryError, match="could not open database"):
            backend.load_local()
