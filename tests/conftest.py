import os
import shutil

import git
import pytest

from aurkit.modules.inventory import (
    InstallReason,
    InventoryEntry,
    Origin,
    PackageDB,
    SyncDBList,
)
from aurkit.modules.rpc import AurPackage
from aurkit.modules.sync import SourceSync

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


def make_entry(name, version, **kw) -> InventoryEntry:
    return InventoryEntry(name=name, version=version, **kw)


class FakeRPC:
    """AUR RPC em memória: devolve na ordem pedida, omitindo desconhecidos."""

    def __init__(self, packages=(), fail=False):
        self.packages = {p.name: p for p in packages}
        self.fail = fail
        self.calls = []

    def info(self, names):
        from aurkit.modules.rpc import RPCError

        self.calls.append(list(names))
        if self.fail:
            raise RPCError(f"info ({len(names)} packages): connection refused")
        return [self.packages[n] for n in names if n in self.packages]


def aur_package(name, version, last_modified=0) -> AurPackage:
    return AurPackage(name=name, package_base=name, version=version, last_modified=last_modified)


@pytest.fixture
def local_db():
    return PackageDB("local", [
        make_entry("foo", "1.0-1"),
        make_entry("glibc", "2.39-1", provides=["libc.so=6-64"], reason=InstallReason.DEPEND,
                   required_by=["foo"]),
        make_entry("yay", "11.0-1", origin=Origin.FOREIGN),
    ])


@pytest.fixture
def sync_dbs():
    core = PackageDB("core", [
        make_entry("foo", "1.2-1", origin=Origin.SYNC, repository="core"),
        make_entry("glibc", "2.39-1", origin=Origin.SYNC, repository="core"),
    ])
    extra = PackageDB("extra", [
        make_entry("foo", "9.0-1", origin=Origin.SYNC, repository="extra"),
        make_entry("bar", "2.0-1", origin=Origin.SYNC, repository="extra",
                   provides=["baz=2.0"], groups=["tools"]),
        make_entry("qux", "1.0-1", origin=Origin.SYNC, repository="extra",
                   provides=["baz"], groups=["tools"]),
    ])
    return SyncDBList([core, extra])


SRCINFO = """\
# Generated by makepkg
pkgbase = demo
\tpkgdesc = A demo package
\tpkgver = 1.2.3
\tpkgrel = 2
\tepoch = 1
\turl = https://example.org
\tarch = x86_64
\tarch = aarch64
\tlicense = MIT
\tmakedepends = cmake
\tdepends = glibc
\tdepends_x86_64 = lib32-glibc
\tsource = demo-1.2.3.tar.gz
\tsource_aarch64 = demo-arm.patch
\tsha256sums = SKIP
\tsha256sums_aarch64 = SKIP

pkgname = demo
\tdepends = zlib
\tprovides = libdemo.so=1-64

pkgname = demo-docs
\tpkgdesc = Documentation for demo
\tdepends =
"""


@pytest.fixture
def srcinfo_text():
    return SRCINFO


# -----------------------
# real git upstreams
# -----------------------
PKGBUILD = "pkgname=demo\npkgver=1.0\npkgrel=1\narch=(any)\n"
GIT_ENV = {
    "GIT_AUTHOR_NAME": "aurkit", "GIT_AUTHOR_EMAIL": "aurkit@example.org",
    "GIT_COMMITTER_NAME": "aurkit", "GIT_COMMITTER_EMAIL": "aurkit@example.org",
}
MIRROR_SRCINFO = "pkgbase = demo\n\tpkgver = 1.0\n\tpkgrel = 1\n\tarch = any\n\npkgname = demo\n"


class Upstream:
    """Repositório "remoto" em <root>/<pkg>.git, no formato que o AUR serve."""

    def __init__(self, root, pkg):
        self.path = os.path.join(root, f"{pkg}.git")
        self.repo = git.Repo.init(self.path)
        self.commit({"PKGBUILD": PKGBUILD, ".SRCINFO": MIRROR_SRCINFO}, "initial import")

    def commit(self, files, message):
        for name, content in files.items():
            with open(os.path.join(self.path, name), "w") as f:
                f.write(content)
        self.repo.index.add(list(files))
        self.repo.index.commit(message)


@pytest.fixture
def remote_root(tmp_path):
    root = tmp_path / "remote"
    root.mkdir()
    return str(root)


@pytest.fixture
def upstream(remote_root):
    return Upstream(remote_root, "demo")


@pytest.fixture
def src(tmp_path, remote_root):
    return SourceSync(
        cache_dir=str(tmp_path / "cache"),
        patch_dir=str(tmp_path / "diff"),
        aur_url=remote_root,
        git_flags=["-c", "advice.detachedHead=false"],
        git_env=GIT_ENV,
    )
