# aurkit/modules/srcinfo.py
"""
Parser e serializador de .SRCINFO (metadados de receitas do AUR).

- Documento key = value, uma seção pkgbase seguida de uma ou mais seções pkgname.
- Campos com sufixo de arquitetura (depends_x86_64) só valem para arquiteturas
  declaradas no arch global.
- Campos exclusivos do pkgbase (pkgver, pkgrel, epoch, source, checksums,
  makedepends, checkdepends) não podem aparecer depois do primeiro pkgname.
- Valores vazios ("key =") viram EMPTY_OVERRIDE, diferente de campo ausente.
- to_text() reproduz a ordem e a indentação de `makepkg --printsrcinfo`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from aurkit.modules.version import CompleteVersion, ParseError, parse_complete_version

# marks "key =" (override to empty) as opposed to a key that was never set
EMPTY_OVERRIDE = "\x00"

# pkgbase only, matched on the full key
BASE_SCALARS = ("pkgver", "pkgrel", "epoch")
BASE_LISTS = ("validpgpkeys", "noextract")
# pkgbase only, may carry an arch suffix
BASE_ARCH_LISTS = (
    "source", "md5sums", "sha1sums", "sha224sums", "sha256sums",
    "sha384sums", "sha512sums", "b2sums", "makedepends", "checkdepends",
)
# pkgbase or pkgname
PKG_SCALARS = ("pkgdesc", "url", "install", "changelog")
PKG_LISTS = ("license", "groups", "arch", "backup", "options")
PKG_ARCH_LISTS = ("depends", "optdepends", "conflicts", "provides", "replaces")


class SrcinfoError(ParseError):
    def __init__(self, message: str, lineno: Optional[int] = None, line: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.line = line

    def __str__(self):
        if self.lineno is None:
            return self.message
        return f"Line {self.lineno}: {self.message}: {self.line}"


@dataclass
class ArchString:
    arch: str
    value: str


@dataclass
class Package:
    pkgname: str = ""
    pkgdesc: str = ""
    url: str = ""
    install: str = ""
    changelog: str = ""
    arch: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    license: List[str] = field(default_factory=list)
    backup: List[str] = field(default_factory=list)
    options: List[str] = field(default_factory=list)
    depends: List[ArchString] = field(default_factory=list)
    optdepends: List[ArchString] = field(default_factory=list)
    conflicts: List[ArchString] = field(default_factory=list)
    provides: List[ArchString] = field(default_factory=list)
    replaces: List[ArchString] = field(default_factory=list)


@dataclass
class PackageBase:
    pkgbase: str = ""
    pkgver: str = ""
    pkgrel: str = ""
    epoch: str = ""
    validpgpkeys: List[str] = field(default_factory=list)
    noextract: List[str] = field(default_factory=list)
    source: List[ArchString] = field(default_factory=list)
    md5sums: List[ArchString] = field(default_factory=list)
    sha1sums: List[ArchString] = field(default_factory=list)
    sha224sums: List[ArchString] = field(default_factory=list)
    sha256sums: List[ArchString] = field(default_factory=list)
    sha384sums: List[ArchString] = field(default_factory=list)
    sha512sums: List[ArchString] = field(default_factory=list)
    b2sums: List[ArchString] = field(default_factory=list)
    makedepends: List[ArchString] = field(default_factory=list)
    checkdepends: List[ArchString] = field(default_factory=list)


@dataclass
class Srcinfo:
    base: PackageBase = field(default_factory=PackageBase)
    # values set in the pkgbase section, inherited by every pkgname
    package: Package = field(default_factory=Package)
    packages: List[Package] = field(default_factory=list)

    @property
    def pkgbase(self) -> str:
        return self.base.pkgbase

    def pkgnames(self) -> List[str]:
        return [p.pkgname for p in self.packages]

    def version(self) -> CompleteVersion:
        text = f"{self.base.pkgver}-{self.base.pkgrel}"
        epoch = _clean(self.base.epoch)
        if epoch:
            text = f"{epoch}:{text}"
        return parse_complete_version(text)

    def split_package(self, pkgname: str) -> Package:
        """Mescla os valores do pkgbase com os overrides de um pkgname."""
        for pkg in self.packages:
            if pkg.pkgname == pkgname:
                return _merge_split_package(self.package, pkg)
        raise KeyError(f'package "{pkgname}" is not part of {self.base.pkgbase}')

    def split_packages(self) -> List[Package]:
        return [_merge_split_package(self.package, pkg) for pkg in self.packages]

    def to_text(self) -> str:
        return _print_srcinfo(self)

    def __str__(self):
        return self.to_text()


# -----------------------
# Split packages
# -----------------------
def _clean(value: str) -> str:
    return "" if value == EMPTY_OVERRIDE else value


def _merge_arch(inherited: List[ArchString], override: List[ArchString]) -> List[ArchString]:
    overridden: Set[str] = set()
    merged = []
    for v in override:
        overridden.add(v.arch)
        if v.value != EMPTY_OVERRIDE:
            merged.append(ArchString(v.arch, v.value))
    for v in inherited:
        if v.arch not in overridden and v.value != EMPTY_OVERRIDE:
            merged.append(ArchString(v.arch, v.value))
    return merged


def _merge_split_package(base: Package, split: Package) -> Package:
    pkg = Package(pkgname=split.pkgname)
    for name in PKG_SCALARS:
        value = getattr(split, name) or getattr(base, name)
        setattr(pkg, name, _clean(value))
    for name in PKG_LISTS:
        values = getattr(split, name) or getattr(base, name)
        setattr(pkg, name, [v for v in values if v != EMPTY_OVERRIDE])
    for name in PKG_ARCH_LISTS:
        setattr(pkg, name, _merge_arch(getattr(base, name), getattr(split, name)))
    return pkg


# -----------------------
# Parsing
# -----------------------
def _split_pair(line: str) -> Tuple[str, str]:
    key, sep, value = line.partition("=")
    if not sep:
        raise ValueError("Line does not contain =")
    key = key.strip()
    if not key:
        raise ValueError("Key is empty")
    return key, value.strip()


def _split_arch(key: str) -> Tuple[str, str]:
    name, _, arch = key.partition("_")
    return name, arch


class _Parser:
    def __init__(self):
        self.srcinfo = Srcinfo()
        self.seen_pkgnames: Set[str] = set()

    def current_package(self) -> Package:
        if self.srcinfo.packages:
            return self.srcinfo.packages[-1]
        return self.srcinfo.package

    def set_header_or_field(self, key: str, value: str):
        si = self.srcinfo

        if key == "pkgbase":
            if si.base.pkgbase:
                raise ValueError(f'key "{key}" can not occur after pkgbase or pkgname')
            si.base.pkgbase = value
            return

        if key == "pkgname":
            if not si.base.pkgbase:
                raise ValueError(f'key "{key}" can not occur before pkgbase')
            if value in self.seen_pkgnames:
                raise ValueError(f'pkgname "{value}" can not occur more than once')
            self.seen_pkgnames.add(value)
            si.packages.append(Package(pkgname=value))
            return

        if not si.base.pkgbase:
            raise ValueError(f'key "{key}" can not occur before pkgbase or pkgname')

        self.set_field(key, value)

    def check_arch(self, arch_key: str, arch: str):
        if not arch:
            return
        if arch == "any":
            raise ValueError(f'Invalid key "{arch_key}" arch "{arch}" is not allowed')
        if arch not in self.srcinfo.package.arch:
            raise ValueError(f'Invalid key "{arch_key}" unsupported arch "{arch}"')

    def set_field(self, arch_key: str, value: str):
        si = self.srcinfo
        key, arch = _split_arch(arch_key)
        self.check_arch(arch_key, arch)

        if value == "":
            value = EMPTY_OVERRIDE

        in_pkgname = bool(si.packages)

        if arch_key in BASE_SCALARS or arch_key in BASE_LISTS or key in BASE_ARCH_LISTS:
            if in_pkgname:
                raise ValueError(f'key "{arch_key}" can not occur after pkgname')
            if arch_key in BASE_SCALARS:
                setattr(si.base, arch_key, value)
            elif arch_key in BASE_LISTS:
                getattr(si.base, arch_key).append(value)
            else:
                getattr(si.base, key).append(ArchString(arch, value))
            return

        pkg = self.current_package()
        if arch_key in PKG_SCALARS:
            setattr(pkg, arch_key, value)
        elif arch_key in PKG_LISTS:
            getattr(pkg, arch_key).append(value)
        elif key in PKG_ARCH_LISTS:
            getattr(pkg, key).append(ArchString(arch, value))
        # unknown keys are ignored

    def finish(self) -> Srcinfo:
        si = self.srcinfo
        if not si.base.pkgbase:
            raise SrcinfoError("No pkgbase field")
        if not si.packages:
            raise SrcinfoError("No pkgname field")
        if _clean(si.base.pkgver) == "":
            raise SrcinfoError("No pkgver field")
        if _clean(si.base.pkgrel) == "":
            raise SrcinfoError("No pkgrel field")
        if not [a for a in si.package.arch if a != EMPTY_OVERRIDE]:
            raise SrcinfoError("No arch field")
        return si


def parse(data: str) -> Srcinfo:
    """
    Faz o parse de um .SRCINFO em texto. Falha (SrcinfoError) se:
     - faltar pkgbase, pkgname, pkgver, pkgrel ou arch
     - o mesmo pkgname aparecer mais de uma vez
     - um campo com sufixo usar arquitetura não declarada
     - um campo exclusivo do pkgbase aparecer depois de um pkgname
    """
    psr = _Parser()
    for n, raw in enumerate(data.split("\n"), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            key, value = _split_pair(line)
            psr.set_header_or_field(key, value)
        except ValueError as e:
            raise SrcinfoError(str(e), n, line) from None
    return psr.finish()


def parse_file(path: str) -> Srcinfo:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = fh.read()
    except OSError as e:
        raise SrcinfoError(f"Unable to read file: {path}: {e}") from e
    return parse(data)


# -----------------------
# Printing
# -----------------------
def _value(out: List[str], key: str, value: str):
    if value == "":
        return
    out.append(f"\t{key} = {_clean(value)}")


def _multi(out: List[str], key: str, values: List[str]):
    for value in values:
        out.append(f"\t{key} = {_clean(value)}")


def _multi_arch(out: List[str], key: str, values: List[ArchString]):
    for v in values:
        name = f"{key}_{v.arch}" if v.arch else key
        out.append(f"\t{name} = {_clean(v.value)}")


def _print_srcinfo(si: Srcinfo) -> str:
    base, glob = si.base, si.package
    out: List[str] = [f"pkgbase = {base.pkgbase}"]

    _value(out, "pkgdesc", glob.pkgdesc)
    _value(out, "pkgver", base.pkgver)
    _value(out, "pkgrel", base.pkgrel)
    _value(out, "epoch", base.epoch)
    _value(out, "url", glob.url)
    _value(out, "install", glob.install)
    _value(out, "changelog", glob.changelog)
    _multi(out, "arch", glob.arch)
    _multi(out, "groups", glob.groups)
    _multi(out, "license", glob.license)
    _multi_arch(out, "checkdepends", base.checkdepends)
    _multi_arch(out, "makedepends", base.makedepends)
    _multi_arch(out, "depends", glob.depends)
    _multi_arch(out, "optdepends", glob.optdepends)
    _multi_arch(out, "provides", glob.provides)
    _multi_arch(out, "conflicts", glob.conflicts)
    _multi_arch(out, "replaces", glob.replaces)
    _multi(out, "noextract", base.noextract)
    _multi(out, "options", glob.options)
    _multi(out, "backup", glob.backup)
    _multi(out, "validpgpkeys", base.validpgpkeys)
    _multi_arch(out, "source", base.source)
    for name in ("md5sums", "sha1sums", "sha224sums", "sha256sums",
                 "sha384sums", "sha512sums", "b2sums"):
        _multi_arch(out, name, getattr(base, name))

    for pkg in si.packages:
        out.append("")
        out.append(f"pkgname = {pkg.pkgname}")
        _value(out, "pkgdesc", pkg.pkgdesc)
        _value(out, "url", pkg.url)
        _value(out, "install", pkg.install)
        _value(out, "changelog", pkg.changelog)
        _multi(out, "arch", pkg.arch)
        _multi(out, "groups", pkg.groups)
        _multi(out, "license", pkg.license)
        _multi_arch(out, "depends", pkg.depends)
        _multi_arch(out, "optdepends", pkg.optdepends)
        _multi_arch(out, "provides", pkg.provides)
        _multi_arch(out, "conflicts", pkg.conflicts)
        _multi_arch(out, "replaces", pkg.replaces)
        _multi(out, "options", pkg.options)
        _multi(out, "backup", pkg.backup)

    return "\n".join(out) + "\n"
