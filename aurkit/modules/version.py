# aurkit/modules/version.py
"""
Version ordering for pacman/AUR packages.

- vercmp: segment-walk comparison of upstream version tokens (rpmvercmp rules,
  same results as pacman's `vercmp`).
- CompleteVersion: epoch:version-release triple, totally ordered.
- parse_complete_version: strict parser used for dependency strings.
- compare_versions: lenient comparison for version strings coming from the
  package database or the AUR RPC.
"""

from __future__ import annotations
import re
from functools import total_ordering
from typing import Optional, Tuple


class ParseError(ValueError):
    """Base for every input that could not be parsed."""


class FormatError(ParseError):
    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


_RELEASE_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")


def _isdigit(c: str) -> bool:
    return "0" <= c <= "9"


def _isalpha(c: str) -> bool:
    return c.isalpha()


def _isalnum(c: str) -> bool:
    return _isdigit(c) or _isalpha(c)


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def vercmp(a: str, b: str) -> int:
    """
    Compara duas versões upstream segmento a segmento.
    Retorna 1 se a for mais nova, -1 se b for mais nova, 0 se iguais.
    """
    if a == b:
        return 0

    la, lb = len(a), len(b)
    one = two = 0
    ptr1 = ptr2 = 0

    while one < la and two < lb:
        while one < la and not _isalnum(a[one]):
            one += 1
        while two < lb and not _isalnum(b[two]):
            two += 1

        # ran off the end of either string
        if not (one < la and two < lb):
            break

        # separator runs of different length decide
        if one - ptr1 != two - ptr2:
            return -1 if one - ptr1 < two - ptr2 else 1

        ptr1, ptr2 = one, two

        if _isdigit(a[ptr1]):
            while ptr1 < la and _isdigit(a[ptr1]):
                ptr1 += 1
            while ptr2 < lb and _isdigit(b[ptr2]):
                ptr2 += 1
            isnum = True
        else:
            while ptr1 < la and _isalpha(a[ptr1]):
                ptr1 += 1
            while ptr2 < lb and _isalpha(b[ptr2]):
                ptr2 += 1
            isnum = False

        # segments of different kind: numeric always wins over alpha
        if two == ptr2:
            return 1 if isnum else -1

        if isnum:
            res = _cmp(int(a[one:ptr1]), int(b[two:ptr2]))
        else:
            res = _cmp(a[one:ptr1], b[two:ptr2])
        if res:
            return res

        one, two = ptr1, ptr2

    if one >= la and two >= lb:
        return 0

    # a remaining alpha segment never beats an empty one
    if (one >= la and not _isalpha(b[two])) or (one < la and _isalpha(a[one])):
        return -1
    return 1


def valid_pkgver(version: str) -> bool:
    if not version or not _isalnum(version[0]):
        return False
    return all(_isalnum(c) or c in "_+." for c in version[1:])


@total_ordering
class CompleteVersion:
    """epoch:version-release; release may be absent (dependency strings)."""

    __slots__ = ("epoch", "version", "release")

    def __init__(self, epoch: int = 0, version: str = "", release: Optional[str] = None):
        object.__setattr__(self, "epoch", int(epoch))
        object.__setattr__(self, "version", version)
        object.__setattr__(self, "release", release or None)

    def __setattr__(self, name, value):
        raise AttributeError("CompleteVersion is immutable")

    def cmp(self, other: "CompleteVersion") -> int:
        res = _cmp(self.epoch, other.epoch)
        if res:
            return res
        res = vercmp(self.version, other.version)
        if res:
            return res
        if self.release is None or other.release is None:
            return 0
        return vercmp(self.release, other.release)

    def newer(self, other: "CompleteVersion") -> bool:
        return self.cmp(other) > 0

    def older(self, other: "CompleteVersion") -> bool:
        return self.cmp(other) < 0

    def __eq__(self, other):
        if not isinstance(other, CompleteVersion):
            return NotImplemented
        return self.cmp(other) == 0

    def __lt__(self, other):
        if not isinstance(other, CompleteVersion):
            return NotImplemented
        return self.cmp(other) < 0

    def __hash__(self):
        # "1.0" == "1.00" and a missing release equals any release
        return hash(self.epoch)

    def __repr__(self):
        return f"CompleteVersion({self!s})"

    def __str__(self):
        text = f"{self.epoch}:" if self.epoch > 0 else ""
        text += self.version
        if self.release is not None:
            text += f"-{self.release}"
        return text


def parse_complete_version(s: str) -> CompleteVersion:
    """Parse estrito de '[epoch:]version[-release]'."""
    parts = s.split(":")
    if len(parts) > 2:
        raise FormatError(f"invalid version format: {s}", s)

    epoch = 0
    if len(parts) == 2:
        if not parts[0].isdigit():
            raise FormatError(f"invalid epoch '{parts[0]}' in version: {s}", parts[0])
        epoch = int(parts[0])

    parts = parts[-1].split("-")
    if len(parts) > 2:
        raise FormatError(f"invalid version format: {s}", s)

    release = None
    if len(parts) == 2:
        release = parts[1]
        if not _RELEASE_RE.match(release):
            raise FormatError(f"invalid release '{release}' in version: {s}", release)

    if not valid_pkgver(parts[0]):
        raise FormatError(f"invalid pkgver '{parts[0]}' in version: {s}", parts[0])

    return CompleteVersion(epoch, parts[0], release)


def split_evr(evr: str) -> Tuple[str, str, Optional[str]]:
    """Split lenient de epoch/version/release, sem validação."""
    i = 0
    while i < len(evr) and _isdigit(evr[i]):
        i += 1

    if i < len(evr) and evr[i] == ":":
        epoch = evr[:i] or "0"
        rest = evr[i + 1:]
    else:
        epoch = "0"
        rest = evr

    version, sep, release = rest.rpartition("-")
    if not sep:
        return epoch, rest, None
    return epoch, version, release


def to_complete_version(evr: str) -> CompleteVersion:
    """CompleteVersion a partir de uma string do banco de pacotes (sem validação)."""
    epoch, version, release = split_evr(evr)
    return CompleteVersion(int(epoch), version, release)


def compare_versions(a: str, b: str) -> int:
    """Compare full version strings the way pacman does (alpm_pkg_vercmp)."""
    if a == b:
        return 0
    ea, va, ra = split_evr(a)
    eb, vb, rb = split_evr(b)
    res = vercmp(ea, eb)
    if res:
        return res
    res = vercmp(va, vb)
    if res:
        return res
    if ra is None or rb is None:
        return 0
    return vercmp(ra, rb)
