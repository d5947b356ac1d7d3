# aurkit/modules/constraint.py
"""
Dependency constraints: "name OP version" strings as bounded version ranges.

- parse_constraint: "foo>=1.2-1" -> Constraint(name="foo", lower=>=1.2-1)
- restrict: intersection of two constraints on the same name
- satisfies: name/provides matching used by the package database lookups
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from aurkit.modules.version import (
    CompleteVersion,
    FormatError,
    parse_complete_version,
    to_complete_version,
)

OPERATORS = ("=", "<=", ">=", "<", ">")
_OP_CHARS = "<>="


@dataclass(frozen=True)
class Bound:
    version: CompleteVersion
    exclusive: bool = False

    def specificity(self) -> Tuple[int, str]:
        return len(self.version.release or ""), str(self.version)


@dataclass(frozen=True)
class Constraint:
    name: str
    lower: Optional[Bound] = None
    upper: Optional[Bound] = None

    @property
    def versioned(self) -> bool:
        return self.lower is not None or self.upper is not None

    def is_satisfiable(self) -> bool:
        if self.lower is None or self.upper is None:
            return True
        res = self.lower.version.cmp(self.upper.version)
        if res > 0:
            return False
        if res == 0 and (self.lower.exclusive or self.upper.exclusive):
            return False
        return True

    def satisfied_by(self, version: Union[str, CompleteVersion]) -> bool:
        if isinstance(version, str):
            version = to_complete_version(version)
        if not self.is_satisfiable():
            return False

        if self.upper is not None:
            res = version.cmp(self.upper.version)
            if res > 0 or (res == 0 and self.upper.exclusive):
                return False

        if self.lower is not None:
            res = version.cmp(self.lower.version)
            if res < 0 or (res == 0 and self.lower.exclusive):
                return False

        return True

    def __str__(self):
        if self.lower is None and self.upper is None:
            return self.name
        if (self.lower is not None and self.upper is not None
                and self.lower == self.upper and not self.lower.exclusive):
            return f"{self.name}={self.lower.version}"
        parts = []
        if self.lower is not None:
            parts.append((">" if self.lower.exclusive else ">=") + str(self.lower.version))
        if self.upper is not None:
            parts.append(("<" if self.upper.exclusive else "<=") + str(self.upper.version))
        return self.name + ",".join(parts)


def split_dependency(spec: str) -> Tuple[str, str, str]:
    """Separa 'nome', 'operador', 'versão' sem validar nada."""
    spec = spec.strip()
    i = 0
    while i < len(spec) and spec[i] not in _OP_CHARS:
        i += 1
    name = spec[:i].strip()
    j = i
    while j < len(spec) and spec[j] in _OP_CHARS:
        j += 1
    return name, spec[i:j], spec[j:].strip()


def bare_name(spec: str) -> str:
    """Nome do pacote sem operadores nem espaços finais."""
    spec = spec.lstrip()
    for i, c in enumerate(spec):
        if c in _OP_CHARS or c == " ":
            return spec[:i]
    return spec


def parse_constraint(spec: str, strict: bool = True) -> Constraint:
    """
    Parse de "name", "name=ver", "name<=ver", "name>=ver", "name<ver", "name>ver".
    strict=False aceita versões do banco de pacotes sem validação.
    """
    name, op, ver = split_dependency(spec)

    if not name:
        raise FormatError(f"missing package name in dependency: {spec!r}", spec)
    if name.startswith("-"):
        raise FormatError(f"invalid dependency name: {name}", name)

    if not op:
        if ver:
            raise FormatError(f"unexpected text after name in dependency: {spec!r}", ver)
        return Constraint(name)

    if op not in OPERATORS:
        raise FormatError(f"invalid operator '{op}' in dependency: {spec!r}", op)
    if not ver:
        raise FormatError(f"operator '{op}' without version in dependency: {spec!r}", spec)

    version = parse_complete_version(ver) if strict else to_complete_version(ver)

    if op == "=":
        bound = Bound(version)
        return Constraint(name, lower=bound, upper=bound)
    if op == "<=":
        return Constraint(name, upper=Bound(version))
    if op == ">=":
        return Constraint(name, lower=Bound(version))
    if op == "<":
        return Constraint(name, upper=Bound(version, exclusive=True))
    return Constraint(name, lower=Bound(version, exclusive=True))


def _pick(a: Optional[Bound], b: Optional[Bound], want: int) -> Optional[Bound]:
    # want=-1 keeps the smaller value (upper), want=1 the larger one (lower)
    if a is None:
        return b
    if b is None:
        return a

    res = a.version.cmp(b.version)
    if res == want:
        return a
    if res == -want:
        return b

    winner = max(a, b, key=Bound.specificity)
    return Bound(winner.version, a.exclusive or b.exclusive)


def restrict(a: Constraint, b: Constraint) -> Constraint:
    """Intersecção de duas restrições sobre o mesmo pacote."""
    if a.name != b.name:
        raise ValueError(f"cannot restrict constraints on different names: {a.name} / {b.name}")
    return Constraint(
        a.name,
        lower=_pick(a.lower, b.lower, 1),
        upper=_pick(a.upper, b.upper, -1),
    )


def provide_satisfies(provide: str, dep: Constraint) -> bool:
    provided = parse_constraint(provide, strict=False)
    if provided.name != dep.name:
        return False

    # an unversioned provide can not satisfy a versioned dependency
    if not provided.versioned:
        return not dep.versioned
    if not dep.versioned:
        return True

    version = provided.lower.version if provided.lower is not None else provided.upper.version
    return dep.satisfied_by(version)


def satisfies(name: str, version: str, provides: Iterable[str], dep: Union[str, Constraint]) -> bool:
    if isinstance(dep, str):
        dep = parse_constraint(dep, strict=False)

    if name == dep.name and dep.satisfied_by(version):
        return True

    return any(provide_satisfies(p, dep) for p in provides)
