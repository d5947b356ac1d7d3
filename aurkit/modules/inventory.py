# aurkit/modules/inventory.py
"""
inventory.py - visão somente-leitura dos bancos do pacman.

- PackageDB: banco local ou um repositório de sync (lookup, satisfier, grupos).
- SyncDBList: repositórios de sync na ordem do pacman.conf (primeiro vence).
- statistics / orphans: relatórios sobre o banco local.

Os bancos são preenchidos por aurkit.modules.alpm (libalpm).
"""

from __future__ import annotations
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from aurkit.modules.constraint import Constraint, bare_name, parse_constraint, satisfies


class InventoryError(Exception):
    pass


class Origin(Enum):
    LOCAL = "local"
    SYNC = "sync"
    FOREIGN = "foreign"


class InstallReason(Enum):
    EXPLICIT = "explicit"
    DEPEND = "depend"


@dataclass
class InventoryEntry:
    name: str
    version: str
    origin: Origin = Origin.LOCAL
    repository: str = ""
    size: int = 0
    reason: InstallReason = InstallReason.EXPLICIT
    provides: List[str] = field(default_factory=list)
    depends: List[str] = field(default_factory=list)
    groups: List[str] = field(default_factory=list)
    required_by: List[str] = field(default_factory=list)
    # seconds since the epoch, 0 when unknown
    build_date: int = 0
    description: str = ""

    def satisfies(self, dep: Union[str, Constraint]) -> bool:
        return satisfies(self.name, self.version, self.provides, dep)


def _as_constraint(dep: Union[str, Constraint]) -> Constraint:
    if isinstance(dep, Constraint):
        return dep
    return parse_constraint(dep, strict=False)


class PackageDB:
    """Um banco de pacotes (local ou um repositório)."""

    def __init__(self, name: str, entries: Iterable[InventoryEntry] = ()):
        self.name = name
        self._entries: "OrderedDict[str, InventoryEntry]" = OrderedDict()
        for e in entries:
            self._entries[e.name] = e

    def lookup(self, name: str) -> Optional[InventoryEntry]:
        return self._entries.get(name)

    def entries(self) -> List[InventoryEntry]:
        return list(self._entries.values())

    def find_satisfier(self, dep: Union[str, Constraint]) -> Optional[InventoryEntry]:
        c = _as_constraint(dep)
        entry = self._entries.get(c.name)
        if entry is not None and entry.satisfies(c):
            return entry
        for entry in self._entries.values():
            if entry.satisfies(c):
                return entry
        return None

    def group_members(self, group: str) -> List[InventoryEntry]:
        return [e for e in self._entries.values() if group in e.groups]

    def reverse_dependents(self, name: str) -> List[str]:
        entry = self._entries.get(name)
        if entry is not None and entry.required_by:
            return list(entry.required_by)

        targets = {name}
        if entry is not None:
            targets.update(bare_name(p) for p in entry.provides)
        return [e.name for e in self._entries.values()
                if e.name != name and any(bare_name(d) in targets for d in e.depends)]

    def __contains__(self, name):
        return name in self._entries

    def __iter__(self) -> Iterator[InventoryEntry]:
        return iter(list(self._entries.values()))

    def __len__(self):
        return len(self._entries)


class SyncDBList:
    """Repositórios de sync, na ordem de prioridade."""

    def __init__(self, dbs: Iterable[PackageDB] = ()):
        self.dbs: List[PackageDB] = list(dbs)

    @property
    def names(self) -> List[str]:
        return [db.name for db in self.dbs]

    def lookup(self, name: str) -> Optional[Tuple[str, InventoryEntry]]:
        for db in self.dbs:
            entry = db.lookup(name)
            if entry is not None:
                return db.name, entry
        return None

    def find_satisfier(self, dep: Union[str, Constraint]) -> Optional[InventoryEntry]:
        c = _as_constraint(dep)
        # a literal name match in any repository beats a provider
        for db in self.dbs:
            entry = db.lookup(c.name)
            if entry is not None and entry.satisfies(c):
                return entry
        for db in self.dbs:
            entry = db.find_satisfier(c)
            if entry is not None:
                return entry
        return None

    def group_members(self, group: str) -> List[InventoryEntry]:
        seen = set()
        members = []
        for db in self.dbs:
            for e in db.group_members(group):
                if e.name not in seen:
                    seen.add(e.name)
                    members.append(e)
        return members

    def has_group(self, group: str) -> bool:
        return any(db.group_members(group) for db in self.dbs)

    def entries(self) -> List[InventoryEntry]:
        return [e for db in self.dbs for e in db.entries()]

    def __iter__(self):
        return iter(self.dbs)

    def __len__(self):
        return len(self.dbs)


# -----------------------
# Relatórios
# -----------------------
def statistics(local: PackageDB) -> Dict[str, int]:
    entries = local.entries()
    return {
        "total": len(entries),
        "explicit": sum(1 for e in entries if e.reason is InstallReason.EXPLICIT),
        "depend": sum(1 for e in entries if e.reason is InstallReason.DEPEND),
        "foreign": sum(1 for e in entries if e.origin is Origin.FOREIGN),
        "size": sum(e.size for e in entries),
    }


def orphans(local: PackageDB) -> List[InventoryEntry]:
    """Pacotes instalados como dependência que nada mais requer."""
    return [e for e in local.entries()
            if e.reason is InstallReason.DEPEND and not local.reverse_dependents(e.name)]

