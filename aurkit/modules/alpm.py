# aurkit/modules/alpm.py
"""
alpm.py - carrega os bancos do pacman via libalpm (pyalpm/pycman).

O pacman.conf é lido por pycman.config.PacmanConfig, que entende as regras do
pacman (opções de lista acumulam, Include, seções de repositório). Comentários
de fim de linha são removidos antes, como o pacman faz. O handle libalpm sai do
mesmo objeto, e os pacotes viram InventoryEntry.
"""

from __future__ import annotations
import os
import tempfile
from typing import List, Tuple

import pyalpm
from pycman.config import PacmanConfig

from aurkit.modules.inventory import (
    InstallReason,
    InventoryEntry,
    InventoryError,
    Origin,
    PackageDB,
    SyncDBList,
)
from aurkit.modules.logger import NullLogger


def option_list(options, key) -> List[str]:
    """Valores de uma opção de lista (IgnorePkg, IgnoreGroup...)."""
    values = options.get(key) or []
    if isinstance(values, str):
        values = [values]
    return [word for value in values for word in value.split()]


def strip_comments(path: str) -> str:
    """
    Copia o pacman.conf para um arquivo temporário sem comentários de fim de
    linha (o pacman descarta tudo após `#`). Quem chama remove o arquivo.
    """
    with open(path) as f:
        lines = [line.split("#", 1)[0].rstrip() for line in f]
    fd, tmp = tempfile.mkstemp(prefix="aurkit-pacman.", suffix=".conf")
    with os.fdopen(fd, "w") as out:
        out.write("\n".join(lines) + "\n")
    return tmp


def entry_from_package(pkg, origin: Origin, repository: str = "") -> InventoryEntry:
    reason = InstallReason.DEPEND if pkg.reason == pyalpm.PKG_REASON_DEPEND else InstallReason.EXPLICIT
    return InventoryEntry(
        name=pkg.name,
        version=pkg.version,
        origin=origin,
        repository=repository,
        size=pkg.isize or 0,
        reason=reason,
        provides=list(pkg.provides),
        depends=list(pkg.depends),
        groups=list(pkg.groups),
        required_by=list(pkg.compute_requiredby()) if origin is Origin.LOCAL else [],
        build_date=pkg.builddate or 0,
        description=pkg.desc or "",
    )


class PacmanBackend:
    def __init__(self, pacman_conf: str = "/etc/pacman.conf", log=None, handle=None):
        self.pacman_conf = pacman_conf
        self.log = log or NullLogger()
        self._config = None
        self._handle = handle

    @property
    def config(self) -> PacmanConfig:
        if self._config is None:
            try:
                clean = strip_comments(self.pacman_conf)
            except OSError as e:
                raise InventoryError(f"unable to read {self.pacman_conf}: {e}") from e
            try:
                self._config = PacmanConfig(clean)
            except Exception as e:
                raise InventoryError(f"unable to parse {self.pacman_conf}: {e}") from e
            finally:
                os.unlink(clean)
        return self._config

    @property
    def handle(self):
        if self._handle is None:
            self.log.debug(f"Initializing libalpm from {self.pacman_conf}")
            try:
                self._handle = self.config.initialize_alpm()
            except pyalpm.error as e:
                raise InventoryError(f"unable to initialize libalpm: {e}") from e
        return self._handle

    def read_conf(self) -> Tuple[List[str], List[str], List[str]]:
        """Retorna (repositórios em ordem, IgnorePkg, IgnoreGroup)."""
        cfg = self.config
        return (list(cfg.repos),
                option_list(cfg.options, "IgnorePkg"),
                option_list(cfg.options, "IgnoreGroup"))

    def load_local(self) -> PackageDB:
        self.log.debug("Loading local package database")
        try:
            pkgs = self.handle.get_localdb().pkgcache
            return PackageDB("local", [entry_from_package(p, Origin.LOCAL) for p in pkgs])
        except pyalpm.error as e:
            raise InventoryError(f"unable to read the local database: {e}") from e

    def load_sync(self) -> SyncDBList:
        self.log.debug("Loading sync package databases")
        dbs = []
        for db in self.handle.get_syncdbs():
            try:
                entries = [entry_from_package(p, Origin.SYNC, db.name) for p in db.pkgcache]
            except pyalpm.error as e:
                raise InventoryError(f"unable to read sync database '{db.name}': {e}") from e
            dbs.append(PackageDB(db.name, entries))
        return SyncDBList(dbs)

    def load(self) -> Tuple[PackageDB, SyncDBList]:
        """Carrega local e sync; instalados fora de qualquer repositório viram FOREIGN."""
        local = self.load_local()
        sync = self.load_sync()
        for entry in local:
            if sync.lookup(entry.name) is None:
                entry.origin = Origin.FOREIGN
        self.log.info(f"Loaded {len(local)} local packages from {len(sync)} repositories")
        return local, sync
