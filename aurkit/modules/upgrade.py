# aurkit/modules/upgrade.py
"""
upgrade.py - calcula as atualizações disponíveis para os pacotes instalados.

Principais behaviors:
 - Separa os pacotes locais entre os que existem num repositório de sync
   (primeiro repositório que contém o nome vence) e os estrangeiros (AUR).
 - Repositório: candidato quando a versão do sync é estritamente mais nova.
 - AUR: nomes divididos em lotes de batch_size, uma consulta RPC por lote,
   todos os lotes e a varredura dos repositórios rodando em paralelo.
 - Com time_update, um LastModified do AUR mais recente que a data de build
   local também conta como atualização.
 - Falha de um lote vai para UpgradeList.errors e não cancela o resto;
   list() sempre retorna depois que todas as tarefas terminam.
 - IgnorePkg / IgnoreGroup: pulados com aviso no log.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from aurkit.modules.inventory import InventoryEntry, PackageDB, SyncDBList
from aurkit.modules.logger import NullLogger
from aurkit.modules.multierror import MultiError
from aurkit.modules.rpc import AurPackage, RPCError
from aurkit.modules.version import compare_versions

AUR_REPOSITORY = "aur"


@dataclass
class Upgrade:
    name: str
    repository: str
    local_version: str
    remote_version: str

    def __str__(self):
        return f"{self.repository}/{self.name} {self.local_version} -> {self.remote_version}"


@dataclass
class UpgradeList:
    repo: List[Upgrade] = field(default_factory=list)
    aur: List[Upgrade] = field(default_factory=list)
    errors: Optional[MultiError] = None

    def __len__(self):
        return len(self.repo) + len(self.aur)

    def all(self) -> List[Upgrade]:
        return sort_upgrades(self.repo) + sort_upgrades(self.aur)


def sort_upgrades(upgrades: Iterable[Upgrade]) -> List[Upgrade]:
    return sorted(upgrades, key=lambda u: (u.repository.lower(), u.name))


def match_foreign(local: Sequence[InventoryEntry], remote: Sequence[AurPackage]) -> List[Tuple[InventoryEntry, AurPackage]]:
    """
    Casa os pacotes locais de um lote com o resultado da RPC, por posição.
    Assume que a RPC devolve os nomes na ordem pedida, apenas omitindo os que
    não existem no AUR.
    """
    pairs = []
    last = len(remote) - 1
    missing = 0
    for i, entry in enumerate(local):
        x = i - missing
        if x > last:
            break
        if remote[x].name == entry.name:
            pairs.append((entry, remote[x]))
        else:
            missing += 1
    return pairs


class UpgradeScanner:
    def __init__(self, local: PackageDB, sync: SyncDBList, rpc, batch_size: int = 150,
                 time_update: bool = False, ignore_pkgs: Iterable[str] = (),
                 ignore_groups: Iterable[str] = (), timeout: Optional[float] = None, log=None):
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self.local = local
        self.sync = sync
        self.rpc = rpc
        self.batch_size = batch_size
        self.time_update = time_update
        self.ignore_pkgs = set(ignore_pkgs)
        self.ignore_groups = set(ignore_groups)
        self.timeout = timeout
        self.log = log or NullLogger()

    # -----------------------
    # helpers
    # -----------------------
    def partition(self) -> Tuple[List[Tuple[InventoryEntry, str, InventoryEntry]], List[InventoryEntry]]:
        """(local, repositório, entrada do sync) para os nativos; lista de estrangeiros."""
        native, foreign = [], []
        for entry in self.local.entries():
            found = self.sync.lookup(entry.name)
            if found is None:
                foreign.append(entry)
            else:
                repo, sync_entry = found
                native.append((entry, repo, sync_entry))
        return native, foreign

    def batches(self, entries: List[InventoryEntry]) -> List[List[InventoryEntry]]:
        return [entries[i:i + self.batch_size] for i in range(0, len(entries), self.batch_size)]

    def _ignored(self, entry: InventoryEntry, new_version: str) -> bool:
        if entry.name in self.ignore_pkgs or self.ignore_groups.intersection(entry.groups):
            self.log.warning(f"{entry.name}: ignoring package upgrade ({entry.version} => {new_version})")
            return True
        return False

    # -----------------------
    # scans
    # -----------------------
    def scan_repo(self, native) -> List[Upgrade]:
        upgrades = []
        for entry, repo, sync_entry in native:
            if compare_versions(sync_entry.version, entry.version) <= 0:
                continue
            if self._ignored(entry, sync_entry.version):
                continue
            upgrades.append(Upgrade(entry.name, repo, entry.version, sync_entry.version))
        self.log.debug(f"Repository scan: {len(upgrades)} upgrades")
        return upgrades

    def scan_batch(self, batch: List[InventoryEntry]) -> List[Upgrade]:
        remote = self.rpc.info([e.name for e in batch])
        upgrades = []
        for entry, pkg in match_foreign(batch, remote):
            newer = compare_versions(entry.version, pkg.version) < 0
            touched = self.time_update and pkg.last_modified > entry.build_date
            if not (newer or touched):
                continue
            if self._ignored(entry, pkg.version):
                continue
            upgrades.append(Upgrade(pkg.name, AUR_REPOSITORY, entry.version, pkg.version))
        return upgrades

    def list(self) -> UpgradeList:
        native, foreign = self.partition()
        batches = self.batches(foreign)
        result = UpgradeList()
        errors = MultiError()

        self.log.info("Searching databases for updates...")
        self.log.info(f"Searching AUR for updates ({len(foreign)} packages, {len(batches)} requests)...")

        executor = ThreadPoolExecutor(max_workers=min(32, len(batches) + 1))
        futures = {executor.submit(self.scan_repo, native): None}
        for batch in batches:
            futures[executor.submit(self.scan_batch, batch)] = batch

        try:
            for fut in as_completed(futures, timeout=self.timeout):
                batch = futures[fut]
                try:
                    ups = fut.result()
                except RPCError as e:
                    self.log.error(f"AUR request failed: {e}")
                    errors.add(e)
                    continue
                except Exception as e:
                    what = "repository scan" if batch is None else f"AUR batch ({len(batch)} packages)"
                    self.log.error(f"{what} failed: {e}")
                    errors.add(e)
                    continue
                if batch is None:
                    result.repo.extend(ups)
                else:
                    result.aur.extend(ups)
        except FutureTimeout:
            pending = [f for f in futures if not f.done()]
            self.log.error(f"Upgrade scan timed out with {len(pending)} tasks pending")
            errors.add(RPCError(f"upgrade scan timed out after {self.timeout} seconds ({len(pending)} tasks pending)"))
        finally:
            executor.shutdown(wait=self.timeout is None, cancel_futures=True)

        result.repo = sort_upgrades(result.repo)
        result.aur = sort_upgrades(result.aur)
        result.errors = errors.result()
        return result
