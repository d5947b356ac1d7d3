# aurkit/modules/resolver.py

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from aurkit.modules.constraint import bare_name
from aurkit.modules.inventory import PackageDB, SyncDBList
from aurkit.modules.logger import NullLogger


@dataclass
class Classification:
    satisfied: List[str] = field(default_factory=list)
    from_repo: List[str] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)


class Resolver:
    """
    Classifica dependências contra o banco local e os repositórios de sync.
    - satisfeitas por um pacote instalado
    - disponíveis num repositório (guarda o nome do provedor)
    - sem solução local, candidatas à busca no AUR
    Erros do inventário (InventoryError) propagam e abortam a chamada.
    """

    def __init__(self, local: PackageDB, sync: SyncDBList, log=None):
        self.local = local
        self.sync = sync
        self.log = log or NullLogger()

    def classify(self, names: Iterable[str], baseline: Optional[Iterable[str]] = None) -> Classification:
        skip = set(baseline or ())
        result = Classification()

        for name in names:
            if name in skip:
                continue

            if self.local.find_satisfier(name) is not None:
                result.satisfied.append(name)
                continue

            provider = self.sync.find_satisfier(name)
            if provider is not None:
                self.log.debug(f"{name} provided by {provider.name}")
                result.from_repo.append(provider.name)
                continue

            result.unresolved.append(bare_name(name))

        return result

    def split_by_origin(self, names: Iterable[str]) -> Tuple[List[str], List[str]]:
        """Separa alvos em (repositório, AUR): nome ou grupo conhecido vai para o repo."""
        repo, aur = [], []
        for name in names:
            if self.sync.lookup(name) is not None or self.sync.has_group(name):
                repo.append(name)
            else:
                aur.append(name)
        return repo, aur
