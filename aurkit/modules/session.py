# aurkit/modules/session.py
"""
Sessão: construída uma vez a partir de um AurConfig e repassada aos
comandos. Carrega os bancos do pacman sob demanda e só uma vez.
"""

from typing import Optional, Tuple

from aurkit.modules.config import AurConfig
from aurkit.modules.inventory import PackageDB, SyncDBList
from aurkit.modules.logger import Logger
from aurkit.modules.resolver import Resolver
from aurkit.modules.rpc import AurRPC
from aurkit.modules.sync import SourceSync
from aurkit.modules.upgrade import UpgradeScanner


class Session:
    def __init__(self, config: Optional[AurConfig] = None, logger: Optional[Logger] = None,
                 backend=None, rpc: Optional[AurRPC] = None):
        self.config = config or AurConfig()
        self.log = logger or Logger("aurkit", self.config)
        if backend is None:
            # libalpm is only needed once the real databases are read
            from aurkit.modules.alpm import PacmanBackend
            backend = PacmanBackend(
                pacman_conf=self.config.path("paths", "pacman_conf", fallback="/etc/pacman.conf"),
                log=self.log.child("inventory"),
            )
        self.backend = backend
        self.rpc = rpc or AurRPC(
            url=self.config.get("aur", "rpc_url"),
            timeout=self.config.getfloat("aur", "timeout", fallback=None),
            log=self.log.child("rpc"),
        )
        self._inventory: Optional[Tuple[PackageDB, SyncDBList]] = None
        self._ignore: Optional[Tuple[list, list]] = None

    def inventory(self) -> Tuple[PackageDB, SyncDBList]:
        if self._inventory is None:
            self._inventory = self.backend.load()
        return self._inventory

    def ignored(self) -> Tuple[list, list]:
        """(IgnorePkg, IgnoreGroup) do pacman.conf."""
        if self._ignore is None:
            _, pkgs, groups = self.backend.read_conf()
            self._ignore = (pkgs, groups)
        return self._ignore

    def resolver(self) -> Resolver:
        local, sync = self.inventory()
        return Resolver(local, sync, log=self.log.child("resolver"))

    def upgrade_scanner(self) -> UpgradeScanner:
        local, sync = self.inventory()
        ignore_pkgs, ignore_groups = self.ignored()
        return UpgradeScanner(
            local, sync, self.rpc,
            batch_size=self.config.getint("aur", "request_split", fallback=150),
            time_update=self.config.getboolean("aur", "time_update", fallback=False),
            ignore_pkgs=ignore_pkgs,
            ignore_groups=ignore_groups,
            log=self.log.child("upgrade"),
        )

    def source_sync(self) -> SourceSync:
        cfg = self.config
        return SourceSync(
            cache_dir=cfg.cache_dir,
            patch_dir=cfg.patch_dir,
            aur_url=cfg.get("aur", "url"),
            git_bin=cfg.get("git", "bin", fallback="git"),
            git_flags=cfg.getargs("git", "flags"),
            git_command_args=cfg.getargs("git", "command_args"),
            git_env=cfg.getenv("git", "env"),
            timeout=cfg.getfloat("git", "timeout", fallback=None),
            log=self.log.child("sync"),
        )
