# aurkit/modules/sync.py
"""
sync.py - espelhos git locais dos pacotes do AUR.

- Um espelho por pkgbase em <cache_dir>/<pkgbase> (clone de <aur_url>/<pkgbase>.git).
- download: clone ou fetch em paralelo, uma thread por pacote, falhas coletadas.
- AUR_SEEN: ref dentro de cada espelho marcando até onde o usuário revisou.
- needs_merge / merge / mark_seen: fluxo de revisão antes do build.
- diff: log + patch entre o último commit revisado e o upstream, calculado
  num worktree descartável (o working tree do espelho nunca fica no meio de um merge).
- make_view: diretório temporário com links para revisão em editor/gerenciador de arquivos.
"""

from __future__ import annotations
import os
import shutil
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from git import Git, GitCommandError, GitCommandNotFound
from rich.console import Console
from rich.text import Text

from aurkit.modules import srcinfo as _srcinfo
from aurkit.modules.logger import NullLogger
from aurkit.modules.multierror import MultiError

SEEN_REF = "AUR_SEEN"
# sha1 of the empty tree object
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

Callback = Callable[[str, int, str, str], None]


class SyncError(Exception):
    def __init__(self, message: str, pkg: str = "", output: str = "", command: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.pkg = pkg
        self.output = output
        self.command = list(command or [])


class SourceSync:
    def __init__(self, cache_dir: str, patch_dir: str, aur_url: str = "https://aur.archlinux.org",
                 git_bin: str = "git", git_flags: Sequence[str] = (), git_command_args: Sequence[str] = (),
                 git_env: Optional[Dict[str, str]] = None, timeout: Optional[float] = None, log=None):
        self.cache_dir = cache_dir
        self.patch_dir = patch_dir
        self.aur_url = aur_url.rstrip("/")
        self.git_bin = git_bin
        self.git_flags = list(git_flags)
        self.git_command_args = list(git_command_args)
        self.git_env = dict(git_env or {})
        self.timeout = timeout
        self.log = log or NullLogger()
        self._git = Git()

    # -----------------------
    # git plumbing
    # -----------------------
    def url(self, pkgbase: str) -> str:
        return f"{self.aur_url}/{pkgbase}.git"

    def path(self, pkgbase: str) -> str:
        return os.path.join(self.cache_dir, pkgbase)

    def git_command(self, directory: str, cmd: str, *args: str, pre: Sequence[str] = ()) -> List[str]:
        return [self.git_bin, *self.git_flags, *pre, "-C", directory, cmd, *self.git_command_args, *args]

    def _exec(self, pkg: str, command: List[str], check: bool = True) -> Tuple[int, str, str]:
        self.log.debug(f"Running: {' '.join(command)}")
        try:
            return self._git.execute(
                command,
                with_extended_output=True,
                with_exceptions=check,
                env=self.git_env,
                kill_after_timeout=self.timeout,
            )
        except GitCommandNotFound as e:
            raise SyncError(f"{pkg}: git executable not found: {self.git_bin}", pkg, "", command) from e
        except GitCommandError as e:
            output = "\n".join(s for s in (_text(e.stdout), _text(e.stderr)) if s)
            raise SyncError(f"{pkg}: {' '.join(command)} failed: {output}", pkg, output, command) from e

    def run(self, pkg: str, directory: str, cmd: str, *args: str, pre: Sequence[str] = ()) -> str:
        _, out, _ = self._exec(pkg, self.git_command(directory, cmd, *args, pre=pre))
        return out

    def succeeds(self, pkg: str, directory: str, cmd: str, *args: str) -> bool:
        status, _, _ = self._exec(pkg, self.git_command(directory, cmd, *args), check=False)
        return status == 0

    def rev_parse(self, pkg: str, ref: str) -> str:
        return self.run(pkg, self.path(pkg), "rev-parse", "--verify", ref).strip()

    # -----------------------
    # download
    # -----------------------
    def has_mirror(self, pkg: str) -> bool:
        return os.path.isdir(os.path.join(self.path(pkg), ".git"))

    def _download_one(self, pkg: str) -> Tuple[bool, str, str]:
        if not self.has_mirror(pkg):
            self.log.info(f"Cloning {pkg}")
            os.makedirs(self.cache_dir, exist_ok=True)
            _, out, err = self._exec(pkg, self.git_command(self.cache_dir, "clone", "--no-progress", self.url(pkg), pkg))
            return False, out, err
        self.log.info(f"Fetching {pkg}")
        _, out, err = self._exec(pkg, self.git_command(self.path(pkg), "fetch", "-v"))
        return True, out, err

    def download(self, names: Iterable[str], callback: Optional[Callback] = None) -> Tuple[List[str], Optional[MultiError]]:
        """
        Clona os pacotes sem espelho e faz fetch dos demais, todos em paralelo.
        Retorna (nomes que já tinham espelho, MultiError ou None).
        """
        names = list(dict.fromkeys(names))
        fetched: List[str] = []
        errors = MultiError()
        if not names:
            return fetched, None

        done = 0
        with ThreadPoolExecutor(max_workers=len(names)) as executor:
            futures = {executor.submit(self._download_one, pkg): pkg for pkg in names}
            for fut in as_completed(futures):
                pkg = futures[fut]
                done += 1
                try:
                    existed, out, err = fut.result()
                except SyncError as e:
                    self.log.error(str(e))
                    errors.add(e)
                    if callback:
                        callback(pkg, done, e.output, str(e))
                    continue
                if existed:
                    fetched.append(pkg)
                if callback:
                    callback(pkg, done, out, err)

        # completion order is arbitrary, keep the caller's
        fetched.sort(key=names.index)
        return fetched, errors.result()

    # -----------------------
    # review marker
    # -----------------------
    def has_seen(self, pkg: str) -> bool:
        return self.succeeds(pkg, self.path(pkg), "rev-parse", "--quiet", "--verify", SEEN_REF)

    def _baseline(self, pkg: str) -> str:
        return SEEN_REF if self.has_seen(pkg) else "HEAD"

    def needs_merge(self, names: Iterable[str]) -> List[str]:
        """Pacotes cujo upstream ainda não está contido em AUR_SEEN (ou HEAD)."""
        pending = []
        for pkg in names:
            ref = self._baseline(pkg)
            if self.succeeds(pkg, self.path(pkg), "merge-base", "--is-ancestor", "HEAD@{upstream}", ref):
                continue
            pending.append(pkg)
        return pending

    def merge(self, names: Iterable[str], callback: Optional[Callback] = None):
        """Reset para a revisão vista e rebase no upstream. Para na primeira falha."""
        for n, pkg in enumerate(names, start=1):
            path = self.path(pkg)
            self.run(pkg, path, "reset", "--hard", "-q", self._baseline(pkg))
            out = self.run(pkg, path, "rebase")
            self.log.debug(f"Merged {pkg}")
            if callback:
                callback(pkg, n, out, "")

    def mark_seen(self, names: Iterable[str]):
        for pkg in names:
            self.run(pkg, self.path(pkg), "update-ref", SEEN_REF, "HEAD")
            self.log.debug(f"{pkg}: {SEEN_REF} -> HEAD")

    # -----------------------
    # diff
    # -----------------------
    def _diff_one(self, pkg: str, color: bool) -> str:
        mirror = self.path(pkg)
        upstream = self.rev_parse(pkg, "HEAD@{upstream}")
        seen = self.rev_parse(pkg, SEEN_REF) if self.has_seen(pkg) else None
        base = seen or self.rev_parse(pkg, "HEAD")
        color_arg = "--color=always" if color else "--color=never"

        parent = tempfile.mkdtemp(prefix="aurkit-diff.")
        worktree = os.path.join(parent, pkg)
        created = False
        try:
            self.run(pkg, mirror, "worktree", "add", "--detach", worktree, base)
            created = True
            self.run(pkg, worktree, "merge", "--no-edit", "--no-ff", "--no-commit", upstream,
                     pre=("-c", "user.email=aur", "-c", "user.name=aur"))
            if seen:
                log = self.run(pkg, worktree, "log", color_arg, f"{seen}..{upstream}")
            else:
                log = self.run(pkg, worktree, "log", color_arg, upstream)
            diff = self.run(pkg, worktree, "diff", "--stat", "--patch", "--cached", color_arg, seen or EMPTY_TREE)
            return log + "\n\n" + diff
        finally:
            if created:
                try:
                    self.run(pkg, mirror, "worktree", "remove", "--force", worktree)
                except SyncError as e:
                    self.log.warning(f"{pkg}: unable to remove worktree {worktree}: {e}")
            shutil.rmtree(parent, ignore_errors=True)
            if created:
                self._exec(pkg, self.git_command(mirror, "worktree", "prune"), check=False)

    def diff(self, names: Iterable[str], color: bool = False) -> Dict[str, str]:
        diffs = {}
        for pkg in names:
            self.log.debug(f"Computing diff for {pkg}")
            diffs[pkg] = self._diff_one(pkg, color)
        return diffs

    def print_diffs(self, names: Iterable[str], console: Optional[Console] = None):
        console = console or Console()
        for pkg, text in self.diff(names, color=True).items():
            console.rule(f"[bold]{pkg}")
            console.print(Text.from_ansi(text))

    def diff_file(self, pkg: str) -> str:
        return os.path.join(self.patch_dir, f"{pkg}.diff")

    def diffs_to_file(self, names: Iterable[str], color: bool = False) -> List[str]:
        os.makedirs(self.patch_dir, exist_ok=True)
        written = []
        for pkg, text in self.diff(names, color=color).items():
            path = self.diff_file(pkg)
            with open(path, "w", encoding="utf-8") as f:
                f.write(text)
            self.log.debug(f"Wrote {path}")
            written.append(path)
        return written

    # -----------------------
    # review directory
    # -----------------------
    def _link_pkgs(self, names: Iterable[str], target: str):
        """<pkg> -> espelho e <pkg>-PKGBUILD quando o PKGBUILD existe."""
        for pkg in names:
            mirror = self.path(pkg)
            os.stat(mirror)
            os.symlink(mirror, os.path.join(target, pkg))
            pkgbuild = os.path.join(mirror, "PKGBUILD")
            if os.path.exists(pkgbuild):
                os.symlink(pkgbuild, os.path.join(target, f"{pkg}-PKGBUILD"))

    def make_view(self, names: Iterable[str], diff_names: Iterable[str] = ()) -> str:
        """
        Cria um diretório temporário para revisão. O chamador deve removê-lo.
         - <pkg> e <pkg>-PKGBUILD para pacotes nunca revisados (sem AUR_SEEN)
         - -all/<pkg> e -all/<pkg>-PKGBUILD para todos os pacotes
         - <pkg>.diff para os de diff_names
        """
        names = list(names)
        diff_names = list(diff_names)
        view = tempfile.mkdtemp(prefix="aur.")
        try:
            self._link_pkgs([p for p in names if not self.has_seen(p)], view)
            if names:
                all_dir = os.path.join(view, "-all")
                os.mkdir(all_dir)
                self._link_pkgs(names, all_dir)

            missing = [p for p in diff_names if not os.path.exists(self.diff_file(p))]
            if missing:
                self.diffs_to_file(missing)
            for pkg in diff_names:
                os.symlink(self.diff_file(pkg), os.path.join(view, f"{pkg}.diff"))
        except (OSError, SyncError) as e:
            shutil.rmtree(view, ignore_errors=True)
            if isinstance(e, SyncError):
                raise
            raise SyncError(f"unable to create review directory: {e}") from e
        return view

    def read_srcinfo(self, pkg: str) -> _srcinfo.Srcinfo:
        return _srcinfo.parse_file(os.path.join(self.path(pkg), ".SRCINFO"))


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", "replace")
    return value.strip()
