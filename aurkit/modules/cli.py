# aurkit/modules/cli.py
"""
CLI do aurkit.
- Usa rich para saída colorida, tabelas e spinners.
- Subcomandos sobre os módulos em aurkit/modules: vercmp, srcinfo, resolve,
  upgrades, download, needs-merge, merge, seen, diff, view, stats.
- Suporta --no-color, --quiet e --config.
- Código de saída: 0 ok, 1 falha parcial (lotes), 2 erro.

Usage examples:
  aurkit vercmp 1.0rc 1.0
  aurkit srcinfo ./.SRCINFO --print
  aurkit upgrades
  aurkit download yay paru && aurkit diff yay paru
"""

from __future__ import annotations
import argparse
import sys
import traceback
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text

from aurkit.modules import srcinfo as _srcinfo
from aurkit.modules.config import AurConfig
from aurkit.modules.inventory import InventoryError, orphans, statistics
from aurkit.modules.rpc import RPCError
from aurkit.modules.session import Session
from aurkit.modules.sync import SyncError
from aurkit.modules.upgrade import Upgrade
from aurkit.modules.version import ParseError, compare_versions

EXIT_OK = 0
EXIT_PARTIAL = 1
EXIT_ERROR = 2


def print_panel(console: Console, title: str, text: str, style: str = "green"):
    console.print(Panel(text, title=title, style=style))


def make_console(no_color: bool, quiet: bool) -> Console:
    if no_color:
        return Console(color_system=None, force_terminal=False, markup=False, quiet=quiet)
    return Console(quiet=quiet)


def human_size(n: int) -> str:
    size = float(n)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024 or unit == "GiB":
            return f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} GiB"


class CLI:
    def __init__(self, console: Console, session: Optional[Session] = None, config_path: Optional[str] = None):
        self.console = console
        self.config_path = config_path
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is None:
            config = AurConfig(locations=[self.config_path]) if self.config_path else AurConfig()
            self._session = Session(config)
        return self._session

    def _upgrade_table(self, title: str, upgrades: List[Upgrade]) -> Table:
        table = Table(title=title)
        table.add_column("#", justify="right", style="yellow")
        table.add_column("Repository", style="bold")
        table.add_column("Package", style="bold")
        table.add_column("Local")
        table.add_column("Remote", style="green")
        for i, u in enumerate(upgrades, start=1):
            table.add_row(str(i), u.repository, u.name, u.local_version, u.remote_version)
        return table

    # -----------------------
    # vercmp / srcinfo
    # -----------------------
    def cmd_vercmp(self, args: argparse.Namespace):
        self.console.print(str(compare_versions(args.a, args.b)))
        return EXIT_OK

    def cmd_srcinfo(self, args: argparse.Namespace):
        info = _srcinfo.parse_file(args.file)
        if args.print:
            sys.stdout.write(info.to_text())
            return EXIT_OK

        pkgs = [info.split_package(args.pkg)] if args.pkg else info.split_packages()
        table = Table(title=f"{info.pkgbase} {info.version()}")
        table.add_column("Package", style="bold")
        table.add_column("Description", overflow="fold")
        table.add_column("Depends", overflow="fold")
        table.add_column("Provides", overflow="fold")
        for p in pkgs:
            table.add_row(p.pkgname, p.pkgdesc,
                          ", ".join(d.value for d in p.depends) or "-",
                          ", ".join(d.value for d in p.provides) or "-")
        self.console.print(table)
        return EXIT_OK

    # -----------------------
    # resolve / upgrades / stats
    # -----------------------
    def cmd_resolve(self, args: argparse.Namespace):
        res = self.session.resolver().classify(args.names, baseline=args.baseline)
        table = Table(title="Dependency resolution")
        table.add_column("Status", style="bold")
        table.add_column("Packages", overflow="fold")
        table.add_row(Text("satisfied", style="green"), " ".join(res.satisfied) or "-")
        table.add_row(Text("repository", style="blue"), " ".join(res.from_repo) or "-")
        table.add_row(Text("AUR / unresolved", style="yellow"), " ".join(res.unresolved) or "-")
        self.console.print(table)
        return EXIT_OK

    def cmd_upgrades(self, args: argparse.Namespace):
        scanner = self.session.upgrade_scanner()
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      console=self.console, transient=True) as p:
            p.add_task("Searching databases and AUR for updates...", total=None)
            ups = scanner.list()

        if not len(ups):
            self.console.print("there is nothing to do", style="green")
        else:
            if ups.repo and not args.aur:
                self.console.print(self._upgrade_table("Repository upgrades", ups.repo))
            if ups.aur and not args.repo:
                self.console.print(self._upgrade_table("AUR upgrades", ups.aur))

        if ups.errors:
            print_panel(self.console, "errors", Text(str(ups.errors)), style="red")
            return EXIT_PARTIAL
        return EXIT_OK

    def cmd_stats(self, args: argparse.Namespace):
        local, sync = self.session.inventory()
        st = statistics(local)
        table = Table(title="Installed packages")
        table.add_column("Key", style="bold")
        table.add_column("Value", justify="right")
        table.add_row("total", str(st["total"]))
        table.add_row("explicitly installed", str(st["explicit"]))
        table.add_row("installed as dependency", str(st["depend"]))
        table.add_row("foreign (AUR/local)", str(st["foreign"]))
        table.add_row("total installed size", human_size(st["size"]))
        table.add_row("sync repositories", ", ".join(sync.names) or "-")
        self.console.print(table)

        orph = orphans(local)
        if orph:
            print_panel(self.console, "orphans", " ".join(e.name for e in orph), style="yellow")
        return EXIT_OK

    # -----------------------
    # source mirrors
    # -----------------------
    def cmd_download(self, args: argparse.Namespace):
        src = self.session.source_sync()
        total = len(args.names)

        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                      console=self.console, transient=True) as p:
            task = p.add_task(f"Downloading 0/{total}", total=total)

            def progress(pkg, n, out, err):
                p.update(task, advance=1, description=f"Downloading {n}/{total} {pkg}")

            fetched, errors = src.download(args.names, callback=progress)

        failed = {getattr(e, "pkg", "") for e in errors} if errors else set()
        for pkg in args.names:
            if pkg in failed:
                state = Text("failed", style="red")
            else:
                state = Text("fetched" if pkg in fetched else "cloned")
            self.console.print(Text.assemble((pkg, "bold"), " ", state))
        if errors:
            print_panel(self.console, "download errors", Text(str(errors)), style="red")
            return EXIT_PARTIAL
        return EXIT_OK

    def cmd_needs_merge(self, args: argparse.Namespace):
        for pkg in self.session.source_sync().needs_merge(args.names):
            self.console.print(pkg)
        return EXIT_OK

    def cmd_merge(self, args: argparse.Namespace):
        self.session.source_sync().merge(args.names)
        self.console.print(f"merged {len(args.names)} packages", style="green")
        return EXIT_OK

    def cmd_seen(self, args: argparse.Namespace):
        self.session.source_sync().mark_seen(args.names)
        self.console.print(f"marked {len(args.names)} packages as seen", style="green")
        return EXIT_OK

    def cmd_diff(self, args: argparse.Namespace):
        src = self.session.source_sync()
        if args.to_file:
            for path in src.diffs_to_file(args.names, color=args.color):
                self.console.print(path)
            return EXIT_OK
        src.print_diffs(args.names, console=self.console)
        return EXIT_OK

    def cmd_view(self, args: argparse.Namespace):
        view = self.session.source_sync().make_view(args.names, args.diff or ())
        self.console.print(view)
        return EXIT_OK


# -----------------------
# CLI wiring and argparse setup
# -----------------------
def build_argparser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="aurkit", description="AUR helper toolkit (rich-enabled)")
    ap.add_argument("--no-color", action="store_true", help="Disable color output")
    ap.add_argument("--quiet", action="store_true", help="Quiet mode; less output")
    ap.add_argument("--config", help="Path to aurkit.conf")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("vercmp", help="Compare two versions (-1, 0, 1)")
    p.add_argument("a")
    p.add_argument("b")

    p = sub.add_parser("srcinfo", help="Parse a .SRCINFO file")
    p.add_argument("file")
    p.add_argument("--print", action="store_true", help="Print in makepkg --printsrcinfo format")
    p.add_argument("--pkg", help="Show a single split package")

    p = sub.add_parser("resolve", help="Classify dependencies against installed and repository packages")
    p.add_argument("names", nargs="+")
    p.add_argument("--baseline", nargs="*", default=None, help="Names already resolved")

    p = sub.add_parser("upgrades", aliases=["up"], help="List available upgrades")
    g = p.add_mutually_exclusive_group()
    g.add_argument("--repo", action="store_true", help="Repository upgrades only")
    g.add_argument("--aur", action="store_true", help="AUR upgrades only")

    sub.add_parser("stats", help="Installed package statistics")

    for name, help_text in (("download", "Clone or fetch AUR mirrors"),
                            ("needs-merge", "List mirrors with unreviewed upstream changes"),
                            ("merge", "Rebase mirrors onto upstream"),
                            ("seen", "Mark mirrors as reviewed")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("names", nargs="+")

    p = sub.add_parser("diff", help="Show changes since the last review")
    p.add_argument("names", nargs="+")
    p.add_argument("--to-file", action="store_true", help="Write <pkg>.diff files to the patch directory")
    p.add_argument("--color", action="store_true", help="Keep ANSI colors in written diffs")

    p = sub.add_parser("view", help="Create a temporary review directory")
    p.add_argument("names", nargs="+")
    p.add_argument("--diff", nargs="*", help="Packages whose diffs are linked")

    return ap


COMMANDS = {
    "vercmp": CLI.cmd_vercmp,
    "srcinfo": CLI.cmd_srcinfo,
    "resolve": CLI.cmd_resolve,
    "upgrades": CLI.cmd_upgrades,
    "up": CLI.cmd_upgrades,
    "stats": CLI.cmd_stats,
    "download": CLI.cmd_download,
    "needs-merge": CLI.cmd_needs_merge,
    "merge": CLI.cmd_merge,
    "seen": CLI.cmd_seen,
    "diff": CLI.cmd_diff,
    "view": CLI.cmd_view,
}


def main(argv: Optional[List[str]] = None, session: Optional[Session] = None):
    argv = sys.argv[1:] if argv is None else argv
    parser = build_argparser()
    args = parser.parse_args(argv)
    console = make_console(args.no_color, args.quiet)
    err_console = Console(stderr=True, color_system=None if args.no_color else "auto")
    cli = CLI(console=console, session=session, config_path=args.config)

    try:
        return COMMANDS[args.command](cli, args)
    except (ParseError, InventoryError, RPCError, SyncError) as e:
        err_console.print(f"error: {e}", markup=False, highlight=False)
        return EXIT_ERROR
    except KeyError as e:
        err_console.print(f"error: {e.args[0] if e.args else e}", markup=False, highlight=False)
        return EXIT_ERROR
    except Exception as e:
        err_console.print(f"Unhandled CLI error: {e}", markup=False, highlight=False)
        err_console.print(traceback.format_exc(), markup=False, highlight=False)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
