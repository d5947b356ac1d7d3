# aurkit/modules/rpc.py
"""
rpc.py - cliente da RPC do AUR (v5).

- info(names): metadados de vários pacotes numa única requisição (arg[] repetido).
- search(term, by): busca por nome/descrição/mantenedor etc.
Falhas de transporte, HTTP ou respostas com "error" viram RPCError.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from aurkit.modules.logger import NullLogger

DEFAULT_RPC_URL = "https://aur.archlinux.org/rpc/"
SEARCH_FIELDS = ("name", "name-desc", "maintainer", "depends", "makedepends",
                 "optdepends", "checkdepends")


class RPCError(Exception):
    pass


@dataclass
class AurPackage:
    name: str
    package_base: str
    version: str
    description: str = ""
    url: str = ""
    num_votes: int = 0
    popularity: float = 0.0
    out_of_date: Optional[int] = None
    maintainer: Optional[str] = None
    first_submitted: int = 0
    last_modified: int = 0
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)
    check_depends: List[str] = field(default_factory=list)
    opt_depends: List[str] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    license: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "AurPackage":
        return cls(
            name=data["Name"],
            package_base=data.get("PackageBase") or data["Name"],
            version=data["Version"],
            description=data.get("Description") or "",
            url=data.get("URL") or "",
            num_votes=data.get("NumVotes") or 0,
            popularity=data.get("Popularity") or 0.0,
            out_of_date=data.get("OutOfDate"),
            maintainer=data.get("Maintainer"),
            first_submitted=data.get("FirstSubmitted") or 0,
            last_modified=data.get("LastModified") or 0,
            depends=list(data.get("Depends") or []),
            make_depends=list(data.get("MakeDepends") or []),
            check_depends=list(data.get("CheckDepends") or []),
            opt_depends=list(data.get("OptDepends") or []),
            provides=list(data.get("Provides") or []),
            conflicts=list(data.get("Conflicts") or []),
            license=list(data.get("License") or []),
            keywords=list(data.get("Keywords") or []),
        )


class AurRPC:
    def __init__(self, url: str = DEFAULT_RPC_URL, timeout: Optional[float] = 30,
                 session: Optional[requests.Session] = None, log=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = log or NullLogger()

    def _get(self, params: List[tuple], context: str) -> List[Dict[str, Any]]:
        self.log.debug(f"RPC request: {context}")
        try:
            res = self.session.get(self.url, params=params, timeout=self.timeout)
            res.raise_for_status()
            payload = res.json()
        except requests.Timeout as e:
            raise RPCError(f"{context}: request timed out after {self.timeout} seconds") from e
        except requests.RequestException as e:
            raise RPCError(f"{context}: {e}") from e
        except ValueError as e:
            raise RPCError(f"{context}: invalid JSON response: {e}") from e

        if payload.get("type") == "error" or payload.get("error"):
            raise RPCError(f"{context}: {payload.get('error') or 'unknown error'}")
        return payload.get("results") or []

    def info(self, names: List[str]) -> List[AurPackage]:
        if not names:
            return []
        params = [("v", "5"), ("type", "info")] + [("arg[]", n) for n in names]
        results = self._get(params, f"info ({len(names)} packages)")
        try:
            return [AurPackage.from_json(r) for r in results]
        except (KeyError, TypeError) as e:
            raise RPCError(f"info: malformed package record: {e}") from e

    def search(self, term: str, by: str = "name-desc") -> List[AurPackage]:
        if by not in SEARCH_FIELDS:
            raise ValueError(f"invalid search field: {by}")
        params = [("v", "5"), ("type", "search"), ("by", by), ("arg", term)]
        results = self._get(params, f"search {by}={term}")
        try:
            return [AurPackage.from_json(r) for r in results]
        except (KeyError, TypeError) as e:
            raise RPCError(f"search: malformed package record: {e}") from e
