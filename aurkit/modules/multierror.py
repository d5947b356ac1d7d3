# aurkit/modules/multierror.py
import threading
from typing import Iterable, List, Optional


class MultiError(Exception):
    """
    Agrega falhas independentes de operações em lote (download, RPC).
    Thread-safe: tasks concorrentes podem chamar add().
    """

    def __init__(self, errors: Optional[Iterable[BaseException]] = None):
        super().__init__()
        self.errors: List[BaseException] = list(errors or [])
        self._lock = threading.Lock()

    def add(self, err: BaseException):
        with self._lock:
            self.errors.append(err)

    def extend(self, errs: Iterable[BaseException]):
        with self._lock:
            self.errors.extend(errs)

    def result(self) -> Optional["MultiError"]:
        """Retorna self se houver erros, senão None."""
        return self if self.errors else None

    def __len__(self):
        return len(self.errors)

    def __iter__(self):
        return iter(list(self.errors))

    def __str__(self):
        return "\n".join(str(e) for e in self.errors)
