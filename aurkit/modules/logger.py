import datetime
import json
import os
import sys
import threading

from rich.console import Console
from rich.text import Text

from aurkit.modules.config import AurConfig


class Logger:
    """
    Logger do aurkit, configurado pela seção [logging] de um AurConfig.

    Linhas vão para stderr (rich, com estilo por nível) e, se log_to_file,
    para log_file em texto ou JSON, com rotação por tamanho. stdout fica
    livre para a saída dos comandos.
    """

    LEVELS = {
        "debug": 10,
        "info": 20,
        "warning": 30,
        "error": 40,
    }

    STYLES = {
        "DEBUG": "dim",
        "INFO": "blue",
        "WARNING": "yellow",
        "ERROR": "bold red",
    }

    def __init__(self, name="aurkit", config=None):
        config = config or AurConfig(locations=[])
        self.name = name
        self.log_file = config.path("logging", "log_file",
                                    fallback=os.path.expanduser("~/.cache/aurkit/aurkit.log"))
        self.log_to_file = config.getboolean("logging", "log_to_file", fallback=False)
        self.log_to_console = config.getboolean("logging", "log_to_console", fallback=True)
        self.use_utc = config.getboolean("logging", "timestamp_utc", fallback=False)
        self.log_format = config.get("logging", "log_format", fallback="text").lower()
        self.max_log_size_kb = config.getint("logging", "max_log_size_kb", fallback=0)
        self.min_level = self.LEVELS.get(config.get("logging", "level", fallback="info").lower(), 20)

        color = config.getboolean("logging", "color_output", fallback=True)
        self.console = Console(stderr=True, highlight=False, color_system="auto" if color else None)
        self._lock = threading.Lock()

        if self.log_to_file:
            try:
                os.makedirs(os.path.dirname(self.log_file), exist_ok=True)
            except OSError as e:
                self._complain(f"falha ao criar diretório de log: {e}")

    @staticmethod
    def _complain(message):
        print(f"Logger: {message}", file=sys.stderr)

    def _format(self, level, message):
        tz = datetime.timezone.utc if self.use_utc else None
        timestamp = datetime.datetime.now(tz).strftime("%Y-%m-%d %H:%M:%S")
        if self.log_format == "json":
            return json.dumps({"timestamp": timestamp, "logger": self.name,
                               "level": level, "message": message})
        return f"[{timestamp}] [{self.name}] [{level}] {message}"

    def _append(self, line):
        path = self.log_file
        try:
            limit = self.max_log_size_kb * 1024
            if limit > 0 and os.path.exists(path) and os.path.getsize(path) > limit:
                os.replace(path, path + ".1")
            with open(path, "a") as f:
                f.write(line + "\n")
        except OSError as e:
            self._complain(f"falha ao escrever em {path}: {e}")

    def child(self, name):
        """Logger com outro nome compartilhando a mesma configuração e lock."""
        other = object.__new__(type(self))
        other.__dict__.update(self.__dict__)
        other.name = name
        return other

    def log(self, level, message):
        level = level.upper()
        if self.LEVELS.get(level.lower(), 0) < self.min_level:
            return

        line = self._format(level, message)
        with self._lock:
            if self.log_to_console:
                style = self.STYLES.get(level, "") if self.log_format == "text" else ""
                self.console.print(Text(line, style=style), soft_wrap=True)
            if self.log_to_file:
                self._append(line)

    def debug(self, message):
        self.log("DEBUG", message)

    def info(self, message):
        self.log("INFO", message)

    def warning(self, message):
        self.log("WARNING", message)

    def error(self, message):
        self.log("ERROR", message)


class NullLogger(Logger):
    """Logger silencioso, padrão quando nenhum é injetado."""

    def __init__(self):
        self.name = "null"
        self.min_level = 100
        self.log_to_console = False
        self.log_to_file = False
        self._lock = threading.Lock()

    def log(self, level, message):
        return
