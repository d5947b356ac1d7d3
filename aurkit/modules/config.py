import configparser
import os
from typing import Dict, List, Optional

DEFAULT_LOCATIONS = [
    "/etc/aurkit/aurkit.conf",
    os.path.expanduser("~/.config/aurkit/aurkit.conf"),
]

DEFAULTS = {
    "aur": {
        "url": "https://aur.archlinux.org",
        "rpc_url": "https://aur.archlinux.org/rpc/",
        "request_split": "150",
        "time_update": "false",
        "timeout": "30",
    },
    "paths": {
        "cache_dir": "~/.cache/aurkit",
        "patch_dir": "",
        "pacman_conf": "/etc/pacman.conf",
    },
    "git": {
        "bin": "git",
        "flags": "",
        "command_args": "",
        "env": "",
        "timeout": "",
    },
    "logging": {
        "level": "info",
        "log_file": "~/.cache/aurkit/aurkit.log",
        "log_to_file": "false",
        "log_to_console": "true",
        "color_output": "true",
        "log_format": "text",
        "timestamp_utc": "false",
        "max_log_size_kb": "0",
    },
}


class AurConfig:
    def __init__(self, locations: Optional[List[str]] = None):
        if locations is None:
            locations = list(DEFAULT_LOCATIONS)
            if os.environ.get("AURKIT_CONFIG"):
                locations.append(os.environ["AURKIT_CONFIG"])
        self.locations = locations
        self.config = configparser.ConfigParser()
        self.loaded_from: List[str] = []
        self.reload()

    def reload(self):
        """(Re)carrega defaults e depois cada arquivo existente, em ordem."""
        self.config = configparser.ConfigParser()
        self.config.read_dict(DEFAULTS)
        self.loaded_from = self.config.read([p for p in self.locations if os.path.isfile(p)])

    def get(self, section, option, fallback=None):
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def getboolean(self, section, option, fallback=False):
        try:
            return self.config.getboolean(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getint(self, section, option, fallback=0):
        try:
            return self.config.getint(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getfloat(self, section, option, fallback=None):
        try:
            return self.config.getfloat(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError):
            return fallback

    def getlist(self, section, option, fallback=None, delimiter=","):
        raw = self.get(section, option, fallback="")
        if raw:
            return [item.strip() for item in raw.split(delimiter) if item.strip()]
        return fallback or []

    def getargs(self, section, option) -> List[str]:
        """Lista separada por espaços (flags de linha de comando)."""
        return (self.get(section, option, fallback="") or "").split()

    def getenv(self, section, option) -> Dict[str, str]:
        env = {}
        for item in self.getlist(section, option):
            key, sep, value = item.partition("=")
            if sep and key.strip():
                env[key.strip()] = value.strip()
        return env

    def path(self, section, option, fallback=None) -> Optional[str]:
        raw = self.get(section, option, fallback=fallback)
        if not raw:
            return fallback
        return os.path.abspath(os.path.expanduser(raw))

    @property
    def cache_dir(self) -> str:
        return self.path("paths", "cache_dir")

    @property
    def patch_dir(self) -> str:
        return self.path("paths", "patch_dir") or os.path.join(self.cache_dir, "diff")

    def __getitem__(self, section):
        if section in self.config:
            return dict(self.config[section])
        raise KeyError(f"Seção '{section}' não encontrada.")

    def __contains__(self, section):
        return section in self.config
