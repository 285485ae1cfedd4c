"""The configuration file kept in the user's profile."""

from __future__ import annotations

import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

_APP_DIR = "photoferry"
_CONFIG_NAME = "photoferry.json"


def _home() -> str:
    home = os.environ.get("HOME", "")
    if not home:
        raise OSError("$HOME is not defined")
    return home


def _user_config_dir() -> str:
    if sys.platform.startswith("win"):
        d = os.environ.get("AppData", "")
        if not d:
            raise OSError("%AppData% is not defined")
        return d
    if sys.platform == "darwin":
        return os.path.join(_home(), "Library", "Application Support")
    d = os.environ.get("XDG_CONFIG_HOME", "")
    if d:
        return d
    return os.path.join(_home(), ".config")


def _user_cache_dir() -> str:
    if sys.platform.startswith("win"):
        d = os.environ.get("LocalAppData", "")
        if not d:
            raise OSError("%LocalAppData% is not defined")
        return d
    if sys.platform == "darwin":
        return os.path.join(_home(), "Library", "Caches")
    d = os.environ.get("XDG_CACHE_HOME", "")
    if d:
        return d
    return os.path.join(_home(), ".cache")


@dataclass
class Configuration:
    """Server connection settings."""

    api_url: str = ""
    server_url: str = ""
    api_key: str = ""

    def to_dict(self) -> dict[str, str]:
        out: dict[str, str] = {}
        if self.api_url:
            out["APIURL"] = self.api_url
        if self.server_url:
            out["ServerURL"] = self.server_url
        out["APIKey"] = self.api_key
        return out

    def write(self, name: str | os.PathLike[str]) -> None:
        """Write the configuration as JSON, creating parent directories as needed."""
        path = Path(name)
        if str(path.parent) not in ("", "."):
            path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd = os.open(path, os.O_CREAT | os.O_RDWR | os.O_TRUNC, 0o700)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
            f.write("\n")


def default_config_file() -> str:
    """Default configuration path, or a local file when no profile directory is known."""
    try:
        config = _user_config_dir()
    except OSError:
        return "./" + _CONFIG_NAME
    return os.path.join(config, _APP_DIR, _CONFIG_NAME)


def config_read(name: str | os.PathLike[str]) -> Configuration:
    """Read a configuration file; keys are matched without regard to case."""
    with open(name, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("configuration must be a JSON object")
    fields = {
        field.name.replace("_", ""): field.name
        for field in dataclasses.fields(Configuration)
    }
    values: dict[str, str] = {}
    for key, value in data.items():
        attr = fields.get(key.lower())
        if attr is None:
            continue
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"configuration field {key} must be a string")
        values[attr] = value
    return Configuration(**values)


def default_log_file() -> str:
    """A time-stamped log file in the user's cache directory, or the current directory."""
    name = datetime.now().strftime(f"{_APP_DIR}_%Y-%m-%d_%H-%M-%S.log")
    try:
        d = _user_cache_dir()
    except OSError:
        return name
    return os.path.join(d, _APP_DIR, name)


def make_dir_for_file(name: str | os.PathLike[str]) -> None:
    """Create every directory needed to write the given file."""
    os.makedirs(os.path.dirname(os.fspath(name)) or ".", mode=0o700, exist_ok=True)