"""Persistence of the preferred tunnel name."""

import configparser
import os
from typing import Optional, Protocol

from .logging_utility import logger

SECTION = "preferences"
PREFERRED_NAME_KEY = "preferred_name"


class PreferenceStore(Protocol):
    def get_preferred_name(self) -> Optional[str]:
        ...

    def set_preferred_name(self, name: str) -> None:
        ...


class MemoryPreferenceStore:
    """Keeps the preferred name for the lifetime of the process only."""

    def __init__(self, preferred_name: Optional[str] = None):
        self.preferred_name = preferred_name

    def get_preferred_name(self) -> Optional[str]:
        return self.preferred_name

    def set_preferred_name(self, name: str) -> None:
        self.preferred_name = name


class IniPreferenceStore:
    """Keeps the preferred name in a small INI file."""

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _load(self) -> configparser.ConfigParser:
        config = configparser.ConfigParser(interpolation=None)
        try:
            config.read(self.path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            config = configparser.ConfigParser(interpolation=None)
        return config

    def get_preferred_name(self) -> Optional[str]:
        value = self._load().get(SECTION, PREFERRED_NAME_KEY, fallback="").strip()
        return value or None

    def set_preferred_name(self, name: str) -> None:
        config = self._load()
        if config.get(SECTION, PREFERRED_NAME_KEY, fallback=None) == name:
            return
        if not config.has_section(SECTION):
            config.add_section(SECTION)
        config.set(SECTION, PREFERRED_NAME_KEY, name)
        try:
            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                config.write(f)
        except OSError as e:
            logger.error(f"Could not save preferred name to {self.path}: {e}")
