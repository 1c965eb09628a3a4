"""Settings loaded from an INI file and validated with pydantic."""

import configparser
import os
from typing import List, Optional, Tuple

from pydantic import BaseModel, ValidationError, field_validator

from .vpn.collectors import CONFIG_CACHE_TTL, CONFIG_EXTENSION, DEFAULT_CONFIG_DIRECTORIES, DEFAULT_WG_CANDIDATES
from .vpn.exceptions import ConfigurationError
from .vpn.manager import DEFAULT_BASH_CANDIDATES, DEFAULT_WG_QUICK_CANDIDATES
from .logging_utility import logger

DEFAULT_CONFIG_FILE = os.path.join("config", "wireguard_tray.conf")
DEFAULT_PREFERENCES_FILE = os.path.join("~", "Library", "Preferences", "wireguard_tray.ini")
DEFAULT_POLL_INTERVAL = 5.0

# (section, key) -> TraySettings field
_FIELDS = {
    ("executables", "wg"): "wg_candidates",
    ("executables", "wg_quick"): "wg_quick_candidates",
    ("executables", "bash"): "bash_candidates",
    ("configs", "directories"): "config_directories",
    ("configs", "extension"): "config_extension",
    ("configs", "cache_ttl"): "config_cache_ttl",
    ("polling", "interval"): "poll_interval",
    ("preferences", "file"): "preferences_file",
}

_LIST_FIELDS = {"wg_candidates", "wg_quick_candidates", "bash_candidates", "config_directories"}


class TraySettings(BaseModel):
    wg_candidates: Tuple[str, ...] = DEFAULT_WG_CANDIDATES
    wg_quick_candidates: Tuple[str, ...] = DEFAULT_WG_QUICK_CANDIDATES
    bash_candidates: Tuple[str, ...] = DEFAULT_BASH_CANDIDATES
    config_directories: Tuple[str, ...] = DEFAULT_CONFIG_DIRECTORIES
    config_extension: str = CONFIG_EXTENSION
    config_cache_ttl: float = CONFIG_CACHE_TTL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    preferences_file: str = DEFAULT_PREFERENCES_FILE

    @field_validator("wg_candidates", "wg_quick_candidates", "bash_candidates", "config_directories")
    @classmethod
    def _not_empty(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("at least one entry is required")
        return value

    @field_validator("config_extension")
    @classmethod
    def _extension(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("extension must look like '.conf'")
        return value

    @field_validator("config_cache_ttl")
    @classmethod
    def _ttl(cls, value: float) -> float:
        if value < 0:
            raise ValueError("cache_ttl cannot be negative")
        return value

    @field_validator("poll_interval")
    @classmethod
    def _interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("interval must be positive")
        return value


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.replace(",", "\n").splitlines() if item.strip()]


def load_settings(config_file: Optional[str] = None) -> TraySettings:
    """
    Load settings from an INI file.

    Missing files and keys fall back to the defaults.

    Raises:
        ConfigurationError: If the file cannot be parsed or holds invalid values
    """
    if config_file is None:
        config_file = os.environ.get("WG_TRAY_CONFIG", DEFAULT_CONFIG_FILE)

    config = configparser.ConfigParser(interpolation=None)
    try:
        read_files = config.read(config_file, encoding="utf-8")
    except (configparser.Error, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Invalid settings file {config_file}: {e}")

    if not read_files:
        logger.info(f"No settings file at {config_file}, using defaults")

    values = {}
    for (section, key), field in _FIELDS.items():
        if not config.has_option(section, key):
            continue
        raw = config.get(section, key)
        values[field] = _split_list(raw) if field in _LIST_FIELDS else raw.strip()

    try:
        return TraySettings(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {config_file}: {e}")
