"""Read-only probes for WireGuard state."""

import os
import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from .command_factory import WireGuardCommandFactory
from .models import ServiceEntry
from .resolver import ExecutableResolver, Runner
from .utils import (
    dedupe,
    extract_parenthesized_value,
    extract_quoted_value,
    is_wireguard_name,
    run_command,
)
from ..logging_utility import logger

DEFAULT_WG_CANDIDATES = (
    "/opt/homebrew/bin/wg",
    "/usr/local/bin/wg",
    "/usr/bin/wg",
    "wg",
)

DEFAULT_CONFIG_DIRECTORIES = (
    "/etc/wireguard",
    "/opt/homebrew/etc/wireguard",
    "/usr/local/etc/wireguard",
)

CONFIG_EXTENSION = ".conf"
CONFIG_CACHE_TTL = 30.0


def cache_is_fresh(now: float, scanned_at: Optional[float], ttl: float, force: bool) -> bool:
    """Whether a cached config listing taken at scanned_at may be served at now."""
    if force or scanned_at is None:
        return False
    return now - scanned_at < ttl


class ConfigNameCache:
    """Last config scan result, shared between polling and action threads."""

    def __init__(self, ttl: float = CONFIG_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._scanned_at: Optional[float] = None
        self._names: List[str] = []

    def get(self, force: bool = False) -> Tuple[float, Optional[List[str]]]:
        """
        Current time and the cached names, or None for the names when a
        rescan is due.
        """
        now = self._clock()
        with self._lock:
            if cache_is_fresh(now, self._scanned_at, self.ttl, force):
                return now, list(self._names)
        return now, None

    def store(self, scanned_at: float, names: List[str]) -> None:
        with self._lock:
            self._scanned_at = scanned_at
            self._names = list(names)


class StatusCollector:
    """
    Probes for tunnel interfaces, VPN services and config files.

    None of the probes raise: a missing tool, a process that cannot be
    started or a nonzero exit all produce an empty result.
    """

    def __init__(
            self,
            wg: Optional[ExecutableResolver] = None,
            config_directories: Sequence[str] = DEFAULT_CONFIG_DIRECTORIES,
            config_extension: str = CONFIG_EXTENSION,
            cache: Optional[ConfigNameCache] = None,
            runner: Runner = run_command,
            list_directory: Callable[[str], List[str]] = os.listdir,
    ):
        self._runner = runner
        self.wg = wg or ExecutableResolver("wg", DEFAULT_WG_CANDIDATES, runner=runner)
        self.config_directories = list(config_directories)
        self.config_extension = config_extension
        self.cache = cache or ConfigNameCache()
        self._list_directory = list_directory

    def tunnel_interfaces(self) -> List[str]:
        """Active kernel tunnel interfaces as reported by `wg show interfaces`."""
        wg_path = self.wg.path
        if wg_path is None:
            return []

        result = self._runner(WireGuardCommandFactory.show_interfaces(wg_path))
        if result is None or not result.ok:
            if result is not None:
                logger.debug(f"wg show interfaces exited with {result.exit_code}: {result.stderr.strip()}")
            return []

        return result.stdout.split()

    def services(self) -> List[ServiceEntry]:
        """WireGuard VPN services registered with the system."""
        result = self._runner(WireGuardCommandFactory.list_services())
        if result is None or not result.ok:
            return []

        services = []
        for line in result.stdout.splitlines():
            name = extract_quoted_value(line)
            if not name or not is_wireguard_name(name):
                continue
            status = extract_parenthesized_value(line) or "unknown"
            services.append(ServiceEntry(name=name, status=status.lower()))
        return services

    def config_names(self, force_refresh: bool = False) -> List[str]:
        """Tunnel names from config files on disk, rescanned at most once per TTL."""
        now, cached = self.cache.get(force=force_refresh)
        if cached is not None:
            return cached

        names = dedupe(self._scan_config_directories())
        self.cache.store(now, names)
        logger.debug(f"Found {len(names)} WireGuard config(s)")
        return names

    def _scan_config_directories(self) -> List[str]:
        names = []
        for directory in self.config_directories:
            try:
                files = self._list_directory(directory)
            except OSError:
                continue

            for file_name in sorted(files):
                if not file_name.endswith(self.config_extension):
                    continue
                name = file_name[:-len(self.config_extension)]
                if name:
                    names.append(name)
        return names
