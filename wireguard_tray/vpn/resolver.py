"""Locating the WireGuard tools and a usable bash."""

import os
import threading
from typing import Callable, List, Optional, Sequence

from .command_factory import WireGuardCommandFactory
from .exceptions import ToolNotFoundError
from .models import CommandResult
from .utils import first_line, run_command
from ..logging_utility import logger

Runner = Callable[[List[str]], Optional[CommandResult]]

MIN_SHELL_MAJOR_VERSION = 4

_UNRESOLVED = object()


def is_executable_file(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def parse_major_version(output: str) -> Optional[int]:
    """
    Parse the major version from the first line of a --version output.

    "GNU bash, version 5.2.15(1)-release (aarch64-apple-darwin22.1.0)" gives 5.

    Returns:
        Major version, or None if the line has no "version X" part
    """
    line = first_line(output)
    if line is None:
        return None
    line = line.lower()
    marker = "version "
    index = line.find(marker)
    if index == -1:
        return None
    major_text = line[index + len(marker):].split(".")[0]
    try:
        return int(major_text)
    except ValueError:
        return None


class ExecutableResolver:
    """
    Resolves the first usable candidate for a tool.

    Candidates containing a path separator are checked for executability,
    bare names are looked up with `which`. The result is computed on first
    access and kept for the lifetime of the resolver.
    """

    def __init__(
            self,
            tool: str,
            candidates: Sequence[str],
            runner: Runner = run_command,
            is_executable: Callable[[str], bool] = is_executable_file,
    ):
        self.tool = tool
        self.candidates = list(candidates)
        self._runner = runner
        self._is_executable = is_executable
        self._lock = threading.Lock()
        self._path = _UNRESOLVED

    @property
    def path(self) -> Optional[str]:
        """Resolved executable path, or None if no candidate is usable."""
        with self._lock:
            if self._path is _UNRESOLVED:
                self._path = self._resolve()
            return self._path

    def require(self) -> str:
        """Resolved executable path, raising ToolNotFoundError if there is none."""
        path = self.path
        if path is None:
            raise ToolNotFoundError(self.tool)
        return path

    def _resolve(self) -> Optional[str]:
        for candidate in self.candidates:
            if "/" in candidate:
                if self._is_executable(candidate) and self._accept(candidate):
                    logger.info(f"Using {self.tool} at {candidate}")
                    return candidate
                continue

            resolved = self._resolve_from_path(candidate)
            if resolved and self._accept(resolved):
                logger.info(f"Using {self.tool} at {resolved}")
                return resolved

        logger.info(f"No usable {self.tool} found among {', '.join(self.candidates)}")
        return None

    def _resolve_from_path(self, name: str) -> Optional[str]:
        result = self._runner(WireGuardCommandFactory.which(name))
        if result is None or not result.ok:
            return None
        return first_line(result.stdout)

    def _accept(self, path: str) -> bool:
        return True


class ModernShellResolver(ExecutableResolver):
    """Resolves a bash whose major version is at least 4.

    The system bash on macOS is 3.2, which wg-quick cannot run under.
    """

    def __init__(self, candidates: Sequence[str], runner: Runner = run_command,
                 is_executable: Callable[[str], bool] = is_executable_file,
                 min_major: int = MIN_SHELL_MAJOR_VERSION):
        super().__init__("bash", candidates, runner, is_executable)
        self.min_major = min_major

    def _accept(self, path: str) -> bool:
        result = self._runner(WireGuardCommandFactory.version(path))
        if result is None or not result.ok:
            return False

        major = parse_major_version(result.stdout)
        if major is None:
            logger.debug(f"Could not read a version from {path} --version")
            return False
        if major < self.min_major:
            logger.debug(f"Skipping {path}: version {major} is older than {self.min_major}")
            return False
        return True
