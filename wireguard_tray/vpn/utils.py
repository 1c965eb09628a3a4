"""Utility functions for WireGuard status collection and actions."""

import subprocess
from typing import Iterable, List, Optional

from .models import CommandResult
from ..logging_utility import logger

GENERIC_INTERFACE_PREFIX = "utun"


def run_command(cmd: List[str], timeout: Optional[float] = None) -> Optional[CommandResult]:
    """
    Run a command to completion and capture its output.

    A first token containing a path separator is executed directly, a bare
    name is looked up on PATH by the operating system.

    Args:
        cmd: Command as list of strings
        timeout: Optional limit in seconds, no limit by default

    Returns:
        CommandResult, or None if the process could not be started
    """
    if not cmd:
        return None

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Could not run {cmd[0]}: {e}")
        return None

    return CommandResult(
        exit_code=result.returncode,
        stdout=result.stdout or "",
        stderr=result.stderr or "",
    )


def dedupe(items: Iterable[str]) -> List[str]:
    """Drop empty strings and case-insensitive duplicates, keeping first-seen order."""
    seen = set()
    ordered = []
    for item in items:
        if not item:
            continue
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        ordered.append(item)
    return ordered


def is_generic_interface_name(name: str) -> bool:
    """Whether name is a kernel-assigned tunnel name such as utun3."""
    lower = name.lower()
    if not lower.startswith(GENERIC_INTERFACE_PREFIX):
        return False
    suffix = lower[len(GENERIC_INTERFACE_PREFIX):]
    # "utun" alone carries no index and is treated as a real name
    return suffix.isdigit()


def is_wireguard_name(value: str) -> bool:
    lower = value.lower()
    return (
        "wireguard" in lower
        or lower == "wg"
        or lower.startswith("wg ")
        or lower.startswith("wg-")
    )


def extract_quoted_value(text: str) -> Optional[str]:
    """Return the text between the first pair of double quotes."""
    start = text.find('"')
    if start == -1:
        return None
    end = text.find('"', start + 1)
    if end == -1:
        return None
    return text[start + 1:end]


def extract_parenthesized_value(text: str) -> Optional[str]:
    """Return the text between the first '(' and the ')' following it."""
    start = text.find("(")
    if start == -1:
        return None
    end = text.find(")", start + 1)
    if end == -1:
        return None
    return text[start + 1:end]


def shell_escaped(value: str) -> str:
    """Single-quote a token for /bin/sh."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


def applescript_escaped(value: str) -> str:
    """Escape a string for use inside an AppleScript string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def first_line(text: str) -> Optional[str]:
    """First non-empty line of text, stripped."""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return None
