"""Data models for WireGuard status and actions."""

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple, Union

CONNECTED_SERVICE_STATUSES = ("connected", "connecting")


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of a finished process"""
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class ServiceEntry:
    """One VPN service listed by scutil"""
    name: str
    status: str = "unknown"

    @property
    def is_connected(self) -> bool:
        return self.status in CONNECTED_SERVICE_STATUSES


@dataclass(frozen=True)
class Snapshot:
    """
    Reconciled view of what is connected and what could be connected.

    Every field is deduplicated case-insensitively in first-seen order and
    never contains empty strings. Built by reconciler.build_snapshot.
    """
    connected_display_names: Tuple[str, ...] = ()
    connected_tunnel_interfaces: Tuple[str, ...] = ()
    connected_service_names: Tuple[str, ...] = ()
    available_service_names: Tuple[str, ...] = ()
    available_config_names: Tuple[str, ...] = ()

    EMPTY: ClassVar["Snapshot"]

    @property
    def is_connected(self) -> bool:
        return bool(self.connected_display_names)

    @property
    def has_available_target(self) -> bool:
        return bool(self.available_service_names) or bool(self.available_config_names)

    @property
    def primary_connected_name(self) -> Optional[str]:
        if self.connected_display_names:
            return self.connected_display_names[0]
        return None


Snapshot.EMPTY = Snapshot()


@dataclass(frozen=True)
class Success:
    """Action finished, message is shown to the user"""
    message: str

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Action failed, message is shown to the user"""
    message: str

    @property
    def succeeded(self) -> bool:
        return False


ActionOutcome = Union[Success, Failure]
