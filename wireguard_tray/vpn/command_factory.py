"""Factory for creating WireGuard-related commands."""

from typing import List, Optional

from .commands import (
    WG_SHOW_INTERFACES,
    WG_QUICK,
    WG_QUICK_ACTIONS,
    SCUTIL_NC_LIST,
    SCUTIL_NC_START,
    SCUTIL_NC_STOP,
    WHICH,
    VERSION_OPTIONS,
    Command,
    ValidationError,
)


class WireGuardCommandFactory:
    """Factory for creating WireGuard management commands."""

    @staticmethod
    def show_interfaces(wg_path: str) -> List[str]:
        """Create active interface listing command."""
        return WG_SHOW_INTERFACES.at(wg_path).build()

    @staticmethod
    def list_services() -> List[str]:
        """Create VPN service listing command."""
        return SCUTIL_NC_LIST.build()

    @staticmethod
    def start_service(service: str) -> List[str]:
        """Create VPN service start command."""
        return SCUTIL_NC_START.with_arg(service).build()

    @staticmethod
    def stop_service(service: str) -> List[str]:
        """Create VPN service stop command."""
        return SCUTIL_NC_STOP.with_arg(service).build()

    @staticmethod
    def wg_quick(
            action: str,
            tunnel: str,
            wg_quick_path: str,
            shell_path: Optional[str] = None,
            as_admin: bool = False,
    ) -> List[str]:
        """
        Create wg-quick up/down command.

        Args:
            action: "up" or "down"
            tunnel: Tunnel (config) name
            wg_quick_path: Resolved wg-quick executable
            shell_path: Modern bash to run wg-quick with, if one was found
            as_admin: Wrap the command in an administrator-privileges request

        Returns:
            Command as list of strings
        """
        if action not in WG_QUICK_ACTIONS:
            raise ValidationError(f"Invalid wg-quick action '{action}'")

        cmd = WG_QUICK.at(wg_quick_path).with_args(action, tunnel).wrapped_by(shell_path)
        if as_admin:
            cmd = cmd.as_admin()
        return cmd.build()

    @staticmethod
    def which(name: str) -> List[str]:
        """Create PATH lookup command."""
        return WHICH.with_arg(name).build()

    @staticmethod
    def version(executable: str) -> List[str]:
        """Create version probe command."""
        return Command([executable], False, VERSION_OPTIONS).with_option("version").build()
