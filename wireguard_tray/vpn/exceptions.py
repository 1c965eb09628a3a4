"""Custom exceptions for WireGuard management."""


class WireGuardError(Exception):
    """Base exception for WireGuard-related errors."""
    pass


class ConfigurationError(WireGuardError):
    """Raised when the settings file holds invalid values"""
    pass


class ToolNotFoundError(WireGuardError):
    """Raised when none of the candidates for a tool resolves"""

    def __init__(self, tool: str):
        super().__init__(f"{tool} command not found")
        self.tool = tool
