"""Command templates and builders for WireGuard management."""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional

from .utils import applescript_escaped, shell_escaped

OSASCRIPT_PATH = "/usr/bin/osascript"
WG_QUICK_ACTIONS = ("up", "down")


class CommandError(Exception):
    """Base exception for command-related errors."""
    pass


class ValidationError(CommandError):
    """Raised when command validation fails."""
    pass


def admin_script(command: List[str]) -> str:
    """
    Wrap a command in an AppleScript administrator-privileges request.

    Each token is single-quoted for the shell, then the joined command is
    escaped for the AppleScript string literal.
    """
    joined = " ".join(shell_escaped(part) for part in command)
    return f'do shell script "{applescript_escaped(joined)}" with administrator privileges'


@dataclass
class Command:
    """Command builder with validation."""
    base_cmd: List[str]
    use_admin: bool = False
    _valid_options: Optional[FrozenSet[str]] = None

    def _validate_option(self, opt: str) -> None:
        """Validate option name if validation rules exist."""
        if self._valid_options is None:
            return
        opt_name = opt.lstrip('-').replace('-', '_')
        if opt_name not in self._valid_options:
            valid_opts = ", ".join(f"--{name.replace('_', '-')}"
                                   for name in sorted(self._valid_options))
            raise ValidationError(
                f"Invalid option '{opt}' for command {self.base_cmd[0]}. "
                f"Valid options are: {valid_opts}"
            )

    def _validate_executable(self) -> None:
        """Validate that base command exists."""
        if not self.base_cmd or not self.base_cmd[0]:
            raise ValidationError("Command cannot be empty")

    @classmethod
    def from_str(cls, cmd: str, valid_options: Optional[FrozenSet[str]] = None) -> 'Command':
        """Create command from string with optional validation rules."""
        command = cls(cmd.split(), False, valid_options)
        command._validate_executable()
        return command

    def at(self, executable: str) -> 'Command':
        """Same command, run from a resolved executable path."""
        return Command([executable] + self.base_cmd[1:], self.use_admin, self._valid_options)

    def with_arg(self, arg: str) -> 'Command':
        """Add single argument."""
        return Command(self.base_cmd + [arg], self.use_admin, self._valid_options)

    def with_args(self, *args: str) -> 'Command':
        """Add multiple arguments."""
        return Command(self.base_cmd + list(args), self.use_admin, self._valid_options)

    def with_option(self, opt: str, value: Optional[str] = None) -> 'Command':
        """Add option with validation."""
        opt_clean = opt.lstrip('-')
        self._validate_option(opt_clean)
        cmd = self.base_cmd + [f"--{opt_clean}"]
        if value is not None:
            cmd.append(str(value))
        return Command(cmd, self.use_admin, self._valid_options)

    def wrapped_by(self, interpreter: Optional[str]) -> 'Command':
        """Run the command through an interpreter, e.g. a modern bash."""
        if not interpreter:
            return self
        return Command([interpreter] + self.base_cmd, self.use_admin, self._valid_options)

    def as_admin(self) -> 'Command':
        """Mark command to be executed with administrator privileges."""
        return Command(self.base_cmd, True, self._valid_options)

    def build(self) -> List[str]:
        """Get final command list."""
        self._validate_executable()
        if self.use_admin:
            return [OSASCRIPT_PATH, "-e", admin_script(self.base_cmd)]
        return list(self.base_cmd)


SCUTIL_OPTIONS = frozenset({"nc"})

VERSION_OPTIONS = frozenset({"version"})


WG = Command.from_str("wg")
WG_SHOW_INTERFACES = WG.with_args("show", "interfaces")

WG_QUICK = Command.from_str("wg-quick")

SCUTIL = Command.from_str("scutil", valid_options=SCUTIL_OPTIONS)
SCUTIL_NC = SCUTIL.with_option("nc")
SCUTIL_NC_LIST = SCUTIL_NC.with_arg("list")
SCUTIL_NC_START = SCUTIL_NC.with_arg("start")
SCUTIL_NC_STOP = SCUTIL_NC.with_arg("stop")

WHICH = Command.from_str("which")
