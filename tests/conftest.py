import os
import re
import shlex
import tempfile

os.environ.setdefault("WG_TRAY_LOG_DIR", tempfile.mkdtemp(prefix="wg-tray-logs-"))

import pytest

from wireguard_tray.vpn.collectors import ConfigNameCache, StatusCollector
from wireguard_tray.vpn.commands import OSASCRIPT_PATH
from wireguard_tray.vpn.manager import WireGuardManager
from wireguard_tray.vpn.models import CommandResult
from wireguard_tray.vpn.resolver import ExecutableResolver, ModernShellResolver

WG_PATH = "/usr/local/bin/wg"
WG_QUICK_PATH = "/usr/local/bin/wg-quick"
MODERN_BASH = "/opt/homebrew/bin/bash"
SYSTEM_BASH = "/bin/bash"
CONFIG_DIR = "/etc/wireguard"

BASH_VERSIONS = {
    MODERN_BASH: "GNU bash, version 5.2.26(1)-release (aarch64-apple-darwin23.2.0)\nCopyright (C) 2022\n",
    SYSTEM_BASH: "GNU bash, version 3.2.57(1)-release (arm64-apple-darwin23)\nCopyright (C) 2007\n",
}

ADMIN_SCRIPT = re.compile(r'^do shell script "(.*)" with administrator privileges$', re.DOTALL)


def unwrap_admin_script(script):
    """Recover the command tokens from an osascript administrator request."""
    match = ADMIN_SCRIPT.match(script)
    assert match, script
    inner = re.sub(r'\\(.)', r'\1', match.group(1))
    return shlex.split(inner)


class FakeHost:
    """
    Scripted stand-in for the macOS command line.

    Keeps VPN services, active interfaces and config files as plain state and
    answers the commands the core runs. Every invocation is recorded.
    """

    def __init__(self):
        self.calls = []
        self.services = {}
        self.other_services = []
        self.interfaces = []
        self.configs = []
        self.tunnel_interfaces = {}
        self.is_root = False
        self.admin_allowed = True
        self.failing_services = set()
        self.unlaunchable = set()
        self.stop_keeps_connected = set()
        self.down_keeps_interface = set()

    # state helpers

    def add_service(self, name, status="Disconnected"):
        self.services[name] = status

    def add_config(self, name, interface=None):
        self.configs.append(name)
        if interface:
            self.tunnel_interfaces[name] = interface

    def interface_for(self, tunnel):
        return self.tunnel_interfaces.get(tunnel, tunnel)

    # recorded calls

    def commands(self, prefix):
        """Recorded calls whose tokens start with prefix."""
        return [call for call in self.calls if call[:len(prefix)] == list(prefix)]

    def wg_quick_calls(self):
        """(action, tunnel, elevated) for every wg-quick attempt, in order."""
        attempts = []
        for call in self.calls:
            elevated = call[0] == OSASCRIPT_PATH
            tokens = unwrap_admin_script(call[2]) if elevated else call
            if WG_QUICK_PATH in tokens:
                index = tokens.index(WG_QUICK_PATH)
                attempts.append((tokens[index + 1], tokens[index + 2], elevated))
        return attempts

    def list_directory(self, directory):
        if directory != CONFIG_DIR:
            raise FileNotFoundError(directory)
        return [f"{name}.conf" for name in self.configs] + ["README.md"]

    # command dispatch

    def __call__(self, cmd):
        cmd = list(cmd)
        self.calls.append(cmd)
        if cmd[0] in self.unlaunchable:
            return None

        if cmd[0] == OSASCRIPT_PATH:
            if not self.admin_allowed:
                return CommandResult(1, "", "execution error: User canceled. (-128)")
            return self._dispatch(unwrap_admin_script(cmd[2]), as_root=True)

        return self._dispatch(cmd, as_root=self.is_root)

    def _dispatch(self, cmd, as_root):
        if cmd[0] == "which":
            return CommandResult(1, "", "")
        if cmd[0] in BASH_VERSIONS and cmd[1:] == ["--version"]:
            return CommandResult(0, BASH_VERSIONS[cmd[0]], "")
        if cmd == [WG_PATH, "show", "interfaces"]:
            return CommandResult(0, "\n".join(self.interfaces) + "\n", "")
        if cmd[:2] == ["scutil", "--nc"]:
            return self._scutil(cmd[2:])

        if cmd[0] in BASH_VERSIONS:
            cmd = cmd[1:]
        if cmd[0] == WG_QUICK_PATH:
            return self._wg_quick(cmd[1], cmd[2], as_root)

        return CommandResult(127, "", f"unexpected command {cmd}")

    def _scutil(self, args):
        if args == ["list"]:
            lines = ["Available network connection services in the current set (*=enabled):"]
            for name, status in self.services.items():
                lines.append(
                    f'* ({status})   5D3C1A0E-0000-4000-8000-000000000001 VPN '
                    f'(com.wireguard.macos) "{name}"   [VPN/com.wireguard.macos]'
                )
            for name in self.other_services:
                lines.append(f'* (Disconnected)   0000 PPP --> L2TP "{name}"   [PPP/L2TP]')
            return CommandResult(0, "\n".join(lines) + "\n", "")

        action, name = args
        if name not in self.services or name in self.failing_services:
            return CommandResult(1, "", f"No service named {name}")
        if action == "start":
            self.services[name] = "Connected"
        elif name not in self.stop_keeps_connected:
            self.services[name] = "Disconnected"
        return CommandResult(0, "", "")

    def _wg_quick(self, action, tunnel, as_root):
        if not as_root:
            return CommandResult(1, "", "[!] This program must be run as root\n")
        interface = self.interface_for(tunnel)
        if action == "up":
            if tunnel not in self.configs:
                return CommandResult(1, "", f"`{tunnel}' does not exist\n")
            self.interfaces.append(interface)
            return CommandResult(0, "", "")
        if interface not in self.interfaces and tunnel not in self.interfaces:
            return CommandResult(1, "", f"`{tunnel}' is not a WireGuard interface\n")
        if tunnel not in self.down_keeps_interface:
            self.interfaces = [name for name in self.interfaces if name not in (interface, tunnel)]
        return CommandResult(0, "", "")


@pytest.fixture
def host():
    return FakeHost()


def make_manager(host, modern_bash=True, wg_quick=True):
    executables = {WG_PATH, SYSTEM_BASH}
    if modern_bash:
        executables.add(MODERN_BASH)
    if wg_quick:
        executables.add(WG_QUICK_PATH)

    def is_executable(path):
        return path in executables

    collector = StatusCollector(
        wg=ExecutableResolver("wg", [WG_PATH, "wg"], runner=host, is_executable=is_executable),
        config_directories=[CONFIG_DIR, "/opt/homebrew/etc/wireguard"],
        cache=ConfigNameCache(ttl=30),
        runner=host,
        list_directory=host.list_directory,
    )
    return WireGuardManager(
        collector=collector,
        wg_quick=ExecutableResolver("wg-quick", [WG_QUICK_PATH, "wg-quick"], runner=host,
                                    is_executable=is_executable),
        bash=ModernShellResolver([MODERN_BASH, SYSTEM_BASH, "bash"], runner=host, is_executable=is_executable),
        runner=host,
    )


@pytest.fixture
def manager(host):
    return make_manager(host)
