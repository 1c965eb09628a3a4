import pytest

from wireguard_tray.vpn.exceptions import ToolNotFoundError
from wireguard_tray.vpn.models import CommandResult
from wireguard_tray.vpn.resolver import ExecutableResolver, ModernShellResolver, parse_major_version


class RecordingRunner:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    def __call__(self, cmd):
        self.calls.append(list(cmd))
        return self.responses.get(tuple(cmd))


def test_first_executable_absolute_candidate_wins():
    runner = RecordingRunner({})
    resolver = ExecutableResolver(
        "wg", ["/opt/homebrew/bin/wg", "/usr/local/bin/wg", "wg"],
        runner=runner, is_executable=lambda path: path == "/usr/local/bin/wg",
    )

    assert resolver.path == "/usr/local/bin/wg"
    assert runner.calls == []


def test_bare_name_is_resolved_with_which():
    runner = RecordingRunner({("which", "wg"): CommandResult(0, "/nix/store/abc/bin/wg\n", "")})
    resolver = ExecutableResolver("wg", ["/opt/homebrew/bin/wg", "wg"], runner=runner,
                                  is_executable=lambda path: False)

    assert resolver.path == "/nix/store/abc/bin/wg"


def test_unresolved_tool():
    runner = RecordingRunner({("which", "wg"): CommandResult(1, "", "")})
    resolver = ExecutableResolver("wg", ["/usr/bin/wg", "wg"], runner=runner, is_executable=lambda path: False)

    assert resolver.path is None
    with pytest.raises(ToolNotFoundError, match="wg command not found"):
        resolver.require()


def test_which_launch_failure_or_empty_output_does_not_resolve():
    runner = RecordingRunner({("which", "b"): CommandResult(0, "\n", "")})
    resolver = ExecutableResolver("tool", ["a", "b"], runner=runner, is_executable=lambda path: False)

    assert resolver.path is None


def test_resolution_is_computed_once():
    runner = RecordingRunner({("which", "wg"): CommandResult(0, "/usr/bin/wg\n", "")})
    resolver = ExecutableResolver("wg", ["wg"], runner=runner, is_executable=lambda path: False)

    assert resolver.path == "/usr/bin/wg"
    assert resolver.path == "/usr/bin/wg"
    assert runner.calls == [["which", "wg"]]


@pytest.mark.parametrize("output, expected", [
    ("GNU bash, version 5.2.26(1)-release (aarch64-apple-darwin23.2.0)\n", 5),
    ("GNU bash, version 3.2.57(1)-release (arm64-apple-darwin23)\nCopyright", 3),
    ("GNU BASH, VERSION 4.4.0\n", 4),
    ("version 10\n", 10),
    ("zsh 5.9 (x86_64-apple-darwin22.0)\n", None),
    ("GNU bash, version x.y\n", None),
    ("", None),
])
def test_parse_major_version(output, expected):
    assert parse_major_version(output) == expected


def test_modern_shell_skips_outdated_bash():
    runner = RecordingRunner({
        ("/bin/bash", "--version"): CommandResult(0, "GNU bash, version 3.2.57(1)-release\n", ""),
        ("which", "bash"): CommandResult(0, "/usr/local/bin/bash\n", ""),
        ("/usr/local/bin/bash", "--version"): CommandResult(0, "GNU bash, version 5.1.16(1)-release\n", ""),
    })
    resolver = ModernShellResolver(["/bin/bash", "bash"], runner=runner, is_executable=lambda path: True)

    assert resolver.path == "/usr/local/bin/bash"


def test_modern_shell_rejects_failed_version_probe():
    runner = RecordingRunner({
        ("/opt/homebrew/bin/bash", "--version"): CommandResult(2, "GNU bash, version 5.2\n", ""),
    })
    resolver = ModernShellResolver(["/opt/homebrew/bin/bash"], runner=runner, is_executable=lambda path: True)

    assert resolver.path is None


def test_modern_shell_with_only_system_bash():
    runner = RecordingRunner({
        ("/bin/bash", "--version"): CommandResult(0, "GNU bash, version 3.2.57(1)-release\n", ""),
    })
    resolver = ModernShellResolver(["/bin/bash", "bash"], runner=runner, is_executable=lambda path: True)

    assert resolver.path is None
