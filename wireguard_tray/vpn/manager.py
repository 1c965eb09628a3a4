"""WireGuard connect/disconnect orchestration.

Actions are blocking and serialized per manager: a second connect or
disconnect waits for the one in flight. Snapshots can be taken at any time.
"""

import threading
from typing import List, Optional, Sequence

from .collectors import StatusCollector
from .command_factory import WireGuardCommandFactory
from .exceptions import ToolNotFoundError
from .models import ActionOutcome, Failure, Snapshot, Success
from .reconciler import build_snapshot, disconnect_candidates, prioritized
from .resolver import ExecutableResolver, ModernShellResolver, Runner
from .utils import run_command
from ..logging_utility import logger

DEFAULT_WG_QUICK_CANDIDATES = (
    "/opt/homebrew/bin/wg-quick",
    "/usr/local/bin/wg-quick",
    "/usr/bin/wg-quick",
    "wg-quick",
)

DEFAULT_BASH_CANDIDATES = (
    "/opt/homebrew/bin/bash",
    "/usr/local/bin/bash",
    "bash",
)


class WireGuardManager:
    def __init__(
            self,
            collector: Optional[StatusCollector] = None,
            wg_quick: Optional[ExecutableResolver] = None,
            bash: Optional[ExecutableResolver] = None,
            runner: Runner = run_command,
    ):
        self._runner = runner
        self.collector = collector or StatusCollector(runner=runner)
        self.wg_quick = wg_quick or ExecutableResolver("wg-quick", DEFAULT_WG_QUICK_CANDIDATES, runner=runner)
        self.bash = bash or ModernShellResolver(DEFAULT_BASH_CANDIDATES, runner=runner)
        self._action_lock = threading.Lock()

    def snapshot(self, force_config_refresh: bool = False) -> Snapshot:
        """
        Poll all probes and reconcile them.

        Args:
            force_config_refresh: Rescan config directories even if the cache is fresh

        Returns:
            Snapshot of the current state
        """
        interfaces = self.collector.tunnel_interfaces()
        services = self.collector.services()
        configs = self.collector.config_names(force_refresh=force_config_refresh)
        return build_snapshot(interfaces, services, configs)

    def connect(self, preferred_name: Optional[str] = None) -> ActionOutcome:
        """
        Bring up a WireGuard tunnel unless one is already up.

        VPN services are tried before wg-quick configs, each tier with
        preferred_name first.
        """
        with self._action_lock:
            return self._connect(preferred_name)

    def disconnect(self) -> ActionOutcome:
        """Stop every active WireGuard service and tunnel."""
        with self._action_lock:
            return self._disconnect()

    def _connect(self, preferred_name: Optional[str]) -> ActionOutcome:
        current = self.snapshot(force_config_refresh=True)
        if current.is_connected:
            return Success("Already connected")

        errors: List[str] = []

        for service in prioritized(current.available_service_names, preferred_name):
            logger.info(f"Starting VPN service {service}")
            result = self._runner(WireGuardCommandFactory.start_service(service))
            if result is None:
                logger.warning(f"Could not run scutil start for {service}")
                continue
            if result.ok:
                return Success(f"Started {service}")
            logger.warning(f"scutil start failed for {service}: {result.stderr.strip()}")
            errors.append(f"scutil start failed for {service}")

        for tunnel in prioritized(current.available_config_names, preferred_name):
            outcome = self._run_wg_quick("up", tunnel)
            if outcome.succeeded:
                return Success(f"Started {tunnel}")
            errors.append(outcome.message)

        if not errors:
            return Failure("No WireGuard profile found to start")

        return Failure(f"Could not connect. {errors[0]}")

    def _disconnect(self) -> ActionOutcome:
        current = self.snapshot(force_config_refresh=True)
        if not current.is_connected:
            return Success("Already disconnected")

        errors = self._stop_services(current.connected_service_names)

        after_stop = self.snapshot()
        if not after_stop.is_connected:
            return Success("Disconnected")

        for tunnel in disconnect_candidates(after_stop):
            outcome = self._run_wg_quick("down", tunnel)
            if not outcome.succeeded:
                errors.append(outcome.message)
                continue
            if not self.snapshot().is_connected:
                return Success("Disconnected")

        if not self.snapshot().is_connected:
            return Success("Disconnected")

        if errors:
            return Failure(f"Disconnect incomplete. {errors[0]}")

        return Failure("Disconnect incomplete. A tunnel is still active")

    def _stop_services(self, services: Sequence[str]) -> List[str]:
        errors = []
        for service in services:
            logger.info(f"Stopping VPN service {service}")
            result = self._runner(WireGuardCommandFactory.stop_service(service))
            if result is None:
                errors.append(f"Could not run scutil stop for {service}")
            elif not result.ok:
                logger.warning(f"scutil stop failed for {service}: {result.stderr.strip()}")
                errors.append(f"scutil stop failed for {service}")
        return errors

    def _run_wg_quick(self, action: str, tunnel: str) -> ActionOutcome:
        """
        Run `wg-quick <action> <tunnel>`, retrying with administrator
        privileges if the direct attempt fails.
        """
        try:
            wg_quick_path = self.wg_quick.require()
        except ToolNotFoundError as e:
            return Failure(str(e))

        shell_path = self.bash.path
        command = WireGuardCommandFactory.wg_quick(action, tunnel, wg_quick_path, shell_path)

        logger.info(f"Running wg-quick {action} {tunnel}")
        result = self._runner(command)
        if result is not None and result.ok:
            return Success(f"wg-quick {action} {tunnel}")

        if result is not None:
            logger.warning(f"wg-quick {action} {tunnel} exited with {result.exit_code}: {result.stderr.strip()}")

        if self._run_as_admin(action, tunnel, wg_quick_path, shell_path):
            return Success(f"wg-quick {action} {tunnel}")

        if shell_path is None:
            return Failure(f"wg-quick failed for {tunnel}. Install bash 4+ and retry")

        return Failure(f"wg-quick {action} failed for {tunnel}")

    def _run_as_admin(self, action: str, tunnel: str, wg_quick_path: str, shell_path: Optional[str]) -> bool:
        logger.info(f"Retrying wg-quick {action} {tunnel} with administrator privileges")
        command = WireGuardCommandFactory.wg_quick(action, tunnel, wg_quick_path, shell_path, as_admin=True)
        result = self._runner(command)
        if result is None:
            return False
        if not result.ok:
            logger.warning(f"Privileged wg-quick {action} {tunnel} failed: {result.stderr.strip()}")
        return result.ok
