"""Controller between the WireGuard core and a tray/menu front end.

A front end renders TrayState and calls refresh() and toggle(); both are
safe to call from any thread. Icon and menu widgets live outside this
package.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional

import schedule

from .logging_utility import logger
from .preferences import IniPreferenceStore, MemoryPreferenceStore, PreferenceStore
from .settings import TraySettings
from .vpn.collectors import ConfigNameCache, StatusCollector
from .vpn.manager import WireGuardManager
from .vpn.models import ActionOutcome, Failure, Snapshot
from .vpn.resolver import ExecutableResolver, ModernShellResolver
from .vpn.utils import is_generic_interface_name


@dataclass(frozen=True)
class TrayState:
    """Texts and flags a menu-bar front end shows"""
    connected: bool
    state_line: str
    tooltip: str
    toggle_title: str
    toggle_enabled: bool
    last_action: Optional[str] = None


def build_manager(settings: TraySettings) -> WireGuardManager:
    """Create a WireGuardManager from settings."""
    collector = StatusCollector(
        wg=ExecutableResolver("wg", settings.wg_candidates),
        config_directories=settings.config_directories,
        config_extension=settings.config_extension,
        cache=ConfigNameCache(ttl=settings.config_cache_ttl),
    )
    return WireGuardManager(
        collector=collector,
        wg_quick=ExecutableResolver("wg-quick", settings.wg_quick_candidates),
        bash=ModernShellResolver(settings.bash_candidates),
    )


class TrayController:
    def __init__(
            self,
            manager: WireGuardManager,
            preferences: PreferenceStore,
            on_change: Optional[Callable[[TrayState], None]] = None,
    ):
        self.manager = manager
        self.preferences = preferences
        self.preferred_name = preferences.get_preferred_name()
        self.snapshot = Snapshot.EMPTY
        self.last_outcome: Optional[ActionOutcome] = None
        self.busy = False
        self._checked = False
        self._on_change = on_change
        self._lock = threading.Lock()
        # one worker, so connect/disconnect never overlap
        self._actions = ThreadPoolExecutor(max_workers=1, thread_name_prefix="wg-action")

    @classmethod
    def from_settings(cls, settings: TraySettings,
                      on_change: Optional[Callable[[TrayState], None]] = None) -> 'TrayController':
        if settings.preferences_file:
            preferences = IniPreferenceStore(settings.preferences_file)
        else:
            preferences = MemoryPreferenceStore()
        return cls(build_manager(settings), preferences, on_change)

    @property
    def state(self) -> TrayState:
        with self._lock:
            return self._state()

    def refresh(self) -> Snapshot:
        """Poll the current state and publish it."""
        try:
            current = self.manager.snapshot()
        except Exception:
            logger.exception("Error refreshing WireGuard status")
            return self.snapshot
        self._apply(current)
        return current

    def toggle(self) -> Optional[Future]:
        """
        Disconnect if connected, connect otherwise, on the action worker.

        Returns:
            Future of the ActionOutcome, or None if an action is already running
        """
        with self._lock:
            if self.busy:
                logger.info("Ignoring toggle while an action is running")
                return None
            self.busy = True
            self.last_outcome = None
            state = self._state()
        self._notify(state)
        return self._actions.submit(self._run_toggle)

    def shutdown(self) -> None:
        self._actions.shutdown(wait=True)

    def _run_toggle(self) -> ActionOutcome:
        try:
            if self.snapshot.is_connected:
                outcome = self.manager.disconnect()
            else:
                outcome = self.manager.connect(preferred_name=self.preferred_name)
        except Exception as e:
            logger.exception("Error running WireGuard action")
            outcome = Failure(str(e))

        logger.info(f"Action finished: {outcome.message}")
        with self._lock:
            self.busy = False
            self.last_outcome = outcome
        self.refresh()
        return outcome

    def _apply(self, snapshot: Snapshot) -> None:
        name = snapshot.primary_connected_name

        with self._lock:
            self.snapshot = snapshot
            self._checked = True
            remember = name is not None and not is_generic_interface_name(name) and name != self.preferred_name
            if remember:
                self.preferred_name = name
            state = self._state()

        if remember:
            try:
                self.preferences.set_preferred_name(name)
            except Exception:
                logger.exception("Error saving preferred WireGuard name")
        self._notify(state)

    def _notify(self, state: TrayState) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(state)
        except Exception:
            logger.exception("Error in tray state callback")

    def _state(self) -> TrayState:
        last_action = None
        if self.last_outcome is not None:
            prefix = "Last action" if self.last_outcome.succeeded else "Last action failed"
            last_action = f"{prefix}: {self.last_outcome.message}"

        snapshot = self.snapshot
        if snapshot.is_connected:
            names = ", ".join(snapshot.connected_display_names)
            return TrayState(
                connected=True,
                state_line=f"Connected: {names}",
                tooltip=f"Connected: {names}",
                toggle_title="Turn Off",
                toggle_enabled=not self.busy,
                last_action=last_action,
            )

        if not self._checked:
            return TrayState(
                connected=False,
                state_line="Checking...",
                tooltip="Checking WireGuard status",
                toggle_title="Turn On",
                toggle_enabled=not self.busy,
                last_action=last_action,
            )

        if snapshot.has_available_target:
            toggle_title, toggle_enabled = "Turn On", not self.busy
        else:
            toggle_title, toggle_enabled = "Turn On (No Profile Found)", False

        return TrayState(
            connected=False,
            state_line="Disconnected",
            tooltip="No active WireGuard tunnel",
            toggle_title=toggle_title,
            toggle_enabled=toggle_enabled,
            last_action=last_action,
        )


class StatusPoller:
    """Calls TrayController.refresh on a fixed interval from a daemon thread."""

    def __init__(self, controller: TrayController, interval: float = 5.0):
        self.controller = controller
        self.interval = interval
        self.scheduler = schedule.Scheduler()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self.controller.refresh()
        self.scheduler.every(self.interval).seconds.do(self.controller.refresh)
        self._thread = threading.Thread(target=self._run_schedule, name="wg-status-poller", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self.scheduler.clear()
        if self._thread is not None:
            self._thread.join()

    def _run_schedule(self) -> None:
        while not self._stop.is_set():
            self.scheduler.run_pending()
            self._stop.wait(0.5)
