import threading

from wireguard_tray.logging_utility import logger
from wireguard_tray.main import StatusPoller, TrayController, TrayState
from wireguard_tray.settings import load_settings


def log_state(state: TrayState) -> None:
    logger.info(f"{state.state_line} [{state.toggle_title}]")
    if state.last_action:
        logger.info(state.last_action)


if __name__=='__main__':
    settings = load_settings()
    logger.info("Starting WireGuard tray")
    controller = TrayController.from_settings(settings, on_change=log_state)
    poller = StatusPoller(controller, interval=settings.poll_interval)
    poller.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        logger.info("Stopping WireGuard tray")
    finally:
        poller.stop()
        controller.shutdown()
