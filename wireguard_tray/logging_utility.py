import logging
import os
import sys
from logging.handlers import RotatingFileHandler

DEFAULT_LOG_DIR = os.path.join("~", "Library", "Logs", "WireGuardTray")


class Logger:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Logger, cls).__new__(cls)
            cls._instance._setup_logger()
        return cls._instance

    def _setup_logger(self):
        self.logger = logging.getLogger('WireGuardTray')
        self.logger.setLevel(logging.INFO)

        formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(name)s:%(lineno)d - %(pathname)s - %(message)s')

        log_dir = os.path.expanduser(os.environ.get("WG_TRAY_LOG_DIR", DEFAULT_LOG_DIR))
        try:
            os.makedirs(log_dir, exist_ok=True)
            log_file = os.path.join(log_dir, 'wireguard_tray.log')
            # Use RotatingFileHandler to limit log file size
            handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024,
                                          backupCount=3)
        except OSError as e:
            print(f"Warning: Could not create log file handler: {e}", file=sys.stderr)
            handler = logging.StreamHandler(sys.stderr)

        handler.setFormatter(formatter)
        self.logger.addHandler(handler)

    def get_logger(self):
        return self.logger


logger = Logger().get_logger()
