import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
import os

LOG_DIR = Path(os.getenv("LOG_PATH", Path(__file__).parent.parent / "logs"))
LOG_DIR.mkdir(exist_ok=True, parents=True)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGGER_NAME = "session-analytics"

class Logger:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(LOG_LEVEL)

        if self.logger.handlers:
            return

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Handlers pass everything; the logger level decides what is emitted
        for handler in (
            RotatingFileHandler(LOG_DIR / "analytics.log", maxBytes=10 * 1024 * 1024, backupCount=5),
            logging.StreamHandler(sys.stdout),
        ):
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def debug_enabled(self) -> bool:
        return self.logger.isEnabledFor(logging.DEBUG)

    def info(self, message: str):
        self.logger.info(message)

    def error(self, message: str):
        self.logger.error(message)

    def warning(self, message: str):
        self.logger.warning(message)

    def debug(self, message: str):
        self.logger.debug(message)

logger = Logger()
