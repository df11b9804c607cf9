# packages/lucid_lib/logging.py

import sys
from pathlib import Path
from typing import Optional
from loguru import logger as _logger  # Aliased to avoid conflict


class LogManager:
    # Pass 'debug' flag directly to decouple from settings
    def __init__(
        self, service_name: str, debug: bool = False, log_dir: Optional[Path] = None
    ):
        self.service_name = service_name
        self.debug = debug
        self.log_dir = (
            Path(log_dir) if log_dir else Path(__file__).resolve().parents[2] / "logs"
        )
        self._configure()

    def _configure(self):
        _logger.remove()

        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_file = self.log_dir / f"{self.service_name}.json.log"

        # Console Handler
        _logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[context]}</cyan> | <level>{message}</level>",
            level="DEBUG" if self.debug else "INFO",
            colorize=True,
        )

        # File Handler (uses the passed-in debug flag)
        _logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level="DEBUG" if self.debug else "INFO",
            serialize=True,
            enqueue=True,
        )

    def get_logger(self, context_name: str):
        return _logger.bind(app=self.service_name, context=context_name)


def get_component_logger(context_name: str, parent=None):
    """Returns a logger bound to `context_name`, keeping any bindings of `parent`."""
    if parent is not None:
        return parent.bind(context=context_name)
    return _logger.bind(context=context_name)
