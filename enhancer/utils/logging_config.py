"""
Logging setup for the enhancer: categories, level overrides and handlers.

- Named categories for the pipeline subsystems
- Per-category log level control (environment overridable)
- Daily rotating log file under the settings' log directory
"""
import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Mapping, Optional


class LoggerCategory:
    """Logging categories, one per pipeline subsystem"""
    CORE = "core"          # Settings, context, credentials
    API = "api"            # Remote service clients and operation polling
    NETWORK = "network"    # HTTP sessions and proxies
    MEDIA = "media"        # Payload encoding, frame extraction, result handles
    SESSION = "session"    # Photo/video session state machines
    UI = "ui"              # Windows, panels, comparison view


DEFAULT_LOG_LEVELS = {
    LoggerCategory.CORE: logging.INFO,
    LoggerCategory.API: logging.INFO,
    LoggerCategory.NETWORK: logging.INFO,
    LoggerCategory.MEDIA: logging.INFO,
    LoggerCategory.SESSION: logging.INFO,
    LoggerCategory.UI: logging.WARNING,  # Reduce UI noise
}


MODULE_TO_CATEGORY = {
    # Core
    'enhancer.config': LoggerCategory.CORE,
    'enhancer.core.context': LoggerCategory.CORE,
    'enhancer.core.credentials': LoggerCategory.CORE,

    # API
    'enhancer.core.api': LoggerCategory.API,
    'enhancer.core.api.base': LoggerCategory.API,
    'enhancer.core.api.genai': LoggerCategory.API,
    'enhancer.core.poller': LoggerCategory.API,

    # Network
    'enhancer.core.http_client': LoggerCategory.NETWORK,

    # Media
    'enhancer.media': LoggerCategory.MEDIA,
    'enhancer.media.codec': LoggerCategory.MEDIA,
    'enhancer.core.media_handle': LoggerCategory.MEDIA,

    # Sessions
    'enhancer.core.session': LoggerCategory.SESSION,

    # UI
    'enhancer.ui': LoggerCategory.UI,
}

LEVEL_ENV_PREFIX = "ENHANCER_LOG_LEVEL_"


class LoggingManager:
    """Owns category levels and the root handlers for the enhancer process"""

    def __init__(self, log_dir: Path, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            log_dir: Directory for log files
            environ: Source of ``ENHANCER_LOG_LEVEL_<CATEGORY>`` overrides
        """
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self._category_levels: Dict[str, int] = {}
        self._load_levels(os.environ if environ is None else environ)

    def _load_levels(self, environ: Mapping[str, str]):
        for category, default_level in DEFAULT_LOG_LEVELS.items():
            level_name = environ.get(f"{LEVEL_ENV_PREFIX}{category.upper()}")
            level = logging.getLevelName(level_name.upper()) if level_name else default_level
            self._category_levels[category] = level if isinstance(level, int) else default_level

    def get_category_level(self, category: str) -> int:
        return self._category_levels.get(category, logging.INFO)

    def set_category_level(self, category: str, level: int):
        """Set log level for a category and apply it to its loggers"""
        self._category_levels[category] = level
        self._apply_category_level(category, level)

    def _apply_category_level(self, category: str, level: int):
        for module_name, cat in MODULE_TO_CATEGORY.items():
            if cat == category:
                logging.getLogger(module_name).setLevel(level)

    @property
    def log_file(self) -> Path:
        return self.log_dir / "ai_media_enhancer.log"

    def setup_logging(self, root_level: int = logging.INFO):
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        file_handler = TimedRotatingFileHandler(
            self.log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        root_logger.setLevel(root_level)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        root_logger.addHandler(file_handler)
        root_logger.addHandler(stream_handler)

        for category, level in self._category_levels.items():
            self._apply_category_level(category, level)

        # Silence noisy third-party loggers
        logging.getLogger('aiohttp').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)
        logging.getLogger('qasync').setLevel(logging.WARNING)

    def get_all_levels(self) -> Dict[str, int]:
        return self._category_levels.copy()


def setup_logging(log_dir: Path, environ: Optional[Mapping[str, str]] = None) -> LoggingManager:
    """Create a LoggingManager for log_dir and install its handlers"""
    manager = LoggingManager(log_dir, environ=environ)
    manager.setup_logging()
    return manager
