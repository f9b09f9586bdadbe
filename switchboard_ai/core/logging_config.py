"""
Logging setup for switchboard-ai.

Routing decisions are logged by every layer and by the selector, so the
console output is filtered per package: selection and pipeline traversal are
verbose, layers and capabilities less so, third-party libraries only warn.

Features:
- Simple, detailed and JSON line formats
- Console handler plus an optional rotating file handler
- Per-package log levels (``MODULE_LOG_LEVELS``)

Nothing is configured on import; applications call ``setup_logging`` once.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional

LOG_FILE_NAME = "switchboard_ai.log"


def _get_logging_config():
    """Read logging options from the settings model.

    The settings import is deferred so that importing this module never
    triggers settings validation; environment variables are the fallback.
    """
    try:
        from switchboard_ai.core.config import settings

        return {
            "log_level": settings.log_level.upper(),
            "log_format": settings.log_format,
            "log_file_dir": settings.log_file_dir,
            "enable_file_logging": settings.enable_file_logging,
            "max_bytes": settings.log_file_max_bytes,
            "backup_count": settings.log_file_backup_count,
        }
    except Exception:
        env = os.environ
        return {
            "log_level": env.get("SWITCHBOARD_AI_LOG_LEVEL", "INFO").upper(),
            "log_format": env.get("SWITCHBOARD_AI_LOG_FORMAT", "detailed"),
            "log_file_dir": env.get("SWITCHBOARD_AI_LOG_FILE_DIR", "logs"),
            "enable_file_logging": env.get("SWITCHBOARD_AI_ENABLE_FILE_LOGGING", "false").lower()
            in ("true", "1", "yes"),
            "max_bytes": int(env.get("SWITCHBOARD_AI_LOG_FILE_MAX_BYTES", 10 * 1024 * 1024)),
            "backup_count": int(env.get("SWITCHBOARD_AI_LOG_FILE_BACKUP_COUNT", 5)),
        }


_config = _get_logging_config()
LOG_LEVEL = _config["log_level"]
LOG_FORMAT = _config["log_format"]
LOG_FILE_DIR = _config["log_file_dir"]
ENABLE_FILE_LOGGING = _config["enable_file_logging"]
LOG_FILE_MAX_BYTES = _config["max_bytes"]
LOG_FILE_BACKUP_COUNT = _config["backup_count"]


SIMPLE_FORMAT = "%(levelname)s %(name)s: %(message)s"

DETAILED_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s"

JSON_FORMAT = (
    '{"ts": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"file": "%(filename)s", "line": %(lineno)d, "message": "%(message)s"}'
)

FORMATS: Dict[str, str] = {
    "simple": SIMPLE_FORMAT,
    "detailed": DETAILED_FORMAT,
    "json": JSON_FORMAT,
}


MODULE_LOG_LEVELS = {
    "switchboard_ai.router_core": "DEBUG",
    "switchboard_ai.router_core.selection": "DEBUG",
    "switchboard_ai.router_core.pipeline": "DEBUG",
    "switchboard_ai.router_core.layers": "INFO",
    "switchboard_ai.router_core.capabilities": "INFO",
    "switchboard_ai.core": "INFO",
    # third-party
    "asyncio": "WARNING",
    "langgraph": "WARNING",
    "pydantic_ai": "INFO",
}


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Install the root handlers and per-package levels.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Console level, e.g. ``DEBUG`` or ``warning``. Defaults to the configured level.
        log_format: ``simple``, ``detailed`` or ``json``. Unknown names fall back to ``detailed``.
        enable_file: Allow the rotating file handler; it is only added when file logging is configured.
    """
    level = (log_level or LOG_LEVEL).upper()
    fmt = log_format or LOG_FORMAT
    formatter = logging.Formatter(FORMATS.get(fmt, DETAILED_FORMAT), datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    file_logging = enable_file and ENABLE_FILE_LOGGING
    if file_logging:
        log_dir = Path(LOG_FILE_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            log_dir / LOG_FILE_NAME, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUP_COUNT
        )
        rotating.setLevel(logging.DEBUG)
        rotating.setFormatter(formatter)
        root.addHandler(rotating)

    for package, package_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(package).setLevel(package_level)

    root.info(f"Logging configured: level={level}, format={fmt}, file_logging={file_logging}")


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``; modules normally pass ``__name__``."""
    return logging.getLogger(name)
