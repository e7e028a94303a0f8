"""
Logging setup for the Tutorbook search service.

The service logs through the standard library. ``configure_logging`` installs
a console handler (and optionally a rotating file handler) with
``logging.config.dictConfig``; a YAML file in dictConfig format replaces the
built-in layout entirely.
"""

import logging
import logging.config
import os
import sys
from typing import Any, Dict, Optional

import yaml

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DETAILED_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"

# Per-request access lines from the server and HTTP clients.
QUIET_LOGGERS = ("uvicorn.access", "aiohttp.access", "backoff")


def _default_config(level: str) -> Dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"format": LOG_FORMAT},
            "detailed": {"format": DETAILED_LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {"handlers": ["console"], "level": level},
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        },
    }


def _load_file_config(config_path: str) -> Optional[Dict[str, Any]]:
    try:
        with open(config_path, "r") as file:
            return yaml.safe_load(file) or None
    except (OSError, yaml.YAMLError) as e:
        print(f"Error loading logging config from {config_path}: {e}", file=sys.stderr)
        return None


def _add_file_handler(config: Dict[str, Any], log_file: str) -> None:
    log_directory = os.path.dirname(log_file)
    if log_directory:
        os.makedirs(log_directory, exist_ok=True)
    config.setdefault("handlers", {})["file"] = {
        "class": "logging.handlers.RotatingFileHandler",
        "level": "DEBUG",
        "formatter": "detailed",
        "filename": log_file,
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "encoding": "utf8",
    }
    root = config.setdefault("loggers", {}).setdefault("", {"handlers": []})
    if "file" not in root.get("handlers", []):
        root["handlers"] = list(root.get("handlers", [])) + ["file"]


def configure_logging(
    config_path: Optional[str] = None,
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the service.

    Args:
        config_path: dictConfig YAML file replacing the built-in layout
        log_level: Level for the root logger and console handler
        log_file: Rotating log file; file logging is off when omitted
    """
    level = (log_level or "INFO").upper()
    if not isinstance(getattr(logging, level, None), int):
        level = "INFO"

    config = _default_config(level)
    if config_path and os.path.exists(config_path):
        config = _load_file_config(config_path) or config
        if log_level:
            config.get("loggers", {}).get("", {})["level"] = level

    if log_file:
        _add_file_handler(config, log_file)

    try:
        logging.config.dictConfig(config)
    except (ValueError, TypeError, AttributeError, ImportError) as e:
        print(f"Error configuring logging, falling back to basic configuration: {e}", file=sys.stderr)
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; pass ``__name__``."""
    return logging.getLogger(name)
