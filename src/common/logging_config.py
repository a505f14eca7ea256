"""
Logging setup driven by a YAML dictConfig file.

- The logger configuration lives in `logging.yml` at the project root
  (override with CO2_LOG_CONFIG).
- Console handler at INFO, file handler at DEBUG.
- The file handler's target can be redirected from code (log_dir/log_file).
- setup_console_logging() is the console-only variant for AWS Lambda
  (read-only filesystem, root handler already installed by the runtime).
"""

from __future__ import annotations

import logging
import logging.config
import os
from pathlib import Path
from typing import Optional

import yaml

LOG_CONFIG_ENV = "CO2_LOG_CONFIG"
LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_CONFIG = Path("logging.yml")
ROOT_LOGGER_NAME = "co2_analytics"


def setup_logging(
    config_path: Path | str | None = None,
    *,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
    default_level: int = logging.INFO,
) -> logging.Logger:
    """
    Apply the YAML logging configuration, or fall back to basicConfig.

    Returns the application logger.
    """
    path = Path(config_path or os.getenv(LOG_CONFIG_ENV) or DEFAULT_LOG_CONFIG)

    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        file_handler_cfg = config.get("handlers", {}).get("file")
        if file_handler_cfg is not None:
            filename = log_file or file_handler_cfg.get("filename", "co2_analytics.log")
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
                filename = os.path.join(log_dir, os.path.basename(filename))
            else:
                dirname = os.path.dirname(filename)
                if dirname:
                    os.makedirs(dirname, exist_ok=True)
            file_handler_cfg["filename"] = filename

        logging.config.dictConfig(config)
    else:
        logging.basicConfig(
            level=default_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logging.getLogger(__name__).warning(
            "Logging config %s not found, using basicConfig",
            path,
        )

    return logging.getLogger(ROOT_LOGGER_NAME)


def setup_console_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Stream-only logging for environments without a writable disk.

    Keeps an already installed root handler (Lambda adds one) and only
    raises the root level, LOG_LEVEL or INFO by default.
    """
    level_name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    root.setLevel(level_name)
    return logging.getLogger(ROOT_LOGGER_NAME)


__all__ = [
    "LOG_CONFIG_ENV",
    "LOG_LEVEL_ENV",
    "DEFAULT_LOG_CONFIG",
    "setup_logging",
    "setup_console_logging",
]
