"""Logging utilities."""
from __future__ import annotations

import logging
import logging.config
from pathlib import Path

import yaml

from withdrawal_reports.core.config import Settings, get_settings

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure logging from the YAML file, then apply the service log level.

    ``LOGGING_CONFIG`` points at an alternative file; when no file exists the
    root logger falls back to ``basicConfig``.
    """
    settings = settings or get_settings()
    config_path = Path(settings.logging_config) if settings.logging_config else DEFAULT_CONFIG_PATH
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as config_file:
            logging.config.dictConfig(yaml.safe_load(config_file))
    else:
        logging.basicConfig(level=logging.INFO)

    if settings.log_level:
        logging.getLogger("withdrawal_reports").setLevel(settings.log_level.upper())


__all__ = ["DEFAULT_CONFIG_PATH", "configure_logging"]
