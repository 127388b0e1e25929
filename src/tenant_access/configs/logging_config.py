from __future__ import annotations

import logging

from tenant_access.configs.settings import get_settings
from tenant_access.utils.logging import configure_logging


def setup_logging(level: str | None = None) -> None:
    configure_logging(level or get_settings().log_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
