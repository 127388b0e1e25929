from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from tenant_access.configs.logging_config import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Toast:
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


Notifier = Callable[[Toast], None]


def log_notifier(toast: Toast) -> None:
    log.warning("toast variant=%s title=%s description=%s", toast.variant, toast.title, toast.description)
