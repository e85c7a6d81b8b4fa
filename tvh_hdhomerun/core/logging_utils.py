"""Component-tagged loggers for the tvh-hdhomerun service."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

LOGGER_NAMESPACE = "tvh_hdhomerun"
DEFAULT_COMPONENT = "Core"


class StructuredLogger(logging.LoggerAdapter):
    """Logger adapter that tags every message with its component.

    ``get_module_logger("HDHomeRunScanner").info("found %d", 2)`` emits
    ``[HDHomeRunScanner] found 2`` on the ``tvh_hdhomerun.HDHomeRunScanner``
    logger. Arguments are still merged lazily by :mod:`logging`.
    """

    def __init__(self, logger: logging.Logger, component: str) -> None:
        super().__init__(logger, {"component": component})
        self.component = component

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        text = str(msg)
        tag = f"[{self.component}]"
        if not text.startswith(tag):
            text = f"{tag} {text}"
        return text, kwargs


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Return a component logger under the ``tvh_hdhomerun`` namespace."""
    if not name or name == LOGGER_NAMESPACE:
        return StructuredLogger(logging.getLogger(LOGGER_NAMESPACE), DEFAULT_COMPONENT)
    if name.startswith(f"{LOGGER_NAMESPACE}."):
        component = name[len(LOGGER_NAMESPACE) + 1:]
        return StructuredLogger(logging.getLogger(name), component)
    return StructuredLogger(logging.getLogger(f"{LOGGER_NAMESPACE}.{name}"), name)


__all__ = [
    "LOGGER_NAMESPACE",
    "StructuredLogger",
    "get_module_logger",
]
