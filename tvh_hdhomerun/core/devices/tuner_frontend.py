"""One tuner unit inside an HDHomeRun box."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .discovery_protocol import TunerSession
from .types import SignalType

logger = get_module_logger("TunerFrontend")

# Fields that define what a frontend *is*; changing them means delete + recreate.
_FIXED_FIELDS = frozenset({"device_uuid", "tuner_index", "signal_type"})


@dataclass(eq=False)
class TunerFrontend:
    """
    A tuner unit bound to one device.

    ``device_uuid`` is a key into the hardware registry, not a reference to
    the device object, so a frontend can never keep a removed device alive.
    """
    device_uuid: str
    tuner_index: int
    signal_type: SignalType
    ip_address: str
    session: Optional[TunerSession] = None

    # Persisted per-tuner settings
    enabled: bool = True
    priority: int = 0
    name: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            self.name = self.default_name

    def __setattr__(self, key: str, value: Any) -> None:
        if key in _FIXED_FIELDS and key in self.__dict__:
            raise AttributeError(f"TunerFrontend.{key} is fixed at creation")
        super().__setattr__(key, value)

    @property
    def default_name(self) -> str:
        return f"HDHomeRun {self.signal_type.label} Tuner #{self.tuner_index} ({self.ip_address})"

    @property
    def is_released(self) -> bool:
        return self.session is None

    def apply_settings(self, conf: Optional[dict[str, Any]]) -> None:
        """Apply a persisted per-tuner settings map."""
        if not conf:
            return
        if "enabled" in conf:
            self.enabled = _as_bool(conf["enabled"])
        if "priority" in conf:
            try:
                self.priority = int(conf["priority"])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid priority %r for tuner %d", conf["priority"], self.tuner_index)
        if conf.get("name"):
            self.name = str(conf["name"])

    def settings(self) -> dict[str, Any]:
        return {
            "type": self.signal_type.label,
            "enabled": self.enabled,
            "priority": self.priority,
            "name": self.name,
        }

    def release(self) -> None:
        """Close the tuner session; safe to call more than once."""
        session, self.session = self.session, None
        if session is None:
            return
        try:
            session.close()
        except Exception as e:
            logger.warning("Error closing session for tuner %d: %s", self.tuner_index, e)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)
