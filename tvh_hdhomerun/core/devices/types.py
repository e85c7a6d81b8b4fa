"""Shared enums and constants for HDHomeRun tuner management."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SignalType(Enum):
    """Frontend signal types an HDHomeRun box can be overridden to."""
    TERRESTRIAL = "DVB-T"
    CABLE = "DVB-C"
    ATSC = "ATSC"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["SignalType"]:
        """Return the type for a persisted/user label, or None if unknown."""
        if not label:
            return None
        for member in cls:
            if member.value == label:
                return member
        return None

    @classmethod
    def labels(cls) -> list[str]:
        return [member.value for member in cls]


DEFAULT_SIGNAL_TYPE = SignalType.CABLE

# Substring of the model string carried by ATSC-only hardware (e.g. "hdhomerun3_atsc")
ATSC_MODEL_MARKER = "_atsc"

# Discovery constants (libhdhomerun values)
DEVICE_TYPE_WILDCARD = 0xFFFFFFFF
DEVICE_TYPE_TUNER = 0x00000001
DEVICE_ID_WILDCARD = 0xFFFFFFFF
MAX_HDHOMERUN_DEVICES = 8

# Settings tree location of adapter records
ADAPTERS_KEY_PREFIX = "input/tvhdhomerun/adapters"


def adapter_key(uuid: str) -> str:
    return f"{ADAPTERS_KEY_PREFIX}/{uuid}"


@dataclass(frozen=True)
class TuningDefaults:
    """PID policy applied to every device at creation."""
    full_mux_ok: bool = True    # whole-mux capture allowed
    pids_max: int = 127         # max PIDs filtered before falling back to full mux
    pids_batch: int = 32        # PIDs changed per filter update
    pids_deladd: bool = True    # incremental PID add/remove


DEFAULT_TUNING = TuningDefaults()
