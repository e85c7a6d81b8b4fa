"""
Collaborator protocols for the tuner lifecycle.

The lifecycle only talks to the network and to disk through these
interfaces. ``transports/`` provides the HDHomeRun implementations and
``core/settings_store.py`` the on-disk store; tests substitute fakes.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from .types import DEVICE_ID_WILDCARD, DEVICE_TYPE_TUNER, MAX_HDHOMERUN_DEVICES


@dataclass(frozen=True)
class DiscoveredTuner:
    """One reply to a discovery broadcast."""
    device_id: int
    ip_addr: int             # IPv4 address as an unsigned 32-bit integer
    device_type: int
    tuner_count: int

    @property
    def ip_address(self) -> str:
        return str(ipaddress.IPv4Address(self.ip_addr))

    @property
    def is_tuner(self) -> bool:
        return self.device_type == DEVICE_TYPE_TUNER


@runtime_checkable
class DiscoveryTransport(Protocol):
    """Blocking discovery query; called from a worker thread."""

    def discover(
        self,
        device_type: int = DEVICE_TYPE_TUNER,
        device_id: int = DEVICE_ID_WILDCARD,
        max_results: int = MAX_HDHOMERUN_DEVICES,
    ) -> list[DiscoveredTuner]:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class TunerSession(Protocol):
    """Control session bound to one tuner unit of one device."""

    def model_string(self) -> Optional[str]:
        ...

    def close(self) -> None:
        ...


# (device_id, ip_addr, tuner_index) -> TunerSession
SessionFactory = Callable[[int, int, int], TunerSession]


@runtime_checkable
class SettingsStore(Protocol):
    """Persistence of nested records keyed by path-like strings."""

    async def load(self, key: str) -> Optional[dict[str, Any]]:
        ...

    async def save(self, key: str, record: dict[str, Any]) -> bool:
        ...
