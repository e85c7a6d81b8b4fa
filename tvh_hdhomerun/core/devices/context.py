"""
Shared state for the tuner lifecycle.

Every lifecycle operation receives the DeviceContext explicitly. The
context owns the hardware registry and the single lock that serializes
discovery, override changes and teardown.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum, auto

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .discovery_protocol import DiscoveryTransport, SessionFactory, SettingsStore
from .hardware_registry import HardwareRegistry

logger = get_module_logger("DeviceContext")


class ServicePhase(Enum):
    """Service lifecycle phases; discovery only runs while RUNNING."""
    INITIALIZING = auto()
    RUNNING = auto()
    SHUTTING_DOWN = auto()
    STOPPED = auto()


@dataclass
class DeviceContext:
    store: SettingsStore
    transport: DiscoveryTransport
    session_factory: SessionFactory
    registry: HardwareRegistry = field(default_factory=HardwareRegistry)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    phase: ServicePhase = ServicePhase.INITIALIZING

    @property
    def is_running(self) -> bool:
        return self.phase == ServicePhase.RUNNING

    def enter_running_phase(self) -> None:
        self.phase = ServicePhase.RUNNING
        logger.info("SERVICE PHASE: RUNNING")

    def enter_shutdown_phase(self) -> None:
        self.phase = ServicePhase.SHUTTING_DOWN
        logger.info("SERVICE PHASE: SHUTTING_DOWN")

    def enter_stopped_phase(self) -> None:
        self.phase = ServicePhase.STOPPED
        logger.info("SERVICE PHASE: STOPPED")

    def assert_locked(self) -> None:
        """Raise unless the device lock is currently held."""
        if not self.lock.locked():
            raise RuntimeError("device lock must be held for this operation")
