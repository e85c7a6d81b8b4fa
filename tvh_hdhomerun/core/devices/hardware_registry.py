"""
Hardware registry - the process-wide set of hardware entities.

HDHomeRun devices share the registry with any other hardware kind the
host registers, so tuner lookups always filter on ``TunerDevice.kind``.
The registry does no I/O and no locking of its own; callers mutate it
while holding ``DeviceContext.lock``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .errors import DeviceRegistrationError
from .identity import derive_identity

if TYPE_CHECKING:
    from .tuner_device import TunerDevice
    from .tuner_frontend import TunerFrontend

logger = get_module_logger("HardwareRegistry")


class HardwareEntity:
    """Anything that can live in the hardware registry."""

    kind: str = "hardware"

    def __init__(self, uuid: str):
        self._uuid = uuid

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def title(self) -> str:
        return self._uuid


class HardwareRegistry:
    """
    Registry of hardware entities keyed by uuid.

    Usage:
        registry = HardwareRegistry()
        registry.register(device)
        registry.find_by_device_id(0x1A2B3C4D)  # -> device
        registry.unregister(device)
    """

    def __init__(self) -> None:
        self._entities: dict[str, HardwareEntity] = {}

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[HardwareEntity]:
        return iter(list(self._entities.values()))

    def __contains__(self, entity: object) -> bool:
        if not isinstance(entity, HardwareEntity):
            return False
        return self._entities.get(entity.uuid) is entity

    def register(self, entity: HardwareEntity) -> None:
        existing = self._entities.get(entity.uuid)
        if existing is not None:
            raise DeviceRegistrationError(
                f"{entity.kind} {entity.uuid} conflicts with registered {existing.kind}"
            )
        self._entities[entity.uuid] = entity
        logger.debug("Registered %s %s", entity.kind, entity.uuid)

    def unregister(self, entity: HardwareEntity) -> bool:
        if self._entities.get(entity.uuid) is not entity:
            return False
        del self._entities[entity.uuid]
        logger.debug("Unregistered %s %s", entity.kind, entity.uuid)
        return True

    def get(self, uuid: str) -> Optional[HardwareEntity]:
        return self._entities.get(uuid)

    def get_device(self, uuid: str) -> Optional["TunerDevice"]:
        from .tuner_device import TunerDevice

        entity = self._entities.get(uuid)
        return entity if isinstance(entity, TunerDevice) else None

    def devices(self) -> list["TunerDevice"]:
        """All registered HDHomeRun devices, in registration order."""
        from .tuner_device import TunerDevice

        return [e for e in self._entities.values() if isinstance(e, TunerDevice)]

    def find_by_device_id(self, device_id: int) -> Optional["TunerDevice"]:
        uuid = derive_identity(device_id)
        for device in self.devices():
            if device.uuid == uuid:
                return device
        return None

    def frontends(self) -> list["TunerFrontend"]:
        return [fe for device in self.devices() for fe in device.frontends.values()]

    def owner_of(self, frontend: "TunerFrontend") -> Optional["TunerDevice"]:
        """Resolve a frontend's back-reference; None once its device is gone."""
        device = self.get_device(frontend.device_uuid)
        if device is None or device.frontends.get(frontend.tuner_index) is not frontend:
            return None
        return device
