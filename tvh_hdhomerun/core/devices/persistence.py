"""
Adapter record persistence.

Record layout (one per device, keyed ``input/tvhdhomerun/adapters/<uuid>``):

    {
        "uuid": "<uuid>",
        "fe_override": "DVB-C",
        "frontends": {
            "0": {"type": "DVB-C", "enabled": true, "priority": 0, "name": "..."},
            "1": {...}
        }
    }
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .tuner_device import DEVICE_PROPERTIES, TunerDevice
from .types import adapter_key

if TYPE_CHECKING:
    from .context import DeviceContext

logger = get_module_logger("DevicePersistence")


def device_record(device: TunerDevice) -> dict[str, Any]:
    """Serialize a device and its frontends into a settings record."""
    properties = device.properties()
    record: dict[str, Any] = {
        spec.id: properties[spec.id] for spec in DEVICE_PROPERTIES if spec.persisted
    }
    record["frontends"] = {
        str(fe.tuner_index): fe.settings() for fe in device.frontends.values()
    }
    return record


def frontends_section(record: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Return the ``frontends`` sub-map of a record, if it has a usable one."""
    if not record:
        return None
    section = record.get("frontends")
    return section if isinstance(section, dict) else None


async def load_device_config(context: "DeviceContext", uuid: str) -> Optional[dict[str, Any]]:
    return await context.store.load(adapter_key(uuid))


async def save_device(context: "DeviceContext", device: TunerDevice) -> bool:
    """Replace the persisted record for ``device``. Requires the device lock."""
    context.assert_locked()
    record = device_record(device)
    saved = await context.store.save(adapter_key(device.uuid), record)
    if saved:
        logger.info(
            "PERSIST: %s fe_override=%s frontends=%s",
            device.friendly_name, record["fe_override"], sorted(record["frontends"], key=int),
        )
    else:
        logger.error("PERSIST FAILED: %s", device.friendly_name)
    return saved
