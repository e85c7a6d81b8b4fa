"""
Override-type reconciliation.

Writing ``fe_override`` on a device rebuilds its frontends for the new
signal type. Frontends are visited from the front of the collection; each
one of the wrong type is deleted and recreated (same tuner index, current
device address) and the replacement is appended at the back. The pass
stops at the first frontend that already has the requested type, so a
collection that mixes types can keep later frontends of the old type.
"""

from __future__ import annotations

import ipaddress
from typing import Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .context import DeviceContext
from .discovery_protocol import DiscoveredTuner
from .errors import DeviceNotRegisteredError
from .lifecycle import create_frontend, delete_frontend
from .persistence import frontends_section, load_device_config, save_device
from .tuner_device import TunerDevice
from .types import DEVICE_TYPE_TUNER, SignalType

logger = get_module_logger("Reconciliation")


def _rebuild_record(device: TunerDevice) -> DiscoveredTuner:
    return DiscoveredTuner(
        device_id=device.device_id,
        ip_addr=int(ipaddress.IPv4Address(device.ip_address)),
        device_type=DEVICE_TYPE_TUNER,
        tuner_count=len(device.frontends),
    )


async def on_override_changed(context: DeviceContext, device: TunerDevice, new_type: SignalType) -> int:
    """Rebuild frontends of ``device`` for ``new_type``. Returns the number rebuilt."""
    context.assert_locked()

    frontend_conf = frontends_section(await load_device_config(context, device.uuid))
    rebuilt = 0

    while (frontend := device.first_frontend()) is not None:
        if frontend.signal_type == new_type:
            break

        tuner_index = frontend.tuner_index
        record = _rebuild_record(device)

        delete_frontend(context, frontend)
        replacement = await create_frontend(context, device, record, frontend_conf, new_type, tuner_index)
        if replacement is None:
            logger.error("Unable to recreate tuner %d of %s as %s", tuner_index, device.title, new_type.label)
            continue
        rebuilt += 1

    logger.info("Rebuilt %d frontend(s) of %s as %s", rebuilt, device.title, new_type.label)
    return rebuilt


async def set_fe_override(context: DeviceContext, device: TunerDevice, value: Optional[str]) -> bool:
    """Property setter for ``fe_override``; takes the device lock.

    Empty values and the current label are ignored (returns False). Any
    other unknown label raises ValueError. Raises DeviceNotRegisteredError
    when the device was removed before the lock was acquired.
    """
    if not value:
        return False

    new_type = SignalType.from_label(value)
    if new_type is None:
        raise ValueError(f"Unknown network type '{value}' (expected one of {', '.join(SignalType.labels())})")

    async with context.lock:
        if context.registry.get_device(device.uuid) is not device:
            raise DeviceNotRegisteredError(f"Device {device.uuid} is no longer registered")
        if new_type == device.override_type:
            return False

        device.override_type = new_type
        logger.info("Setting override_type : %s", new_type.label)
        await on_override_changed(context, device, new_type)
        await save_device(context, device)

    return True
