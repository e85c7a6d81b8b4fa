"""
Tuner device lifecycle - construction and teardown of devices and frontends.

All functions here mutate the shared registry and therefore require
``context.lock`` to be held by the caller (checked with
``context.assert_locked()``). ``remove_device`` and ``shutdown`` are the
exceptions: they are entry points and take the lock themselves.

Failure policy:
- a device that cannot be built is logged and skipped; nothing of it
  remains registered, so the next discovery pass retries it
- a frontend that cannot be built is logged and left out; its siblings
  and the enclosing device are unaffected
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .context import DeviceContext
from .discovery_protocol import DiscoveredTuner, SessionFactory
from .errors import DeviceRegistrationError
from .identity import derive_identity, format_device_id
from .persistence import frontends_section, load_device_config, save_device
from .tuner_device import TunerDevice, friendly_name_for
from .tuner_frontend import TunerFrontend
from .types import (
    ATSC_MODEL_MARKER,
    DEFAULT_SIGNAL_TYPE,
    DEFAULT_TUNING,
    SignalType,
)

logger = get_module_logger("DeviceLifecycle")


def _query_model(session_factory: SessionFactory, record: DiscoveredTuner) -> Optional[str]:
    session = session_factory(record.device_id, record.ip_addr, 0)
    try:
        return session.model_string()
    finally:
        session.close()


def initial_signal_type(conf: Optional[dict[str, Any]], model: Optional[str]) -> SignalType:
    """Pick the override type for a newly discovered device.

    A saved ``fe_override`` wins (unknown labels fall back to cable);
    without a saved record, ATSC-only models default to ATSC.
    """
    if conf is not None:
        return SignalType.from_label(conf.get("fe_override")) or DEFAULT_SIGNAL_TYPE
    if model and ATSC_MODEL_MARKER in model:
        return SignalType.ATSC
    return DEFAULT_SIGNAL_TYPE


async def create_device(context: DeviceContext, record: DiscoveredTuner) -> Optional[TunerDevice]:
    """Build, register and populate a device for a discovery record."""
    context.assert_locked()
    label = format_device_id(record.device_id)
    uuid = derive_identity(record.device_id)

    try:
        model = await asyncio.to_thread(_query_model, context.session_factory, record)
    except Exception as e:
        logger.error("Unable to query model of %s at %s: %s", label, record.ip_address, e)
        return None

    conf = await load_device_config(context, uuid)
    signal_type = initial_signal_type(conf, model)
    logger.info("Using network type %s for %s", signal_type.label, label)

    device = TunerDevice(uuid, record.device_id, signal_type, tuning=DEFAULT_TUNING)
    try:
        context.registry.register(device)
    except DeviceRegistrationError as e:
        logger.error("Unable to register %s: %s", label, e)
        return None

    device.ip_address = record.ip_address
    device.friendly_name = friendly_name_for(record.device_id)
    device.model = model

    frontend_conf = frontends_section(conf)
    save_required = conf is None or frontend_conf is None

    for tuner_index in range(record.tuner_count):
        frontend = await create_frontend(context, device, record, frontend_conf, signal_type, tuner_index)
        if frontend is not None:
            logger.info("Created frontend %s tuner %d", label, tuner_index)
        else:
            logger.error("Unable to create frontend-device (%s-%d)", label, tuner_index)

    if save_required:
        await save_device(context, device)

    return device


async def create_frontend(
    context: DeviceContext,
    device: TunerDevice,
    record: DiscoveredTuner,
    frontend_conf: Optional[dict[str, Any]],
    signal_type: SignalType,
    tuner_index: int,
) -> Optional[TunerFrontend]:
    """Open tuner ``tuner_index`` and bind it to ``device``. None on failure."""
    context.assert_locked()

    try:
        session = context.session_factory(record.device_id, record.ip_addr, tuner_index)
    except Exception as e:
        logger.error(
            "Tuner %s-%d initialization failed: %s",
            format_device_id(record.device_id), tuner_index, e,
        )
        return None

    frontend = TunerFrontend(
        device_uuid=device.uuid,
        tuner_index=tuner_index,
        signal_type=signal_type,
        ip_address=record.ip_address,
        session=session,
    )

    if frontend_conf:
        tuner_conf = frontend_conf.get(str(tuner_index))
        if isinstance(tuner_conf, dict):
            frontend.apply_settings(tuner_conf)

    try:
        device.add_frontend(frontend)
    except ValueError as e:
        frontend.release()
        logger.error("Unable to bind tuner %d: %s", tuner_index, e)
        return None

    return frontend


def delete_frontend(context: DeviceContext, frontend: TunerFrontend) -> None:
    """Unbind ``frontend`` from its device and release its tuner session."""
    context.assert_locked()

    device = context.registry.owner_of(frontend)
    if device is not None:
        device.remove_frontend(frontend)

    frontend.release()
    logger.debug("Deleted frontend %s tuner %d", frontend.signal_type.label, frontend.tuner_index)


def destroy_device(context: DeviceContext, device: TunerDevice) -> None:
    """Delete every frontend, then drop the device from the registry."""
    context.assert_locked()

    logger.info("Releasing tuners of %s", device.title)
    for frontend in device.iter_frontends():
        delete_frontend(context, frontend)

    context.registry.unregister(device)


async def remove_device(context: DeviceContext, uuid: str) -> bool:
    """Explicitly remove a device; its saved record is kept for rediscovery."""
    async with context.lock:
        device = context.registry.get_device(uuid)
        if device is None:
            return False
        destroy_device(context, device)
    logger.info("Removed device %s", uuid)
    return True


async def shutdown(context: DeviceContext) -> None:
    """Tear down every device in one critical section, then close discovery."""
    context.enter_shutdown_phase()

    async with context.lock:
        devices = context.registry.devices()
        for device in devices:
            destroy_device(context, device)
    logger.info("Destroyed %d device(s)", len(devices))

    try:
        context.transport.close()
    except Exception as e:
        logger.error("Error closing discovery transport: %s", e)

    context.enter_stopped_phase()
