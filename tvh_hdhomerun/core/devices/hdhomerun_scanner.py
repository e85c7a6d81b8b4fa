"""
HDHomeRun discovery scanner.

Periodically broadcasts a discovery query and creates devices for tuner
boxes that are not yet registered. Discovery only ever adds devices: a
known device keeps its frontends untouched, and only its IP address is
refreshed when the box has moved.
"""

import asyncio
from typing import Optional

from tvh_hdhomerun.core.logging_utils import get_module_logger

from .context import DeviceContext
from .discovery_protocol import DiscoveredTuner
from .identity import format_device_id
from .lifecycle import create_device
from .tuner_device import TunerDevice
from .types import DEVICE_ID_WILDCARD, DEVICE_TYPE_TUNER, MAX_HDHOMERUN_DEVICES

logger = get_module_logger("HDHomeRunScanner")


class HDHomeRunScanner:
    """
    Discovers HDHomeRun tuners on a timer.

    Usage:
        scanner = HDHomeRunScanner(context, scan_interval=60.0)
        await scanner.start()   # initial scan, then one every scan_interval
        # ... later ...
        await scanner.stop()
    """

    DEFAULT_SCAN_INTERVAL = 60.0

    def __init__(
        self,
        context: DeviceContext,
        scan_interval: float = DEFAULT_SCAN_INTERVAL,
        max_devices: int = MAX_HDHOMERUN_DEVICES,
    ):
        self._context = context
        self._scan_interval = scan_interval
        self._max_devices = max_devices

        self._scan_task: Optional[asyncio.Task] = None
        self._running = False
        self.scan_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run an initial scan and start the periodic scan loop."""
        if self._running:
            return
        self._running = True

        await self.scan()

        self._scan_task = asyncio.create_task(self._scan_loop())
        logger.info("HDHomeRun scanner started (interval %.0fs)", self._scan_interval)

    async def stop(self) -> None:
        self._running = False
        if self._scan_task:
            self._scan_task.cancel()
            try:
                await self._scan_task
            except asyncio.CancelledError:
                pass
            self._scan_task = None
        logger.info("HDHomeRun scanner stopped")

    async def force_scan(self) -> list[TunerDevice]:
        """Run one discovery pass now."""
        return await self.scan()

    async def _scan_loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._scan_interval)
                await self.scan()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in HDHomeRun scan loop: %s", e)

    async def scan(self) -> list[TunerDevice]:
        """One discovery pass. Returns the devices created by this pass."""
        if not self._context.is_running:
            logger.debug("Skipping discovery - service not running")
            return []

        async with self._context.lock:
            self.scan_count += 1
            records = await self._discover()
            created: list[TunerDevice] = []

            for record in records:
                if record.device_type != DEVICE_TYPE_TUNER:
                    continue

                existing = self._context.registry.find_by_device_id(record.device_id)
                if existing is not None:
                    self._refresh_address(existing, record)
                    continue

                logger.info(
                    "Found HDHomeRun device %s with %d tuners",
                    format_device_id(record.device_id), record.tuner_count,
                )
                try:
                    device = await create_device(self._context, record)
                except Exception as e:
                    logger.error("Error creating device %s: %s", format_device_id(record.device_id), e)
                    continue
                if device is not None:
                    created.append(device)

        return created

    async def _discover(self) -> list[DiscoveredTuner]:
        try:
            records = await asyncio.to_thread(
                self._context.transport.discover,
                DEVICE_TYPE_TUNER,
                DEVICE_ID_WILDCARD,
                self._max_devices,
            )
        except Exception as e:
            logger.warning("HDHomeRun discovery failed: %s", e)
            return []

        if not records:
            logger.debug("No HDHomeRun devices found")
            return []
        return list(records)[: self._max_devices]

    @staticmethod
    def _refresh_address(device: TunerDevice, record: DiscoveredTuner) -> None:
        # Only the device address moves. Existing frontends keep the address
        # and session they were built with; an fe_override rebuild picks up
        # the new address.
        if device.ip_address == record.ip_address:
            return
        logger.info(
            "HDHomeRun %s address changed: %s -> %s",
            device.friendly_name, device.ip_address, record.ip_address,
        )
        device.ip_address = record.ip_address
