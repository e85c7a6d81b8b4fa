"""
API Controller - thin async wrapper around the device context for routes.

Reads go straight to the registry; anything that mutates devices goes
through the lifecycle/reconciliation entry points, which take the device
lock themselves.
"""

import datetime
from typing import Any, Dict, List, Optional

from tvh_hdhomerun.core.devices import (
    DeviceContext,
    DeviceNotRegisteredError,
    HDHomeRunScanner,
    get_property_spec,
    remove_device,
    set_fe_override,
)
from tvh_hdhomerun.core.logging_utils import get_module_logger


logger = get_module_logger("APIController")


class APIController:
    """Programmatic access to discovered tuners and their settings."""

    def __init__(self, context: DeviceContext, scanner: HDHomeRunScanner):
        self.context = context
        self.scanner = scanner

    # =========================================================================
    # System
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.datetime.now().isoformat(),
            "api_version": "v1",
            "phase": self.context.phase.name.lower(),
            "device_count": len(self.context.registry.devices()),
            "scan_count": self.scanner.scan_count,
        }

    # =========================================================================
    # Devices
    # =========================================================================

    async def list_devices(self) -> List[Dict[str, Any]]:
        return [device.describe() for device in self.context.registry.devices()]

    async def get_device(self, uuid: str) -> Optional[Dict[str, Any]]:
        device = self.context.registry.get_device(uuid)
        return device.describe() if device else None

    async def get_frontends(self, uuid: str) -> Optional[List[Dict[str, Any]]]:
        device = self.context.registry.get_device(uuid)
        if device is None:
            return None
        return device.describe()["frontends"]

    async def get_property_options(self, uuid: str, prop_id: str) -> Optional[Dict[str, Any]]:
        """Enumerated choices of a device property (only ``fe_override`` has any)."""
        device = self.context.registry.get_device(uuid)
        if device is None:
            return None
        if prop_id != "fe_override":
            return {"error": f"Property '{prop_id}' has no options", "error_code": "NO_OPTIONS"}
        return {
            "property": prop_id,
            "value": device.override_type.label,
            "options": device.fe_override_options(),
        }

    async def update_device(self, uuid: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply property writes to a device.

        Every key is checked before anything is written, so a request that
        names a read-only or unknown property changes nothing. An invalid
        ``fe_override`` label raises ValueError.
        """
        device = self.context.registry.get_device(uuid)
        if device is None:
            return None

        for prop_id in changes:
            spec = get_property_spec(prop_id)
            if spec is None:
                return {"error": f"Unknown property '{prop_id}'", "error_code": "UNKNOWN_PROPERTY"}
            if spec.read_only:
                return {"error": f"Property '{prop_id}' is read-only", "error_code": "READ_ONLY_PROPERTY"}

        changed: list[str] = []
        if "fe_override" in changes:
            value = changes["fe_override"]
            if value is not None and not isinstance(value, str):
                raise ValueError("fe_override must be a string")
            try:
                if await set_fe_override(self.context, device, value):
                    changed.append("fe_override")
            except DeviceNotRegisteredError as e:
                logger.warning("Update of %s dropped: %s", uuid, e)
                return None

        logger.info("Updated %s: %s", device.title, changed or "no change")
        return {"success": True, "changed": changed, "device": device.describe()}

    async def remove_device(self, uuid: str) -> Dict[str, Any]:
        removed = await remove_device(self.context, uuid)
        return {"success": removed, "uuid": uuid}

    async def scan(self) -> Dict[str, Any]:
        """Run one discovery pass now."""
        created = await self.scanner.force_scan()
        return {
            "success": True,
            "running": self.context.is_running,
            "created": [device.uuid for device in created],
            "device_count": len(self.context.registry.devices()),
        }
