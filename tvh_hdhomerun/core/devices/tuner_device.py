"""
HDHomeRun device entity.

A TunerDevice is one physical box on the network. It owns its frontends
(keyed by tuner index, in creation order) and exposes a small property
table for configuration UIs. Only ``fe_override`` is writable; writes go
through ``reconciliation.set_fe_override`` so the frontends are rebuilt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Optional

from .hardware_registry import HardwareEntity
from .identity import format_device_id
from .tuner_frontend import TunerFrontend
from .types import DEFAULT_TUNING, SignalType, TuningDefaults


@dataclass(frozen=True)
class PropertySpec:
    """How a device attribute is exposed to configuration UIs."""
    id: str
    name: str
    read_only: bool = True
    persisted: bool = False
    advanced: bool = False


DEVICE_PROPERTIES: tuple[PropertySpec, ...] = (
    PropertySpec("networkType", "Network"),
    PropertySpec("ip_address", "IP Address"),
    PropertySpec("uuid", "UUID", persisted=True),
    PropertySpec("friendly", "Friendly Name"),
    PropertySpec("deviceModel", "Device Model"),
    PropertySpec("fe_override", "Network Type", read_only=False, persisted=True, advanced=True),
)


def get_property_spec(prop_id: str) -> Optional[PropertySpec]:
    for spec in DEVICE_PROPERTIES:
        if spec.id == prop_id:
            return spec
    return None


def friendly_name_for(device_id: int) -> str:
    return f"HDHomeRun({format_device_id(device_id)})"


class TunerDevice(HardwareEntity):
    """One HDHomeRun box and its tuner frontends."""

    kind = "tvhdhomerun_client"

    def __init__(
        self,
        uuid: str,
        device_id: int,
        override_type: SignalType,
        tuning: TuningDefaults = DEFAULT_TUNING,
    ):
        super().__init__(uuid)
        self.device_id = device_id
        self.override_type = override_type
        self.tuning = tuning
        self.ip_address = ""
        self.friendly_name = ""
        self.model: Optional[str] = None
        self.frontends: dict[int, TunerFrontend] = {}

    def __repr__(self) -> str:
        return (
            f"TunerDevice({format_device_id(self.device_id)}, ip={self.ip_address!r}, "
            f"type={self.override_type.label}, frontends={list(self.frontends)})"
        )

    @property
    def title(self) -> str:
        return f"{self.friendly_name} - {self.ip_address}"

    # ------------------------------------------------------------------
    # Frontend collection

    def iter_frontends(self) -> Iterator[TunerFrontend]:
        return iter(list(self.frontends.values()))

    def first_frontend(self) -> Optional[TunerFrontend]:
        return next(iter(self.frontends.values()), None)

    def add_frontend(self, frontend: TunerFrontend) -> None:
        if frontend.device_uuid != self.uuid:
            raise ValueError(
                f"Frontend for {frontend.device_uuid} cannot be bound to device {self.uuid}"
            )
        if frontend.tuner_index in self.frontends:
            raise ValueError(f"Tuner {frontend.tuner_index} already bound on {self.friendly_name}")
        self.frontends[frontend.tuner_index] = frontend

    def remove_frontend(self, frontend: TunerFrontend) -> bool:
        if self.frontends.get(frontend.tuner_index) is not frontend:
            return False
        del self.frontends[frontend.tuner_index]
        return True

    # ------------------------------------------------------------------
    # Object-model exposure

    def properties(self) -> dict[str, Any]:
        return {
            "networkType": self.override_type.label,
            "ip_address": self.ip_address,
            "uuid": self.uuid,
            "friendly": self.friendly_name,
            "deviceModel": self.model or "",
            "fe_override": self.override_type.label,
        }

    @staticmethod
    def fe_override_options() -> list[str]:
        return SignalType.labels()

    def describe(self) -> dict[str, Any]:
        """Properties plus frontends, as served by the REST API."""
        data = self.properties()
        data["title"] = self.title
        data["frontends"] = [
            {"tuner": fe.tuner_index, **fe.settings()} for fe in self.frontends.values()
        ]
        return data
