"""
HDHomeRun device management.

Discovery, identity, the hardware registry and the device/frontend
lifecycle, all driven through an explicit DeviceContext.
"""

from .context import DeviceContext, ServicePhase
from .discovery_protocol import (
    DiscoveredTuner,
    DiscoveryTransport,
    SessionFactory,
    SettingsStore,
    TunerSession,
)
from .errors import (
    DeviceNotRegisteredError,
    DeviceRegistrationError,
    TunerDeviceError,
)
from .hardware_registry import HardwareEntity, HardwareRegistry
from .hdhomerun_scanner import HDHomeRunScanner
from .identity import derive_identity, format_device_id
from .lifecycle import (
    create_device,
    create_frontend,
    delete_frontend,
    destroy_device,
    remove_device,
    shutdown,
)
from .persistence import device_record, load_device_config, save_device
from .reconciliation import on_override_changed, set_fe_override
from .tuner_device import DEVICE_PROPERTIES, PropertySpec, TunerDevice, get_property_spec
from .tuner_frontend import TunerFrontend
from .types import (
    DEFAULT_SIGNAL_TYPE,
    DEFAULT_TUNING,
    DEVICE_ID_WILDCARD,
    DEVICE_TYPE_TUNER,
    MAX_HDHOMERUN_DEVICES,
    SignalType,
    TuningDefaults,
    adapter_key,
)

__all__ = [
    "DeviceContext",
    "ServicePhase",
    "DiscoveredTuner",
    "DiscoveryTransport",
    "SessionFactory",
    "SettingsStore",
    "TunerSession",
    "DeviceNotRegisteredError",
    "DeviceRegistrationError",
    "TunerDeviceError",
    "HardwareEntity",
    "HardwareRegistry",
    "HDHomeRunScanner",
    "derive_identity",
    "format_device_id",
    "create_device",
    "create_frontend",
    "delete_frontend",
    "destroy_device",
    "remove_device",
    "shutdown",
    "device_record",
    "load_device_config",
    "save_device",
    "on_override_changed",
    "set_fe_override",
    "DEVICE_PROPERTIES",
    "PropertySpec",
    "TunerDevice",
    "get_property_spec",
    "TunerFrontend",
    "DEFAULT_SIGNAL_TYPE",
    "DEFAULT_TUNING",
    "DEVICE_ID_WILDCARD",
    "DEVICE_TYPE_TUNER",
    "MAX_HDHOMERUN_DEVICES",
    "SignalType",
    "TuningDefaults",
    "adapter_key",
]
