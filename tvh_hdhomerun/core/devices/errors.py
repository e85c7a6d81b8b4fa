"""Exceptions raised by the tuner device lifecycle."""


class TunerDeviceError(RuntimeError):
    """Base class for tuner device lifecycle failures."""


class DeviceRegistrationError(TunerDeviceError):
    """A device could not be added to the hardware registry."""


class DeviceNotRegisteredError(TunerDeviceError):
    """The device was removed from the registry before the operation ran."""
