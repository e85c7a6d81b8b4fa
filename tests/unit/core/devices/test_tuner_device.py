"""Tests for TunerDevice and TunerFrontend."""

import pytest

from tvh_hdhomerun.core.devices import (
    DEFAULT_TUNING,
    SignalType,
    TunerDevice,
    TunerFrontend,
    derive_identity,
    get_property_spec,
)
from tvh_hdhomerun.core.devices.tuner_device import friendly_name_for

from tests.conftest import FakeSession


@pytest.fixture
def device():
    dev = TunerDevice(derive_identity(0x1A2B3C4D), 0x1A2B3C4D, SignalType.CABLE)
    dev.ip_address = "192.168.1.50"
    dev.friendly_name = friendly_name_for(0x1A2B3C4D)
    dev.model = "hdhomerun4_dvbc"
    return dev


def _frontend(device, index, signal_type=SignalType.CABLE, **kwargs):
    return TunerFrontend(device.uuid, index, signal_type, device.ip_address, **kwargs)


class TestTunerDevice:

    def test_friendly_name_and_title(self, device):
        assert device.friendly_name == "HDHomeRun(1A2B3C4D)"
        assert device.title == "HDHomeRun(1A2B3C4D) - 192.168.1.50"

    def test_defaults(self, device):
        assert device.kind == "tvhdhomerun_client"
        assert device.tuning == DEFAULT_TUNING
        assert device.tuning.pids_max == 127
        assert device.frontends == {}

    def test_properties(self, device):
        props = device.properties()
        assert props == {
            "networkType": "DVB-C",
            "ip_address": "192.168.1.50",
            "uuid": device.uuid,
            "friendly": "HDHomeRun(1A2B3C4D)",
            "deviceModel": "hdhomerun4_dvbc",
            "fe_override": "DVB-C",
        }

    def test_only_fe_override_is_writable(self):
        assert get_property_spec("fe_override").read_only is False
        for prop_id in ("networkType", "ip_address", "uuid", "friendly", "deviceModel"):
            assert get_property_spec(prop_id).read_only is True
        assert get_property_spec("nope") is None

    def test_fe_override_options(self, device):
        assert device.fe_override_options() == ["DVB-T", "DVB-C", "ATSC"]

    def test_add_frontend_keeps_insertion_order(self, device):
        for index in (1, 0):
            device.add_frontend(_frontend(device, index))

        assert list(device.frontends) == [1, 0]
        assert device.first_frontend().tuner_index == 1

    def test_add_frontend_rejects_foreign_uuid(self, device):
        foreign = TunerFrontend(derive_identity(7), 0, SignalType.CABLE, "10.0.0.1")
        with pytest.raises(ValueError):
            device.add_frontend(foreign)

    def test_add_frontend_rejects_duplicate_index(self, device):
        device.add_frontend(_frontend(device, 0))
        with pytest.raises(ValueError):
            device.add_frontend(_frontend(device, 0))

    def test_remove_frontend(self, device):
        frontend = _frontend(device, 0)
        device.add_frontend(frontend)

        assert device.remove_frontend(frontend) is True
        assert device.remove_frontend(frontend) is False
        assert device.first_frontend() is None

    def test_describe_includes_frontends(self, device):
        device.add_frontend(_frontend(device, 0))
        data = device.describe()

        assert data["title"] == device.title
        assert data["frontends"][0]["tuner"] == 0
        assert data["frontends"][0]["type"] == "DVB-C"


class TestTunerFrontend:

    def test_default_name(self, device):
        frontend = _frontend(device, 1, SignalType.TERRESTRIAL)
        assert frontend.name == "HDHomeRun DVB-T Tuner #1 (192.168.1.50)"

    @pytest.mark.parametrize("field", ["device_uuid", "tuner_index", "signal_type"])
    def test_identity_fields_are_fixed(self, device, field):
        frontend = _frontend(device, 0)
        with pytest.raises(AttributeError):
            setattr(frontend, field, getattr(frontend, field))

    def test_apply_settings(self, device):
        frontend = _frontend(device, 0)
        frontend.apply_settings({"enabled": "false", "priority": "5", "name": "Kitchen"})

        assert frontend.enabled is False
        assert frontend.priority == 5
        assert frontend.name == "Kitchen"

    def test_apply_settings_ignores_bad_priority(self, device):
        frontend = _frontend(device, 0)
        frontend.apply_settings({"priority": "high"})
        assert frontend.priority == 0

    def test_settings(self, device):
        frontend = _frontend(device, 0, priority=3)
        assert frontend.settings() == {
            "type": "DVB-C",
            "enabled": True,
            "priority": 3,
            "name": "HDHomeRun DVB-C Tuner #0 (192.168.1.50)",
        }

    def test_release_closes_session_once(self, device):
        session = FakeSession(0x1A2B3C4D, 0, 0)
        frontend = _frontend(device, 0, session=session)

        frontend.release()
        frontend.release()

        assert session.closed is True
        assert frontend.is_released
