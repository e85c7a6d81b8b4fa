"""Shared pytest configuration and fixtures for the tvh-hdhomerun test suite."""

import ipaddress
import sys
from pathlib import Path
from typing import Optional

import pytest

# Ensure the project root is in the path for imports
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from tvh_hdhomerun.core.devices import DeviceContext, DiscoveredTuner, DEVICE_TYPE_TUNER
from tvh_hdhomerun.core.settings_store import JSONSettingsStore


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "hardware: mark test as requiring an HDHomeRun on the network"
    )


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--run-hardware",
        action="store_true",
        default=False,
        help="Run tests that require physical hardware",
    )


def pytest_collection_modifyitems(config, items):
    """Skip hardware tests unless --run-hardware is specified."""
    if config.getoption("--run-hardware"):
        return

    skip_hardware = pytest.mark.skip(reason="Need --run-hardware option to run")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip_hardware)


# =============================================================================
# Fakes
# =============================================================================

def make_tuner(
    device_id: int,
    ip: str = "192.168.1.50",
    tuner_count: int = 2,
    device_type: int = DEVICE_TYPE_TUNER,
) -> DiscoveredTuner:
    """Build a discovery record the way the UDP transport would."""
    return DiscoveredTuner(
        device_id=device_id,
        ip_addr=int(ipaddress.IPv4Address(ip)),
        device_type=device_type,
        tuner_count=tuner_count,
    )


class FakeTransport:
    """Discovery transport returning a fixed list of records."""

    def __init__(self, records=None):
        self.records = list(records or [])
        self.error: Optional[Exception] = None
        self.calls = []
        self.closed = False

    def discover(self, device_type, device_id, max_results):
        self.calls.append((device_type, device_id, max_results))
        if self.error is not None:
            raise self.error
        return list(self.records)

    def close(self):
        self.closed = True


class FakeSession:
    """Tuner session that records whether it was closed."""

    def __init__(self, device_id, ip_addr, tuner_index, model=None, model_error=None):
        self.device_id = device_id
        self.ip_addr = ip_addr
        self.tuner_index = tuner_index
        self.model = model
        self.model_error = model_error
        self.closed = False

    def model_string(self):
        if self.model_error is not None:
            raise self.model_error
        return self.model

    def close(self):
        self.closed = True


class FakeSessionFactory:
    """
    Session factory with per-device models and injectable failures.

    ``failing_tuners`` holds tuner indexes whose session cannot be opened;
    ``model_errors`` holds device ids whose model query raises.
    """

    def __init__(self, model: Optional[str] = "hdhomerun4_dvbc"):
        self.model = model
        self.models: dict[int, Optional[str]] = {}
        self.failing_tuners: set[int] = set()
        self.model_errors: set[int] = set()
        self.sessions: list[FakeSession] = []

    def __call__(self, device_id, ip_addr, tuner_index):
        if tuner_index in self.failing_tuners:
            raise OSError(f"tuner {tuner_index} unavailable")
        session = FakeSession(
            device_id,
            ip_addr,
            tuner_index,
            model=self.models.get(device_id, self.model),
            model_error=OSError("no route to host") if device_id in self.model_errors else None,
        )
        self.sessions.append(session)
        return session


class RecordingStore(JSONSettingsStore):
    """JSON settings store that remembers which keys were saved."""

    def __init__(self, root: Path):
        super().__init__(root)
        self.saved: list[str] = []

    async def save(self, key, record):
        self.saved.append(key)
        return await super().save(key, record)


# =============================================================================
# Shared Fixtures
# =============================================================================

@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def store(tmp_path) -> RecordingStore:
    return RecordingStore(tmp_path / "settings")


@pytest.fixture
def context(store, transport, session_factory) -> DeviceContext:
    """A running device context wired to the fakes."""
    ctx = DeviceContext(store=store, transport=transport, session_factory=session_factory)
    ctx.enter_running_phase()
    return ctx
