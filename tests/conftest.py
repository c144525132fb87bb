import sys
from pathlib import Path

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from config.settings import SimulationConfig
from core.device_registry import DeviceRegistry
from core.models import Device, DeviceKind
from core.storage import MemoryStore
from orchestration.engine import SimulationEngine
from orchestration.scheduler import ManualClock

DELAY_MS = 2000


def make_devices():
    return [
        Device(id="relay", name="Hub", ip="192.168.1.1",
               mac="FF:FF:FF:FF:FF:FF", kind=DeviceKind.RELAY),
        Device(id="e1", name="Alpha", ip="192.168.1.10", mac="00:1A:2B:3C:4D:5E"),
        Device(id="e2", name="Beta", ip="192.168.1.20", mac="AA:BB:CC:DD:EE:FF"),
        Device(id="e3", name="Gamma", ip="0.0.0.0", mac="11:22:33:44:55:66"),
    ]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(store):
    registry = DeviceRegistry(store=store)
    registry.replace_all(make_devices())
    return registry


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def engine(registry, clock):
    return SimulationEngine(
        registry=registry,
        backend=clock,
        config=SimulationConfig(phase_delay_ms=DELAY_MS)
    )
