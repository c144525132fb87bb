import json
import random

import pytest

from core.device_registry import DeviceRegistry, default_devices
from core.errors import InvalidDeviceData
from core.models import Device, DeviceKind
from core.storage import JSONFileStore, KeyValueStore, MemoryStore
from tests.conftest import make_devices

KEY = "arp-rarp-devices"


class FailingStore(KeyValueStore):
    def get(self, key):
        return None

    def set(self, key, value):
        raise OSError("disk full")


@pytest.mark.parametrize("stored", [None, "", "not json", "[]", "{}", '[{"id": "x"}]'])
def test_unusable_store_falls_back_to_defaults(stored):
    store = MemoryStore({} if stored is None else {KEY: stored})
    registry = DeviceRegistry(store=store)
    assert [d.id for d in registry] == [d.id for d in default_devices()]


def test_duplicate_ids_in_store_fall_back_to_defaults():
    record = [make_devices()[1].to_dict(), make_devices()[1].to_dict()]
    registry = DeviceRegistry(store=MemoryStore({KEY: json.dumps(record)}))
    assert len(registry) == len(default_devices())


def test_default_topology_shape():
    devices = default_devices()
    assert len({d.id for d in devices}) == len(devices)
    assert devices[1].id == "device-hub"
    assert sum(1 for d in devices if d.is_relay) == 2


def test_loads_legacy_records():
    record = [{
        "id": "pc", "name": "PC", "ip": "10.0.0.2", "mac": "00:11:22:33:44:55",
        "x": 1, "y": 2, "isOnline": False, "type": "computer"
    }, {
        "id": "hub", "name": "Hub", "ip": "10.0.0.1", "mac": "FF:FF:FF:FF:FF:FF",
        "type": "hub"
    }]
    registry = DeviceRegistry(store=MemoryStore({KEY: json.dumps(record)}))

    pc = registry.get("pc")
    assert pc.kind is DeviceKind.ENDPOINT
    assert pc.is_online is False
    assert registry.relay().id == "hub"


def test_mutations_are_persisted(store):
    registry = DeviceRegistry(store=store)
    registry.replace_all(make_devices())
    assert registry.update_address("e3", "192.168.1.100")

    reloaded = DeviceRegistry(store=store)
    assert [d.id for d in reloaded] == ["relay", "e1", "e2", "e3"]
    assert reloaded.get("e3").ip == "192.168.1.100"


def test_json_file_store_round_trip(tmp_path):
    path = tmp_path / "nested" / "store.json"
    registry = DeviceRegistry(store=JSONFileStore(str(path)))
    registry.replace_all(make_devices())

    reloaded = DeviceRegistry(store=JSONFileStore(str(path)))
    assert reloaded.find_by_mac("aa:bb:cc:dd:ee:ff").id == "e2"
    assert not (tmp_path / "nested" / "store.json.tmp").exists()


def test_corrupt_store_file_is_replaced(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")

    registry = DeviceRegistry(store=JSONFileStore(str(path)))
    assert len(registry) == len(default_devices())

    registry.replace_all(make_devices())
    assert len(DeviceRegistry(store=JSONFileStore(str(path)))) == 4


def test_write_failure_is_not_raised():
    registry = DeviceRegistry(store=FailingStore())
    registry.replace_all(make_devices())
    assert registry.update_address("e1", "192.168.1.11")
    assert registry.get("e1").ip == "192.168.1.11"


def test_replace_all_rejects_invalid_data(registry):
    bad = make_devices() + [Device(id="e1", name="dup", ip="10.0.0.1", mac="00:00:00:00:00:01")]
    with pytest.raises(InvalidDeviceData):
        registry.replace_all(bad)
    with pytest.raises(InvalidDeviceData):
        registry.replace_all([Device(id="x", name="x", ip="300.1.1.1", mac="00:00:00:00:00:01")])
    assert [d.id for d in registry] == ["relay", "e1", "e2", "e3"]


def test_update_address(registry):
    assert not registry.update_address("missing", "192.168.1.99")
    with pytest.raises(InvalidDeviceData):
        registry.update_address("e1", "nope")
    assert registry.get("e1").ip == "192.168.1.10"


def test_randomize_builds_unique_topology(store):
    registry = DeviceRegistry(store=store, random_size=6, rng=random.Random(3))
    devices = registry.randomize()

    assert devices[0].id == "device-hub"
    assert [d.id for d in devices[1:]] == [f"device-{i}" for i in range(1, 7)]
    assert len({d.ip for d in devices}) == 7
    assert len({d.mac for d in devices}) == 7
    assert all(not d.is_relay for d in devices[1:])
    assert [d.id for d in DeviceRegistry(store=store)] == [d.id for d in devices]


def test_lookups(registry):
    assert "e2" in registry
    assert "nope" not in registry
    assert registry.find_by_ip("192.168.1.20").id == "e2"
    assert registry.find_by_ip("10.9.9.9") is None
    assert registry.find_by_mac("aa-bb-cc-dd-ee-ff").id == "e2"
    assert registry.find_by_mac("00:00:00:00:00:99") is None
    assert registry.ips() == ["192.168.1.1", "192.168.1.10", "192.168.1.20", "0.0.0.0"]
