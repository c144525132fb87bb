from core.address_cache import AddressCache


def test_upsert_replaces_existing_entry():
    cache = AddressCache()
    cache.upsert("192.168.1.20", "AA:BB:CC:DD:EE:FF", "Beta")
    cache.upsert("192.168.1.20", "11:11:11:11:11:11")

    assert len(cache) == 1
    entry = cache.get("192.168.1.20")
    assert entry.hardware_id == "11:11:11:11:11:11"
    assert entry.display_name is None


def test_entries_are_in_last_write_order():
    cache = AddressCache()
    cache.upsert("10.0.0.1", "00:00:00:00:00:01")
    cache.upsert("10.0.0.2", "00:00:00:00:00:02")
    cache.upsert("10.0.0.1", "00:00:00:00:00:03")

    assert [e.address for e in cache.entries()] == ["10.0.0.2", "10.0.0.1"]
    assert cache.as_mapping() == {
        "10.0.0.2": "00:00:00:00:00:02",
        "10.0.0.1": "00:00:00:00:00:03",
    }


def test_clear_and_membership():
    cache = AddressCache()
    cache.upsert("10.0.0.1", "00:00:00:00:00:01")
    assert "10.0.0.1" in cache
    assert cache.get("10.0.0.9") is None

    cache.clear()
    assert len(cache) == 0
    assert "10.0.0.1" not in cache


def test_entry_to_dict():
    entry = AddressCache().upsert("10.0.0.1", "00:00:00:00:00:01", "Alpha")
    data = entry.to_dict()
    assert data["address"] == "10.0.0.1"
    assert data["hardware_id"] == "00:00:00:00:00:01"
    assert data["display_name"] == "Alpha"
    assert isinstance(data["last_updated"], str)
