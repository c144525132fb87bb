import csv
import json

import demo


def test_list_devices(tmp_path, capsys):
    store = tmp_path / "store.json"
    assert demo.main(["--fast", "--store", str(store), "--list-devices", "-q"]) == 0
    out = capsys.readouterr().out
    assert "Alpha Terminal" in out
    assert "device-hub" in out


def test_runs_both_modes_and_exports_log(tmp_path, capsys):
    store = tmp_path / "store.json"
    log = tmp_path / "activity.csv"

    code = demo.main([
        "--fast", "--store", str(store), "--mode", "both",
        "--no-frames", "-q", "--export-log", str(log)
    ])
    assert code == 0

    out = capsys.readouterr().out
    assert "ARP simulation complete" in out
    assert "RARP simulation complete" in out

    with open(log, newline="", encoding="utf-8") as f:
        kinds = [row["kind"] for row in csv.DictReader(f)]
    assert kinds == [
        "ARP_REQUEST", "ARP_REPLY", "CACHE_UPDATE",
        "RARP_REQUEST", "RARP_REPLY", "DEVICE_UPDATE",
    ]

    stored = json.loads(json.loads(store.read_text(encoding="utf-8"))["arp-rarp-devices"])
    device_1 = next(d for d in stored if d["id"] == "device-1")
    assert device_1["ip"] == "192.168.1.100"


def test_unknown_device_fails(tmp_path, capsys):
    store = tmp_path / "store.json"
    assert demo.main(["--fast", "--store", str(store), "--device", "nope", "-q"]) == 1


def test_invalid_config_fails(tmp_path, capsys):
    config = tmp_path / "sim.yaml"
    config.write_text("activity_view_size: 0\n", encoding="utf-8")
    assert demo.main(["--fast", "--config", str(config), "--store", str(tmp_path / "s.json")]) == 1
