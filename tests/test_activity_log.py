import csv
import json

from core.activity_log import ActivityKind, ActivityRecorder


def fill(recorder, count):
    for i in range(count):
        recorder.record(ActivityKind.ARP_REQUEST, f"message {i}", source_ip="10.0.0.1")


def test_recent_is_newest_first_and_bounded():
    recorder = ActivityRecorder(view_size=10)
    fill(recorder, 12)

    recent = recorder.recent()
    assert len(recent) == 10
    assert recent[0].message == "message 11"
    assert recent[-1].message == "message 2"
    assert len(recorder) == 12
    assert [e.message for e in recorder.recent(3)] == ["message 11", "message 10", "message 9"]
    assert recorder.recent(0) == []


def test_ids_are_unique_and_survive_clear():
    recorder = ActivityRecorder()
    first = recorder.record(ActivityKind.CACHE_UPDATE, "a")
    recorder.clear()
    second = recorder.record(ActivityKind.CACHE_UPDATE, "b")

    assert first.id != second.id
    assert recorder.entries() == [second]
    assert recorder.latest() is second


def test_record_keeps_addresses():
    recorder = ActivityRecorder()
    entry = recorder.record(
        ActivityKind.RARP_REPLY, "assigned",
        source_ip="192.168.1.1", source_mac="FF:FF:FF:FF:FF:FF",
        target_ip="192.168.1.100", target_mac="11:22:33:44:55:66"
    )
    assert entry.kind is ActivityKind.RARP_REPLY
    assert entry.target_ip == "192.168.1.100"
    assert entry.to_dict()["kind"] == "RARP_REPLY"


def test_export_json(tmp_path):
    recorder = ActivityRecorder()
    fill(recorder, 3)
    path = tmp_path / "activity.json"
    recorder.export_json(str(path))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert [row["message"] for row in data] == ["message 0", "message 1", "message 2"]
    assert data[0]["kind"] == "ARP_REQUEST"


def test_export_csv(tmp_path):
    recorder = ActivityRecorder()
    fill(recorder, 2)
    path = tmp_path / "activity.csv"
    recorder.export_csv(str(path))

    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 2
    assert rows[1]["message"] == "message 1"
    assert rows[0]["source_ip"] == "10.0.0.1"
