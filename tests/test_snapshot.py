import json
import time
from datetime import datetime, timezone

import pytest

from driftwatch.snapshot import Snapshot, SnapshotError, load_snapshot


def test_new_snapshot():
    before = datetime.now(timezone.utc)
    snap = Snapshot("svc-a")
    after = datetime.now(timezone.utc)
    assert snap.service_name == "svc-a"
    assert snap.entries == {}
    assert before <= snap.created_at <= after


def test_set_and_get():
    snap = Snapshot("svc-b")
    before = datetime.now(timezone.utc)
    snap.set("config/app.yaml", "abc123", "main")
    entry = snap.get("config/app.yaml")
    assert entry is not None
    assert entry.path == "config/app.yaml"
    assert entry.digest == "abc123"
    assert entry.ref == "main"
    assert entry.recorded_at >= before


def test_get_missing():
    assert Snapshot("svc-c").get("nonexistent.yaml") is None


def test_save_and_load(tmp_path):
    snap = Snapshot("svc-save")
    snap.set("deploy/k8s.yaml", "deadbeef", "v1.2.3")
    snap.save(tmp_path)

    assert (tmp_path / "svc-save.snapshot.json").is_file()

    loaded = load_snapshot(tmp_path, "svc-save")
    assert loaded is not None
    assert loaded.service_name == "svc-save"
    entry = loaded.get("deploy/k8s.yaml")
    assert entry is not None
    assert entry.digest == "deadbeef"
    assert entry == snap.get("deploy/k8s.yaml")
    assert loaded.created_at == snap.created_at


def test_save_creates_directory(tmp_path):
    target = tmp_path / "nested" / "dir"
    Snapshot("svc").save(target)
    assert (target / "svc.snapshot.json").is_file()


def test_saved_file_layout(tmp_path):
    snap = Snapshot("svc-json")
    snap.set("a.yaml", "h1", "main")
    snap.save(tmp_path)
    text = (tmp_path / "svc-json.snapshot.json").read_text(encoding="utf-8")
    data = json.loads(text)
    assert list(data) == ["service_name", "entries", "created_at"]
    assert list(data["entries"]["a.yaml"]) == ["path", "hash", "ref", "recorded_at"]
    assert data["entries"]["a.yaml"]["hash"] == "h1"
    assert text.startswith('{\n  "service_name"')
    assert text.endswith("}\n")


def test_load_no_file(tmp_path):
    assert load_snapshot(tmp_path, "nonexistent-svc") is None


def test_load_corrupt_file(tmp_path):
    (tmp_path / "bad.snapshot.json").write_text("not json{", encoding="utf-8")
    with pytest.raises(SnapshotError):
        load_snapshot(tmp_path, "bad")


def test_load_accepts_nanosecond_timestamps(tmp_path):
    (tmp_path / "go.snapshot.json").write_text(
        json.dumps(
            {
                "service_name": "go",
                "entries": {
                    "f.yaml": {
                        "path": "f.yaml",
                        "hash": "h",
                        "ref": "r",
                        "recorded_at": "2024-06-01T12:00:00.123456789Z",
                    }
                },
                "created_at": "2024-06-01T12:00:00Z",
            }
        ),
        encoding="utf-8",
    )
    loaded = load_snapshot(tmp_path, "go")
    assert loaded.created_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert loaded.get("f.yaml").recorded_at == datetime(
        2024, 6, 1, 12, 0, 0, 123456, tzinfo=timezone.utc
    )


def test_set_overwrite():
    snap = Snapshot("svc-ow")
    snap.set("file.yaml", "hash1", "ref1")
    time.sleep(0.001)
    snap.set("file.yaml", "hash2", "ref2")
    entry = snap.get("file.yaml")
    assert entry.digest == "hash2"
    assert entry.ref == "ref2"
    assert len(snap.entries) == 1