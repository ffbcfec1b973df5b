import io
import json
from datetime import datetime, timezone

import pytest

from driftwatch.audit import AuditEntry, AuditError, AuditLogger, open_audit_log
from driftwatch.drift import Event, Report, Status


def make_report(events):
    return Report(events=list(events or []))


def parse_timestamp(text):
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def test_record_nil_report():
    buf = io.StringIO()
    AuditLogger(buf).record("svc", "main", None)
    assert buf.getvalue() == ""


def test_record_empty_report():
    buf = io.StringIO()
    AuditLogger(buf).record("svc", "main", make_report(None))
    assert buf.getvalue() == ""


def test_record_writes_one_line_per_event():
    buf = io.StringIO()
    report = make_report(
        [
            Event(path="/etc/app.conf", status=Status.MATCH),
            Event(path="/etc/db.conf", status=Status.DRIFTED, detail="hash mismatch"),
        ]
    )
    AuditLogger(buf).record("my-service", "v1.2.3", report)
    lines = buf.getvalue().strip().split("\n")
    assert len(lines) == 2
    assert [json.loads(line)["file_path"] for line in lines] == [
        "/etc/app.conf",
        "/etc/db.conf",
    ]


def test_record_entry_fields():
    buf = io.StringIO()
    report = make_report(
        [Event(path="/etc/app.conf", status=Status.DRIFTED, detail="hash mismatch")]
    )
    before = datetime.now(timezone.utc)
    AuditLogger(buf).record("my-service", "abc123", report)
    after = datetime.now(timezone.utc)

    entry = json.loads(buf.getvalue().strip())
    assert entry["service"] == "my-service"
    assert entry["ref"] == "abc123"
    assert entry["file_path"] == "/etc/app.conf"
    assert entry["status"] == "drifted"
    assert entry["details"] == "hash mismatch"
    assert before <= parse_timestamp(entry["timestamp"]) <= after


def test_empty_details_omitted():
    entry = AuditEntry(
        timestamp=datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc),
        service="svc",
        status="match",
        file_path="a.yaml",
        ref="main",
    )
    assert json.loads(entry.to_json()) == {
        "timestamp": "2024-06-01T12:00:00Z",
        "service": "svc",
        "status": "match",
        "file_path": "a.yaml",
        "ref": "main",
    }


def test_open_bad_path(tmp_path):
    with pytest.raises(AuditError):
        open_audit_log(tmp_path / "nonexistent-dir" / "audit.log")


def test_open_appends(tmp_path):
    path = tmp_path / "audit.log"
    report = make_report([Event(path="x.conf", status=Status.MISSING)])
    with open_audit_log(path) as logger:
        logger.record("svc", "r1", report)
    with open_audit_log(path) as logger:
        logger.record("svc", "r2", report)
    lines = path.read_text(encoding="utf-8").strip().split("\n")
    assert [json.loads(line)["ref"] for line in lines] == ["r1", "r2"]