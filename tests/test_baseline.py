import io
import json
from wsgiref.util import setup_testing_defaults

import pytest

from driftwatch.baseline import (
    BaselineEntry,
    BaselineError,
    BaselineStore,
    baseline_app,
)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "baseline.json"


@pytest.fixture
def store(store_path):
    return BaselineStore(store_path)


def call(app, method, path, body=b""):
    environ = {}
    setup_testing_defaults(environ)
    environ["REQUEST_METHOD"] = method
    environ["PATH_INFO"] = path
    environ["CONTENT_LENGTH"] = str(len(body))
    environ["wsgi.input"] = io.BytesIO(body)
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = int(status.split()[0])
        captured["headers"] = dict(headers)

    out = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], out


def test_pin_and_get(store):
    store.pin(BaselineEntry(service="api", ref="abc123", files={"config.yaml": "deadbeef"}))
    got = store.get("api")
    assert got is not None
    assert got.ref == "abc123"
    assert got.pinned_at is not None
    assert got.files == {"config.yaml": "deadbeef"}


def test_get_missing(store):
    assert store.get("nonexistent") is None


def test_remove_deletes_entry(store):
    store.pin(BaselineEntry(service="svc", ref="r1"))
    store.remove("svc")
    assert store.get("svc") is None


def test_persistence_reload_from_disk(store_path):
    first = BaselineStore(store_path)
    first.pin(BaselineEntry(service="worker", ref="v2", files={"app.conf": "cafebabe"}))
    second = BaselineStore(store_path)
    got = second.get("worker")
    assert got is not None
    assert got.files["app.conf"] == "cafebabe"
    assert got.ref == "v2"


def test_new_missing_file_is_ok(tmp_path):
    store = BaselineStore(tmp_path / "does-not-exist.json")
    assert store.get("anything") is None


def test_new_corrupt_file_raises(store_path):
    store_path.write_text("not json{")
    with pytest.raises(BaselineError):
        BaselineStore(store_path)


def test_pin_into_missing_directory_raises(tmp_path):
    store = BaselineStore(tmp_path / "absent" / "baseline.json")
    with pytest.raises(BaselineError):
        store.pin(BaselineEntry(service="svc", ref="r"))


def test_get_returns_copy(store):
    store.pin(BaselineEntry(service="svc", ref="r", files={"a": "1"}))
    got = store.get("svc")
    got.files["a"] = "changed"
    assert store.get("svc").files == {"a": "1"}


def test_entry_dict_round_trip():
    entry = BaselineEntry(service="svc", ref="main", files={"x.yaml": "abc"})
    data = entry.to_dict()
    assert data["pinned_at"] == "0001-01-01T00:00:00Z"
    assert BaselineEntry.from_dict(data) == entry


def test_entry_from_dict_rejects_non_object():
    with pytest.raises(ValueError):
        BaselineEntry.from_dict(["not", "an", "object"])


def test_http_get_missing_returns_404(store):
    status, _, _ = call(baseline_app(store), "GET", "/baseline/api")
    assert status == 404


def test_http_post_and_get_round_trip(store):
    app = baseline_app(store)
    body = json.dumps(BaselineEntry(ref="sha999", files={"svc.yaml": "aabbcc"}).to_dict())
    status, _, _ = call(app, "POST", "/baseline/mysvc", body.encode())
    assert status == 201

    status, headers, out = call(app, "GET", "/baseline/mysvc")
    assert status == 200
    assert headers["Content-Type"] == "application/json"
    got = json.loads(out)
    assert got["ref"] == "sha999"
    assert got["service"] == "mysvc"
    assert got["files"] == {"svc.yaml": "aabbcc"}


def test_http_post_invalid_json_returns_400(store):
    status, _, out = call(baseline_app(store), "POST", "/baseline/svc", b"{not json")
    assert status == 400
    assert out == b"invalid JSON\n"


def test_http_delete_removes(store):
    store.pin(BaselineEntry(service="del-svc", ref="r"))
    status, _, _ = call(baseline_app(store), "DELETE", "/baseline/del-svc")
    assert status == 204
    assert store.get("del-svc") is None


def test_http_missing_service_name_returns_400(store):
    status, _, _ = call(baseline_app(store), "GET", "/baseline/")
    assert status == 400


def test_http_method_not_allowed(store):
    status, _, _ = call(baseline_app(store), "PATCH", "/baseline/svc")
    assert status == 405