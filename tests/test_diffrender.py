import io
from wsgiref.util import setup_testing_defaults

from driftwatch.diffrender import Renderer, diff_app
from driftwatch.drift import Event, Report, Status


def make_event(service, path, status, expected="", actual=""):
    return Event(service=service, path=path, status=status, expected=expected, actual=actual)


def render(report, colours=False):
    buf = io.StringIO()
    Renderer(buf, colours).render(report)
    return buf.getvalue()


def call(app, accept=None):
    environ = {}
    setup_testing_defaults(environ)
    environ["REQUEST_METHOD"] = "GET"
    environ["PATH_INFO"] = "/diff"
    if accept is not None:
        environ["HTTP_ACCEPT"] = accept
    captured = {}

    def start_response(status, headers, exc_info=None):
        captured["status"] = int(status.split()[0])
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response)).decode("utf-8")
    return captured["status"], captured["headers"], body


def test_render_nil_report():
    assert render(None) == ""


def test_render_match_event():
    out = render(Report(events=[make_event("svc", "/etc/app.conf", Status.MATCH)]))
    assert out == "--- /etc/app.conf [svc]\n    (no drift)\n"


def test_render_missing_event():
    out = render(Report(events=[make_event("svc", "/etc/app.conf", Status.MISSING)]))
    assert "missing from live system" in out
    assert out.split("\n")[1].startswith("- ")


def test_render_drifted_event():
    out = render(
        Report(
            events=[
                make_event("svc", "/etc/app.conf", Status.DRIFTED, "expected-value", "actual-value")
            ]
        )
    )
    assert "- expected-value" in out
    assert "+ actual-value" in out


def test_render_colours_enabled():
    out = render(Report(events=[make_event("svc", "/etc/app.conf", Status.MISSING)]), colours=True)
    assert "\033[31m- (file missing from live system)\033[0m" in out


def test_render_multiline_content():
    out = render(
        Report(
            events=[
                make_event("svc", "/etc/hosts", Status.DRIFTED, "line1\nline2", "lineA\nlineB")
            ]
        )
    )
    for want in ["- line1", "- line2", "+ lineA", "+ lineB"]:
        assert want in out


def test_render_trailing_newline_trimmed():
    out = render(Report(events=[make_event("svc", "f", Status.DRIFTED, "a\n", "b\n")]))
    assert out == "--- f [svc]\n- a\n+ b\n"


def test_http_nil_report_no_content():
    status, _, body = call(diff_app(lambda: None))
    assert status == 204
    assert body == ""


def test_http_no_drift_returns_200():
    report = Report(events=[make_event("svc", "/etc/app.conf", Status.MATCH)])
    status, headers, _ = call(diff_app(lambda: report))
    assert status == 200
    assert headers["Content-Type"].startswith("text/plain")


def test_http_with_drift_returns_409():
    report = Report(events=[make_event("svc", "/etc/app.conf", Status.DRIFTED, "want", "got")])
    status, _, body = call(diff_app(lambda: report))
    assert status == 409
    assert "- want" in body
    assert "+ got" in body


def test_http_ansi_accept_enables_colours():
    report = Report(events=[make_event("svc", "/etc/app.conf", Status.MISSING)])
    _, _, body = call(diff_app(lambda: report), accept="text/x-ansi")
    assert "\033[" in body


def test_http_plain_accept_has_no_colours():
    report = Report(events=[make_event("svc", "/etc/app.conf", Status.MISSING)])
    _, _, body = call(diff_app(lambda: report), accept="text/plain")
    assert "\033[" not in body