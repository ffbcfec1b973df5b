# driftwatch

driftwatch finds configuration drift: files whose live content no longer
matches the content declared for them. It is a library of small building
blocks, most of them thread-safe, that a daemon or a check script can put
together:

- `driftwatch.drift`: compare declared and live content (`Detector`) and
  collect the outcome in a `Report`
- `driftwatch.fingerprint`: algorithm-prefixed content fingerprints
  (`sha256:<hex>`)
- `driftwatch.redact`: mask secrets in `key: value` text before it is logged
- `driftwatch.labelfilter`: choose services by `key=value` label selectors
- `driftwatch.config`: load and validate the YAML configuration
- `driftwatch.alerting`, `driftwatch.notify`, `driftwatch.audit`,
  `driftwatch.changelog`: alert on, announce, log and keep a history of
  drift
- `driftwatch.ratelimit`, `driftwatch.debounce`, `driftwatch.throttle`,
  `driftwatch.circuitbreaker`, `driftwatch.suppress`: hold back alert storms
  and mute known exceptions
- `driftwatch.rollup`, `driftwatch.metrics`: rolling and cumulative counts
- `driftwatch.baseline`, `driftwatch.snapshot`: keep known-good state on disk
  as JSON
- `driftwatch.statuspage`, `driftwatch.healthz`, `driftwatch.policycheck`,
  `driftwatch.diffrender`, plus the HTTP views in `baseline`, `changelog`
  and `suppress`: WSGI applications for dashboards and probes
- `driftwatch.scheduler`, `driftwatch.retrypolicy`, `driftwatch.watcher`:
  run a callback on a fixed interval, retry with exponential back-off, and
  read live files from disk

## Detecting drift

```python
from driftwatch.drift import Detector

detector = Detector()
declared = {"app.yaml": "replicas: 3\n", "db.yaml": "pool: 10\n"}
live = {"app.yaml": "replicas: 5\n"}

for result in detector.compare_all(declared, live):
    print(result)
```

`db.yaml` is reported as missing because it has no live content, and
`app.yaml` as drifted. Trailing newlines are ignored when content is
compared. Each `Result` carries the SHA-256 hex digests of both sides.

A `Report` holds two lists. `results` (from `Detector`) feed
`Report.summary()`, `Report.write_to()` and `Notifier.notify()`. `events`
(`drift.Event`, with a service name, path, status, expected and actual
text, and a detail) feed `Alerter`, `AuditLogger`, `Changelog`, `Renderer`,
`Checker` and `RollupWindow`. `Report.has_drift()` and `StatusPage` look at
both.

## Reading live files

```python
from driftwatch.watcher import Watcher, to_live_content, missing_paths

watcher = Watcher(["/etc/myservice", "/opt/myservice"])
states = watcher.read_all(["app.yaml", "db.yaml"])
live = to_live_content(states)     # bytes of every file that was found
absent = missing_paths(states)     # relative paths found in no base directory
```

Base directories are searched in order and the first match wins.

## Fingerprints

```python
from driftwatch import fingerprint

stored = fingerprint.compute("key: value")
text = str(stored)                        # "sha256:..."
assert fingerprint.parse(text) == stored
assert fingerprint.changed(stored, "key: other")
```

Whitespace at both ends of the content is trimmed before hashing. `parse`
raises `ValueError` for text without a colon or with an unknown algorithm.

## Selecting services by label

```python
from driftwatch.labelfilter import LabelFilter

selector = LabelFilter(["env=prod", "team=platform"])
selector.matches({"env": "prod", "team": "platform", "region": "eu"})  # True
selector.match_all({
    "svc-a": {"env": "prod", "team": "platform"},
    "svc-b": {"env": "staging"},
})                                                                      # ["svc-a"]
```

A malformed selector raises `ValueError`. A filter with no selectors matches
every service, and `str()` of it is `<match-all>`.

## Redacting secrets

```python
from driftwatch.redact import Redactor

redactor = Redactor(["password", "token"])
print(redactor.apply("user: admin\npassword: secret"))
# user: admin
# password: [REDACTED]
```

With no patterns, `Redactor()` uses `DEFAULT_PATTERNS` (password, secret,
token, api_key, apikey, private_key, credentials). Keys match by
case-insensitive substring.

## Alerting on repeated drift

```python
from driftwatch.alerting import Alerter

def page(service: str, count: int) -> None:
    print(f"{service} has drifted {count} checks in a row")

alerter = Alerter(3, page)
alerter.evaluate(report)   # call after every check cycle
```

The callback fires on every drifted cycle once the count reaches the
threshold. A matching event for a service resets its count to zero.

## Configuration

```yaml
poll_interval: 10s
log_level: debug
services:
  - name: auth-service
    declared_at: ./configs/auth.yaml
    endpoint: http://localhost:8081/config
```

```python
from driftwatch.config import load

config = load("driftwatch.yaml")
```

`load` raises `ConfigError` when the file cannot be read or parsed, has
unknown keys, lists no services, or lists a service without a `name`,
`declared_at` or `endpoint`. `poll_interval` defaults to 30 seconds and
`log_level` to `info`. Durations are read by `parse_duration`, which takes
forms such as `10s`, `1m30s` and `1.5h`.

## HTTP endpoints

Each HTTP view is a plain WSGI application and can be served by any WSGI
server, for instance the standard library's:

```python
from wsgiref.simple_server import make_server
from driftwatch.healthz import Health

health = Health()
make_server("localhost", 8080, health).serve_forever()
```

- `Health`: 503 until `record_check()` is first called, then 200, with a
  JSON body.
- `StatusPage`: JSON list of service statuses; 200 when all are clean, 409
  when any has drifted.
- `diff_app(get_report)`: text diff; 204 without a report, 200 without
  drift, 409 with drift; ANSI colour when `Accept` contains `text/x-ansi`.
- `policy_app(checker, store)`: 204 when every policy passes, 409 with the
  violations as JSON otherwise.
- `baseline_app(store)`: GET, POST and DELETE on `/baseline/{service}`.
- `changelog_app(log)`: GET lists the history, DELETE clears it.
- `suppress_app(store)`: POST adds a suppression, GET lists active ones, at
  `/suppress`.

`healthz.register` and `statuspage.register` only put the application into a
dictionary under `/healthz` or `/statuspage`; dispatching requests by path
is left to the caller.

## What the package does not do

driftwatch has no command-line program and no daemon of its own: it does
not read declared content from a git repository, does not fetch live
configuration from service endpoints, and does not wire the pieces above
into a running check loop. `Scheduler` runs whatever callback it is given
until a `threading.Event` is set, and the HTTP views need a WSGI server and
a router supplied by the application that uses them.

## Running the tests

Install the `test` extra and run `pytest` from the project root.