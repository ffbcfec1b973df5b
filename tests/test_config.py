from datetime import timedelta

import pytest

from driftwatch.config import ConfigError, Service, load, parse_duration


@pytest.fixture
def write_config(tmp_path):
    def _write(content):
        path = tmp_path / "driftwatch.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


def test_load_valid_config(write_config):
    path = write_config(
        """
poll_interval: 10s
log_level: debug
services:
  - name: auth-service
    declared_at: ./configs/auth.yaml
    endpoint: http://localhost:8081/config
"""
    )
    cfg = load(path)
    assert cfg.poll_interval == timedelta(seconds=10)
    assert cfg.log_level == "debug"
    assert cfg.services == [
        Service("auth-service", "./configs/auth.yaml", "http://localhost:8081/config")
    ]


def test_load_defaults_applied(write_config):
    path = write_config(
        """
services:
  - name: svc
    declared_at: ./cfg.yaml
    endpoint: http://localhost:9000/config
"""
    )
    cfg = load(path)
    assert cfg.poll_interval == timedelta(seconds=30)
    assert cfg.log_level == "info"


def test_load_missing_service_name(write_config):
    path = write_config(
        """
services:
  - declared_at: ./cfg.yaml
    endpoint: http://localhost:9000/config
"""
    )
    with pytest.raises(ConfigError, match="name is required"):
        load(path)


def test_load_missing_endpoint(write_config):
    path = write_config(
        """
services:
  - name: svc
    declared_at: ./cfg.yaml
"""
    )
    with pytest.raises(ConfigError, match="endpoint is required"):
        load(path)


def test_load_file_not_found():
    with pytest.raises(ConfigError):
        load("/nonexistent/path/config.yaml")


def test_load_empty_services_list(write_config):
    path = write_config(
        """
poll_interval: 5s
services: []
"""
    )
    with pytest.raises(ConfigError):
        load(path)


def test_load_unknown_field_rejected(write_config):
    path = write_config(
        """
unexpected: true
services:
  - name: svc
    declared_at: ./cfg.yaml
    endpoint: http://localhost:9000/config
"""
    )
    with pytest.raises(ConfigError, match="unexpected"):
        load(path)


def test_load_bad_duration(write_config):
    path = write_config(
        """
poll_interval: soon
services:
  - name: svc
    declared_at: ./cfg.yaml
    endpoint: http://localhost:9000/config
"""
    )
    with pytest.raises(ConfigError):
        load(path)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("10s", timedelta(seconds=10)),
        ("1m30s", timedelta(seconds=90)),
        ("1.5h", timedelta(minutes=90)),
        ("300ms", timedelta(milliseconds=300)),
        ("0", timedelta(0)),
        ("-2s", timedelta(seconds=-2)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "abc", "10", "5x", "-"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)