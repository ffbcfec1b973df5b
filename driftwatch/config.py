"""Loading and validation of the daemon's YAML configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from os import PathLike
from typing import Any, Union

import yaml

DEFAULT_POLL_INTERVAL = timedelta(seconds=30)
DEFAULT_LOG_LEVEL = "info"

_CONFIG_FIELDS = {"poll_interval", "log_level", "services"}
_SERVICE_FIELDS = {"name", "declared_at", "endpoint"}

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class ConfigError(Exception):
    """Raised when a configuration file cannot be read, parsed or validated."""


@dataclass
class Service:
    """A service to watch for configuration drift."""

    name: str
    declared_at: str
    endpoint: str


@dataclass
class Config:
    """Top-level daemon configuration."""

    poll_interval: timedelta = DEFAULT_POLL_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL
    services: list[Service] = field(default_factory=list)


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "10s", "1m30s" or "1.5h"."""
    rest = text
    sign = 1.0
    if rest[:1] in ("+", "-"):
        sign = -1.0 if rest[0] == "-" else 1.0
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")
    total = 0.0
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()
    return timedelta(seconds=sign * total)


def _check_fields(data: dict, allowed: set[str], where: str) -> None:
    unknown = sorted(str(key) for key in data if key not in allowed)
    if unknown:
        raise ValueError(f"{where}: unknown field(s) {', '.join(unknown)}")


def _string(value: Any, where: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{where}: expected a string, got {value!r}")
    return value


def _decode(document: Any) -> Config:
    if document is None:
        raise ValueError("empty document")
    if not isinstance(document, dict):
        raise ValueError("top level must be a mapping")
    _check_fields(document, _CONFIG_FIELDS, "config")

    raw_interval = document.get("poll_interval")
    if raw_interval is None:
        poll_interval = timedelta(0)
    elif isinstance(raw_interval, str):
        poll_interval = parse_duration(raw_interval)
    else:
        raise ValueError(f"poll_interval: expected a duration string, got {raw_interval!r}")

    raw_services = document.get("services") or []
    if not isinstance(raw_services, list):
        raise ValueError("services: expected a list")
    services = []
    for index, item in enumerate(raw_services):
        where = f"services[{index}]"
        if not isinstance(item, dict):
            raise ValueError(f"{where}: expected a mapping")
        _check_fields(item, _SERVICE_FIELDS, where)
        services.append(
            Service(
                name=_string(item.get("name"), f"{where}.name"),
                declared_at=_string(item.get("declared_at"), f"{where}.declared_at"),
                endpoint=_string(item.get("endpoint"), f"{where}.endpoint"),
            )
        )

    return Config(
        poll_interval=poll_interval,
        log_level=_string(document.get("log_level"), "log_level"),
        services=services,
    )


def _validate(cfg: Config) -> None:
    if cfg.poll_interval <= timedelta(0):
        cfg.poll_interval = DEFAULT_POLL_INTERVAL
    if not cfg.log_level:
        cfg.log_level = DEFAULT_LOG_LEVEL
    if not cfg.services:
        raise ValueError("at least one service is required")
    for index, svc in enumerate(cfg.services):
        if not svc.name:
            raise ValueError(f"service[{index}]: name is required")
        if not svc.declared_at:
            raise ValueError(f"service {svc.name!r}: declared_at is required")
        if not svc.endpoint:
            raise ValueError(f"service {svc.name!r}: endpoint is required")


def load(path: Union[str, PathLike]) -> Config:
    """Read, parse and validate the YAML configuration file at path."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise ConfigError(f"config: open {str(path)!r}: {exc}") from exc

    try:
        cfg = _decode(yaml.safe_load(text))
    except (yaml.YAMLError, ValueError) as exc:
        raise ConfigError(f"config: decode {str(path)!r}: {exc}") from exc

    try:
        _validate(cfg)
    except ValueError as exc:
        raise ConfigError(f"config: validation failed: {exc}") from exc
    return cfg