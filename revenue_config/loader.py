"""
Configuration Loader (``revenue_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``revenue_config.schema`` dataclasses.  The single public entry point for
runtime config is ``revenue_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Invalid values raise ``ConfigurationError``; no silent fallbacks for
  values that are present but wrong.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid value  -> ``ConfigurationError``.
"""

from __future__ import annotations

import decimal
import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from revenue_config.schema import (
    AggregationPolicy,
    LoggingPolicy,
    ReportingPolicy,
    RevenueConfig,
    RoundingPolicy,
)
from revenue_kernel.exceptions import ConfigurationError

_ROUNDING_MODES = frozenset(
    name for name in dir(decimal) if name.startswith("ROUND_")
)
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError("top level must be a mapping", str(path))
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _section(data: dict[str, Any], key: str, path: str | None) -> dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"'{key}' must be a mapping", path)
    return section


def _int(value: Any, name: str, path: str | None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}", path)
    return value


def parse_rounding(data: dict[str, Any], path: str | None = None) -> RoundingPolicy:
    places = _int(data.get("decimal_places", 2), "rounding.decimal_places", path)
    if places < 0:
        raise ConfigurationError("rounding.decimal_places cannot be negative", path)
    mode = str(data.get("mode", decimal.ROUND_HALF_UP)).upper()
    if mode not in _ROUNDING_MODES:
        raise ConfigurationError(f"unknown rounding mode {mode!r}", path)
    return RoundingPolicy(decimal_places=places, mode=mode)


def parse_reporting(data: dict[str, Any], path: str | None = None) -> ReportingPolicy:
    months = _int(data.get("trend_months", 12), "reporting.trend_months", path)
    if months < 1:
        raise ConfigurationError("reporting.trend_months must be positive", path)
    currency = str(data.get("currency", "JPY")).upper()
    if len(currency) != 3:
        raise ConfigurationError("reporting.currency must be a 3-letter code", path)
    return ReportingPolicy(trend_months=months, currency=currency)


def parse_aggregation(data: dict[str, Any], path: str | None = None) -> AggregationPolicy:
    workers = data.get("max_workers")
    if workers is not None:
        workers = _int(workers, "aggregation.max_workers", path)
        if workers < 1:
            raise ConfigurationError("aggregation.max_workers must be positive", path)
    return AggregationPolicy(max_workers=workers)


def parse_logging(data: dict[str, Any], path: str | None = None) -> LoggingPolicy:
    level = str(data.get("level", "INFO")).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(f"unknown log level {level!r}", path)
    return LoggingPolicy(level=level)


def parse_config(data: dict[str, Any], path: str | None = None) -> RevenueConfig:
    """
    Parse a ``RevenueConfig`` from a dict.

    Missing sections take their schema defaults.

    Raises:
        ConfigurationError: if any present value is invalid.
    """
    return RevenueConfig(
        config_id=str(data.get("config_id", "default")),
        version=_int(data.get("version", 1), "version", path),
        rounding=parse_rounding(_section(data, "rounding", path), path),
        reporting=parse_reporting(_section(data, "reporting", path), path),
        aggregation=parse_aggregation(_section(data, "aggregation", path), path),
        logging=parse_logging(_section(data, "logging", path), path),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> RevenueConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path), str(path))
