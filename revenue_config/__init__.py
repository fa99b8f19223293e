"""
revenue_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    directly.  Returns a frozen ``RevenueConfig``.

Architecture position:
    Configuration -- sits above ``revenue_kernel`` and beside
    ``revenue_engines``.  Engines take the policies they need (e.g.
    ``RoundingPolicy``) as constructor arguments; they never import this
    package's loader.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ConfigurationError`` -- values present but invalid.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``REVENUE_CONFIG_TRACE`` log entry with the config_id, version, and
    checksum so reports can be tied back to the rounding rules in force.
"""

from __future__ import annotations

import logging
from pathlib import Path

from revenue_config.loader import load_config
from revenue_config.schema import (
    AggregationPolicy,
    LoggingPolicy,
    ReportingPolicy,
    RevenueConfig,
    RoundingPolicy,
)
from revenue_kernel.logging_config import configure_logging

_logger = logging.getLogger("revenue_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> RevenueConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to a YAML configuration file.
            Defaults to revenue_config/sets/default.yaml.

    Returns:
        RevenueConfig -- frozen runtime configuration.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config(config_path)

    _logger.info(
        "REVENUE_CONFIG_TRACE",
        extra={
            "trace_type": "REVENUE_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "decimal_places": config.rounding.decimal_places,
            "rounding_mode": config.rounding.mode,
        },
    )
    return config


def apply_logging_policy(config: RevenueConfig, **kwargs) -> None:
    """Configure the revenue_kernel log hierarchy at the configured level.

    Extra keyword arguments (``stream``, ``handler``) pass through to
    ``configure_logging``.
    """
    configure_logging(level=config.logging.level, **kwargs)


__all__ = [
    "get_active_config",
    "apply_logging_policy",
    "DEFAULT_CONFIG_PATH",
    "RevenueConfig",
    "RoundingPolicy",
    "ReportingPolicy",
    "AggregationPolicy",
    "LoggingPolicy",
]
