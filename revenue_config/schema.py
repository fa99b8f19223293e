"""
RevenueConfig schema.

Frozen dataclasses for the runtime configuration of the revenue core. YAML
files are parsed into these types by the loader; nothing else in the system
reads configuration files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP


@dataclass(frozen=True)
class RoundingPolicy:
    """How monetary results are rounded."""

    decimal_places: int = 2
    mode: str = ROUND_HALF_UP


@dataclass(frozen=True)
class ReportingPolicy:
    """Defaults for period reports."""

    trend_months: int = 12
    currency: str = "JPY"


@dataclass(frozen=True)
class AggregationPolicy:
    """Per-month fetch behaviour. ``max_workers=None`` fetches sequentially."""

    max_workers: int | None = None


@dataclass(frozen=True)
class LoggingPolicy:
    level: str = "INFO"


@dataclass(frozen=True)
class RevenueConfig:
    """Complete runtime configuration."""

    config_id: str = "default"
    version: int = 1
    rounding: RoundingPolicy = field(default_factory=RoundingPolicy)
    reporting: ReportingPolicy = field(default_factory=ReportingPolicy)
    aggregation: AggregationPolicy = field(default_factory=AggregationPolicy)
    logging: LoggingPolicy = field(default_factory=LoggingPolicy)
    checksum: str = ""
