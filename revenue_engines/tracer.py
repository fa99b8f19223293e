"""
revenue_engines.tracer -- ``@traced_engine`` and input fingerprints.

Responsibility:
    Tag each successful engine call with a REVENUE_ENGINE_TRACE log record
    carrying the engine name and version, a fingerprint of the inputs that
    determine the output, and the wall time spent.  Two calls with the same
    fingerprint and version must have produced the same result, which is
    what makes a stored revenue schedule reproducible.

Architecture position:
    Engines -- support module.  Emits a log record; performs no other I/O.

Invariants enforced:
    - Fingerprints are stable: mapping keys are sorted, set members are
      sorted, Decimals keep their exponent (``Decimal("1.0")`` and
      ``Decimal("1.00")`` differ), dates use ISO format.  One-shot iterators
      are refused with TypeError rather than hashed by repr.  SHA-256,
      first 16 hex characters.
    - Arguments are resolved through the wrapped function's signature, so
      positional and keyword calls fingerprint identically.
    - A call that raises emits nothing; the exception passes through.

Usage:
    @traced_engine("proration", "1.0", fingerprint_fields=("amount",))
    def prorate(self, amount, start_date, end_date):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Iterator, Mapping
from datetime import date
from typing import Any

from revenue_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_MESSAGE = "REVENUE_ENGINE_TRACE"


def _canonicalize(value: Any) -> str:
    match value:
        case None:
            return "null"
        case str():
            return value
        case date():
            return value.isoformat()
        case Mapping():
            inner = ",".join(
                f"{k}:{_canonicalize(v)}" for k, v in sorted(value.items())
            )
            return "{" + inner + "}"
        case list() | tuple():
            return "[" + ",".join(_canonicalize(v) for v in value) + "]"
        case set() | frozenset():
            return "[" + ",".join(sorted(_canonicalize(v) for v in value)) + "]"
        case Iterator():
            raise TypeError(
                f"cannot fingerprint a one-shot iterator ({type(value).__name__}); "
                "pass a tuple"
            )
        case _:
            return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Hash the named arguments; a missing argument hashes as ``null``."""
    canonical = "|".join(
        f"{name}={_canonicalize(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Wrap an engine entry point so each successful call is traced."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind_partial(*args, **kwargs)
                fingerprint = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

            _logger.info(TRACE_MESSAGE, extra={
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "duration_ms": elapsed_ms,
                "function": func.__qualname__,
            })
            return result

        return wrapper

    return decorator
