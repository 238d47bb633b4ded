"""Parse retention thresholds such as ``2 weeks``, ``30d`` or ``1 month``."""

from __future__ import annotations

import re
from datetime import timedelta

from relsync.core.result import Err, Ok, Result

__all__ = ["parse_age"]

_AGE_RE = re.compile(r"^\s*(\d+)\s*([a-z]+)\s*$", re.IGNORECASE)

_UNIT_SECONDS: dict[str, int] = {
    "s": 1,
    "sec": 1,
    "second": 1,
    "m": 60,
    "min": 60,
    "minute": 60,
    "h": 3600,
    "hour": 3600,
    "d": 86400,
    "day": 86400,
    "w": 7 * 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "y": 365 * 86400,
    "year": 365 * 86400,
}


def parse_age(text: str) -> Result[timedelta, str]:
    """Convert ``<count> <unit>`` into a timedelta.

    Months count as 30 days and years as 365 days. Plural unit names are
    accepted. Zero is rejected: a sweep with no threshold would delete
    everything but the latest release.
    """
    match = _AGE_RE.match(text)
    if match is None:
        return Err(f"invalid age {text!r} (expected e.g. '2 weeks', '30d')")

    count = int(match.group(1))
    unit = match.group(2).lower()
    seconds = _UNIT_SECONDS.get(unit)
    if seconds is None and unit.endswith("s"):
        seconds = _UNIT_SECONDS.get(unit[:-1])
    if seconds is None:
        return Err(f"unknown age unit {unit!r} in {text!r}")
    if count == 0:
        return Err(f"age must be positive: {text!r}")

    return Ok(timedelta(seconds=count * seconds))
