"""
Utility functions for nexus_federation.

This module provides helpers for catalog path handling, the time formats
spoken by the upstream REST API and the creation of fsspec filesystems.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import OperationCancelled

_TIMESPAN_PATTERN = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{2}):(?P<seconds>\d{2})"
    r"(?:\.(?P<fraction>\d{1,7}))?$"
)

_DATETIME_FRACTION_PATTERN = re.compile(r"\.(\d+)")

# (unit, factor to the next larger unit)
_UNITS = [("ns", 1000), ("us", 1000), ("ms", 1000), ("s", 60), ("min", 1)]


def create_fsspec_fs(fs_type="http", **fs_kwargs):
    """
    Create an fsspec filesystem.

    Parameters
    ----------
    fs_type : str, default "http"
        The fsspec filesystem type to create
    **fs_kwargs : dict
        Additional keyword arguments to pass to the filesystem constructor

    Returns
    -------
    fsspec.AbstractFileSystem
        The created filesystem
    """
    import fsspec

    return fsspec.filesystem(fs_type, **fs_kwargs)


def normalize_catalog_path(path: Optional[str]) -> str:
    """
    Normalize a configured path prefix.

    ``None`` becomes ``/``. Any other value is trimmed of surrounding slashes
    and prefixed with exactly one slash, so ``"mnt/"`` becomes ``"/mnt"`` and
    ``"/"`` stays ``"/"``.
    """
    if path is None:
        return "/"

    return "/" + path.strip("/")


def join_catalog_path(prefix: str, relative: str) -> str:
    """
    Join an absolute prefix and a relative remainder with a single slash.

    An empty remainder yields the prefix itself.
    """
    relative = relative.lstrip("/")

    if not relative:
        return prefix

    return f"{prefix.rstrip('/')}/{relative}"


def is_below(path: str, prefix: str) -> bool:
    """Check whether ``path`` equals ``prefix`` or lies in its subtree."""
    if prefix == "/":
        return path.startswith("/")

    return path == prefix or path.startswith(prefix + "/")


def format_timespan(value: timedelta) -> str:
    """
    Format a time span as ``[-][d.]hh:mm:ss[.fffffff]``.

    Sub-second precision is written with seven digits (100 ns ticks) and
    only when present.
    """
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)

    ticks = (value.days * 86400 + value.seconds) * 10_000_000 + value.microseconds * 10
    total_seconds, fraction = divmod(ticks, 10_000_000)
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    result = f"{sign}{days}." if days else sign
    result += f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    if fraction:
        result += f".{fraction:07d}"

    return result


def parse_timespan(value: str) -> timedelta:
    """Parse a time span written as ``[-][d.]hh:mm:ss[.fffffff]``."""
    match = _TIMESPAN_PATTERN.match(value)

    if match is None:
        raise ValueError(f"'{value}' is not a valid time span.")

    fraction = (match.group("fraction") or "").ljust(7, "0")

    result = timedelta(
        days=int(match.group("days") or 0),
        hours=int(match.group("hours")),
        minutes=int(match.group("minutes")),
        seconds=int(match.group("seconds")),
        microseconds=int(fraction) // 10,
    )

    return -result if match.group("sign") else result


def format_datetime(value: datetime) -> str:
    """Format a timestamp as UTC ISO 8601 with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    value = value.astimezone(timezone.utc).replace(tzinfo=None)

    return value.isoformat(timespec="microseconds") + "Z"


def parse_datetime(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Fractions longer than microseconds are truncated and a missing offset is
    taken as UTC.
    """
    value = value.strip()

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    value = _DATETIME_FRACTION_PATTERN.sub(
        lambda match: "." + match.group(1)[:6].ljust(6, "0"), value, count=1
    )

    result = datetime.fromisoformat(value)

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)

    return result


def to_unit_string(sample_period: timedelta) -> str:
    """
    Convert a sample period into its unit string, e.g. ``100_ms`` or ``1_s``.

    The largest unit that divides the period exactly is used.
    """
    current = (
        (sample_period.days * 86400 + sample_period.seconds) * 1_000_000
        + sample_period.microseconds
    ) * 1000

    if current <= 0:
        raise ValueError("The sample period must be positive.")

    for unit, factor in _UNITS[:-1]:
        if current % factor != 0:
            return f"{current}_{unit}"

        current //= factor

    return f"{current}_{_UNITS[-1][0]}"


def check_cancelled(cancel_event) -> None:
    """Raise OperationCancelled if the given event is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise OperationCancelled("The operation has been cancelled.")
