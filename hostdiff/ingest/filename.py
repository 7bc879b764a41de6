"""Snapshot filename convention: ``host_<ip>_<YYYY-MM-DDTHH-MM-SSZ>.json``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import PurePath

from hostdiff.core.errors import InvalidFormat

_FILENAME_RE = re.compile(
    r"^host_(?P<ip>\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})_"
    r"(?P<ts>(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"T(?P<hour>\d{2})-(?P<minute>\d{2})-(?P<second>\d{2})Z)\.json$"
)

# (field name, lower bound, upper bound) checked before building the datetime
_TIME_RANGES = (
    ("month", 1, 12),
    ("day", 1, 31),
    ("hour", 0, 23),
    ("minute", 0, 59),
    ("second", 0, 59),
)


@dataclass(slots=True, frozen=True)
class ParsedFilename:
    ip_address: str
    timestamp: datetime


def parse_filename(filename: str) -> ParsedFilename:
    """Extract the host ip and scan time from a snapshot filename.

    Only the basename is considered, so browser-supplied paths such as
    ``C:\\scans\\host_...json`` or ``scans/host_...json`` are accepted.

    Raises:
        InvalidFormat: the name does not follow the convention, an octet is
            outside 0-255, or the date/time components are out of range.
    """
    name = PurePath(filename.replace("\\", "/")).name
    match = _FILENAME_RE.match(name)
    if not match:
        raise InvalidFormat(
            f"Filename does not match expected format "
            f"'host_<ip>_<YYYY-MM-DDTHH-MM-SSZ>.json': {name!r}"
        )

    ip = match.group("ip")
    for index, octet in enumerate(ip.split(".")):
        if int(octet) > 255:
            raise InvalidFormat(
                f"Invalid IP address octet [{index}]: {octet} (must be 0-255)"
            )

    parts = {
        k: int(match.group(k))
        for k in ("year", "month", "day", "hour", "minute", "second")
    }
    for field, low, high in _TIME_RANGES:
        if not low <= parts[field] <= high:
            raise InvalidFormat(f"Invalid {field}: {parts[field]} (must be {low}-{high})")

    try:
        timestamp = datetime(tzinfo=timezone.utc, **parts)
    except ValueError as exc:
        # e.g. February 30th
        raise InvalidFormat(f"Invalid timestamp {match.group('ts')!r}: {exc}") from exc

    # Leading zeros ("010") are accepted by the pattern; normalize them away
    ip = ".".join(str(int(octet)) for octet in ip.split("."))
    return ParsedFilename(ip_address=ip, timestamp=timestamp)
