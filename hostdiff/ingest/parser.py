"""Parse an uploaded JSON scan file into a ``SnapshotData``.

Expected document shape::

    {
        "ip": "125.199.235.74",
        "timestamp": "2025-10-16T12:00:00Z",
        "os": {"name": "Linux"},
        "services": [
            {
                "port": 443,
                "protocol": "tcp",
                "state": "open",
                "software": {"vendor": "nginx", "product": "nginx", "version": "1.24"},
                "tls": {"version": "TLSv1.3", "cipher": "...", "cert_fingerprint_sha256": "..."},
                "vulnerabilities": ["CVE-2023-1234"]
            }
        ]
    }

``ip`` and ``timestamp`` fall back to the filename convention when the
document does not carry them. Unknown keys are ignored.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from hostdiff.core.errors import InvalidFormat
from hostdiff.core.logging import get_logger
from hostdiff.ingest.filename import parse_filename
from hostdiff.schemas.snapshot import SnapshotData, normalize_ip

logger = get_logger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "snapshot"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def _same_ip(a: Any, b: str) -> bool | None:
    """Compare two addresses; None when ``a`` is not a parseable address."""
    if not isinstance(a, str):
        return None
    try:
        return normalize_ip(a) == normalize_ip(b)
    except ValueError:
        return None


def _resolve_identity(raw: dict[str, Any], filename: str | None) -> tuple[Any, Any]:
    """Return (ip, timestamp) from content, falling back to the filename.

    A free-form filename is fine when the content is self-describing; a
    conventional one must not contradict the content's ip.
    """
    ip = raw.get("ip")
    timestamp = raw.get("timestamp")
    self_describing = bool(ip) and bool(timestamp)

    parsed = None
    if filename:
        try:
            parsed = parse_filename(filename)
        except InvalidFormat:
            if not self_describing:
                raise
    if parsed is None:
        if not self_describing:
            raise InvalidFormat(
                "Snapshot has no 'ip'/'timestamp' and no filename to derive them from"
            )
        return ip, timestamp

    if ip and _same_ip(ip, parsed.ip_address) is False:
        raise InvalidFormat(
            f"IP in content ({ip!r}) does not match filename ({parsed.ip_address!r})"
        )
    return ip or parsed.ip_address, timestamp or parsed.timestamp


def parse_snapshot(
    content: bytes,
    filename: str | None = None,
    max_bytes: int | None = None,
) -> SnapshotData:
    """Decode, validate and normalize one uploaded scan.

    Raises:
        InvalidFormat: the upload is too large, not UTF-8 JSON, not an object,
            lacks a resolvable ip/timestamp, or fails schema validation.
    """
    if max_bytes is not None and len(content) > max_bytes:
        raise InvalidFormat(f"Upload is {len(content)} bytes; limit is {max_bytes}")

    try:
        raw = json.loads(content.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise InvalidFormat(f"Upload is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidFormat(f"Invalid JSON content: {exc}") from exc

    if not isinstance(raw, dict):
        raise InvalidFormat("Snapshot document must be a JSON object")

    ip, timestamp = _resolve_identity(raw, filename)

    os_block = raw.get("os") or {}
    if not isinstance(os_block, dict):
        raise InvalidFormat("'os' must be an object")

    services = raw.get("services") or []
    if not isinstance(services, list):
        raise InvalidFormat("'services' must be a list")

    try:
        snapshot = SnapshotData(
            ip_address=ip,
            timestamp=timestamp,
            os_info={"name": os_block.get("name") or None},
            services=services,
        )
    except ValidationError as exc:
        raise InvalidFormat(_format_validation_error(exc)) from exc

    logger.debug(
        "Snapshot parsed",
        ip=snapshot.ip_address,
        timestamp=snapshot.timestamp.isoformat(),
        services=len(snapshot.services),
        filename=filename,
    )
    return snapshot
