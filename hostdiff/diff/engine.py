"""Snapshot comparison (diff engine).

Compares two snapshots of a host, A ("old") and B ("new"), and returns a
:class:`~hostdiff.schemas.diff.DiffReport`:

- services are matched on their ``(port, protocol)`` key; keys only in B are
  added, keys only in A are removed, keys in both are compared field by
  field in :data:`COMPARED_FIELDS` order;
- the OS fingerprint is compared with "unknown" as its own value;
- CVEs are aggregated per host (union over all services) and set-differenced.

Every list in the report is sorted, so two runs over the same snapshots give
byte-identical JSON. ``compute_diff`` is pure; ``compare_snapshots`` adds the
two store lookups and nothing else.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from typing import TYPE_CHECKING

from hostdiff.core.logging import get_logger
from hostdiff.schemas.diff import DiffReport, FieldChange, OsChange, ServiceChange
from hostdiff.schemas.snapshot import ServiceKey, ServiceRecord, SnapshotData

if TYPE_CHECKING:
    from hostdiff.store.snapshots import SnapshotStore

logger = get_logger(__name__)

# Stand-in for an absent value on either side of a comparison
ABSENT = ""


def _software(attr: str) -> Callable[[ServiceRecord], str | None]:
    return lambda s: getattr(s.software, attr) if s.software else None


def _tls(attr: str) -> Callable[[ServiceRecord], str | None]:
    return lambda s: getattr(s.tls, attr) if s.tls else None


# Fixed comparison order; changes are reported in exactly this order
COMPARED_FIELDS: tuple[tuple[str, Callable[[ServiceRecord], str | None]], ...] = (
    ("state", lambda s: s.state),
    ("software.vendor", _software("vendor")),
    ("software.product", _software("product")),
    ("software.version", _software("version")),
    ("tls.version", _tls("version")),
    ("tls.cipher", _tls("cipher")),
    ("tls.cert_fingerprint_sha256", _tls("cert_fingerprint_sha256")),
)


def _value(raw: str | None) -> str:
    return ABSENT if raw is None else raw


def compare_services(old: ServiceRecord, new: ServiceRecord) -> list[FieldChange]:
    """Field-level differences between two records sharing a key."""
    changes = []
    for field, getter in COMPARED_FIELDS:
        before, after = _value(getter(old)), _value(getter(new))
        if before != after:
            changes.append(FieldChange(field=field, old=before, new=after))
    return changes


def cves_of(snapshot: SnapshotData) -> set[str]:
    """Host-level CVE aggregate: every id attributed to any service."""
    return {cve for service in snapshot.services for cve in service.vulnerabilities}


def cve_attribution(snapshot: SnapshotData) -> dict[str, list[ServiceKey]]:
    """Map each CVE id to the sorted service keys it is attributed to."""
    attribution: dict[str, list[ServiceKey]] = {}
    for service in snapshot.services:
        for cve in service.vulnerabilities:
            attribution.setdefault(cve, []).append(service.key)
    return {cve: sorted(keys) for cve, keys in sorted(attribution.items())}


def summarize(
    added: int,
    removed: int,
    changed: int,
    os_changed: bool,
    cves_added: int,
    cves_removed: int,
) -> str:
    if not any((added, removed, changed, os_changed, cves_added, cves_removed)):
        return "no changes"
    return (
        f"{added} added, {removed} removed, {changed} changed, "
        f"OS changed: {'yes' if os_changed else 'no'}, "
        f"{cves_added} CVEs added, {cves_removed} CVEs removed"
    )


def compute_diff(a: SnapshotData, b: SnapshotData) -> DiffReport:
    """Compare snapshot ``a`` (old) with snapshot ``b`` (new)."""
    services_a = a.service_map()
    services_b = b.service_map()

    added = [services_b[k] for k in sorted(services_b.keys() - services_a.keys())]
    removed = [services_a[k] for k in sorted(services_a.keys() - services_b.keys())]

    changed = []
    for key in sorted(services_a.keys() & services_b.keys()):
        changes = compare_services(services_a[key], services_b[key])
        if changes:
            port, protocol = key
            changed.append(ServiceChange(port=port, protocol=protocol, changes=changes))

    os_old, os_new = _value(a.os_info.name), _value(b.os_info.name)
    os_change = OsChange(old_name=os_old, new_name=os_new) if os_old != os_new else None

    cves_a, cves_b = cves_of(a), cves_of(b)
    added_cves = sorted(cves_b - cves_a)
    removed_cves = sorted(cves_a - cves_b)

    report = DiffReport(
        summary=summarize(
            len(added),
            len(removed),
            len(changed),
            os_change is not None,
            len(added_cves),
            len(removed_cves),
        ),
        os_change=os_change,
        added_services=added,
        removed_services=removed,
        changed_services=changed,
        added_cves=added_cves,
        removed_cves=removed_cves,
    )
    logger.debug(
        "Diff computed",
        ip_a=a.ip_address,
        ip_b=b.ip_address,
        added=len(added),
        removed=len(removed),
        changed=len(changed),
        os_changed=os_change is not None,
    )
    return report


async def compare_snapshots(
    store: SnapshotStore,
    id_a: uuid.UUID | str,
    id_b: uuid.UUID | str,
) -> DiffReport:
    """Load two stored snapshots and diff them.

    Raises:
        NotFound: either id is unknown (propagated from the store).
    """
    snapshot_a = await store.get_by_id(id_a)
    snapshot_b = await store.get_by_id(id_b)
    return compute_diff(snapshot_a, snapshot_b)
