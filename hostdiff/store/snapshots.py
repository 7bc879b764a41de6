"""Snapshot store — keyed, append-only persistence of host snapshots.

A stored snapshot is identified by ``(ip_address, timestamp, content_hash)``.
The identity is backed by a unique constraint, so of two concurrent puts of
the same snapshot exactly one commits and the other sees
``DuplicateSnapshot``. There is no update or delete.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hostdiff.core.errors import DuplicateSnapshot, NotFound, Unavailable
from hostdiff.core.logging import get_logger
from hostdiff.models.service import SnapshotService
from hostdiff.models.snapshot import Snapshot
from hostdiff.models.vulnerability import ServiceVulnerability
from hostdiff.schemas.snapshot import (
    HostSummary,
    SnapshotData,
    SnapshotOut,
    SnapshotSummary,
    normalize_ip,
)

logger = get_logger(__name__)

_SNAPSHOT_OPTIONS = [
    selectinload(Snapshot.services).selectinload(SnapshotService.vulnerabilities),
]


@contextmanager
def _store_errors() -> Iterator[None]:
    """Surface connectivity failures as ``Unavailable``."""
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        logger.error("Snapshot store unavailable", error=str(exc))
        raise Unavailable(f"Snapshot store unavailable: {exc.orig or exc}") from exc


def _coerce_id(snapshot_id: uuid.UUID | str) -> uuid.UUID:
    if isinstance(snapshot_id, uuid.UUID):
        return snapshot_id
    try:
        return uuid.UUID(str(snapshot_id))
    except ValueError:
        raise NotFound(f"Snapshot {snapshot_id!r} not found")


def _build_row(snapshot: SnapshotData, content_hash: str) -> Snapshot:
    services = []
    for s in snapshot.services:
        software = s.software
        tls = s.tls
        services.append(
            SnapshotService(
                port=s.port,
                protocol=s.protocol,
                state=s.state,
                has_software=software is not None,
                software_vendor=software.vendor if software else None,
                software_product=software.product if software else None,
                software_version=software.version if software else None,
                has_tls=tls is not None,
                tls_version=tls.version if tls else None,
                tls_cipher=tls.cipher if tls else None,
                tls_cert_fingerprint_sha256=tls.cert_fingerprint_sha256 if tls else None,
                vulnerabilities=[ServiceVulnerability(cve_id=c) for c in s.vulnerabilities],
            )
        )
    return Snapshot(
        id=uuid.uuid4(),
        ip_address=snapshot.ip_address,
        timestamp=snapshot.timestamp,
        os_name=snapshot.os_info.name,
        content_hash=content_hash,
        services=services,
    )


class SnapshotStore:
    """Snapshot persistence bound to one ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _find_identity(self, snapshot: SnapshotData, content_hash: str) -> uuid.UUID | None:
        result = await self.session.execute(
            select(Snapshot.id).where(
                Snapshot.ip_address == snapshot.ip_address,
                Snapshot.timestamp == snapshot.timestamp,
                Snapshot.content_hash == content_hash,
            )
        )
        return result.scalar_one_or_none()

    async def put(self, snapshot: SnapshotData) -> SnapshotOut:
        """Store a snapshot and return it with its freshly assigned id.

        Raises:
            DuplicateSnapshot: an identical snapshot for the same host and
                timestamp is already stored; nothing is written.
            Unavailable: the database could not be reached.
        """
        content_hash = snapshot.content_hash()
        with _store_errors():
            existing_id = await self._find_identity(snapshot, content_hash)
            if existing_id is not None:
                self._reject_duplicate(snapshot, existing_id)

            row = _build_row(snapshot, content_hash)
            self.session.add(row)
            try:
                await self.session.commit()
            except IntegrityError:
                # Lost a race against a concurrent put of the same snapshot
                await self.session.rollback()
                existing_id = await self._find_identity(snapshot, content_hash)
                if existing_id is None:
                    raise
                self._reject_duplicate(snapshot, existing_id)
            except Exception:
                await self.session.rollback()
                raise

        logger.info(
            "Snapshot stored",
            snapshot_id=str(row.id),
            ip=snapshot.ip_address,
            timestamp=snapshot.timestamp.isoformat(),
            services=len(snapshot.services),
        )
        return SnapshotOut.model_validate({**snapshot.model_dump(), "id": row.id})

    def _reject_duplicate(self, snapshot: SnapshotData, existing_id: uuid.UUID) -> None:
        logger.warning(
            "Duplicate snapshot rejected",
            ip=snapshot.ip_address,
            timestamp=snapshot.timestamp.isoformat(),
            existing_id=str(existing_id),
        )
        raise DuplicateSnapshot(
            f"Snapshot for {snapshot.ip_address} at {snapshot.timestamp.isoformat()} "
            f"already stored as {existing_id}",
            existing_id=existing_id,
        )

    async def get_by_id(self, snapshot_id: uuid.UUID | str) -> SnapshotOut:
        """Return the full snapshot or raise ``NotFound``."""
        key = _coerce_id(snapshot_id)
        with _store_errors():
            result = await self.session.execute(
                select(Snapshot).where(Snapshot.id == key).options(*_SNAPSHOT_OPTIONS)
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFound(f"Snapshot {key} not found")
        return SnapshotOut.from_row(row)

    async def list_by_ip(self, ip_address: str) -> list[SnapshotSummary]:
        """History for one host, newest first; ties keep insertion order."""
        try:
            ip = normalize_ip(ip_address)
        except ValueError:
            return []
        with _store_errors():
            result = await self.session.execute(
                select(Snapshot.id, Snapshot.ip_address, Snapshot.timestamp)
                .where(Snapshot.ip_address == ip)
                .order_by(Snapshot.timestamp.desc(), Snapshot.sequence.asc())
            )
            rows = result.all()
        return [
            SnapshotSummary(id=r.id, ip_address=r.ip_address, timestamp=r.timestamp)
            for r in rows
        ]

    async def list_hosts(self) -> list[HostSummary]:
        """Every host with at least one snapshot, ordered by address."""
        with _store_errors():
            result = await self.session.execute(
                select(
                    Snapshot.ip_address,
                    func.count(Snapshot.sequence),
                    func.max(Snapshot.timestamp),
                )
                .group_by(Snapshot.ip_address)
                .order_by(Snapshot.ip_address)
            )
            rows = result.all()
        return [
            HostSummary(ip_address=ip, snapshot_count=count, latest_timestamp=latest)
            for ip, count, latest in rows
        ]
