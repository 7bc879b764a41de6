"""Schemas for snapshots and their service records.

``SnapshotData`` is the canonical in-memory snapshot: ingest produces it, the
store persists it and hands it back as ``SnapshotOut``, and the diff engine
compares two of them. All models are frozen; a snapshot never changes once
it exists.
"""

from __future__ import annotations

import hashlib
import ipaddress
import json
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
)

ServiceKey = tuple[int, str]
CveId = Annotated[str, StringConstraints(max_length=64)]


def normalize_ip(value: str) -> str:
    """Return the canonical text form of an IPv4/IPv6 address."""
    return str(ipaddress.ip_address(value.strip()))


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted to it."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SoftwareInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    vendor: str | None = Field(default=None, max_length=255)
    product: str | None = Field(default=None, max_length=255)
    version: str | None = Field(default=None, max_length=255)


class TlsInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    version: str | None = Field(default=None, max_length=50)
    cipher: str | None = Field(default=None, max_length=255)
    cert_fingerprint_sha256: str | None = Field(
        default=None,
        max_length=128,
        validation_alias=AliasChoices("cert_fingerprint_sha256", "certFingerprintSha256"),
    )


class OsInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, max_length=255)


class ServiceRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int = Field(..., ge=0, le=65535)
    protocol: str = Field(..., min_length=1, max_length=20)
    state: str = Field(default="open", min_length=1, max_length=20)
    software: SoftwareInfo | None = None
    tls: TlsInfo | None = None
    vulnerabilities: tuple[CveId, ...] = ()

    @field_validator("protocol", "state", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("vulnerabilities", mode="before")
    @classmethod
    def _normalize_vulnerabilities(cls, v: Any) -> Any:
        """Drop blanks and duplicates; keep ids sorted."""
        if v is None:
            return ()
        if not isinstance(v, (list, tuple, set, frozenset)):
            return v
        ids = set()
        for item in v:
            if not isinstance(item, str):
                raise ValueError(f"CVE identifiers must be strings, got {item!r}")
            if item.strip():
                ids.add(item.strip())
        return tuple(sorted(ids))

    @property
    def key(self) -> ServiceKey:
        return (self.port, self.protocol)


class SnapshotData(BaseModel):
    """The content of one host scan, before or after storage."""

    model_config = ConfigDict(frozen=True)

    ip_address: str = Field(..., max_length=45)
    timestamp: datetime
    os_info: OsInfo = OsInfo()
    services: tuple[ServiceRecord, ...] = ()

    @field_validator("ip_address", mode="before")
    @classmethod
    def _validate_ip(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        try:
            return normalize_ip(v)
        except ValueError:
            raise ValueError(f"Invalid IP address: {v!r}")

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("services")
    @classmethod
    def _unique_service_keys(
        cls, v: tuple[ServiceRecord, ...]
    ) -> tuple[ServiceRecord, ...]:
        """Reject duplicate (port, protocol) keys; keep services in key order."""
        seen: set[ServiceKey] = set()
        for service in v:
            if service.key in seen:
                port, protocol = service.key
                raise ValueError(f"Duplicate service {port}/{protocol} in snapshot")
            seen.add(service.key)
        return tuple(sorted(v, key=lambda s: s.key))

    def service_map(self) -> dict[ServiceKey, ServiceRecord]:
        return {s.key: s for s in self.services}

    def content_hash(self) -> str:
        """SHA-256 over the canonical JSON encoding of the snapshot content."""
        payload = self.model_dump(
            mode="json", include={"ip_address", "timestamp", "os_info", "services"}
        )
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SnapshotOut(SnapshotData):
    """A stored snapshot."""

    id: uuid.UUID

    @classmethod
    def from_row(cls, row: Any) -> SnapshotOut:
        """Build from a ``Snapshot`` ORM row with services and vulnerabilities loaded."""
        services = []
        for s in row.services:
            software = None
            if s.has_software:
                software = SoftwareInfo(
                    vendor=s.software_vendor,
                    product=s.software_product,
                    version=s.software_version,
                )
            tls = None
            if s.has_tls:
                tls = TlsInfo(
                    version=s.tls_version,
                    cipher=s.tls_cipher,
                    cert_fingerprint_sha256=s.tls_cert_fingerprint_sha256,
                )
            services.append(
                ServiceRecord(
                    port=s.port,
                    protocol=s.protocol,
                    state=s.state,
                    software=software,
                    tls=tls,
                    vulnerabilities=[v.cve_id for v in s.vulnerabilities],
                )
            )
        return cls(
            id=row.id,
            ip_address=row.ip_address,
            timestamp=row.timestamp,
            os_info=OsInfo(name=row.os_name),
            services=services,
        )


class SnapshotSummary(BaseModel):
    """Lightweight history entry."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    ip_address: str
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)


class HostHistory(BaseModel):
    ip_address: str
    total: int
    items: list[SnapshotSummary]


class HostSummary(BaseModel):
    ip_address: str
    snapshot_count: int
    latest_timestamp: datetime

    @field_validator("latest_timestamp")
    @classmethod
    def _utc_timestamp(cls, v: datetime) -> datetime:
        return as_utc(v)


class HostList(BaseModel):
    total: int
    items: list[HostSummary]
