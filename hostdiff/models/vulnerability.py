"""ServiceVulnerability — a CVE id attributed to one service of one snapshot."""

from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdiff.models.base import Base, UUIDPrimaryKeyMixin


class ServiceVulnerability(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "service_vulnerabilities"
    __table_args__ = (
        UniqueConstraint("service_id", "cve_id", name="uq_service_vulnerability"),
    )

    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("snapshot_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # CVE identifier as reported by the scanner (e.g. "CVE-2024-12345")
    cve_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Relationships
    service: Mapped["SnapshotService"] = relationship(  # noqa: F821
        "SnapshotService", back_populates="vulnerabilities"
    )

    def __repr__(self) -> str:
        return f"<ServiceVulnerability {self.cve_id!r} service={self.service_id}>"
