"""SnapshotService model — one (port, protocol) service inside a snapshot."""

import uuid

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdiff.models.base import Base, UUIDPrimaryKeyMixin


class SnapshotService(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "snapshot_services"
    __table_args__ = (
        # (port, protocol) is the matching key used by the diff engine
        UniqueConstraint("snapshot_id", "port", "protocol", name="uq_service_snapshot_key"),
    )

    snapshot_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("snapshots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    port: Mapped[int] = mapped_column(Integer, nullable=False)
    protocol: Mapped[str] = mapped_column(String(20), nullable=False)

    # Port state: open | closed | filtered | open|filtered
    state: Mapped[str] = mapped_column(String(20), nullable=False, default="open")

    # Software fingerprint; has_software distinguishes "no block" from "empty block"
    has_software: Mapped[bool] = mapped_column(default=False, nullable=False)
    software_vendor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    software_product: Mapped[str | None] = mapped_column(String(255), nullable=True)
    software_version: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # TLS parameters
    has_tls: Mapped[bool] = mapped_column(default=False, nullable=False)
    tls_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tls_cipher: Mapped[str | None] = mapped_column(String(255), nullable=True)
    tls_cert_fingerprint_sha256: Mapped[str | None] = mapped_column(String(128), nullable=True)

    # Relationships
    snapshot: Mapped["Snapshot"] = relationship("Snapshot", back_populates="services")  # noqa: F821
    vulnerabilities: Mapped[list["ServiceVulnerability"]] = relationship(  # noqa: F821
        "ServiceVulnerability", back_populates="service", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<SnapshotService {self.protocol}/{self.port} state={self.state!r}>"
