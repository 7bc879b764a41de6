"""Snapshot model — one scan of one host at one point in time."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostdiff.models.base import Base


class Snapshot(Base):
    __tablename__ = "snapshots"
    __table_args__ = (
        # Identity of a stored snapshot; concurrent duplicate puts lose here
        UniqueConstraint(
            "ip_address", "timestamp", "content_hash", name="uq_snapshot_identity"
        ),
        Index("ix_snapshots_ip_timestamp", "ip_address", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    # Insertion order; breaks timestamp ties in host history
    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Public opaque identifier
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        unique=True,
        default=uuid.uuid4,
        nullable=False,
    )

    ip_address: Mapped[str] = mapped_column(String(45), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # OS fingerprint (None = unknown)
    os_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # SHA-256 of the canonical snapshot content
    content_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    # Relationships
    services: Mapped[list["SnapshotService"]] = relationship(  # noqa: F821
        "SnapshotService",
        back_populates="snapshot",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Snapshot ip={self.ip_address!r} timestamp={self.timestamp!r}>"
