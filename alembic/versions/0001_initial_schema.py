"""Initial schema: snapshots, snapshot_services, service_vulnerabilities.

Revision ID: 0001
Revises:
Create Date: 2025-10-16 00:00:00.000000
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── snapshots ───────────────────────────────────────────────────────────
    op.create_table(
        "snapshots",
        sa.Column("sequence", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("ip_address", sa.String(45), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("os_name", sa.String(255), nullable=True),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.UniqueConstraint("id", name="uq_snapshots_id"),
        sa.UniqueConstraint(
            "ip_address", "timestamp", "content_hash", name="uq_snapshot_identity"
        ),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_snapshots_ip_timestamp", "snapshots", ["ip_address", "timestamp"])

    # ── snapshot_services ───────────────────────────────────────────────────
    op.create_table(
        "snapshot_services",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "snapshot_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("snapshots.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("port", sa.Integer(), nullable=False),
        sa.Column("protocol", sa.String(20), nullable=False),
        sa.Column("state", sa.String(20), nullable=False, server_default="open"),
        sa.Column("has_software", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("software_vendor", sa.String(255), nullable=True),
        sa.Column("software_product", sa.String(255), nullable=True),
        sa.Column("software_version", sa.String(255), nullable=True),
        sa.Column("has_tls", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tls_version", sa.String(50), nullable=True),
        sa.Column("tls_cipher", sa.String(255), nullable=True),
        sa.Column("tls_cert_fingerprint_sha256", sa.String(128), nullable=True),
        sa.UniqueConstraint(
            "snapshot_id", "port", "protocol", name="uq_service_snapshot_key"
        ),
    )
    op.create_index(
        "ix_snapshot_services_snapshot_id", "snapshot_services", ["snapshot_id"]
    )

    # ── service_vulnerabilities ─────────────────────────────────────────────
    op.create_table(
        "service_vulnerabilities",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "service_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("snapshot_services.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("cve_id", sa.String(64), nullable=False),
        sa.UniqueConstraint("service_id", "cve_id", name="uq_service_vulnerability"),
    )
    op.create_index(
        "ix_service_vulnerabilities_service_id", "service_vulnerabilities", ["service_id"]
    )
    op.create_index(
        "ix_service_vulnerabilities_cve_id", "service_vulnerabilities", ["cve_id"]
    )


def downgrade() -> None:
    op.drop_table("service_vulnerabilities")
    op.drop_table("snapshot_services")
    op.drop_index("ix_snapshots_ip_timestamp", table_name="snapshots")
    op.drop_table("snapshots")
