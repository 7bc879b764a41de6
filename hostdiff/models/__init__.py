"""SQLAlchemy ORM models."""

from hostdiff.models.base import Base
from hostdiff.models.service import SnapshotService
from hostdiff.models.snapshot import Snapshot
from hostdiff.models.vulnerability import ServiceVulnerability

__all__ = ["Base", "ServiceVulnerability", "Snapshot", "SnapshotService"]
