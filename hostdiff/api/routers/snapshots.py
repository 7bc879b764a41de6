"""Snapshots API router — upload, retrieve and compare host snapshots."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from hostdiff.api.dependencies import get_app_settings, get_store
from hostdiff.core.config import Settings
from hostdiff.core.logging import get_logger
from hostdiff.diff.engine import compare_snapshots
from hostdiff.ingest.parser import parse_snapshot
from hostdiff.schemas.diff import DiffReport
from hostdiff.schemas.snapshot import SnapshotOut, SnapshotSummary
from hostdiff.store.snapshots import SnapshotStore

router = APIRouter(prefix="/snapshots", tags=["snapshots"])
logger = get_logger(__name__)

StoreDep = Annotated[SnapshotStore, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


class UploadResult(SnapshotSummary):
    """Response of a successful upload: the stored snapshot's identity."""


@router.post("", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_snapshot(
    store: StoreDep,
    settings: SettingsDep,
    file: UploadFile = File(..., description="JSON scan file, e.g. host_<ip>_<timestamp>.json"),
) -> UploadResult:
    # One byte over the limit is enough to reject
    content = await file.read(settings.max_upload_bytes + 1)
    snapshot = parse_snapshot(content, file.filename, max_bytes=settings.max_upload_bytes)
    stored = await store.put(snapshot)
    return UploadResult(id=stored.id, ip_address=stored.ip_address, timestamp=stored.timestamp)


# NOTE: /compare must be defined before /{snapshot_id} so it is not taken for an id
@router.get("/compare", response_model=DiffReport)
async def compare(
    store: StoreDep,
    a: str = Query(..., description="Id of the old snapshot"),
    b: str = Query(..., description="Id of the new snapshot"),
) -> DiffReport:
    report = await compare_snapshots(store, a, b)
    logger.info("Snapshots compared", snapshot_a=a, snapshot_b=b, summary=report.summary)
    return report


@router.get("/{snapshot_id}", response_model=SnapshotOut)
async def get_snapshot(snapshot_id: str, store: StoreDep) -> SnapshotOut:
    return await store.get_by_id(snapshot_id)

