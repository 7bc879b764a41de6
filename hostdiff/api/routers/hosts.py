"""Hosts API router — per-host snapshot history."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from hostdiff.api.dependencies import get_store
from hostdiff.schemas.snapshot import HostHistory, HostList, normalize_ip
from hostdiff.store.snapshots import SnapshotStore

router = APIRouter(prefix="/hosts", tags=["hosts"])

StoreDep = Annotated[SnapshotStore, Depends(get_store)]


@router.get("", response_model=HostList)
async def list_hosts(store: StoreDep) -> HostList:
    hosts = await store.list_hosts()
    return HostList(total=len(hosts), items=hosts)


@router.get("/{ip}/snapshots", response_model=HostHistory)
async def get_host_history(ip: str, store: StoreDep) -> HostHistory:
    """Snapshots for one host, newest first. Unknown hosts yield an empty list."""
    items = await store.list_by_ip(ip)
    try:
        address = normalize_ip(ip)
    except ValueError:
        # Unparseable addresses have no history; echo them back as given
        address = ip
    return HostHistory(ip_address=address, total=len(items), items=items)
