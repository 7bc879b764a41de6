"""Schemas for the diff report returned by snapshot comparison."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, computed_field

from hostdiff.schemas.snapshot import ServiceRecord


class OsChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    # "" stands for an unknown OS on that side
    old_name: str
    new_name: str


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    old: str
    new: str

    @computed_field
    @property
    def display(self) -> str:
        return f"{self.old} -> {self.new}"


class ServiceChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    port: int
    protocol: str
    changes: list[FieldChange]


class DiffReport(BaseModel):
    """Structured, order-stable comparison of snapshot A (old) with B (new)."""

    model_config = ConfigDict(frozen=True)

    summary: str
    os_change: OsChange | None = None
    added_services: list[ServiceRecord] = []
    removed_services: list[ServiceRecord] = []
    changed_services: list[ServiceChange] = []
    added_cves: list[str] = []
    removed_cves: list[str] = []

    @property
    def is_empty(self) -> bool:
        return self.os_change is None and not any(
            (
                self.added_services,
                self.removed_services,
                self.changed_services,
                self.added_cves,
                self.removed_cves,
            )
        )
