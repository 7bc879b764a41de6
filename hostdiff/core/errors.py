"""Error kinds surfaced by the snapshot store, ingest layer and diff engine.

Every user-visible failure is one of these, so callers (the HTTP layer, the
CLI) can branch on ``kind`` instead of parsing messages.
"""

from __future__ import annotations

import uuid
from enum import Enum


class ErrorKind(str, Enum):
    invalid_format = "InvalidFormat"
    duplicate_snapshot = "DuplicateSnapshot"
    not_found = "NotFound"
    unavailable = "Unavailable"


class HostDiffError(Exception):
    """Base class for all structured hostdiff errors."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidFormat(HostDiffError):
    """Upload content or filename could not be parsed into a snapshot."""

    kind = ErrorKind.invalid_format


class DuplicateSnapshot(HostDiffError):
    """A snapshot with the same ip, timestamp and content is already stored."""

    kind = ErrorKind.duplicate_snapshot

    def __init__(self, message: str, existing_id: uuid.UUID) -> None:
        super().__init__(message)
        self.existing_id = existing_id


class NotFound(HostDiffError):
    kind = ErrorKind.not_found


class Unavailable(HostDiffError):
    """The backing store could not be reached."""

    kind = ErrorKind.unavailable
