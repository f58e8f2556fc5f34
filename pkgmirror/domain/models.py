"""
Pydantic models for the package mirror.

This module defines the data models used throughout the application:
- Normalized package records produced by manifest parsers
- Change sets reported by the source repository mirror
- Query results and sync statistics
- The response envelope used by the HTTP layer

All models use Pydantic for validation, serialization, and type safety.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Package Records
# ---------------------------------------------------------------------------


class PackageRecord(BaseModel):
    """
    One package as indexed from its manifest.

    Identity is the ``id`` field: two records with the same identifier describe
    the same logical package and the newer one replaces the older in the index.
    Records are frozen so that a record handed to a reader can never change
    underneath it.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        min_length=1,
        description="Unique package identifier, e.g. 'Microsoft.WindowsTerminal'.",
    )
    name: str = Field(
        description="Display name of the package. Falls back to the identifier.",
    )
    version: Optional[str] = Field(
        default=None,
        description="Package version taken from the manifest, if present.",
    )
    publisher: Optional[str] = Field(
        default=None,
        description="Publisher of the package, if present.",
    )
    last_updated: datetime = Field(
        default_factory=utcnow,
        description="When this record was parsed.",
    )


# ---------------------------------------------------------------------------
# Mirror Change Sets
# ---------------------------------------------------------------------------


class ChangeKind(str, Enum):
    """What the mirror observed during clone-or-update."""

    NO_CHANGES = "no_changes"
    CHANGED = "changed"
    FRESH_CLONE = "fresh_clone"


class ChangeSet(BaseModel):
    """
    Result of a mirror clone-or-update.

    ``FRESH_CLONE`` means no diff information is available (the repository was
    just cloned or the diff could not be computed) and a full scan is needed.
    ``paths`` is only populated for ``CHANGED`` and holds repository-relative
    POSIX paths in the order the mirror reported them.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    paths: Tuple[str, ...] = ()

    @classmethod
    def no_changes(cls) -> "ChangeSet":
        return cls(kind=ChangeKind.NO_CHANGES)

    @classmethod
    def fresh_clone(cls) -> "ChangeSet":
        return cls(kind=ChangeKind.FRESH_CLONE)

    @classmethod
    def changed(cls, paths: List[str]) -> "ChangeSet":
        return cls(kind=ChangeKind.CHANGED, paths=tuple(paths))


# ---------------------------------------------------------------------------
# Query Results
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    """One page of packages plus the total number of matches."""

    packages: List[PackageRecord] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20


class SyncStats(BaseModel):
    """Index size and the time of the last successful sync."""

    total_packages: int = 0
    last_sync: Optional[datetime] = Field(
        default=None,
        description="Completion time of the last successful sync; None if never synced.",
    )


# ---------------------------------------------------------------------------
# API Envelope
# ---------------------------------------------------------------------------


class ApiResponse(BaseModel):
    """Envelope returned by every JSON route."""

    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def ok(cls, data: Any) -> "ApiResponse":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ApiResponse":
        return cls(success=False, error=error)
