"""Core data models for Cookie Keeper."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict


@dataclass(frozen=True)
class CookieRecord:
    """A single cookie as reported by the record source."""

    domain: str  # As stored, may carry a leading dot: ".google.com"
    name: str  # Cookie name
    path: str = "/"
    secure: bool = False
    store_id: str = "0"  # Cookie store the record belongs to

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> CookieRecord:
        """Create instance from dictionary."""
        return cls(
            domain=data["domain"],
            name=data["name"],
            path=data.get("path", "/"),
            secure=bool(data.get("secure", False)),
            store_id=str(data.get("store_id", "0")),
        )


@dataclass
class PartitionResult:
    """Records split into those kept by the allow-list and those to purge."""

    keep: list[CookieRecord] = field(default_factory=list)
    purge: list[CookieRecord] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Return the number of classified records."""
        return len(self.keep) + len(self.purge)


@dataclass(frozen=True)
class EraseOptions:
    """Options handed to the bulk eraser."""

    since_epoch_millis: int = 0
    exclude_origins: frozenset[str] = field(default_factory=frozenset)


@dataclass
class CookieSummary:
    """Derived display state for a set of cookie records."""

    total_cookies: int
    unwanted_count: int
    sites: list[str] = field(default_factory=list)


@dataclass
class PurgeOutcome:
    """Result of issuing one deletion per record."""

    attempted: int = 0
    deleted: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class PurgeReport:
    """Complete report of a purge request."""

    dry_run: bool
    total_records: int = 0
    unwanted_records: int = 0
    sites: list[str] = field(default_factory=list)
    exclude_origins: frozenset[str] = field(default_factory=frozenset)
    bulk_error: str | None = None
    reconcile_error: str | None = None
    per_record: PurgeOutcome = field(default_factory=PurgeOutcome)
    reconciled: PurgeOutcome = field(default_factory=PurgeOutcome)

    @property
    def success(self) -> bool:
        """Return True if every erase step succeeded."""
        return (
            self.bulk_error is None
            and self.reconcile_error is None
            and self.per_record.failed == 0
            and self.reconciled.failed == 0
        )

    @property
    def total_deleted(self) -> int:
        """Return the number of single-record deletions that succeeded."""
        return self.per_record.deleted + self.reconciled.deleted

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "dry_run": self.dry_run,
            "total_records": self.total_records,
            "unwanted_records": self.unwanted_records,
            "sites": list(self.sites),
            "exclude_origins": sorted(self.exclude_origins),
            "bulk_error": self.bulk_error,
            "reconcile_error": self.reconcile_error,
            "per_record": asdict(self.per_record),
            "reconciled": asdict(self.reconciled),
            "success": self.success,
        }
