"""Migration pass statistics, kept apart from the migration logic.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class MigrationProgress:
    """Track one migration pass.

    Counts what happened to every source record and collects the phase
    errors that decide the overall outcome. Per-record problems end up in
    ``warnings``; only ``errors`` make the pass fail.
    """

    total: int = 0
    staged: int = 0
    migrated: int = 0
    passthrough: int = 0
    malformed: int = 0
    conversion_failures: int = 0
    deleted: int = 0
    already_migrated: bool = False
    source_missing: bool = False
    committed: bool = False
    errors: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    def start(self) -> MigrationProgress:
        """Mark the pass as started.

        Returns:
            Self for chaining
        """
        self.start_time = time.time()
        return self

    def finish(self) -> MigrationProgress:
        """Mark the pass as finished.

        Returns:
            Self for chaining
        """
        self.end_time = time.time()
        return self

    @property
    def duration(self) -> float:
        """Pass duration in seconds, or 0 if not started."""
        if self.start_time is None:
            return 0.0

        end = self.end_time if self.end_time else time.time()
        return end - self.start_time

    @property
    def ok(self) -> bool:
        """True unless a phase failed."""
        return not self.errors

    @property
    def skipped(self) -> int:
        return self.malformed + self.conversion_failures

    def record_passthrough(self) -> MigrationProgress:
        """Count a META or VERSION record."""
        self.total += 1
        self.passthrough += 1
        return self

    def record_staged(self) -> MigrationProgress:
        """Count a record staged for the target."""
        self.total += 1
        self.staged += 1
        return self

    def record_migrated(self, count: int = 1) -> MigrationProgress:
        """Count staged records that the target committed."""
        self.migrated += count
        return self

    def record_malformed(self, reason: str) -> MigrationProgress:
        """Count a record that could not be decoded.

        Args:
            reason: Why the record was skipped

        Returns:
            Self for chaining
        """
        self.total += 1
        self.malformed += 1
        self.warnings.append(f"Skipped malformed record: {reason}")
        return self

    def record_conversion_failure(self, key: str, reason: str) -> MigrationProgress:
        """Count an entry whose value could not be converted.

        Args:
            key: Logical key of the entry
            reason: Why the entry was skipped

        Returns:
            Self for chaining
        """
        self.total += 1
        self.conversion_failures += 1
        self.warnings.append(f"Skipped entry '{key}': {reason}")
        return self

    def record_deleted(self) -> MigrationProgress:
        self.deleted += 1
        return self

    def record_error(self, phase: str, exception: Exception) -> MigrationProgress:
        """Record a failed phase.

        Args:
            phase: Phase that failed (``read``, ``commit``, ``cleanup``)
            exception: The exception that caused the failure

        Returns:
            Self for chaining
        """
        self.errors.append({
            "phase": phase,
            "error": str(exception),
            "exception_type": type(exception).__name__,
            "timestamp": time.time(),
        })
        return self

    def get_summary(self) -> str:
        """Get a human-readable summary of the pass.

        Returns:
            Summary string
        """
        if self.already_migrated:
            return "Migration already completed; nothing to do"
        if self.source_missing:
            return "No Local Storage found; nothing to migrate"

        lines = [
            f"Migration {'succeeded' if self.ok else 'failed'}",
            f"Records: {self.total} | Staged: {self.staged} | Migrated: {self.migrated} | "
            f"Pass-through: {self.passthrough} | Skipped: {self.skipped}",
            f"Committed: {'yes' if self.committed else 'no'} | Deleted from source: {self.deleted}",
        ]

        if self.duration > 0:
            lines.append(f"Duration: {self.duration:.2f}s")

        if self.errors:
            lines.append(f"Errors: {len(self.errors)}")
            lines.extend(f"  [{e['phase']}] {e['error']}" for e in self.errors)

        if self.warnings:
            lines.append(f"Warnings: {len(self.warnings)}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert progress to a dictionary for serialization.

        Returns:
            Dictionary representation
        """
        return {
            "ok": self.ok,
            "total": self.total,
            "staged": self.staged,
            "migrated": self.migrated,
            "passthrough": self.passthrough,
            "malformed": self.malformed,
            "conversion_failures": self.conversion_failures,
            "deleted": self.deleted,
            "already_migrated": self.already_migrated,
            "source_missing": self.source_missing,
            "committed": self.committed,
            "duration": self.duration,
            "errors": self.errors,
            "warnings": self.warnings,
        }

    def __str__(self) -> str:
        return self.get_summary()

    def __repr__(self) -> str:
        return (
            f"MigrationProgress(total={self.total}, migrated={self.migrated}, "
            f"deleted={self.deleted}, ok={self.ok})"
        )
