"""
Access Audit Log - Trail of mediated operations.

Keeps a bounded in-memory history of every mediated write and its outcome.
Field values are never recorded, only field names.
"""

from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from collections import defaultdict
from enum import Enum
import threading

from fieldwarden.core.observability import StructuredLogger, LogLevel


class AuditOutcome(str, Enum):
    """How a mediated operation ended."""
    SUCCESS = "success"
    VIOLATION = "violation"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    INVALID = "invalid"


class AuditRecord:
    """Record of a single mediated operation."""

    def __init__(
        self,
        operation: str,
        record_type: Optional[str],
        scope: str,
        outcome: AuditOutcome,
        details: Optional[Dict[str, Any]] = None,
        timestamp: Optional[datetime] = None
    ):
        self.operation = operation
        self.record_type = record_type
        self.scope = scope
        self.outcome = outcome
        self.details = details or {}
        self.timestamp = timestamp or datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "operation": self.operation,
            "record_type": self.record_type,
            "scope": self.scope,
            "outcome": self.outcome.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat()
        }


class AccessAuditLog:
    """
    Thread-safe audit trail.

    Tracks:
    - Every mediated operation (bounded by max_records)
    - Outcome counts per record type
    """

    def __init__(self, max_records: int = 10000, log_level: LogLevel = LogLevel.INFO):
        """
        Initialize audit log.

        Args:
            max_records: Maximum records to keep in memory
            log_level: Logging level for the audit logger
        """
        self.max_records = max_records
        self.records: List[AuditRecord] = []
        self.outcome_counts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self.logger = StructuredLogger("audit", log_level)
        self._lock = threading.RLock()

    def record(
        self,
        operation: str,
        record_type: Optional[str],
        scope: str,
        outcome: AuditOutcome,
        **details: Any
    ) -> AuditRecord:
        """
        Append an audit record.

        Args:
            operation: insert, update or delete
            record_type: Record type name (None if the record was missing)
            scope: Visibility scope the operation ran under
            outcome: How the operation ended
            **details: Extra context (field names, violation data)
        """
        entry = AuditRecord(operation, record_type, scope, outcome, details)

        with self._lock:
            self.records.append(entry)
            if len(self.records) > self.max_records:
                self.records = self.records[-self.max_records:]

            self.outcome_counts[record_type or "<none>"][outcome.value] += 1

        if outcome == AuditOutcome.VIOLATION:
            self.logger.info(
                "Access violation audited",
                operation=operation,
                record_type=record_type,
                scope=scope,
                **details
            )

        return entry

    def get_records(
        self,
        record_type: Optional[str] = None,
        outcome: Optional[AuditOutcome] = None,
        limit: Optional[int] = None
    ) -> List[AuditRecord]:
        """
        Get audit records, newest last.

        Args:
            record_type: Filter by record type
            outcome: Filter by outcome
            limit: Keep only the most recent N matches
        """
        with self._lock:
            records = list(self.records)

        if record_type is not None:
            records = [r for r in records if r.record_type == record_type]
        if outcome is not None:
            records = [r for r in records if r.outcome == outcome]
        if limit is not None:
            records = records[-limit:] if limit > 0 else []

        return records

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize outcome counts."""
        with self._lock:
            by_type = {k: dict(v) for k, v in self.outcome_counts.items()}
            total = len(self.records)

        totals: Dict[str, int] = defaultdict(int)
        for counts in by_type.values():
            for outcome, count in counts.items():
                totals[outcome] += count

        return {
            "records_in_memory": total,
            "by_outcome": dict(totals),
            "by_record_type": by_type,
        }

    def clear(self) -> None:
        """Drop all records and counts."""
        with self._lock:
            self.records.clear()
            self.outcome_counts.clear()
