"""
Observability Event Contracts

Immutable records produced by the engine for the observability layer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Tuple


class AuditEventType(Enum):
    KNOWLEDGE_BASE_LOADED = "knowledge_base_loaded"
    INTERPRETATION_RESOLVED = "interpretation_resolved"
    INTERPRETATION_NOT_FOUND = "interpretation_not_found"
    PRINCIPLE_RENDERED = "principle_rendered"


@dataclass(frozen=True)
class AuditLogEntry:
    """One recorded engine event."""
    event_type: AuditEventType
    timestamp: datetime
    subject: str
    details: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def record(event_type: AuditEventType, subject: str, **details: object) -> AuditLogEntry:
        return AuditLogEntry(
            event_type=event_type,
            timestamp=datetime.now(timezone.utc),
            subject=subject,
            details=tuple((key, str(value)) for key, value in sorted(details.items()))
        )


@dataclass(frozen=True)
class MetricPoint:
    """A single metric data point."""
    metric_name: str
    value: float
    timestamp: datetime
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
