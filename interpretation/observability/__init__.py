"""
Observability Layer

RESPONSIBILITY: Logging setup, audit trail, resolution metrics
ALLOWED INPUTS: AuditLogEntry records from the engine
OUTPUTS: Read-only audit entries, metric points and aggregates

WHAT THIS LAYER MUST NOT DO:
============================
- Modify resolution or normalization behavior
- Filter or interpret the events it records
- Block callers beyond a short critical section

BOUNDARY ENFORCEMENT:
=====================
The engine hands over immutable entries. Collectors are append-only,
bounded and lock-protected so that concurrent requests can record safely.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple
from enum import Enum
import json
import logging
import sys
import threading

from ..contracts.events import AuditEventType, AuditLogEntry, MetricPoint


# =============================================================================
# LOGGING SETUP
# =============================================================================

class JSONFormatter(logging.Formatter):
    """Single-line JSON log records, readable with jq."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for attr in ('pattern', 'reason', 'combination_index', 'error_code'):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging(log_level: str = 'INFO', log_format: str = 'text') -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_format: 'json' for machine-readable lines, anything else for text
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger('interpretation')
    logger.setLevel(numeric_level)
    logger.handlers = []

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    if log_format == 'json':
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
    logger.addHandler(handler)
    return logger


# =============================================================================
# AUDIT LOG
# =============================================================================

class LogCollector:
    """
    Append-only audit collector.

    Keeps the most recent `max_entries` entries; older ones fall off.
    """

    def __init__(self, max_entries: int = 10000):
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._lock = threading.Lock()

    def collect(self, entry: AuditLogEntry):
        with self._lock:
            self._entries.append(entry)

    def get_entries(self, event_type: Optional[AuditEventType] = None) -> List[AuditLogEntry]:
        with self._lock:
            entries = list(self._entries)
        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        return entries


# =============================================================================
# METRICS
# =============================================================================

class MetricType(Enum):
    COUNTER = "counter"
    TIMING = "timing"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


@dataclass
class RunningAggregate:
    """Count, sum and extremes over every value ever recorded for a metric."""
    count: int = 0
    sum: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None

    def add(self, value: float):
        self.count += 1
        self.sum += value
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)

    def to_dict(self) -> Dict[str, float]:
        if not self.count:
            return {}
        return {
            'count': self.count,
            'sum': self.sum,
            'min': self.min,
            'max': self.max,
            'avg': self.sum / self.count,
        }


class MetricsCollector:
    """
    Counters and timings for resolution outcomes.

    Raw points are kept per metric in a window of the most recent
    `max_points`; aggregates are running and cover the whole lifetime.
    """

    def __init__(self, max_points: int = 1000):
        self._max_points = max_points
        self._metrics: Dict[str, Deque[MetricPoint]] = {}
        self._aggregates: Dict[str, RunningAggregate] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._lock = threading.Lock()
        self._register_default_metrics()

    def _register_default_metrics(self):
        defaults = [
            MetricDefinition(
                name="interpretations_resolved_total",
                metric_type=MetricType.COUNTER,
                description="Classifications resolved to a rendered view",
                labels=("pattern",)
            ),
            MetricDefinition(
                name="interpretations_not_found_total",
                metric_type=MetricType.COUNTER,
                description="Classifications with no interpretation",
                labels=("pattern", "reason")
            ),
            MetricDefinition(
                name="view_assembly_duration_ms",
                metric_type=MetricType.TIMING,
                description="Resolve plus normalize time in milliseconds"
            ),
        ]
        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        with self._lock:
            self._definitions[definition.name] = definition
            self._ensure_series(definition.name)

    def _ensure_series(self, metric_name: str) -> Deque[MetricPoint]:
        # Caller holds the lock
        if metric_name not in self._metrics:
            self._metrics[metric_name] = deque(maxlen=self._max_points)
            self._aggregates[metric_name] = RunningAggregate()
        return self._metrics[metric_name]

    def record(self, metric_name: str, value: float, labels: Optional[Dict[str, str]] = None):
        label_tuple = tuple(sorted(labels.items())) if labels else ()
        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=datetime.now(timezone.utc),
            labels=label_tuple
        )
        with self._lock:
            self._ensure_series(metric_name).append(point)
            self._aggregates[metric_name].add(value)

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        """The retained window of raw points, oldest first."""
        with self._lock:
            return list(self._metrics.get(metric_name, ()))

    def total(self, metric_name: str, **labels: str) -> float:
        """
        Sum of a metric's points whose labels include `labels`.

        Without labels this is the lifetime sum. A label filter can only
        see the retained window.
        """
        if not labels:
            with self._lock:
                aggregate = self._aggregates.get(metric_name)
                return aggregate.sum if aggregate else 0
        wanted = set(labels.items())
        return sum(
            p.value for p in self.get_metric(metric_name)
            if wanted.issubset(set(p.labels))
        )

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        with self._lock:
            aggregate = self._aggregates.get(metric_name)
            return aggregate.to_dict() if aggregate else {}

    def snapshot(self) -> Dict[str, Dict[str, float]]:
        with self._lock:
            return {name: self._aggregates[name].to_dict() for name in self._definitions}


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_audit: bool = True
    enable_metrics: bool = True
    max_audit_entries: int = 10000
    max_metric_points: int = 1000


class ObservabilityEngine:
    """Receives engine events; never influences results."""

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._audit = LogCollector(self._config.max_audit_entries) if self._config.enable_audit else None
        self._metrics = (
            MetricsCollector(self._config.max_metric_points) if self._config.enable_metrics else None
        )

    def collect_audit(self, entry: AuditLogEntry):
        if self._audit:
            self._audit.collect(entry)

    def record_metric(self, metric_name: str, value: float, labels: Optional[Dict[str, str]] = None):
        if self._metrics:
            self._metrics.record(metric_name, value, labels)

    def get_audit_log(self, event_type: Optional[AuditEventType] = None) -> List[AuditLogEntry]:
        return self._audit.get_entries(event_type) if self._audit else []

    @property
    def metrics(self) -> Optional[MetricsCollector]:
        return self._metrics


__all__ = [
    'setup_logging', 'JSONFormatter',
    'LogCollector', 'MetricsCollector', 'MetricDefinition', 'MetricType', 'RunningAggregate',
    'ObservabilityConfig', 'ObservabilityEngine',
]
