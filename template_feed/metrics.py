"""
Fetch metrics.

Every fetch_all call produces one FetchMetrics record. The last N records
are kept in memory for the status endpoint, and Prometheus counters are
updated for scraping.
"""
import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 100

fetch_total = Counter(
    "template_feed_fetch_total",
    "Template fetch_all calls by outcome",
    ["outcome"],
)
source_fetch_total = Counter(
    "template_feed_source_fetch_total",
    "Per-source fetch results",
    ["source", "status"],
)
fetch_duration = Histogram(
    "template_feed_fetch_duration_seconds",
    "Duration of template fetch_all calls",
)


@dataclass
class FetchMetrics:
    request_key: str
    outcome: str
    total_duration: float
    sources_attempted: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    sources_skipped: int = 0
    templates_returned: int = 0
    cache_hit: bool = False
    fallback_used: bool = False
    coalesced: bool = False
    error: Optional[str] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class MetricsRecorder:
    """Bounded history of fetch metrics plus Prometheus export"""

    def __init__(self, max_history: int = DEFAULT_HISTORY_SIZE):
        self._history: Deque[FetchMetrics] = deque(maxlen=max_history)

    def record(self, metrics: FetchMetrics):
        self._history.append(metrics)
        fetch_total.labels(outcome=metrics.outcome).inc()
        fetch_duration.observe(metrics.total_duration)
        logger.info(
            f"[metrics] {metrics.request_key} outcome={metrics.outcome} "
            f"duration={metrics.total_duration * 1000:.0f}ms "
            f"sources={metrics.sources_succeeded}/{metrics.sources_attempted} "
            f"failed={metrics.sources_failed} skipped={metrics.sources_skipped} "
            f"templates={metrics.templates_returned} coalesced={metrics.coalesced}"
        )

    def record_source(self, source: str, status: str):
        source_fetch_total.labels(source=source, status=status).inc()

    def history(self) -> List[FetchMetrics]:
        return list(self._history)

    def latest(self) -> Optional[FetchMetrics]:
        return self._history[-1] if self._history else None

    def summary(self) -> Dict[str, Any]:
        """Aggregate view over the retained history"""
        history = list(self._history)
        total = len(history)
        if not total:
            return {"calls": 0, "cache_hit_rate": 0.0, "fallback_rate": 0.0, "avg_duration": 0.0}
        return {
            "calls": total,
            "cache_hit_rate": sum(1 for m in history if m.cache_hit) / total,
            "fallback_rate": sum(1 for m in history if m.fallback_used) / total,
            "avg_duration": sum(m.total_duration for m in history) / total,
        }

    def clear(self):
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
