"""
Template fetch orchestrator.

Coordinates one fetch_all call end to end:
1. Coalesce identical concurrent requests onto one task
2. Serve from cache when fresh entries exist
3. Otherwise fan out to every source in parallel, each guarded by its
   circuit breaker and retry policy
4. Merge and dedupe by id, then write each source's results back to cache
5. On an empty or failed run, fall back to stale cache, then to the static
   fallback dataset

A background maintenance task (start/shutdown) purges old in-flight entries
and periodically deletes expired cache rows.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from template_feed.config import FetcherConfig
from template_feed.core.cache_store import CacheStore, InMemoryCacheStore, PostgresCacheStore
from template_feed.core.circuit_breaker import CircuitBreaker
from template_feed.core.errors import AllSourcesFailedError, FetchTimeoutError, UnknownSourceError
from template_feed.core.net import HTTPClient
from template_feed.core.retry import RetryPolicy
from template_feed.metrics import FetchMetrics, MetricsRecorder
from template_feed.models import ProjectTemplate
from template_feed.pipeline.fallbacks import FALLBACK_TEMPLATES
from template_feed.pipeline.parser import TemplateParser
from template_feed.sources.registry import SourceRegistry, build_default_registry

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE = 24 * 60 * 60.0

STATUS_OK = "ok"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"


@dataclass
class FetchOptions:
    """Options for one fetch_all call. Durations are in seconds."""

    max_age: float = DEFAULT_MAX_AGE
    timeout: Optional[float] = None
    fallback_on_error: bool = True
    force_refresh: bool = False
    source: Optional[str] = None

    def request_key(self) -> str:
        return f"{self.source or 'all'}-{str(self.force_refresh).lower()}"


@dataclass
class SourceOutcome:
    source: str
    status: str
    templates: List[ProjectTemplate] = field(default_factory=list)
    attempts: int = 0
    error: Optional[str] = None
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class FetchRun:
    """What the shared fetch task produced, before fallbacks"""

    templates: List[ProjectTemplate]
    outcomes: List[SourceOutcome] = field(default_factory=list)
    cache_hit: bool = False

    @property
    def all_failed(self) -> bool:
        return bool(self.outcomes) and not any(o.status == STATUS_OK for o in self.outcomes)

    def errors(self) -> Dict[str, str]:
        return {o.source: o.error or o.status for o in self.outcomes if o.status != STATUS_OK}


@dataclass
class FetchResult:
    templates: List[ProjectTemplate]
    metrics: FetchMetrics

    @property
    def cached(self) -> bool:
        return self.metrics.cache_hit or self.metrics.outcome == "stale_cache"


@dataclass
class InFlightRequest:
    task: "asyncio.Task[FetchRun]"
    timestamp: float


def merge_templates(outcomes: List[SourceOutcome]) -> List[ProjectTemplate]:
    """Concatenate per-source results in source order, keeping the first occurrence of each id"""
    seen = set()
    merged = []
    for outcome in outcomes:
        for template in outcome.templates:
            if template.id not in seen:
                seen.add(template.id)
                merged.append(template)
    return merged


def _log_task_exception(task: asyncio.Task):
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error(f"[orchestrator] Shared fetch task failed: {error}")


class TemplateOrchestrator:
    """Resilient multi-source template fetcher"""

    def __init__(
        self,
        sources: SourceRegistry,
        store: CacheStore,
        config: Optional[FetcherConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[HTTPClient] = None,
        metrics: Optional[MetricsRecorder] = None,
        clock: Callable[[], float] = time.monotonic,
        fallback_templates: Optional[List[ProjectTemplate]] = None,
    ):
        """
        Args:
            sources: Registry of source adapters to fan out to
            store: Cache store backend
            config: Settings (read from the environment when omitted)
            retry_policy: Per-source retry policy
            http_client: Shared HTTP client, closed on shutdown
            metrics: Metrics recorder
            clock: Monotonic clock in seconds, for breakers and coalescing
            fallback_templates: Static dataset of last resort
        """
        self.config = config or FetcherConfig()
        self.sources = sources
        self.store = store
        self.http_client = http_client
        self.clock = clock
        self.retry_policy = retry_policy or RetryPolicy(
            max_attempts=self.config.max_retries,
            initial_backoff=self.config.initial_backoff,
            max_backoff=self.config.max_backoff,
            default_retry_after=self.config.default_retry_after,
        )
        self.metrics = metrics or MetricsRecorder(self.config.metrics_history)
        self.fallback_templates = list(fallback_templates if fallback_templates is not None else FALLBACK_TEMPLATES)

        self._breakers: Dict[str, CircuitBreaker] = {}
        for name in self.sources.names():
            self._breaker(name)
        self._in_flight: Dict[str, InFlightRequest] = {}
        self._maintenance_task: Optional[asyncio.Task] = None
        self.running = False

    @property
    def source_names(self) -> List[str]:
        return self.sources.names()

    def _breaker(self, name: str) -> CircuitBreaker:
        breaker = self._breakers.get(name)
        if breaker is None:
            breaker = CircuitBreaker(
                name,
                threshold=self.config.breaker_threshold,
                cooldown=self.config.breaker_cooldown,
                clock=self.clock,
            )
            self._breakers[name] = breaker
        return breaker

    async def fetch_all(self, options: Optional[FetchOptions] = None) -> List[ProjectTemplate]:
        """
        Fetch templates from cache or live sources.

        With fallback_on_error (the default) this never raises and returns
        stale cache or the fallback dataset when live data is unavailable.

        Raises (only with fallback_on_error=False):
            FetchTimeoutError: the overall timeout elapsed
            AllSourcesFailedError: every attempted source failed or was skipped
        """
        result = await self.fetch(options)
        return result.templates

    async def fetch(self, options: Optional[FetchOptions] = None) -> FetchResult:
        """Like fetch_all, also returning the metrics recorded for the call"""
        options = options or FetchOptions()
        timeout = self.config.fetch_timeout if options.timeout is None else options.timeout
        request_key = options.request_key()
        started = time.perf_counter()

        task, coalesced = self._get_or_start(request_key, options)
        metrics = FetchMetrics(request_key=request_key, outcome="error", total_duration=0.0, coalesced=coalesced)

        run: Optional[FetchRun] = None
        error: Optional[Exception] = None
        templates: List[ProjectTemplate] = []

        try:
            try:
                run = await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
            except asyncio.TimeoutError:
                error = FetchTimeoutError(timeout)
                logger.warning(f"[orchestrator] {request_key} timed out after {timeout}s")
            except Exception as e:
                error = e
                logger.error(f"[orchestrator] {request_key} failed: {e}", exc_info=True)

            if run is not None:
                self._fill_source_metrics(metrics, run)
                templates = run.templates
                if templates:
                    metrics.outcome = "cache_hit" if run.cache_hit else "live"
                    metrics.cache_hit = run.cache_hit

            if not templates:
                if options.fallback_on_error:
                    templates, metrics.outcome = await self._fallback()
                    metrics.fallback_used = metrics.outcome == "fallback"
                elif error is not None:
                    metrics.error = str(error)
                    raise error
                elif run is not None and run.all_failed:
                    error = AllSourcesFailedError(run.errors())
                    metrics.error = str(error)
                    raise error
                else:
                    metrics.outcome = "empty"

            if error is not None:
                metrics.error = str(error)
            return FetchResult(templates=templates, metrics=metrics)
        finally:
            metrics.total_duration = time.perf_counter() - started
            metrics.templates_returned = len(templates)
            self.metrics.record(metrics)

    def _get_or_start(self, request_key: str, options: FetchOptions):
        now = self.clock()
        if not options.force_refresh:
            in_flight = self._in_flight.get(request_key)
            if in_flight is not None and now - in_flight.timestamp < self.config.dedup_window:
                logger.info(f"[orchestrator] Coalescing {request_key} onto in-flight request")
                return in_flight.task, True

        task = asyncio.create_task(self._execute_fetch(options))
        task.add_done_callback(_log_task_exception)
        self._in_flight[request_key] = InFlightRequest(task=task, timestamp=now)
        return task, False

    async def _execute_fetch(self, options: FetchOptions) -> FetchRun:
        if not options.force_refresh:
            cached = await self._read_cache(options.max_age, options.source)
            if cached:
                logger.info(f"[orchestrator] Cache hit: {len(cached)} templates")
                return FetchRun(templates=cached, cache_hit=True)

        names = [options.source] if options.source else self.sources.names()
        logger.info(f"[orchestrator] Fetching from {len(names)} source(s): {', '.join(names)}")

        results = await asyncio.gather(
            *(self.fetch_from_source(name) for name in names),
            return_exceptions=True,
        )

        outcomes: List[SourceOutcome] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"[orchestrator] {name} raised unexpectedly: {result}")
                outcomes.append(SourceOutcome(source=name, status=STATUS_FAILED, error=str(result)))
            else:
                outcomes.append(result)

        templates = merge_templates(outcomes)
        await self._write_through(outcomes)

        logger.info(
            f"[orchestrator] Live fetch complete: {len(templates)} templates from "
            f"{sum(1 for o in outcomes if o.status == STATUS_OK)}/{len(outcomes)} sources"
        )
        return FetchRun(templates=templates, outcomes=outcomes)

    async def fetch_from_source(self, name: str) -> SourceOutcome:
        """Fetch and parse one source under its circuit breaker and retry policy"""
        adapter = self.sources.get(name)
        if adapter is None:
            error = UnknownSourceError(name)
            logger.warning(f"[orchestrator] {error}")
            return SourceOutcome(source=name, status=STATUS_FAILED, error=str(error))

        breaker = self._breaker(name)
        if breaker.is_open():
            logger.info(f"[orchestrator] Skipping {name}: circuit open")
            self.metrics.record_source(name, STATUS_SKIPPED)
            return SourceOutcome(source=name, status=STATUS_SKIPPED)

        attempts = 0

        async def attempt():
            nonlocal attempts
            attempts += 1
            return await adapter.fetch()

        try:
            raw_items = await self.retry_policy.call(attempt, label=name)
        except Exception as e:
            breaker.record_failure()
            self.metrics.record_source(name, STATUS_FAILED)
            logger.error(f"[orchestrator] {name} failed after {attempts} attempt(s): {e}")
            return SourceOutcome(source=name, status=STATUS_FAILED, attempts=attempts, error=str(e))

        breaker.record_success()
        self.metrics.record_source(name, STATUS_OK)

        templates = [t for t in (adapter.parse(raw) for raw in raw_items) if t is not None]
        dropped = len(raw_items) - len(templates)
        if dropped:
            logger.info(f"[orchestrator] {name}: dropped {dropped} unparseable record(s)")
        return SourceOutcome(source=name, status=STATUS_OK, templates=templates, attempts=attempts)

    async def _read_cache(self, max_age: Optional[float], source: Optional[str], include_expired: bool = False) -> List[ProjectTemplate]:
        try:
            return await asyncio.to_thread(self.store.get, max_age, source, include_expired)
        except Exception as e:
            logger.error(f"[cache] Read failed, treating as miss: {e}")
            return []

    async def _write_through(self, outcomes: List[SourceOutcome]):
        async def write(outcome: SourceOutcome):
            adapter = self.sources.get(outcome.source)
            source_url = adapter.url if adapter is not None else None
            try:
                await asyncio.to_thread(self.store.set, outcome.templates, outcome.source, source_url)
            except Exception as e:
                logger.error(f"[cache] Write for {outcome.source} failed: {e}")

        await asyncio.gather(*(write(o) for o in outcomes if o.status == STATUS_OK and o.templates))

    async def _fallback(self):
        stale = await self._read_cache(None, None, include_expired=True)
        if stale:
            logger.warning(f"[orchestrator] Returning {len(stale)} stale cached templates")
            return stale, "stale_cache"

        logger.warning("[orchestrator] Returning static fallback templates")
        return list(self.fallback_templates), "fallback"

    @staticmethod
    def _fill_source_metrics(metrics: FetchMetrics, run: FetchRun):
        metrics.sources_attempted = sum(1 for o in run.outcomes if o.status != STATUS_SKIPPED)
        metrics.sources_succeeded = sum(1 for o in run.outcomes if o.status == STATUS_OK)
        metrics.sources_failed = sum(1 for o in run.outcomes if o.status == STATUS_FAILED)
        metrics.sources_skipped = sum(1 for o in run.outcomes if o.status == STATUS_SKIPPED)

    async def invalidate_cache(self, source: Optional[str] = None) -> int:
        return await asyncio.to_thread(self.store.invalidate, source)

    async def cleanup_cache(self) -> int:
        return await asyncio.to_thread(self.store.cleanup)

    def purge_in_flight(self) -> int:
        """Drop in-flight entries older than twice the coalescing window"""
        now = self.clock()
        expired = [
            key for key, request in self._in_flight.items()
            if now - request.timestamp > self.config.dedup_window * 2
        ]
        for key in expired:
            del self._in_flight[key]
        if expired:
            logger.debug(f"[orchestrator] Purged {len(expired)} in-flight entries")
        return len(expired)

    def breaker_status(self) -> List[Dict]:
        return [breaker.snapshot() for breaker in self._breakers.values()]

    def get_metrics(self) -> List[Dict]:
        return [m.to_dict() for m in self.metrics.history()]

    async def _maintenance_loop(self):
        last_cleanup_time = self.clock()
        while self.running:
            try:
                await asyncio.sleep(self.config.sweep_interval)
                self.purge_in_flight()

                if self.clock() - last_cleanup_time >= self.config.cache_cleanup_interval:
                    deleted = await self.cleanup_cache()
                    logger.info(f"[orchestrator] Periodic cache cleanup removed {deleted} rows")
                    last_cleanup_time = self.clock()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"[orchestrator] Maintenance loop error: {e}", exc_info=True)

    def start(self):
        """Start the background maintenance task (requires a running event loop)"""
        if self._maintenance_task is not None and not self._maintenance_task.done():
            logger.warning("[orchestrator] Maintenance task already running")
            return
        self.running = True
        self._maintenance_task = asyncio.create_task(self._maintenance_loop())
        logger.info("[orchestrator] Maintenance task started")

    async def shutdown(self):
        """Stop background work, drop in-flight and metrics state, close the HTTP client"""
        self.running = False
        if self._maintenance_task is not None:
            self._maintenance_task.cancel()
            try:
                await self._maintenance_task
            except asyncio.CancelledError:
                pass
            self._maintenance_task = None

        for request in self._in_flight.values():
            if not request.task.done():
                request.task.cancel()
        self._in_flight.clear()
        self.metrics.clear()

        if self.http_client is not None:
            await self.http_client.aclose()
        logger.info("[orchestrator] Shut down")


def create_orchestrator(config: Optional[FetcherConfig] = None) -> TemplateOrchestrator:
    """Wire the default sources, cache store and HTTP client from config"""
    config = config or FetcherConfig()
    http_client = HTTPClient(user_agent=config.user_agent, timeout=config.source_timeout)
    registry = build_default_registry(http_client, TemplateParser(), timeout=config.source_timeout)

    if config.use_database:
        store: CacheStore = PostgresCacheStore(config.db_url, table=config.cache_table, ttl=config.cache_ttl)
    else:
        store = InMemoryCacheStore(ttl=config.cache_ttl)

    return TemplateOrchestrator(registry, store, config=config, http_client=http_client)
