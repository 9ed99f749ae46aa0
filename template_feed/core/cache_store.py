"""
Template cache store.

Cache-aside storage for normalized templates, keyed by (template_id, source).
Writes are upserts that refresh fetched_at/expires_at; reads filter by
expiry and age. PostgresCacheStore persists to the project_templates_cache
table; InMemoryCacheStore keeps rows in process for local runs and tests.

All methods are synchronous. The orchestrator calls them through
asyncio.to_thread.
"""
import logging
import math
import re
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import psycopg2
from psycopg2.extras import Json, RealDictCursor, execute_values
from pydantic import ValidationError

from template_feed.models import CacheEntry, ProjectTemplate

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_TABLE = "project_templates_cache"

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _dedupe_batch(templates: Iterable[ProjectTemplate]) -> List[ProjectTemplate]:
    """Collapse duplicate ids within one write; the last occurrence wins"""
    by_id: Dict[str, ProjectTemplate] = {}
    for template in templates:
        by_id[template.id] = template
    return list(by_id.values())


def _age_cutoff(now: datetime, max_age: Optional[float]) -> Optional[datetime]:
    if max_age is None or math.isinf(max_age):
        return None
    return now - timedelta(seconds=max_age)


class CacheStore(ABC):
    """Interface shared by every cache backend"""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = utcnow):
        self.ttl = ttl
        self.clock = clock

    def get(
        self,
        max_age: Optional[float] = None,
        source: Optional[str] = None,
        include_expired: bool = False,
    ) -> List[ProjectTemplate]:
        """
        Read cached templates, newest first.

        Args:
            max_age: Only rows fetched within this many seconds (None or inf: any age)
            source: Restrict to one source
            include_expired: Also return rows past expires_at (stale reads)
        """
        return [entry.template_data for entry in self.get_entries(max_age, source, include_expired)]

    @abstractmethod
    def get_entries(
        self,
        max_age: Optional[float] = None,
        source: Optional[str] = None,
        include_expired: bool = False,
    ) -> List[CacheEntry]:
        pass

    @abstractmethod
    def set(self, templates: List[ProjectTemplate], source: str, source_url: Optional[str] = None) -> int:
        """Upsert templates for a source; returns the number of rows written"""
        pass

    @abstractmethod
    def invalidate(self, source: Optional[str] = None) -> int:
        """Delete one source's rows, or every row; returns the number deleted"""
        pass

    @abstractmethod
    def cleanup(self) -> int:
        """Delete expired rows; returns the number deleted"""
        pass

    def ensure_schema(self):
        pass


class InMemoryCacheStore(CacheStore):
    """Process-local cache store"""

    def __init__(self, ttl: float = DEFAULT_TTL_SECONDS, clock: Callable[[], datetime] = utcnow):
        super().__init__(ttl=ttl, clock=clock)
        self._rows: Dict[Tuple[str, str], CacheEntry] = {}
        self._lock = threading.Lock()

    def get_entries(self, max_age=None, source=None, include_expired=False) -> List[CacheEntry]:
        now = self.clock()
        cutoff = _age_cutoff(now, max_age)
        with self._lock:
            rows = list(self._rows.values())

        entries = [
            entry for entry in rows
            if (include_expired or not entry.is_stale(now))
            and (cutoff is None or entry.fetched_at >= cutoff)
            and (source is None or entry.source == source)
        ]
        entries.sort(key=lambda entry: entry.fetched_at, reverse=True)
        return entries

    def put_entry(self, entry: CacheEntry):
        """Insert a row with explicit timestamps (seeding and tests)"""
        with self._lock:
            self._rows[(entry.template_id, entry.source)] = entry

    def set(self, templates, source, source_url=None) -> int:
        now = self.clock()
        expires_at = now + timedelta(seconds=self.ttl)
        batch = _dedupe_batch(templates)
        with self._lock:
            for template in batch:
                self._rows[(template.id, source)] = CacheEntry(
                    template_id=template.id,
                    source=source,
                    template_data=template,
                    source_url=source_url,
                    fetched_at=now,
                    expires_at=expires_at,
                )
        logger.info(f"[cache] Stored {len(batch)} templates for {source}")
        return len(batch)

    def invalidate(self, source=None) -> int:
        with self._lock:
            keys = [key for key in self._rows if source is None or key[1] == source]
            for key in keys:
                del self._rows[key]
        logger.info(f"[cache] Invalidated {len(keys)} rows ({source or 'all sources'})")
        return len(keys)

    def cleanup(self) -> int:
        now = self.clock()
        with self._lock:
            keys = [key for key, entry in self._rows.items() if entry.is_stale(now)]
            for key in keys:
                del self._rows[key]
        if keys:
            logger.info(f"[cache] Cleaned up {len(keys)} expired rows")
        return len(keys)

    def __len__(self) -> int:
        return len(self._rows)


class PostgresCacheStore(CacheStore):
    """Cache rows in PostgreSQL, one row per (template_id, source)"""

    def __init__(
        self,
        db_url: str,
        table: str = DEFAULT_TABLE,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utcnow,
        connect_timeout: int = 5,
    ):
        super().__init__(ttl=ttl, clock=clock)
        if not _IDENTIFIER_RE.match(table):
            raise ValueError(f"Invalid cache table name: {table!r}")
        self.db_url = db_url
        self.table = table
        self.connect_timeout = connect_timeout

    def _get_db_conn(self):
        """Get database connection"""
        return psycopg2.connect(self.db_url, connect_timeout=self.connect_timeout)

    def ensure_schema(self):
        conn = self._get_db_conn()
        try:
            with conn.cursor() as cur:
                cur.execute(f"""
                    CREATE TABLE IF NOT EXISTS {self.table} (
                        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                        template_id TEXT NOT NULL,
                        template_data JSONB NOT NULL,
                        source TEXT NOT NULL,
                        source_url TEXT,
                        fetched_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        expires_at TIMESTAMPTZ NOT NULL,
                        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                        UNIQUE (template_id, source)
                    )
                """)
                cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{self.table}_expires_at ON {self.table} (expires_at)")
                cur.execute(f"CREATE INDEX IF NOT EXISTS idx_{self.table}_source ON {self.table} (source)")
            conn.commit()
            logger.info(f"[cache] Ensured schema for {self.table}")
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_entries(self, max_age=None, source=None, include_expired=False) -> List[CacheEntry]:
        now = self.clock()
        cutoff = _age_cutoff(now, max_age)

        conditions = []
        params: list = []
        if not include_expired:
            conditions.append("expires_at >= %s")
            params.append(now)
        if cutoff is not None:
            conditions.append("fetched_at >= %s")
            params.append(cutoff)
        if source:
            conditions.append("source = %s")
            params.append(source)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        conn = self._get_db_conn()
        try:
            with conn.cursor(cursor_factory=RealDictCursor) as cur:
                cur.execute(f"""
                    SELECT template_id, source, template_data, source_url, fetched_at, expires_at
                    FROM {self.table}
                    {where}
                    ORDER BY fetched_at DESC
                """, params)
                rows = cur.fetchall()
        finally:
            conn.close()

        entries = []
        for row in rows:
            try:
                entries.append(CacheEntry(**row))
            except ValidationError as e:
                logger.warning(f"[cache] Skipping unreadable row {row.get('template_id')} ({row.get('source')}): {e}")
        return entries

    def set(self, templates, source, source_url=None) -> int:
        batch = _dedupe_batch(templates)
        if not batch:
            return 0

        now = self.clock()
        expires_at = now + timedelta(seconds=self.ttl)
        values = [
            (t.id, Json(t.to_dict()), source, source_url, now, expires_at, now)
            for t in batch
        ]

        conn = self._get_db_conn()
        try:
            with conn.cursor() as cur:
                execute_values(cur, f"""
                    INSERT INTO {self.table}
                        (template_id, template_data, source, source_url, fetched_at, expires_at, updated_at)
                    VALUES %s
                    ON CONFLICT (template_id, source) DO UPDATE SET
                        template_data = EXCLUDED.template_data,
                        source_url = EXCLUDED.source_url,
                        fetched_at = EXCLUDED.fetched_at,
                        expires_at = EXCLUDED.expires_at,
                        updated_at = EXCLUDED.updated_at
                """, values)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info(f"[cache] Upserted {len(batch)} templates for {source}")
        return len(batch)

    def _delete(self, where: str, params: tuple) -> int:
        conn = self._get_db_conn()
        try:
            with conn.cursor() as cur:
                cur.execute(f"DELETE FROM {self.table} {where}", params)
                deleted = cur.rowcount
            conn.commit()
            return deleted
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def invalidate(self, source=None) -> int:
        if source:
            deleted = self._delete("WHERE source = %s", (source,))
        else:
            deleted = self._delete("", ())
        logger.info(f"[cache] Invalidated {deleted} rows ({source or 'all sources'})")
        return deleted

    def cleanup(self) -> int:
        deleted = self._delete("WHERE expires_at < %s", (self.clock(),))
        if deleted:
            logger.info(f"[cache] Cleaned up {deleted} expired rows")
        return deleted
