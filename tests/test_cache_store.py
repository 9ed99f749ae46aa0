"""
Tests for the cache store backends.
"""
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from template_feed.core.cache_store import InMemoryCacheStore, PostgresCacheStore
from template_feed.models import CacheEntry, ProjectTemplate


def template(template_id, name=None, description="A project"):
    return ProjectTemplate(id=template_id, name=name or template_id, description=description)


class TestInMemoryCacheStore:
    def test_set_then_get(self, store):
        store.set([template("devto-a"), template("devto-b")], "devto", "https://dev.to/t/tutorial")

        assert {t.id for t in store.get()} == {"devto-a", "devto-b"}
        entry = store.get_entries()[0]
        assert entry.source_url == "https://dev.to/t/tutorial"
        assert entry.expires_at - entry.fetched_at == timedelta(hours=24)

    def test_upsert_overwrites_instead_of_appending(self, store, utc_clock):
        store.set([template("devto-a", description="old")], "devto")
        utc_clock.advance(hours=1)
        store.set([template("devto-a", description="new")], "devto")

        entries = store.get_entries()
        assert len(entries) == 1
        assert entries[0].template_data.description == "new"
        assert entries[0].fetched_at == utc_clock.now

    def test_same_id_under_different_sources_are_distinct(self, store):
        store.set([template("x")], "devto")
        store.set([template("x")], "roadmap")
        assert len(store) == 2

    def test_duplicate_ids_in_one_batch_last_wins(self, store):
        store.set([template("devto-a", description="first"), template("devto-a", description="second")], "devto")

        entries = store.get_entries()
        assert len(entries) == 1
        assert entries[0].template_data.description == "second"

    def test_expired_rows_are_hidden(self, store, utc_clock):
        store.set([template("devto-a")], "devto")
        utc_clock.advance(hours=25)

        assert store.get() == []
        assert [t.id for t in store.get(include_expired=True)] == ["devto-a"]

    def test_max_age_filter(self, store, utc_clock):
        store.set([template("devto-old")], "devto")
        utc_clock.advance(hours=3)
        store.set([template("devto-new")], "devto")

        assert [t.id for t in store.get(max_age=2 * 3600)] == ["devto-new"]
        assert [t.id for t in store.get(max_age=float("inf"))] == ["devto-new", "devto-old"]

    def test_source_filter(self, store):
        store.set([template("devto-a")], "devto")
        store.set([template("roadmap-a")], "roadmap")

        assert [t.id for t in store.get(source="roadmap")] == ["roadmap-a"]

    def test_invalidate_one_source(self, store):
        store.set([template("devto-a")], "devto")
        store.set([template("roadmap-a"), template("roadmap-b")], "roadmap")

        assert store.invalidate("roadmap") == 2
        assert [t.id for t in store.get()] == ["devto-a"]

    def test_invalidate_all(self, store):
        store.set([template("devto-a")], "devto")
        store.set([template("roadmap-a")], "roadmap")

        assert store.invalidate() == 2
        assert store.get() == []

    def test_cleanup_removes_only_expired(self, store, utc_clock):
        store.set([template("devto-old")], "devto")
        utc_clock.advance(hours=23)
        store.set([template("devto-new")], "devto")
        utc_clock.advance(hours=2)

        assert store.cleanup() == 1
        assert [t.id for t in store.get(include_expired=True)] == ["devto-new"]

    def test_custom_ttl(self, utc_clock):
        store = InMemoryCacheStore(ttl=60, clock=utc_clock)
        store.set([template("devto-a")], "devto")
        utc_clock.advance(seconds=61)
        assert store.get() == []


@pytest.fixture
def pg_conn():
    conn = MagicMock()
    cursor = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    with patch("template_feed.core.cache_store.psycopg2.connect", return_value=conn) as connect:
        yield connect, conn, cursor


class TestPostgresCacheStore:
    def test_rejects_unsafe_table_name(self):
        with pytest.raises(ValueError):
            PostgresCacheStore("postgresql://localhost/db", table="templates; DROP TABLE x")

    def test_set_upserts_deduplicated_batch(self, pg_conn, utc_clock):
        connect, conn, cursor = pg_conn
        store = PostgresCacheStore("postgresql://u:p@localhost/db", clock=utc_clock)

        with patch("template_feed.core.cache_store.execute_values") as execute_values:
            written = store.set(
                [template("devto-a", description="one"), template("devto-a", description="two"), template("devto-b")],
                "devto",
                "https://dev.to/t/tutorial",
            )

        assert written == 2
        sql, values = execute_values.call_args[0][1], execute_values.call_args[0][2]
        assert "ON CONFLICT (template_id, source) DO UPDATE" in sql
        assert [row[0] for row in values] == ["devto-a", "devto-b"]
        assert values[0][1].adapted["description"] == "two"
        assert values[0][4] == utc_clock.now
        assert values[0][5] == utc_clock.now + timedelta(hours=24)
        conn.commit.assert_called_once()
        conn.close.assert_called_once()

    def test_set_rolls_back_on_error(self, pg_conn):
        _, conn, _ = pg_conn
        store = PostgresCacheStore("postgresql://localhost/db")

        with patch("template_feed.core.cache_store.execute_values", side_effect=RuntimeError("db down")):
            with pytest.raises(RuntimeError):
                store.set([template("devto-a")], "devto")

        conn.rollback.assert_called_once()
        conn.close.assert_called_once()

    def test_set_empty_batch_skips_database(self, pg_conn):
        connect, _, _ = pg_conn
        assert PostgresCacheStore("postgresql://localhost/db").set([], "devto") == 0
        connect.assert_not_called()

    def test_get_builds_filters_and_parses_rows(self, pg_conn, utc_clock):
        _, _, cursor = pg_conn
        now = utc_clock.now
        cursor.fetchall.return_value = [
            {
                "template_id": "devto-a",
                "source": "devto",
                "template_data": {"id": "devto-a", "name": "A", "description": "d", "techStack": ["Go"]},
                "source_url": None,
                "fetched_at": now,
                "expires_at": now + timedelta(hours=24),
            },
            {
                "template_id": "devto-broken",
                "source": "devto",
                "template_data": {"id": "devto-broken"},
                "source_url": None,
                "fetched_at": now,
                "expires_at": now,
            },
        ]
        store = PostgresCacheStore("postgresql://localhost/db", clock=utc_clock)

        templates = store.get(max_age=3600, source="devto")

        assert [t.id for t in templates] == ["devto-a"]
        assert templates[0].tech_stack == ["Go"]
        sql, params = cursor.execute.call_args[0]
        assert "expires_at >= %s" in sql
        assert "fetched_at >= %s" in sql
        assert "source = %s" in sql
        assert params == [now, now - timedelta(hours=1), "devto"]

    def test_stale_read_has_no_expiry_filter(self, pg_conn):
        _, _, cursor = pg_conn
        cursor.fetchall.return_value = []
        PostgresCacheStore("postgresql://localhost/db").get(include_expired=True)

        sql, params = cursor.execute.call_args[0]
        assert "WHERE" not in sql
        assert params == []

    def test_invalidate_and_cleanup(self, pg_conn, utc_clock):
        _, conn, cursor = pg_conn
        cursor.rowcount = 3
        store = PostgresCacheStore("postgresql://localhost/db", clock=utc_clock)

        assert store.invalidate("devto") == 3
        assert cursor.execute.call_args[0] == ("DELETE FROM project_templates_cache WHERE source = %s", ("devto",))

        assert store.cleanup() == 3
        assert cursor.execute.call_args[0] == ("DELETE FROM project_templates_cache WHERE expires_at < %s", (utc_clock.now,))

    def test_ensure_schema_creates_unique_key(self, pg_conn):
        _, conn, cursor = pg_conn
        PostgresCacheStore("postgresql://localhost/db").ensure_schema()

        create_sql = cursor.execute.call_args_list[0][0][0]
        assert "CREATE TABLE IF NOT EXISTS project_templates_cache" in create_sql
        assert "UNIQUE (template_id, source)" in create_sql
        conn.commit.assert_called_once()


def test_cache_entry_staleness(utc_clock):
    entry = CacheEntry(
        template_id="devto-a",
        source="devto",
        template_data=template("devto-a"),
        fetched_at=utc_clock.now,
        expires_at=utc_clock.now + timedelta(hours=1),
    )
    assert not entry.is_stale(utc_clock.now)
    assert entry.is_stale(utc_clock.now + timedelta(hours=2))
