"""
Shared fixtures: fake clocks, a recording sleep, scripted source adapters
and an orchestrator factory wired entirely in memory.
"""
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from template_feed.config import FetcherConfig
from template_feed.core.cache_store import InMemoryCacheStore
from template_feed.core.retry import RetryPolicy
from template_feed.orchestrator import TemplateOrchestrator
from template_feed.sources.base import SourceAdapter
from template_feed.sources.registry import SourceRegistry

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class FakeClock:
    """Monotonic clock advanced by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeUTCClock:
    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeSleep:
    """Records requested delays instead of sleeping"""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)


class FakeSource(SourceAdapter):
    """
    Source adapter with scripted behaviour.

    `errors` are raised one per call before any success; `fail_with` is
    raised on every call; `gate` (an asyncio.Event) blocks fetch until set.
    """

    def __init__(self, name, raws=None, errors=None, fail_with=None, gate=None):
        self.name = name
        self.url = f"https://example.test/{name}"
        super().__init__(http_client=None)
        self.raws = list(raws or [])
        self.errors = list(errors or [])
        self.fail_with = fail_with
        self.gate = gate
        self.calls = 0

    async def fetch(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with
        if self.errors:
            raise self.errors.pop(0)
        return [dict(raw) for raw in self.raws]

    def select_blocks(self, soup):
        return []

    def extract_block(self, block):
        return None


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def utc_clock():
    return FakeUTCClock()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def store(utc_clock):
    return InMemoryCacheStore(clock=utc_clock)


@pytest.fixture
def make_source():
    return FakeSource


@pytest.fixture
def make_orchestrator(store, clock, fake_sleep):
    """Factory: make_orchestrator(sources, **config_overrides)"""

    def factory(sources, cache_store=None, **overrides):
        config = FetcherConfig()
        config.background_enabled = False
        for key, value in overrides.items():
            setattr(config, key, value)
        policy = RetryPolicy(
            max_attempts=config.max_retries,
            initial_backoff=config.initial_backoff,
            max_backoff=config.max_backoff,
            default_retry_after=config.default_retry_after,
            sleep=fake_sleep,
        )
        return TemplateOrchestrator(
            SourceRegistry(sources),
            cache_store if cache_store is not None else store,
            config=config,
            retry_policy=policy,
            clock=clock,
        )

    return factory


def read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def fixture_html():
    return read_fixture
