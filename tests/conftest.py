"""Shared test fixtures."""

import itertools

import pytest
from fastapi.testclient import TestClient

from abtest_engine.core.context import build_context
from abtest_engine.core.settings import ABTestSettings
from abtest_engine.main import create_app
from abtest_engine.models.schemas.experiment import ABTest, ABVariant
from abtest_engine.repositories.experiment_repo import TestRegistry
from abtest_engine.repositories.storage import MemoryCookieJar, MemoryKeyValueStore
from abtest_engine.services.event_service import RecordingSink


def make_settings(**overrides) -> ABTestSettings:
    values = {"database_url": "sqlite://", "TOKENS": ["debug-token"]}
    values.update(overrides)
    # _env_file=None keeps a developer's .env out of the tests
    return ABTestSettings(_env_file=None, **values)


def fixed_random(*values: float):
    """Random provider that replays ``values`` forever."""
    cycle = itertools.cycle(values)
    return lambda: next(cycle)


@pytest.fixture
def split_test() -> ABTest:
    return ABTest(
        test_id="t",
        name="Split test",
        default_variant="A",
        variants=[
            ABVariant(id="A", name="Control", weight=60, config={"headline": "a"}),
            ABVariant(id="B", name="Challenger", weight=40, config={"headline": "b"}),
        ],
    )


@pytest.fixture
def registry(split_test) -> TestRegistry:
    return TestRegistry({"split": split_test})


@pytest.fixture
def settings() -> ABTestSettings:
    return make_settings()


@pytest.fixture
def settings_factory():
    return make_settings


@pytest.fixture
def random_factory():
    return fixed_random


@pytest.fixture
def primary() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def secondary() -> MemoryCookieJar:
    return MemoryCookieJar()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_context(settings, registry, primary, secondary, sink):
    def _make(**overrides):
        kwargs = {
            "settings": settings,
            "registry": registry,
            "primary": primary,
            "secondary": secondary,
            "sink": sink,
        }
        kwargs.update(overrides)
        return build_context(**kwargs)

    return _make


@pytest.fixture
def app_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def client(app_sink) -> TestClient:
    app = create_app(settings=make_settings(), analytics_sink=app_sink, random_provider=fixed_random(0.1))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def debug_client(app_sink) -> TestClient:
    app = create_app(
        settings=make_settings(debug_mode=True),
        analytics_sink=app_sink,
        random_provider=fixed_random(0.1),
    )
    with TestClient(app) as test_client:
        yield test_client
