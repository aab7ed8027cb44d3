"""Tests for test definitions and the registry."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from abtest_engine.models.schemas.experiment import ABTest, ABVariant
from abtest_engine.repositories.experiment_repo import TestRegistry, default_registry


def test_lookup_by_test_id(registry, split_test):
    assert registry.lookup_test("t") is split_test
    assert registry.lookup_test("missing") is None


def test_lookup_by_section(registry, split_test):
    assert registry.get("split") is split_test
    assert registry.sections() == ("split",)
    assert "split" in registry


def test_registry_is_read_only(registry):
    with pytest.raises(TypeError):
        registry._tests["other"] = None


def test_default_registry_sections():
    registry = default_registry()
    assert registry.sections() == ("hero", "mission", "cta")
    assert registry.lookup_test("mission-approach-test").default_variant == "current"
    assert [v.weight for v in registry.get("cta").variants] == [33, 33, 34]


def test_variant_weight_bounds():
    with pytest.raises(ValidationError):
        ABVariant(id="x", name="X", weight=101)
    with pytest.raises(ValidationError):
        ABVariant(id="x", name="X", weight=-1)


def test_duplicate_variant_ids_rejected():
    with pytest.raises(ValidationError):
        ABTest(
            test_id="dup",
            name="Dup",
            default_variant="a",
            variants=[
                ABVariant(id="a", name="A", weight=50),
                ABVariant(id="a", name="A again", weight=50),
            ],
        )


def test_unknown_default_is_tolerated_but_logged(caplog):
    with caplog.at_level(logging.WARNING):
        test = ABTest(
            test_id="broken",
            name="Broken",
            default_variant="nope",
            variants=[ABVariant(id="a", name="A", weight=100)],
        )
    assert test.default is None
    assert "broken" in caplog.text


def test_activation_window():
    now = datetime(2025, 6, 1)
    test = ABTest(
        test_id="w",
        name="Window",
        default_variant="a",
        variants=[ABVariant(id="a", name="A", weight=100)],
        start_date=now - timedelta(days=1),
        end_date=now + timedelta(days=1),
    )
    assert test.is_active(now)
    assert not test.is_active(now - timedelta(days=2))
    assert not test.is_active(now + timedelta(days=2))


def test_registry_dump_is_serialisable(registry):
    dumped = registry.to_dict()
    assert dumped["split"]["test_id"] == "t"
    assert dumped["split"]["variants"][1]["id"] == "B"


def test_empty_registry():
    registry = TestRegistry({})
    assert len(registry) == 0
    assert registry.lookup_test("t") is None


def test_aware_window_bounds_are_normalised_to_utc():
    test = ABTest(
        test_id="w",
        name="Window",
        default_variant="a",
        variants=[ABVariant(id="a", name="A", weight=100)],
        start_date="2020-01-01T00:00:00Z",
        end_date="2030-01-02T00:00:00+02:00",
    )

    assert test.start_date == datetime(2020, 1, 1)
    assert test.end_date == datetime(2030, 1, 1, 22)
    assert test.is_active(datetime(2025, 6, 1))
    assert test.is_active(datetime(2025, 6, 1, tzinfo=timezone.utc))
    assert not test.is_active(datetime(2030, 1, 1, 23, tzinfo=timezone.utc))
    assert not test.is_active(datetime(2019, 12, 31, 22, 30, tzinfo=timezone(timedelta(hours=-1))))
