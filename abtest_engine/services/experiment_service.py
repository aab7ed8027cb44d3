# services/experiment_service.py

import logging
import random
from datetime import datetime
from typing import Callable, List, Optional

from abtest_engine.core.settings import ABTestSettings
from abtest_engine.models.schemas.event import ABAnalyticsEvents
from abtest_engine.models.schemas.experiment import ABTest, ABVariant
from abtest_engine.repositories.assignment_repo import AssignmentRepository
from abtest_engine.repositories.experiment_repo import TestRegistry
from abtest_engine.services.event_service import AnalyticsService

logger = logging.getLogger(__name__)

RandomProvider = Callable[[], float]

_UINT32_MASK = 0xFFFFFFFF
_UINT32_RANGE = 2**32


def _fmix32(h: int) -> int:
    # murmur3 finalizer
    h ^= h >> 16
    h = (h * 0x85EBCA6B) & _UINT32_MASK
    h ^= h >> 13
    h = (h * 0xC2B2AE35) & _UINT32_MASK
    h ^= h >> 16
    return h


def hash_string_to_number(value: str) -> float:
    """
    Maps a string to a stable number in [0, 1).

    Polynomial hash over the characters (h * 31 + c) in 32 bits, then
    bit-mixed so ids that differ in one trailing character still spread
    over the whole range. Identical on every platform and run.
    """
    h = 0
    for char in value:
        h = (h * 31 + ord(char)) & _UINT32_MASK
    return _fmix32(h) / _UINT32_RANGE


def select_by_weight(variants: List[ABVariant], scalar: float) -> Optional[ABVariant]:
    """
    Walks the variants in declaration order, returning the first whose
    cumulative weight reaches ``scalar * 100``.

    Variants with weight 0 never qualify. When the weights sum below 100 and
    the scalar lands in the gap, the first qualifying variant is returned.
    """
    qualifying = [v for v in variants if v.weight > 0]
    if not qualifying:
        return None

    target = scalar * 100
    cumulative_weight = 0
    for variant in qualifying:
        cumulative_weight += variant.weight
        if target <= cumulative_weight:
            return variant

    # overflow to control
    return qualifying[0]


class ExperimentService:
    """Resolves visitors to variants and keeps the assignment stable."""

    def __init__(
        self,
        settings: ABTestSettings,
        registry: TestRegistry,
        assignment_repo: AssignmentRepository,
        analytics: AnalyticsService,
        random_provider: RandomProvider = random.random,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.settings = settings
        self.registry = registry
        self.assignment_repo = assignment_repo
        self.analytics = analytics
        self.random_provider = random_provider
        self.clock = clock

    def _default_variant(self, test: ABTest) -> Optional[ABVariant]:
        variant = test.default
        if variant is None:
            logger.warning(
                "Test %s has no variant matching its default %r",
                test.test_id,
                test.default_variant,
            )
        return variant

    def _selection_scalar(self, test: ABTest, visitor_id: Optional[str]) -> float:
        if visitor_id:
            return hash_string_to_number(visitor_id + test.test_id)
        return self.random_provider()

    def _allocate_variant(self, test: ABTest, visitor_id: Optional[str]) -> Optional[ABVariant]:
        if not any(v.weight > 0 for v in test.variants):
            return self._default_variant(test)
        return select_by_weight(test.variants, self._selection_scalar(test, visitor_id))

    def resolve(self, test_id: str, visitor_id: Optional[str] = None) -> Optional[ABVariant]:
        """
        Gets a visitor's variant for a test, assigning one on first sight.

        1. Disabled, inactive or unknown tests resolve to their default.
        2. A stored assignment that still names a known variant wins.
        3. Otherwise allocate by weight, persist, and report the assignment.
        """
        test = self.registry.lookup_test(test_id)
        if test is None:
            logger.debug("Unknown test %s, no variant available", test_id)
            return None

        if not self.settings.enabled or not test.enabled or not test.is_active(self.clock()):
            return self._default_variant(test)

        stored_variant_id = self.assignment_repo.get_stored_variant(test_id)
        if stored_variant_id:
            stored_variant = test.get_variant(stored_variant_id)
            if stored_variant is not None:
                self.analytics.emit(ABAnalyticsEvents.VARIANT_VIEWED, test_id, stored_variant.id)
                return stored_variant
            logger.info(
                "Stored variant %r no longer exists on %s, reassigning",
                stored_variant_id,
                test_id,
            )

        assigned_variant = self._allocate_variant(test, visitor_id)
        if assigned_variant is None:
            return None

        logger.debug("Assigning %s to new variant %s", test_id, assigned_variant.id)
        self.assignment_repo.store_assignment(test_id, assigned_variant.id)
        self.analytics.emit(ABAnalyticsEvents.VARIANT_ASSIGNED, test_id, assigned_variant.id)
        return assigned_variant

    def force_variant(self, test_id: str, variant_id: str) -> bool:
        """
        Debug only: writes ``variant_id`` straight into storage for the test.
        The id is not checked against the test definition.
        """
        if not self.settings.debug_mode:
            logger.warning("force_variant only works in debug mode")
            return False

        self.assignment_repo.store_assignment(test_id, variant_id)
        logger.info("Forced variant %s for test %s", variant_id, test_id)
        return True
