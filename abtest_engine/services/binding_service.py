# services/binding_service.py
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from abtest_engine.core.settings import ABTestSettings
from abtest_engine.models.schemas.experiment import ABVariant
from abtest_engine.models.schemas.sections import CTAConfig, HeroConfig, MissionConfig
from abtest_engine.repositories.assignment_repo import AssignmentRepository
from abtest_engine.repositories.experiment_repo import TestRegistry
from abtest_engine.services.event_service import AnalyticsService
from abtest_engine.services.experiment_service import ExperimentService

logger = logging.getLogger(__name__)

ConfigT = TypeVar("ConfigT", bound=BaseModel)

HERO_TEST_ID = "hero-messaging-test"
MISSION_TEST_ID = "mission-approach-test"
CTA_TEST_ID = "cta-messaging-test"

# conversion type reported by each section's primary call to action
SECTION_CONVERSION_TYPES = {
    HERO_TEST_ID: "hero_cta_click",
    MISSION_TEST_ID: "mission_engagement",
    CTA_TEST_ID: "form_submission",
}


@dataclass
class VariantBinding:
    """A resolved variant with tracking callables already bound to its test."""

    test_id: str
    variant: Optional[ABVariant]
    track_conversion: Callable[..., Any] = field(repr=False)
    track_interaction: Callable[..., Any] = field(repr=False)

    @property
    def config(self) -> Optional[Dict[str, Any]]:
        return self.variant.config if self.variant else None

    @property
    def variant_id(self) -> Optional[str]:
        return self.variant.id if self.variant else None

    @property
    def variant_name(self) -> Optional[str]:
        return self.variant.name if self.variant else None


class BindingService:
    """Variant accessors for presentational code that should not know about selection."""

    def __init__(
        self,
        settings: ABTestSettings,
        registry: TestRegistry,
        experiment_service: ExperimentService,
        analytics: AnalyticsService,
        assignment_repo: AssignmentRepository,
    ):
        self.settings = settings
        self.registry = registry
        self.experiment_service = experiment_service
        self.analytics = analytics
        self.assignment_repo = assignment_repo

    def get_variant(self, test_id: str, visitor_id: Optional[str] = None) -> Optional[ABVariant]:
        return self.experiment_service.resolve(test_id, visitor_id)

    def get_config_for(self, test_id: str, visitor_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
        variant = self.experiment_service.resolve(test_id, visitor_id)
        return variant.config if variant else None

    def get_typed_config(
        self, test_id: str, model: Type[ConfigT], visitor_id: Optional[str] = None
    ) -> Optional[ConfigT]:
        """Resolves the test and narrows its payload to ``model``."""
        config = self.get_config_for(test_id, visitor_id)
        if config is None:
            return None
        try:
            return model.model_validate(config)
        except ValidationError as e:
            logger.warning("Variant config for %s does not fit %s: %s", test_id, model.__name__, e)
            return None

    def get_hero_variant(self, visitor_id: Optional[str] = None) -> Optional[HeroConfig]:
        return self.get_typed_config(HERO_TEST_ID, HeroConfig, visitor_id)

    def get_mission_variant(self, visitor_id: Optional[str] = None) -> Optional[MissionConfig]:
        return self.get_typed_config(MISSION_TEST_ID, MissionConfig, visitor_id)

    def get_cta_variant(self, visitor_id: Optional[str] = None) -> Optional[CTAConfig]:
        return self.get_typed_config(CTA_TEST_ID, CTAConfig, visitor_id)

    def bind(self, test_id: str, visitor_id: Optional[str] = None) -> VariantBinding:
        variant = self.experiment_service.resolve(test_id, visitor_id)
        return VariantBinding(
            test_id=test_id,
            variant=variant,
            track_conversion=partial(self.analytics.track_conversion, test_id),
            track_interaction=partial(self.analytics.track_interaction, test_id),
        )

    def bind_section(self, section: str, visitor_id: Optional[str] = None) -> Optional[VariantBinding]:
        """
        Like ``bind`` but addressed by section key. The bound conversion
        tracker reports the section's own conversion type.
        """
        test = self.registry.get(section)
        if test is None:
            return None

        binding = self.bind(test.test_id, visitor_id)
        conversion_type = SECTION_CONVERSION_TYPES.get(test.test_id)
        if conversion_type is not None:
            binding.track_conversion = partial(
                self._track_section_conversion, test.test_id, conversion_type
            )
        return binding

    def _track_section_conversion(
        self, test_id: str, conversion_type: str, metadata: Optional[Dict[str, Any]] = None
    ):
        return self.analytics.track_conversion(test_id, conversion_type, metadata)

    def get_debug_info(self) -> Dict[str, Any]:
        """Snapshot of the configuration and of what this visitor currently resolves to."""
        current_variants = {}
        for test in self.registry.tests():
            variant = self.experiment_service.resolve(test.test_id)
            current_variants[test.test_id] = {
                "variantId": variant.id if variant else None,
                "variantName": variant.name if variant else None,
                "config": variant.config if variant else None,
            }

        return {
            "config": self.settings.model_dump(mode="json", exclude={"TOKENS", "database_url"}),
            "tests": self.registry.to_dict(),
            "currentVariants": current_variants,
            "cookies": self.assignment_repo.raw_cookie(),
        }
