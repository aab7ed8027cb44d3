# services/debug_console.py
import logging
from typing import Any, Dict, List, Optional

from abtest_engine.core.settings import ABTestSettings
from abtest_engine.models.schemas.event import AnalyticsEvent
from abtest_engine.models.schemas.experiment import ABVariant
from abtest_engine.services.binding_service import BindingService
from abtest_engine.services.event_service import AnalyticsService, RecordingSink
from abtest_engine.services.experiment_service import ExperimentService

logger = logging.getLogger(__name__)


class DebugConsole:
    """Introspection and override surface for development builds."""

    def __init__(
        self,
        binding: BindingService,
        experiment_service: ExperimentService,
        analytics: AnalyticsService,
        recorder: Optional[RecordingSink] = None,
    ):
        self.binding = binding
        self.experiment_service = experiment_service
        self.analytics = analytics
        self.recorder = recorder

    def get_debug_info(self) -> Dict[str, Any]:
        info = self.binding.get_debug_info()
        info["recentEvents"] = self.recent_events()
        return info

    def recent_events(self) -> List[Dict[str, Any]]:
        """Events emitted while debugging, oldest first."""
        if self.recorder is None:
            return []
        return [{"event": name, "payload": payload} for name, payload in self.recorder.events]

    def force_variant(self, test_id: str, variant_id: str) -> bool:
        return self.experiment_service.force_variant(test_id, variant_id)

    def get_variant(self, test_id: str, visitor_id: Optional[str] = None) -> Optional[ABVariant]:
        return self.experiment_service.resolve(test_id, visitor_id)

    def track_conversion(
        self,
        test_id: str,
        conversion_type: str = "default",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AnalyticsEvent]:
        return self.analytics.track_conversion(test_id, conversion_type, metadata)

    def track_interaction(
        self,
        test_id: str,
        interaction_type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AnalyticsEvent]:
        return self.analytics.track_interaction(test_id, interaction_type, metadata)


def build_debug_console(
    settings: ABTestSettings,
    binding: BindingService,
    experiment_service: ExperimentService,
    analytics: AnalyticsService,
    recorder: Optional[RecordingSink] = None,
) -> Optional[DebugConsole]:
    """Returns a console only when debug mode is on."""
    if not settings.debug_mode:
        return None
    return DebugConsole(binding, experiment_service, analytics, recorder)
