# services/event_service.py
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from abtest_engine.core.settings import ABTestSettings
from abtest_engine.models.schemas.event import ABAnalyticsEvents, AnalyticsEvent
from abtest_engine.repositories.assignment_repo import AssignmentRepository

logger = logging.getLogger("abtest_engine.analytics")

AnalyticsSink = Callable[[str, Dict[str, Any]], None]


class RecordingSink:
    """Sink that keeps every dispatched event in memory."""

    def __init__(self, limit: Optional[int] = None):
        self.limit = limit
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def __call__(self, event_name: str, payload: Dict[str, Any]) -> None:
        self.events.append((event_name, dict(payload)))
        if self.limit is not None and len(self.events) > self.limit:
            del self.events[: len(self.events) - self.limit]

    def names(self) -> List[str]:
        return [name for name, _ in self.events]


class AnalyticsService:
    """
    Turns assignment lifecycle moments into analytics events.

    Emission is best-effort: the sink may be missing or may fail, and
    neither affects the caller.
    """

    def __init__(
        self,
        settings: ABTestSettings,
        assignment_repo: AssignmentRepository,
        sink: Optional[AnalyticsSink] = None,
        recorder: Optional[RecordingSink] = None,
    ):
        self.settings = settings
        self.assignment_repo = assignment_repo
        self.sink = sink
        # debug-only copy of what was dispatched
        self.recorder = recorder

    def emit(
        self,
        event_type: ABAnalyticsEvents,
        test_id: str,
        variant_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AnalyticsEvent]:
        if not self.settings.analytics_enabled:
            return None

        event = AnalyticsEvent(
            type=event_type,
            test_id=test_id,
            variant_id=variant_id,
            metadata=metadata,
        )

        if self.settings.debug_mode:
            logger.info("[AB Test] %s", event.model_dump(mode="json"))
            if self.recorder is not None:
                self.recorder(event.type.value, event.to_payload())

        if self.sink is None:
            logger.debug("No analytics sink configured, dropping %s", event.type.value)
            return event

        try:
            self.sink(event.type.value, event.to_payload())
        except Exception as e:
            logger.warning("Analytics sink failed for %s on %s: %s", event.type.value, test_id, e)

        return event

    def track_conversion(
        self,
        test_id: str,
        conversion_type: str = "default",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AnalyticsEvent]:
        """Records a conversion against the visitor's stored variant, if any."""
        return self._track_for_stored_variant(
            ABAnalyticsEvents.VARIANT_CONVERSION,
            test_id,
            {"conversion_type": conversion_type, **(metadata or {})},
        )

    def track_interaction(
        self,
        test_id: str,
        interaction_type: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AnalyticsEvent]:
        """Records an interaction against the visitor's stored variant, if any."""
        return self._track_for_stored_variant(
            ABAnalyticsEvents.VARIANT_INTERACTION,
            test_id,
            {"interaction_type": interaction_type, **(metadata or {})},
        )

    def _track_for_stored_variant(
        self, event_type: ABAnalyticsEvents, test_id: str, metadata: Dict[str, Any]
    ) -> Optional[AnalyticsEvent]:
        variant_id = self.assignment_repo.get_stored_variant(test_id)
        if not variant_id:
            logger.debug("No stored assignment for %s, skipping %s", test_id, event_type.value)
            return None
        return self.emit(event_type, test_id, variant_id, metadata)
