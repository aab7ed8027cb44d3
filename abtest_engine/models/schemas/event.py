import enum
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ABAnalyticsEvents(str, enum.Enum):
    VARIANT_ASSIGNED = "ab_variant_assigned"
    VARIANT_VIEWED = "ab_variant_viewed"
    VARIANT_CONVERSION = "ab_variant_conversion"
    VARIANT_INTERACTION = "ab_variant_interaction"


class AnalyticsEvent(BaseModel):
    """Lifecycle event handed to the analytics sink. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    type: ABAnalyticsEvents
    test_id: str
    variant_id: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    metadata: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Flat payload forwarded to the sink."""
        payload = {"test_id": self.test_id, "variant_id": self.variant_id}
        if self.metadata:
            payload.update(self.metadata)
        return payload


#  tracking request bodies


class ConversionCreateModel(BaseModel):
    conversion_type: str = Field(default="default", description="e.g., 'form_submission'")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Flexible JSON object.")


class InteractionCreateModel(BaseModel):
    interaction_type: str = Field(..., description="e.g., 'cta_click', 'quote_read'")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Flexible JSON object.")


class DebugConversionModel(ConversionCreateModel):
    test_id: str


class DebugInteractionModel(InteractionCreateModel):
    test_id: str


class TrackResponseModel(BaseModel):
    tracked: bool
