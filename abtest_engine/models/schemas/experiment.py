import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class ABVariant(BaseModel):
    """One candidate configuration within a test."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    weight: int = Field(
        ...,
        ge=0,
        le=100,
        description="Percentage of traffic allocated to this variant.",
    )
    # Shape is owned by the presentational caller, see models.schemas.sections
    config: Dict[str, Any] = Field(default_factory=dict)


class ABTest(BaseModel):
    """Declarative definition of an experiment and its variants."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    name: str
    description: str = ""
    enabled: bool = True
    variants: List[ABVariant]
    default_variant: str = Field(..., description="Fallback variant id")
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # windows are compared against naive UTC clocks
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def _check_variants(self) -> "ABTest":
        ids = [v.id for v in self.variants]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Test {self.test_id} declares duplicate variant ids: {ids}")

        # Tolerated, but every default lookup on this test will come back empty.
        if self.default_variant not in ids:
            logger.warning(
                "Test %s default variant %r is not among its variants %s",
                self.test_id,
                self.default_variant,
                ids,
            )
        return self

    def get_variant(self, variant_id: Optional[str]) -> Optional[ABVariant]:
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None

    @property
    def default(self) -> Optional[ABVariant]:
        return self.get_variant(self.default_variant)

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """True when `now` falls inside the optional activation window."""
        now = now or datetime.utcnow()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc).replace(tzinfo=None)
        if self.start_date and now < self.start_date:
            return False
        if self.end_date and now > self.end_date:
            return False
        return True


# --- HTTP response models ---


class VariantResponseModel(BaseModel):
    """The variant a visitor resolved to for one test."""

    test_id: str
    variant_id: str
    variant_name: str
    config: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_variant(cls, test_id: str, variant: ABVariant) -> "VariantResponseModel":
        return cls(
            test_id=test_id,
            variant_id=variant.id,
            variant_name=variant.name,
            config=variant.config,
        )


class ForceVariantModel(BaseModel):
    test_id: str
    variant_id: str
