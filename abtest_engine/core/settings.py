"""Process-wide A/B testing configuration using pydantic-settings."""

from functools import lru_cache
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SegmentConfig(BaseModel):
    """Visitor segment. An empty rule list applies to every visitor."""

    name: str
    rules: List[Dict] = Field(default_factory=list)
    tests: List[str] = Field(default_factory=list)


def _default_segments() -> Dict[str, SegmentConfig]:
    return {
        "default": SegmentConfig(
            name="Default Segment",
            rules=[],
            tests=[
                "hero-messaging-test",
                "mission-approach-test",
                "cta-messaging-test",
            ],
        )
    }


class ABTestSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="AB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Global A/B testing switch")
    cookie_name: str = Field(default="warden_ab_variants")
    cookie_expire_days: int = Field(default=30, description="Cookie mirror lifetime")
    analytics_enabled: bool = Field(default=True)
    debug_mode: bool = Field(default=False)

    storage_key_prefix: str = Field(
        default="ab_", description="Namespace for per-test primary store keys"
    )
    session_cookie_name: str = Field(
        default="ab_session", description="Cookie holding the visitor's storage partition"
    )
    database_url: str = Field(default="sqlite:///./ab_storage.db")

    # bearer tokens accepted by the debug routes
    TOKENS: List[str] = Field(default_factory=list)

    log_level: str = Field(default="INFO")

    segments: Dict[str, SegmentConfig] = Field(default_factory=_default_segments)

    @field_validator("cookie_expire_days")
    @classmethod
    def _positive_expiry(cls, value: int) -> int:
        if value < 1:
            raise ValueError("cookie_expire_days must be at least 1")
        return value

    @field_validator("cookie_name", "session_cookie_name")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cookie names must not be empty")
        return value


@lru_cache
def get_settings() -> ABTestSettings:
    return ABTestSettings()
