"""Typed views over the variant configuration payloads, keyed by section."""

from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class _SectionConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class CTALink(BaseModel):
    text: str
    link: str


class HeroConfig(_SectionConfig):
    title: str
    subtitle: str
    quote: str
    cta: CTALink


class MissionStat(BaseModel):
    number: str
    label: str
    color: str
    source: Optional[str] = None


class MissionProblem(BaseModel):
    tagline: str
    heading: str
    stats: List[MissionStat] = Field(default_factory=list)
    description: List[str] = Field(default_factory=list)
    quote: str
    solution: str
    context: str


class MissionConfig(_SectionConfig):
    problem: MissionProblem


class CTAForm(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    submit_text: str = Field(..., alias="submitText")


class CTAConfig(_SectionConfig):
    heading: str
    subtitle: str
    form: CTAForm


SECTION_CONFIG_MODELS: Dict[str, Type[_SectionConfig]] = {
    "hero": HeroConfig,
    "mission": MissionConfig,
    "cta": CTAConfig,
}
