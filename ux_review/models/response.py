import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Severity = Literal["critical", "high", "medium", "low", "positive"]
Category = Literal[
    "Visual Design",
    "UX Psychology",
    "Behavioral Patterns",
    "User Flows",
    "Microcopy",
    "Interaction Design",
    "Information Architecture",
]

# Keys are lowercased with everything but letters removed
_CATEGORY_ALIASES: dict[str, str] = {
    "visualdesign": "Visual Design",
    "visual": "Visual Design",
    "uxpsychology": "UX Psychology",
    "psychology": "UX Psychology",
    "behavioralpatterns": "Behavioral Patterns",
    "behaviouralpatterns": "Behavioral Patterns",
    "behavioral": "Behavioral Patterns",
    "userflows": "User Flows",
    "userflow": "User Flows",
    "userflowanalysis": "User Flows",
    "microcopy": "Microcopy",
    "microcopycontent": "Microcopy",
    "interactiondesign": "Interaction Design",
    "interaction": "Interaction Design",
    "informationarchitecture": "Information Architecture",
}


class Finding(BaseModel):
    """One critique item. Anything that does not validate is dropped upstream."""

    location: str = Field(min_length=1)
    category: Category
    severity: Severity
    finding: str = Field(min_length=1)
    recommendation: str = Field(min_length=1)
    principle: str = Field(min_length=1)

    @field_validator("location", "finding", "recommendation", "principle", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, value: object) -> object:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("category", mode="before")
    @classmethod
    def _canonical_category(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        key = re.sub(r"[^a-z]", "", value.lower())
        return _CATEGORY_ALIASES.get(key, value)


class CommentAnchor(BaseModel):
    """Offset relative to the screen's bounding box; y may sit just above it."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(ge=0, le=1)
    y: float = Field(ge=-0.1, le=1)


class _CamelResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ScreenResult(_CamelResponse):
    screen_id: str
    screen_name: str
    succeeded: bool
    comments_posted: int = Field(default=0, ge=0)
    findings_count: int = Field(default=0, ge=0)
    error_message: str | None = None


class BatchResponse(_CamelResponse):
    success: bool = True
    analyzed: int
    failed: int
    results: list[ScreenResult]
    message: str


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str


class ConnectionTestResponse(BaseModel):
    status: str = "ok"
    message: str = "Connection successful!"
    timestamp: str


class ProviderInfo(BaseModel):
    id: str
    label: str
    vision: bool
