from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic.alias_generators import to_camel

AnalysisMode = Literal["single", "variant", "flow"]


class _CamelModel(BaseModel):
    """Plugin payloads are camelCase; attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class InteractiveElement(_CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    kind: str = Field(default="UNKNOWN", alias="type")


class PrototypeLink(_CamelModel):
    model_config = ConfigDict(frozen=True)

    trigger_kind: str | None = Field(default=None, alias="trigger")
    from_node: str = ""
    to_node_id: str | None = None


class FlowContext(_CamelModel):
    model_config = ConfigDict(frozen=True)

    screen_type: str = "unknown"
    purpose: str | None = None


class AnalysisRequest(_CamelModel):
    """Everything extracted from one screen. Built once, never mutated."""

    model_config = ConfigDict(frozen=True)

    screen_id: str = Field(alias="id", min_length=1)
    screen_name: str = Field(alias="name")
    pixel_width: float = Field(default=0, alias="width")
    pixel_height: float = Field(default=0, alias="height")
    structural_tree: dict[str, Any] | None = Field(default=None, alias="structure")
    extracted_text: tuple[str, ...] = Field(default=(), alias="textContent")
    interactive_elements: tuple[InteractiveElement, ...] = ()
    prototype_links: tuple[PrototypeLink, ...] = ()
    flow_context: FlowContext = FlowContext()
    order: int | None = None


class Frameworks(_CamelModel):
    accessibility: bool = True
    heuristics: bool = True
    gestalt: bool = True
    platform_guidelines: bool = True
    ux_laws: bool = True

    def enabled(self) -> list[str]:
        return [name for name, on in self.model_dump().items() if on]


class AnalysisConfig(_CamelModel):
    design_type: Literal["mobile", "web", "desktop", "landing"] = "mobile"
    platform: Literal["ios", "android", "web"] = "web"
    frameworks: Frameworks = Frameworks()
    user_context: str = ""


class AIConfig(_CamelModel):
    provider: str | None = None
    api_key: str | None = None


class ProviderCredential(BaseModel):
    """Secret for one backend. ``SecretStr`` keeps it out of reprs and logs."""

    provider_id: str
    secret: SecretStr
    account_id: str | None = None


class AnalyzeRequest(_CamelModel):
    test: bool = False
    mode: AnalysisMode = "single"
    file_key: str = ""
    file_name: str = "Untitled"
    frame_data: dict[str, Any] = {}
    user_context: str | None = None
    config: AnalysisConfig = AnalysisConfig()
    ai_config: AIConfig | None = None
