from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "DEBUG"
    log_json: bool = False
    api_key: str = ""  # Empty = auth disabled (local dev); set to enable API key validation

    figma_access_token: str = ""
    figma_api_base: str = "https://api.figma.com/v1"
    image_scale: int = 2
    max_image_dimension: int = 4096

    default_ai_provider: str = "aiml"
    # Only ever sent to the default provider, never to a user-selected one
    default_ai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("default_ai_api_key", "aiml_api_key"),
    )
    provider_timeout_seconds: float = 120.0
    poll_interval_seconds: float = 1.0
    poll_timeout_seconds: float = 300.0
    # Community models are only reachable through a pinned version
    replicate_model_version: str = "80537f9eead1a5bfa72d5ac6ea6414379be41d4d4f6679fd776e9535d1eb58bb"

    comment_delay_seconds: float = 0.15

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


settings = Settings()
