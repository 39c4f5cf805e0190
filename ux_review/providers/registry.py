import httpx

from ux_review.errors import UnsupportedProviderError
from ux_review.models.response import ProviderInfo
from ux_review.providers.anthropic import AnthropicAdapter
from ux_review.providers.base import ProviderAdapter
from ux_review.providers.chat import (
    AIMLAdapter,
    GroqAdapter,
    MistralAdapter,
    OpenAIAdapter,
    OpenRouterAdapter,
    TogetherAdapter,
)
from ux_review.providers.cohere import CohereAdapter
from ux_review.providers.gemini import GeminiAdapter
from ux_review.providers.inference import CloudflareAdapter, HuggingFaceAdapter
from ux_review.providers.replicate import ReplicateAdapter

PROVIDERS: dict[str, type[ProviderAdapter]] = {
    adapter.provider_id: adapter
    for adapter in (
        AIMLAdapter,
        OpenAIAdapter,
        AnthropicAdapter,
        GeminiAdapter,
        GroqAdapter,
        OpenRouterAdapter,
        HuggingFaceAdapter,
        CloudflareAdapter,
        TogetherAdapter,
        ReplicateAdapter,
        CohereAdapter,
        MistralAdapter,
    )
}

_ALIASES = {"google": GeminiAdapter.provider_id}


def canonical_provider_id(provider_id: str) -> str:
    """Lowercased, trimmed id with aliases resolved; unknown ids raise."""
    key = (provider_id or "").strip().lower()
    key = _ALIASES.get(key, key)
    if key not in PROVIDERS:
        raise UnsupportedProviderError(provider_id)
    return key


def route(provider_id: str, client: httpx.AsyncClient) -> ProviderAdapter:
    """Return the adapter for ``provider_id`` bound to the batch's HTTP client."""
    return PROVIDERS[canonical_provider_id(provider_id)](client)


def list_providers() -> list[ProviderInfo]:
    return [
        ProviderInfo(id=pid, label=adapter.label, vision=adapter.supports_vision)
        for pid, adapter in PROVIDERS.items()
    ]
