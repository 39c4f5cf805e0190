from datetime import datetime, timezone

import httpx
from fastapi import APIRouter
from loguru import logger

from ux_review.config import settings
from ux_review.errors import PreconditionError
from ux_review.figma.client import FigmaClient
from ux_review.models.request import AIConfig, AnalyzeRequest, ProviderCredential
from ux_review.models.response import BatchResponse, ConnectionTestResponse, ProviderInfo
from ux_review.pipeline.batch import BatchCoordinator, layout_for_mode, screens_for_mode, summarize
from ux_review.providers.registry import list_providers

router = APIRouter()


@router.get("/api/providers")
async def get_providers() -> list[ProviderInfo]:
    """Return the selectable AI backends (id, label, vision support)."""
    return list_providers()


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.provider_timeout_seconds)


def _resolve_credential(ai_config: AIConfig | None) -> tuple[str, ProviderCredential | None]:
    """Pick the provider and its key.

    A user-supplied key always wins. Without one, the server's default key is
    used only for the default provider; a key is never sent to another vendor.
    """
    provider = (ai_config.provider if ai_config and ai_config.provider else "") or settings.default_ai_provider
    user_key = ai_config.api_key if ai_config else None
    if user_key:
        logger.info("Using user-provided {provider} API key", provider=provider)
        return provider, ProviderCredential(provider_id=provider, secret=user_key)
    if settings.default_ai_api_key and provider.strip().lower() == settings.default_ai_provider:
        logger.info("Using server default {provider} API key", provider=provider)
        return provider, ProviderCredential(provider_id=provider, secret=settings.default_ai_api_key)
    logger.warning("No API key for provider {provider}", provider=provider)
    return provider, None


@router.post("/")
@router.post("/api/analyze")
async def analyze(request: AnalyzeRequest) -> BatchResponse | ConnectionTestResponse:
    if request.test:
        return ConnectionTestResponse(timestamp=datetime.now(timezone.utc).isoformat())

    if not settings.figma_access_token:
        raise PreconditionError("Missing FIGMA_ACCESS_TOKEN. Please set it in the server environment.")

    provider_id, credential = _resolve_credential(request.ai_config)
    screens = screens_for_mode(request.mode, request.frame_data)
    config = request.config
    if request.user_context:
        config = config.model_copy(update={"user_context": request.user_context})

    logger.info(
        'Analyzing {count} screens in {mode} mode from "{file_name}" (frameworks: {frameworks})',
        count=len(screens),
        mode=request.mode,
        file_name=request.file_name,
        frameworks=", ".join(config.frameworks.enabled()) or "none",
    )
    async with _http_client() as client:
        coordinator = BatchCoordinator(FigmaClient(settings.figma_access_token, client), client, request.file_key)
        results = await coordinator.run_batch(
            screens, config, provider_id, credential, layout_mode=layout_for_mode(request.mode)
        )

    response = summarize(results)
    logger.info("Batch done: {analyzed} analyzed, {failed} failed", analyzed=response.analyzed, failed=response.failed)
    return response
