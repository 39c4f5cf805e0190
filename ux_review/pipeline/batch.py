"""Sequential, failure-isolated processing of every screen in one request."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from ux_review.errors import PreconditionError
from ux_review.figma.client import FigmaClient
from ux_review.models.request import AnalysisConfig, AnalysisMode, AnalysisRequest, ProviderCredential
from ux_review.models.response import BatchResponse, ScreenResult
from ux_review.pipeline.layout import CommentLayoutEngine, LayoutMode
from ux_review.pipeline.normalizer import normalize
from ux_review.pipeline.prompt import build_prompt
from ux_review.providers.registry import route

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectedScreen:
    """A ``frameData`` entry that did not validate; it fails alone in the batch."""

    screen_id: str
    screen_name: str
    reason: str


def _identifier(raw: Any, key: str) -> str:
    value = raw.get(key) if isinstance(raw, dict) else None
    return "" if value is None else str(value)


def _parse_screen(raw: Any) -> AnalysisRequest | RejectedScreen:
    try:
        return AnalysisRequest.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "screen"
        return RejectedScreen(
            screen_id=_identifier(raw, "id"),
            screen_name=_identifier(raw, "name"),
            reason=f"Invalid screen data ({exc.error_count()} errors): {field}: {first['msg']}",
        )


def screens_for_mode(mode: AnalysisMode, frame_data: dict[str, Any]) -> list[AnalysisRequest | RejectedScreen]:
    """Pull the screen list out of ``frameData``; its shape depends on the mode.

    Only a missing, empty or non-list screen list raises ``PreconditionError``.
    Entries that fail validation come back as ``RejectedScreen`` so the batch
    can record them and carry on.
    """
    if mode == "single":
        raw = [frame_data] if frame_data else []
    elif mode == "variant":
        raw = frame_data.get("variants") or []
    else:
        raw = frame_data.get("screens") or []

    if not isinstance(raw, list):
        raise PreconditionError(f"Invalid frameData for {mode} mode: expected a list of screens")
    if not raw:
        raise PreconditionError(f"No screens provided for {mode} mode")
    return [_parse_screen(item) for item in raw]


def layout_for_mode(mode: AnalysisMode) -> LayoutMode:
    return "flow" if mode == "flow" else "clustered"


def summarize(results: list[ScreenResult]) -> BatchResponse:
    analyzed = sum(1 for r in results if r.succeeded)
    return BatchResponse(
        analyzed=analyzed,
        failed=len(results) - analyzed,
        results=results,
        message=f"Analysis complete! Processed {len(results)} screens.",
    )


class BatchCoordinator:
    """Runs screens strictly one after another.

    At most one provider call is in flight at a time. A failure on one screen
    becomes that screen's result and never stops the batch.
    """

    def __init__(
        self,
        figma: FigmaClient,
        client: httpx.AsyncClient,
        file_key: str,
        comment_delay: float | None = None,
    ) -> None:
        self.figma = figma
        self.client = client
        self.file_key = file_key
        self.layout = CommentLayoutEngine(figma, file_key, comment_delay)

    async def analyze_screen(
        self,
        screen: AnalysisRequest,
        config: AnalysisConfig,
        provider_id: str,
        credential: ProviderCredential,
        layout_mode: LayoutMode,
    ) -> ScreenResult:
        adapter = route(provider_id, self.client)

        image = await self.figma.fetch_screen_image(self.file_key, screen.screen_id)
        logger.debug("Fetched %d image bytes for %s", len(image), screen.screen_id)

        prompt = build_prompt(screen, config)
        raw_text = await adapter.analyze(image, prompt, credential)
        findings = normalize(raw_text)
        logger.info("Received %d findings for %s", len(findings), screen.screen_name)

        posted = await self.layout.post_findings(findings, screen.screen_name, screen.screen_id, layout_mode)
        return ScreenResult(
            screen_id=screen.screen_id,
            screen_name=screen.screen_name,
            succeeded=True,
            comments_posted=posted,
            findings_count=len(findings),
        )

    async def run_batch(
        self,
        screens: Sequence[AnalysisRequest | RejectedScreen],
        config: AnalysisConfig,
        provider_id: str,
        credential: ProviderCredential | None,
        layout_mode: LayoutMode = "clustered",
    ) -> list[ScreenResult]:
        """Analyze and comment on every screen, returning one result per screen in order.

        Raises ``PreconditionError`` before touching any screen when the file
        key, the credential or the screen list is missing.
        """
        if not self.file_key:
            raise PreconditionError("File key is required. Please ensure your file is saved to Figma.")
        if credential is None or not credential.secret.get_secret_value():
            raise PreconditionError("No API key available. Please provide your API key in the plugin.")
        if not screens:
            raise PreconditionError("No screens to analyze")

        results: list[ScreenResult] = []
        for position, screen in enumerate(screens, start=1):
            if isinstance(screen, RejectedScreen):
                logger.error("Screen %d/%d (%s) rejected: %s", position, len(screens), screen.screen_id, screen.reason)
                results.append(
                    ScreenResult(
                        screen_id=screen.screen_id,
                        screen_name=screen.screen_name,
                        succeeded=False,
                        error_message=screen.reason,
                    )
                )
                continue
            logger.info(
                "Screen %d/%d: %s (%s) via %s", position, len(screens), screen.screen_name, screen.screen_id, provider_id
            )
            try:
                result = await self.analyze_screen(screen, config, provider_id, credential, layout_mode)
            except Exception as e:
                logger.error("Screen '%s' failed: %s", screen.screen_name, e)
                result = ScreenResult(
                    screen_id=screen.screen_id,
                    screen_name=screen.screen_name,
                    succeeded=False,
                    error_message=str(e) or type(e).__name__,
                )
            results.append(result)
        return results
