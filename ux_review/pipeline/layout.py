"""Turn findings into a handful of review comments pinned around a screen.

Findings are grouped into three tiers by severity. In clustered mode each
screen gets a summary comment plus one comment per non-empty tier, pinned to
fixed anchors so comments never overlap. In flow mode each screen gets a
single comment above it. However many findings a model returns, a screen never
receives more than four comments.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Literal

from ux_review.config import settings
from ux_review.figma.client import FigmaClient
from ux_review.models.response import CommentAnchor, Finding, Severity

logger = logging.getLogger(__name__)

Tier = Literal["critical", "moderate", "good"]
LayoutMode = Literal["clustered", "flow"]

TIER_ORDER: tuple[Tier, ...] = ("critical", "moderate", "good")

_SEVERITY_TIERS: dict[Severity, Tier] = {
    "critical": "critical",
    "high": "critical",
    "medium": "moderate",
    "low": "good",
    "positive": "good",
}

SUMMARY_ANCHOR = CommentAnchor(x=0.05, y=0.05)
TIER_ANCHORS: dict[Tier, CommentAnchor] = {
    "critical": CommentAnchor(x=0.95, y=0.15),
    "moderate": CommentAnchor(x=0.95, y=0.50),
    "good": CommentAnchor(x=0.95, y=0.85),
}
FLOW_ANCHOR = CommentAnchor(x=0.5, y=-0.1)

_TIER_TITLES: dict[Tier, str] = {
    "critical": "🔴 CRITICAL ISSUES",
    "moderate": "🟡 MODERATE ISSUES",
    "good": "🟢 GOOD PRACTICES",
}
_TIER_LABELS: dict[Tier, str] = {"critical": "Critical", "moderate": "Moderate", "good": "Good"}


def classify_tier(severity: Severity) -> Tier:
    return _SEVERITY_TIERS[severity]


def group_by_tier(findings: list[Finding]) -> dict[Tier, list[Finding]]:
    """Bucket findings by tier, keeping their original order inside each tier."""
    tiers: dict[Tier, list[Finding]] = {tier: [] for tier in TIER_ORDER}
    for item in findings:
        tiers[classify_tier(item.severity)].append(item)
    return tiers


def sanitize_screen_name(name: str) -> str:
    return name.replace("<", "").replace(">", "").strip()


def format_summary(screen_name: str, tiers: dict[Tier, list[Finding]], now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    total = sum(len(items) for items in tiers.values())
    lines = [f'UX Analysis: "{sanitize_screen_name(screen_name)}"', "", f"Found {total} findings:"]
    lines.extend(f"{_TIER_LABELS[tier]}: {len(tiers[tier])}" for tier in TIER_ORDER if tiers[tier])
    lines += [
        "",
        "See detailed feedback in individual comments.",
        "",
        f"Generated by UX Analysis Bot • {now:%Y-%m-%d %H:%M} UTC",
    ]
    return "\n".join(lines)


def format_tier_comment(tier: Tier, items: list[Finding]) -> str:
    blocks = [
        f"Finding {index}: {item.finding}\n"
        f"Location: {item.location}\n"
        f"Recommendation: {item.recommendation}\n"
        f"({item.principle})"
        for index, item in enumerate(items, start=1)
    ]
    return f"{_TIER_TITLES[tier]} ({len(items)})\n\n" + "\n\n".join(blocks)


def format_flow_comment(screen_name: str, tiers: dict[Tier, list[Finding]]) -> str:
    sections = []
    for tier in TIER_ORDER:
        items = tiers[tier]
        if not items:
            continue
        numbered = "\n".join(f"{index}. {item.finding}" for index, item in enumerate(items, start=1))
        sections.append(f"{tier.upper()} ({len(items)}):\n{numbered}")
    header = f'Frame: "{sanitize_screen_name(screen_name)}"'
    return "\n\n".join([header, *sections])


def plan_comments(
    findings: list[Finding], screen_name: str, layout_mode: LayoutMode
) -> list[tuple[str, CommentAnchor]]:
    """Messages and anchors to post for one screen, in posting order."""
    tiers = group_by_tier(findings)
    if layout_mode == "flow":
        return [(format_flow_comment(screen_name, tiers), FLOW_ANCHOR)]

    planned = [(format_summary(screen_name, tiers), SUMMARY_ANCHOR)]
    planned.extend(
        (format_tier_comment(tier, tiers[tier]), TIER_ANCHORS[tier]) for tier in TIER_ORDER if tiers[tier]
    )
    return planned


class CommentLayoutEngine:
    """Posts one screen's planned comments to the host, pacing successive writes."""

    def __init__(self, figma: FigmaClient, file_key: str, delay_seconds: float | None = None) -> None:
        self.figma = figma
        self.file_key = file_key
        self.delay_seconds = settings.comment_delay_seconds if delay_seconds is None else delay_seconds

    async def post_findings(
        self,
        findings: list[Finding],
        screen_name: str,
        screen_id: str,
        layout_mode: LayoutMode = "clustered",
    ) -> int:
        """Post the comments for one screen and return how many were written.

        A rejected write raises ``CommentPostError``; comments already posted
        for the screen stay in place.
        """
        planned = plan_comments(findings, screen_name, layout_mode)
        for index, (message, anchor) in enumerate(planned):
            if index:
                await asyncio.sleep(self.delay_seconds)
            await self.figma.post_comment(self.file_key, screen_id, message, anchor)
        logger.info("Posted %d %s comments on %s", len(planned), layout_mode, screen_id)
        return len(planned)
