import base64
import json
from collections.abc import Callable

import httpx
import pytest

from tests import TEST_API_KEY

# Minimal valid 1x1 PNG as base64
TINY_PNG = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
TINY_PNG_BYTES = base64.b64decode(TINY_PNG)

FILE_KEY = "AbC123fileKey"


def finding(severity: str, text: str = "Primary CTA is low contrast", **overrides) -> dict:
    item = {
        "location": "Sign up button",
        "category": "Visual Design",
        "severity": severity,
        "finding": text,
        "recommendation": "Raise contrast to at least 4.5:1",
        "principle": "WCAG 1.4.3",
    }
    item.update(overrides)
    return item


# 2 critical-tier, 1 moderate, 2 good
EXAMPLE_FINDINGS = [
    finding("critical", "Checkout button hidden below the fold"),
    finding("high", "Error state has no message"),
    finding("medium", "Too many fields on first step"),
    finding("positive", "Clear visual hierarchy"),
    finding("low", "Slightly long headline"),
]


def fenced_reply(items: list[dict]) -> str:
    return "Here is my analysis:\n```json\n" + json.dumps(items, indent=2) + "\n```\nLet me know if you need more."


def screen_payload(screen_id: str, name: str, **extra) -> dict:
    payload = {
        "id": screen_id,
        "name": name,
        "width": 390,
        "height": 844,
        "structure": {"name": name, "type": "FRAME", "depth": 0, "children": []},
        "textContent": ["Create account", "Continue"],
        "interactiveElements": [{"name": "Continue button", "type": "INSTANCE"}],
    }
    payload.update(extra)
    return payload


class FakeBackends:
    """httpx.MockTransport handler standing in for Figma, its CDN and the AI backends.

    Records every request. Exports fail for node ids in ``fail_export_for``.
    """

    def __init__(self, reply_text: str | None = None) -> None:
        self.reply_text = reply_text if reply_text is not None else fenced_reply(EXAMPLE_FINDINGS)
        self.requests: list[httpx.Request] = []
        self.fail_export_for: set[str] = set()
        self.comment_status = 200

    @property
    def comment_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/comments")]

    def ai_requests(self, host: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host, path = request.url.host, request.url.path

        if host == "api.figma.com" and path.startswith("/v1/images/"):
            node_id = request.url.params["ids"]
            if node_id in self.fail_export_for:
                return httpx.Response(400, text="Render failed")
            return httpx.Response(200, json={"err": None, "images": {node_id: f"https://cdn.figma.test/{node_id}.png"}})
        if host == "cdn.figma.test":
            return httpx.Response(200, content=TINY_PNG_BYTES)
        if host == "api.figma.com" and path.endswith("/comments"):
            return httpx.Response(self.comment_status, json={"id": f"c{len(self.comment_requests)}"})
        if host == "api.aimlapi.com":
            return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": self.reply_text}}]})
        return httpx.Response(404, text=f"unexpected {request.method} {request.url}")


@pytest.fixture
def fake_backends() -> FakeBackends:
    return FakeBackends()


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    def _make(handler):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    """API key on, Figma token present, no real sleeping."""
    from ux_review.config import settings

    monkeypatch.setattr(settings, "api_key", TEST_API_KEY)
    monkeypatch.setattr(settings, "figma_access_token", "figd_test_token")
    monkeypatch.setattr(settings, "default_ai_api_key", "")
    monkeypatch.setattr(settings, "comment_delay_seconds", 0.0)
    monkeypatch.setattr(settings, "poll_interval_seconds", 0.0)
    monkeypatch.setattr(settings, "poll_timeout_seconds", 5.0)
