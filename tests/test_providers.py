import json

import httpx
import pytest

from ux_review.config import settings
from ux_review.errors import ProviderAuthError, ProviderError, ProviderTimeoutError, UnsupportedProviderError
from ux_review.models.request import ProviderCredential
from ux_review.providers import PROVIDERS, list_providers, route
from ux_review.providers.anthropic import AnthropicAdapter
from ux_review.providers.chat import AIMLAdapter, MistralAdapter, OpenRouterAdapter
from ux_review.providers.cohere import CohereAdapter
from ux_review.providers.gemini import GeminiAdapter
from ux_review.providers.inference import CloudflareAdapter, HuggingFaceAdapter
from ux_review.providers.replicate import ReplicateAdapter

from .conftest import TINY_PNG, TINY_PNG_BYTES

PROMPT = "Analyze this screen"


def _cred(secret: str = "sk-test", provider: str = "aiml", **kwargs) -> ProviderCredential:
    return ProviderCredential(provider_id=provider, secret=secret, **kwargs)


def _dummy_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))


# --- Provider Router ---


def test_route_known_providers_case_insensitive():
    client = _dummy_client()
    assert isinstance(route("AIML", client), AIMLAdapter)
    assert isinstance(route("  Anthropic ", client), AnthropicAdapter)
    assert isinstance(route("google", client), GeminiAdapter)
    assert isinstance(route("Gemini", client), GeminiAdapter)


def test_route_unknown_provider():
    with pytest.raises(UnsupportedProviderError, match="Unsupported AI provider: bard"):
        route("bard", _dummy_client())


def test_registry_covers_all_backends():
    assert set(PROVIDERS) == {
        "aiml", "openai", "anthropic", "gemini", "groq", "openrouter",
        "huggingface", "cloudflare", "together", "replicate", "cohere", "mistral",
    }


def test_list_providers_marks_text_only_backend():
    info = {p.id: p for p in list_providers()}
    assert info["cohere"].vision is False
    assert info["aiml"].vision is True


# --- Request shapes ---


def test_chat_completions_request_shape():
    req = AIMLAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred())
    assert req.url == "https://api.aimlapi.com/v1/chat/completions"
    assert req.headers["Authorization"] == "Bearer sk-test"
    content = req.payload["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": PROMPT}
    assert content[1] == {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{TINY_PNG}"}}
    assert req.payload["model"] == "gpt-4o-mini"
    assert req.payload["max_tokens"] == 4096


def test_openrouter_sends_attribution_headers():
    req = OpenRouterAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred())
    assert "HTTP-Referer" in req.headers
    assert req.headers["X-Title"] == "UX Analysis for feedback"


def test_mistral_image_part_is_plain_data_uri():
    req = MistralAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred())
    image_part = req.payload["messages"][0]["content"][1]
    assert image_part == {"type": "image_url", "image_url": f"data:image/png;base64,{TINY_PNG}"}


def test_anthropic_request_shape():
    req = AnthropicAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred("sk-ant"))
    assert req.headers["x-api-key"] == "sk-ant"
    assert req.headers["anthropic-version"] == "2023-06-01"
    image_block, text_block = req.payload["messages"][0]["content"]
    assert image_block["source"] == {"type": "base64", "media_type": "image/png", "data": TINY_PNG}
    assert text_block == {"type": "text", "text": PROMPT}


def test_gemini_key_in_query_not_headers():
    req = GeminiAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred("g-key"))
    assert req.params == {"key": "g-key"}
    assert "Authorization" not in req.headers
    parts = req.payload["contents"][0]["parts"]
    assert parts[1]["inline_data"] == {"mime_type": "image/png", "data": TINY_PNG}


def test_huggingface_request_shape():
    req = HuggingFaceAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred())
    assert req.payload["inputs"] == {"image": f"data:image/png;base64,{TINY_PNG}", "text": PROMPT}


def test_cloudflare_splits_composite_key():
    req = CloudflareAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred("acct42:cf-token"))
    assert "/accounts/acct42/ai/run/" in req.url
    assert req.headers["Authorization"] == "Bearer cf-token"
    assert req.payload["image"] == list(TINY_PNG_BYTES)


def test_cloudflare_explicit_account_id():
    req = CloudflareAdapter(_dummy_client()).build_request(
        TINY_PNG_BYTES, PROMPT, _cred("cf-token", account_id="acct7")
    )
    assert "/accounts/acct7/" in req.url


@pytest.mark.parametrize("secret", ["no-colon-token", ":token", "acct:"])
def test_cloudflare_malformed_credential(secret):
    with pytest.raises(ProviderAuthError, match="accountId:apiKey"):
        CloudflareAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred(secret))


def test_cohere_is_text_only():
    req = CohereAdapter(_dummy_client()).build_request(TINY_PNG_BYTES, PROMPT, _cred())
    body = json.dumps(req.payload)
    assert TINY_PNG not in body
    assert req.payload["message"].startswith(PROMPT)
    assert "limited vision support" in req.payload["message"]


# --- Round trips through a mock transport ---


@pytest.mark.asyncio
async def test_analyze_returns_raw_text_unmodified():
    raw = "```json\n[]\n```"
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"choices": [{"message": {"content": raw}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await route("aiml", client).analyze(TINY_PNG_BYTES, PROMPT, _cred())

    assert text == raw
    assert len(seen) == 1
    assert seen[0].headers["Authorization"] == "Bearer sk-test"


@pytest.mark.asyncio
async def test_chat_content_parts_are_joined():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": [{"type": "text", "text": "[1]"}]}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await route("openrouter", client).analyze(TINY_PNG_BYTES, PROMPT, _cred()) == "[1]"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("provider", "envelope"),
    [
        ("anthropic", {"content": [{"type": "text", "text": "reply"}]}),
        ("gemini", {"candidates": [{"content": {"parts": [{"text": "reply"}]}}]}),
        ("huggingface", [{"generated_text": "reply"}]),
        ("huggingface", {"generated_text": "reply"}),
        ("cloudflare", {"result": {"response": "reply"}, "success": True}),
        ("cohere", {"text": "reply"}),
    ],
)
async def test_envelope_extraction(provider, envelope):
    def handler(request):
        return httpx.Response(200, json=envelope)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        text = await route(provider, client).analyze(TINY_PNG_BYTES, PROMPT, _cred("acct:key"))
    assert text == "reply"


@pytest.mark.asyncio
async def test_non_success_status_raises_provider_error():
    def handler(request):
        return httpx.Response(429, text="rate limited")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ProviderError) as exc_info:
            await route("groq", client).analyze(TINY_PNG_BYTES, PROMPT, _cred())

    assert exc_info.value.http_status == 429
    assert exc_info.value.backend_message == "rate limited"
    assert "Groq API error (429)" in str(exc_info.value)


@pytest.mark.asyncio
async def test_unexpected_envelope_raises_provider_error():
    def handler(request):
        return httpx.Response(200, json={"choices": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ProviderError, match="Unexpected response shape"):
            await route("openai", client).analyze(TINY_PNG_BYTES, PROMPT, _cred())


@pytest.mark.asyncio
async def test_string_content_parts_raise_provider_error():
    def handler(request):
        return httpx.Response(200, json={"choices": [{"message": {"content": ["[", "]"]}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ProviderError, match="Unexpected response shape"):
            await route("openrouter", client).analyze(TINY_PNG_BYTES, PROMPT, _cred())


@pytest.mark.asyncio
async def test_auth_error_sends_no_request():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"result": {"response": "[]"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ProviderAuthError):
            await route("cloudflare", client).analyze(TINY_PNG_BYTES, PROMPT, _cred("just-a-token"))
    assert seen == []


def test_credential_repr_hides_secret():
    cred = _cred("sk-very-secret")
    assert "sk-very-secret" not in repr(cred)
    assert "sk-very-secret" not in str(cred.model_dump())


# --- Replicate polling ---


class _ReplicateFake:
    def __init__(self, statuses: list[str], output=None, error=None) -> None:
        self.statuses = statuses
        self.output = output if output is not None else ["[", "]"]
        self.error = error
        self.polls = 0
        self.submissions: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        poll_url = "https://api.replicate.com/v1/predictions/p1"
        if request.method == "POST":
            self.submissions.append(request)
            return httpx.Response(201, json={"id": "p1", "status": "starting", "urls": {"get": poll_url}})
        status = self.statuses[min(self.polls, len(self.statuses) - 1)]
        self.polls += 1
        body = {"id": "p1", "status": status, "error": self.error}
        if status == "succeeded":
            body["output"] = self.output
        return httpx.Response(200, json=body)


@pytest.mark.asyncio
async def test_replicate_polls_until_succeeded():
    fake = _ReplicateFake(["processing", "processing", "succeeded"], output=["[{", "}]"])
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as client:
        text = await ReplicateAdapter(client, poll_interval=0, poll_timeout=5).analyze(
            TINY_PNG_BYTES, PROMPT, _cred("r8_key")
        )

    assert text == "[{}]"
    assert fake.polls == 3
    submission = fake.submissions[0]
    assert submission.headers["Authorization"] == "Token r8_key"
    assert json.loads(submission.content)["input"]["image"].startswith("data:image/png;base64,")
    assert str(submission.url) == "https://api.replicate.com/v1/predictions"
    assert json.loads(submission.content)["version"] == settings.replicate_model_version


@pytest.mark.asyncio
async def test_replicate_failed_prediction():
    fake = _ReplicateFake(["failed"], error="CUDA out of memory")
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as client:
        with pytest.raises(ProviderError, match="CUDA out of memory"):
            await ReplicateAdapter(client, poll_interval=0, poll_timeout=5).analyze(TINY_PNG_BYTES, PROMPT, _cred())


@pytest.mark.asyncio
async def test_replicate_poll_timeout_is_bounded():
    fake = _ReplicateFake(["processing"])
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake)) as client:
        with pytest.raises(ProviderTimeoutError):
            await ReplicateAdapter(client, poll_interval=0.01, poll_timeout=0.05).analyze(
                TINY_PNG_BYTES, PROMPT, _cred()
            )
    assert fake.polls >= 1


def test_replicate_uses_settings_for_polling(monkeypatch):
    monkeypatch.setattr(settings, "poll_interval_seconds", 2.5)
    monkeypatch.setattr(settings, "poll_timeout_seconds", 60.0)
    adapter = ReplicateAdapter(_dummy_client())
    assert adapter.poll_interval == 2.5
    assert adapter.poll_timeout == 60.0


def test_replicate_version_override():
    req = ReplicateAdapter(_dummy_client(), version="abc123").build_request(TINY_PNG_BYTES, PROMPT, _cred())
    assert req.payload["version"] == "abc123"
    assert req.url == "https://api.replicate.com/v1/predictions"
