"""Backends that speak the OpenAI chat-completions dialect.

They differ only in endpoint, model, a few extra headers and, for Mistral, how
the image part is spelled.
"""

from typing import Any, ClassVar

from ux_review.models.request import ProviderCredential
from ux_review.providers.base import MAX_TOKENS, TEMPERATURE, ProviderAdapter, ProviderRequest, image_data_uri


class ChatCompletionsAdapter(ProviderAdapter):
    endpoint: ClassVar[str]
    extra_headers: ClassVar[dict[str, str]] = {}
    extra_params: ClassVar[dict[str, Any]] = {}

    def image_part(self, image_bytes: bytes) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": image_data_uri(image_bytes)}}

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}, self.image_part(image_bytes)],
                }
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
            **self.extra_params,
        }
        headers = {"Authorization": f"Bearer {credential.secret.get_secret_value()}", **self.extra_headers}
        return ProviderRequest(url=self.endpoint, payload=payload, headers=headers)

    def extract_text(self, body: Any) -> str:
        content = body["choices"][0]["message"]["content"]
        # Some routers return content as a list of typed parts
        if isinstance(content, list):
            return "\n".join(part["text"] for part in content if part.get("type") == "text")
        return content


class AIMLAdapter(ChatCompletionsAdapter):
    provider_id = "aiml"
    label = "AIML API"
    model = "gpt-4o-mini"
    endpoint = "https://api.aimlapi.com/v1/chat/completions"
    extra_params = {"top_p": 1}


class OpenAIAdapter(ChatCompletionsAdapter):
    provider_id = "openai"
    label = "OpenAI"
    model = "gpt-4o-mini"
    endpoint = "https://api.openai.com/v1/chat/completions"


class GroqAdapter(ChatCompletionsAdapter):
    provider_id = "groq"
    label = "Groq"
    model = "llama-3.2-90b-vision-preview"
    endpoint = "https://api.groq.com/openai/v1/chat/completions"


class OpenRouterAdapter(ChatCompletionsAdapter):
    provider_id = "openrouter"
    label = "OpenRouter"
    model = "openai/gpt-4o-mini"
    endpoint = "https://openrouter.ai/api/v1/chat/completions"
    extra_headers = {
        "HTTP-Referer": "https://github.com/ux-review/ux-review",
        "X-Title": "UX Analysis for feedback",
    }


class TogetherAdapter(ChatCompletionsAdapter):
    provider_id = "together"
    label = "Together AI"
    model = "meta-llama/Llama-3.2-11B-Vision-Instruct-Turbo"
    endpoint = "https://api.together.xyz/v1/chat/completions"


class MistralAdapter(ChatCompletionsAdapter):
    provider_id = "mistral"
    label = "Mistral"
    model = "pixtral-12b-2409"
    endpoint = "https://api.mistral.ai/v1/chat/completions"

    def image_part(self, image_bytes: bytes) -> dict[str, Any]:
        # Mistral takes the data URI directly, not wrapped in {"url": ...}
        return {"type": "image_url", "image_url": image_data_uri(image_bytes)}
