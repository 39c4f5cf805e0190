from typing import Any

from ux_review.models.request import ProviderCredential
from ux_review.providers.base import (
    IMAGE_MIME,
    MAX_TOKENS,
    TEMPERATURE,
    ProviderAdapter,
    ProviderRequest,
    encode_image,
)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(ProviderAdapter):
    """Messages API: raw base64 image block first, then the prompt text."""

    provider_id = "anthropic"
    label = "Claude"
    model = "claude-sonnet-4-20250514"

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "model": self.model,
            "max_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {"type": "base64", "media_type": IMAGE_MIME, "data": encode_image(image_bytes)},
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        headers = {
            "x-api-key": credential.secret.get_secret_value(),
            "anthropic-version": ANTHROPIC_VERSION,
        }
        return ProviderRequest(url="https://api.anthropic.com/v1/messages", payload=payload, headers=headers)

    def extract_text(self, body: Any) -> str:
        return body["content"][0]["text"]
