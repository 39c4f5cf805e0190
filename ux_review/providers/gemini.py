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


class GeminiAdapter(ProviderAdapter):
    """generateContent API. The key travels as a query parameter, not a header."""

    provider_id = "gemini"
    label = "Gemini"
    model = "gemini-1.5-flash"

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"inline_data": {"mime_type": IMAGE_MIME, "data": encode_image(image_bytes)}},
                    ]
                }
            ],
            "generationConfig": {"temperature": TEMPERATURE, "maxOutputTokens": MAX_TOKENS},
        }
        return ProviderRequest(
            url=f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent",
            payload=payload,
            params={"key": credential.secret.get_secret_value()},
        )

    def extract_text(self, body: Any) -> str:
        return body["candidates"][0]["content"]["parts"][0]["text"]
