from typing import Any

from ux_review.models.request import ProviderCredential
from ux_review.providers.base import MAX_TOKENS, TEMPERATURE, ProviderAdapter, ProviderRequest

TEXT_ONLY_NOTE = (
    "[Image analysis requested - the screenshot is not attached because this model has "
    "limited vision support. Analyze based on the screen metadata and structure above.]"
)


class CohereAdapter(ProviderAdapter):
    """Chat API without image input; the prompt's screen description stands in."""

    provider_id = "cohere"
    label = "Cohere"
    model = "command-r-plus"
    supports_vision = False

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "model": self.model,
            "message": f"{prompt}\n\n{TEXT_ONLY_NOTE}",
            "temperature": TEMPERATURE,
            "max_tokens": MAX_TOKENS,
        }
        return ProviderRequest(
            url="https://api.cohere.ai/v1/chat",
            payload=payload,
            headers={"Authorization": f"Bearer {credential.secret.get_secret_value()}"},
        )

    def extract_text(self, body: Any) -> str:
        return body["text"]
