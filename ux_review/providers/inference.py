"""Hosted open-model inference endpoints (Hugging Face, Cloudflare Workers AI)."""

from typing import Any

from ux_review.errors import ProviderAuthError
from ux_review.models.request import ProviderCredential
from ux_review.providers.base import MAX_TOKENS, TEMPERATURE, ProviderAdapter, ProviderRequest, image_data_uri


class HuggingFaceAdapter(ProviderAdapter):
    provider_id = "huggingface"
    label = "Hugging Face"
    model = "llava-hf/llava-1.5-7b-hf"

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "inputs": {"image": image_data_uri(image_bytes), "text": prompt},
            "parameters": {"max_new_tokens": MAX_TOKENS, "temperature": TEMPERATURE},
        }
        return ProviderRequest(
            url=f"https://api-inference.huggingface.co/models/{self.model}",
            payload=payload,
            headers={"Authorization": f"Bearer {credential.secret.get_secret_value()}"},
        )

    def extract_text(self, body: Any) -> str:
        # The inference API answers with either [{generated_text}] or {generated_text}
        if isinstance(body, list):
            return body[0]["generated_text"]
        return body["generated_text"]


def split_account_credential(credential: ProviderCredential, provider: str) -> tuple[str, str]:
    """Return ``(account_id, api_key)`` from an explicit account id or ``accountId:apiKey``."""
    secret = credential.secret.get_secret_value()
    if credential.account_id:
        return credential.account_id, secret
    account_id, sep, api_key = secret.partition(":")
    if not sep or not account_id or not api_key:
        raise ProviderAuthError(provider, "API key must be in format: accountId:apiKey")
    return account_id, api_key


class CloudflareAdapter(ProviderAdapter):
    """Workers AI. Needs the account id in the URL and raw image bytes as ints."""

    provider_id = "cloudflare"
    label = "Cloudflare AI"
    model = "@cf/llava-hf/llava-1.5-7b-hf"

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        account_id, api_key = split_account_credential(credential, self.label)
        payload = {
            "prompt": prompt,
            "image": list(image_bytes),
            "max_tokens": MAX_TOKENS,
        }
        return ProviderRequest(
            url=f"https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/{self.model}",
            payload=payload,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def extract_text(self, body: Any) -> str:
        return body["result"]["response"]
