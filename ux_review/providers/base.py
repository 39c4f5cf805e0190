"""Contract shared by every AI backend adapter.

An adapter turns ``(image bytes, prompt, credential)`` into the backend's raw
reply text. It owns the wire format (body shape, auth header, image encoding,
reply envelope) and nothing else: parsing findings out of the reply is the
normalizer's job, so adapters stay interchangeable.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx

from ux_review.errors import ProviderError
from ux_review.models.request import ProviderCredential

logger = logging.getLogger(__name__)

MAX_TOKENS = 4096
TEMPERATURE = 0.4
IMAGE_MIME = "image/png"


def encode_image(image_bytes: bytes) -> str:
    return base64.b64encode(image_bytes).decode("ascii")


def image_data_uri(image_bytes: bytes) -> str:
    return f"data:{IMAGE_MIME};base64,{encode_image(image_bytes)}"


@dataclass
class ProviderRequest:
    url: str
    payload: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None


class ProviderAdapter(ABC):
    """One backend. Subclasses set the class attributes and build the request."""

    provider_id: ClassVar[str]
    label: ClassVar[str]
    model: ClassVar[str]
    supports_vision: ClassVar[bool] = True

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    @abstractmethod
    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        """Return the single HTTP request that carries the analysis."""

    @abstractmethod
    def extract_text(self, body: Any) -> str:
        """Pull the reply text out of the backend's response envelope."""

    async def analyze(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> str:
        request = self.build_request(image_bytes, prompt, credential)
        logger.info(
            "Sending to %s (model %s, %d image bytes, prompt %d chars)",
            self.label,
            self.model,
            len(image_bytes) if self.supports_vision else 0,
            len(prompt),
        )
        body = await self._send(request)
        text = self._reply_text(body)
        logger.info("%s replied with %d chars", self.label, len(text))
        return text

    async def _send(self, request: ProviderRequest) -> Any:
        response = await self.client.post(
            request.url,
            json=request.payload,
            headers={"Content-Type": "application/json", **request.headers},
            params=request.params,
        )
        return self._json(response)

    def _json(self, response: httpx.Response) -> Any:
        if not response.is_success:
            logger.error("%s returned %d", self.label, response.status_code)
            raise ProviderError(self.label, response.status_code, response.text)
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(self.label, response.status_code, f"Response is not JSON: {response.text[:200]}") from exc

    def _reply_text(self, body: Any) -> str:
        try:
            text = self.extract_text(body)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError(self.label, 200, f"Unexpected response shape: {str(body)[:200]}") from exc
        if not isinstance(text, str):
            raise ProviderError(self.label, 200, f"Reply text is {type(text).__name__}, not a string")
        return text
