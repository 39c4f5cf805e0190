import asyncio
import logging
from typing import Any

from ux_review.config import settings
from ux_review.errors import ProviderError, ProviderTimeoutError
from ux_review.models.request import ProviderCredential
from ux_review.providers.base import MAX_TOKENS, TEMPERATURE, ProviderAdapter, ProviderRequest, image_data_uri

logger = logging.getLogger(__name__)

PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"
TERMINAL_STATES = frozenset({"succeeded", "failed", "canceled"})


class ReplicateAdapter(ProviderAdapter):
    """Async prediction API: one submission, then status polls until terminal.

    Polling stops after ``poll_timeout_seconds`` with ``ProviderTimeoutError``
    so a stuck prediction cannot hold the batch open forever.
    """

    provider_id = "replicate"
    label = "Replicate"
    model = "yorickvp/llava-13b"

    def __init__(
        self,
        client,
        poll_interval: float | None = None,
        poll_timeout: float | None = None,
        version: str | None = None,
    ) -> None:
        super().__init__(client)
        self.version = version or settings.replicate_model_version
        self.poll_interval = settings.poll_interval_seconds if poll_interval is None else poll_interval
        self.poll_timeout = settings.poll_timeout_seconds if poll_timeout is None else poll_timeout

    def _auth(self, credential: ProviderCredential) -> dict[str, str]:
        return {"Authorization": f"Token {credential.secret.get_secret_value()}"}

    def build_request(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> ProviderRequest:
        payload = {
            "version": self.version,
            "input": {
                "image": image_data_uri(image_bytes),
                "prompt": prompt,
                "max_tokens": MAX_TOKENS,
                "temperature": TEMPERATURE,
            },
        }
        return ProviderRequest(
            url=PREDICTIONS_URL,
            payload=payload,
            headers=self._auth(credential),
        )

    def extract_text(self, body: Any) -> str:
        output = body["output"]
        # Language models stream tokens, so output is usually a list of fragments
        if isinstance(output, list):
            return "".join(str(chunk) for chunk in output)
        return output

    async def analyze(self, image_bytes: bytes, prompt: str, credential: ProviderCredential) -> str:
        request = self.build_request(image_bytes, prompt, credential)
        logger.info("Submitting prediction to %s (model %s, version %s)", self.label, self.model, self.version[:12])
        prediction = await self._send(request)

        try:
            poll_url = prediction.get("urls", {}).get("get") or f"{PREDICTIONS_URL}/{prediction['id']}"
        except (AttributeError, KeyError) as exc:
            raise ProviderError(self.label, 200, f"Unexpected response shape: {str(prediction)[:200]}") from exc

        loop = asyncio.get_running_loop()
        started = loop.time()
        polls = 0
        while prediction.get("status") not in TERMINAL_STATES:
            elapsed = loop.time() - started
            if elapsed >= self.poll_timeout:
                logger.error("%s prediction still %s after %d polls", self.label, prediction.get("status"), polls)
                raise ProviderTimeoutError(self.label, elapsed)
            await asyncio.sleep(self.poll_interval)
            response = await self.client.get(poll_url, headers=self._auth(credential))
            prediction = self._json(response)
            polls += 1

        logger.info("%s prediction %s after %d polls", self.label, prediction["status"], polls)
        if prediction["status"] != "succeeded":
            raise ProviderError(self.label, 200, f"Prediction {prediction['status']}: {prediction.get('error') or 'no detail'}")
        return self._reply_text(prediction)
