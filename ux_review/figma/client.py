import io
import logging

import httpx
from PIL import Image

from ux_review.config import settings
from ux_review.errors import CommentPostError, ImageExportError
from ux_review.models.response import CommentAnchor

logger = logging.getLogger(__name__)

# Above this the base64 payload risks provider request-size limits
LARGE_IMAGE_KB = 4000


def prepare_image(image_bytes: bytes, max_dim: int) -> bytes:
    """Downscale so the longest side fits ``max_dim``; always returns PNG bytes."""
    img = Image.open(io.BytesIO(image_bytes))
    w, h = img.size
    if max(w, h) <= max_dim and img.format == "PNG":
        return image_bytes
    if max(w, h) > max_dim:
        scale = max_dim / max(w, h)
        new_size = (max(1, int(w * scale)), max(1, int(h * scale)))
        img = img.resize(new_size, Image.LANCZOS)
        logger.info("Resized screen image from %dx%d to %dx%d", w, h, *new_size)
    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


class FigmaClient:
    """REST calls against the design file: render a node, fetch it, comment on it."""

    def __init__(
        self,
        token: str,
        client: httpx.AsyncClient,
        base_url: str | None = None,
        image_scale: int | None = None,
        max_image_dimension: int | None = None,
    ) -> None:
        self.client = client
        self.base_url = (base_url or settings.figma_api_base).rstrip("/")
        self.image_scale = image_scale or settings.image_scale
        self.max_image_dimension = max_image_dimension or settings.max_image_dimension
        self._headers = {"X-Figma-Token": token}

    async def export_image_url(self, file_key: str, node_id: str) -> str:
        response = await self.client.get(
            f"{self.base_url}/images/{file_key}",
            params={"ids": node_id, "format": "png", "scale": str(self.image_scale)},
            headers=self._headers,
        )
        if not response.is_success:
            raise ImageExportError(f"Figma export failed ({response.status_code}): {response.text}")

        data = response.json()
        if data.get("err"):
            raise ImageExportError(f"Figma export failed: {data['err']}")
        image_url = (data.get("images") or {}).get(node_id)
        if not image_url:
            raise ImageExportError("No image URL returned from Figma")
        return image_url

    async def download_image(self, image_url: str) -> bytes:
        # Signed CDN URL; the Figma token must not be sent along
        response = await self.client.get(image_url)
        if not response.is_success:
            raise ImageExportError(f"Failed to download image ({response.status_code})")
        return response.content

    async def fetch_screen_image(self, file_key: str, node_id: str) -> bytes:
        image_url = await self.export_image_url(file_key, node_id)
        raw = await self.download_image(image_url)
        size_kb = round(len(raw) * 4 / 3 / 1024)
        if size_kb > LARGE_IMAGE_KB:
            logger.warning("Large image for node %s: ~%d KB as base64", node_id, size_kb)
        try:
            return prepare_image(raw, self.max_image_dimension)
        except OSError as exc:
            raise ImageExportError(f"Exported image for node {node_id} could not be decoded: {exc}") from exc

    async def post_comment(self, file_key: str, node_id: str, message: str, anchor: CommentAnchor) -> None:
        response = await self.client.post(
            f"{self.base_url}/files/{file_key}/comments",
            json={
                "message": message,
                "client_meta": {"node_id": node_id, "node_offset": {"x": anchor.x, "y": anchor.y}},
            },
            headers=self._headers,
        )
        if not response.is_success:
            logger.error("Failed to post comment on %s: %s", node_id, response.text)
            raise CommentPostError(response.status_code, response.text)
