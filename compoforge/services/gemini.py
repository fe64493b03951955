"""Image service backed by the Google Generative Language REST API.

- Generation uses an Imagen model via ``models/{model}:predict``.
- Editing and mask generation use a Gemini image model via
  ``models/{model}:generateContent`` with an inline image part.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from compoforge.config import settings
from compoforge.exceptions import EditError, GenerationError, MaskError, ServiceConfigurationError
from compoforge.imaging.codec import mime_type

from .base import ImageService

logger = logging.getLogger(__name__)

MASK_PROMPT = (
    "Generate a high-contrast binary mask for the main subject in this image. "
    "The subject should be solid pure white (#FFFFFF) and the background solid pure black (#000000). "
    "Ensure edges are precise and the interior of the subject is fully white without gray spots."
)


def _first_inline_image(response: dict[str, Any]) -> bytes | None:
    """Extract the first inline image part from a generateContent response."""
    candidates = response.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    for part in parts:
        inline = part.get("inlineData") or part.get("inline_data")
        if inline and inline.get("data"):
            return base64.b64decode(inline["data"])
    return None


class GeminiImageService(ImageService):
    """
    Gemini/Imagen implementation of ImageService.

    Args:
        api_key: API key, defaults to settings.GEMINI_API_KEY
        base_url: API root, defaults to settings.GEMINI_BASE_URL
        client: Optional shared AsyncClient (its base_url is used as is);
            without one a short-lived client is opened per call
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url or settings.GEMINI_BASE_URL
        self._client = client

    def _headers(self) -> dict[str, str]:
        api_key = self.api_key or settings.GEMINI_API_KEY
        if not api_key:
            raise ServiceConfigurationError(
                "GEMINI_API_KEY is missing. Set COMPOFORGE_GEMINI_API_KEY in the environment."
            )
        return {"x-goog-api-key": api_key}

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        headers = self._headers()
        if self._client is not None:
            resp = await self._client.post(path, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=settings.REQUEST_TIMEOUT) as client:
                resp = await client.post(path, json=payload, headers=headers)
        resp.raise_for_status()
        return resp.json()

    async def _generate_content(self, image: bytes, text: str) -> dict[str, Any]:
        payload = {
            "contents": [{
                "parts": [
                    {
                        "inlineData": {
                            "mimeType": mime_type(image),
                            "data": base64.b64encode(image).decode("ascii"),
                        }
                    },
                    {"text": text},
                ]
            }],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        return await self._post(f"models/{settings.EDIT_MODEL}:generateContent", payload)

    async def generate_image(self, prompt: str) -> bytes:
        logger.info(f"Generating image with {settings.GENERATE_MODEL}")
        payload = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": "1:1",
                "outputOptions": {"mimeType": "image/jpeg"},
            },
        }
        response = await self._post(f"models/{settings.GENERATE_MODEL}:predict", payload)
        predictions = response.get("predictions") or []
        encoded = predictions[0].get("bytesBase64Encoded") if predictions else None
        if not encoded:
            raise GenerationError("No image generated")
        return base64.b64decode(encoded)

    async def edit_image(self, image: bytes, prompt: str) -> bytes:
        logger.info(f"Editing image with {settings.EDIT_MODEL}")
        result = _first_inline_image(await self._generate_content(image, prompt))
        if result is None:
            raise EditError("Model did not return an image.")
        return result

    async def generate_foreground_mask(self, image: bytes) -> bytes:
        logger.info(f"Requesting foreground mask from {settings.EDIT_MODEL}")
        result = _first_inline_image(await self._generate_content(image, MASK_PROMPT))
        if result is None:
            raise MaskError("Model did not return a mask.")
        return result
