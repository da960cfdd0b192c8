"""
HTTP Image Generation Service

Posts prompts to a configured image generation endpoint with httpx and
returns the result as a ``data:`` URI so it can be stored directly on a
restaurant or menu item.

The endpoint may answer with raw image bytes (``Content-Type: image/*``)
or with JSON carrying base64 data under ``image`` or ``data`` and an
optional ``mimeType``.

Author: Khalil Bannouri
Version: 4.0.0
"""

import base64
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import get_settings
from app.services.imagery.base import BaseImageService, ImageResult

logger = logging.getLogger(__name__)


class HttpImageService(BaseImageService):
    """
    Image generation over HTTP.

    Raises:
        ValueError: If no endpoint is configured
    """

    DEFAULT_MIME = "image/png"

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.url = url or settings.image_generation_url
        if not self.url:
            raise ValueError(
                "IMAGE_GENERATION_URL is required outside development mode. "
                "Set it in your .env file or environment variables."
            )

        headers = {}
        key = api_key or settings.image_generation_api_key
        if key:
            headers["Authorization"] = f"Bearer {key}"

        self._client = client or httpx.AsyncClient(
            headers=headers,
            timeout=timeout or settings.image_generation_timeout,
        )
        logger.info(f"HttpImageService initialized ({self.url})")

    @property
    def provider_name(self) -> str:
        return "http"

    @staticmethod
    def _data_uri(payload: str, mime: str) -> str:
        return f"data:{mime};base64,{payload}"

    def _extract(self, response: httpx.Response) -> Optional[str]:
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("image/"):
            mime = content_type.split(";")[0]
            return self._data_uri(base64.b64encode(response.content).decode("ascii"), mime)

        body = response.json()
        payload = body.get("image") or body.get("data")
        if not payload:
            return None
        if payload.startswith("data:") or payload.startswith("http"):
            return payload
        return self._data_uri(payload, body.get("mimeType") or self.DEFAULT_MIME)

    async def generate(self, prompt: str) -> ImageResult:
        start_time = datetime.now()

        def elapsed() -> float:
            return (datetime.now() - start_time).total_seconds() * 1000

        if not prompt.strip():
            return ImageResult(
                success=False,
                error_message="Describe the image you want first",
                error_code="empty_prompt",
            )

        try:
            response = await self._client.post(self.url, json={"prompt": prompt})
            response.raise_for_status()
            image = self._extract(response)
        except httpx.TimeoutException:
            logger.error("Image generation timed out")
            return ImageResult(
                success=False,
                error_message="Image generation timed out. Please try again.",
                error_code="timeout",
                response_time_ms=elapsed(),
            )
        except httpx.HTTPStatusError as e:
            logger.error(f"Image generation failed: HTTP {e.response.status_code}")
            return ImageResult(
                success=False,
                error_message="The image generator rejected the request.",
                error_code=f"http_{e.response.status_code}",
                response_time_ms=elapsed(),
            )
        except httpx.HTTPError as e:
            logger.error(f"Image generation transport error: {e}")
            return ImageResult(
                success=False,
                error_message="Unable to reach the image generator.",
                error_code="transport_error",
                response_time_ms=elapsed(),
            )
        except (ValueError, AttributeError) as e:
            logger.error(f"Image generation returned an unreadable body: {e}")
            return ImageResult(
                success=False,
                error_message="The image generator returned an unexpected response.",
                error_code="bad_response",
                response_time_ms=elapsed(),
            )

        if image is None:
            return ImageResult(
                success=False,
                error_message="No image was generated. Try a different description.",
                error_code="empty_response",
                response_time_ms=elapsed(),
            )

        logger.info(f"Generated image for '{prompt[:40]}' in {elapsed():.0f}ms")
        return ImageResult(success=True, image=image, response_time_ms=elapsed())

    async def close(self) -> None:
        await self._client.aclose()
