"""
Mock Image Service

Returns a deterministic placeholder photo URL for each prompt without
calling any generator. Used in development mode.
"""

import logging
from urllib.parse import quote

from app.services.imagery.base import BaseImageService, ImageResult

logger = logging.getLogger(__name__)


class MockImageService(BaseImageService):

    def __init__(self, width: int = 600, height: int = 400):
        self.width = width
        self.height = height

    @property
    def provider_name(self) -> str:
        return "mock"

    async def generate(self, prompt: str) -> ImageResult:
        if not prompt.strip():
            return ImageResult(
                success=False,
                error_message="Describe the image you want first",
                error_code="empty_prompt",
            )

        url = f"https://picsum.photos/seed/{quote(prompt.strip())}/{self.width}/{self.height}"
        logger.debug(f"Mock: Placeholder image for '{prompt}'")
        return ImageResult(success=True, image=url)
