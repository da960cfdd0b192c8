"""
Image Generation Service Abstract Base Class

Operators can ask for a generated picture of a dish or restaurant instead
of pasting an image URL. Implementations turn a free-text prompt into an
inline image payload (a data URI) or a URL the browser can load directly.

Author: Khalil Bannouri
Version: 4.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ImageResult:
    """
    Result from an image generation request.

    Attributes:
        success: Whether an image was produced
        image: Data URI or URL of the generated image
        error_message: User-facing error if generation failed
        error_code: Machine-readable error code
        response_time_ms: Provider response time
    """
    success: bool
    image: Optional[str] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    response_time_ms: float = 0.0


class BaseImageService(ABC):
    """Generates images from text prompts. Never raises from ``generate``."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def generate(self, prompt: str) -> ImageResult:
        """
        Generate one image for a prompt.

        Args:
            prompt: Free-text description (e.g., "Chicken biryani in a clay pot")

        Returns:
            ImageResult: Image payload, or an error message
        """
        pass

    async def close(self) -> None:
        """Release network resources, if any."""
        return None
