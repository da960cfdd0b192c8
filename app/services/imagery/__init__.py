"""
Image Service Factory

Environment Switching:
    - ENV_MODE=development → MockImageService (placeholder URLs)
    - ENV_MODE=staging/production → HttpImageService

Author: Khalil Bannouri
Version: 4.0.0
"""

import logging
from functools import lru_cache

from app.core.config import get_settings
from app.services.imagery.base import BaseImageService, ImageResult
from app.services.imagery.http import HttpImageService
from app.services.imagery.mock import MockImageService

logger = logging.getLogger(__name__)


@lru_cache()
def get_image_service() -> BaseImageService:
    """
    Get the configured image service instance.

    Raises:
        ValueError: If production mode but no generation endpoint configured
    """
    settings = get_settings()

    if settings.is_development:
        logger.info("Image Service: Using MockImageService (development mode)")
        return MockImageService()

    logger.info(
        f"Image Service: Using HttpImageService "
        f"({settings.env_mode.value} mode)"
    )
    return HttpImageService()


def reset_image_service() -> None:
    get_image_service.cache_clear()
    logger.debug("Image service cache cleared")


__all__ = [
    "get_image_service",
    "reset_image_service",
    "BaseImageService",
    "ImageResult",
    "MockImageService",
    "HttpImageService",
]
