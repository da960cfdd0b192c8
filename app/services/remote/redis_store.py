"""
Redis Remote Mirror Implementation

Production implementation backed by Redis. Used when ENV_MODE=production or
ENV_MODE=staging and REMOTE_SYNC_ENABLED=true.

Layout:
    - The master document is a JSON string at ``<remote_document_key>``
    - Every write also publishes the document on ``<remote_document_key>:changes``
    - Subscribers read the key once, then follow the channel

Requirements:
    - REDIS_URL must be set in environment

Author: Khalil Bannouri
Version: 4.0.0
"""

import asyncio
import json
import logging
from contextlib import suppress
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.core.config import get_settings
from app.core.exceptions import RemoteMirrorError
from app.services.remote.base import (
    BaseRemoteMirror,
    DocumentListener,
    ErrorListener,
    Unsubscribe,
)

logger = logging.getLogger(__name__)


class RedisRemoteMirror(BaseRemoteMirror):
    """
    Redis-backed remote mirror.

    Example:
        >>> mirror = RedisRemoteMirror("redis://localhost:6379/0")
        >>> await mirror.write({"_timestamp": 1, "restaurants": []})
        >>> (await mirror.read())["_timestamp"]
        1
    """

    def __init__(
        self,
        url: Optional[str] = None,
        document_key: Optional[str] = None,
    ):
        """
        Initialize the Redis client.

        Raises:
            ValueError: If no Redis URL is configured
        """
        settings = get_settings()
        url = url or settings.redis_url

        if not url:
            raise ValueError(
                "REDIS_URL is required when remote sync is enabled outside development. "
                "Set it in your .env file or environment variables."
            )

        self._client = aioredis.from_url(url, decode_responses=True, socket_timeout=5)
        self._key = document_key or settings.remote_document_key
        self._channel = f"{self._key}:changes"

        logger.info(f"RedisRemoteMirror initialized (key={self._key})")

    @property
    def provider_name(self) -> str:
        return "redis"

    async def read(self) -> Optional[dict]:
        try:
            raw = await self._client.get(self._key)
        except RedisError as e:
            raise RemoteMirrorError(f"Redis read failed: {e}")

        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            raise RemoteMirrorError(f"Remote document is not valid JSON: {e}")

    async def write(self, document: dict) -> None:
        payload = json.dumps(document)
        try:
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.set(self._key, payload)
                pipe.publish(self._channel, payload)
                await pipe.execute()
        except RedisError as e:
            raise RemoteMirrorError(f"Redis write failed: {e}")

        logger.debug(f"Redis mirror write (ts={document.get('_timestamp')})")

    async def subscribe(
        self,
        listener: DocumentListener,
        on_error: Optional[ErrorListener] = None,
    ) -> Unsubscribe:
        pubsub = self._client.pubsub()
        try:
            await pubsub.subscribe(self._channel)
        except RedisError as e:
            raise RemoteMirrorError(f"Redis subscribe failed: {e}")

        try:
            current = await self.read()
        except RemoteMirrorError:
            await pubsub.aclose()
            raise
        try:
            listener(current)
        except Exception as e:
            logger.exception(f"Remote listener raised: {e}")

        task = asyncio.create_task(self._listen(pubsub, listener, on_error))

        async def unsubscribe() -> None:
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
            with suppress(RedisError):
                await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()

        return unsubscribe

    async def _listen(
        self,
        pubsub,
        listener: DocumentListener,
        on_error: Optional[ErrorListener],
    ) -> None:
        """Forward channel messages to the listener until cancelled."""
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    document = json.loads(message["data"])
                except ValueError:
                    logger.warning("Ignoring undecodable remote document")
                    continue
                try:
                    listener(document)
                except Exception as e:
                    logger.exception(f"Remote listener raised: {e}")
        except RedisError as e:
            logger.error(f"Redis subscription lost: {e}")
            if on_error is not None:
                on_error(RemoteMirrorError(str(e)))

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        await self._client.aclose()
