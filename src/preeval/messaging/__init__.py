"""Pluggable message bus backends behind the IMessageBus protocol."""

from __future__ import annotations

from preeval.core.config import AppSettings
from preeval.core.protocols import IMessageBus
from preeval.messaging.memory_bus import MemoryMessageBus
from preeval.messaging.redis_bus import RedisMessageBus


def create_message_bus(settings: AppSettings | None = None) -> IMessageBus:
    """Create the message bus selected by application settings."""
    if settings is None:
        settings = AppSettings()

    if settings.bus.backend == "redis":
        return RedisMessageBus(
            settings.bus.redis_url,
            request_timeout=settings.bus.request_timeout,
            reply_ttl=settings.bus.reply_ttl,
            max_concurrency=settings.bus.max_concurrency,
            key_prefix=settings.bus.key_prefix,
        )
    return MemoryMessageBus()


__all__ = ["MemoryMessageBus", "RedisMessageBus", "create_message_bus"]
