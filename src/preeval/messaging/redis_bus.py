"""Redis-backed request/reply message bus.

Requests are JSON envelopes pushed onto one list per topic; each requester
blocks on a private reply list. The same class consumes inbound topics when
the gateway runs as a worker.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Mapping

import redis
import redis.asyncio as aioredis

from preeval.core.exceptions import PreEvalError, UpstreamFailure
from preeval.core.types import JsonDict
from preeval.messaging.envelope import decode, encode

logger = logging.getLogger(__name__)

TopicHandler = Callable[[Any], Awaitable[Any]]


class RedisMessageBus:
    """Production IMessageBus backed by Redis lists."""

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        request_timeout: float = 10.0,
        reply_ttl: int = 30,
        max_concurrency: int = 16,
        key_prefix: str = "preeval:",
        client: Any = None,
    ) -> None:
        self._request_timeout = request_timeout
        self._reply_ttl = reply_ttl
        self._key_prefix = key_prefix
        self._max_concurrency = max_concurrency
        self._slots = asyncio.Semaphore(max_concurrency)
        self._in_flight: set[asyncio.Task[None]] = set()
        self._client = client if client is not None else aioredis.from_url(url, decode_responses=True)

    def topic_key(self, topic: str) -> str:
        return f"{self._key_prefix}topic:{topic}"

    def reply_key(self, correlation_id: str) -> str:
        return f"{self._key_prefix}reply:{correlation_id}"

    def _new_correlation_id(self) -> str:
        return uuid.uuid4().hex

    # ---- requesting side ----

    async def request(self, topic: str, payload: Any) -> Any:
        correlation_id = self._new_correlation_id()
        reply_to = self.reply_key(correlation_id)
        envelope = encode({"id": correlation_id, "reply_to": reply_to, "payload": payload})
        try:
            await self._client.lpush(self.topic_key(topic), envelope)
            popped = await self._client.brpop([reply_to], timeout=self._request_timeout)
        except redis.RedisError as exc:
            raise UpstreamFailure(topic, f"redis error: {exc}") from exc

        if popped is None:
            raise UpstreamFailure(topic, f"no reply within {self._request_timeout}s")

        _, raw = popped
        try:
            message = decode(raw)
        except ValueError as exc:
            raise UpstreamFailure(topic, f"malformed reply: {exc}") from exc

        if message.get("error"):
            raise UpstreamFailure(topic, str(message["error"]))
        return message.get("response")

    # ---- serving side ----

    async def _receive(
        self, handlers: Mapping[str, TopicHandler], timeout: float,
    ) -> tuple[str, JsonDict | None] | None:
        """Pop one inbound request; the envelope is None when it was malformed."""
        keys = {self.topic_key(topic): topic for topic in handlers}
        popped = await self._client.brpop(list(keys), timeout=timeout)
        if popped is None:
            return None

        key, raw = popped
        topic = keys[key]
        try:
            return topic, decode(raw)
        except ValueError:
            logger.warning("Discarding malformed request on %s", topic)
            return topic, None

    async def _handle(self, handler: TopicHandler, topic: str, envelope: JsonDict) -> None:
        reply_to = envelope.get("reply_to")
        reply: dict[str, Any] = {"id": envelope.get("id")}
        try:
            reply["response"] = await handler(envelope.get("payload"))
        except PreEvalError as exc:
            reply["error"] = str(exc)
        except Exception as exc:
            logger.exception("Handler for %s failed", topic)
            reply["error"] = f"internal error: {exc}"

        if not reply_to:
            return
        try:
            await self._client.lpush(reply_to, encode(reply))
            await self._client.expire(reply_to, self._reply_ttl)
        except redis.RedisError as exc:
            logger.error("Could not deliver reply for %s to %s: %s", topic, reply_to, exc)

    async def serve_once(self, handlers: Mapping[str, TopicHandler], timeout: float = 1.0) -> bool:
        """Handle at most one inbound request inline. Returns False when none arrived."""
        received = await self._receive(handlers, timeout)
        if received is None:
            return False
        topic, envelope = received
        if envelope is not None:
            await self._handle(handlers[topic], topic, envelope)
        return True

    async def serve(self, handlers: Mapping[str, TopicHandler], timeout: float = 1.0) -> None:
        """Serve inbound topics until cancelled.

        Each request runs as its own task, at most ``max_concurrency`` at a time.
        """
        logger.info(
            "Serving %d topics (max %d concurrent): %s",
            len(handlers), self._max_concurrency, ", ".join(sorted(handlers)),
        )
        while True:
            await self._slots.acquire()
            try:
                received = await self._receive(handlers, timeout)
            except BaseException:
                self._slots.release()
                raise
            if received is None or received[1] is None:
                self._slots.release()
                continue

            topic, envelope = received
            task = asyncio.create_task(self._handle_in_slot(handlers[topic], topic, envelope))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _handle_in_slot(self, handler: TopicHandler, topic: str, envelope: JsonDict) -> None:
        try:
            await self._handle(handler, topic, envelope)
        finally:
            self._slots.release()

    async def close(self) -> None:
        """Wait for in-flight requests, then close the client."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)
        await self._client.aclose()
