"""Message-bus worker answering the pre-evaluation topics.

Usage:
    preeval-worker --redis-url redis://localhost:6379/0
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from preeval.core.config import AppSettings
from preeval.core.logging import setup_logging
from preeval.handlers import build_message_handlers
from preeval.messaging.redis_bus import RedisMessageBus
from preeval.services.pre_evaluation import PreEvaluationService

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve pre-evaluation topics over Redis")
    parser.add_argument("--redis-url", default=None, help="Overrides PREEVAL_BUS_REDIS_URL")
    parser.add_argument("--log-level", default=None, help="Overrides PREEVAL_LOG_LEVEL")
    return parser


async def run(settings: AppSettings, redis_url: str) -> None:
    bus = RedisMessageBus(
        redis_url,
        request_timeout=settings.bus.request_timeout,
        reply_ttl=settings.bus.reply_ttl,
        max_concurrency=settings.bus.max_concurrency,
        key_prefix=settings.bus.key_prefix,
    )
    service = PreEvaluationService(bus, settings.rules)
    try:
        await bus.serve(build_message_handlers(service))
    finally:
        await bus.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = AppSettings()
    setup_logging(args.log_level or settings.log.level, settings.log.format)

    redis_url = args.redis_url or settings.bus.redis_url
    logger.info("Starting pre-evaluation worker (%s) on %s", settings.environment, redis_url)
    try:
        asyncio.run(run(settings, redis_url))
    except KeyboardInterrupt:
        logger.info("Worker stopped")


if __name__ == "__main__":
    main()
