"""
One-shot card reader simulator: publishes a single synthetic CardEvent.
"""
import argparse
import asyncio
import logging
import time

import aiomqtt

from cardbridge.core.config import Settings, settings as default_settings
from cardbridge.core.logging import configure_logging
from cardbridge.core.topics import Topics
from cardbridge.schemas.cards import CardEvent


logger = logging.getLogger(__name__)

DEFAULT_UID = "A1B2C3D4"
DEFAULT_BALANCE = 75.25


def build_card_event(uid: str = DEFAULT_UID, balance: float = DEFAULT_BALANCE, now_ms: int | None = None) -> CardEvent:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return CardEvent(uid=uid, balance=balance, status="detected", timestamp=timestamp)


async def simulate(event: CardEvent, settings: Settings = default_settings) -> None:
    topics = Topics.from_settings(settings)
    async with aiomqtt.Client(
        settings.mqtt_host,
        port=settings.mqtt_port,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
    ) as client:
        logger.info("simulator_connected", extra={"host": settings.mqtt_host, "port": settings.mqtt_port})
        await client.publish(topics.status, payload=event.model_dump_json())
        logger.info("simulated_card_sent", extra={"topic": topics.status, "uid": event.uid})


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish one simulated card detection")
    parser.add_argument("--uid", default=DEFAULT_UID)
    parser.add_argument("--balance", type=float, default=DEFAULT_BALANCE)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    configure_logging(level=args.log_level)
    asyncio.run(simulate(build_card_event(args.uid, args.balance)))


if __name__ == "__main__":
    main()
