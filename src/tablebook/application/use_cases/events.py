from __future__ import annotations

import logging

from tablebook.application.ports.publisher import EventPublisher

logger = logging.getLogger(__name__)


def publish_quietly(publisher: EventPublisher, channel: str, message: str) -> None:
    try:
        publisher.publish(channel=channel, message=message)
    except Exception:
        logger.warning("event_publish_failed", exc_info=True, extra={"channel": channel})
