"""Publisher for engine progress events."""

import logging
from typing import Callable

from .subscriptions import EventSubscriptionManager
from .topics import PROGRESS

logger = logging.getLogger(__name__)


class ProgressPublisher:
    """Publishes engine progress values on the progress channel."""

    def __init__(self, events: EventSubscriptionManager, topic: str = PROGRESS):
        """Initialize progress publisher.

        Args:
            events: Subscription manager that owns the channel
            topic: Channel name for progress values
        """
        self.events = events
        self.topic = topic
        logger.debug(f"ProgressPublisher initialized with topic: {topic}")

    def publish_progress(self, value: int) -> None:
        """Publish a progress value exactly as the engine reported it."""
        self.events.publish(self.topic, value=value)
        logger.debug(f"Published progress: {value}")

    def get_callback(self) -> Callable[[int], None]:
        """Get callback function for engines to report progress with."""
        return self.publish_progress

