"""Event channels and subscription management."""

from .subscriptions import EventSubscriptionManager, SubscriptionHandle, SubscriptionScope
from .publishers import ProgressPublisher
from . import topics

__all__ = [
    "EventSubscriptionManager",
    "SubscriptionHandle",
    "SubscriptionScope",
    "ProgressPublisher",
    "topics",
]
