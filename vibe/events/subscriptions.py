"""Event subscription management.

Every listener registered through :class:`EventSubscriptionManager` is
represented by a :class:`SubscriptionHandle` that must be released when its
owner goes away. :class:`SubscriptionScope` collects the handles of one owner
and releases all of them on teardown, so that no handler keeps firing against
state that is no longer meaningful.
"""

import logging
from typing import Any, Callable, Iterable, List, Optional

from blinker import Namespace

logger = logging.getLogger(__name__)


class SubscriptionHandle:
    """A registered listener for one event channel."""

    def __init__(self, manager: "EventSubscriptionManager", event_name: str,
                 handler: Callable[..., Any]):
        self.manager = manager
        self.event_name = event_name
        self.handler = handler
        self.active = True

    def _deliver(self, sender: Any, **payload: Any) -> None:
        if not self.active:
            return
        try:
            self.handler(**payload)
        except Exception as e:
            logger.error(f"Handler for '{self.event_name}' failed: {e}", exc_info=True)

    def release(self) -> None:
        """Stop delivering events to the handler. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self.manager._disconnect(self)
        logger.debug(f"Released subscription to '{self.event_name}'")

    def __repr__(self) -> str:
        state = "active" if self.active else "released"
        return f"<SubscriptionHandle {self.event_name!r} {state}>"


class EventSubscriptionManager:
    """Registers and releases listeners on named event channels."""

    def __init__(self, namespace: Optional[Namespace] = None):
        """Initialize subscription manager.

        Args:
            namespace: Signal namespace to use. Each manager gets its own
                namespace by default, so separate managers never share listeners.
        """
        self.namespace = namespace if namespace is not None else Namespace()
        self._handles: List[SubscriptionHandle] = []

    def subscribe(self, event_name: str, handler: Callable[..., Any]) -> SubscriptionHandle:
        """Register handler to be called once per occurrence of event_name.

        Args:
            event_name: Event channel name
            handler: Callable receiving the event payload as keyword arguments

        Returns:
            Handle that must be released by the owner
        """
        handle = SubscriptionHandle(self, event_name, handler)
        self.namespace.signal(event_name).connect(handle._deliver, weak=False)
        self._handles.append(handle)
        logger.debug(f"Subscribed {getattr(handler, '__qualname__', handler)} to '{event_name}'")
        return handle

    def publish(self, event_name: str, **payload: Any) -> int:
        """Deliver an event to every active subscriber.

        Returns:
            Number of subscribers the event was delivered to
        """
        signal = self.namespace.signal(event_name)
        if not signal.receivers:
            return 0
        return len(signal.send(self, **payload))

    def unsubscribe_all(self, handles: Iterable[SubscriptionHandle]) -> None:
        """Release every handle in handles. Idempotent."""
        for handle in list(handles):
            handle.release()

    def subscriber_count(self, event_name: str) -> int:
        return len(self.namespace.signal(event_name).receivers)

    @property
    def active_handles(self) -> List[SubscriptionHandle]:
        return list(self._handles)

    def _disconnect(self, handle: SubscriptionHandle) -> None:
        self.namespace.signal(handle.event_name).disconnect(handle._deliver)
        try:
            self._handles.remove(handle)
        except ValueError:
            pass


class SubscriptionScope:
    """Collects the subscriptions of one owner and releases them together.

    Usable as a context manager; handles are released on every exit path.
    """

    def __init__(self, manager: EventSubscriptionManager):
        self.manager = manager
        self.handles: List[SubscriptionHandle] = []
        self.closed = False

    def subscribe(self, event_name: str, handler: Callable[..., Any]) -> SubscriptionHandle:
        if self.closed:
            raise RuntimeError("Cannot subscribe on a closed scope")
        handle = self.manager.subscribe(event_name, handler)
        self.handles.append(handle)
        return handle

    def close(self) -> None:
        """Release all collected handles. Idempotent."""
        if self.closed:
            return
        self.closed = True
        self.manager.unsubscribe_all(self.handles)
        logger.debug(f"Subscription scope closed ({len(self.handles)} handles released)")
        self.handles.clear()

    def __enter__(self) -> "SubscriptionScope":
        return self

    def __exit__(self, *args) -> None:
        self.close()
