"""
Session outcome events.

Events carry no payload; subscribers key off event identity alone. The enum
values are the notification names the rest of the app listens for.
"""

import logging
from enum import Enum
from threading import RLock
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class SessionEvent(str, Enum):
    """Named outcome events published by the session coordinator."""

    BACKEND_AUTH_ERROR = "ObjectStorageAuthError"
    GOT_PAST_LOGIN_CHECK = "GotPastLoginCheck"
    USER_NOT_AUTHENTICATED = "UserNotAuthenticated"
    REMOTE_PULL_FAILURE = "CloudantPullDataFailure"
    PROFILE_CREATE_FAILURE = "CloudantCreateProfileFailure"
    PROFILE_PUSH_FAILURE = "CloudantPushDataFailure"


EventHandler = Callable[[SessionEvent], None]


class EventBus:
    """In-process publish/subscribe for SessionEvent.

    A handler registered for a specific event and for all events is still
    called once per publish.
    """

    def __init__(self) -> None:
        self._subscriptions: List[Tuple[Optional[SessionEvent], EventHandler]] = []
        self._lock = RLock()

    def subscribe(
        self, handler: EventHandler, event: Optional[SessionEvent] = None
    ) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Called with the published event.
            event: Only deliver this event. None subscribes to every event.

        Returns:
            A callable that removes this subscription.
        """
        subscription = (event, handler)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscriptions:
                    self._subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, event: SessionEvent) -> None:
        """Deliver event to every matching handler."""
        with self._lock:
            handlers: List[EventHandler] = []
            for wanted, handler in self._subscriptions:
                if (wanted is None or wanted == event) and handler not in handlers:
                    handlers.append(handler)

        logger.debug("Publishing %s to %d handler(s)", event.value, len(handlers))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler for %s failed", event.value)
