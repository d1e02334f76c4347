"""
Lifecycle Events - App Foreground / Background Notifications
=============================================================

The host app posts two events; subscribers receive the event timestamp.

    WILL_ENTER_FOREGROUND  app is coming back to the screen
    WILL_RESIGN_ACTIVE     app is leaving the screen

DELIVERY:
- Without an executor, handlers run synchronously on the posting thread.
- With an executor, every handler call is submitted to it, so handlers
  run off the caller's thread. Subscribers must synchronize their state.

USAGE:
    events = LifecycleEvents(executor=ThreadPoolExecutor(max_workers=1))
    sub = events.subscribe(LifecycleEvent.WILL_RESIGN_ACTIVE, on_resign)
    events.will_resign_active()
    events.drain()
    sub.cancel()
"""

import logging
import threading
from concurrent.futures import Executor, Future, wait
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from ..runtime import Clock, SystemClock

logger = logging.getLogger(__name__)

Handler = Callable[[datetime], None]


class LifecycleEvent(Enum):
    """App lifecycle notifications the review policy listens to."""
    WILL_ENTER_FOREGROUND = "will_enter_foreground"
    WILL_RESIGN_ACTIVE = "will_resign_active"


class Subscription:
    """Handle returned by subscribe(). Cancelling twice is harmless."""

    def __init__(self, hub: "LifecycleEvents", event: LifecycleEvent, handler: Handler):
        self._hub = hub
        self.event = event
        self.handler = handler
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._hub._unsubscribe(self)
            self.active = False


class LifecycleEvents:
    """Small publish/subscribe hub for lifecycle notifications."""

    def __init__(self, executor: Optional[Executor] = None, clock: Optional[Clock] = None):
        self._executor = executor
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()
        self._subscriptions: Dict[LifecycleEvent, List[Subscription]] = {
            event: [] for event in LifecycleEvent
        }
        self._pending: Set[Future] = set()

    def subscribe(self, event: LifecycleEvent, handler: Handler) -> Subscription:
        if not isinstance(event, LifecycleEvent):
            raise ValueError(f"Unknown lifecycle event: {event!r}")
        subscription = Subscription(self, event, handler)
        with self._lock:
            self._subscriptions[event].append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            subs = self._subscriptions[subscription.event]
            if subscription in subs:
                subs.remove(subscription)

    def subscriber_count(self, event: LifecycleEvent) -> int:
        with self._lock:
            return len(self._subscriptions[event])

    def post(self, event: LifecycleEvent, timestamp: Optional[datetime] = None) -> None:
        """Deliver event to every current subscriber."""
        if not isinstance(event, LifecycleEvent):
            raise ValueError(f"Unknown lifecycle event: {event!r}")
        when = timestamp or self._clock.now()

        with self._lock:
            handlers = [sub.handler for sub in self._subscriptions[event]]

        logger.debug(f"Posting {event.value} at {when.isoformat()} to {len(handlers)} handler(s)")
        for handler in handlers:
            if self._executor is None:
                self._invoke(event, handler, when)
            else:
                future = self._executor.submit(self._invoke, event, handler, when)
                with self._lock:
                    self._pending.add(future)
                future.add_done_callback(self._forget)

    def will_enter_foreground(self, timestamp: Optional[datetime] = None) -> None:
        self.post(LifecycleEvent.WILL_ENTER_FOREGROUND, timestamp)

    def will_resign_active(self, timestamp: Optional[datetime] = None) -> None:
        self.post(LifecycleEvent.WILL_RESIGN_ACTIVE, timestamp)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued handler calls. Returns False on timeout."""
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    @staticmethod
    def _invoke(event: LifecycleEvent, handler: Handler, when: datetime) -> None:
        try:
            handler(when)
        except Exception as e:
            logger.exception(f"Lifecycle handler for {event.value} failed: {e}")


_default_lock = threading.Lock()
_default_hub: Optional[LifecycleEvents] = None


def default_lifecycle() -> LifecycleEvents:
    """Process-wide hub the host app posts to when it has no hub of its own."""
    global _default_hub
    with _default_lock:
        if _default_hub is None:
            _default_hub = LifecycleEvents()
        return _default_hub
