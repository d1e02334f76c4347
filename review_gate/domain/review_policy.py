"""
Review Policy Engine - When To Ask For A Review
================================================

Decision logic over four persisted fields:

    firstLaunchDate   set once per epoch
    launchCount       significant launches this epoch
    lastRateDate      when the prompt was last shown for real
    lastRatedVersion  app version at that moment

RULES:
- Eligible when unrated AND enough days since first launch AND enough launches
- After rating, the epoch ends; once the cooldown has passed (and the version
  moved on, unless request_on_rated_version) all four fields are cleared
- A foreground event counts as a launch only if the app was away > 180s

All state access is serialized by one re-entrant lock, since lifecycle
handlers may run on a background thread while requests come from the UI.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from .options import ReviewOptions, SIGNIFICANT_LAUNCH_SECONDS
from ..infrastructure.lifecycle import LifecycleEvent, LifecycleEvents, Subscription
from ..infrastructure.persistence import KeyValueStore
from ..infrastructure.prompt import PromptProvider
from ..infrastructure.runtime import Clock, SystemClock, VersionProvider, StaticVersionProvider

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def whole_days_between(start: datetime, end: datetime) -> int:
    """
    Full 24-hour periods from start to end, truncated toward zero.

    Days are counted on the UTC timeline: local calendar boundaries and
    DST shifts do not matter, only elapsed time.
    """
    return int((end - start).total_seconds() / SECONDS_PER_DAY)


def _to_timestamp(value: Optional[float]) -> Optional[datetime]:
    # None is the only "absent" marker; 0.0 is a real instant (the epoch).
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.warning(f"Stored timestamp {value!r} is out of range, treating as absent")
        return None


@dataclass(frozen=True)
class StorageKeys:
    """Storage keys, prefixed so they never clash with the host app's keys."""

    namespace: str = "review_gate"

    def _key(self, name: str) -> str:
        return f"{self.namespace}.{name}" if self.namespace else name

    @property
    def first_launch_date(self) -> str:
        return self._key("firstLaunchDate")

    @property
    def launch_count(self) -> str:
        return self._key("launchCount")

    @property
    def last_rate_date(self) -> str:
        return self._key("lastRateDate")

    @property
    def last_rated_version(self) -> str:
        return self._key("lastRatedVersion")

    def all(self) -> List[str]:
        return [
            self.first_launch_date,
            self.launch_count,
            self.last_rate_date,
            self.last_rated_version,
        ]


@dataclass(frozen=True)
class ReviewState:
    """Snapshot of the persisted fields."""

    first_launch_date: Optional[datetime]
    launch_count: int
    last_rate_date: Optional[datetime]
    last_rated_version: Optional[str]

    @property
    def is_rated(self) -> bool:
        return self.last_rate_date is not None


class ReviewPolicyEngine:
    """
    Decides whether to show the review prompt.

    Usage:
        engine = ReviewPolicyEngine(store, provider, clock=SystemClock())
        engine.initialize()          # once per process start
        engine.request_review_if_eligible()
    """

    def __init__(
        self,
        storage: KeyValueStore,
        prompt_provider: PromptProvider,
        options: Optional[ReviewOptions] = None,
        clock: Optional[Clock] = None,
        version_provider: Optional[VersionProvider] = None,
        lifecycle: Optional[LifecycleEvents] = None,
        keys: Optional[StorageKeys] = None,
    ):
        self.storage = storage
        self.prompt_provider = prompt_provider
        self.options = options if options is not None else ReviewOptions()
        self.clock = clock or SystemClock()
        self.version_provider = version_provider or StaticVersionProvider()
        self.lifecycle = lifecycle
        self.keys = keys or StorageKeys()

        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []
        self._resign_active_date: Optional[datetime] = None
        self._initialized = False

    # ── Persisted fields ───────────────────────────────────────────

    @property
    def first_launch_date(self) -> Optional[datetime]:
        with self._lock:
            return _to_timestamp(self.storage.get_number(self.keys.first_launch_date))

    @first_launch_date.setter
    def first_launch_date(self, value: Optional[datetime]):
        self._set_timestamp(self.keys.first_launch_date, value)

    @property
    def launch_count(self) -> int:
        with self._lock:
            value = self.storage.get_number(self.keys.launch_count)
        return int(value) if value is not None else 0

    @launch_count.setter
    def launch_count(self, value: int):
        with self._lock:
            self.storage.set(self.keys.launch_count, int(value))

    @property
    def last_rate_date(self) -> Optional[datetime]:
        with self._lock:
            return _to_timestamp(self.storage.get_number(self.keys.last_rate_date))

    @last_rate_date.setter
    def last_rate_date(self, value: Optional[datetime]):
        self._set_timestamp(self.keys.last_rate_date, value)

    @property
    def last_rated_version(self) -> Optional[str]:
        with self._lock:
            return self.storage.get_string(self.keys.last_rated_version)

    @last_rated_version.setter
    def last_rated_version(self, value: Optional[str]):
        with self._lock:
            if value is None:
                self.storage.remove(self.keys.last_rated_version)
            else:
                self.storage.set(self.keys.last_rated_version, value)

    def _set_timestamp(self, key: str, value: Optional[datetime]):
        with self._lock:
            if value is None:
                self.storage.remove(key)
            else:
                self.storage.set(key, value.timestamp())

    def state(self) -> ReviewState:
        with self._lock:
            return ReviewState(
                first_launch_date=self.first_launch_date,
                launch_count=self.launch_count,
                last_rate_date=self.last_rate_date,
                last_rated_version=self.last_rated_version,
            )

    # ── Derived values ─────────────────────────────────────────────

    @property
    def is_rated(self) -> bool:
        return self.last_rate_date is not None

    @property
    def days_since_first_launch(self) -> int:
        first = self.first_launch_date
        return whole_days_between(first, self.clock.now()) if first else 0

    @property
    def days_since_rated(self) -> int:
        rated = self.last_rate_date
        return whole_days_between(rated, self.clock.now()) if rated else 0

    @property
    def current_version(self) -> Optional[str]:
        return self.version_provider.current_version()

    @property
    def resign_active_date(self) -> Optional[datetime]:
        with self._lock:
            return self._resign_active_date

    # ── Lifecycle ──────────────────────────────────────────────────

    def initialize(self) -> "ReviewPolicyEngine":
        """Reset check, event subscription and launch bookkeeping. Runs once."""
        with self._lock:
            if self._initialized:
                logger.debug("Review policy engine already initialized")
                return self
            self._initialized = True
            self.reset_if_needed()
            self._add_lifecycle_observers()
            self.on_launch()
        return self

    def on_launch(self) -> None:
        """Record one significant launch."""
        with self._lock:
            if self.first_launch_date is None:
                self.first_launch_date = self.clock.now()
            count = self.launch_count + 1
            self.launch_count = count
        logger.info(f"Launch recorded (count={count})")

    def on_foreground(self, now: Optional[datetime] = None) -> None:
        now = now or self.clock.now()
        with self._lock:
            resigned = self._resign_active_date
            elapsed = abs((now - resigned).total_seconds()) if resigned else 0.0
            if elapsed > SIGNIFICANT_LAUNCH_SECONDS:
                self.on_launch()
            else:
                logger.debug(f"Foreground after {elapsed:.0f}s, not a new launch")
            self._resign_active_date = None

    def on_resign_active(self, now: Optional[datetime] = None) -> None:
        with self._lock:
            self._resign_active_date = now or self.clock.now()

    def close(self) -> None:
        """Stop listening to lifecycle events."""
        with self._lock:
            for subscription in self._subscriptions:
                subscription.cancel()
            self._subscriptions.clear()

    def _add_lifecycle_observers(self) -> None:
        if self.lifecycle is None:
            return
        self._subscriptions.append(
            self.lifecycle.subscribe(LifecycleEvent.WILL_ENTER_FOREGROUND, self.on_foreground)
        )
        self._subscriptions.append(
            self.lifecycle.subscribe(LifecycleEvent.WILL_RESIGN_ACTIVE, self.on_resign_active)
        )

    # ── Decisions ──────────────────────────────────────────────────

    def can_request(self) -> bool:
        with self._lock:
            if self.is_rated:
                return False

            days_fulfilled = self.days_since_first_launch >= self.options.days_until_request
            launches_fulfilled = self.launch_count >= self.options.launches_until_request
            return days_fulfilled and launches_fulfilled

    def request_review_if_eligible(self) -> bool:
        """Show the prompt if allowed. Returns True if the prompt was triggered."""
        if self.options.preview_mode:
            logger.info("Preview mode: showing review prompt without recording it")
            self._show_prompt()
            return True

        with self._lock:
            if not self.can_request():
                logger.debug(
                    f"Not eligible for review prompt "
                    f"(rated={self.is_rated}, launches={self.launch_count}, "
                    f"days={self.days_since_first_launch})"
                )
                return False

            self._show_prompt()
            self.last_rate_date = self.clock.now()
            self.last_rated_version = self.current_version
            logger.info(f"Review prompt shown for version {self.last_rated_version or 'unknown'}")
            return True

    def reset_if_needed(self) -> bool:
        """Start a new epoch once the cooldown after a rating has passed."""
        with self._lock:
            if not (
                self.is_rated
                and self.options.request_if_rated
                and self.days_since_rated >= self.options.days_until_reset_counters
            ):
                return False

            if self.current_version == self.last_rated_version and not self.options.request_on_rated_version:
                logger.debug("Cooldown passed but this version was already rated, keeping state")
                return False

            self._clear_stored_data()
            return True

    def _clear_stored_data(self) -> None:
        self.storage.remove_many(self.keys.all())
        logger.info("Review counters reset")

    def _show_prompt(self) -> None:
        # Fire-and-forget: a provider failure is logged, the epoch still ends.
        try:
            self.prompt_provider.show_review_prompt()
        except Exception as e:
            logger.exception(f"Review prompt provider failed: {e}")
