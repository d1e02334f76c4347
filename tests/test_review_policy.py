"""
Unit tests for the review policy engine.
Covers eligibility, rating, counter resets and launch bookkeeping.
"""

from datetime import datetime, timedelta, timezone

import pytest

from review_gate.domain import ReviewPolicyEngine, StorageKeys, whole_days_between
from review_gate.infrastructure.lifecycle import LifecycleEvent
from review_gate.infrastructure.persistence import InMemoryStore, SQLiteStore
from review_gate.infrastructure.prompt import CallbackPromptProvider

from conftest import START


def make_eligible(engine, clock, launches=10, days=10):
    engine.launch_count = launches
    engine.first_launch_date = clock.now() - timedelta(days=days)


def rate_long_ago(engine, clock, days=60):
    make_eligible(engine, clock, launches=12, days=20)
    assert engine.request_review_if_eligible()
    engine.last_rate_date = clock.now() - timedelta(days=days)


class TestWholeDays:
    """Test suite for the day difference helper."""

    def test_exact_days(self):
        assert whole_days_between(START, START + timedelta(days=10)) == 10

    def test_partial_day_truncates(self):
        assert whole_days_between(START, START + timedelta(days=2, hours=23)) == 2

    def test_future_start_truncates_toward_zero(self):
        assert whole_days_between(START, START - timedelta(hours=20)) == 0
        assert whole_days_between(START, START - timedelta(days=1, hours=1)) == -1

    def test_counts_elapsed_time_not_local_dates(self):
        """Days are 24-hour periods on the UTC timeline, whatever the offset."""
        tokyo = timezone(timedelta(hours=9))
        start = datetime(2024, 3, 1, 23, 30, tzinfo=tokyo)
        end = datetime(2024, 3, 2, 0, 30, tzinfo=tokyo)
        assert whole_days_between(start, end) == 0
        assert whole_days_between(start, start.astimezone(timezone.utc) + timedelta(days=3)) == 3


class TestDerivedValues:
    """Test suite for days since first launch / rating."""

    def test_days_since_first_launch_zero_when_unset(self, engine):
        assert engine.days_since_first_launch == 0
        engine.first_launch_date = None
        assert engine.days_since_first_launch == 0

    def test_days_since_first_launch(self, engine, clock):
        engine.first_launch_date = clock.now() - timedelta(days=4, hours=5)
        assert engine.days_since_first_launch == 4

    def test_days_since_rated_zero_when_unrated(self, engine):
        assert engine.days_since_rated == 0

    def test_days_since_rated_zero_after_reset(self, engine, clock, options):
        options.request_on_rated_version = True
        rate_long_ago(engine, clock)
        assert engine.reset_if_needed()
        assert engine.days_since_rated == 0

    def test_epoch_zero_is_a_real_timestamp(self, engine, store):
        store.set(engine.keys.first_launch_date, 0.0)
        assert engine.first_launch_date is not None
        assert engine.first_launch_date.year == 1970


class TestCanRequest:
    """Test suite for eligibility."""

    def test_false_for_default_state(self, engine):
        assert engine.can_request() is False

    def test_false_when_only_launch_count_fulfilled(self, engine):
        engine.launch_count = 10
        assert engine.can_request() is False

    def test_false_when_only_days_fulfilled(self, engine, clock):
        engine.first_launch_date = clock.now() - timedelta(days=10)
        assert engine.can_request() is False

    def test_true_when_both_fulfilled(self, engine, clock):
        make_eligible(engine, clock)
        assert engine.can_request() is True

    def test_false_one_short_on_launches(self, engine, clock):
        make_eligible(engine, clock, launches=9)
        assert engine.can_request() is False

    def test_false_one_short_on_days(self, engine, clock):
        make_eligible(engine, clock, days=9)
        assert engine.can_request() is False

    def test_false_when_rated(self, engine, clock):
        make_eligible(engine, clock)
        engine.request_review_if_eligible()
        assert engine.can_request() is False

    @pytest.mark.parametrize("launches,days", [(0, 0), (1, 1), (100, 100)])
    def test_false_when_rated_for_any_thresholds(self, engine, clock, options, launches, days):
        options.update(launches_until_request=launches, days_until_request=days)
        engine.last_rate_date = clock.now()
        make_eligible(engine, clock, launches=200, days=200)
        assert engine.can_request() is False

    def test_reads_options_live(self, engine, clock, options):
        make_eligible(engine, clock, launches=3, days=3)
        assert engine.can_request() is False
        options.update(launches_until_request=3, days_until_request=3)
        assert engine.can_request() is True


class TestRequestReview:
    """Test suite for request_review_if_eligible."""

    def test_eligible_request_marks_rated(self, engine, clock, prompts):
        make_eligible(engine, clock)
        assert engine.can_request()

        assert engine.request_review_if_eligible() is True
        assert prompts.calls == 1
        assert engine.is_rated
        assert engine.launch_count == 10
        assert engine.last_rate_date == clock.now()
        assert engine.last_rated_version == "1.0"

    def test_not_eligible_is_noop(self, engine, store, prompts):
        before = store.snapshot()
        assert engine.request_review_if_eligible() is False
        assert prompts.calls == 0
        assert store.snapshot() == before

    def test_second_request_in_same_epoch_does_nothing(self, engine, clock, prompts):
        make_eligible(engine, clock)
        engine.request_review_if_eligible()
        clock.advance(days=30)
        assert engine.request_review_if_eligible() is False
        assert prompts.calls == 1

    def test_preview_mode_always_prompts_without_state_changes(self, engine, store, prompts, options):
        options.preview_mode = True
        before = store.snapshot()
        assert engine.request_review_if_eligible() is True
        assert engine.request_review_if_eligible() is True
        assert prompts.calls == 2
        assert engine.is_rated is False
        assert store.snapshot() == before

    def test_preview_mode_leaves_eligible_state_alone(self, engine, clock, store, prompts, options):
        make_eligible(engine, clock)
        options.preview_mode = True
        before = store.snapshot()
        engine.request_review_if_eligible()
        assert store.snapshot() == before
        assert engine.launch_count == 10
        assert engine.last_rated_version is None

    def test_preview_mode_prompts_even_when_rated(self, engine, clock, prompts, options):
        make_eligible(engine, clock)
        engine.request_review_if_eligible()
        options.preview_mode = True
        assert engine.request_review_if_eligible() is True
        assert prompts.calls == 2

    def test_unknown_version_is_recorded_as_absent(self, engine, clock, version):
        version.version = None
        make_eligible(engine, clock)
        engine.request_review_if_eligible()
        assert engine.is_rated
        assert engine.last_rated_version is None

    def test_failing_provider_still_ends_epoch(self, store, clock):
        """A provider error is logged; the rating is recorded and not retried."""
        calls = []

        def boom():
            calls.append(1)
            raise RuntimeError("dialog unavailable")

        engine = ReviewPolicyEngine(store, CallbackPromptProvider(boom), clock=clock)
        make_eligible(engine, clock)
        assert engine.request_review_if_eligible() is True
        assert engine.is_rated is True
        assert engine.last_rate_date == clock.now()

        assert engine.request_review_if_eligible() is False
        assert len(calls) == 1

    def test_rates_again_after_reset(self, engine, clock, prompts, version):
        rate_long_ago(engine, clock)
        version.version = "1.1"
        assert engine.reset_if_needed()
        assert engine.is_rated is False

        make_eligible(engine, clock)
        assert engine.request_review_if_eligible()
        assert engine.is_rated
        assert engine.last_rated_version == "1.1"
        assert prompts.calls == 2


class TestResetIfNeeded:
    """Test suite for the post-rating cooldown reset."""

    def test_clears_all_fields_when_conditions_met(self, engine, clock, options):
        options.request_on_rated_version = True
        rate_long_ago(engine, clock)

        assert engine.reset_if_needed() is True
        state = engine.state()
        assert state.is_rated is False
        assert state.launch_count == 0
        assert state.first_launch_date is None
        assert state.last_rate_date is None
        assert state.last_rated_version is None

    def test_clears_when_version_changed(self, engine, clock, version):
        rate_long_ago(engine, clock)
        version.version = "2.0"
        assert engine.reset_if_needed() is True
        assert engine.is_rated is False

    def test_noop_when_not_rated(self, engine, clock, store):
        make_eligible(engine, clock)
        before = store.snapshot()
        assert engine.reset_if_needed() is False
        assert store.snapshot() == before

    def test_noop_when_request_if_rated_false(self, engine, clock, store, options):
        options.update(request_if_rated=False, request_on_rated_version=True)
        rate_long_ago(engine, clock)
        before = store.snapshot()

        assert engine.reset_if_needed() is False
        assert store.snapshot() == before
        assert engine.is_rated
        assert engine.launch_count == 12

    def test_noop_before_cooldown(self, engine, clock, store, options):
        options.request_on_rated_version = True
        rate_long_ago(engine, clock, days=59)
        before = store.snapshot()
        assert engine.reset_if_needed() is False
        assert store.snapshot() == before

    def test_noop_on_rated_version(self, engine, clock, store, options):
        options.request_on_rated_version = False
        rate_long_ago(engine, clock)
        before = store.snapshot()

        assert engine.reset_if_needed() is False
        assert store.snapshot() == before
        assert engine.is_rated
        assert engine.first_launch_date is not None
        assert engine.last_rate_date is not None

    def test_custom_cooldown(self, engine, clock, options, version):
        options.days_until_reset_counters = 7
        rate_long_ago(engine, clock, days=7)
        version.version = "1.1"
        assert engine.reset_if_needed() is True


class TestLaunches:
    """Test suite for initialize / foreground / resign-active bookkeeping."""

    def test_initialize_fresh_state(self, engine, clock):
        engine.initialize()
        assert engine.launch_count == 1
        assert engine.first_launch_date == clock.now()
        assert engine.is_rated is False

    def test_initialize_runs_once(self, engine, lifecycle):
        engine.initialize()
        engine.initialize()
        assert engine.launch_count == 1
        assert lifecycle.subscriber_count(LifecycleEvent.WILL_ENTER_FOREGROUND) == 1

    def test_initialize_keeps_existing_first_launch(self, engine, clock):
        earlier = clock.now() - timedelta(days=3)
        engine.first_launch_date = earlier
        engine.launch_count = 4
        engine.initialize()
        assert engine.first_launch_date == earlier
        assert engine.launch_count == 5

    def test_initialize_resets_before_counting(self, engine, clock, version):
        rate_long_ago(engine, clock)
        version.version = "1.1"
        engine.initialize()
        assert engine.is_rated is False
        assert engine.launch_count == 1
        assert engine.first_launch_date == clock.now()

    def test_quick_return_is_not_a_launch(self, engine, clock):
        engine.initialize()
        engine.on_resign_active(clock.now())
        engine.on_foreground(clock.advance(seconds=180))
        assert engine.launch_count == 1
        assert engine.resign_active_date is None

    def test_long_absence_is_a_launch(self, engine, clock):
        engine.initialize()
        engine.on_resign_active(clock.now())
        engine.on_foreground(clock.advance(seconds=181))
        assert engine.launch_count == 2
        assert engine.resign_active_date is None

    def test_foreground_without_resign_is_not_a_launch(self, engine, clock):
        engine.initialize()
        engine.on_foreground(clock.advance(days=1))
        assert engine.launch_count == 1

    def test_elapsed_is_absolute(self, engine, clock):
        engine.initialize()
        engine.on_resign_active(clock.now() + timedelta(seconds=500))
        engine.on_foreground(clock.now())
        assert engine.launch_count == 2

    def test_significant_launch_sets_first_launch_after_reset(self, engine, clock, version):
        rate_long_ago(engine, clock)
        version.version = "1.1"
        engine.reset_if_needed()
        assert engine.first_launch_date is None

        engine.on_resign_active(clock.now())
        engine.on_foreground(clock.advance(minutes=5))
        assert engine.first_launch_date == clock.now()
        assert engine.launch_count == 1

    def test_events_use_clock_when_no_timestamp(self, engine, clock):
        engine.on_resign_active()
        assert engine.resign_active_date == clock.now()


class TestStorageKeys:
    """Test suite for namespaced keys."""

    def test_default_namespace(self):
        assert StorageKeys().launch_count == "review_gate.launchCount"

    def test_custom_namespace_isolates_state(self, prompts, clock):
        store = InMemoryStore()
        a = ReviewPolicyEngine(store, prompts, clock=clock, keys=StorageKeys("app_a"))
        b = ReviewPolicyEngine(store, prompts, clock=clock, keys=StorageKeys("app_b"))
        a.launch_count = 7
        assert b.launch_count == 0
        assert set(store.snapshot()) == {"app_a.launchCount"}

    def test_reset_leaves_foreign_keys(self, engine, clock, store, options):
        store.set("host.theme", "dark")
        options.request_on_rated_version = True
        rate_long_ago(engine, clock)
        engine.reset_if_needed()
        assert store.snapshot() == {"host.theme": "dark"}


class TestCorruptState:
    """Test suite for unreadable persisted values."""

    @pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "1e400", "eleven"])
    def test_corrupt_launch_count_reads_as_zero(self, engine, store, raw):
        store.set(engine.keys.launch_count, raw)
        assert engine.launch_count == 0
        assert engine.can_request() is False

        engine.initialize()
        assert engine.launch_count == 1

    @pytest.mark.parametrize("raw", ["nan", "1e400"])
    def test_corrupt_dates_read_as_unset(self, engine, store, raw):
        store.set(engine.keys.first_launch_date, raw)
        store.set(engine.keys.last_rate_date, raw)
        assert engine.first_launch_date is None
        assert engine.is_rated is False
        assert engine.days_since_first_launch == 0

    @pytest.mark.parametrize("raw", ["nan", "inf", "1e400"])
    def test_corrupt_sqlite_counter(self, tmp_path, prompts, clock, raw):
        store = SQLiteStore(tmp_path / "state.db")
        store.init()
        engine = ReviewPolicyEngine(store, prompts, clock=clock)
        store.set(engine.keys.launch_count, raw)

        assert engine.can_request() is False
        assert engine.request_review_if_eligible() is False
        engine.initialize()
        assert engine.launch_count == 1
