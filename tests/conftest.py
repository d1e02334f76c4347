"""
Pytest configuration and shared fixtures.

Fixtures:
    - clock: FixedClock at a whole-second instant
    - store: empty InMemoryStore
    - prompts: PromptProvider that counts calls
    - version: StaticVersionProvider("1.0")
    - engine: ReviewPolicyEngine wired to the above (not initialized)
    - reset_process_state (autouse): restores shared options and drops the shared engine
"""
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from review_gate.application import review_prompt
from review_gate.domain import ReviewOptions, ReviewPolicyEngine
from review_gate.infrastructure.lifecycle import LifecycleEvents
from review_gate.infrastructure.persistence import InMemoryStore
from review_gate.infrastructure.prompt import PromptProvider
from review_gate.infrastructure.runtime import FixedClock, StaticVersionProvider

START = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingPromptProvider(PromptProvider):
    """Counts prompt requests instead of showing anything."""

    def __init__(self):
        self.calls = 0

    def show_review_prompt(self):
        self.calls += 1


@pytest.fixture(autouse=True)
def reset_process_state():
    yield
    review_prompt.shutdown()
    review_prompt.options.restore_defaults()


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def prompts():
    return RecordingPromptProvider()


@pytest.fixture
def version():
    return StaticVersionProvider("1.0")


@pytest.fixture
def options():
    return ReviewOptions()


@pytest.fixture
def lifecycle(clock):
    return LifecycleEvents(clock=clock)


@pytest.fixture
def engine(store, prompts, options, clock, version, lifecycle):
    return ReviewPolicyEngine(
        storage=store,
        prompt_provider=prompts,
        options=options,
        clock=clock,
        version_provider=version,
        lifecycle=lifecycle,
    )
