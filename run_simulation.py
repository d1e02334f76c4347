"""
Usage Simulation - Review Prompt Policy
========================================

Plays out months of app usage against an in-memory store with a manual
clock, and prints every time the review prompt would appear.

    python run_simulation.py
    python run_simulation.py --days 200 --release-every 45
"""

import sys
import random
import logging
import argparse
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from review_gate.domain import ReviewOptions, ReviewPolicyEngine
from review_gate.infrastructure.config import get_settings
from review_gate.infrastructure.lifecycle import LifecycleEvents
from review_gate.infrastructure.persistence import InMemoryStore
from review_gate.infrastructure.prompt import CallbackPromptProvider
from review_gate.infrastructure.runtime import FixedClock, StaticVersionProvider

logger = logging.getLogger(__name__)


def run_simulation(days: int, release_every: int, seed: int) -> list:
    """Simulate `days` of usage. Returns the days on which the prompt fired."""
    rng = random.Random(seed)
    clock = FixedClock()
    store = InMemoryStore()
    version = StaticVersionProvider("1.0")
    events = LifecycleEvents(clock=clock)
    options = ReviewOptions.from_settings(get_settings().policy)

    prompts = []
    day = 0
    provider = CallbackPromptProvider(lambda: prompts.append(day))

    def start_process():
        engine = ReviewPolicyEngine(
            storage=store,
            prompt_provider=provider,
            options=options,
            clock=clock,
            version_provider=version,
            lifecycle=events,
        )
        return engine.initialize()

    engine = start_process()

    for day in range(1, days + 1):
        clock.advance(days=1)

        if day % release_every == 0:
            major, minor = version.version.split(".")
            version.version = f"{major}.{int(minor) + 1}"
            print(f"Day {day:4d}: released {version.version}")

        # Cold start now and then, otherwise a few background/foreground trips.
        if rng.random() < 0.2:
            engine.close()
            engine = start_process()
        for _ in range(rng.randint(0, 3)):
            events.will_resign_active()
            clock.advance(seconds=rng.choice([30, 120, 600, 3600]))
            events.will_enter_foreground()

        if engine.request_review_if_eligible():
            state = engine.state()
            print(f"Day {day:4d}: PROMPT (launches={state.launch_count}, version={state.last_rated_version})")

        engine.reset_if_needed()

    engine.close()
    return prompts


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Simulate app usage against the review policy")
    parser.add_argument("--days", type=int, default=180)
    parser.add_argument("--release-every", type=int, default=30)
    parser.add_argument("--seed", type=int, default=7)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, get_settings().log_level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    print("\n" + "=" * 60)
    print("   Review Gate - Usage Simulation")
    print("=" * 60 + "\n")

    prompts = run_simulation(args.days, args.release_every, args.seed)

    print("\n" + "=" * 60)
    print(f"Simulation complete: {len(prompts)} prompt(s) in {args.days} days")
    if prompts:
        print(f"   Prompt days: {', '.join(str(d) for d in prompts)}")
    print("=" * 60 + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
