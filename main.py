"""
Review Gate - Command Line Entry Point
======================================

Inspect and drive the persisted review state of a SQLite state file:

    python main.py status
    python main.py launch --version 2.1.0
    python main.py request --version 2.1.0
    python main.py reset [--force]

To watch the policy play out over weeks of simulated use:
    python run_simulation.py
"""

import sys
import logging
import argparse
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from review_gate import options
from review_gate.application.review_prompt import default_version_provider
from review_gate.domain import ReviewPolicyEngine, StorageKeys
from review_gate.infrastructure.config import get_settings
from review_gate.infrastructure.persistence import SQLiteStore
from review_gate.infrastructure.prompt import LoggingPromptProvider
from review_gate.infrastructure.runtime import StaticVersionProvider

logger = logging.getLogger(__name__)


def build_engine(args) -> ReviewPolicyEngine:
    settings = get_settings()
    store = SQLiteStore(args.db or settings.storage.db_path)
    if not store.init():
        print(f"Warning: state file {store.db_path} is not usable, showing defaults")

    if args.preview:
        options.preview_mode = True

    return ReviewPolicyEngine(
        storage=store,
        prompt_provider=LoggingPromptProvider(">>> Review prompt would be shown now <<<"),
        options=options,
        version_provider=(
            StaticVersionProvider(args.version) if args.version else default_version_provider(settings)
        ),
        keys=StorageKeys(settings.storage.key_namespace),
    )


def fmt(when) -> str:
    """Timestamp for display, "-" when unset."""
    return when.isoformat(timespec="seconds") if when else "-"


def print_status(engine: ReviewPolicyEngine):
    state = engine.state()

    print("\n" + "=" * 50)
    print("   Review Gate - Status")
    print("=" * 50)
    print(f"   First launch:      {fmt(state.first_launch_date)}")
    print(f"   Launch count:      {state.launch_count} / {options.launches_until_request}")
    print(f"   Days since first:  {engine.days_since_first_launch} / {options.days_until_request}")
    print(f"   Rated:             {'yes' if state.is_rated else 'no'}")
    print(f"   Last rate date:    {fmt(state.last_rate_date)}")
    print(f"   Rated version:     {state.last_rated_version or '-'}")
    if state.is_rated:
        print(f"   Days since rated:  {engine.days_since_rated} / {options.days_until_reset_counters}")
    print(f"   Current version:   {engine.current_version or '-'}")
    print(f"   Eligible now:      {'yes' if engine.can_request() else 'no'}")
    print("=" * 50 + "\n")


def cmd_status(engine, args) -> int:
    print_status(engine)
    return 0


def cmd_launch(engine, args) -> int:
    engine.initialize()
    print(f"Launch recorded. Count is now {engine.launch_count}.")
    return 0


def cmd_request(engine, args) -> int:
    if engine.request_review_if_eligible():
        print("Review prompt triggered.")
        return 0
    print("Not eligible yet.")
    return 1


def cmd_reset(engine, args) -> int:
    if args.force:
        engine.storage.remove_many(engine.keys.all())
        print("Review state cleared.")
        return 0
    if engine.reset_if_needed():
        print("Cooldown passed, counters reset.")
    else:
        print("Nothing to reset.")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect and drive review prompt state")
    parser.add_argument("--db", help="SQLite state file (default: REVIEW_GATE_DB)")
    parser.add_argument("--version", help="Current app version (default: APP_VERSION)")
    parser.add_argument("--preview", action="store_true", help="Enable preview mode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="Show stored counters and eligibility").set_defaults(func=cmd_status)
    sub.add_parser("launch", help="Record an app launch").set_defaults(func=cmd_launch)
    sub.add_parser("request", help="Request a review if eligible").set_defaults(func=cmd_request)
    reset = sub.add_parser("reset", help="Reset counters if the cooldown has passed")
    reset.add_argument("--force", action="store_true", help="Clear state unconditionally")
    reset.set_defaults(func=cmd_reset)

    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    engine = build_engine(args)
    return args.func(engine, args)


if __name__ == "__main__":
    sys.exit(main())
