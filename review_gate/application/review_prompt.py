"""
Review Prompt - Process-Wide Entry Point
=========================================

Host apps call two functions:

    configure()       once at startup (safe to call again)
    request_review()  at a moment that suits a review prompt

and may tune the shared `options` at any time:

    from review_gate import options
    options.launches_until_request = 5

The first configure() builds the engine and keeps it in a module-level
handle; later calls return that same engine without touching any state.
"""

import logging
import threading
from typing import Optional

from ..domain import ReviewOptions, ReviewPolicyEngine, StorageKeys
from ..infrastructure.config import Settings, get_settings
from ..infrastructure.lifecycle import LifecycleEvents, default_lifecycle
from ..infrastructure.persistence import KeyValueStore, SQLiteStore
from ..infrastructure.prompt import PromptProvider, LoggingPromptProvider
from ..infrastructure.runtime import (
    Clock,
    VersionProvider,
    StaticVersionProvider,
    PackageVersionProvider,
)

logger = logging.getLogger(__name__)

options = ReviewOptions.from_settings(get_settings().policy)

_engine_lock = threading.Lock()
_engine: Optional[ReviewPolicyEngine] = None


def default_version_provider(settings: Settings) -> VersionProvider:
    """APP_VERSION if given, else the installed APP_DISTRIBUTION's version."""
    if settings.app.version or not settings.app.distribution:
        return StaticVersionProvider(settings.app.version)
    return PackageVersionProvider(settings.app.distribution)


def configure(
    storage: Optional[KeyValueStore] = None,
    prompt_provider: Optional[PromptProvider] = None,
    clock: Optional[Clock] = None,
    version_provider: Optional[VersionProvider] = None,
    lifecycle: Optional[LifecycleEvents] = None,
) -> ReviewPolicyEngine:
    """
    Create and initialize the shared engine on first call.

    Arguments are only used by the first call; missing collaborators come
    from settings (SQLite file, APP_VERSION) or sensible defaults.
    """
    global _engine
    with _engine_lock:
        if _engine is not None:
            return _engine

        settings = get_settings()
        for issue in settings.validate():
            logger.warning(issue)

        if storage is None:
            storage = SQLiteStore(settings.storage.db_path)
            storage.init()

        engine = ReviewPolicyEngine(
            storage=storage,
            prompt_provider=prompt_provider or LoggingPromptProvider(),
            options=options,
            clock=clock,
            version_provider=version_provider or default_version_provider(settings),
            lifecycle=lifecycle or default_lifecycle(),
            keys=StorageKeys(settings.storage.key_namespace),
        )
        engine.initialize()
        _engine = engine
        logger.info("Review prompt engine configured")
        return engine


def request_review() -> bool:
    """Show the review prompt if the policy allows it."""
    return configure().request_review_if_eligible()


def get_engine() -> Optional[ReviewPolicyEngine]:
    """The shared engine, or None before configure()."""
    return _engine


def shutdown() -> None:
    """Detach the shared engine from lifecycle events and drop the handle."""
    global _engine
    with _engine_lock:
        if _engine is not None:
            _engine.close()
            _engine = None
