"""
Prompt Provider - Abstraction Layer for the Native Review Dialog
=================================================================

The engine decides WHEN to ask; a provider decides HOW. Showing the prompt
is fire-and-forget: the platform never tells us whether the user saw it,
rated, or dismissed it.

USAGE:
    # Log only (default, headless hosts)
    provider = LoggingPromptProvider()

    # Host app hook
    provider = CallbackPromptProvider(lambda: bridge.request_store_review())
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class PromptProvider(ABC):
    """
    Abstract base class for review prompt providers.
    Implement this interface to hook up a platform review dialog.
    """

    @abstractmethod
    def show_review_prompt(self) -> None:
        """Ask the platform to show its review dialog. No result is observed."""
        ...


class LoggingPromptProvider(PromptProvider):
    """Writes a log line instead of showing a dialog."""

    def __init__(self, message: str = "Review prompt requested"):
        self._message = message
        self.shown = 0

    def show_review_prompt(self) -> None:
        self.shown += 1
        logger.info(f"{self._message} (#{self.shown})")


class CallbackPromptProvider(PromptProvider):
    """Forwards to a host-supplied zero-argument callable."""

    def __init__(self, callback: Callable[[], object]):
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._callback = callback

    def show_review_prompt(self) -> None:
        self._callback()
