"""
Version Providers
=================

The engine ties a rating to the host app's version so that, by default,
a release that was already rated is not asked again after the cooldown.
"""

import logging
from abc import ABC, abstractmethod
from importlib import metadata
from typing import Optional

logger = logging.getLogger(__name__)


class VersionProvider(ABC):
    @abstractmethod
    def current_version(self) -> Optional[str]:
        """Current app build/version identifier, or None if unknown."""
        ...


class StaticVersionProvider(VersionProvider):
    """Fixed version string, e.g. from APP_VERSION."""

    def __init__(self, version: Optional[str] = None):
        self.version = version

    def current_version(self) -> Optional[str]:
        return self.version


class PackageVersionProvider(VersionProvider):
    """Version of an installed distribution, looked up on every call."""

    def __init__(self, distribution: str):
        self.distribution = distribution

    def current_version(self) -> Optional[str]:
        try:
            return metadata.version(self.distribution)
        except metadata.PackageNotFoundError:
            logger.debug(f"Distribution {self.distribution!r} not installed, version unknown")
            return None
