"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded values)
- Settings are immutable dataclasses; runtime tweaks go through ReviewOptions
- Single source of truth for the policy defaults, storage location and app version

EXTENSIBILITY:
- To add a storage backend: add its connection settings next to StorageSettings
- To ship different policy defaults per build: set the REVIEW_* variables in .env
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from functools import lru_cache

# Load .env file if present (development convenience)
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"{name}={raw!r} is not an integer, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"{name}={raw!r} is not a boolean, using {default}")
    return default


@dataclass(frozen=True)
class PolicySettings:
    """Default thresholds for the review prompt policy."""

    launches_until_request: int = field(
        default_factory=lambda: _env_int("REVIEW_LAUNCHES_UNTIL_REQUEST", 10)
    )
    days_until_request: int = field(
        default_factory=lambda: _env_int("REVIEW_DAYS_UNTIL_REQUEST", 10)
    )
    request_if_rated: bool = field(
        default_factory=lambda: _env_bool("REVIEW_REQUEST_IF_RATED", True)
    )
    days_until_reset_counters: int = field(
        default_factory=lambda: _env_int("REVIEW_DAYS_UNTIL_RESET_COUNTERS", 60)
    )
    request_on_rated_version: bool = field(
        default_factory=lambda: _env_bool("REVIEW_REQUEST_ON_RATED_VERSION", False)
    )

    # Always prompt, never touch stored state. Development only.
    preview_mode: bool = field(
        default_factory=lambda: _env_bool("REVIEW_PREVIEW_MODE", False)
    )


@dataclass(frozen=True)
class StorageSettings:
    """Where the counters live and how their keys are namespaced."""

    db_path: Path = field(
        default_factory=lambda: Path(os.getenv("REVIEW_GATE_DB", "review_gate.db"))
    )
    key_namespace: str = field(
        default_factory=lambda: os.getenv("REVIEW_GATE_NAMESPACE", "review_gate")
    )


@dataclass(frozen=True)
class AppSettings:
    """Host application identity."""

    version: Optional[str] = field(default_factory=lambda: os.getenv("APP_VERSION") or None)

    # Installed distribution to read the version from when APP_VERSION is unset.
    distribution: Optional[str] = field(default_factory=lambda: os.getenv("APP_DISTRIBUTION") or None)


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from review_gate.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.policy.launches_until_request)
    """

    # Sub-settings groups
    policy: PolicySettings = field(default_factory=PolicySettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    app: AppSettings = field(default_factory=AppSettings)

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings.
        Returns empty list if all settings are valid.
        """
        issues = []

        thresholds = {
            "REVIEW_LAUNCHES_UNTIL_REQUEST": self.policy.launches_until_request,
            "REVIEW_DAYS_UNTIL_REQUEST": self.policy.days_until_request,
            "REVIEW_DAYS_UNTIL_RESET_COUNTERS": self.policy.days_until_reset_counters,
        }
        for name, value in thresholds.items():
            if value < 0:
                issues.append(f"WARNING: {name} is negative ({value}). The condition always holds.")

        if self.policy.preview_mode:
            issues.append(
                "WARNING: REVIEW_PREVIEW_MODE is on. "
                "The prompt is shown on every request and nothing is recorded."
            )

        if not self.app.version and not self.app.distribution:
            issues.append(
                "WARNING: neither APP_VERSION nor APP_DISTRIBUTION set. "
                "Ratings cannot be tied to a release."
            )

        if not self.storage.key_namespace:
            issues.append(
                "WARNING: REVIEW_GATE_NAMESPACE is empty. "
                "Keys may collide with the host app's own storage."
            )

        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            issues.append(f"WARNING: LOG_LEVEL {self.log_level!r} is not a logging level.")

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
