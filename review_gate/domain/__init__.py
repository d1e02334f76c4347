# Domain Layer
# ============
# Pure review prompt policy: options, persisted state and the decision engine.
from .options import ReviewOptions, SIGNIFICANT_LAUNCH_SECONDS
from .review_policy import (
    ReviewPolicyEngine,
    ReviewState,
    StorageKeys,
    whole_days_between,
)

__all__ = [
    "ReviewOptions",
    "SIGNIFICANT_LAUNCH_SECONDS",
    "ReviewPolicyEngine",
    "ReviewState",
    "StorageKeys",
    "whole_days_between",
]
