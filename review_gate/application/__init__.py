# Application Layer
# =================
# Process-wide wiring of the policy engine to its collaborators.
from .review_prompt import options, configure, request_review, get_engine, shutdown

__all__ = ["options", "configure", "request_review", "get_engine", "shutdown"]
