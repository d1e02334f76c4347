# Review Gate - In-App Review Prompt Policy
# ==========================================
# Decides, on each launch and foreground event, whether the app should ask
# the user for a review, using launch counts, elapsed days and cooldowns.
#
# ARCHITECTURE LAYERS:
# - Application:    Process-wide configure() / request_review() surface
# - Domain:         Review policy engine and its options
# - Infrastructure: Storage, prompt providers, lifecycle events, clock, config
#
# This design allows easy replacement of infrastructure components
# (e.g., swap SQLite for the host app's own key-value store).
from .application import options, configure, request_review, get_engine, shutdown

__version__ = "1.0.0"

__all__ = ["options", "configure", "request_review", "get_engine", "shutdown"]
