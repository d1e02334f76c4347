# Infrastructure Layer
# ====================
# Collaborators the review policy talks to:
# - config/: Environment and settings management
# - persistence/: Key-value storage for the counters (memory, SQLite)
# - prompt/: Review dialog providers
# - lifecycle/: Foreground / resign-active notifications
# - runtime/: Clock and app version sources
#
# This layer can be replaced entirely without affecting domain/application layers.
