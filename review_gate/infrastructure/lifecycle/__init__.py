from .lifecycle_events import LifecycleEvent, LifecycleEvents, Subscription, default_lifecycle

__all__ = ["LifecycleEvent", "LifecycleEvents", "Subscription", "default_lifecycle"]
