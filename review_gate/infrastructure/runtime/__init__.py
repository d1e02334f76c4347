from .clock import Clock, SystemClock, FixedClock
from .version import VersionProvider, StaticVersionProvider, PackageVersionProvider

__all__ = [
    "Clock", "SystemClock", "FixedClock",
    "VersionProvider", "StaticVersionProvider", "PackageVersionProvider",
]
