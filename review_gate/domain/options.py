"""Tunable thresholds of the review prompt policy."""

from dataclasses import dataclass, fields

# Foreground events closer than this to the last resign-active are not launches.
SIGNIFICANT_LAUNCH_SECONDS = 180


@dataclass
class ReviewOptions:
    """
    Mutable policy options. The engine reads them on every decision, so
    changes apply immediately.
    """

    launches_until_request: int = 10
    days_until_request: int = 10
    request_if_rated: bool = True
    days_until_reset_counters: int = 60
    request_on_rated_version: bool = False
    preview_mode: bool = False

    @classmethod
    def from_settings(cls, policy) -> "ReviewOptions":
        return cls(**{f.name: getattr(policy, f.name) for f in fields(cls)})

    def update(self, **changes) -> "ReviewOptions":
        names = {f.name for f in fields(self)}
        unknown = set(changes) - names
        if unknown:
            raise AttributeError(f"Unknown review option(s): {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            setattr(self, name, value)
        return self

    def restore_defaults(self) -> "ReviewOptions":
        return self.update(**{f.name: f.default for f in fields(self)})
