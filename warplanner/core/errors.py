"""Error taxonomy for the war planner.

Empty windows and out-of-range parameters are deliberately not errors:
scorers return empty results and parameters are clamped.
"""


class WarPlannerError(Exception):
    """Base class for all domain errors."""


class NotInGroupError(WarPlannerError):
    """The caller has no resolvable clan association. Not retried."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id!r} is not in a clan")
        self.user_id = user_id


class UpstreamUnavailableError(WarPlannerError):
    """A source fetch failed.

    Batch jobs skip the item; single-item calls surface it to the caller.
    """

    def __init__(self, source: str, item: str | None = None, reason: str | None = None) -> None:
        detail = f"{source} unavailable"
        if item:
            detail += f" for {item}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)
        self.source = source
        self.item = item
        self.reason = reason


class NotInWarError(WarPlannerError):
    """The clan has no active war to plan targets for."""

    def __init__(self, group_id: str) -> None:
        super().__init__(f"Clan {group_id!r} is not in war")
        self.group_id = group_id
