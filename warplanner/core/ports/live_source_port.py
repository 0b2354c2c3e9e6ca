"""Port interfaces for live (current) clan data.

Abstracts the game API and the account-linking tables so services can be
exercised without either.
"""

from abc import ABC, abstractmethod
from typing import Any

from warplanner.contracts.roster import LiveMember, LiveWar


class RosterSourcePort(ABC):
    """Port for the current member list and the live war."""

    @abstractmethod
    async def get_clan_members(self, group_id: str) -> list[LiveMember]:
        """Current clan members with town hall, role and trophies.

        Raises:
            Exception: Any transport failure; services translate it into
                UpstreamUnavailableError.
        """
        pass

    @abstractmethod
    async def get_current_war(self, group_id: str) -> LiveWar | None:
        """Live war state for both sides, or None when there is no war."""
        pass


class WarLogSourcePort(ABC):
    """Port for a clan's finished-war log."""

    @abstractmethod
    async def get_war_log(self, group_id: str) -> list[dict[str, Any]]:
        """Raw war-log entries as returned by the game API (newest first)."""
        pass


class GroupResolverPort(ABC):
    """Port for mapping users to clans and listing tracked clans."""

    @abstractmethod
    async def resolve_group_id(self, user_id: str) -> str | None:
        """Clan tag for a user (active linked profile first), or None."""
        pass

    @abstractmethod
    async def tracked_group_ids(self) -> list[str]:
        """Every clan the periodic jobs should process."""
        pass
