"""Game API adapter (aiohttp REST).

Provides:
- Clan members (live roster)
- Current war (both sides)
- War log (finished wars, raw JSON for the ingestion job)

Implements RosterSourcePort and WarLogSourcePort. Transport and HTTP errors
are raised as :class:`GameApiError`; services turn them into
``UpstreamUnavailableError``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from warplanner.config.settings import settings
from warplanner.contracts.roster import LiveMember, LiveWar
from warplanner.core.observability import trace_adapter
from warplanner.core.ports import RosterSourcePort, WarLogSourcePort

logger = logging.getLogger(__name__)


class GameApiError(Exception):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _to_member(raw: dict[str, Any]) -> LiveMember:
    return LiveMember(
        id=raw["tag"],
        name=raw.get("name") or "",
        town_hall_level=raw.get("townhallLevel") or raw.get("townHallLevel") or 0,
        role=raw.get("role"),
        map_position=raw.get("mapPosition") or raw.get("clanRank") or 0,
        trophies=raw.get("trophies"),
        donations=raw.get("donations"),
        donations_received=raw.get("donationsReceived"),
    )


def _members(side: Any) -> list[LiveMember]:
    raw_members = side.get("members") if isinstance(side, dict) else None
    return [_to_member(m) for m in raw_members or [] if isinstance(m, dict) and m.get("tag")]


class GameApiAdapter(RosterSourcePort, WarLogSourcePort):
    def __init__(self, base_url: str | None = None, token: str | None = None) -> None:
        self.base_url = (base_url or settings.game_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.game_api_token
        self._session: aiohttp.ClientSession | None = None
        self._session_loop: asyncio.AbstractEventLoop | None = None

    async def __aenter__(self) -> GameApiAdapter:
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        # Celery tasks run each job on a fresh loop; a session is bound to its loop.
        loop = asyncio.get_running_loop()
        if self._session is None or self._session.closed or self._session_loop is not loop:
            if self._session and not self._session.closed:
                await self._session.close()
            timeout = aiohttp.ClientTimeout(total=settings.game_api_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
            self._session_loop = loop
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._session_loop = None

    async def _get(self, path: str) -> dict[str, Any] | None:
        """GET ``path``; ``None`` on 404, :class:`GameApiError` on anything else."""
        if not self.token:
            raise GameApiError("Game API token is not configured")

        url = f"{self.base_url}{path}"
        headers = {"Authorization": f"Bearer {self.token}", "Accept": "application/json"}
        session = await self._ensure_session()
        try:
            async with session.get(url, headers=headers) as resp:
                if resp.status == 200:
                    data: dict[str, Any] = await resp.json()
                    return data
                if resp.status == 404:
                    return None
                try:
                    body = await resp.json()
                    reason = body.get("reason") or body.get("message") or "Unknown"
                except (aiohttp.ContentTypeError, ValueError):
                    reason = "Unknown"
                logger.warning(
                    "game_api_error",
                    extra={"path": path, "status": resp.status, "reason": reason},
                )
                raise GameApiError(
                    f"Game API returned {resp.status} for {path}: {reason}",
                    status_code=resp.status,
                )
        except aiohttp.ClientError as e:
            raise GameApiError(f"Game API request failed for {path}: {e}") from e
        except asyncio.TimeoutError as e:
            raise GameApiError(f"Game API request timed out for {path}") from e

    @staticmethod
    def _clan_path(group_id: str, suffix: str = "") -> str:
        return f"/clans/{quote(group_id, safe='')}{suffix}"

    @trace_adapter
    async def get_clan_members(self, group_id: str) -> list[LiveMember]:
        data = await self._get(self._clan_path(group_id, "/members"))
        if data is None:
            return []
        items = data.get("items") or []
        return [_to_member(m) for m in items if isinstance(m, dict) and m.get("tag")]

    @trace_adapter
    async def get_current_war(self, group_id: str) -> LiveWar | None:
        data = await self._get(self._clan_path(group_id, "/currentwar"))
        if data is None:
            return None

        opponent = data.get("opponent") if isinstance(data.get("opponent"), dict) else {}
        return LiveWar(
            state=data.get("state") or "notInWar",
            team_size=data.get("teamSize") or None,
            our_members=_members(data.get("clan")),
            opponent_members=_members(opponent),
            opponent_name=opponent.get("name"),
            opponent_tag=opponent.get("tag"),
        )

    @trace_adapter
    async def get_war_log(self, group_id: str) -> list[dict[str, Any]]:
        data = await self._get(self._clan_path(group_id, "/warlog"))
        if data is None:
            return []
        items = data.get("items")
        return items if isinstance(items, list) else []
