"""Flatten raw war-log entries into history rows.

The game API reports a war log as nested JSON (war -> clan -> members ->
attacks). The history store wants three flat row sets keyed by clan and
war end time; this module does that translation and nothing else.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from warplanner.contracts.batch import WarLogRows
from warplanner.contracts.history import AttackRecord, RosterEntry, WarEvent

logger = logging.getLogger(__name__)

_API_TIME_FORMAT = "%Y%m%dT%H%M%S.%fZ"


def parse_event_time(raw: Any) -> datetime | None:
    """Parse ``20240131T182215.000Z`` or ISO-8601; ``None`` if unparseable."""
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.strptime(raw, _API_TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        pass
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def is_league_entry(entry: Mapping[str, Any]) -> bool:
    """League wars are flagged explicitly, by type, or by carrying a war tag."""
    return bool(entry.get("isCWL") or entry.get("type") == "cwl" or entry.get("warTag"))


def _side(entry: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = entry.get(key)
    return value if isinstance(value, Mapping) else {}


def _flatten_entry(group_id: str, entry: Mapping[str, Any], end_time: datetime) -> WarLogRows:
    clan = _side(entry, "clan")
    opponent = _side(entry, "opponent")
    league = is_league_entry(entry)

    event = WarEvent(
        group_id=group_id,
        event_end_time=end_time,
        is_league_format=league,
        team_size=entry.get("teamSize") or None,
        opponent_id=opponent.get("tag"),
        result=entry.get("result"),
        stars=clan.get("stars"),
        destruction_percent=clan.get("destructionPercentage"),
        attacks_used=clan.get("attacks"),
        opponent_stars=opponent.get("stars"),
        opponent_destruction_percent=opponent.get("destructionPercentage"),
    )

    roster: list[RosterEntry] = []
    attacks: list[AttackRecord] = []
    members = clan.get("members")
    for member in members if isinstance(members, list) else []:
        member_id = member.get("tag")
        if not member_id:
            continue
        roster.append(
            RosterEntry(
                event_end_time=end_time,
                group_id=group_id,
                member_id=member_id,
                member_name=member.get("name") or "",
                map_position=member.get("mapPosition"),
            )
        )
        member_attacks = member.get("attacks")
        for idx, attack in enumerate(member_attacks if isinstance(member_attacks, list) else []):
            if not attack:
                continue
            attacks.append(
                AttackRecord(
                    group_id=group_id,
                    event_end_time=end_time,
                    attacker_id=member_id,
                    attacker_name=member.get("name"),
                    defender_id=attack.get("defenderTag"),
                    stars=attack.get("stars") or 0,
                    destruction_percent=attack.get("destructionPercentage") or 0,
                    order_num=attack.get("order") or idx + 1,
                    is_league_format=league,
                    map_position=member.get("mapPosition"),
                )
            )

    return WarLogRows(events=[event], roster=roster, attacks=attacks)


def flatten_war_log(group_id: str, entries: Iterable[Mapping[str, Any]]) -> WarLogRows:
    """Turn a clan's war-log entries into event, roster and attack rows.

    Entries without a parseable ``endTime`` are skipped, as are entries whose
    values fail row validation (logged, the rest of the log still goes in).
    """
    events: list[WarEvent] = []
    roster: list[RosterEntry] = []
    attacks: list[AttackRecord] = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            continue
        end_time = parse_event_time(entry.get("endTime"))
        if end_time is None:
            continue
        try:
            flat = _flatten_entry(group_id, entry, end_time)
        except ValidationError as exc:
            logger.warning(
                "war_log_entry_rejected",
                extra={"group_id": group_id, "end_time": end_time.isoformat(), "error": str(exc)},
            )
            continue
        events.extend(flat.events)
        roster.extend(flat.roster)
        attacks.extend(flat.attacks)
    return WarLogRows(events=events, roster=roster, attacks=attacks)
