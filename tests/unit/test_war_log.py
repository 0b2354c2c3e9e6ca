"""Unit tests for war-log flattening."""

from datetime import UTC, datetime

import pytest

from warplanner.core.war_log import flatten_war_log, is_league_entry, parse_event_time

END = datetime(2024, 5, 30, 18, 0, tzinfo=UTC)


@pytest.fixture
def regular_war() -> dict:
    return {
        "result": "win",
        "endTime": "20240530T180000.000Z",
        "teamSize": 15,
        "attacksPerMember": 2,
        "clan": {
            "tag": "#CLAN",
            "stars": 40,
            "destructionPercentage": 88.5,
            "attacks": 28,
            "members": [
                {
                    "tag": "#A",
                    "name": "Alice",
                    "mapPosition": 1,
                    "attacks": [
                        {"defenderTag": "#X", "stars": 3, "destructionPercentage": 100, "order": 5},
                        {"defenderTag": "#Y", "stars": 2, "destructionPercentage": 70},
                    ],
                },
                {"tag": "#B", "name": "Bob", "mapPosition": 2},
            ],
        },
        "opponent": {"tag": "#OPP", "name": "Rivals", "stars": 30, "destructionPercentage": 70.1},
    }


class TestParseEventTime:
    def test_api_format(self) -> None:
        assert parse_event_time("20240530T180000.000Z") == END

    def test_iso_format(self) -> None:
        assert parse_event_time("2024-05-30T18:00:00+00:00") == END

    def test_naive_iso_is_utc(self) -> None:
        assert parse_event_time("2024-05-30T18:00:00") == END

    @pytest.mark.parametrize("raw", [None, "", "yesterday", 1717092000])
    def test_unparseable(self, raw) -> None:
        assert parse_event_time(raw) is None


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ({"isCWL": True}, True),
        ({"type": "cwl"}, True),
        ({"warTag": "#8QJ2"}, True),
        ({"type": "random"}, False),
        ({}, False),
    ],
)
def test_is_league_entry(entry: dict, expected: bool) -> None:
    assert is_league_entry(entry) is expected


class TestFlattenWarLog:
    def test_regular_war(self, regular_war) -> None:
        rows = flatten_war_log("#CLAN", [regular_war])

        assert len(rows.events) == 1
        event = rows.events[0]
        assert event.event_end_time == END
        assert event.is_league_format is False
        assert event.team_size == 15
        assert event.result == "win"
        assert event.opponent_id == "#OPP"
        assert event.stars == 40
        assert event.opponent_destruction_percent == 70.1

        assert [(r.member_id, r.member_name, r.map_position) for r in rows.roster] == [
            ("#A", "Alice", 1),
            ("#B", "Bob", 2),
        ]
        assert [(a.attacker_id, a.defender_id, a.stars, a.order_num) for a in rows.attacks] == [
            ("#A", "#X", 3, 5),
            ("#A", "#Y", 2, 2),
        ]
        assert all(a.group_id == "#CLAN" for a in rows.attacks)
        assert rows.row_count == 5

    def test_league_flag_propagates_to_attacks(self, regular_war) -> None:
        regular_war["warTag"] = "#LEAGUE1"

        rows = flatten_war_log("#CLAN", [regular_war])

        assert rows.events[0].is_league_format is True
        assert rows.events[0].expected_attacks == 1
        assert all(a.is_league_format for a in rows.attacks)

    def test_entries_without_end_time_are_skipped(self, regular_war) -> None:
        undated = {k: v for k, v in regular_war.items() if k != "endTime"}
        garbled = {**regular_war, "endTime": "not-a-date"}

        rows = flatten_war_log("#CLAN", [undated, garbled, regular_war])

        assert len(rows.events) == 1

    def test_invalid_entry_is_rejected_without_dropping_the_rest(self, regular_war) -> None:
        broken = {
            "endTime": "20240401T180000.000Z",
            "clan": {"members": [{"tag": "#A", "attacks": [{"stars": 7}]}]},
        }

        rows = flatten_war_log("#CLAN", [broken, regular_war])

        assert [e.event_end_time for e in rows.events] == [END]
        assert len(rows.attacks) == 2

    def test_members_without_tags_and_empty_attacks_are_ignored(self) -> None:
        entry = {
            "endTime": "20240530T180000.000Z",
            "clan": {"members": [{"name": "ghost"}, {"tag": "#A", "attacks": [None, {}]}]},
        }

        rows = flatten_war_log("#CLAN", [entry])

        assert [r.member_id for r in rows.roster] == ["#A"]
        assert rows.attacks == []

    def test_empty_log(self) -> None:
        rows = flatten_war_log("#CLAN", [])

        assert rows.row_count == 0
