"""Contract validation tests (row invariants, derived score bounds, settings)."""

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from warplanner.config.settings import Settings
from warplanner.contracts.batch import BatchResult
from warplanner.contracts.history import AttackRecord, WarEvent, expected_attacks_per_event
from warplanner.contracts.roster import LiveMember, LiveWar
from warplanner.contracts.skill_profile import SkillProfile
from warplanner.core.errors import NotInGroupError, UpstreamUnavailableError, WarPlannerError
from warplanner.core.scoring import AttendanceConfig, LineupConfig, SkillScoringConfig

END = datetime(2024, 5, 30, 18, 0, tzinfo=UTC)


class TestAttackRecord:
    @pytest.mark.parametrize("stars", [-1, 4])
    def test_stars_bounds(self, stars: int) -> None:
        with pytest.raises(ValidationError):
            AttackRecord(attacker_id="#A", stars=stars, destruction_percent=50, event_end_time=END)

    @pytest.mark.parametrize("destruction", [-0.1, 100.1])
    def test_destruction_bounds(self, destruction: float) -> None:
        with pytest.raises(ValidationError):
            AttackRecord(
                attacker_id="#A", stars=1, destruction_percent=destruction, event_end_time=END
            )

    def test_rows_are_immutable(self) -> None:
        attack = AttackRecord(attacker_id="#A", stars=1, destruction_percent=50, event_end_time=END)

        with pytest.raises(ValidationError):
            attack.stars = 3

    def test_event_end_time_is_normalised_to_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        attack = AttackRecord(
            attacker_id="#A",
            stars=1,
            destruction_percent=50,
            event_end_time=datetime(2024, 5, 30, 20, 0, tzinfo=plus_two),
        )
        naive = WarEvent(group_id="#CLAN", event_end_time=datetime(2024, 5, 30, 18, 0))

        assert attack.event_end_time == END
        assert attack.event_end_time.tzinfo == UTC
        assert naive.event_end_time == END

    def test_expected_attacks(self) -> None:
        assert expected_attacks_per_event(True) == 1
        assert expected_attacks_per_event(False) == 2
        assert WarEvent(group_id="#C", event_end_time=END).expected_attacks == 2


def test_skill_profile_scores_are_bounded() -> None:
    with pytest.raises(ValidationError):
        SkillProfile(
            member_id="#A",
            offense_skill=101,
            cleanup_skill=0,
            consistency=0,
            clutch=0,
            participation=0,
            capital_efficiency=50,
            updated_at=END,
        )


def test_live_war_activity() -> None:
    assert LiveWar(state="inWar").is_active
    assert LiveWar(state="preparation").is_active
    assert not LiveWar(state="notInWar").is_active


def test_live_member_rejects_unknown_fields() -> None:
    with pytest.raises(ValidationError):
        LiveMember(id="#A", clan_games_points=4000)


def test_batch_result_bookkeeping() -> None:
    result = BatchResult()

    result.record_success(12)
    result.record_failure("#BROKEN")
    result.record_success()

    assert result.model_dump() == {
        "processed": 3,
        "succeeded": 2,
        "failed": 1,
        "rows_written": 12,
        "failed_items": ["#BROKEN"],
    }


def test_errors_share_a_base_class() -> None:
    err = UpstreamUnavailableError("game_api", "#CLAN", "503")

    assert isinstance(err, WarPlannerError)
    assert isinstance(NotInGroupError("u1"), WarPlannerError)
    assert str(err) == "game_api unavailable for #CLAN: 503"


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.skills_window_days == 90
        assert settings.capital_efficiency_default == 50
        assert settings.attendance_default_days == 60
        assert settings.lineup_default_team_size == 15

    def test_environment_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("CAPITAL_EFFICIENCY_DEFAULT", "65")
        monkeypatch.setenv("RECENT_MISS_PENALTY", "20")
        monkeypatch.setenv("WARPLANNER_DATABASE_URL", "postgresql://db/wars")

        settings = Settings(_env_file=None)

        assert settings.capital_efficiency_default == 65
        assert settings.recent_miss_penalty == 20
        assert settings.database_url == "postgresql://db/wars"

    def test_out_of_range_setting_is_rejected(self, monkeypatch) -> None:
        monkeypatch.setenv("CAPITAL_EFFICIENCY_DEFAULT", "150")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_scoring_configs_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,
            skills_window_days=30,
            capital_efficiency_default=40,
            recent_miss_penalty=10,
            lineup_max_team_size=30,
        )

        assert SkillScoringConfig.from_settings(settings).window_days == 30
        assert SkillScoringConfig.from_settings(settings).capital_efficiency_default == 40
        assert AttendanceConfig.from_settings(settings).recent_miss_penalty == 10
        assert LineupConfig.from_settings(settings).max_team_size == 30
