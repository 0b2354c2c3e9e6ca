"""
Configuration settings using Pydantic Settings.

Every field has a default so the scoring core can be imported and tested
without an environment. Deployments override via environment or `.env`.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Order: init kwargs > .env (dotenv) > env vars > file secrets
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ):
        return (
            init_settings,
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    # Skill profile aggregation
    skills_window_days: int = Field(90, ge=1, alias="SKILLS_WINDOW_DAYS")
    capital_efficiency_default: int = Field(
        50,
        ge=0,
        le=100,
        alias="CAPITAL_EFFICIENCY_DEFAULT",
        description="Placeholder capital score until per-member raid data is ingested",
    )

    # Attendance / risk
    attendance_default_days: int = Field(60, alias="ATTENDANCE_DEFAULT_DAYS")
    attendance_min_days: int = Field(7, ge=1, alias="ATTENDANCE_MIN_DAYS")
    attendance_max_days: int = Field(180, ge=1, alias="ATTENDANCE_MAX_DAYS")
    recent_miss_days: int = Field(14, ge=0, alias="RECENT_MISS_DAYS")
    recent_miss_penalty: int = Field(15, ge=0, le=100, alias="RECENT_MISS_PENALTY")

    # Lineup selection
    lineup_default_team_size: int = Field(15, alias="LINEUP_DEFAULT_TEAM_SIZE")
    lineup_min_team_size: int = Field(5, ge=1, alias="LINEUP_MIN_TEAM_SIZE")
    lineup_max_team_size: int = Field(50, ge=1, alias="LINEUP_MAX_TEAM_SIZE")

    # Game API (live rosters, current war, war log)
    game_api_base_url: str = Field("https://api.clashofclans.com/v1", alias="GAME_API_BASE_URL")
    game_api_token: str | None = Field(
        None,
        validation_alias=AliasChoices("GAME_API_TOKEN", "CLASH_OF_CLANS_API_TOKEN"),
    )
    game_api_timeout: int = Field(15, ge=1, alias="GAME_API_TIMEOUT")

    # Database Configuration
    database_url: str = Field(
        "postgresql://localhost/warplanner",
        validation_alias=AliasChoices("DATABASE_URL", "WARPLANNER_DATABASE_URL"),
    )
    database_pool_size: int = Field(10, alias="DATABASE_POOL_SIZE")
    database_pool_timeout: int = Field(30, alias="DATABASE_POOL_TIMEOUT")

    # Celery Configuration (periodic batch jobs)
    celery_broker_url: str = Field("redis://localhost:6379/0", alias="CELERY_BROKER_URL")
    celery_result_backend: str = Field("redis://localhost:6379/1", alias="CELERY_RESULT_BACKEND")
    celery_task_time_limit: int = Field(600, alias="CELERY_TASK_TIME_LIMIT")
    skills_recompute_interval_seconds: int = Field(
        21600, ge=60, alias="SKILLS_RECOMPUTE_INTERVAL_SECONDS"
    )
    war_log_ingest_interval_seconds: int = Field(
        3600, ge=60, alias="WAR_LOG_INGEST_INTERVAL_SECONDS"
    )
    member_snapshot_interval_seconds: int = Field(
        21600, ge=60, le=86400, alias="MEMBER_SNAPSHOT_INTERVAL_SECONDS"
    )

    # Application Configuration
    app_name: str = Field("warplanner", alias="APP_NAME")
    app_env: str = Field("development", alias="APP_ENV")
    app_debug: bool = Field(False, alias="APP_DEBUG")
    app_log_level: str = Field("INFO", alias="APP_LOG_LEVEL")


settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    This function provides dependency injection support for settings.
    """
    return settings
