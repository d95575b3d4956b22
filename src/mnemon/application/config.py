from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from mnemon.domain import constants as C


def config_files() -> list[Path]:
    return [
        Path.home() / ".config/mnemon/config.toml",
        Path.home() / ".mnemon.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for mnemon.
    Supports loading from:
    1. Environment variables (MNEMON_*)
    2. Config file (~/.config/mnemon/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="MNEMON_",
        extra="ignore",
    )

    # Paths
    cards_file: Path | None = None

    # Scheduler
    default_ease_factor: float = Field(default=C.DEFAULT_EASE_FACTOR, gt=0)
    min_ease_factor: float = Field(default=C.MIN_EASE_FACTOR, ge=C.MIN_EASE_FACTOR)
    failure_penalty: float = Field(default=C.FAILURE_PENALTY, ge=0)
    min_interval: int = Field(default=C.MIN_INTERVAL, ge=1)
    first_interval: int = Field(default=C.FIRST_INTERVAL, ge=1)
    second_interval: int = Field(default=C.SECOND_INTERVAL, ge=1)
    mastered_interval: int = Field(default=C.MASTERED_INTERVAL, ge=0)

    # Forecast
    forecast_days: int = Field(default=C.DEFAULT_FORECAST_DAYS, ge=0)
    heavy_day_threshold: int = Field(default=C.HEAVY_DAY_THRESHOLD, ge=1)
    minutes_per_card: float = Field(default=C.MINUTES_PER_CARD, gt=0)

    # Insights
    insight_limit: int = Field(default=C.DEFAULT_INSIGHT_LIMIT, ge=0)

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # First existing file wins; init (CLI) beats env beats file
        toml_file = next((f for f in config_files() if f.exists()), None)

        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("cards_file", mode="before")
    @classmethod
    def resolve_cards_file(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def check_ease_bounds(self) -> "AppConfig":
        if self.default_ease_factor < self.min_ease_factor:
            raise ValueError("default_ease_factor must not be below min_ease_factor")
        return self


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/mnemon/config.toml (if exists)
    3. Environment variables (MNEMON_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    config = AppConfig(**overrides)

    if config.cards_file is None:
        config.cards_file = (Path.cwd() / "cards.yaml").resolve()

    return config
