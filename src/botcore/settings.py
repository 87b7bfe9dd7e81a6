from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, ensure_config_file, resolve_config_path

DEFAULT_PREFIX = "/"


class DiscordSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bot_token: SecretStr | None = None

    @field_validator("bot_token", mode="before")
    @classmethod
    def _validate_bot_token(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("bot_token must be a string")
        return value

    @field_serializer("bot_token")
    def _dump_token(self, value: SecretStr | None) -> str | None:
        return value.get_secret_value() if value else None


class BotCoreSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="allow",
        env_prefix="BOTCORE__",
        env_nested_delimiter="__",
    )

    prefix: str = DEFAULT_PREFIX
    botvars_path: str | None = None
    discord: DiscordSettings = Field(default_factory=DiscordSettings)

    @field_validator("prefix", mode="before")
    @classmethod
    def _validate_prefix(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("prefix must be a non-empty string")
        if not isinstance(value, str):
            raise ValueError("prefix must be a string")
        if not value:
            raise ValueError("prefix must be a non-empty string")
        return value

    @field_validator("botvars_path", mode="before")
    @classmethod
    def _validate_botvars_path(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("botvars_path must be a string")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("botvars_path must be a non-empty string")
        return cleaned

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def resolve_botvars_path(self, *, config_path: Path) -> Path | None:
        if self.botvars_path is None:
            return None
        path = Path(self.botvars_path).expanduser()
        if not path.is_absolute():
            path = config_path.parent / path
        return path


def load_settings(path: str | Path | None = None) -> tuple[BotCoreSettings, Path]:
    cfg_path = resolve_config_path(path)
    ensure_config_file(cfg_path)
    return _load_settings_from_path(cfg_path), cfg_path


def load_settings_if_exists(
    path: str | Path | None = None,
) -> tuple[BotCoreSettings, Path] | None:
    cfg_path = resolve_config_path(path)
    if cfg_path.exists():
        if not cfg_path.is_file():
            raise ConfigError(
                f"Config path {cfg_path} exists but is not a file."
            ) from None
        return _load_settings_from_path(cfg_path), cfg_path
    return None


def validate_settings_data(
    data: dict[str, Any], *, config_path: Path
) -> BotCoreSettings:
    try:
        return BotCoreSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {config_path}: {exc}") from exc


def require_discord(settings: BotCoreSettings, config_path: Path) -> str:
    token = settings.discord.bot_token
    if token is None or not token.get_secret_value().strip():
        raise ConfigError(f"Missing discord bot token in {config_path}.")
    return token.get_secret_value().strip()


def _load_settings_from_path(cfg_path: Path) -> BotCoreSettings:
    cfg = dict(BotCoreSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "BotCoreSettingsBound",
        (BotCoreSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
    except Exception as exc:  # pragma: no cover - safety net
        raise ConfigError(f"Failed to load config {cfg_path}: {exc}") from exc
