"""Settings resolution and repository profiles from ~/.config/wigen/config.toml."""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from wigen.extractors.base import MAX_TEXT_LENGTH
from wigen.models import RepositoryConfig, WorkItem
from wigen.repository import DEFAULT_REPOSITORY_CONFIG, resolve_repository

CONFIG_PATH = Path.home() / ".config" / "wigen" / "config.toml"

ENV_PREFIX = "WIGEN_"


class WigenSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_repository: str | None = None  # profile name
    log_level: str = "WARNING"
    max_text_length: int = MAX_TEXT_LENGTH  # per free-text field, before pattern scans
    work_item_dir: Path = Path(".")  # where `<id>.json` exports are looked up

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # init kwargs carry the config.toml scalars, so they rank below env and .env
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/wigen/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as f:
        return tomlkit.load(f)


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings() -> WigenSettings:
    """Return settings with top-level config.toml scalars as defaults.

    Environment variables (and .env) override the file.
    """
    toml_config = _load_toml()
    file_defaults = {
        key: value.unwrap() if hasattr(value, "unwrap") else value
        for key, value in toml_config.items()
        if not isinstance(value, Mapping)
    }
    return WigenSettings(**file_defaults)


def load_repository_configs() -> list[RepositoryConfig]:
    """Validate every profile table in config.toml into a RepositoryConfig, in file order."""
    toml_config = _load_toml()
    configs = []
    for profile in _list_profiles(toml_config):
        data = toml_config[profile].unwrap()
        data.setdefault("name", profile)
        try:
            configs.append(RepositoryConfig.model_validate(data))
        except ValidationError as exc:
            typer.echo(f"Invalid repository profile '{profile}' in {CONFIG_PATH}:\n{exc}")
            raise typer.Exit(1) from exc
    return configs


def get_repository_config(work_item: WorkItem, repository: str | None = None) -> RepositoryConfig:
    """Pick the repository configuration for a work item.

    Precedence (highest to lowest):
    1. repository argument (--repository CLI flag)
    2. WIGEN_DEFAULT_REPOSITORY env var / default_repository key in config.toml
    3. First profile whose area_paths covers the work item's area path
    4. First profile defined in config.toml (built-in default when there are none)
    """
    configs = load_repository_configs()
    by_profile = dict(zip(_list_profiles(_load_toml()), configs))

    active = repository or get_settings().default_repository
    if active:
        if active in by_profile:
            return by_profile[active]
        if not by_profile and active == DEFAULT_REPOSITORY_CONFIG.name:
            return DEFAULT_REPOSITORY_CONFIG
        available = list(by_profile) or [DEFAULT_REPOSITORY_CONFIG.name]
        typer.echo(f"Repository profile '{active}' not found in {CONFIG_PATH}. Available: {available}")
        raise typer.Exit(1)

    return resolve_repository(work_item, configs)
