"""Launcher configuration loaded from a TOML file."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from tomlkit import loads
from tomlkit.exceptions import TOMLKitError

from project_launcher.models.repository import RemoteRepository

DEFAULT_CONFIG_FILE = "launcher.toml"
TOKEN_ENV_VAR = "PROJECT_LAUNCHER_TOKEN"


class ConfigError(ValueError):
    """Raised when the configuration file cannot be read or is invalid."""


def _default_setup_script() -> str:
    return "setup.cmd" if sys.platform == "win32" else "setup.sh"


class LauncherConfig(BaseModel):
    """Settings injected into the orchestrator at construction."""

    base_dir: Path = Field(default=Path("Repo"), description="Directory holding every working copy")
    token: SecretStr | None = Field(default=None, description="Access token spliced into clone URLs")
    git_executable: str = "git"
    setup_script: str = Field(default_factory=_default_setup_script)
    repositories: list[RemoteRepository] = Field(default_factory=list)

    @field_validator("base_dir")
    @classmethod
    def _expand_base_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("repositories")
    @classmethod
    def _unique_names(cls, value: list[RemoteRepository]) -> list[RemoteRepository]:
        names = [repo.name for repo in value]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            msg = f"Duplicate repository names: {', '.join(duplicates)}"
            raise ValueError(msg)
        return value

    @property
    def token_value(self) -> str | None:
        if self.token is None:
            return None
        return self.token.get_secret_value() or None

    def find_repository(self, name: str) -> RemoteRepository | None:
        return next((repo for repo in self.repositories if repo.name == name), None)


def load_config(path: Path | None = None) -> LauncherConfig:
    """Load configuration, falling back to defaults when the file does not exist.

    The ``PROJECT_LAUNCHER_TOKEN`` environment variable overrides any token in the file.
    Relative ``base_dir`` values are resolved against the config file's directory.
    """
    config_path = path or Path(DEFAULT_CONFIG_FILE)
    data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open(encoding="utf-8") as f:
                data = loads(f.read()).unwrap()
        except (OSError, TOMLKitError) as e:
            msg = f"Cannot read {config_path}: {e}"
            raise ConfigError(msg) from e
        logger.debug(f"Loaded configuration from {config_path}")
    else:
        logger.debug(f"No configuration at {config_path}, using defaults")

    env_token = os.environ.get(TOKEN_ENV_VAR)
    if env_token:
        data["token"] = env_token

    try:
        config = LauncherConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e

    if not config.base_dir.is_absolute():
        config = config.model_copy(update={"base_dir": (config_path.parent / config.base_dir).resolve()})
    return config
