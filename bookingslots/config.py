"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path
from typing import List, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.intervals import validate_timezone


class TeamConfig(BaseModel):
    """Settings for team scheduling strategies."""
    max_concurrency: int = 8
    round_robin_lookback_days: int = 30

    @field_validator("max_concurrency", "round_robin_lookback_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure limits are at least one."""
        if value < 1:
            raise ValueError(f"Value must be at least 1, got {value}")
        return value


class CalendarConnection(BaseModel):
    """External calendar connected to a member."""
    member_id: str
    provider: Literal["google", "microsoft"] = "google"
    access_token: str
    account: str = ""  # Mailbox to query; required for Microsoft Graph

    @field_validator("account")
    @classmethod
    def normalise_account(cls, value: str) -> str:
        return value.strip().lower()


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    data_file: Path = Path("data.yaml")
    log_level: str = "WARNING"
    team: TeamConfig = Field(default_factory=TeamConfig)
    calendars: List[CalendarConnection] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str) -> str:
        """Ensure the default timezone is a known IANA zone."""
        return validate_timezone(value)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("calendars")
    @classmethod
    def validate_calendars(cls, value: List[CalendarConnection]) -> List[CalendarConnection]:
        """Microsoft Graph needs a mailbox to query."""
        for connection in value:
            if connection.provider == "microsoft" and not connection.account:
                raise ValueError(
                    f"Calendar of member '{connection.member_id}' uses Microsoft Graph "
                    "but has no account configured"
                )
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Relative ``data_file`` paths are resolved against the config file's
        directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if not config.data_file.is_absolute():
            config = config.model_copy(update={"data_file": config_path.parent / config.data_file})
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
