from __future__ import annotations

from pathlib import Path
from typing import Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

CONFIG_FILENAME = "callmap.toml"

OutputFormat = Literal["print", "json"]


class CallmapConfig(BaseModel):
    """Configuration for a callmap run, read from ``callmap.toml``."""

    model_config = ConfigDict(extra="forbid")

    server_command: list[str] = Field(
        default_factory=lambda: ["pylsp"],
        description="Language server executable and arguments",
    )
    request_timeout: float | None = Field(
        default=120.0,
        description="Seconds to wait for each server response (null = no limit)",
    )
    search_paths: list[str] = Field(
        default_factory=lambda: [".", "src"],
        description="Directories, relative to the root, searched for packages",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Glob patterns for reference paths to drop",
    )
    respect_gitignore: bool = Field(
        default=True,
        description="Drop references in files ignored by .gitignore",
    )
    nested_gitignore: bool = Field(
        default=False,
        description=(
            "Enable nested .gitignore composition (default: false for root-only)"
        ),
    )
    format: OutputFormat = Field(default="print", description="Output format")
    style: str = Field(
        default="github-dark",
        description="Pygments style for printed output ('none' disables color)",
    )

    @field_validator("server_command")
    @classmethod
    def validate_server_command(cls, v: list[str]) -> list[str]:
        if not v or not v[0]:
            msg = "server_command must name an executable"
            raise ValueError(msg)
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            msg = "request_timeout must be positive or null"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Raised when config file exists but cannot be parsed."""


def load_config(root: Path) -> CallmapConfig:
    """Load configuration from callmap.toml if it exists."""
    config_path = Path(root) / CONFIG_FILENAME

    if not config_path.is_file():
        return CallmapConfig()

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {config_path}: {e}"
        raise ConfigError(msg) from e
    except OSError as e:
        msg = f"Cannot read {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return CallmapConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e


__all__ = ["CONFIG_FILENAME", "CallmapConfig", "ConfigError", "OutputFormat", "load_config"]
