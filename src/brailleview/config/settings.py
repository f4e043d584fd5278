"""Configuration management for brailleview.

Loads settings from a YAML configuration file with environment variable
overrides. Command-line flags are applied on top by the CLI.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

from brailleview.domain.models import DitherMethod

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/brailleview.yaml")


class RenderConfig(BaseModel):
    """Options consumed by the classifier, reducers and glyph encoder.

    Immutable for the duration of an encode or playback session.
    """

    model_config = ConfigDict(frozen=True)

    luminosity: float = Field(
        default=0.5, ge=0.0, le=1.0,
        description="Share of the luminance range treated as dark enough to fill",
    )
    inverted: bool = Field(default=False, description="Swap filled and empty dots")
    dither: DitherMethod = Field(default=DitherMethod.FLOYD_STEINBERG)
    invert_transparent: bool = Field(
        default=False,
        description="When inverted, raise dots for transparent pixels too",
    )

    def merged(self, **overrides: Any) -> RenderConfig:
        """Return a copy taking each field from ``overrides`` when it is not None.

        Values are validated, so an out-of-range override raises
        ``pydantic.ValidationError`` before any output is produced.
        """
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return RenderConfig(**data)


class AdjustConfig(BaseModel):
    gamma: float = Field(default=0.0, gt=-1.0, description="<0 darkens, >0 lightens")
    brightness: float = Field(default=0.0, ge=-100.0, le=100.0)
    contrast: float = Field(default=0.0, ge=-100.0, le=100.0)
    sharpen: float = Field(default=0.0, ge=0.0)
    mirror: bool = Field(default=False)
    invert: bool = Field(default=False, description="Invert colours before reduction")


class TerminalConfig(BaseModel):
    max_width: int = Field(default=0, ge=0, description="Columns; 0 detects the terminal size")
    max_height: int = Field(default=0, ge=0, description="Rows; 0 detects the terminal size")


class StreamConfig(BaseModel):
    fps: int = Field(default=-1, description="Frame rate for MJPEG streams; <= 0 means unpaced")
    read_size: int = Field(default=4096, gt=0, description="Bytes read per stream read call")


class LoggingConfig(BaseModel):
    level: str = Field(default="WARNING")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for brailleview.

    Loads from a YAML file and supports environment variable overrides
    such as ``BRAILLEVIEW_RENDER__LUMINOSITY=0.4``.
    """

    model_config = {
        "env_prefix": "BRAILLEVIEW_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    render: RenderConfig = Field(default_factory=RenderConfig)
    adjust: AdjustConfig = Field(default_factory=AdjustConfig)
    terminal: TerminalConfig = Field(default_factory=TerminalConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats the YAML data passed in as init kwargs.
        return env_settings, init_settings, file_secret_settings


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + environment variables.

    Priority: env vars > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    elif config_path is not None:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
