"""Configuration management for brailleview.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from brailleview.config.settings import RenderConfig, Settings, load_settings

__all__ = ["RenderConfig", "Settings", "load_settings"]
