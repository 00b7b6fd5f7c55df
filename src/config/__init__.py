"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults.
Supports mock mode for local development.
"""

from .settings import Settings, StartupConfigurationError, get_settings

__all__ = ["Settings", "StartupConfigurationError", "get_settings"]
