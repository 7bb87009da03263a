"""Core app configuration."""

from app.core.config import get_settings, settings

__all__ = ["get_settings", "settings"]
