"""Configuration module for the BuySoft backend."""

from buysoft.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
