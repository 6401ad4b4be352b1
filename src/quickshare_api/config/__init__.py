"""Configuration for the Quickshare API."""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
