"""Configuration module for SingleDetect."""

from singledetect.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
