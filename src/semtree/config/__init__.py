"""Configuration module for semtree."""

from semtree.config.logging import configure_logging, get_logger
from semtree.config.settings import Settings, get_settings

__all__ = ["Settings", "configure_logging", "get_logger", "get_settings"]
