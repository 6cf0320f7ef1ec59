"""Core utilities for configuration, logging, and dependency wiring."""

from .config import AppSettings, FollowUpSettings, LlmSettings, load_app_settings
from .container import ServiceContainer
from .logging import configure_logging

__all__ = [
    "AppSettings",
    "FollowUpSettings",
    "LlmSettings",
    "ServiceContainer",
    "configure_logging",
    "load_app_settings",
]
