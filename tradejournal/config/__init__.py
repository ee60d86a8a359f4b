"""Configuration: settings loading and logging setup."""

from .logging import configure_logging, log_with_context
from .settings import JournalSettings, load_settings

__all__ = ["JournalSettings", "load_settings", "configure_logging", "log_with_context"]
