"""Core configuration and factory components."""

from config_templates.core.config import Settings, get_settings
from config_templates.core.factory import ComponentFactory, get_factory

__all__ = [
    "Settings",
    "get_settings",
    "ComponentFactory",
    "get_factory",
]
