"""Concrete strategy implementations."""

from config_templates.strategies.template_engine import (
    TemplateAbstractor,
    TemplateResolver,
)

__all__ = [
    "TemplateAbstractor",
    "TemplateResolver",
]
