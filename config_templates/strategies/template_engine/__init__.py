"""Template engine strategies.

Implements placeholder parsing, variable abstraction of concrete
configurations and resolution of templates back into configurations.
"""

from config_templates.strategies.template_engine.abstractor import TemplateAbstractor
from config_templates.strategies.template_engine.models import (
    AbstractionResult,
    MissingVariablesResponse,
    ResolutionResult,
    VariableDeclaration,
    VariableDefinition,
    VariableDocumentation,
    VariableKind,
    VariableProblemPayload,
)
from config_templates.strategies.template_engine.parser import (
    Placeholder,
    extract_placeholders,
    parse_template,
    process_template,
    process_template_tracked,
    render_placeholder,
)
from config_templates.strategies.template_engine.resolver import TemplateResolver

__all__ = [
    "TemplateAbstractor",
    "TemplateResolver",
    "AbstractionResult",
    "ResolutionResult",
    "VariableDeclaration",
    "VariableDefinition",
    "VariableDocumentation",
    "VariableKind",
    "VariableProblemPayload",
    "MissingVariablesResponse",
    "Placeholder",
    "extract_placeholders",
    "parse_template",
    "process_template",
    "process_template_tracked",
    "render_placeholder",
]
