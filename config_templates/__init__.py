"""Variable abstraction and template resolution for API configurations.

Publishing a configuration as a template replaces environment-specific and
secret values with named placeholders; cloning resolves those placeholders
again from a per-owner value mapping.

Example:
    ```python
    from config_templates import abstract_variables, resolve_variables

    published = abstract_variables(config, declarations)
    clone = resolve_variables(
        published.template, published.variable_definitions, {"API_KEY": "..."}
    )
    ```
"""

from collections.abc import Iterable, Mapping
from typing import Any

from config_templates.core.factory import get_factory
from config_templates.interfaces.template import (
    ConfigurationTree,
    ConflictingDefinitionError,
    InvalidPathError,
    MissingRequiredVariableError,
    ParseError,
    PatternValidationError,
    SecretLeakError,
    TemplateEngineError,
    TemplateStructureError,
    TypeMismatchError,
    UndeclaredVariableError,
    UnsupportedValueError,
    UnusedVariableError,
    VariableProblem,
    VariableResolutionError,
)
from config_templates.strategies.template_engine import (
    AbstractionResult,
    MissingVariablesResponse,
    Placeholder,
    ResolutionResult,
    VariableDeclaration,
    VariableDefinition,
    VariableDocumentation,
    VariableKind,
    extract_placeholders,
    process_template,
)
from config_templates.strategies.template_engine.tree import extract_tree_placeholders

__version__ = "0.1.0"


def _as_definitions(
    definitions: Iterable[VariableDefinition | Mapping[str, Any]],
) -> list[VariableDefinition]:
    return [
        d if isinstance(d, VariableDefinition) else VariableDefinition.model_validate(d)
        for d in definitions
    ]


def abstract_variables(
    concrete_tree: ConfigurationTree,
    declarations: Iterable[VariableDeclaration | Mapping[str, Any]],
) -> AbstractionResult:
    """Abstract declared positions of a configuration into a template."""
    parsed = [
        d if isinstance(d, VariableDeclaration) else VariableDeclaration.model_validate(d)
        for d in declarations
    ]
    return get_factory().get_abstractor().abstract_variables(concrete_tree, parsed)


def validate_variable_mapping(
    definitions: Iterable[VariableDefinition | Mapping[str, Any]],
    mapping: Mapping[str, Any],
) -> list[VariableProblem]:
    """Return every problem with a mapping for the given definitions."""
    return get_factory().get_resolver().validate_variable_mapping(
        _as_definitions(definitions), mapping
    )


def resolve_variables(
    template: ConfigurationTree,
    definitions: Iterable[VariableDefinition | Mapping[str, Any]],
    mapping: Mapping[str, Any],
) -> ResolutionResult:
    """Resolve a template into a concrete configuration."""
    return get_factory().get_resolver().resolve_variables(
        template, _as_definitions(definitions), mapping
    )


__all__ = [
    "abstract_variables",
    "validate_variable_mapping",
    "resolve_variables",
    "extract_placeholders",
    "extract_tree_placeholders",
    "process_template",
    "AbstractionResult",
    "ResolutionResult",
    "VariableDeclaration",
    "VariableDefinition",
    "VariableDocumentation",
    "VariableKind",
    "Placeholder",
    "MissingVariablesResponse",
    "ConfigurationTree",
    "TemplateEngineError",
    "TemplateStructureError",
    "ParseError",
    "ConflictingDefinitionError",
    "UndeclaredVariableError",
    "UnusedVariableError",
    "InvalidPathError",
    "UnsupportedValueError",
    "SecretLeakError",
    "VariableProblem",
    "MissingRequiredVariableError",
    "PatternValidationError",
    "TypeMismatchError",
    "VariableResolutionError",
]
