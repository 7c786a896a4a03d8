"""Abstract base classes and errors for the template engine."""

from config_templates.interfaces.template import (
    BaseTemplateAbstractor,
    BaseTemplateResolver,
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

__all__ = [
    "BaseTemplateAbstractor",
    "BaseTemplateResolver",
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
