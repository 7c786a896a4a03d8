"""Template abstraction and resolution interfaces.

Defines the configuration tree type, the error hierarchy and the abstract
base classes for the variable abstraction / template resolution engine.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from config_templates.strategies.template_engine.models import (
        AbstractionResult,
        ResolutionResult,
        VariableDeclaration,
        VariableDefinition,
    )

# A JSON-like configuration: objects, lists and scalar leaves.
ConfigurationTree: TypeAlias = (
    dict[str, "ConfigurationTree"] | list["ConfigurationTree"] | str | int | float | bool | None
)


# =============================================================================
# Errors
# =============================================================================


class TemplateEngineError(Exception):
    """Base exception for the template engine.

    Attributes:
        code: Stable machine-readable error code.
        variable_name: The variable the error refers to, if any.
    """

    code = "template_error"

    def __init__(self, message: str, variable_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.variable_name = variable_name


class TemplateStructureError(TemplateEngineError):
    """Structural problem in a template. Blocks publication."""

    code = "structure_error"


class ParseError(TemplateStructureError):
    """Malformed placeholder syntax (unterminated, nested or invalid body)."""

    code = "parse_error"

    def __init__(self, message: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.offset = offset


class ConflictingDefinitionError(TemplateStructureError):
    """The same variable is described in two incompatible ways."""

    code = "conflicting_definition"

    def __init__(self, variable_name: str, reason: str) -> None:
        super().__init__(
            f"Conflicting definitions for variable '{variable_name}': {reason}",
            variable_name=variable_name,
        )
        self.reason = reason


class UndeclaredVariableError(TemplateStructureError):
    """A placeholder references a variable with no definition."""

    code = "undeclared_variable"

    def __init__(self, variable_name: str) -> None:
        super().__init__(
            f"Placeholder '{variable_name}' has no matching variable definition",
            variable_name=variable_name,
        )


class UnusedVariableError(TemplateStructureError):
    """A defined variable is never embedded in the template."""

    code = "unused_variable"

    def __init__(self, variable_name: str) -> None:
        super().__init__(
            f"Variable '{variable_name}' is defined but never used in the template",
            variable_name=variable_name,
        )


class InvalidPathError(TemplateStructureError):
    """A declared position does not address a scalar leaf of the tree."""

    code = "invalid_path"

    def __init__(self, path: str, reason: str, variable_name: str | None = None) -> None:
        super().__init__(f"Invalid path '{path}': {reason}", variable_name=variable_name)
        self.path = path
        self.reason = reason


class UnsupportedValueError(TemplateStructureError):
    """A tree node is not one of the object/list/scalar variants."""

    code = "unsupported_value"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Unsupported value at '{path}': {reason}")
        self.path = path


class SecretLeakError(TemplateStructureError):
    """A secret's concrete value would survive into the template."""

    code = "secret_leak"

    def __init__(self, variable_name: str) -> None:
        super().__init__(
            f"Concrete value of secret variable '{variable_name}' would remain in the template",
            variable_name=variable_name,
        )


class VariableProblem(TemplateEngineError):
    """A per-variable problem found while validating a mapping."""

    code = "variable_problem"

    def __init__(self, variable_name: str, message: str) -> None:
        super().__init__(message, variable_name=variable_name)


class MissingRequiredVariableError(VariableProblem):
    """A required variable has no value in the mapping."""

    code = "missing_required"

    def __init__(self, variable_name: str) -> None:
        super().__init__(variable_name, f"Required variable '{variable_name}' has no value")


class PatternValidationError(VariableProblem):
    """A mapped value does not fully match the declared pattern."""

    code = "pattern_mismatch"

    def __init__(self, variable_name: str, pattern: str) -> None:
        super().__init__(
            variable_name,
            f"Value for '{variable_name}' does not match pattern {pattern!r}",
        )
        self.pattern = pattern


class TypeMismatchError(VariableProblem):
    """A mapped value is not acceptable for the variable's kind."""

    code = "type_mismatch"

    def __init__(self, variable_name: str, expected: str) -> None:
        super().__init__(
            variable_name,
            f"Value for '{variable_name}' is not valid: expected {expected}",
        )
        self.expected = expected


class VariableResolutionError(TemplateEngineError):
    """Aggregate of every problem that blocks a resolution."""

    code = "resolution_failed"

    def __init__(self, problems: Sequence[VariableProblem]) -> None:
        self.problems = list(problems)
        names = ", ".join(p.variable_name or "?" for p in self.problems)
        super().__init__(f"Cannot resolve template: {len(self.problems)} problem(s) with {names}")

    @property
    def missing(self) -> list[str]:
        """Names of required variables absent from the mapping."""
        return [
            p.variable_name
            for p in self.problems
            if isinstance(p, MissingRequiredVariableError) and p.variable_name
        ]

    def to_response(self) -> Any:
        """Build the structured payload handed to the API layer."""
        from config_templates.strategies.template_engine.models import MissingVariablesResponse

        return MissingVariablesResponse.from_problems(self.problems)


# =============================================================================
# Strategy interfaces
# =============================================================================


class BaseTemplateAbstractor(ABC):
    """Abstract base class for abstraction strategies.

    Turns a concrete configuration into a sanitized template plus the
    variable definitions it depends on.
    """

    @abstractmethod
    def abstract_variables(
        self,
        concrete_tree: ConfigurationTree,
        declarations: Sequence["VariableDeclaration"],
    ) -> "AbstractionResult":
        """Replace declared leaves with placeholders.

        Args:
            concrete_tree: The configuration to abstract. Never mutated.
            declarations: Declared variable-bearing positions.

        Returns:
            AbstractionResult with the template and collated definitions.

        Raises:
            TemplateStructureError: If the result would be an invalid template.
        """


class BaseTemplateResolver(ABC):
    """Abstract base class for resolution strategies.

    Validates a variable mapping and substitutes it into a template.
    """

    @abstractmethod
    def validate_variable_mapping(
        self,
        definitions: Sequence["VariableDefinition"],
        mapping: Mapping[str, Any],
    ) -> list[VariableProblem]:
        """Return every problem with the mapping, in definition order."""

    @abstractmethod
    def resolve_variables(
        self,
        template: ConfigurationTree,
        definitions: Sequence["VariableDefinition"],
        mapping: Mapping[str, Any],
    ) -> "ResolutionResult":
        """Substitute the mapping into the template.

        Raises:
            TemplateStructureError: If the template itself is invalid.
            VariableResolutionError: If the mapping has any problem.
        """
