"""Template engine domain models.

Pydantic models for variable definitions, declared positions and the
results of abstraction and resolution. The external (persisted) shape
uses camelCase field names; Python code uses snake_case.
"""

import enum
import re
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from config_templates.interfaces.template import (
    MissingRequiredVariableError,
    VariableProblem,
)
from config_templates.strategies.template_engine.parser import NAME_PATTERN, render_placeholder


class VariableKind(str, enum.Enum):
    """Kind of value a variable carries.

    SECRET values are write-only: they are never kept in a template,
    an error message or a log line.
    """

    SECRET = "secret"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"


class _ExternalModel(BaseModel):
    """Frozen model that reads and writes the camelCase external shape."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    def to_external(self) -> dict[str, Any]:
        """Dump using external field names, leaving out unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class VariableDocumentation(_ExternalModel):
    """Human guidance for filling in a variable."""

    description: str | None = Field(default=None, description="What the variable is for")
    how_to_obtain: str | None = Field(default=None, description="Where to get a value")
    setup_guide: str | None = Field(default=None, description="Setup instructions or a link")


class VariableDefinition(_ExternalModel):
    """Typed metadata for one variable a template depends on."""

    name: str = Field(description="Variable name, unique within a template")
    kind: VariableKind = Field(default=VariableKind.STRING)
    required: bool = Field(default=True)
    default_value: str | None = Field(default=None)
    validation_pattern: str | None = Field(
        default=None, description="Regular expression the whole value must match"
    )
    allowed_values: tuple[str, ...] | None = Field(
        default=None, description="Permitted values for enum variables"
    )
    documentation: VariableDocumentation | None = Field(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Ensure the name can be written as a placeholder."""
        if not NAME_PATTERN.fullmatch(v):
            raise ValueError(f"Invalid variable name '{v}'. Must match [A-Za-z_][A-Za-z0-9_]*")
        return v

    @field_validator("validation_pattern")
    @classmethod
    def validate_pattern(cls, v: str | None) -> str | None:
        """Ensure the pattern compiles."""
        if v is not None:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid validation pattern: {e}") from e
        return v

    @field_validator("allowed_values")
    @classmethod
    def dedupe_allowed_values(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        """Drop duplicates, keeping first-seen order."""
        if v is None:
            return v
        return tuple(dict.fromkeys(v))

    @model_validator(mode="after")
    def check_consistency(self) -> "VariableDefinition":
        """Cross-field rules between required, default and kind."""
        if self.required and self.default_value is not None:
            raise ValueError(f"Required variable '{self.name}' cannot have a default value")
        if self.kind is VariableKind.ENUM:
            if not self.allowed_values:
                raise ValueError(f"Enum variable '{self.name}' needs allowed values")
            if self.default_value is not None and self.default_value not in self.allowed_values:
                raise ValueError(f"Default of enum variable '{self.name}' is not an allowed value")
        elif self.allowed_values is not None:
            raise ValueError(f"Allowed values are only valid for enum variables ('{self.name}')")
        if self.default_value is not None:
            # Raises ValueError when the default cannot be embedded.
            render_placeholder(self.name, default=self.default_value)
        return self

    @property
    def is_secret(self) -> bool:
        return self.kind is VariableKind.SECRET

    def placeholder_token(self) -> str:
        """Canonical placeholder for this definition.

        ``{{NAME}}`` when required, ``{{NAME|DEFAULT}}`` when a default is
        set, ``{{NAME?}}`` otherwise.
        """
        return render_placeholder(
            self.name,
            default=self.default_value,
            optional=not self.required and self.default_value is None,
        )

    def constraints(self) -> tuple[Any, ...]:
        """Fields that must agree when a name is declared more than once."""
        return (
            self.kind,
            self.required,
            self.default_value,
            self.validation_pattern,
            self.allowed_values,
        )


class VariableDeclaration(BaseModel):
    """A declared variable-bearing position in a concrete configuration.

    Attributes:
        path: JSON Pointer (``/endpoints/0/headers/Authorization``) or a
            sequence of object keys and list indices.
        definition: The variable embedded at this position.
        placeholder: Text written in place of the concrete value. Defaults
            to the definition's canonical token.
    """

    model_config = ConfigDict(frozen=True)

    path: str | tuple[str | int, ...]
    definition: VariableDefinition
    placeholder: str | None = None

    @property
    def placeholder_text(self) -> str:
        if self.placeholder is not None:
            return self.placeholder
        return self.definition.placeholder_token()


class AbstractionResult(BaseModel):
    """A sanitized template plus the variables it depends on.

    The model is frozen, but ``template`` is a plain JSON tree of dicts and
    lists so it serializes as-is. It is built fresh for every abstraction
    and shares no containers with the input or with other results, so
    changing it in place affects only this result.
    """

    model_config = ConfigDict(frozen=True)

    template: Any = Field(description="Configuration tree with placeholders in string leaves")
    variable_definitions: tuple[VariableDefinition, ...]

    def to_external(self) -> dict[str, Any]:
        """Shape handed to the persistence collaborator."""
        return {
            "template": self.template,
            "variables": [d.to_external() for d in self.variable_definitions],
        }


class ResolutionResult(BaseModel):
    """A concrete configuration produced from a template.

    As with ``AbstractionResult.template``, ``configuration`` is a plain
    tree built fresh for every resolution and owned by the caller.
    """

    model_config = ConfigDict(frozen=True)

    configuration: Any = Field(description="Concrete configuration tree")
    applied_defaults: frozenset[str] = Field(default_factory=frozenset)


# =============================================================================
# Client-facing problem payloads
# =============================================================================


class VariableProblemPayload(BaseModel):
    """One problem with a caller-supplied mapping."""

    variable: str
    code: str
    message: str


class MissingVariablesResponse(BaseModel):
    """Every unmet or invalid variable of a failed resolution."""

    missing: list[VariableProblemPayload] = Field(default_factory=list)
    invalid: list[VariableProblemPayload] = Field(default_factory=list)

    @classmethod
    def from_problems(cls, problems: Sequence[VariableProblem]) -> "MissingVariablesResponse":
        response = cls()
        for problem in problems:
            payload = VariableProblemPayload(
                variable=problem.variable_name or "",
                code=problem.code,
                message=problem.message,
            )
            if isinstance(problem, MissingRequiredVariableError):
                response.missing.append(payload)
            else:
                response.invalid.append(payload)
        return response
