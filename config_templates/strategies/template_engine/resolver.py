"""Template resolver strategy.

Validates a caller-supplied variable mapping against a template's variable
definitions and substitutes it into the template, producing a concrete
configuration. Validation is exhaustive so callers can report every
problem at once; resolution is atomic and deterministic.
"""

import logging
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from config_templates.interfaces.template import (
    BaseTemplateResolver,
    ConfigurationTree,
    MissingRequiredVariableError,
    PatternValidationError,
    TypeMismatchError,
    VariableProblem,
    VariableResolutionError,
)
from config_templates.strategies.template_engine.models import (
    ResolutionResult,
    VariableDefinition,
    VariableKind,
)
from config_templates.strategies.template_engine.parser import process_template_tracked
from config_templates.strategies.template_engine.tree import (
    DEFAULT_MAX_DEPTH,
    map_string_leaves,
    validate_template,
)

logger = logging.getLogger(__name__)

BOOLEAN_VALUES = frozenset({"true", "false", "1", "0", "yes", "no"})


class TemplateResolver(BaseTemplateResolver):
    """Resolves templates into concrete configurations.

    Example:
        ```python
        resolver = TemplateResolver()
        result = resolver.resolve_variables(
            {"headers": {"Authorization": "Bearer {{API_KEY}}"}},
            [VariableDefinition(name="API_KEY", kind="secret")],
            {"API_KEY": "tvly-abc123"},
        )
        result.configuration  # {"headers": {"Authorization": "Bearer tvly-abc123"}}
        ```
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = max_depth

    def validate_variable_mapping(
        self,
        definitions: Sequence[VariableDefinition],
        mapping: Mapping[str, Any],
    ) -> list[VariableProblem]:
        """Check a mapping against every definition.

        Never stops at the first problem. Problem messages name the
        variable and never include the supplied value.

        Args:
            definitions: The template's variable definitions.
            mapping: Variable name to concrete value.

        Returns:
            Problems in definition order; empty when the mapping is valid.
        """
        problems: list[VariableProblem] = []

        for definition in definitions:
            if definition.name not in mapping:
                if definition.required:
                    problems.append(MissingRequiredVariableError(definition.name))
                continue
            problems.extend(self._check_value(definition, mapping[definition.name]))

        unknown = [name for name in mapping if name not in {d.name for d in definitions}]
        if unknown:
            logger.debug(f"Ignoring {len(unknown)} unknown variables: {', '.join(sorted(unknown))}")

        if problems:
            logger.info(
                f"Mapping validation found {len(problems)} problems: "
                f"{', '.join(f'{p.variable_name} ({p.code})' for p in problems)}"
            )
        return problems

    def _check_value(self, definition: VariableDefinition, value: Any) -> list[VariableProblem]:
        name = definition.name
        if not isinstance(value, str):
            return [TypeMismatchError(name, "a string value")]

        problems: list[VariableProblem] = []
        if definition.validation_pattern is not None and not re.fullmatch(
            definition.validation_pattern, value
        ):
            problems.append(PatternValidationError(name, definition.validation_pattern))

        match definition.kind:
            case VariableKind.ENUM:
                if value not in (definition.allowed_values or ()):
                    problems.append(
                        TypeMismatchError(
                            name, f"one of {', '.join(definition.allowed_values or ())}"
                        )
                    )
            case VariableKind.NUMBER:
                if not _is_number(value):
                    problems.append(TypeMismatchError(name, "a number"))
            case VariableKind.BOOLEAN:
                if value.strip().lower() not in BOOLEAN_VALUES:
                    problems.append(TypeMismatchError(name, "a boolean (true/false)"))
            case VariableKind.SECRET | VariableKind.STRING:
                pass

        return problems

    def resolve_variables(
        self,
        template: ConfigurationTree,
        definitions: Sequence[VariableDefinition],
        mapping: Mapping[str, Any],
    ) -> ResolutionResult:
        """Resolve a template with a variable mapping.

        Args:
            template: Template tree. Never mutated.
            definitions: The template's variable definitions.
            mapping: Variable name to concrete value.

        Returns:
            ResolutionResult with the new tree and the names that fell back
            to a default or the empty optional value.

        Raises:
            TemplateStructureError: If the template does not match its
                definitions.
            VariableResolutionError: If the mapping has any problem. No
                partial configuration is produced.
        """
        validate_template(template, definitions, self._max_depth)

        problems = self.validate_variable_mapping(definitions, mapping)
        if problems:
            raise VariableResolutionError(problems)

        applied_defaults: set[str] = set()

        def substitute(_path, text: str) -> str:
            rendered, fallbacks = process_template_tracked(text, mapping)
            applied_defaults.update(fallbacks)
            return rendered

        configuration = map_string_leaves(template, substitute, self._max_depth)

        logger.info(
            f"Resolved template: {len(definitions)} variables, "
            f"{len(applied_defaults)} defaults applied"
        )
        return ResolutionResult(
            configuration=configuration,
            applied_defaults=frozenset(applied_defaults),
        )


def _is_number(value: str) -> bool:
    try:
        number = float(value)
    except ValueError:
        return False
    return math.isfinite(number)
