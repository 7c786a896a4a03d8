"""Template abstractor strategy.

Turns a concrete configuration into a shareable template: every declared
position is replaced with placeholder text, the variable definitions are
collated, and the finished template is checked against them. Concrete
values of secret variables never reach the output, a log line or an error.
"""

import json
import logging
from collections.abc import Sequence

from config_templates.interfaces.template import (
    BaseTemplateAbstractor,
    ConfigurationTree,
    ConflictingDefinitionError,
    InvalidPathError,
    SecretLeakError,
)
from config_templates.strategies.template_engine.models import (
    AbstractionResult,
    VariableDeclaration,
    VariableDefinition,
)
from config_templates.strategies.template_engine.tree import (
    DEFAULT_MAX_DEPTH,
    Path,
    format_path,
    get_at_path,
    map_string_leaves,
    parse_path,
    replace_at_path,
    validate_template,
)

logger = logging.getLogger(__name__)


class TemplateAbstractor(BaseTemplateAbstractor):
    """Replaces declared leaves of a configuration with placeholders.

    Which leaves are variable-bearing is decided by the caller; the
    abstractor never guesses from the values themselves.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        """Initialize the abstractor.

        Args:
            max_depth: Deepest tree nesting accepted.
        """
        self._max_depth = max_depth

    def abstract_variables(
        self,
        concrete_tree: ConfigurationTree,
        declarations: Sequence[VariableDeclaration],
    ) -> AbstractionResult:
        """Abstract declared positions into placeholders.

        Args:
            concrete_tree: The configuration to abstract. Never mutated.
            declarations: One entry per variable-bearing leaf.

        Returns:
            AbstractionResult with the template and one definition per
            variable name, in first declaration order.

        Raises:
            InvalidPathError: If a path does not address a scalar leaf.
            ConflictingDefinitionError: If two declarations share a path, a
                name is redeclared with other constraints, or its placeholder
                text disagrees with it.
            ParseError: If placeholder text is malformed.
            UndeclaredVariableError: If the template embeds a name with no
                declaration.
            UnusedVariableError: If a declared name is never embedded.
            SecretLeakError: If a secret value would remain in the template.
        """
        logger.info(f"Starting abstraction: {len(declarations)} declared positions")

        # Rebuilding the tree checks its shape and detaches it from the input.
        template = map_string_leaves(concrete_tree, lambda _, text: text, self._max_depth)

        definitions: dict[str, VariableDefinition] = {}
        seen_paths: dict[tuple[str, ...], str] = {}
        secret_values: dict[str, list[str]] = {}

        for declaration in declarations:
            definition = declaration.definition
            path = parse_path(declaration.path)
            pointer = format_path(path)

            position = tuple(str(segment) for segment in path)
            if position in seen_paths:
                raise ConflictingDefinitionError(
                    definition.name,
                    f"position '{pointer}' is already declared for variable "
                    f"'{seen_paths[position]}'",
                )
            seen_paths[position] = definition.name

            self._collate(definitions, definition)
            placeholder_text = declaration.placeholder_text

            current = self._read_leaf(template, path, definition.name)
            if definition.is_secret and current is not None and current != "":
                secret_values.setdefault(definition.name, []).append(_as_text(current))

            template = replace_at_path(template, path, placeholder_text)
            logger.debug(f"Abstracted {pointer} -> variable '{definition.name}'")

        validate_template(template, list(definitions.values()), self._max_depth)
        self._assert_no_secret_values(template, secret_values)

        logger.info(
            f"Abstraction complete: {len(definitions)} variables "
            f"({sum(d.is_secret for d in definitions.values())} secret)"
        )
        return AbstractionResult(
            template=template,
            variable_definitions=tuple(definitions.values()),
        )

    def _collate(
        self, definitions: dict[str, VariableDefinition], definition: VariableDefinition
    ) -> None:
        """Add a definition, requiring redeclarations to match."""
        previous = definitions.get(definition.name)
        if previous is None:
            definitions[definition.name] = definition
            return
        if previous.constraints() != definition.constraints():
            differing = [
                field
                for field, old, new in zip(
                    ("kind", "required", "default", "validation pattern", "allowed values"),
                    previous.constraints(),
                    definition.constraints(),
                )
                if old != new
            ]
            raise ConflictingDefinitionError(
                definition.name,
                f"redeclared with a different {', '.join(differing)}",
            )

    def _read_leaf(self, tree: ConfigurationTree, path: Path, name: str) -> ConfigurationTree:
        try:
            node = get_at_path(tree, path)
        except InvalidPathError as e:
            raise InvalidPathError(e.path, e.reason, variable_name=name) from None
        if isinstance(node, dict | list):
            raise InvalidPathError(
                format_path(path), "position is not a scalar leaf", variable_name=name
            )
        return node

    def _assert_no_secret_values(
        self, template: ConfigurationTree, secret_values: dict[str, list[str]]
    ) -> None:
        if not secret_values:
            return
        serialized = json.dumps(template, ensure_ascii=False)
        for name, values in secret_values.items():
            for value in values:
                if value in serialized or json.dumps(value, ensure_ascii=False)[1:-1] in serialized:
                    raise SecretLeakError(name)


def _as_text(value: ConfigurationTree) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case _:
            return str(value)
