"""Configuration tree helpers.

Every walk dispatches over the closed set of tree variants (object, list,
scalar). Anything else is rejected instead of being duck-typed through.
Inputs are never mutated; rewriting helpers return new trees.
"""

import logging
from collections.abc import Callable, Iterator, Sequence
from typing import TYPE_CHECKING

from config_templates.interfaces.template import (
    ConfigurationTree,
    ConflictingDefinitionError,
    InvalidPathError,
    UndeclaredVariableError,
    UnsupportedValueError,
    UnusedVariableError,
)
from config_templates.strategies.template_engine.parser import (
    Placeholder,
    extract_placeholders,
    merge_placeholder,
)

if TYPE_CHECKING:
    from config_templates.strategies.template_engine.models import VariableDefinition

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

PathSegment = str | int
Path = tuple[PathSegment, ...]


# =============================================================================
# Paths
# =============================================================================


def parse_path(path: str | Sequence[PathSegment]) -> Path:
    """Normalize a path to a tuple of keys and indices.

    String paths use JSON Pointer syntax (RFC 6901): ``""`` is the root,
    ``/a/0/b`` addresses ``tree["a"][0]["b"]``, ``~1`` escapes ``/`` and
    ``~0`` escapes ``~``. Numeric segments stay strings here and are
    interpreted as indices only when they meet a list.

    Raises:
        InvalidPathError: If a string path does not start with ``/``.
    """
    if not isinstance(path, str):
        return tuple(path)
    if path == "":
        return ()
    if not path.startswith("/"):
        raise InvalidPathError(path, "JSON Pointer must start with '/'")
    return tuple(
        segment.replace("~1", "/").replace("~0", "~") for segment in path[1:].split("/")
    )


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path as a JSON Pointer."""
    return "".join(
        "/" + str(segment).replace("~", "~0").replace("/", "~1") for segment in path
    )


def _list_index(node: list, segment: PathSegment, path: Sequence[PathSegment]) -> int:
    if isinstance(segment, bool):
        raise InvalidPathError(format_path(path), "list index must be an integer")
    if isinstance(segment, str):
        if not segment.isdigit() or (len(segment) > 1 and segment.startswith("0")):
            raise InvalidPathError(format_path(path), f"'{segment}' is not a list index")
        segment = int(segment)
    if not 0 <= segment < len(node):
        raise InvalidPathError(format_path(path), f"index {segment} out of range")
    return segment


def get_at_path(tree: ConfigurationTree, path: Sequence[PathSegment]) -> ConfigurationTree:
    """Read the node at ``path``.

    Raises:
        InvalidPathError: If the path does not exist.
    """
    node = tree
    for depth, segment in enumerate(path):
        walked = path[: depth + 1]
        match node:
            case dict():
                key = str(segment)
                if key not in node:
                    raise InvalidPathError(format_path(walked), "no such key")
                node = node[key]
            case list():
                node = node[_list_index(node, segment, walked)]
            case _:
                raise InvalidPathError(format_path(walked), "cannot descend into a scalar")
    return node


def replace_at_path(
    tree: ConfigurationTree, path: Sequence[PathSegment], value: ConfigurationTree
) -> ConfigurationTree:
    """Return a copy of ``tree`` with the node at ``path`` replaced.

    Only the containers along the path are copied; untouched branches
    are shared with the input.

    Raises:
        InvalidPathError: If the path does not exist.
    """
    return _replace(tree, tuple(path), 0, value)


def _replace(
    node: ConfigurationTree, path: Path, depth: int, value: ConfigurationTree
) -> ConfigurationTree:
    if depth == len(path):
        return value

    segment = path[depth]
    walked = path[: depth + 1]
    match node:
        case dict():
            key = str(segment)
            if key not in node:
                raise InvalidPathError(format_path(walked), "no such key")
            updated = dict(node)
            updated[key] = _replace(node[key], path, depth + 1, value)
            return updated
        case list():
            index = _list_index(node, segment, walked)
            updated_list = list(node)
            updated_list[index] = _replace(node[index], path, depth + 1, value)
            return updated_list
        case _:
            raise InvalidPathError(format_path(walked), "cannot descend into a scalar")


# =============================================================================
# Walking
# =============================================================================


def _check_depth(path: Path, max_depth: int) -> None:
    if len(path) > max_depth:
        raise UnsupportedValueError(format_path(path), f"tree deeper than {max_depth} levels")


def iter_string_leaves(
    tree: ConfigurationTree, max_depth: int = DEFAULT_MAX_DEPTH
) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, text)`` for every string leaf, depth-first in order.

    Raises:
        UnsupportedValueError: On a node outside the tree variants or a
            tree deeper than ``max_depth``.
    """
    stack: list[tuple[Path, ConfigurationTree]] = [((), tree)]
    while stack:
        path, node = stack.pop()
        _check_depth(path, max_depth)
        match node:
            case dict():
                for key in reversed(list(node)):
                    if not isinstance(key, str):
                        raise UnsupportedValueError(format_path(path), "object keys must be strings")
                    stack.append(((*path, key), node[key]))
            case list():
                for index in range(len(node) - 1, -1, -1):
                    stack.append(((*path, index), node[index]))
            case str():
                yield path, node
            case bool() | int() | float() | None:
                continue
            case _:
                raise UnsupportedValueError(format_path(path), f"type {type(node).__name__}")


def map_string_leaves(
    tree: ConfigurationTree,
    func: Callable[[Path, str], str],
    max_depth: int = DEFAULT_MAX_DEPTH,
    _path: Path = (),
) -> ConfigurationTree:
    """Build a new tree with ``func`` applied to every string leaf.

    Raises:
        UnsupportedValueError: As for :func:`iter_string_leaves`.
    """
    _check_depth(_path, max_depth)
    match tree:
        case dict():
            result: dict[str, ConfigurationTree] = {}
            for key, child in tree.items():
                if not isinstance(key, str):
                    raise UnsupportedValueError(format_path(_path), "object keys must be strings")
                result[key] = map_string_leaves(child, func, max_depth, (*_path, key))
            return result
        case list():
            return [
                map_string_leaves(child, func, max_depth, (*_path, index))
                for index, child in enumerate(tree)
            ]
        case str():
            return func(_path, tree)
        case bool() | int() | float() | None:
            return tree
        case _:
            raise UnsupportedValueError(format_path(_path), f"type {type(tree).__name__}")


# =============================================================================
# Template-wide checks
# =============================================================================


def extract_tree_placeholders(
    tree: ConfigurationTree, max_depth: int = DEFAULT_MAX_DEPTH
) -> list[Placeholder]:
    """Extract placeholders from every string leaf of a tree.

    Names come back in first-occurrence order of a depth-first walk.

    Raises:
        ParseError: On malformed syntax in any leaf.
        ConflictingDefinitionError: If a name is used with differing
            defaults or optional flags anywhere in the tree.
    """
    seen: dict[str, Placeholder] = {}
    for _, text in iter_string_leaves(tree, max_depth):
        for placeholder in extract_placeholders(text):
            merge_placeholder(seen, placeholder)
    return list(seen.values())


def validate_template(
    tree: ConfigurationTree,
    definitions: Sequence["VariableDefinition"],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[Placeholder]:
    """Check that a template's placeholders match its variable definitions.

    Every placeholder must name a definition and use the definition's
    form (required, default or optional), and every definition must be
    used at least once.

    Returns:
        The placeholders found in the tree.

    Raises:
        ParseError: On malformed syntax.
        ConflictingDefinitionError: On conflicting placeholder forms, or a
            placeholder whose form disagrees with its definition.
        UndeclaredVariableError: If a placeholder has no definition.
        UnusedVariableError: If a defined name never appears.
    """
    by_name: dict[str, "VariableDefinition"] = {}
    for definition in definitions:
        if definition.name in by_name:
            raise ConflictingDefinitionError(definition.name, "defined more than once")
        by_name[definition.name] = definition

    placeholders = extract_tree_placeholders(tree, max_depth)

    for placeholder in placeholders:
        definition = by_name.get(placeholder.name)
        if definition is None:
            raise UndeclaredVariableError(placeholder.name)
        expected = Placeholder(
            name=definition.name,
            default=definition.default_value,
            optional=not definition.required and definition.default_value is None,
        )
        if placeholder != expected:
            raise ConflictingDefinitionError(
                placeholder.name,
                f"placeholder is {placeholder.describe()} but the definition "
                f"is {expected.describe()}",
            )

    used = {p.name for p in placeholders}
    for definition in definitions:
        if definition.name not in used:
            raise UnusedVariableError(definition.name)

    logger.debug(f"Template validated: {len(placeholders)} placeholders")
    return placeholders
