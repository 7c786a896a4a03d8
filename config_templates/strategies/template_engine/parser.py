"""Placeholder parser and single-string template engine.

Grammar, applied to one string value:

    {{NAME}}            required variable
    {{NAME|DEFAULT}}    optional, DEFAULT used verbatim when unmapped
    {{NAME?}}           optional, empty string when unmapped

NAME matches ``[A-Za-z_][A-Za-z0-9_]*``. DEFAULT is any text without ``}}``.
Every ``{{`` opens a placeholder; there is no escape form. Placeholders
never nest.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from config_templates.interfaces.template import (
    ConflictingDefinitionError,
    MissingRequiredVariableError,
    ParseError,
)

logger = logging.getLogger(__name__)

OPEN = "{{"
CLOSE = "}}"

NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BODY_PATTERN = re.compile(
    r"(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?:\|(?P<default>.*)|(?P<optional>\?))?",
    re.DOTALL,
)


@dataclass(frozen=True)
class Placeholder:
    """A ``{{...}}`` token naming a variable.

    Attributes:
        name: Variable name.
        default: Literal default used when the variable is unmapped.
        optional: True for the ``{{NAME?}}`` form.
    """

    name: str
    default: str | None = None
    optional: bool = False

    @property
    def is_required(self) -> bool:
        """Whether resolution fails when the variable is unmapped."""
        return self.default is None and not self.optional

    @property
    def token(self) -> str:
        """Canonical text of this placeholder."""
        return render_placeholder(self.name, default=self.default, optional=self.optional)

    def describe(self) -> str:
        """Short form used in conflict messages. Never includes values."""
        if self.default is not None:
            return "with a default"
        if self.optional:
            return "optional"
        return "required"


def render_placeholder(name: str, default: str | None = None, optional: bool = False) -> str:
    """Render a placeholder token.

    Raises:
        ValueError: If the name or default cannot be expressed in the grammar.
    """
    if not NAME_PATTERN.fullmatch(name):
        raise ValueError(f"Invalid variable name: {name!r}")
    if default is not None:
        if CLOSE in default or OPEN in default:
            raise ValueError(f"Default for '{name}' cannot contain '{{{{' or '}}}}'")
        return f"{OPEN}{name}|{default}{CLOSE}"
    if optional:
        return f"{OPEN}{name}?{CLOSE}"
    return f"{OPEN}{name}{CLOSE}"


def parse_template(text: str) -> list[str | Placeholder]:
    """Split a string into literal segments and placeholders.

    Args:
        text: A string value that may embed placeholders.

    Returns:
        Literal strings and Placeholder objects in source order. Adjacent
        literals are merged.

    Raises:
        ParseError: On an unterminated, nested or malformed placeholder.
    """
    segments: list[str | Placeholder] = []
    literal: list[str] = []
    pos = 0

    while True:
        start = text.find(OPEN, pos)
        if start == -1:
            literal.append(text[pos:])
            break

        end = text.find(CLOSE, start + len(OPEN))
        if end == -1:
            raise ParseError(f"Unterminated placeholder starting at offset {start}", offset=start)

        body = text[start + len(OPEN):end]
        if OPEN in body:
            raise ParseError(f"Nested placeholder at offset {start}", offset=start)

        match = _BODY_PATTERN.fullmatch(body)
        if match is None:
            raise ParseError(f"Invalid placeholder at offset {start}", offset=start)

        literal.append(text[pos:start])
        if literal_text := "".join(literal):
            segments.append(literal_text)
        literal = []

        segments.append(
            Placeholder(
                name=match.group("name"),
                default=match.group("default"),
                optional=match.group("optional") is not None,
            )
        )
        pos = end + len(CLOSE)

    if literal_text := "".join(literal):
        segments.append(literal_text)
    return segments


def merge_placeholder(seen: dict[str, Placeholder], placeholder: Placeholder) -> None:
    """Record a placeholder, enforcing that recurrences agree.

    Raises:
        ConflictingDefinitionError: If the name was seen with another form.
    """
    previous = seen.get(placeholder.name)
    if previous is None:
        seen[placeholder.name] = placeholder
        return
    if previous != placeholder:
        if previous.default is not None and placeholder.default is not None:
            reason = "placeholder used with two different defaults"
        else:
            reason = (
                f"placeholder used as {previous.describe()} and as {placeholder.describe()}"
            )
        raise ConflictingDefinitionError(placeholder.name, reason)


def extract_placeholders(text: str) -> list[Placeholder]:
    """Extract placeholders in first-occurrence order, deduplicated by name.

    Raises:
        ParseError: On malformed syntax.
        ConflictingDefinitionError: If a name recurs with a different
            default or optional flag.
    """
    seen: dict[str, Placeholder] = {}
    for segment in parse_template(text):
        if isinstance(segment, Placeholder):
            merge_placeholder(seen, segment)
    return list(seen.values())


def process_template_tracked(
    text: str, mapping: Mapping[str, str]
) -> tuple[str, set[str]]:
    """Substitute values into a string and report fallbacks.

    Substitution is a single pass: values from the mapping are emitted as
    literal text and are never scanned for placeholders.

    Returns:
        The rendered string and the names that used a default or the
        empty optional value.

    Raises:
        ParseError: On malformed syntax.
        MissingRequiredVariableError: If a required name is unmapped.
    """
    parts: list[str] = []
    applied_defaults: set[str] = set()

    for segment in parse_template(text):
        if isinstance(segment, str):
            parts.append(segment)
        elif segment.name in mapping:
            parts.append(mapping[segment.name])
        elif segment.default is not None:
            parts.append(segment.default)
            applied_defaults.add(segment.name)
        elif segment.optional:
            applied_defaults.add(segment.name)
        else:
            raise MissingRequiredVariableError(segment.name)

    return "".join(parts), applied_defaults


def process_template(text: str, mapping: Mapping[str, str]) -> str:
    """Substitute values into a single string.

    Example:
        ```python
        process_template("Bearer {{KEY}}", {"KEY": "tvly-abc123"})
        # "Bearer tvly-abc123"
        process_template("{{TIMEOUT|30}}", {})
        # "30"
        ```
    """
    rendered, _ = process_template_tracked(text, mapping)
    return rendered
