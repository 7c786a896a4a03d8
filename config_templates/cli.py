"""Command line entry point for the template engine.

Usage:
    config-templates abstract config.json declarations.json -o template.json
    config-templates resolve template.json values.json -o config.json
    config-templates inspect template.json

``abstract`` reads a concrete configuration and a JSON list of declarations
(``{"path", "definition", "placeholder"?}``) and writes
``{"template", "variables"}``. ``resolve`` reads that document and a flat
JSON object of values and writes the concrete configuration.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from config_templates.core.factory import ComponentFactory
from config_templates.core.logging_config import get_logger, setup_logging
from config_templates.interfaces.template import (
    TemplateStructureError,
    VariableResolutionError,
)
from config_templates.strategies.template_engine.models import (
    VariableDeclaration,
    VariableDefinition,
)
from config_templates.strategies.template_engine.tree import extract_tree_placeholders

logger = get_logger(__name__)

EXIT_STRUCTURE_ERROR = 1
EXIT_RESOLUTION_ERROR = 2

FAILURE_PREFIX = {
    "abstract": "cannot publish",
    "resolve": "cannot clone",
    "inspect": "invalid template",
}


def _load_json(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _write_json(data: Any, output: str | None) -> None:
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output is None or output == "-":
        print(text)
        return
    Path(output).parent.mkdir(parents=True, exist_ok=True)
    Path(output).write_text(text + "\n", encoding="utf-8")
    logger.info(f"Wrote {output}")


def cmd_abstract(args: argparse.Namespace, factory: ComponentFactory) -> int:
    """Abstract declared positions of a configuration into a template."""
    config = _load_json(args.config)
    raw_declarations = _load_json(args.declarations)
    declarations = [VariableDeclaration.model_validate(d) for d in raw_declarations]

    result = factory.get_abstractor().abstract_variables(config, declarations)
    _write_json(result.to_external(), args.output)
    return 0


def cmd_resolve(args: argparse.Namespace, factory: ComponentFactory) -> int:
    """Resolve a template document with a value mapping."""
    document = _load_json(args.template)
    mapping = _load_json(args.values)
    if not isinstance(document, dict) or not isinstance(mapping, dict):
        print("Error: template and values files must contain JSON objects", file=sys.stderr)
        return EXIT_STRUCTURE_ERROR

    definitions = [VariableDefinition.model_validate(v) for v in document.get("variables", [])]
    try:
        result = factory.get_resolver().resolve_variables(
            document.get("template"), definitions, mapping
        )
    except VariableResolutionError as e:
        print(e.to_response().model_dump_json(indent=2), file=sys.stderr)
        return EXIT_RESOLUTION_ERROR

    if result.applied_defaults:
        logger.info(f"Defaults applied for: {', '.join(sorted(result.applied_defaults))}")
    _write_json(result.configuration, args.output)
    return 0


def cmd_inspect(args: argparse.Namespace, factory: ComponentFactory) -> int:
    """List the placeholders used by a template document."""
    document = _load_json(args.template)
    template = document.get("template", document) if isinstance(document, dict) else document

    placeholders = extract_tree_placeholders(template, factory.settings.max_tree_depth)
    for placeholder in placeholders:
        if placeholder.default is not None:
            form = f"default={placeholder.default!r}"
        elif placeholder.optional:
            form = "optional"
        else:
            form = "required"
        print(f"{placeholder.name}\t{form}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="config-templates",
        description="Publish configurations as templates and resolve them again.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    abstract = subparsers.add_parser("abstract", help="Abstract a configuration into a template")
    abstract.add_argument("config", help="Concrete configuration JSON file ('-' for stdin)")
    abstract.add_argument("declarations", help="JSON list of declared variable positions")
    abstract.add_argument("-o", "--output", help="Output file (default: stdout)")
    abstract.set_defaults(handler=cmd_abstract)

    resolve = subparsers.add_parser("resolve", help="Resolve a template with values")
    resolve.add_argument("template", help="Template document from 'abstract'")
    resolve.add_argument("values", help="JSON object mapping variable names to values")
    resolve.add_argument("-o", "--output", help="Output file (default: stdout)")
    resolve.set_defaults(handler=cmd_resolve)

    inspect = subparsers.add_parser("inspect", help="List placeholders in a template")
    inspect.add_argument("template", help="Template document or bare template JSON")
    inspect.set_defaults(handler=cmd_inspect)

    return parser


def main(argv: list[str] | None = None, factory: ComponentFactory | None = None) -> int:
    """Run the command line and return the exit code."""
    args = build_parser().parse_args(argv)
    factory = factory or ComponentFactory()
    setup_logging(factory.settings)

    try:
        return args.handler(args, factory)
    except TemplateStructureError as e:
        print(f"Error: {FAILURE_PREFIX[args.command]}: {e}", file=sys.stderr)
        return EXIT_STRUCTURE_ERROR
    except ValidationError as e:
        # include_input=False keeps supplied values out of the report
        details = "\n".join(
            f"  {'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors(include_input=False, include_url=False)
        )
        print(f"Error: invalid declaration or definition:\n{details}", file=sys.stderr)
        return EXIT_STRUCTURE_ERROR
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_STRUCTURE_ERROR


if __name__ == "__main__":
    sys.exit(main())
