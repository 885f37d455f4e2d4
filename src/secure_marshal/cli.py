"""CLI tool for secure-marshal.

Usage:
    secure-marshal validate --schema shape.yaml data.json
    secure-marshal validate --schema shape.json --format yaml data.yaml
    secure-marshal validate --schema shape.yaml --name body --stdin < data.json
    secure-marshal json-schema --schema shape.yaml
    secure-marshal kinds
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .documents import DocumentError, parse_json, parse_yaml
from .json_schema import to_json_schema
from .marshal import MarshalError, validate
from .model import KINDS, Marshaller, MarshallerDefinitionError
from .serialization import marshaller_from_dict

logger = logging.getLogger(__name__)


def _load_schema(path_str: str) -> Marshaller | None:
    """Load a marshaller from a YAML or JSON schema document."""
    path = Path(path_str)
    if not path.exists():
        print(f"Error: schema file not found: {path_str}", file=sys.stderr)
        return None

    suffix = path.suffix.lower()
    content = path.read_text(encoding="utf-8")

    if suffix in (".yaml", ".yml"):
        parse = parse_yaml
    elif suffix == ".json":
        parse = parse_json
    else:
        print(
            f"Error: unsupported schema file format '{suffix}' (use .yaml, .yml, or .json)",
            file=sys.stderr,
        )
        return None

    try:
        return marshaller_from_dict(parse(content))
    except (DocumentError, MarshalError, MarshallerDefinitionError, ValueError) as e:
        print(f"Error: invalid schema document {path_str}: {e}", file=sys.stderr)
        return None


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="secure-marshal",
        description="Validate untrusted data against declarative schemas",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # --- validate command ---
    p_validate = sub.add_parser("validate", help="Validate a JSON or YAML document against a schema")
    p_validate.add_argument("file", nargs="?", help="Path to the document")
    p_validate.add_argument("--stdin", action="store_true", help="Read the document from stdin")
    p_validate.add_argument("--schema", "-s", required=True, help="Path to schema document (YAML or JSON)")
    p_validate.add_argument("--name", "-n", default="INPUT", help="Root name used in error paths")
    p_validate.add_argument("--format", "-f", choices=["json", "yaml"],
                            help="Document format (default: from file suffix, else json)")

    # --- json-schema command ---
    p_export = sub.add_parser("json-schema", help="Print the JSON Schema equivalent of a schema document")
    p_export.add_argument("--schema", "-s", required=True, help="Path to schema document (YAML or JSON)")
    p_export.add_argument("--title", help="Title to put in the exported document")

    # --- kinds command ---
    sub.add_parser("kinds", help="List available marshaller kinds")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "kinds":
        return _cmd_kinds()
    elif args.command == "validate":
        return _cmd_validate(args)
    elif args.command == "json-schema":
        return _cmd_json_schema(args)

    return 1


def _read_content(args: argparse.Namespace) -> str | None:
    """Read content from file or stdin."""
    if getattr(args, "stdin", False):
        return sys.stdin.read()
    if hasattr(args, "file") and args.file:
        path = Path(args.file)
        if not path.exists():
            print(f"Error: file not found: {args.file}", file=sys.stderr)
            return None
        return path.read_text(encoding="utf-8")
    print("Error: provide a file path or --stdin", file=sys.stderr)
    return None


def _document_format(args: argparse.Namespace) -> str:
    if args.format:
        return args.format
    if args.file and Path(args.file).suffix.lower() in (".yaml", ".yml"):
        return "yaml"
    return "json"


def _cmd_kinds() -> int:
    print("Available marshaller kinds:")
    for kind in KINDS:
        print(f"  {kind}")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    marshaller = _load_schema(args.schema)
    if marshaller is None:
        return 1

    content = _read_content(args)
    if content is None:
        return 1

    fmt = _document_format(args)
    try:
        data = parse_yaml(content) if fmt == "yaml" else parse_json(content)
    except DocumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        validate(data, marshaller, args.name)
    except MarshalError as e:
        logger.debug("validation failed: %s", e.message)
        print(json.dumps({"valid": False, "error": e.to_dict()}, indent=2))
        return 1

    print(json.dumps({"valid": True}, indent=2))
    return 0


def _cmd_json_schema(args: argparse.Namespace) -> int:
    marshaller = _load_schema(args.schema)
    if marshaller is None:
        return 1

    try:
        document = to_json_schema(marshaller, title=args.title)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(document, indent=2))
    return 0


def entry_point() -> None:
    """Entry point for console_scripts: calls main() and exits with its return code."""
    sys.exit(main())


if __name__ == "__main__":
    sys.exit(main())
