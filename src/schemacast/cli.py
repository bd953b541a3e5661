"""schemacast CLI: preflight schema files and decode JSON documents."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path

logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point for schemacast commands."""
    try:
        schemacast_version = get_version("schemacast")
    except PackageNotFoundError:
        schemacast_version = "dev"

    parser = argparse.ArgumentParser(
        prog="schemacast",
        description="schemacast: strict decoding of JSON data against named schemas"
    )
    parser.add_argument("--version", action="version", version=f"schemacast {schemacast_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log registration and decoding details."
    )
    parent_parser.add_argument(
        "--builtins",
        action="store_true",
        help="Register the built-in casters (Date, Latitude, Longitude, NonEmptyString)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser(
        "check",
        help="Check that a schema file registers cleanly",
        parents=[parent_parser]
    )
    check_parser.add_argument(
        "schemas_path",
        type=Path,
        help="Path to schemas JSON (a list, or {\"schemas\": [...]})"
    )

    # decode command
    decode_parser = subparsers.add_parser(
        "decode",
        help="Decode a JSON document against a registered type",
        parents=[parent_parser]
    )
    decode_parser.add_argument(
        "schemas_path",
        type=Path,
        help="Path to schemas JSON (a list, or {\"schemas\": [...]})"
    )
    decode_parser.add_argument(
        "data_path",
        type=Path,
        help="Path to the JSON document to decode"
    )
    decode_parser.add_argument(
        "--type",
        dest="type_name",
        required=True,
        help="Registered type name to decode as"
    )
    decode_parser.add_argument(
        "--array",
        action="store_true",
        help="Decode the document as an array of --type"
    )
    decode_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the re-encoded value here instead of stdout"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    from ._internal.logging_utils import configure_split_stream_logging

    # stdout carries command output only (decode prints JSON there)
    configure_split_stream_logging(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stderr_level=logging.DEBUG,
    )

    if args.command == "check":
        from .api import validate_schemas
        from .builtins import BUILTIN_CASTERS
        from ._internal.io.schemas import load_schemas_from_path

        try:
            schemas = load_schemas_from_path(args.schemas_path)
        except (OSError, ValueError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        result = validate_schemas(schemas, casters=BUILTIN_CASTERS if args.builtins else None)
        if not args.quiet:
            status = "OK" if result.ok else "FAILED"
            print(f"[{status}] Check complete")
            print(f"  Status: {status}")
            print(f"  Errors: {len(result.errors)}")
            print(f"  Warnings: {len(result.warnings)}")
            for issue in result.warnings:
                print(f"  WARNING {issue.code}: {issue.message}")
        for issue in result.errors:
            print(f"  ERROR {issue.code}: {issue.message}", file=sys.stderr)
        if not result.ok:
            sys.exit(1)
        sys.exit(0)
    elif args.command == "decode":
        from .api import Decoder
        from .builtins import BUILTIN_CASTERS
        from .kernel.descriptor import array_of
        from .kernel.errors import SchemaCastError
        from ._internal.canonical_json import canonical_dumps
        from ._internal.io.schemas import load_json, load_schemas_from_path

        try:
            schemas = load_schemas_from_path(args.schemas_path)
            data = load_json(args.data_path)
        except (OSError, ValueError) as e:
            # json.JSONDecodeError is a ValueError
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        type_ref = array_of(args.type_name) if args.array else args.type_name
        try:
            decoder = Decoder(schemas, casters=BUILTIN_CASTERS if args.builtins else None)
            result = decoder.try_decode(type_ref, data)
            if not result.ok:
                for message in result.errors:
                    print(message, file=sys.stderr)
                if not args.quiet:
                    print(f"[FAILED] {len(result.errors)} error(s) decoding {args.data_path}", file=sys.stderr)
                sys.exit(1)
            text = canonical_dumps(decoder.encode(type_ref, result.value))
        except SchemaCastError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        logger.debug("Decoded %s as %s", args.data_path, type_ref)
        if args.output is not None:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(text + "\n", encoding="utf-8")
            if not args.quiet:
                print("[OK] Decode complete")
                print(f"  Output: {args.output}")
        else:
            print(text)
        sys.exit(0)


if __name__ == "__main__":
    main()
