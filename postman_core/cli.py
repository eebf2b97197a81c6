"""CLI entry point for postman-core.

Thin wrapper over the boundary functions: reads documents from files and
prints the resulting JSON to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from postman_core.boundary import (
    collection_to_json,
    describe_validation_error,
    environment_to_json,
    make_http_request,
    parse_postman_collection,
)
from postman_core.collection import iter_requests
from postman_core.config_loader import ConfigError, load_client_config, load_json_text
from postman_core.models import Collection, HttpMethod


@dataclass
class SendArgs:
    """Parsed arguments for send mode."""

    request: Path
    environment: Path | None
    config: Path | None
    verbose: bool


@dataclass
class ParseCollectionArgs:
    """Parsed arguments for parse-collection mode."""

    collection: Path
    pretty: bool
    verbose: bool


@dataclass
class ParseEnvironmentArgs:
    """Parsed arguments for parse-environment mode."""

    environment: Path
    verbose: bool


@dataclass
class ListRequestsArgs:
    """Parsed arguments for list-requests mode."""

    collection: Path
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per mode."""
    parser = argparse.ArgumentParser(
        prog="postman-core",
        description="Execute Postman requests and normalize Postman collection/environment documents.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log outgoing requests and responses to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True, help="Mode")

    send_parser = subparsers.add_parser("send", help="Execute a request document")
    send_parser.add_argument(
        "--request",
        type=Path,
        required=True,
        help="Path to a request JSON document",
    )
    send_parser.add_argument(
        "--environment",
        type=Path,
        default=None,
        help="Path to a Postman environment supplying {{variable}} values",
    )
    send_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to client config YAML (timeout, TLS, redirects, default headers)",
    )

    collection_parser = subparsers.add_parser(
        "parse-collection", help="Validate and re-serialize a collection"
    )
    collection_parser.add_argument(
        "--collection",
        type=Path,
        required=True,
        help="Path to a Postman collection JSON file",
    )
    collection_parser.add_argument(
        "--pretty",
        action="store_true",
        help="Pretty-print the output",
    )

    environment_parser = subparsers.add_parser(
        "parse-environment", help="Validate and pretty-print an environment"
    )
    environment_parser.add_argument(
        "--environment",
        type=Path,
        required=True,
        help="Path to a Postman environment JSON file",
    )

    list_parser = subparsers.add_parser(
        "list-requests", help="List every request in a collection"
    )
    list_parser.add_argument(
        "--collection",
        type=Path,
        required=True,
        help="Path to a Postman collection JSON file",
    )

    return parser


def parse_args(
    args: list[str] | None = None,
) -> SendArgs | ParseCollectionArgs | ParseEnvironmentArgs | ListRequestsArgs:
    """Parse command-line arguments and return typed args dataclass.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    parser = build_parser()
    namespace = parser.parse_args(args)

    if namespace.command == "send":
        return SendArgs(
            request=namespace.request,
            environment=namespace.environment,
            config=namespace.config,
            verbose=namespace.verbose,
        )
    elif namespace.command == "parse-collection":
        return ParseCollectionArgs(
            collection=namespace.collection,
            pretty=namespace.pretty,
            verbose=namespace.verbose,
        )
    elif namespace.command == "parse-environment":
        return ParseEnvironmentArgs(environment=namespace.environment, verbose=namespace.verbose)
    elif namespace.command == "list-requests":
        return ListRequestsArgs(collection=namespace.collection, verbose=namespace.verbose)
    else:
        # Should not happen with required=True on subparsers
        parser.error(f"Unknown command: {namespace.command}")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        parsed = parse_args(argv)
        configure_logging(parsed.verbose)

        if isinstance(parsed, SendArgs):
            return run_send(parsed)
        elif isinstance(parsed, ParseCollectionArgs):
            return run_parse_collection(parsed)
        elif isinstance(parsed, ParseEnvironmentArgs):
            return run_parse_environment(parsed)
        else:
            return run_list_requests(parsed)

    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


def run_send(args: SendArgs) -> int:
    """Run send mode. Exit status is 1 when the response has status_code 0."""
    try:
        request_text = load_json_text(args.request)
        environment_text = load_json_text(args.environment) if args.environment else None
        config = load_client_config(args.config) if args.config else None
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = make_http_request(request_text, environment_text, config)
    if result is None:
        print("Error: request document is not usable", file=sys.stderr)
        return 1

    print(result)
    return 0 if json.loads(result)["status_code"] != 0 else 1


def _print_document(result: str | None) -> int:
    if result is None:
        print("Error: document is not usable", file=sys.stderr)
        return 1

    parsed = json.loads(result)
    if "error" in parsed:
        print(f"Error: {parsed['error']}", file=sys.stderr)
        return 1

    print(result)
    return 0


def run_parse_collection(args: ParseCollectionArgs) -> int:
    try:
        text = load_json_text(args.collection)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.pretty:
        return _print_document(collection_to_json(text))
    return _print_document(parse_postman_collection(text))


def run_parse_environment(args: ParseEnvironmentArgs) -> int:
    try:
        text = load_json_text(args.environment)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return _print_document(environment_to_json(text))


def run_list_requests(args: ListRequestsArgs) -> int:
    """Print one "METHOD folder/.../name" line per request."""
    try:
        collection = Collection.model_validate_json(load_json_text(args.collection))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"Error: {describe_validation_error(e)}", file=sys.stderr)
        return 1

    count = 0
    for found in iter_requests(collection):
        method = (found.request.method or HttpMethod.GET.value).upper()
        print(f"{method} {found.display_path}")
        count += 1

    print(f"Total: {count} requests")
    return 0


if __name__ == "__main__":
    sys.exit(main())
