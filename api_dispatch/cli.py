"""CLI entry point for api-dispatch.

Sends one request described on the command line and prints the normalized
response as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from api_dispatch.models import (
    ContentModel,
    JsonBody,
    MultiPartItem,
    RequestDescriptor,
    TextBody,
    XmlBody,
)
from api_dispatch.xml_body import parse_xml


def parse_key_value(value: str) -> tuple[str, str]:
    """Parse NAME=VALUE format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    if "=" not in value:
        raise argparse.ArgumentTypeError(
            f"Invalid format '{value}'. Expected NAME=VALUE (e.g., 'page=2')"
        )
    name, item = value.split("=", 1)
    if not name:
        raise argparse.ArgumentTypeError(f"Invalid format '{value}'. Name cannot be empty.")
    return (name, item)


def parse_header(value: str) -> tuple[str, str]:
    """Parse 'Name: value' format.

    Raises:
        argparse.ArgumentTypeError: If format is invalid.
    """
    if ":" not in value:
        raise argparse.ArgumentTypeError(
            f"Invalid header '{value}'. Expected 'Name: value' (e.g., 'Accept: application/json')"
        )
    name, item = value.split(":", 1)
    name = name.strip()
    if not name:
        raise argparse.ArgumentTypeError(f"Invalid header '{value}'. Name cannot be empty.")
    return (name, item.strip())


def _group(pairs: list[tuple[str, str]]) -> dict[str, list[str]] | None:
    """Group repeated names, keeping first-seen name order and value order."""
    if not pairs:
        return None
    grouped: dict[str, list[str]] = {}
    for name, value in pairs:
        grouped.setdefault(name, []).append(value)
    return grouped


@dataclass
class SendArgs:
    """Parsed arguments for sending one request."""

    url: str
    method: str
    paths: list[str] = field(default_factory=list)
    params: list[tuple[str, str]] = field(default_factory=list)
    headers: list[tuple[str, str]] = field(default_factory=list)
    cookies: list[tuple[str, str]] = field(default_factory=list)
    content_type: str | None = None
    json_body: str | None = None
    xml_body: str | None = None
    data: str | None = None
    form: list[tuple[str, str]] = field(default_factory=list)
    parts: list[tuple[str, str]] = field(default_factory=list)
    config: Path | None = None
    verbose: bool = False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="api-dispatch",
        description="Send one HTTP request and print the normalized response as JSON.",
    )
    parser.add_argument("--url", required=True, help="Base URL of the request")
    parser.add_argument(
        "--method",
        "-X",
        default="GET",
        help="HTTP method, any case (default: GET)",
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        dest="paths",
        metavar="SEGMENT",
        help="Path segment appended to the URL (can be repeated)",
    )
    parser.add_argument(
        "--param",
        type=parse_key_value,
        action="append",
        default=[],
        dest="params",
        metavar="NAME=VALUE",
        help="Query parameter (can be repeated)",
    )
    parser.add_argument(
        "--header",
        "-H",
        type=parse_header,
        action="append",
        default=[],
        dest="headers",
        metavar="'NAME: VALUE'",
        help="Request header (can be repeated)",
    )
    parser.add_argument(
        "--cookie",
        type=parse_key_value,
        action="append",
        default=[],
        dest="cookies",
        metavar="NAME=VALUE",
        help="Cookie (can be repeated)",
    )
    parser.add_argument(
        "--content-type",
        default=None,
        help="Explicit Content-Type for the body (ignored for --form)",
    )

    body_group = parser.add_mutually_exclusive_group()
    body_group.add_argument("--json", dest="json_body", metavar="TEXT", help="JSON request body")
    body_group.add_argument("--xml", dest="xml_body", metavar="TEXT", help="XML request body")
    body_group.add_argument("--data", metavar="TEXT", help="Plain text request body")
    body_group.add_argument(
        "--form",
        type=parse_key_value,
        action="append",
        metavar="NAME=VALUE",
        help="URL-encoded form field (can be repeated)",
    )
    body_group.add_argument(
        "--part",
        type=parse_key_value,
        action="append",
        dest="parts",
        metavar="NAME=VALUE",
        help="multipart/form-data part (can be repeated)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to runtime config YAML (transport, options, configured headers)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log at DEBUG level",
    )
    return parser


def parse_args(args: list[str] | None = None) -> SendArgs:
    """Parse command-line arguments.

    Raises:
        SystemExit: If arguments are invalid (argparse behavior).
    """
    namespace = build_parser().parse_args(args)
    return SendArgs(
        url=namespace.url,
        method=namespace.method,
        paths=namespace.paths,
        params=namespace.params,
        headers=namespace.headers,
        cookies=namespace.cookies,
        content_type=namespace.content_type,
        json_body=namespace.json_body,
        xml_body=namespace.xml_body,
        data=namespace.data,
        form=namespace.form or [],
        parts=namespace.parts or [],
        config=namespace.config,
        verbose=namespace.verbose,
    )


def build_request(args: SendArgs) -> RequestDescriptor:
    """Turn parsed arguments into a RequestDescriptor.

    Raises:
        ValueError: If the --json or --xml body is malformed.
    """
    body: ContentModel | None = None
    if args.json_body is not None:
        try:
            body = JsonBody(json.loads(args.json_body))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON body: {e}") from e
    elif args.xml_body is not None:
        try:
            body = XmlBody(parse_xml(args.xml_body))
        except ET.ParseError as e:
            raise ValueError(f"Invalid XML body: {e}") from e
    elif args.data is not None:
        body = TextBody(args.data)

    multi_part_items = None
    if args.parts:
        multi_part_items = [MultiPartItem(name=name, value=value) for name, value in args.parts]

    return RequestDescriptor(
        url=args.url,
        method=args.method,
        paths=args.paths or None,
        params=_group(args.params),
        headers=_group(args.headers),
        cookies=dict(args.cookies) if args.cookies else None,
        content_type=args.content_type,
        multi_part_items=multi_part_items,
        form_fields=_group(args.form),
        body=body,
    )


def run_send(args: SendArgs) -> int:
    """Send the request and print the response. Returns the exit code."""
    from api_dispatch.assembler import AssemblyError
    from api_dispatch.config_loader import ConfigError, load_runtime_config
    from api_dispatch.invoker import CallFailedError, Invoker
    from api_dispatch.transport.registry import transport_from_config

    # An explicit --config that cannot be loaded is a usage error here, unlike
    # construct_transport() which falls back to the no-op transport.
    runtime_config = None
    if args.config is not None:
        try:
            runtime_config = load_runtime_config(args.config)
        except ConfigError as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return 1
    transport = transport_from_config(runtime_config)
    header_source: dict[str, Any] | None = None
    if runtime_config is not None and runtime_config.headers:
        header_source = runtime_config.headers

    try:
        request = build_request(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        transport.close()
        return 1

    with Invoker(transport) as invoker:
        try:
            response = invoker.invoke(request, header_source)
        except AssemblyError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        except CallFailedError as e:
            print(f"Error: {e} ({e.__cause__})", file=sys.stderr)
            return 1

    print(response.model_dump_json(indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    try:
        args = parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )
        return run_send(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
