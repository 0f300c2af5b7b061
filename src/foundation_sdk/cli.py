"""CLI utilities for developer workflows."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Sequence

from foundation_sdk.container import Foundation
from foundation_sdk.exceptions import FileResolutionError, TransportError
from foundation_sdk.request_options import FORM, JSON, QUERY, TRANSPORT


def _pairs(values: Sequence[str] | None, separator: str = "=") -> dict[str, str]:
    parsed: dict[str, str] = {}
    for item in values or ():
        key, found, value = item.partition(separator)
        if not found or not key:
            raise argparse.ArgumentTypeError(f"Expected KEY{separator}VALUE, got {item!r}")
        parsed[key.strip()] = value.strip()
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="foundation-request")
    parser.add_argument("method")
    parser.add_argument("url")
    parser.add_argument("-q", "--query", action="append", metavar="KEY=VALUE")
    parser.add_argument("-f", "--form", action="append", metavar="KEY=VALUE")
    parser.add_argument("-H", "--header", action="append", metavar="NAME:VALUE")
    parser.add_argument("--file", action="append", metavar="FIELD=PATH")
    parser.add_argument("--json", dest="json_body", metavar="JSON")
    parser.add_argument("--ipv6", action="store_true", help="do not force IPv4 on the default transport")
    parser.add_argument("--quiet", action="store_true", help="do not log request/response events")
    return parser


def _options(args: argparse.Namespace) -> dict[str, Any]:
    options: dict[str, Any] = {}
    if args.query:
        options[QUERY] = _pairs(args.query)
    if args.form:
        options[FORM] = _pairs(args.form)
    if args.json_body is not None:
        options[JSON] = json.loads(args.json_body)
    if args.header:
        options["headers"] = _pairs(args.header, ":")
    if args.ipv6:
        options[TRANSPORT] = {"local_address": "::"}
    return options


def _main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        options = _options(args)
        files = _pairs(args.file)
    except (argparse.ArgumentTypeError, json.JSONDecodeError) as exc:
        parser.error(str(exc))

    app = Foundation({"debug": not args.quiet, "log": {"name": "foundation-request", "level": "DEBUG"}})
    try:
        with app.http as http:
            if files:
                response = http.upload(args.url, options.get(QUERY), files, options.get(FORM))
            else:
                response = http.request(args.url, args.method, options)
    except FileResolutionError as exc:
        print(f"Cannot read upload file: {exc}", file=sys.stderr)
        return 2
    except TransportError as exc:
        print(f"Request failed: {exc}", file=sys.stderr)
        return 2

    print(f"{response.status_code} {response.reason_phrase}")
    print(response.text)
    return 0 if response.status_code < 400 else 1


def main() -> None:
    raise SystemExit(_main())
