# weaviate_connector/cli.py
# SPDX-License-Identifier: Apache-2.0
"""
Weaviate connector CLI

Runs one node invocation outside the workflow host, which is handy for
checking credentials and parameter sets against a live cluster.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from weaviate_connector.config import credentials_from_env
from weaviate_connector.node import WeaviateNode, WireNodeHandler

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _load_invocation(path: str) -> Dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def _emit(payload: Dict[str, Any], compact: bool) -> None:
    if compact:
        print(json.dumps(payload, separators=(",", ":"), default=str))
    else:
        print(json.dumps(payload, indent=2, default=str))


async def _handle(envelope: Dict[str, Any]) -> Dict[str, Any]:
    return await WireNodeHandler(WeaviateNode()).handle(envelope)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="weaviate-connector",
        description="Weaviate connector CLI - run node operations from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  weaviate-connector run invocation.json
  cat invocation.json | weaviate-connector run -
  weaviate-connector collections --filter art

Invocation document:
  {"resource": "search", "operation": "nearText",
   "parameters": {"collection": "Article", "queryText": "jazz", "limit": 3},
   "continueOnFail": false}

Connection (used when the document carries no "credentials"):
  WEAVIATE_CLOUD_ENDPOINT, WEAVIATE_API_KEY
  WEAVIATE_HTTP_HOST / _PORT / _SECURE, WEAVIATE_GRPC_HOST / _PORT / _SECURE
  WEAVIATE_CUSTOM_HEADERS, WEAVIATE_READ_ENV_HEADERS
        """.strip(),
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        help="Logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--compact", action="store_true",
        help="Print single-line JSON",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        help="command to execute",
        metavar="COMMAND",
    )
    run_parser = subparsers.add_parser("run", help="Execute one invocation document")
    run_parser.add_argument("invocation", help="Path to the JSON document, or - for stdin")

    list_parser = subparsers.add_parser("collections", help="List collection names")
    list_parser.add_argument("--filter", default=None, help="Case-insensitive substring")

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "run":
        try:
            invocation = _load_invocation(args.invocation)
        except (OSError, json.JSONDecodeError) as e:
            print(f"error: cannot read invocation: {e}", file=sys.stderr)
            return 2
        if isinstance(invocation, dict) and not invocation.get("credentials"):
            invocation["credentials"] = credentials_from_env()
        envelope = {"op": "weaviate.execute", "args": invocation}
    else:
        envelope = {
            "op": "weaviate.search_collections",
            "args": {"credentials": credentials_from_env(), "filter": args.filter},
        }

    response = asyncio.run(_handle(envelope))
    _emit(response, args.compact)
    return 0 if response.get("ok") else 1


if __name__ == "__main__":
    raise SystemExit(main())
