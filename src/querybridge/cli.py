"""CLI entry point — Run filter queries against a configured backend."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from querybridge.adapters.base.adapter import StorageAdapter
    from querybridge.config.settings import Settings
    from querybridge.models.result import QueryResult


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="querybridge",
        description="querybridge — Backend-agnostic queries for search engines and document stores",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--backend",
        "-b",
        type=str,
        default=None,
        help="Backend name from the configuration (overrides default_backend)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"querybridge {_get_version()}",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("find", "Find all matching records"),
        ("find-one", "Find the first matching record"),
        ("count", "Count records matching --query"),
    ):
        sub = commands.add_parser(command, help=help_text)
        _add_filter_arguments(sub)

    find_by_id = commands.add_parser("find-by-id", help="Look up one record by its identifier")
    find_by_id.add_argument("id", type=str, help="Record identifier (_id)")

    insert = commands.add_parser("insert", help="Insert one record")
    insert.add_argument("record", type=str, help="Record as a JSON object")

    commands.add_parser("remove-all", help="Delete every record in the index/collection")
    commands.add_parser("health", help="Check backend health")
    return parser


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", "-q", type=str, default=None, help="Structured filter as JSON (backend-native)")
    parser.add_argument("--search", "-s", type=str, default=None, help="Free-text search string")
    parser.add_argument("--search-fields", type=str, default=None, help="Comma-separated fields to search")
    parser.add_argument("--limit", "-l", type=int, default=None, help="Maximum number of records")
    parser.add_argument("--offset", "-o", type=int, default=None, help="Number of records to skip")
    parser.add_argument("--sort", type=str, default=None, help="Sort order, e.g. 'name -age'")


def build_filter(args: argparse.Namespace) -> dict[str, Any]:
    """Turn parsed filter arguments into a filter payload."""
    payload: dict[str, Any] = {}
    if args.query:
        payload["query"] = json.loads(args.query)
    if args.search is not None:
        payload["search"] = args.search
    if args.search_fields:
        payload["searchFields"] = [f.strip() for f in args.search_fields.split(",") if f.strip()]
    if args.limit is not None:
        payload["limit"] = args.limit
    if args.offset is not None:
        payload["offset"] = args.offset
    if args.sort is not None:
        payload["sort"] = args.sort
    return payload


async def run_command(args: argparse.Namespace, adapter: StorageAdapter) -> QueryResult | dict[str, Any]:
    """Execute one CLI command against a connected adapter."""
    if args.command == "find":
        return await adapter.find(build_filter(args))
    if args.command == "find-one":
        return await adapter.find_one(build_filter(args))
    if args.command == "find-by-id":
        return await adapter.find_by_id(args.id)
    if args.command == "count":
        return await adapter.count(build_filter(args))
    if args.command == "insert":
        return await adapter.insert(json.loads(args.record))
    if args.command == "remove-all":
        return await adapter.remove_all()
    if args.command == "health":
        return (await adapter.health_check()).model_dump()
    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    from querybridge.adapters.base.registry import AdapterNotFoundError, AdapterRegistry
    from querybridge.models.result import QueryResult

    backend = args.backend or settings.default_backend
    if backend not in settings.backends:
        print(f"Error: backend '{backend}' is not configured", file=sys.stderr)
        return 1

    registry = AdapterRegistry()
    await registry.connect_configured(settings, only=backend)
    try:
        adapter = registry.get(backend)
    except AdapterNotFoundError:
        print(f"Error: could not connect to backend '{backend}'", file=sys.stderr)
        return 1

    try:
        result = await run_command(args, adapter)
    finally:
        await registry.disconnect_all()

    if isinstance(result, QueryResult):
        print(result.model_dump_json(indent=2, exclude_none=True))
        return 1 if result.is_error else 0
    print(json.dumps(result, indent=2))
    return 0


def main() -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    from querybridge.config.settings import Settings
    from querybridge.observability.logging import setup_logging

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)
        settings = Settings.from_yaml(config_path)
    else:
        settings = Settings()

    if args.log_level:
        settings.observability.log_level = args.log_level
    setup_logging(settings.observability)

    try:
        exit_code = asyncio.run(_run(args, settings))
    except json.JSONDecodeError as e:
        print(f"Error: invalid JSON argument: {e}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


def _get_version() -> str:
    """Get the package version."""
    try:
        from querybridge import __version__

        return __version__
    except ImportError:
        return "unknown"


if __name__ == "__main__":
    main()
