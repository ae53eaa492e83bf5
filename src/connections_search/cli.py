"""Operator CLI for the keyword index.

Examples:
  connections-search migrate
  connections-search index --owner u-1 --reference doc-7 --type person "Fritz Meyer"
  connections-search search --owner u-1 "fritz"
  connections-search health
"""

# ruff: noqa: T201  # CLI intentionally prints operator feedback

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
import logging
import sys
import textwrap

import orjson

from connections_search.config import Settings
from connections_search.domain.errors import SchemaUnavailableError, StorageUnavailableError
from connections_search.domain.model import EntryType
from connections_search.observability.logging import configure_logging
from connections_search.observability.tracing import configure_trace_exporter, init_tracing
from connections_search.service_layer.search_service import SearchService


logger = logging.getLogger(__name__)

EXIT_SCHEMA_UNAVAILABLE = 1
EXIT_STORAGE_UNAVAILABLE = 2


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="connections-search",
        description="Manage and query the per-owner keyword index",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Connection settings come from CASSANDRA_* environment variables
            (or .env). Set STORAGE_BACKEND=memory to try commands without a cluster.
            """
        ).strip(),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Create keyspace and table, then check compaction")

    index_parser = subparsers.add_parser("index", help="Index one document")
    index_parser.add_argument("--owner", required=True, help="Owner (partition) identifier")
    index_parser.add_argument("--reference", required=True, help="Identifier of the indexed entity")
    index_parser.add_argument(
        "--type",
        default="unknown",
        choices=[member.name.lower() for member in EntryType],
        help="Entity type (default: unknown)",
    )
    index_parser.add_argument("text", help="Text to index")

    search_parser = subparsers.add_parser("search", help="Query one owner's index")
    search_parser.add_argument("--owner", required=True, help="Owner (partition) identifier")
    search_parser.add_argument("--limit", type=int, default=None, help="Maximum hits (default: SEARCH_RESULT_LIMIT)")
    search_parser.add_argument("text", help="Query text")

    subparsers.add_parser("health", help="Probe storage connectivity")
    return parser


async def _run(args: argparse.Namespace, service: SearchService) -> int:
    if args.command == "migrate":
        check = await service.migrate()
        print(check.model_dump_json())
        return 0

    if args.command == "index":
        entries = await service.add_entry(args.owner, args.text, args.reference, EntryType.parse(args.type))
        print(f"Indexed {args.reference} under {len(entries)} keywords: {', '.join(e.keyword for e in entries)}")
        return 0

    if args.command == "search":
        hits = await service.search(args.owner, args.text, args.limit)
        for hit in hits:
            print(orjson.dumps(hit.model_dump(mode="json")).decode("utf-8"))
        return 0

    health = await service.health()
    print(orjson.dumps(health).decode("utf-8"))
    return 0 if health["status"] == "healthy" else EXIT_STORAGE_UNAVAILABLE


def main(argv: Sequence[str] | None = None) -> int:
    args = build_argument_parser().parse_args(argv)
    settings = Settings()  # type: ignore[call-arg]
    configure_logging(settings.log_level, json_output=settings.log_json)
    provider = init_tracing()
    configure_trace_exporter(settings.otlp_endpoint, settings.otlp_protocol, provider)

    service: SearchService | None = None
    try:
        service = SearchService.from_settings(settings)
        return asyncio.run(_run(args, service))
    except SchemaUnavailableError as exc:
        logger.error("Schema unavailable: %s", exc)
        return EXIT_SCHEMA_UNAVAILABLE
    except StorageUnavailableError as exc:
        logger.error("Storage unavailable: %s", exc)
        return EXIT_STORAGE_UNAVAILABLE
    finally:
        if service is not None:
            service.repository.close()
        provider.shutdown()


if __name__ == "__main__":
    sys.exit(main())
