
import argparse
import asyncio
import json
import logging
import sys

from docsearch.config.settings import settings
from docsearch.container import configure_container
from docsearch.core.errors import SearchError, ValidationError
from docsearch.core.services.search_service import SearchService


EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docsearch", description="Search the local document index."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("search", "BM25 keyword search"),
        ("vsearch", "vector (semantic) search"),
        ("query", "hybrid search (BM25 + vector + reranker)"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("q", help="Search query")
        cmd.add_argument("--limit", type=int, default=20)
        cmd.add_argument("--min-score", type=float, default=0.0)
        cmd.add_argument("--collection", default=None)
        cmd.add_argument("--timeout", type=float, default=None)
        if name == "query":
            cmd.add_argument(
                "--fast", action="store_true", help="Skip expansion and reranking"
            )

    sub.add_parser("status", help="Index health and collections")
    return parser


async def run_command(service: SearchService, args: argparse.Namespace) -> object:
    """Dispatch one CLI command to the search service.

    Args:
        service: Search service.
        args: Parsed arguments.

    Returns:
        JSON-serializable output.
    """
    if args.command == "status":
        return await service.status()

    common = dict(
        limit=args.limit,
        min_score=args.min_score,
        collection=args.collection,
        timeout=args.timeout,
    )
    if args.command == "search":
        results = await service.search(args.q, **common)
    elif args.command == "vsearch":
        results = await service.vsearch(args.q, **common)
    else:
        results = await service.query(args.q, fast=args.fast, **common)
    return [r.to_dict() for r in results]


async def amain(args: argparse.Namespace) -> int:
    container = configure_container(settings)
    service = container.resolve(SearchService)
    try:
        output = await run_command(service, args)
    except ValidationError as e:
        print(str(e), file=sys.stderr)
        return EXIT_USAGE
    except SearchError as e:
        print(str(e), file=sys.stderr)
        return EXIT_ERROR
    finally:
        await service.shutdown()

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    return asyncio.run(amain(args))


if __name__ == "__main__":
    sys.exit(main())
