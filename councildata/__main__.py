"""
Council Data - command line entry point
=======================================

Usage:
    python -m councildata data Camden --departments
    python -m councildata reports Camden --status fixed --limit 10
    python -m councildata clear [Camden]
    python -m councildata show-cache
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from councildata.core.aggregator import AggregateOptions
from councildata.core.errors import CouncilDataError
from councildata.models.entities import KIND_AGGREGATE, KIND_RECENT_ITEMS
from councildata.service import create_service
from councildata.utils.logger import get_logger, setup_logging
from councildata.utils.timefmt import format_time_ago

log = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="councildata", description="Cached council reports, news and updates")
    subparsers = parser.add_subparsers(dest="command", required=True)

    data = subparsers.add_parser("data", help="Aggregated data for one council")
    data.add_argument("council", help="Council name (e.g. Camden)")
    data.add_argument("--departments", action="store_true", help="Include the department directory")
    data.add_argument("--max-news", type=int, default=None)
    data.add_argument("--max-reports", type=int, default=None)
    data.add_argument("--refresh", action="store_true", help="Ignore the cache and refetch")

    reports = subparsers.add_parser("reports", help="Recent reports for one council")
    reports.add_argument("council")
    reports.add_argument("--status", default=None, help="open, investigating, planned, fixed, closed or all")
    reports.add_argument("--limit", type=int, default=None)
    reports.add_argument("--refresh", action="store_true")

    clear = subparsers.add_parser("clear", help="Clear cached data")
    clear.add_argument("council", nargs="?", default=None)

    subparsers.add_parser("show-cache", help="List cached councils and their age")
    return parser.parse_args(argv)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def _run_query(query, refresh: bool):
    if refresh:
        return await query.refresh()
    query.observe()
    return await query.wait()


async def run(args: argparse.Namespace) -> int:
    service = create_service()
    await service.start(schedule=False)
    now = service.store.policy.now()

    try:
        if args.command == "data":
            defaults = service.default_options()
            options = AggregateOptions(
                include_departments=args.departments,
                max_reports=args.max_reports if args.max_reports is not None else defaults.max_reports,
                max_news=args.max_news if args.max_news is not None else defaults.max_news,
            )
            query = service.council_data(args.council, options)
            result = await _run_query(query, args.refresh)
            query.close()
            if result.data is None:
                print(result.error or "No data available", file=sys.stderr)
                return 1
            _print_json(result.data.to_dict())
            print(f"Last updated: {format_time_ago(result.last_updated, now)}", file=sys.stderr)
            if result.error:
                print(result.error, file=sys.stderr)

        elif args.command == "reports":
            query = service.recent_reports(args.council, status=args.status, limit=args.limit)
            result = await _run_query(query, args.refresh)
            query.close()
            if result.error and not result.data:
                print(result.error, file=sys.stderr)
                return 1
            _print_json([report.to_dict() for report in result.data])
            print(f"Last updated: {format_time_ago(result.last_updated, now)}", file=sys.stderr)

        elif args.command == "clear":
            service.clear(args.council)
            print(f"Cleared cache for {args.council or 'all councils'}")

        elif args.command == "show-cache":
            keys = service.store.keys()
            if not keys:
                print("Cache is empty")
            for key in sorted(keys):
                aggregate = format_time_ago(service.store.last_updated(key, KIND_AGGREGATE), now)
                recent = format_time_ago(service.store.last_updated(key, KIND_RECENT_ITEMS), now)
                print(f"{key}: aggregate {aggregate}, recent reports {recent}")
    except CouncilDataError as exc:
        log.error("Command failed: {}", exc.as_dict())
        return 1
    finally:
        await service.stop()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    setup_logging()
    args = parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
