# main.py

import argparse
import asyncio
import datetime
import json
import logging
import sys

from utilities.logger import log_error_trace, log_event, setup_logging
from monday_client.monday_api import MondayAPI
from monday_client.monday_exceptions import MondayAPIError
from monday_client.monday_models import PaginationOptions
from monday_client.monday_service import KPI_PAGINATION_OPTIONS, MondayService


def build_parser():
    parser = argparse.ArgumentParser(description="Run a Monday.com KPI query template for a base date.")
    parser.add_argument("query_file", help="File containing the GraphQL query template")
    parser.add_argument("--date", default=datetime.date.today().isoformat(), help="Base date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--max-pages", type=int, default=KPI_PAGINATION_OPTIONS.max_pages)
    parser.add_argument("--page-size", type=int, default=KPI_PAGINATION_OPTIONS.page_size)
    parser.add_argument("--delay", type=int, default=KPI_PAGINATION_OPTIONS.delay_between_pages, help="Milliseconds between pages")
    parser.add_argument("--output", help="Write the JSON result here instead of stdout")
    return parser


async def run(args) -> dict:
    with open(args.query_file, encoding="utf-8") as handle:
        template = handle.read()

    pagination_options = PaginationOptions(
        max_pages=args.max_pages,
        page_size=args.page_size,
        delay_between_pages=args.delay,
    )
    async with MondayAPI() as monday_api:
        service = MondayService(monday_api)
        return await service.run_kpi_query(template, args.date, pagination_options)


def main(argv=None):
    setup_logging()
    logger = logging.getLogger("app_logger")
    args = build_parser().parse_args(argv)
    logger.info(f"Running KPI query from {args.query_file} for {args.date}...")

    try:
        result = asyncio.run(run(args))
    except MondayAPIError as e:
        log_error_trace(logger, e, f"❌ Monday.com API error: {e}")
        return 1

    log_event("INFO", {"query_file": args.query_file, "date": args.date})
    output = json.dumps(result, indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(output)
        logger.info(f"✅ Result written to {args.output}")
    else:
        print(output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
