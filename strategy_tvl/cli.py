"""Command-line interface for the strategy wrapper TVL aggregator."""
from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import AppConfig, load_config
from .interfaces import Notifier
from .logging_setup import configure_logging
from .models import TVLReport
from .notifications import TelegramNotifier
from .protocols.strategy_wrapper.parser import strategy_type_name
from .services import ProgressEvent, ProgressLog, TVLService
from .services.aggregator import position_table, report_to_dict, summary_lines


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="strategy-tvl",
        description="Strategy wrapper TVL aggregator for Suilend obligations",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING, progress is printed separately)",
    )

    sub = parser.add_subparsers(dest="command")

    tvl_parser = sub.add_parser("tvl", help="Calculate TVL across all strategy caps")
    tvl_parser.add_argument(
        "--json", action="store_true", help="Print the report as JSON"
    )
    tvl_parser.add_argument(
        "--notify",
        action="store_true",
        help="Send the summary through Telegram (if enabled in config)",
    )

    sub.add_parser("discover", help="List strategy caps and their obligations")

    return parser


def _print_progress(event: ProgressEvent) -> None:
    print(event.format(), file=sys.stderr, flush=True)


async def _notify(config: AppConfig, report: TVLReport) -> None:
    if not config.notifications.telegram.enabled:
        print("Telegram notifications are disabled in config", file=sys.stderr)
        return
    notifier: Notifier = TelegramNotifier(config.notifications.telegram)
    message = "\n".join(
        ["📊 Strategy Wrapper TVL", ""]
        + summary_lines(report)
        + [""]
        + position_table(report, config.strategy_types)
    )
    if not await notifier.send_log(message, silent=True):
        print("Telegram notification failed", file=sys.stderr)


async def _run_tvl(args: argparse.Namespace, config: AppConfig) -> int:
    service = TVLService(config)
    progress = ProgressLog()
    if not args.json:
        progress.subscribe(_print_progress)

    report = await service.run_aggregation(progress)
    if report is None:
        if args.json:
            for line in progress.lines():
                print(line, file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print()
        print("\n".join(position_table(report, config.strategy_types)))

    if args.notify:
        await _notify(config, report)
    return 0


async def _run_discover(config: AppConfig) -> int:
    service = TVLService(config)
    progress = ProgressLog()
    progress.subscribe(_print_progress)

    records = await service.discover(progress)
    for record in records:
        print(
            f"{record.object_id}  {record.position_id}  "
            f"{strategy_type_name(record.strategy_type, config.strategy_types)}  "
            f"{record.owner}"
        )
    return 0


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "tvl":
        return await _run_tvl(args, config)
    if args.command == "discover":
        return await _run_discover(config)

    build_parser().print_help()
    return 1


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
