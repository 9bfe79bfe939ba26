import argparse
import sys
import time
from datetime import datetime, timezone
from typing import List
from tradebook.config.logging import logger
from tradebook.config.settings import get_settings
from tradebook.core.exceptions import AppError
from tradebook.core.models import Direction, Session, add_tag
from tradebook.services.analytics import AnalyticsService, StatisticsService
from tradebook.services.exporter import ExportService
from tradebook.services.importer import ImportService
from tradebook.services.journal import SORT_FIELDS, JournalService
from tradebook.services.report_formatter import ReportFormatter

def render_dashboard(stats_service: StatisticsService) -> str:
    return "\n\n".join([
        ReportFormatter.format_overall(stats_service.get_overall_statistics()),
        ReportFormatter.format_strategies(stats_service.get_performance_by_strategy()),
        ReportFormatter.format_sessions(stats_service.get_session_statistics()),
    ])

def run_watch_loop(stats_service: StatisticsService, interval: int, iterations: int = 0):
    """定時重新計算並輸出統計 (相當於前端的輪詢刷新)"""
    logger.info(f"Starting dashboard refresh loop. Interval: {interval} seconds")
    count = 0
    while True:
        try:
            print(render_dashboard(stats_service))
            print()
        except Exception as e:
            logger.error(f"Error during dashboard refresh: {e}")

        count += 1
        if iterations and count >= iterations:
            return
        time.sleep(interval)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Trading Journal CLI")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    import_parser = subparsers.add_parser("import", help="Import a broker CSV file")
    import_parser.add_argument("file", help="Path to the CSV file")

    subparsers.add_parser("stats", help="Show overall statistics")
    subparsers.add_parser("days", help="Show P&L by day")
    subparsers.add_parser("strategies", help="Show performance by strategy")
    subparsers.add_parser("sessions", help="Show session distribution")
    subparsers.add_parser("reports", help="List broker reports")

    report_parser = subparsers.add_parser("report", help="Show one broker report")
    report_parser.add_argument("report_id")

    delete_report_parser = subparsers.add_parser("delete-report", help="Delete a broker report (its trades are kept)")
    delete_report_parser.add_argument("report_id")

    add_parser = subparsers.add_parser("add", help="Add a trade manually")
    add_parser.add_argument("symbol")
    add_parser.add_argument("pnl", type=float)
    add_parser.add_argument("--direction", choices=[d.value for d in Direction], default=Direction.LONG.value)
    add_parser.add_argument("--date", help="ISO-8601 date/time, default now (UTC)")
    add_parser.add_argument("--entry", type=float, default=0.0)
    add_parser.add_argument("--exit", type=float, default=0.0)
    add_parser.add_argument("--qty", type=int, default=1)
    add_parser.add_argument("--strategy", default="Unknown")
    add_parser.add_argument("--session", choices=[s.value for s in Session])
    add_parser.add_argument("--rr", type=float, help="Risk:reward")
    add_parser.add_argument("--tag", action="append", default=[])
    add_parser.add_argument("--notes", default="")

    delete_parser = subparsers.add_parser("delete", help="Delete a trade")
    delete_parser.add_argument("trade_id")

    list_parser = subparsers.add_parser("list", help="List trades")
    list_parser.add_argument("--sort", choices=SORT_FIELDS, default="date")
    list_parser.add_argument("--asc", action="store_true")

    export_parser = subparsers.add_parser("export", help="Export trades to CSV")
    export_parser.add_argument("--output", default="trades.csv", help="File name inside EXPORT_DIR")

    monthly_parser = subparsers.add_parser("monthly", help="Write the monthly P&L report")
    monthly_parser.add_argument("--year", type=int, default=datetime.now(timezone.utc).year)

    calendar_parser = subparsers.add_parser("calendar", help="Show one month of daily P&L")
    calendar_parser.add_argument("month", help="YYYY-MM")

    daily_parser = subparsers.add_parser("daily", help="Daily review")
    daily_parser.add_argument("--date", help="YYYY-MM-DD, default today (UTC)")

    watch_parser = subparsers.add_parser("watch", help="Refresh the dashboard continuously")
    watch_parser.add_argument("--interval", type=int)

    return parser

def _add_trade(journal: JournalService, args) -> None:
    timestamp = datetime.fromisoformat(args.date.replace("Z", "+00:00")) if args.date else None
    tags: List[str] = []
    for tag in args.tag:
        tags = add_tag(tags, tag)
    trade = journal.add_trade(
        symbol=args.symbol,
        pnl=args.pnl,
        direction=args.direction,
        timestamp=timestamp,
        entry_price=args.entry,
        exit_price=args.exit,
        quantity=args.qty,
        strategy=args.strategy,
        session=args.session,
        risk_reward=args.rr,
        notes=args.notes,
        tags=tags,
    )
    print(f"Added trade {trade.id}")

def run_command(args, journal: JournalService) -> int:
    cfg = get_settings()
    stats_service = StatisticsService(journal)

    if args.command == "import":
        with open(args.file, "r", encoding="utf-8") as f:
            text = f.read()
        result = ImportService(journal).import_csv(text)
        if not result.success:
            print(f"Import failed ({result.error.value}): {result.message}", file=sys.stderr)
            return 1
        print(result.message)
        print(ReportFormatter.format_broker_report(AnalyticsService.broker_report_statistics(result.report)))

    elif args.command == "stats":
        print(ReportFormatter.format_overall(stats_service.get_overall_statistics()))

    elif args.command == "days":
        print(ReportFormatter.format_days(stats_service.get_pnl_by_day()))

    elif args.command == "strategies":
        print(ReportFormatter.format_strategies(stats_service.get_performance_by_strategy()))

    elif args.command == "sessions":
        print(ReportFormatter.format_sessions(stats_service.get_session_statistics()))

    elif args.command == "reports":
        print(ReportFormatter.format_report_list(journal.get_broker_reports()))

    elif args.command == "report":
        stats = stats_service.get_broker_report_statistics(args.report_id)
        if stats is None:
            print(f"Broker report {args.report_id} not found", file=sys.stderr)
            return 1
        print(ReportFormatter.format_broker_report(stats))

    elif args.command == "delete-report":
        journal.delete_broker_report(args.report_id)

    elif args.command == "add":
        _add_trade(journal, args)

    elif args.command == "delete":
        journal.delete_trade(args.trade_id)

    elif args.command == "list":
        print(ReportFormatter.format_trades(journal.sorted_trades(args.sort, descending=not args.asc)))

    elif args.command == "export":
        path = ExportService.write_csv(journal.get_trades(), cfg.EXPORT_DIR, args.output)
        print(path)

    elif args.command == "monthly":
        path = ExportService.write_monthly_report(journal.get_trades(), cfg.EXPORT_DIR, args.year)
        print(path)

    elif args.command == "calendar":
        year, month = (int(part) for part in args.month.split("-"))
        days = stats_service.get_calendar_month(year, month)
        print(ReportFormatter.format_calendar(year, month, days))

    elif args.command == "daily":
        report_date = args.date or datetime.now(timezone.utc).date().isoformat()
        trades = [t for t in journal.get_trades() if t.day == report_date]
        stats = AnalyticsService.calculate_stats(trades)
        print(ReportFormatter.format_daily_report(report_date, stats, trades))

    elif args.command == "watch":
        run_watch_loop(stats_service, args.interval or cfg.REFRESH_INTERVAL_SECONDS)

    return 0

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        return run_command(args, JournalService())
    except (AppError, ValueError, OSError) as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
