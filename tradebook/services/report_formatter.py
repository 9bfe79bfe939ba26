from typing import Dict, List
from tradebook.core.models import (
    BrokerReport,
    BrokerReportStatistics,
    CalendarDay,
    DailyPnl,
    SessionMap,
    StrategyPerformance,
    TradeRecord,
    TradeStatistics,
)


def _signed(value: float) -> str:
    sign = '+' if value > 0 else ''
    return f"{sign}{value:.2f}"


class ReportFormatter:
    @staticmethod
    def format_overall(stats: TradeStatistics) -> str:
        """
        Formats the dashboard stat cards as plain text.
        """
        lines = ["📊 Trading Performance"]
        lines.append(f"Trades: {stats.total_trades}")
        lines.append(
            f"Win Rate: {stats.win_rate:.1f}% "
            f"({stats.winning_trades} winning, {stats.losing_trades} losing)"
        )
        lines.append(f"Total P&L: ${_signed(stats.total_pnl)} (avg ${stats.average_pnl:.2f} per trade)")
        lines.append(f"Profit Factor: {stats.profit_factor:.2f}")
        lines.append(f"Avg Risk:Reward: {stats.average_risk_reward:.1f}")
        lines.append(f"Average Win: +${stats.average_win:.2f}")
        lines.append(f"Average Loss: -${stats.average_loss:.2f}")
        return "\n".join(lines)

    @staticmethod
    def format_strategies(rows: List[StrategyPerformance]) -> str:
        if not rows:
            return "No strategies recorded."
        lines = ["🧠 Performance by Strategy"]
        for row in rows:
            lines.append(f"{row.strategy}: {_signed(row.pnl)} | {row.win_rate}% win | {row.trade_count} trades")
        return "\n".join(lines)

    @staticmethod
    def format_sessions(sessions: SessionMap) -> str:
        total = sum(s.count for s in sessions.values())
        lines = ["🕒 Trading Sessions"]
        for session, s in sessions.items():
            percent = (s.count / total) * 100 if total > 0 else 0.0
            lines.append(
                f"{session.value}: {s.count} trades ({percent:.1f}%) | "
                f"P&L {_signed(s.pnl)} | {s.win_count}W/{s.loss_count}L"
            )
        return "\n".join(lines)

    @staticmethod
    def format_days(days: List[DailyPnl]) -> str:
        if not days:
            return "No trades recorded."
        return "\n".join(f"{d.date}: {_signed(d.pnl)}" for d in days)

    @staticmethod
    def format_report_list(reports: List[BrokerReport]) -> str:
        """Newest import first; the collection itself is kept in insertion order."""
        if not reports:
            return "No broker reports. Import a CSV file first."
        return "\n".join(
            f"{r.id}  {r.name} - {r.date.date().isoformat()}  ({r.trade_count} trades, {_signed(r.total_pnl)})"
            for r in reversed(reports)
        )

    @staticmethod
    def format_broker_report(stats: BrokerReportStatistics) -> str:
        rr = f"{stats.risk_reward_ratio:.1f}" if stats.risk_reward_ratio else "N/A"
        pf = f"{stats.profit_factor:.2f}" if stats.profit_factor else "N/A"
        lines = [f"📄 {stats.name}"]
        lines.append(
            f"Win Rate: {stats.win_rate:.1f}% "
            f"({stats.winning_trades} winning, {stats.losing_trades} losing)"
        )
        lines.append(f"Total P&L: ${_signed(stats.total_pnl)} (avg ${stats.average_pnl:.2f} per trade)")
        lines.append(f"Profit Factor: {pf}")
        lines.append(f"Risk:Reward: {rr} (from {stats.trade_count} trades)")
        lines.append(f"Average Win: +${stats.average_win:.2f}")
        lines.append(f"Average Loss: -${stats.average_loss:.2f}")
        lines.append(f"Largest Win: +${stats.largest_win:.2f}")
        lines.append(f"Largest Loss: -${stats.largest_loss:.2f}")
        return "\n".join(lines)

    @staticmethod
    def format_trades(trades: List[TradeRecord]) -> str:
        if not trades:
            return "No trades recorded."
        lines = []
        for i, t in enumerate(trades, 1):
            tags = f" [{', '.join(t.tags)}]" if t.tags else ""
            lines.append(
                f"{i}) {t.day} {t.symbol} {t.direction.value} {_signed(t.pnl)} "
                f"{t.strategy} ({t.effective_session.value}){tags}  id={t.id}"
            )
        return "\n".join(lines)

    @staticmethod
    def format_calendar(year: int, month: int, days: Dict[str, CalendarDay]) -> str:
        lines = [f"📅 {year:04d}-{month:02d}"]
        if not days:
            lines.append("No trades this month.")
            return "\n".join(lines)
        for day in days.values():
            symbols = ", ".join(t.symbol for t in day.trades)
            lines.append(f"{day.date}: {_signed(day.pnl)} ({len(day.trades)} trades: {symbols})")
        return "\n".join(lines)

    @staticmethod
    def format_daily_report(report_date: str, stats: TradeStatistics, trades: List[TradeRecord]) -> str:
        """
        One-day review: stats header followed by the day's trade list.
        """
        if not trades:
            return ReportFormatter.format_no_trades(report_date)

        lines = [f"📊 Daily Review ({report_date})"]
        lines.append(f"Trades: {stats.total_trades}")
        lines.append(f"Total P&L: {_signed(stats.total_pnl)}")
        lines.append(f"Win Rate: {stats.win_rate:.1f}%")
        lines.append("")
        lines.append("🧾 Trades")
        for i, t in enumerate(trades, 1):
            note_str = f" ({t.notes})" if t.notes else ""
            lines.append(f"{i}) {t.symbol} {t.direction.value} {_signed(t.pnl)}{note_str}")
        return "\n".join(lines)

    @staticmethod
    def format_no_trades(report_date: str) -> str:
        return f"📊 Daily Review ({report_date})\n\nNo trades today 💤"
