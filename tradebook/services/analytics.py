import math
from typing import Dict, List, Optional
from tradebook.core.models import (
    BrokerReport,
    BrokerReportStatistics,
    CalendarDay,
    DailyPnl,
    Session,
    SessionMap,
    SessionStatistics,
    StrategyPerformance,
    TradeRecord,
    TradeStatistics,
)
from tradebook.services.journal import JournalService


def _round_half_up(value: float) -> int:
    # 內建 round() 是銀行家捨入 (2.5 -> 2)，這裡要 2.5 -> 3
    return int(math.floor(value + 0.5))


def _profit_factor(gross_profit: float, gross_loss: float) -> float:
    # No losses: report gross profit as the factor instead of infinity
    if gross_loss == 0:
        return gross_profit
    return gross_profit / gross_loss


class AnalyticsService:
    """
    Pure statistics over a trade collection. Nothing here raises; an empty
    collection yields zero-valued results.
    """

    @staticmethod
    def calculate_stats(trades: List[TradeRecord]) -> TradeStatistics:
        if not trades:
            return TradeStatistics()

        wins = [t.pnl for t in trades if t.is_win()]
        losses = [t.pnl for t in trades if t.is_loss()]

        total = len(trades)
        total_pnl = sum(t.pnl for t in trades)
        gross_profit = sum(wins)
        gross_loss = abs(sum(losses))

        # Only positive, defined risk:reward values count
        rrs = [t.risk_reward for t in trades if t.risk_reward is not None and t.risk_reward > 0]

        return TradeStatistics(
            total_trades=total,
            winning_trades=len(wins),
            losing_trades=len(losses),
            win_rate=(len(wins) / total) * 100,
            profit_factor=_profit_factor(gross_profit, gross_loss),
            total_pnl=total_pnl,
            average_pnl=total_pnl / total,
            average_win=gross_profit / len(wins) if wins else 0.0,
            average_loss=gross_loss / len(losses) if losses else 0.0,
            average_risk_reward=sum(rrs) / len(rrs) if rrs else 0.0,
        )

    @staticmethod
    def pnl_by_day(trades: List[TradeRecord]) -> List[DailyPnl]:
        """Sparse daily series (UTC days with at least one trade), oldest first."""
        totals: Dict[str, float] = {}
        for t in trades:
            totals[t.day] = totals.get(t.day, 0.0) + t.pnl
        return [DailyPnl(date=day, pnl=pnl) for day, pnl in sorted(totals.items())]

    @staticmethod
    def performance_by_strategy(trades: List[TradeRecord]) -> List[StrategyPerformance]:
        groups: Dict[str, List[TradeRecord]] = {}
        for t in trades:
            groups.setdefault(t.strategy, []).append(t)

        results = []
        for strategy, group in groups.items():
            wins = sum(1 for t in group if t.is_win())
            results.append(StrategyPerformance(
                strategy=strategy,
                win_rate=round((wins / len(group)) * 100, 1),
                pnl=round(sum(t.pnl for t in group), 2),
                trade_count=len(group),
            ))

        results.sort(key=lambda s: s.pnl, reverse=True)
        return results

    @staticmethod
    def session_statistics(trades: List[TradeRecord]) -> SessionMap:
        """
        Always returns all five sessions, including empty ones.
        Trades without a session are counted under New York AM.
        """
        sessions: SessionMap = {s: SessionStatistics() for s in Session}
        for t in trades:
            bucket = sessions[t.effective_session]
            bucket.count += 1
            bucket.pnl += t.pnl
            if t.is_win():
                bucket.win_count += 1
            elif t.is_loss():
                bucket.loss_count += 1
        return sessions

    @staticmethod
    def broker_report_statistics(report: BrokerReport) -> BrokerReportStatistics:
        """
        Derives the viewer fields from the stored report only; the trade
        collection is not read.
        """
        winning = _round_half_up(report.trade_count * report.win_rate / 100)
        losing = report.trade_count - winning
        gross_profit = report.average_win * winning
        gross_loss = report.average_loss * losing

        return BrokerReportStatistics(
            report_id=report.id,
            name=report.name,
            total_pnl=report.total_pnl,
            win_rate=report.win_rate,
            trade_count=report.trade_count,
            winning_trades=winning,
            losing_trades=losing,
            profit_factor=_profit_factor(gross_profit, gross_loss),
            average_pnl=report.total_pnl / report.trade_count if report.trade_count else 0.0,
            average_win=report.average_win,
            average_loss=report.average_loss,
            largest_win=report.largest_win,
            largest_loss=report.largest_loss,
            risk_reward_ratio=report.risk_reward_ratio,
        )

    @staticmethod
    def calendar_month(trades: List[TradeRecord], year: int, month: int) -> Dict[str, CalendarDay]:
        """Trades and P&L per UTC day for one month, keyed by YYYY-MM-DD."""
        prefix = f"{year:04d}-{month:02d}-"
        days: Dict[str, CalendarDay] = {}
        for t in trades:
            if not t.day.startswith(prefix):
                continue
            entry = days.setdefault(t.day, CalendarDay(date=t.day))
            entry.trades.append(t)
            entry.pnl += t.pnl
        return dict(sorted(days.items()))


class StatisticsService:
    """
    Query surface for the presentation layer. Every call re-reads the store
    and recomputes from scratch.
    """

    def __init__(self, journal: JournalService):
        self.journal = journal

    def get_overall_statistics(self) -> TradeStatistics:
        return AnalyticsService.calculate_stats(self.journal.get_trades())

    # Dashboard name for the same numbers
    get_trade_statistics = get_overall_statistics

    def get_pnl_by_day(self) -> List[DailyPnl]:
        return AnalyticsService.pnl_by_day(self.journal.get_trades())

    def get_performance_by_strategy(self) -> List[StrategyPerformance]:
        return AnalyticsService.performance_by_strategy(self.journal.get_trades())

    def get_session_statistics(self) -> SessionMap:
        return AnalyticsService.session_statistics(self.journal.get_trades())

    def get_broker_report_statistics(self, report_id: str) -> Optional[BrokerReportStatistics]:
        report = self.journal.get_broker_report(report_id)
        if report is None:
            return None
        return AnalyticsService.broker_report_statistics(report)

    def get_calendar_month(self, year: int, month: int) -> Dict[str, CalendarDay]:
        return AnalyticsService.calendar_month(self.journal.get_trades(), year, month)
