from datetime import datetime
from tradebook.core.models import BrokerReport, TradeRecord, new_id

class BrokerReportBuilder:
    """
    Accumulates running totals over one import batch and builds its BrokerReport.
    Wins and losses are classified by the strict sign of pnl; flat trades count
    toward the trade count only.
    """

    def __init__(self):
        self.trade_count = 0
        self.total_pnl = 0.0
        self.win_count = 0
        self.win_sum = 0.0
        self.loss_count = 0
        self.loss_sum = 0.0
        self.largest_win = 0.0
        self.largest_loss = 0.0
        self.rr_sum = 0.0
        self.rr_count = 0

    def add(self, trade: TradeRecord) -> None:
        pnl = trade.pnl
        self.trade_count += 1
        self.total_pnl += pnl

        if pnl > 0:
            self.win_count += 1
            self.win_sum += pnl
            self.largest_win = max(self.largest_win, pnl)
        elif pnl < 0:
            self.loss_count += 1
            self.loss_sum += abs(pnl)
            self.largest_loss = max(self.largest_loss, abs(pnl))

        if trade.risk_reward is not None:
            self.rr_sum += trade.risk_reward
            self.rr_count += 1

    def build(self, created_at: datetime) -> BrokerReport:
        decided = self.win_count + self.loss_count
        win_rate = (self.win_count / decided) * 100 if decided else 0.0

        return BrokerReport(
            id=new_id(),
            name=f"Broker Report {created_at.date().isoformat()}",
            date=created_at,
            total_pnl=round(self.total_pnl, 2),
            win_rate=round(win_rate, 2),
            trade_count=self.trade_count,
            average_win=round(self.win_sum / self.win_count, 2) if self.win_count else 0.0,
            average_loss=round(self.loss_sum / self.loss_count, 2) if self.loss_count else 0.0,
            largest_win=round(self.largest_win, 2),
            largest_loss=round(self.largest_loss, 2),
            risk_reward_ratio=round(self.rr_sum / self.rr_count, 2) if self.rr_count else None,
        )
