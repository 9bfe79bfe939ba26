import os
from typing import List
import pandas as pd
from tradebook.config.logging import logger
from tradebook.core.models import TradeRecord, to_utc

EXPORT_HEADER = [
    "Symbol", "Date", "Direction", "Entry Price", "Exit Price", "Quantity",
    "Strategy", "P&L", "Session", "Risk:Reward", "Tags", "Notes",
]


def _clean_notes(notes: str) -> str:
    # Not real CSV escaping: the delimiter and line breaks are just swapped out
    return notes.replace(",", ";").replace("\r", " ").replace("\n", " ")


class ExportService:
    """
    Service for exporting the trade collection.
    """

    @staticmethod
    def to_csv(trades: List[TradeRecord]) -> str:
        lines = [",".join(EXPORT_HEADER)]
        for t in trades:
            lines.append(",".join([
                t.symbol,
                to_utc(t.timestamp).isoformat(),
                t.direction.value,
                str(t.entry_price),
                str(t.exit_price),
                str(t.quantity),
                t.strategy,
                f"{t.pnl:.2f}",
                t.session.value if t.session else "",
                str(t.risk_reward) if t.risk_reward is not None else "",
                ";".join(t.tags),
                _clean_notes(t.notes or ""),
            ]))
        return "\n".join(lines) + "\n"

    @staticmethod
    def write_csv(trades: List[TradeRecord], export_dir: str, file_name: str = "trades.csv") -> str:
        os.makedirs(export_dir, exist_ok=True)
        file_path = os.path.join(export_dir, file_name)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(ExportService.to_csv(trades))
        logger.info(f"Exported {len(trades)} trades to {file_path}")
        return file_path

    @staticmethod
    def monthly_pnl(trades: List[TradeRecord]) -> pd.Series:
        """
        Sums P&L per calendar month (UTC). Months without trades inside the
        covered range appear with 0.
        """
        if not trades:
            return pd.Series(dtype=float, name="PnL")

        df = pd.DataFrame(
            {"Timestamp": [to_utc(t.timestamp) for t in trades], "PnL": [t.pnl for t in trades]}
        )
        df["Timestamp"] = pd.to_datetime(df["Timestamp"], utc=True)
        df.set_index("Timestamp", inplace=True)

        # 'MS' labels each bucket with the first day of the month
        monthly = df["PnL"].astype(float).resample("MS").sum().round(2)
        monthly.index = monthly.index.strftime("%Y-%m")
        monthly.index.name = "Month"
        return monthly

    @staticmethod
    def write_monthly_report(trades: List[TradeRecord], export_dir: str, year: int) -> str:
        monthly = ExportService.monthly_pnl([t for t in trades if to_utc(t.timestamp).year == year])
        os.makedirs(export_dir, exist_ok=True)
        file_path = os.path.join(export_dir, f"pnl_report_{year}.csv")
        monthly.to_csv(file_path)
        logger.info(f"Successfully saved monthly report to {file_path}")
        return file_path
