from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from tradebook.config.logging import logger
from tradebook.config.settings import get_settings
from tradebook.core.exceptions import RecordNotFoundError, StorageError, ValidationError
from tradebook.core.models import BrokerReport, Direction, Session, TradeRecord, new_id, to_utc
from tradebook.core.sample_data import sample_trades
from tradebook.infrastructure.storage.base import RecordStore
from tradebook.infrastructure.storage.client import JsonFileStore
from tradebook.infrastructure.storage.mapper import StorageMapper

SORT_FIELDS = ("date", "symbol", "strategy", "direction", "pnl")


class JournalService:
    """
    交易日誌的資料存取層：交易集合與券商報告集合，以及所有寫入操作。
    每次讀取都直接從 store 取得最新資料，不做快取。
    """

    def __init__(self, store: Optional[RecordStore] = None):
        cfg = get_settings()
        self.store = store or JsonFileStore(cfg.DATA_DIR)
        self.trades_key = cfg.TRADES_COLLECTION
        self.reports_key = cfg.REPORTS_COLLECTION
        self.seed_sample_data = cfg.SEED_SAMPLE_DATA
        self._listeners: List[Callable[[str], None]] = []

    # --- change notification ---

    def subscribe(self, callback: Callable[[str], None]) -> None:
        """callback(event) is invoked after each successful mutation."""
        self._listeners.append(callback)

    def _notify(self, event: str) -> None:
        for callback in self._listeners:
            callback(event)

    # --- trades ---

    def get_trades(self) -> List[TradeRecord]:
        raw = self.store.load(self.trades_key)
        if raw is None:
            if not self.seed_sample_data:
                return []
            logger.info("No stored trades found. Initializing with sample data.")
            trades = sample_trades()
            self.save_trades(trades)
            return trades
        return self._parse_records(raw, StorageMapper.dict_to_trade, "trade")

    def save_trades(self, trades: List[TradeRecord]) -> None:
        self.store.save(self.trades_key, [StorageMapper.trade_to_dict(t) for t in trades])

    def get_trade(self, trade_id: str) -> Optional[TradeRecord]:
        return next((t for t in self.get_trades() if t.id == trade_id), None)

    def add_trade(
        self,
        symbol: str,
        pnl: float,
        direction,
        timestamp: Optional[datetime] = None,
        **fields: Any,
    ) -> TradeRecord:
        """建立新交易並放在集合最前面，回傳含 id 的交易"""
        if fields.get("session"):
            fields["session"] = Session(fields["session"])
        trade = TradeRecord(
            id=new_id(),
            symbol=symbol.strip(),
            timestamp=to_utc(timestamp or datetime.now(timezone.utc)),
            direction=Direction(direction),
            pnl=round(float(pnl), 2),
            **fields,
        )
        self._validate(trade)

        self.save_trades([trade, *self.get_trades()])
        logger.info(f"Added trade {trade.id} ({trade.symbol}, pnl {trade.pnl}).")
        self._notify("trade_added")
        return trade

    def update_trade(self, trade: TradeRecord) -> TradeRecord:
        trade = replace(trade, timestamp=to_utc(trade.timestamp), pnl=round(trade.pnl, 2))
        self._validate(trade)

        trades = self.get_trades()
        if not any(t.id == trade.id for t in trades):
            raise RecordNotFoundError(f"Trade {trade.id} does not exist")

        self.save_trades([trade if t.id == trade.id else t for t in trades])
        logger.info(f"Updated trade {trade.id}.")
        self._notify("trade_updated")
        return trade

    def delete_trade(self, trade_id: str) -> None:
        trades = self.get_trades()
        remaining = [t for t in trades if t.id != trade_id]
        if len(remaining) == len(trades):
            logger.warning(f"Trade {trade_id} not found, nothing to delete.")
            return
        self.save_trades(remaining)
        logger.info(f"Deleted trade {trade_id}.")
        self._notify("trade_deleted")

    def sorted_trades(self, field: str = "date", descending: bool = True) -> List[TradeRecord]:
        if field not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")

        def sort_key(trade: TradeRecord):
            if field == "date":
                return to_utc(trade.timestamp)
            if field == "pnl":
                return trade.pnl
            if field == "direction":
                return trade.direction.value
            return getattr(trade, field).lower()

        return sorted(self.get_trades(), key=sort_key, reverse=descending)

    @staticmethod
    def _validate(trade: TradeRecord) -> None:
        if not trade.symbol:
            raise ValidationError("Symbol is required")
        if trade.entry_price < 0 or trade.exit_price < 0:
            raise ValidationError("Prices must not be negative")
        if trade.quantity < 1:
            raise ValidationError("Quantity must be a positive integer")
        if trade.risk_reward is not None and trade.risk_reward <= 0:
            raise ValidationError("Risk:reward must be positive")

    # --- broker reports ---

    def get_broker_reports(self) -> List[BrokerReport]:
        raw = self.store.load(self.reports_key)
        if raw is None:
            return []
        return self._parse_records(raw, StorageMapper.dict_to_report, "broker report")

    def save_broker_reports(self, reports: List[BrokerReport]) -> None:
        self.store.save(self.reports_key, [StorageMapper.report_to_dict(r) for r in reports])

    def get_broker_report(self, report_id: str) -> Optional[BrokerReport]:
        return next((r for r in self.get_broker_reports() if r.id == report_id), None)

    def delete_broker_report(self, report_id: str) -> None:
        """
        只刪除報告本身，該次匯入的交易保持不變 (沒有外鍵關聯)。
        """
        reports = self.get_broker_reports()
        remaining = [r for r in reports if r.id != report_id]
        if len(remaining) == len(reports):
            logger.warning(f"Broker report {report_id} not found, nothing to delete.")
            return
        self.save_broker_reports(remaining)
        logger.info(f"Deleted broker report {report_id}. Its trades were kept.")
        self._notify("report_deleted")

    def append_import(self, trades: List[TradeRecord], report: BrokerReport):
        """
        匯入成功後一次寫入：新交易放在既有交易前面，報告加在報告集合最後。
        報告寫入失敗時還原交易集合，不留下部分結果。
        """
        previous_trades = self.get_trades()
        all_trades = [*trades, *previous_trades]
        reports = [*self.get_broker_reports(), report]

        self.save_trades(all_trades)
        try:
            self.save_broker_reports(reports)
        except StorageError:
            logger.error("Saving the broker report failed. Restoring the previous trades.")
            self.save_trades(previous_trades)
            raise
        self._notify("csv_imported")
        return all_trades, reports

    @staticmethod
    def _parse_records(raw: List[Dict[str, Any]], convert, kind: str) -> list:
        parsed = []
        for item in raw:
            try:
                parsed.append(convert(item))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                item_id = item.get("id", "N/A") if isinstance(item, dict) else "N/A"
                logger.warning(f"Skipping stored {kind} {item_id} due to parsing error: {e}")
                continue
        return parsed
