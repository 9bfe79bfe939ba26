from datetime import datetime
from typing import Any, Dict
from tradebook.core.models import BrokerReport, Direction, Session, TradeRecord, to_utc

class StorageMapper:
    """
    負責 Domain Models 與儲存格式 (camelCase JSON) 之間的轉換。
    注意：欄位名稱必須與既有的資料檔一致。
    """

    @staticmethod
    def trade_to_dict(trade: TradeRecord) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": trade.id,
            "symbol": trade.symbol,
            "date": to_utc(trade.timestamp).isoformat(),
            "direction": trade.direction.value,
            "entryPrice": trade.entry_price,
            "exitPrice": trade.exit_price,
            "quantity": trade.quantity,
            "strategy": trade.strategy,
            "notes": trade.notes,
            "tags": list(trade.tags),
            "pnl": trade.pnl,
        }
        # 選填欄位：沒有值就不寫入
        optional = {
            "session": trade.session.value if trade.session else None,
            "riskReward": trade.risk_reward,
            "buyFillId": trade.buy_fill_id,
            "sellFillId": trade.sell_fill_id,
            "boughtTimestamp": trade.bought_timestamp,
            "soldTimestamp": trade.sold_timestamp,
            "duration": trade.duration,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        return data

    @staticmethod
    def dict_to_trade(raw: Dict[str, Any]) -> TradeRecord:
        """
        將儲存的 dict 轉回 TradeRecord。缺少必要欄位時拋出 KeyError / ValueError。
        """
        session = raw.get("session")
        risk_reward = raw.get("riskReward")
        return TradeRecord(
            id=str(raw["id"]),
            symbol=raw["symbol"],
            timestamp=to_utc(datetime.fromisoformat(raw["date"].replace("Z", "+00:00"))),
            direction=Direction(raw.get("direction", Direction.LONG.value)),
            entry_price=float(raw.get("entryPrice", 0)),
            exit_price=float(raw.get("exitPrice", 0)),
            quantity=int(raw.get("quantity", 1)),
            strategy=raw.get("strategy", "Unknown"),
            notes=raw.get("notes") or "",
            tags=list(raw.get("tags") or []),
            pnl=float(raw["pnl"]),
            session=Session(session) if session else None,
            risk_reward=float(risk_reward) if risk_reward is not None else None,
            buy_fill_id=raw.get("buyFillId"),
            sell_fill_id=raw.get("sellFillId"),
            bought_timestamp=raw.get("boughtTimestamp"),
            sold_timestamp=raw.get("soldTimestamp"),
            duration=raw.get("duration"),
        )

    @staticmethod
    def report_to_dict(report: BrokerReport) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": report.id,
            "name": report.name,
            "date": to_utc(report.date).isoformat(),
            "totalPnl": report.total_pnl,
            "winRate": report.win_rate,
            "tradeCount": report.trade_count,
            "averageWin": report.average_win,
            "averageLoss": report.average_loss,
            "largestWin": report.largest_win,
            "largestLoss": report.largest_loss,
        }
        if report.risk_reward_ratio is not None:
            data["riskRewardRatio"] = report.risk_reward_ratio
        return data

    @staticmethod
    def dict_to_report(raw: Dict[str, Any]) -> BrokerReport:
        ratio = raw.get("riskRewardRatio")
        return BrokerReport(
            id=str(raw["id"]),
            name=raw.get("name", ""),
            date=to_utc(datetime.fromisoformat(raw["date"].replace("Z", "+00:00"))),
            total_pnl=float(raw.get("totalPnl", 0)),
            win_rate=float(raw.get("winRate", 0)),
            trade_count=int(raw.get("tradeCount", 0)),
            average_win=float(raw.get("averageWin", 0)),
            average_loss=float(raw.get("averageLoss", 0)),
            largest_win=float(raw.get("largestWin", 0)),
            largest_loss=float(raw.get("largestLoss", 0)),
            risk_reward_ratio=float(ratio) if ratio is not None else None,
        )
