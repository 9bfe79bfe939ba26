from datetime import datetime, timezone
from typing import List
from tradebook.core.models import Direction, TradeRecord

def _at(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)

def sample_trades() -> List[TradeRecord]:
    """
    第一次讀取交易集合 (或資料損毀) 時寫入的範例資料。
    每次呼叫都回傳新的清單。
    """
    return [
        TradeRecord(
            id="1",
            symbol="AAPL",
            timestamp=_at("2025-04-01T09:30:00"),
            direction=Direction.LONG,
            entry_price=198.45,
            exit_price=203.75,
            quantity=10,
            strategy="Breakout",
            notes="Strong market open, followed momentum after earnings announcement.",
            tags=["momentum", "earnings"],
            pnl=53.00,
        ),
        TradeRecord(
            id="2",
            symbol="TSLA",
            timestamp=_at("2025-04-02T10:15:00"),
            direction=Direction.SHORT,
            entry_price=172.30,
            exit_price=168.50,
            quantity=5,
            strategy="Reversal",
            notes="Technical overbought signal on hourly chart.",
            tags=["technical", "overbought"],
            pnl=19.00,
        ),
        TradeRecord(
            id="3",
            symbol="MSFT",
            timestamp=_at("2025-04-03T11:05:00"),
            direction=Direction.LONG,
            entry_price=415.20,
            exit_price=410.75,
            quantity=3,
            strategy="Gap Fill",
            notes="Trade didn't work out, market reversed shortly after entry.",
            tags=["gap fill", "loss"],
            pnl=-13.35,
        ),
        TradeRecord(
            id="4",
            symbol="AMZN",
            timestamp=_at("2025-04-03T13:45:00"),
            direction=Direction.LONG,
            entry_price=185.30,
            exit_price=186.75,
            quantity=15,
            strategy="Support Bounce",
            notes="Took profit too early, stock continued higher afterward.",
            tags=["support", "partial profit"],
            pnl=21.75,
        ),
        TradeRecord(
            id="5",
            symbol="META",
            timestamp=_at("2025-04-04T09:45:00"),
            direction=Direction.SHORT,
            entry_price=493.80,
            exit_price=498.25,
            quantity=8,
            strategy="Trend Fade",
            notes="Poor trade, market was in strong uptrend.",
            tags=["countertrend", "loss"],
            pnl=-35.60,
        ),
        TradeRecord(
            id="6",
            symbol="NVDA",
            timestamp=_at("2025-04-05T14:30:00"),
            direction=Direction.LONG,
            entry_price=932.50,
            exit_price=945.75,
            quantity=2,
            strategy="Breakout",
            notes="Clean break of resistance level, held for afternoon run.",
            tags=["momentum", "breakout"],
            pnl=26.50,
        ),
    ]
