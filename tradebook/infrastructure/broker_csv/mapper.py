import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple
import pandas as pd
from tradebook.core.exceptions import InvalidFormatError
from tradebook.core.models import Direction, Session, TradeRecord, new_id, to_utc

DELIMITER = ","
MIN_ROW_VALUES = 3

# 標題關鍵字 (小寫)。欄位以完全相符、底線前綴、包含關鍵字的順序比對
COL_SYMBOL = "symbol"
COL_PNL = "pnl"
COL_BUY_PRICE = "buyprice"
COL_SELL_PRICE = "sellprice"
COL_QTY = "qty"
COL_TICK_SIZE = "ticksize"
COL_BOUGHT_TS = "boughttimestamp"
COL_SOLD_TS = "soldtimestamp"
COL_DURATION = "duration"
COL_BUY_FILL_ID = "buyfillid"
COL_SELL_FILL_ID = "sellfillid"
COL_PRICE_FORMAT = "priceformat"          # 策略名稱 + 方向備援
COL_PRICE_FORMAT_TYPE = "priceformattype"  # 標籤

KNOWN_COLUMNS = [
    COL_SYMBOL, COL_PNL, COL_BUY_PRICE, COL_SELL_PRICE, COL_QTY, COL_TICK_SIZE,
    COL_BOUGHT_TS, COL_SOLD_TS, COL_DURATION, COL_BUY_FILL_ID, COL_SELL_FILL_ID,
    COL_PRICE_FORMAT, COL_PRICE_FORMAT_TYPE,
]

# (UTC 起始小時, 結束小時, 時段)，每段 4 小時，Asia 例外為 8 小時
SESSION_BANDS: List[Tuple[int, int, Session]] = [
    (0, 8, Session.ASIA),
    (8, 12, Session.LONDON),
    (12, 16, Session.NEW_YORK_AM),
    (16, 20, Session.NEW_YORK_PM),
    (20, 24, Session.LONDON_CLOSE),
]


def session_for_hour(hour: int) -> Session:
    for start, end, session in SESSION_BANDS:
        if start <= hour < end:
            return session
    raise ValueError(f"Hour out of range: {hour}")


def parse_pnl(raw: Optional[str]) -> float:
    """
    Parses '$53.00', '(19.00)', '$(19.00)' or '-19.00'.
    Parenthesized values are negative. Unparseable or non-finite input yields 0.
    """
    if not raw:
        return 0.0
    negative = raw.strip().startswith(("(", "$(")) and raw.strip().endswith(")")
    cleaned = raw.replace("(", "").replace(")", "").replace("$", "").strip()
    value = parse_float(cleaned)
    if negative and value > 0:
        value = -value
    return round(value, 2)


def parse_float(raw: Optional[str], default: float = 0.0) -> float:
    # float() 也接受 'nan' / 'inf'，這些值無法寫成合法 JSON
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def parse_price(raw: Optional[str]) -> float:
    """負數價格視為缺值"""
    value = parse_float(raw)
    return value if value >= 0 else 0.0


def parse_quantity(raw: Optional[str]) -> int:
    qty = int(parse_float(raw, 1))
    return qty if qty > 0 else 1


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """
    Parses a broker timestamp with pandas. Values without an offset are UTC.
    Returns None when absent or unparseable.
    """
    if not raw:
        return None
    try:
        ts = pd.to_datetime(raw, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return to_utc(ts.to_pydatetime())


class BrokerCsvMapper:
    """
    負責將券商匯出的 CSV 文字轉換為 TradeRecord。
    不支援引號或跳脫字元：以逗號直接切割，內文含逗號會造成欄位錯位。
    """

    def __init__(self, header_line: str):
        self.headers = [h.strip().lower() for h in header_line.split(DELIMITER)]
        self.columns = self._resolve_columns(self.headers)

    @staticmethod
    def split_lines(text: str) -> List[str]:
        return [line for line in text.splitlines() if line.strip()]

    @staticmethod
    def _resolve_columns(headers: List[str]) -> Dict[str, str]:
        columns: Dict[str, str] = {}
        for key in KNOWN_COLUMNS:
            if key in headers:
                columns[key] = key
            elif f"_{key}" in headers:
                columns[key] = f"_{key}"
            else:
                match = next((h for h in headers if key in h), None)
                if match is not None:
                    columns[key] = match
        return columns

    def validate(self) -> None:
        if COL_SYMBOL not in self.columns or COL_PNL not in self.columns:
            raise InvalidFormatError(
                "Invalid CSV format. The header row must contain 'symbol' and 'pnl' columns."
            )

    def to_row(self, line: str) -> Optional[Dict[str, str]]:
        """
        將一行資料對應到標題。少於 3 個值的行回傳 None；多出來的欄位忽略。
        """
        values = line.split(DELIMITER)
        if len(values) < MIN_ROW_VALUES:
            return None
        return {
            header: values[i].strip()
            for i, header in enumerate(self.headers)
            if i < len(values)
        }

    def _get(self, row: Dict[str, str], key: str) -> Optional[str]:
        header = self.columns.get(key)
        if header is None:
            return None
        value = row.get(header)
        return value if value else None

    def to_trade(self, row: Dict[str, str], imported_at: datetime) -> Optional[TradeRecord]:
        """
        依序推導欄位。沒有 symbol 的列回傳 None (略過，不算錯誤)。
        """
        symbol = self._get(row, COL_SYMBOL)
        if not symbol:
            return None

        pnl = parse_pnl(self._get(row, COL_PNL))
        entry_price = parse_price(self._get(row, COL_BUY_PRICE))
        exit_price = parse_price(self._get(row, COL_SELL_PRICE))
        price_format = self._get(row, COL_PRICE_FORMAT)

        if entry_price and exit_price:
            direction = Direction.LONG if exit_price > entry_price else Direction.SHORT
        else:
            direction = Direction.SHORT if parse_float(price_format) < 0 else Direction.LONG

        bought_raw = self._get(row, COL_BOUGHT_TS)
        bought_at = parse_timestamp(bought_raw)

        risk_reward = None
        tick_size = parse_float(self._get(row, COL_TICK_SIZE))
        if tick_size > 0 and pnl:
            risk_reward = abs(pnl) / (tick_size * 2)

        session = session_for_hour(bought_at.hour) if bought_at else None

        tag = self._get(row, COL_PRICE_FORMAT_TYPE)

        return TradeRecord(
            id=new_id(),
            symbol=symbol,
            timestamp=bought_at or imported_at,
            direction=direction,
            pnl=pnl,
            entry_price=entry_price,
            exit_price=exit_price,
            quantity=parse_quantity(self._get(row, COL_QTY)),
            strategy=price_format or "Unknown",
            tags=[tag] if tag else [],
            session=session,
            risk_reward=risk_reward,
            buy_fill_id=self._get(row, COL_BUY_FILL_ID),
            sell_fill_id=self._get(row, COL_SELL_FILL_ID),
            bought_timestamp=bought_raw,
            sold_timestamp=self._get(row, COL_SOLD_TS),
            duration=self._get(row, COL_DURATION),
        )
