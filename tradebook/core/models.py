import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class Session(str, Enum):
    """
    五個固定的市場時段 (以 UTC 小時劃分)。
    """
    ASIA = "Asia"
    LONDON = "London"
    NEW_YORK_AM = "New York AM"
    NEW_YORK_PM = "New York PM"
    LONDON_CLOSE = "London Close"


# 沒有時段資訊的交易一律歸類在 New York AM
DEFAULT_SESSION = Session.NEW_YORK_AM


def new_id() -> str:
    return uuid.uuid4().hex


def add_tag(tags: List[str], tag: str) -> List[str]:
    """Appends a trimmed tag unless it is blank or already present."""
    tag = tag.strip()
    if not tag or tag in tags:
        return list(tags)
    return [*tags, tag]


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class TradeRecord:
    """
    核心交易模型 (Domain Model)。
    代表一筆手動輸入或由 CSV 匯入的交易。
    pnl 是勝負判斷的唯一依據，統計時不會重新計算。
    """
    id: str                # 唯一識別碼，建立後不可變
    symbol: str            # 商品代號 (e.g., "AAPL")
    timestamp: datetime    # 交易時間 (UTC)
    direction: Direction   # long / short
    pnl: float             # 已實現損益，四捨五入至小數兩位
    entry_price: float = 0.0
    exit_price: float = 0.0
    quantity: int = 1
    strategy: str = "Unknown"
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    session: Optional[Session] = None
    risk_reward: Optional[float] = None

    # 匯入來源欄位，只做顯示用途，不參與統計
    buy_fill_id: Optional[str] = None
    sell_fill_id: Optional[str] = None
    bought_timestamp: Optional[str] = None
    sold_timestamp: Optional[str] = None
    duration: Optional[str] = None

    def is_win(self) -> bool:
        return self.pnl > 0

    def is_loss(self) -> bool:
        return self.pnl < 0

    @property
    def day(self) -> str:
        """Calendar day (UTC) as YYYY-MM-DD."""
        return to_utc(self.timestamp).date().isoformat()

    @property
    def effective_session(self) -> Session:
        return self.session or DEFAULT_SESSION

    def with_tag(self, tag: str) -> "TradeRecord":
        return replace(self, tags=add_tag(self.tags, tag))

    def without_tag(self, tag: str) -> "TradeRecord":
        return replace(self, tags=[t for t in self.tags if t != tag])


@dataclass(frozen=True)
class BrokerReport:
    """
    單次 CSV 匯入的摘要報告。
    建立後不可變；刪除報告不會連帶刪除其交易。
    """
    id: str
    name: str
    date: datetime
    total_pnl: float
    win_rate: float
    trade_count: int
    average_win: float
    average_loss: float     # 正值 (虧損幅度)
    largest_win: float
    largest_loss: float     # 正值 (虧損幅度)
    risk_reward_ratio: Optional[float] = None


@dataclass(frozen=True)
class TradeStatistics:
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    profit_factor: float = 0.0
    total_pnl: float = 0.0
    average_pnl: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    average_risk_reward: float = 0.0


@dataclass(frozen=True)
class DailyPnl:
    date: str
    pnl: float


@dataclass(frozen=True)
class StrategyPerformance:
    strategy: str
    win_rate: float
    pnl: float
    trade_count: int


@dataclass
class SessionStatistics:
    count: int = 0
    pnl: float = 0.0
    win_count: int = 0
    loss_count: int = 0


@dataclass(frozen=True)
class BrokerReportStatistics:
    report_id: str
    name: str
    total_pnl: float
    win_rate: float
    trade_count: int
    winning_trades: int
    losing_trades: int
    profit_factor: float
    average_pnl: float
    average_win: float
    average_loss: float
    largest_win: float
    largest_loss: float
    risk_reward_ratio: Optional[float] = None


@dataclass
class CalendarDay:
    date: str
    pnl: float = 0.0
    trades: List[TradeRecord] = field(default_factory=list)


class ImportErrorKind(str, Enum):
    INVALID_FORMAT = "InvalidFormat"
    NO_VALID_ROWS = "NoValidRows"
    PARSE_ERROR = "ParseError"


@dataclass(frozen=True)
class ImportResult:
    """
    CSV 匯入結果。成功時帶回新的交易集合與報告集合；失敗時只有錯誤訊息。
    """
    success: bool
    trades: List[TradeRecord] = field(default_factory=list)
    reports: List[BrokerReport] = field(default_factory=list)
    report: Optional[BrokerReport] = None
    imported_count: int = 0
    error: Optional[ImportErrorKind] = None
    message: str = ""

    @classmethod
    def failure(cls, error: ImportErrorKind, message: str) -> "ImportResult":
        return cls(success=False, error=error, message=message)


SessionMap = Dict[Session, SessionStatistics]
