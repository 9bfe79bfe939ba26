import json
from datetime import datetime, timezone

from tradebook.core.models import BrokerReport, Direction, Session, TradeRecord
from tradebook.infrastructure.storage.client import InMemoryStore, JsonFileStore
from tradebook.infrastructure.storage.mapper import StorageMapper
from tradebook.services.journal import JournalService


def test_file_store_missing_collection(tmp_path):
    assert JsonFileStore(str(tmp_path)).load("trades") is None


def test_file_store_save_and_load(tmp_path):
    store = JsonFileStore(str(tmp_path / "data"))
    store.save("trades", [{"id": "1", "tags": ["a"]}])

    assert store.load("trades") == [{"id": "1", "tags": ["a"]}]
    assert json.loads((tmp_path / "data" / "trades.json").read_text(encoding="utf-8"))[0]["id"] == "1"


def test_file_store_corrupt_file_is_absent(tmp_path):
    (tmp_path / "trades.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "brokerReports.json").write_text('{"id": 1}', encoding="utf-8")

    store = JsonFileStore(str(tmp_path))
    assert store.load("trades") is None
    assert store.load("brokerReports") is None


def test_corrupt_trades_reinitialize_with_sample_data(tmp_path):
    (tmp_path / "trades.json").write_text("garbage", encoding="utf-8")

    trades = JournalService(JsonFileStore(str(tmp_path))).get_trades()

    assert len(trades) == 6
    assert len(json.loads((tmp_path / "trades.json").read_text(encoding="utf-8"))) == 6


def test_in_memory_store_copies_records():
    store = InMemoryStore()
    records = [{"id": "1", "tags": []}]
    store.save("trades", records)
    records[0]["tags"].append("changed")

    loaded = store.load("trades")
    loaded[0]["id"] = "other"
    assert store.load("trades") == [{"id": "1", "tags": []}]


def test_trade_mapping_keeps_optional_fields():
    trade = TradeRecord(
        id="abc",
        symbol="ES",
        timestamp=datetime(2025, 4, 1, 9, 30, tzinfo=timezone.utc),
        direction=Direction.SHORT,
        pnl=-12.5,
        quantity=2,
        tags=["scalp"],
        session=Session.LONDON,
        risk_reward=25.0,
        buy_fill_id="1",
        duration="5min",
    )
    data = StorageMapper.trade_to_dict(trade)

    assert data["date"] == "2025-04-01T09:30:00+00:00"
    assert data["session"] == "London"
    assert data["riskReward"] == 25.0
    assert "sellFillId" not in data
    assert StorageMapper.dict_to_trade(json.loads(json.dumps(data))) == trade


def test_trade_mapping_omits_absent_optionals():
    data = StorageMapper.trade_to_dict(TradeRecord(
        id="x", symbol="NQ", timestamp=datetime(2025, 1, 2, tzinfo=timezone.utc),
        direction=Direction.LONG, pnl=1.0,
    ))
    assert "session" not in data
    assert "riskReward" not in data
    assert data["tags"] == []


def test_report_mapping():
    report = BrokerReport(
        id="r1", name="Broker Report 2025-04-01", date=datetime(2025, 4, 1, tzinfo=timezone.utc),
        total_pnl=34.0, win_rate=50.0, trade_count=2, average_win=53.0, average_loss=19.0,
        largest_win=53.0, largest_loss=19.0,
    )
    data = StorageMapper.report_to_dict(report)

    assert data["totalPnl"] == 34.0
    assert "riskRewardRatio" not in data
    assert StorageMapper.dict_to_report(data) == report
