import json
from datetime import datetime, timezone

import pytest

from tradebook.core.exceptions import StorageError
from tradebook.core.models import Direction, ImportErrorKind, Session
from tradebook.infrastructure.broker_csv.mapper import (
    BrokerCsvMapper,
    parse_pnl,
    parse_quantity,
    parse_timestamp,
    session_for_hour,
)
from tradebook.infrastructure.storage.client import InMemoryStore
from tradebook.services.importer import ImportService
from tradebook.services.journal import JournalService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

HEADER = (
    "symbol,_priceFormat,_priceFormatType,_tickSize,buyFillId,sellFillId,"
    "qty,buyPrice,sellPrice,pnl,boughtTimestamp,soldTimestamp,duration"
)
AAPL_ROW = "AAPL,-2,0,0.25,101,102,1,100,110,$53.00,04/01/2025 09:30:00,04/01/2025 09:45:00,15min"
TSLA_ROW = "TSLA,-2,0,0.25,103,104,2,110,100,-19.00,04/01/2025 14:10:00,04/01/2025 14:30:00,20min"
CSV_TEXT = "\n".join([HEADER, AAPL_ROW, TSLA_ROW]) + "\n"


def test_import_builds_report_from_rows(importer):
    result = importer.import_csv(CSV_TEXT, now=NOW)

    assert result.success
    assert result.imported_count == 2
    report = result.report
    assert report.total_pnl == 34.00
    assert report.win_rate == 50.0
    assert report.trade_count == 2
    assert report.average_win == 53.00
    assert report.average_loss == 19.00
    assert report.largest_win == 53.00
    assert report.largest_loss == 19.00
    assert report.risk_reward_ratio == 72.0
    assert report.name == "Broker Report 2026-10-19"


def test_import_persists_trades_and_report(importer, empty_journal):
    result = importer.import_csv(CSV_TEXT, now=NOW)

    stored = empty_journal.get_trades()
    assert [t.symbol for t in stored] == ["AAPL", "TSLA"]
    assert [r.id for r in empty_journal.get_broker_reports()] == [result.report.id]


def test_import_derives_fields(importer):
    aapl, tsla = importer.import_csv(CSV_TEXT, now=NOW).trades

    assert aapl.direction == Direction.LONG
    assert aapl.entry_price == 100.0
    assert aapl.exit_price == 110.0
    assert aapl.session == Session.LONDON
    assert aapl.timestamp == datetime(2025, 4, 1, 9, 30, tzinfo=timezone.utc)
    assert aapl.risk_reward == pytest.approx(106.0)
    assert aapl.strategy == "-2"
    assert aapl.tags == ["0"]
    assert aapl.buy_fill_id == "101"
    assert aapl.duration == "15min"

    assert tsla.direction == Direction.SHORT
    assert tsla.quantity == 2
    assert tsla.pnl == -19.00
    assert tsla.session == Session.NEW_YORK_AM


def test_imported_trades_go_ahead_of_existing(journal):
    before = journal.get_trades()
    result = ImportService(journal).import_csv(CSV_TEXT, now=NOW)

    assert len(result.trades) == len(before) + 2
    assert [t.symbol for t in result.trades[:2]] == ["AAPL", "TSLA"]
    assert [t.id for t in result.trades[2:]] == [t.id for t in before]


def test_reimport_is_not_deduplicated(importer, empty_journal):
    first = importer.import_csv(CSV_TEXT, now=NOW)
    second = importer.import_csv(CSV_TEXT, now=NOW)

    assert first.report.id != second.report.id
    assert len(empty_journal.get_broker_reports()) == 2
    assert len(empty_journal.get_trades()) == 4
    assert len({t.id for t in empty_journal.get_trades()}) == 4


def test_missing_pnl_header_is_invalid_format(journal):
    before = journal.get_trades()
    text = "symbol,buyPrice,sellPrice\nAAPL,100,110\n"

    result = ImportService(journal).import_csv(text, now=NOW)

    assert not result.success
    assert result.error == ImportErrorKind.INVALID_FORMAT
    assert result.message
    assert [t.id for t in journal.get_trades()] == [t.id for t in before]
    assert journal.get_broker_reports() == []


def test_empty_text_is_invalid_format(importer):
    assert importer.import_csv("", now=NOW).error == ImportErrorKind.INVALID_FORMAT


def test_header_only_has_no_valid_rows(importer, empty_journal):
    result = importer.import_csv(HEADER + "\n", now=NOW)

    assert result.error == ImportErrorKind.NO_VALID_ROWS
    assert empty_journal.get_broker_reports() == []


def test_rows_without_symbol_are_skipped(importer):
    text = "\n".join([HEADER, ",-2,0,0.25,1,2,1,100,110,5.00,,,", "", AAPL_ROW])
    result = importer.import_csv(text, now=NOW)

    assert result.imported_count == 1
    assert result.report.trade_count == 1


def test_all_rows_without_symbol_fail(importer):
    text = "\n".join([HEADER, ",-2,0,0.25,1,2,1,100,110,5.00,,,"])
    assert importer.import_csv(text, now=NOW).error == ImportErrorKind.NO_VALID_ROWS


def test_short_rows_are_ignored(importer):
    text = "\n".join(["symbol,pnl,qty", "AAPL,5", "MSFT,7.5,3"])
    result = importer.import_csv(text, now=NOW)

    assert [t.symbol for t in result.trades] == ["MSFT"]


def test_unexpected_error_becomes_parse_error(importer, empty_journal, monkeypatch):
    def boom(self, row, imported_at):
        raise RuntimeError("bad row")

    monkeypatch.setattr(BrokerCsvMapper, "to_trade", boom)
    result = importer.import_csv(CSV_TEXT, now=NOW)

    assert result.error == ImportErrorKind.PARSE_ERROR
    assert empty_journal.get_trades() == []


def test_minimal_columns_use_defaults(importer):
    text = "Symbol,Net PnL,Notes\nES,(12.50),x\n"
    trade = importer.import_csv(text, now=NOW).trades[0]

    assert trade.pnl == -12.50
    assert trade.timestamp == NOW
    assert trade.session is None
    assert trade.risk_reward is None
    assert trade.quantity == 1
    assert trade.strategy == "Unknown"
    assert trade.tags == []
    assert trade.entry_price == 0.0


def test_direction_falls_back_to_price_format_sign(importer):
    text = "\n".join([
        "symbol,_priceFormat,pnl",
        "NQ,-2,10",
        "ES,2,10",
    ])
    nq, es = importer.import_csv(text, now=NOW).trades

    assert nq.direction == Direction.SHORT
    assert es.direction == Direction.LONG


@pytest.mark.parametrize("buy,sell,expected", [
    ("100", "110", Direction.LONG),
    ("110", "100", Direction.SHORT),
    ("100", "100", Direction.SHORT),
])
def test_direction_from_prices(importer, buy, sell, expected):
    text = f"symbol,buyPrice,sellPrice,pnl\nAAPL,{buy},{sell},1\n"
    assert importer.import_csv(text, now=NOW).trades[0].direction == expected


def test_zero_pnl_has_no_risk_reward(importer):
    text = "symbol,_tickSize,pnl\nES,0.25,0\n"
    result = importer.import_csv(text, now=NOW)

    assert result.trades[0].risk_reward is None
    assert result.report.risk_reward_ratio is None
    assert result.report.win_rate == 0


def test_excess_values_are_ignored(importer):
    text = "symbol,pnl,qty\nAAPL,5,2,extra,values\n"
    trade = importer.import_csv(text, now=NOW).trades[0]
    assert trade.quantity == 2


@pytest.mark.parametrize("hour,session", [
    (0, Session.ASIA),
    (7, Session.ASIA),
    (8, Session.LONDON),
    (11, Session.LONDON),
    (12, Session.NEW_YORK_AM),
    (16, Session.NEW_YORK_PM),
    (19, Session.NEW_YORK_PM),
    (20, Session.LONDON_CLOSE),
    (23, Session.LONDON_CLOSE),
])
def test_session_bands(hour, session):
    assert session_for_hour(hour) == session


def test_session_uses_utc_hour(importer):
    text = "symbol,pnl,boughtTimestamp\nAAPL,5,2025-04-01T23:30:00-05:00\n"
    trade = importer.import_csv(text, now=NOW).trades[0]

    assert trade.session == Session.ASIA
    assert trade.day == "2025-04-02"


@pytest.mark.parametrize("raw,expected", [
    ("$53.00", 53.00),
    ("-19.00", -19.00),
    ("(19.00)", -19.00),
    ("$(19.00)", -19.00),
    ("12.346", 12.35),
    ("abc", 0.0),
    ("", 0.0),
    (None, 0.0),
    ("nan", 0.0),
    ("inf", 0.0),
    ("-Infinity", 0.0),
    ("$(nan)", 0.0),
])
def test_parse_pnl(raw, expected):
    assert parse_pnl(raw) == expected


def test_parse_quantity_defaults_to_one():
    assert parse_quantity("3") == 3
    assert parse_quantity("0") == 1
    assert parse_quantity("n/a") == 1
    assert parse_quantity(None) == 1
    assert parse_quantity("inf") == 1


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_non_finite_values_are_not_imported(importer, empty_journal):
    text = "symbol,pnl,qty,_tickSize\nA,nan,1,inf\nB,10,inf,0.25\n"
    result = importer.import_csv(text, now=NOW)

    a, b = result.trades
    assert a.pnl == 0.0
    assert a.risk_reward is None
    assert b.quantity == 1
    assert result.report.total_pnl == 10.0
    assert json.loads(json.dumps(empty_journal.store.load("brokerReports"), allow_nan=False))


def test_negative_prices_are_treated_as_missing(importer):
    text = "symbol,_priceFormat,buyPrice,sellPrice,pnl\nES,-2,-100,110,5\n"
    trade = importer.import_csv(text, now=NOW).trades[0]

    assert trade.entry_price == 0.0
    assert trade.exit_price == 110.0
    assert trade.direction == Direction.SHORT


class FailingStore(InMemoryStore):
    def __init__(self, failing_collection, initial=None):
        super().__init__(initial)
        self.failing_collection = failing_collection

    def save(self, name, records):
        if name == self.failing_collection:
            raise StorageError(f"{name} is read-only")
        super().save(name, records)


@pytest.mark.parametrize("failing_collection", ["trades", "brokerReports"])
def test_failed_save_leaves_store_unchanged(failing_collection):
    store = FailingStore(failing_collection, {"trades": [], "brokerReports": []})
    journal = JournalService(store)

    result = ImportService(journal).import_csv("symbol,pnl,qty\nAAPL,5,1\n", now=NOW)

    assert not result.success
    assert result.error == ImportErrorKind.PARSE_ERROR
    assert store.load("trades") == []
    assert store.load("brokerReports") == []
