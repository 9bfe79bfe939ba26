from datetime import datetime, timezone
from typing import List, Optional
from tradebook.config.logging import logger
from tradebook.core.exceptions import InvalidFormatError, NoValidRowsError
from tradebook.core.models import ImportErrorKind, ImportResult, TradeRecord
from tradebook.infrastructure.broker_csv.mapper import BrokerCsvMapper
from tradebook.services.journal import JournalService
from tradebook.services.report_builder import BrokerReportBuilder

class ImportService:
    """
    負責協調 CSV 解析、報告建立與寫入。
    import_csv 永遠不拋出例外：失敗時回傳帶錯誤類型的結果，且不寫入任何資料。
    """

    def __init__(self, journal: JournalService):
        self.journal = journal

    def import_csv(self, text: str, now: Optional[datetime] = None) -> ImportResult:
        imported_at = now or datetime.now(timezone.utc)
        logger.info("Starting CSV import...")

        try:
            trades, builder = self._normalize(text, imported_at)
        except InvalidFormatError as e:
            logger.warning(f"CSV import rejected: {e}")
            return ImportResult.failure(ImportErrorKind.INVALID_FORMAT, str(e))
        except NoValidRowsError as e:
            logger.warning(f"CSV import rejected: {e}")
            return ImportResult.failure(ImportErrorKind.NO_VALID_ROWS, str(e))
        except Exception as e:
            logger.error(f"CSV import failed while parsing: {e}")
            return ImportResult.failure(
                ImportErrorKind.PARSE_ERROR,
                "Failed to parse CSV file. Please check the format and try again.",
            )

        report = builder.build(imported_at)
        try:
            all_trades, reports = self.journal.append_import(trades, report)
        except Exception as e:
            logger.error(f"Failed to save imported trades: {e}")
            return ImportResult.failure(ImportErrorKind.PARSE_ERROR, f"Failed to save imported data: {e}")

        logger.info(f"Imported {len(trades)} trades. Report {report.id} total P&L {report.total_pnl}.")
        return ImportResult(
            success=True,
            trades=all_trades,
            reports=reports,
            report=report,
            imported_count=len(trades),
            message=f"Successfully imported {len(trades)} trades",
        )

    @staticmethod
    def _normalize(text: str, imported_at: datetime):
        lines = BrokerCsvMapper.split_lines(text or "")
        if not lines:
            raise InvalidFormatError("The file is empty.")

        mapper = BrokerCsvMapper(lines[0])
        mapper.validate()

        trades: List[TradeRecord] = []
        builder = BrokerReportBuilder()
        for line in lines[1:]:
            row = mapper.to_row(line)
            if row is None:
                continue
            trade = mapper.to_trade(row, imported_at)
            if trade is None:
                continue
            trades.append(trade)
            builder.add(trade)

        if not trades:
            raise NoValidRowsError("No valid trades found in the CSV file.")
        return trades, builder
