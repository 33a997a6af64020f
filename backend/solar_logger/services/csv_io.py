import csv
import io
import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, List, Sequence

from solar_logger.constants import DATE_FORMAT, POWER_STATION_CONFIGS, StationConfig
from solar_logger.models.record import DailyPowerRecord
from solar_logger.services.records import compute_record, sort_records

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TEMPLATE_EXAMPLE_ROW = ["2024-07-21", "50", "60-12", "75", "40+10"]


def is_calendar_date(value: str) -> bool:
    """True for a real date written as YYYY-MM-DD."""
    if not DATE_RE.match(value):
        return False
    try:
        datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return False
    return True


class CsvImportError(ValueError):
    """The file as a whole cannot be imported (no data rows, missing header)."""


@dataclass
class CsvImportResult:
    records: List[DailyPowerRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.warnings)


def input_column(config: StationConfig) -> str:
    return f"{config.id.value}_Input"


def _write_rows(rows: Iterable[Sequence[str]]) -> str:
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerows(rows)
    return out.getvalue()


def export_records_to_csv(
    records: Iterable[DailyPowerRecord],
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> str:
    """Render records as CSV text, oldest first, totals to two decimals."""
    header = ["Date", *[input_column(c) for c in configs], "TotalWhGenerated"]
    rows = [header]
    for record in sort_records(records, descending=False):
        row = [record.date]
        for config in configs:
            data = record.station_data.get(config.id)
            row.append(data.input if data else "")
        row.append(f"{record.total_wh_generated:.2f}")
        rows.append(row)
    return _write_rows(rows)


def csv_template(configs: Sequence[StationConfig] = POWER_STATION_CONFIGS) -> str:
    header = ["Date", *[input_column(c) for c in configs]]
    return _write_rows([header, TEMPLATE_EXAMPLE_ROW[: len(header)]])


def export_filename(today: date) -> str:
    return f"solar_power_records_{today.strftime(DATE_FORMAT)}.csv"


def import_records_from_csv(
    text: str,
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> CsvImportResult:
    """Parse CSV text into computed records.

    Raises:
        CsvImportError: no data rows, or a required column is missing.
    Rows with a malformed date are skipped and reported in ``warnings``.
    """
    rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        raise CsvImportError("CSV file is empty or has no data rows.")

    header = [cell.strip().lower() for cell in rows[0]]
    if "date" not in header:
        raise CsvImportError("CSV missing 'Date' column.")
    date_index = header.index("date")

    input_indices = {}
    for config in configs:
        column = input_column(config)
        if column.lower() not in header:
            raise CsvImportError(f"CSV missing '{column}' column.")
        input_indices[config.id] = header.index(column.lower())

    result = CsvImportResult()
    for row_number, values in enumerate(rows[1:], start=2):
        values = [value.strip() for value in values]
        row_date = values[date_index] if date_index < len(values) else ""
        if not is_calendar_date(row_date):
            message = f"Skipping row {row_number} due to invalid date format: {row_date!r}"
            logger.warning(message)
            result.warnings.append(message)
            continue
        inputs = {
            station_id: values[index] if index < len(values) else ""
            for station_id, index in input_indices.items()
        }
        result.records.append(compute_record(row_date, inputs, configs))
    return result
