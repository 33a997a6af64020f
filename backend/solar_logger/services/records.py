import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from solar_logger.constants import (
    MAX_RECOVERY_PERCENTAGE,
    POWER_STATION_CONFIGS,
    StationConfig,
    StationId,
)
from solar_logger.models.record import DailyPowerRecord, StationDailyData
from solar_logger.services.recovery_parser import InvalidRecoveryInput, parse_recovery_input

logger = logging.getLogger(__name__)


def _raw_input(raw_inputs: Mapping, config: StationConfig) -> str:
    # accept keys as StationId members or plain id strings
    value = raw_inputs.get(config.id)
    if value is None:
        value = raw_inputs.get(config.id.value)
    return value or ""


class UnknownStation(ValueError):
    """A station input is keyed by an id outside the configured stations."""


def normalize_station_inputs(
    raw_inputs: Mapping,
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> Dict[StationId, str]:
    """Key raw inputs by station id, matching ids case-insensitively."""
    by_lower = {config.id.value.lower(): config.id for config in configs}
    inputs = {}
    for key, value in raw_inputs.items():
        name = key.value if isinstance(key, StationId) else str(key)
        station_id = by_lower.get(name.lower())
        if station_id is None:
            raise UnknownStation(f"Unknown station {key!r}")
        inputs[station_id] = value
    return inputs


def compute_record(
    date: str,
    raw_inputs: Mapping,
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> DailyPowerRecord:
    """Build the record for ``date`` from the raw per-station inputs.

    Every configured station gets an entry. A non-empty input that fails to
    parse is stored with zero recovery instead of failing the whole record;
    callers wanting to reject such input check it first with
    :func:`find_invalid_stations`.
    """
    station_data: Dict = {}
    total_wh = 0.0
    for config in configs:
        input_str = _raw_input(raw_inputs, config)
        try:
            percentage = parse_recovery_input(input_str)
        except InvalidRecoveryInput:
            logger.warning(f"Invalid input for {config.name} on {date}: {input_str!r}, recorded as 0")
            station_data[config.id] = StationDailyData(input=input_str)
            continue
        percentage = max(0.0, min(percentage, MAX_RECOVERY_PERCENTAGE))
        recovered_wh = percentage / 100 * config.capacity_wh
        station_data[config.id] = StationDailyData(
            input=input_str,
            recovered_percentage=percentage,
            recovered_wh=recovered_wh,
        )
        total_wh += recovered_wh
    return DailyPowerRecord(date=date, station_data=station_data, total_wh_generated=total_wh)


def find_invalid_stations(
    raw_inputs: Mapping,
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> List[StationConfig]:
    """Stations whose non-empty input would be degraded to zero by compute_record."""
    invalid = []
    for config in configs:
        input_str = _raw_input(raw_inputs, config)
        if not input_str.strip():
            continue
        try:
            parse_recovery_input(input_str)
        except InvalidRecoveryInput:
            invalid.append(config)
    return invalid


def sort_records(records: Iterable[DailyPowerRecord], descending: bool = True) -> List[DailyPowerRecord]:
    # YYYY-MM-DD sorts lexically in date order
    return sorted(records, key=lambda r: r.date, reverse=descending)


def reconcile(
    existing: Iterable[DailyPowerRecord],
    incoming: Iterable[DailyPowerRecord],
) -> List[DailyPowerRecord]:
    """Upsert ``incoming`` into ``existing`` by date, newest date first."""
    by_date = {record.date: record for record in existing}
    for record in incoming:
        by_date[record.date] = record
    return sort_records(by_date.values())


def remove_record(records: Iterable[DailyPowerRecord], date: str) -> Tuple[List[DailyPowerRecord], bool]:
    records = list(records)
    kept = [record for record in records if record.date != date]
    return kept, len(kept) != len(records)


def find_record(records: Iterable[DailyPowerRecord], date: str) -> Optional[DailyPowerRecord]:
    for record in records:
        if record.date == date:
            return record
    return None


def station_inputs_for(
    record: Optional[DailyPowerRecord],
    configs: Sequence[StationConfig] = POWER_STATION_CONFIGS,
) -> Dict[str, str]:
    """Raw inputs to prefill the entry form with; blanks when there is no record."""
    inputs = {}
    for config in configs:
        data = record.station_data.get(config.id) if record else None
        inputs[config.id.value] = data.input if data else ""
    return inputs


def _format_total(total: float) -> str:
    return str(int(total)) if float(total).is_integer() else str(total)


def search_records(records: Iterable[DailyPowerRecord], term: str) -> List[DailyPowerRecord]:
    if not term:
        return sort_records(records)
    lowered = term.lower()
    matches = [
        record for record in records
        if term in record.date
        or any(lowered in data.input.lower() for data in record.station_data.values())
        or term in _format_total(record.total_wh_generated)
    ]
    return sort_records(matches)
