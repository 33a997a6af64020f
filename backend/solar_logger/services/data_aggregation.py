from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from solar_logger.constants import DATE_FORMAT, POWER_STATION_CONFIGS
from solar_logger.models.record import DailyPowerRecord
from solar_logger.services.records import sort_records


class TimeRange(str, Enum):
    DAYS_30 = "30d"
    DAYS_90 = "90d"
    YEAR = "1y"
    ALL = "all"


def parse_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def range_start(time_range: TimeRange, today: date) -> Optional[date]:
    if time_range == TimeRange.ALL:
        return None
    if time_range == TimeRange.YEAR:
        try:
            return today.replace(year=today.year - 1)
        except ValueError:  # Feb 29
            return today.replace(year=today.year - 1, day=28)
    days = 90 if time_range == TimeRange.DAYS_90 else 30
    return today - timedelta(days=days)


def filter_by_time_range(
    records: Iterable[DailyPowerRecord],
    time_range: TimeRange = TimeRange.DAYS_30,
    today: Optional[date] = None,
) -> List[DailyPowerRecord]:
    """Records on or after the start of ``time_range``, oldest first."""
    start = range_start(TimeRange(time_range), today or date.today())
    if start is None:
        return sort_records(records, descending=False)
    start_str = start.strftime(DATE_FORMAT)
    return sort_records((r for r in records if r.date >= start_str), descending=False)


def daily_generation_series(records: Iterable[DailyPowerRecord]) -> List[Dict]:
    return [
        {"date": r.date, "totalWh": r.total_wh_generated}
        for r in sort_records(records, descending=False)
    ]


def cumulative_generation_series(records: Iterable[DailyPowerRecord]) -> List[Dict]:
    out = []
    running = 0.0
    for r in sort_records(records, descending=False):
        running += r.total_wh_generated
        out.append({"date": r.date, "cumulativeWh": running})
    return out


def cumulative_total(records: Iterable[DailyPowerRecord], days: int, today: Optional[date] = None) -> float:
    """Total Wh over the last ``days`` days, today included."""
    today = today or date.today()
    start = (today - timedelta(days=days - 1)).strftime(DATE_FORMAT)
    end = today.strftime(DATE_FORMAT)
    return sum(r.total_wh_generated for r in records if start <= r.date <= end)


def summarize_records(records: Iterable[DailyPowerRecord], today: Optional[date] = None) -> Dict:
    records = sort_records(records, descending=False)
    if not records:
        return {"message": "No records available", "total_records": 0}
    per_station = {config.id.value: 0.0 for config in POWER_STATION_CONFIGS}
    for r in records:
        for station_id, data in r.station_data.items():
            per_station[station_id.value] = per_station.get(station_id.value, 0.0) + data.recovered_wh
    total = sum(r.total_wh_generated for r in records)
    return {
        "total_records": len(records),
        "first_date": records[0].date,
        "last_date": records[-1].date,
        "total_wh": round(total, 2),
        "last_7_days_wh": round(cumulative_total(records, 7, today), 2),
        "last_30_days_wh": round(cumulative_total(records, 30, today), 2),
        "average_wh_per_day": round(total / len(records), 2),
        "per_station_wh": {k: round(v, 2) for k, v in per_station.items()},
    }
