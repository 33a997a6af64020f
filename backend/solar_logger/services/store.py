"""Whole-collection persistence of daily records.

The collection is always read in full and written in full: a write replaces
every stored row. Reads for display treat an unreadable store as empty;
updates refuse to run on one so stored records are never overwritten.
"""
import logging
import threading
from numbers import Number
from typing import Callable, List

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from solar_logger.constants import POWER_STATION_CONFIGS
from solar_logger.models.record import DailyPowerRecord, DailyRecordRow, StationDailyData
from solar_logger.services.cache import RECORDS_KEY, get_cache, invalidate_records_cache, set_cache
from solar_logger.services.records import reconcile, sort_records

logger = logging.getLogger(__name__)

# Serializes load -> mutate -> persist across the request thread pool
_collection_lock = threading.Lock()


class RecordStoreError(Exception):
    """The collection could not be read for an update, or could not be written."""


class InvalidPayload(ValueError):
    """An overwrite payload is not a list of records."""


def read_records(db: Session) -> List[DailyPowerRecord]:
    """Load the full collection, newest first.

    Raises:
        RecordStoreError: the database cannot be read or a stored row is unreadable.
    """
    try:
        rows = db.query(DailyRecordRow).all()
    except SQLAlchemyError as e:
        raise RecordStoreError(f"Error reading records: {e}") from e
    records = []
    for row in rows:
        try:
            records.append(DailyPowerRecord.model_validate(row.to_dict()))
        except (ValueError, ValidationError) as e:
            raise RecordStoreError(f"Error parsing stored record {row.date}: {e}") from e
    return sort_records(records)


def load_records(db: Session) -> List[DailyPowerRecord]:
    """Read view of the collection; an unreadable store reads as empty."""
    try:
        return read_records(db)
    except RecordStoreError as e:
        logger.error(str(e))
        return []


def load_records_cached(db: Session) -> List[dict]:
    # under the lock so a fill can't land after a concurrent write's invalidation
    with _collection_lock:
        data = get_cache(RECORDS_KEY)
        if data is None:
            data = [r.to_dict() for r in load_records(db)]
            set_cache(RECORDS_KEY, data)
    return data


def replace_records(db: Session, records: List[DailyPowerRecord]) -> None:
    try:
        db.query(DailyRecordRow).delete()
        for record in records:
            db.add(DailyRecordRow.from_record(record))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error writing records: {e}")
        raise RecordStoreError("Error writing records") from e
    finally:
        invalidate_records_cache()


def _with_all_stations(record: DailyPowerRecord) -> DailyPowerRecord:
    station_data = {
        config.id: record.station_data.get(config.id, StationDailyData())
        for config in POWER_STATION_CONFIGS
    }
    return record.model_copy(update={"station_data": station_data})


def validate_payload(payload) -> List[DailyPowerRecord]:
    """Check an overwrite payload and turn it into records.

    Each item needs a string ``date`` and a numeric ``totalWhGenerated``.
    Duplicate dates collapse to the last occurrence; stations missing from
    ``stationData`` get empty entries.
    """
    if not isinstance(payload, list):
        raise InvalidPayload("Invalid data format. Expected an array of records.")
    for item in payload:
        if (
            not isinstance(item, dict)
            or not isinstance(item.get("date"), str)
            or isinstance(item.get("totalWhGenerated"), bool)
            or not isinstance(item.get("totalWhGenerated"), Number)
        ):
            raise InvalidPayload(
                "Invalid record structure. Each record must have a date (string) "
                "and totalWhGenerated (number)."
            )
    try:
        records = [DailyPowerRecord.model_validate(item) for item in payload]
    except ValidationError as e:
        raise InvalidPayload(f"Invalid record structure: {e.error_count()} field error(s).") from e
    return reconcile([], [_with_all_stations(r) for r in records])


def apply_update(db: Session, mutate: Callable[[List[DailyPowerRecord]], List[DailyPowerRecord]]) -> List[DailyPowerRecord]:
    """Load the collection, apply ``mutate`` and persist the result as one step."""
    with _collection_lock:
        records = mutate(read_records(db))
        replace_records(db, records)
    return records

