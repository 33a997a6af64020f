import logging
from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from solar_logger.constants import POWER_STATION_CONFIGS
from solar_logger.database import get_db
from solar_logger.services import store
from solar_logger.services.csv_io import (
    CsvImportError,
    csv_template,
    export_filename,
    export_records_to_csv,
    import_records_from_csv,
    is_calendar_date,
)
from solar_logger.services.records import (
    compute_record,
    find_invalid_stations,
    find_record,
    normalize_station_inputs,
    reconcile,
    remove_record,
    search_records,
    station_inputs_for,
    UnknownStation,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RecordSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    station_inputs: Dict[str, str] = Field(default_factory=dict, alias="stationInputs")


def _check_date(value: str) -> str:
    if not is_calendar_date(value):
        raise HTTPException(status_code=422, detail=f"Invalid date {value!r}, expected YYYY-MM-DD")
    return value


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stations")
def get_stations():
    return [config.to_dict() for config in POWER_STATION_CONFIGS]


@router.get("/records")
def get_records(search: str = Query(None), db: Session = Depends(get_db)):
    """All records, newest first, optionally filtered by a search term."""
    if search:
        return [r.to_dict() for r in search_records(store.load_records(db), search)]
    return store.load_records_cached(db)


@router.post("/records", status_code=201)
def overwrite_records(payload: Any = Body(None), db: Session = Depends(get_db)):
    """Replace the whole collection with ``payload``."""
    try:
        records = store.validate_payload(payload)
    except store.InvalidPayload as e:
        raise HTTPException(status_code=400, detail=str(e))
    store.apply_update(db, lambda _: records)
    logger.info(f"Collection overwritten with {len(records)} records")
    return {"message": "Records saved successfully", "count": len(records)}


@router.get("/records/{record_date}")
def get_record(record_date: str, db: Session = Depends(get_db)):
    record = find_record(store.load_records(db), record_date)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No record for {record_date}")
    return record.to_dict()


@router.get("/records/{record_date}/inputs")
def get_record_inputs(record_date: str, db: Session = Depends(get_db)):
    """Raw station inputs to prefill the entry form for ``record_date``."""
    record = find_record(store.load_records(db), record_date)
    return {"date": record_date, "exists": record is not None, "stationInputs": station_inputs_for(record)}


@router.put("/records/{record_date}")
def submit_record(record_date: str, submission: RecordSubmission, db: Session = Depends(get_db)):
    _check_date(record_date)
    try:
        inputs = normalize_station_inputs(submission.station_inputs)
    except UnknownStation as e:
        raise HTTPException(status_code=422, detail=str(e))
    invalid = find_invalid_stations(inputs)
    if invalid:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid input for {invalid[0].name}. Use numbers or simple expressions like '60-12'.",
        )
    record = compute_record(record_date, inputs)
    existed = {}

    def upsert(records):
        existed["value"] = find_record(records, record_date) is not None
        return reconcile(records, [record])

    store.apply_update(db, upsert)
    action = "updated" if existed["value"] else "added"
    logger.info(f"Record for {record_date} {action}: {record.total_wh_generated:.2f} Wh")
    return {"message": f"Record for {record_date} {action} successfully!", "created": not existed["value"], "record": record.to_dict()}


@router.delete("/records/{record_date}")
def delete_record(record_date: str, db: Session = Depends(get_db)):
    removed = {}

    def drop(records):
        kept, removed["value"] = remove_record(records, record_date)
        return kept

    store.apply_update(db, drop)
    if not removed["value"]:
        raise HTTPException(status_code=404, detail=f"No record for {record_date}")
    return {"message": f"Record for {record_date} deleted"}


@router.get("/export.csv")
def export_csv(db: Session = Depends(get_db)):
    records = store.load_records(db)
    return _csv_response(export_records_to_csv(records), export_filename(date.today()))


@router.get("/template.csv")
def download_template():
    return _csv_response(csv_template(), "example_import_template.csv")


def _import(text: str, db: Session) -> Dict:
    result = import_records_from_csv(text)
    store.apply_update(db, lambda records: reconcile(records, result.records))
    logger.info(f"Imported {len(result.records)} records from CSV, skipped {result.skipped} rows")
    return {
        "message": f"{len(result.records)} records imported successfully.",
        "imported": len(result.records),
        "skipped": result.skipped,
        "warnings": result.warnings,
    }


@router.post("/import")
async def import_csv(request: Request, db: Session = Depends(get_db)):
    """Import CSV text sent as the request body and merge it by date."""
    text = (await request.body()).decode("utf-8-sig", errors="replace")
    try:
        return await run_in_threadpool(_import, text, db)
    except CsvImportError as e:
        raise HTTPException(status_code=400, detail=f"Error importing CSV: {e}")
