from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from solar_logger.database import get_db
from solar_logger.services import store
from solar_logger.services.cache import CHART_KEY_PREFIX, STATS_KEY, get_cache, set_cache
from solar_logger.services.data_aggregation import (
    TimeRange,
    cumulative_generation_series,
    daily_generation_series,
    filter_by_time_range,
    summarize_records,
)

router = APIRouter()


@router.get("/charts")
def get_chart_series(
    time_range: TimeRange = Query(TimeRange.DAYS_30, alias="range"),
    db: Session = Depends(get_db),
):
    """Daily and cumulative Wh series for the selected range, oldest first."""
    cache_key = f"{CHART_KEY_PREFIX}{time_range.value}"
    data = get_cache(cache_key)
    if data is not None:
        return data
    records = filter_by_time_range(store.load_records(db), time_range)
    out = {
        "range": time_range.value,
        "daily": daily_generation_series(records),
        "cumulative": cumulative_generation_series(records),
    }
    set_cache(cache_key, out)
    return out


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    data = get_cache(STATS_KEY)
    if data is not None:
        return data
    out = summarize_records(store.load_records(db))
    set_cache(STATS_KEY, out)
    return out
